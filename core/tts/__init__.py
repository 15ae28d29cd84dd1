"""Text-to-speech orchestration for the reader.

This package provides the speech adapters and their registry, the playback and session
stores, voice directory, continuity generation, playback executor, orchestration engine,
the adapter factory and the `TTSManager` facade.
"""

from core.tts.adapter_factory import AdapterBundle, AdapterFactory
from core.tts.audio_playback_manager import AudioPlaybackManager
from core.tts.interface import (
    ApiAuthError,
    ApiError,
    Capability,
    ConfigurationError,
    InvalidInputError,
    NetworkError,
    PlaybackFailedError,
    SpeechAdapter,
    TextTooLongError,
    TTSExceptionError,
    VoiceLoadError,
    VoiceUnsupportedError,
)
from core.tts.manager import TTSManager
from core.tts.orchestrator import OrchestrationCallbacks, OrchestrationEngine
from core.tts.playback_executor import PlaybackExecutor
from core.tts.state_store import SessionStore, StateStore
from core.tts.voice_directory import VoiceDirectory

__all__: list[str] = [
    "AdapterBundle",
    "AdapterFactory",
    "ApiAuthError",
    "ApiError",
    "AudioPlaybackManager",
    "Capability",
    "ConfigurationError",
    "InvalidInputError",
    "NetworkError",
    "OrchestrationCallbacks",
    "OrchestrationEngine",
    "PlaybackExecutor",
    "PlaybackFailedError",
    "SessionStore",
    "SpeechAdapter",
    "StateStore",
    "TTSExceptionError",
    "TTSManager",
    "TextTooLongError",
    "VoiceDirectory",
    "VoiceLoadError",
    "VoiceUnsupportedError",
]
