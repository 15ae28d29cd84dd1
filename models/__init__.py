"""Data models for the reader TTS engine.

This package contains dataclass definitions for configuration, playback state snapshots,
voices and text chunks, provider gateway payloads and the user-facing message catalog.
"""

from __future__ import annotations

from models.config_models import TTS, Config, General, ProviderSettings
from models.message_models import ERROR_MESSAGES, format_error_message, provider_display_name
from models.provider_models import AzureVoice, ElevenLabsVoice, ElevenLabsVoiceList, GatewayError
from models.state_models import EngineState, ErrorInfo, PlaybackState, SessionState
from models.voice_models import (
    ElementKind,
    Gender,
    GenerationResult,
    HighlightWindow,
    PassageAudio,
    ProviderInfo,
    TextChunk,
    VoiceInfo,
)

__all__: list[str] = [
    "ERROR_MESSAGES",
    "TTS",
    "AzureVoice",
    "Config",
    "ElementKind",
    "ElevenLabsVoice",
    "ElevenLabsVoiceList",
    "EngineState",
    "ErrorInfo",
    "GatewayError",
    "Gender",
    "General",
    "GenerationResult",
    "HighlightWindow",
    "PassageAudio",
    "PlaybackState",
    "ProviderInfo",
    "ProviderSettings",
    "SessionState",
    "TextChunk",
    "VoiceInfo",
    "format_error_message",
    "provider_display_name",
]
