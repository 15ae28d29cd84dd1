"""Speech adapter implementations.

Importing this package registers every adapter with `SpeechAdapter`.

Modules:
- HttpSpeechAdapter: Base class for adapters backed by an HTTP gateway.
- ElevenLabs: ElevenLabs adapter with voice listing and context continuity.
- AzureSpeech: Azure Speech adapter with voice listing and SSML shaping.
- MockSpeech: Offline adapter producing sine tones.
"""

from core.tts.engines.azure import AzureSpeech
from core.tts.engines.elevenlabs import ElevenLabs
from core.tts.engines.http_core import HttpSpeechAdapter
from core.tts.engines.mock import MockSpeech

__all__: list[str] = [
    "AzureSpeech",
    "ElevenLabs",
    "HttpSpeechAdapter",
    "MockSpeech",
]
