"""Configuration data models for the reader TTS engine.

Each dataclass mirrors one section of the INI file. Field names are the INI keys and the
type of each default decides how the loader converts the raw string.
"""

from __future__ import annotations

from dataclasses import dataclass, field

__all__: list[str] = [
    "TTS",
    "Config",
    "General",
    "ProviderSettings",
]


@dataclass
class General:
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = ""
    SCRIPT_NAME: str = ""


@dataclass
class TTS:
    PROVIDER: str = "elevenlabs"
    PROVIDERS: list[str] = field(default_factory=lambda: ["elevenlabs", "azure"])
    LANGUAGE: str = "en"
    MAX_TEXT_LENGTH: int = 5000
    WORDS_PER_MINUTE: int = 150
    HIGHLIGHT_INTERVAL: float = 0.1
    CHUNK_LIMIT: int = 3
    WHOLE_PAGE_READING: bool = False
    MOCK_TTS: bool = False
    CONTINUE_TO_NEXT_PAGE: bool = False


@dataclass
class ProviderSettings:
    SERVER: str = ""
    TIMEOUT: float = 30.0
    VOICE_ID: str = ""
    MODEL_ID: str = ""


@dataclass
class Config:
    GENERAL: General = field(default_factory=General)
    TTS: TTS = field(default_factory=TTS)
    ELEVENLABS: ProviderSettings = field(
        default_factory=lambda: ProviderSettings(
            SERVER="http://127.0.0.1:3000/api/tts/elevenlabs",
            VOICE_ID="JBFqnCBsd6RMkjVDRZzb",
            MODEL_ID="eleven_multilingual_v2",
        )
    )
    AZURE: ProviderSettings = field(
        default_factory=lambda: ProviderSettings(
            SERVER="http://127.0.0.1:3000/api/tts/azure",
            VOICE_ID="en-US-AriaNeural",
        )
    )
    MOCK: ProviderSettings = field(default_factory=lambda: ProviderSettings(VOICE_ID="mock-sine"))
