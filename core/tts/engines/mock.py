"""Offline speech adapter producing sine tones.

Used for development without credentials and by the engine when ``TTS.MOCK_TTS`` is set.
Every chunk becomes a short 16-bit mono WAV whose pitch depends on the text, so that
consecutive chunks are audibly distinct.
"""

from __future__ import annotations

from io import BytesIO
from typing import TYPE_CHECKING, ClassVar, Final

import numpy as np
import soundfile as sf

from core.tts.interface import Capability, SpeechAdapter
from models.voice_models import GenerationResult
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from models.voice_models import TextChunk

__all__: list[str] = ["MockSpeech", "generate_tone", "text_hash"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

SAMPLE_RATE: Final[int] = 22050
BASE_FREQUENCY: Final[float] = 440.0
FREQUENCY_STEP: Final[float] = 50.0
AMPLITUDE: Final[float] = 0.2
CHARS_PER_SECOND: Final[float] = 30.0
MIN_DURATION: Final[float] = 1.0
MAX_DURATION: Final[float] = 3.0


def text_hash(text: str) -> int:
    """Stable 32-bit string hash (``h = h * 31 + ord(c)``), returned as an absolute value."""
    value: int = 0
    for char in text:
        value = (value * 31 + ord(char)) & 0xFFFFFFFF
    if value >= 0x80000000:
        value -= 0x100000000
    return abs(value)


def tone_duration(text: str) -> float:
    return max(MIN_DURATION, min(MAX_DURATION, len(text) / CHARS_PER_SECOND))


def generate_tone(text: str) -> bytes:
    """Render a sine tone for the text as WAV bytes.

    Args:
        text (str): Text the tone stands in for.

    Returns:
        bytes: 16-bit PCM mono WAV at 22050 Hz.
    """
    frequency: float = BASE_FREQUENCY + (text_hash(text) % 5) * FREQUENCY_STEP
    samples: int = int(SAMPLE_RATE * tone_duration(text))
    t: np.ndarray = np.arange(samples, dtype=np.float32) / SAMPLE_RATE
    wave: np.ndarray = (np.sin(2 * np.pi * frequency * t) * AMPLITUDE).astype(np.float32)

    buffer = BytesIO()
    sf.write(buffer, wave, SAMPLE_RATE, format="WAV", subtype="PCM_16")
    logger.debug("Generated %.2f s mock tone at %.0f Hz", samples / SAMPLE_RATE, frequency)
    return buffer.getvalue()


class MockSpeech(SpeechAdapter):
    """Basic adapter: no voices, no continuity, no network."""

    CAPABILITIES: ClassVar[Capability] = Capability.BASIC

    @staticmethod
    def fetch_provider_name() -> str:
        return "mock"

    async def _synthesize(self, chunk: TextChunk, prior_tokens: tuple[str, ...]) -> GenerationResult:
        _ = prior_tokens
        return GenerationResult(audio_bytes=generate_tone(chunk.text))
