"""Sequential passage generation with context continuity.

Chunks of one passage are generated strictly one after another. For continuity-aware
adapters, request *i* carries the tokens returned by requests ``0..i-1`` in order, letting
the provider keep the voice state across chunk boundaries. Audio is concatenated in chunk
order, merging WAV segments into one file. The first failure aborts the passage: the audio
generated so far is dropped and the error propagates unchanged.
"""

from __future__ import annotations

from io import BytesIO
from typing import TYPE_CHECKING, Final

import numpy as np
import soundfile as sf

from core.tts.interface import InvalidInputError
from models.voice_models import PassageAudio
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable, Sequence

    from core.tts.interface import SpeechAdapter
    from models.voice_models import GenerationResult, TextChunk

__all__: list[str] = ["generate_passage", "join_audio"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

WAV_MAGIC: Final[bytes] = b"RIFF"


def join_audio(parts: Sequence[bytes]) -> bytes:
    """Concatenate audio segments in order.

    MPEG frames can simply be appended. WAV segments each carry a header, so when every
    segment is a WAV file they are decoded and written back as a single WAV.
    """
    if len(parts) < 2 or not all(part.startswith(WAV_MAGIC) for part in parts):
        return b"".join(parts)

    frames: list[np.ndarray] = []
    samplerate: int = 0
    for part in parts:
        data, rate = sf.read(BytesIO(part), dtype="float32", always_2d=True)
        if samplerate and rate != samplerate:
            logger.warning("Sample rate changed between segments (%d -> %d); appending raw bytes", samplerate, rate)
            return b"".join(parts)
        samplerate = rate
        frames.append(data)

    buffer = BytesIO()
    sf.write(buffer, np.concatenate(frames), samplerate, format="WAV", subtype="PCM_16")
    return buffer.getvalue()


async def generate_passage(
    adapter: SpeechAdapter,
    chunks: Sequence[TextChunk],
    *,
    is_current: Callable[[], bool] | None = None,
) -> PassageAudio:
    """Generate the audio of a passage.

    Args:
        adapter (SpeechAdapter): Adapter used for every chunk.
        chunks (Sequence[TextChunk]): Chunks in reading order.
        is_current (Callable[[], bool] | None): Checked after each chunk; when it returns
            False the passage is abandoned and an empty result is returned.

    Returns:
        PassageAudio: Concatenated audio and the collected continuity tokens.

    Raises:
        InvalidInputError: If ``chunks`` is empty.
        TTSExceptionError: The first error raised by the adapter.
    """
    if not chunks:
        msg = "No text to read"
        raise InvalidInputError(msg, provider=adapter.provider)

    use_continuity: bool = adapter.is_continuity_aware
    tokens: list[str] = []
    parts: list[bytes] = []

    for index, chunk in enumerate(chunks):
        logger.debug("Generating chunk %d/%d with '%s'", index + 1, len(chunks), adapter.provider)
        result: GenerationResult
        if use_continuity:
            result = await adapter.play_with_continuity(chunk, tuple(tokens))
            if result.continuity_token:
                tokens.append(result.continuity_token)
        else:
            result = await adapter.generate(chunk)
        if is_current is not None and not is_current():
            logger.debug("Passage generation abandoned after chunk %d", index + 1)
            return PassageAudio(audio_bytes=b"", continuity_tokens=(), chunk_count=0)
        parts.append(result.audio_bytes)

    logger.info("Generated %d chunks (%d continuity tokens)", len(parts), len(tokens))
    return PassageAudio(audio_bytes=join_audio(parts), continuity_tokens=tuple(tokens), chunk_count=len(parts))
