"""Unit tests for core.tts.continuity module."""

from __future__ import annotations

from io import BytesIO

import numpy as np
import pytest
import soundfile as sf

from core.tts.continuity import generate_passage, join_audio
from core.tts.engines.mock import generate_tone
from core.tts.interface import (
    ApiError,
    Capability,
    InvalidInputError,
    SpeechAdapter,
)
from models.config_models import ProviderSettings
from models.voice_models import GenerationResult, PassageAudio, TextChunk


class ScriptedAdapter(SpeechAdapter):
    """Continuity-aware adapter that records calls and can fail on a given chunk."""

    CAPABILITIES = Capability.CONTINUITY_AWARE

    def __init__(self, *, fail_at: int | None = None) -> None:
        super().__init__(ProviderSettings())
        self.calls: list[tuple[str, tuple[str, ...]]] = []
        self.fail_at: int | None = fail_at

    @staticmethod
    def fetch_provider_name() -> str:
        return ""

    async def _synthesize(self, chunk: TextChunk, prior_tokens: tuple[str, ...]) -> GenerationResult:
        index: int = len(self.calls)
        self.calls.append((chunk.text, prior_tokens))
        if index == self.fail_at:
            msg = "Quota exceeded"
            raise ApiError(msg, status=429)
        return GenerationResult(audio_bytes=f"<{chunk.text}>".encode(), continuity_token=f"tok{index + 1}")


class BasicScriptedAdapter(ScriptedAdapter):
    CAPABILITIES = Capability.BASIC


CHUNKS: list[TextChunk] = [TextChunk("Hello."), TextChunk("World."), TextChunk("Bye.")]


@pytest.mark.asyncio
async def test_tokens_are_threaded_in_order() -> None:
    adapter = ScriptedAdapter()

    passage: PassageAudio = await generate_passage(adapter, CHUNKS)

    assert adapter.calls == [
        ("Hello.", ()),
        ("World.", ("tok1",)),
        ("Bye.", ("tok1", "tok2")),
    ]
    assert passage.audio_bytes == b"<Hello.><World.><Bye.>"
    assert passage.continuity_tokens == ("tok1", "tok2", "tok3")
    assert passage.chunk_count == 3


@pytest.mark.asyncio
async def test_basic_adapter_is_generated_without_tokens() -> None:
    adapter = BasicScriptedAdapter()

    passage: PassageAudio = await generate_passage(adapter, CHUNKS[:2])

    assert adapter.calls == [("Hello.", ()), ("World.", ())]
    assert passage.continuity_tokens == ()
    assert passage.audio_bytes == b"<Hello.><World.>"


@pytest.mark.asyncio
async def test_failure_aborts_passage_without_further_calls() -> None:
    adapter = ScriptedAdapter(fail_at=1)

    with pytest.raises(ApiError) as exc_info:
        await generate_passage(adapter, CHUNKS)

    assert exc_info.value.status == 429
    assert len(adapter.calls) == 2


@pytest.mark.asyncio
async def test_empty_passage_is_invalid_input() -> None:
    with pytest.raises(InvalidInputError, match="No text to read"):
        await generate_passage(ScriptedAdapter(), [])


@pytest.mark.asyncio
async def test_abandoned_passage_returns_empty_audio() -> None:
    adapter = ScriptedAdapter()
    answers: list[bool] = [True, False]

    passage: PassageAudio = await generate_passage(adapter, CHUNKS, is_current=lambda: answers.pop(0))

    assert passage == PassageAudio(audio_bytes=b"", continuity_tokens=(), chunk_count=0)
    assert len(adapter.calls) == 2


def test_join_audio_appends_non_wav_bytes() -> None:
    assert join_audio([b"ID3a", b"ID3b"]) == b"ID3aID3b"
    assert join_audio([b"only"]) == b"only"
    assert join_audio([]) == b""


def test_join_audio_merges_wav_segments() -> None:
    first: bytes = generate_tone("Hello.")
    second: bytes = generate_tone("World.")

    merged: bytes = join_audio([first, second])

    data, rate = sf.read(BytesIO(merged), dtype="float32")
    first_data, _ = sf.read(BytesIO(first), dtype="float32")
    second_data, _ = sf.read(BytesIO(second), dtype="float32")
    assert rate == 22050
    assert len(data) == len(first_data) + len(second_data)
    np.testing.assert_allclose(data[: len(first_data)], first_data, atol=1e-4)


def test_join_audio_with_mixed_sample_rates_appends_bytes() -> None:
    buffer = BytesIO()
    sf.write(buffer, np.zeros(100, dtype=np.float32), 16000, format="WAV", subtype="PCM_16")
    other: bytes = buffer.getvalue()
    tone: bytes = generate_tone("Hello.")

    assert join_audio([tone, other]) == tone + other
