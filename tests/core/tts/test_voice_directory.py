"""Unit tests for core.tts.voice_directory module."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from core.tts.engines.mock import MockSpeech
from core.tts.interface import (
    Capability,
    SpeechAdapter,
    VoiceLoadError,
    VoiceUnsupportedError,
)
from core.tts.state_store import SessionStore
from core.tts.voice_directory import VoiceDirectory
from handlers.async_comm import AsyncCommConnectionError, AsyncCommError
from models.config_models import ProviderSettings
from models.voice_models import GenerationResult, TextChunk, VoiceInfo

ALPHA_VOICES: list[VoiceInfo] = [
    VoiceInfo(id="a-f", name="Anna", language="en", gender="female", provider="alpha"),
    VoiceInfo(id="a-m", name="Adam", language="en", gender="male", provider="alpha"),
]
BETA_VOICES: list[VoiceInfo] = [
    VoiceInfo(id="b-f", name="Bea", language="nl", gender="female", provider="beta"),
    VoiceInfo(id="b-x", name="Bo", language="nl", gender=None, provider="beta"),
]


class AlphaAdapter(SpeechAdapter):
    CAPABILITIES = Capability.VOICE_AWARE

    @staticmethod
    def fetch_provider_name() -> str:
        return "alpha"

    async def _synthesize(self, chunk: TextChunk, prior_tokens: tuple[str, ...]) -> GenerationResult:
        return GenerationResult(audio_bytes=chunk.text.encode())

    async def fetch_voices(self) -> list[VoiceInfo]:
        return list(ALPHA_VOICES)


class BetaSource:
    def __init__(self, voices: list[VoiceInfo] | None = None) -> None:
        self.fetch_voices = AsyncMock(return_value=list(BETA_VOICES if voices is None else voices))
        self.destroy = AsyncMock()


def _alpha(voice_id: str = "") -> AlphaAdapter:
    return AlphaAdapter(ProviderSettings(VOICE_ID=voice_id))


@pytest.mark.asyncio
async def test_load_voices_fills_cache_and_session() -> None:
    session = SessionStore()
    directory = VoiceDirectory(_alpha(), session=session)

    voices: list[VoiceInfo] = await directory.load_voices()

    assert voices == ALPHA_VOICES
    assert directory.is_loaded("alpha")
    assert directory.get_cached_voices() == ALPHA_VOICES
    state = session.get_state()
    assert state.voices == tuple(ALPHA_VOICES)
    assert not state.is_loading_voices
    assert state.voices_error is None


@pytest.mark.asyncio
async def test_first_voice_is_selected_when_nothing_is_selected() -> None:
    adapter = _alpha()
    session = SessionStore()
    directory = VoiceDirectory(adapter, session=session)

    await directory.load_voices()

    assert directory.get_selected_voice_id() == "a-f"
    assert adapter.voice_id == "a-f"
    assert session.get_state().selected_voice == "a-f"


@pytest.mark.asyncio
async def test_configured_voice_is_kept_after_load() -> None:
    directory = VoiceDirectory(_alpha("a-m"))

    await directory.load_voices()

    assert directory.get_selected_voice_id() == "a-m"


@pytest.mark.asyncio
async def test_network_failure_maps_to_voice_load_error_with_cause() -> None:
    adapter = _alpha()
    adapter.fetch_voices = AsyncMock(  # type: ignore[method-assign]
        side_effect=AsyncCommConnectionError("Cannot connect to host")
    )
    session = SessionStore()
    directory = VoiceDirectory(adapter, session=session)

    with pytest.raises(VoiceLoadError) as exc_info:
        await directory.load_voices()

    err: VoiceLoadError = exc_info.value
    assert err.code == "NETWORK_ERROR"
    assert err.message == (
        "No internet connection available for alpha. Check your network connection and try again."
    )
    assert session.get_state().voices_error == err.message
    assert not session.get_state().is_loading_voices
    assert not directory.is_loaded("alpha")


@pytest.mark.asyncio
async def test_auth_failure_keeps_auth_cause() -> None:
    adapter = _alpha()
    adapter.fetch_voices = AsyncMock(  # type: ignore[method-assign]
        side_effect=AsyncCommError("Unauthorized", status=401, body={"error": "Invalid API key"})
    )
    directory = VoiceDirectory(adapter)

    with pytest.raises(VoiceLoadError) as exc_info:
        await directory.load_voices()

    assert exc_info.value.code == "API_AUTH_ERROR"


@pytest.mark.asyncio
async def test_other_failures_use_voice_load_code() -> None:
    adapter = _alpha()
    adapter.fetch_voices = AsyncMock(  # type: ignore[method-assign]
        side_effect=AsyncCommError("Server error", status=500, body={"error": "Upstream down"})
    )
    directory = VoiceDirectory(adapter)

    with pytest.raises(VoiceLoadError) as exc_info:
        await directory.load_voices()

    assert exc_info.value.code == "VOICE_LOAD_ERROR"
    assert exc_info.value.message == "Failed to load voices from alpha: alpha API error: Upstream down"


@pytest.mark.asyncio
async def test_unknown_provider_is_unsupported() -> None:
    directory = VoiceDirectory(_alpha())

    with pytest.raises(VoiceUnsupportedError):
        await directory.load_voices("gamma")


def test_select_voice_on_basic_adapter_is_unsupported() -> None:
    directory = VoiceDirectory(MockSpeech(ProviderSettings(VOICE_ID="mock-sine")))

    assert directory.providers == []
    with pytest.raises(VoiceUnsupportedError, match="Mock TTS does not support voice selection"):
        directory.select_voice("other")
    assert directory.get_selected_voice_id() == "mock-sine"


@pytest.mark.asyncio
async def test_gender_lookup_spans_providers_and_loads_once() -> None:
    beta = BetaSource()
    directory = VoiceDirectory(_alpha(), sources={"beta": beta})

    females: list[VoiceInfo] = await directory.get_voices_by_gender("female")
    again: list[VoiceInfo] = await directory.get_voices_by_gender("female")
    males: list[VoiceInfo] = await directory.get_voices_by_gender("male")

    assert [voice.id for voice in females] == ["a-f", "b-f"]
    assert again == females
    assert [voice.id for voice in males] == ["a-m"]
    beta.fetch_voices.assert_awaited_once()
    # Loading a secondary provider does not touch the selection
    assert directory.get_selected_voice_id() == "a-f"


@pytest.mark.asyncio
async def test_current_voice_gender_from_other_provider() -> None:
    directory = VoiceDirectory(_alpha(), sources={"beta": BetaSource()}, initial_voice_id="b-f")

    assert await directory.get_current_voice_gender() == "female"


@pytest.mark.asyncio
async def test_current_voice_gender_none_cases() -> None:
    directory = VoiceDirectory(_alpha(), sources={"beta": BetaSource()}, auto_select=False)
    assert await directory.get_current_voice_gender() is None

    directory.select_voice("b-x")
    assert await directory.get_current_voice_gender() is None

    directory.select_voice("missing")
    assert await directory.get_current_voice_gender() is None


@pytest.mark.asyncio
async def test_current_voice_gender_lenient_on_load_failure() -> None:
    beta = BetaSource()
    beta.fetch_voices.side_effect = AsyncCommConnectionError("offline")
    directory = VoiceDirectory(_alpha("a-x"), sources={"beta": beta})

    assert await directory.get_current_voice_gender() is None


@pytest.mark.asyncio
async def test_current_voice_gender_strict_on_load_failure() -> None:
    beta = BetaSource()
    beta.fetch_voices.side_effect = AsyncCommConnectionError("offline")
    directory = VoiceDirectory(_alpha("a-x"), sources={"beta": beta}, strict=True)

    with pytest.raises(VoiceLoadError):
        await directory.get_current_voice_gender()


@pytest.mark.asyncio
async def test_clear_and_close() -> None:
    beta = BetaSource()
    session = SessionStore()
    adapter = _alpha()
    directory = VoiceDirectory(adapter, sources={"beta": beta}, session=session)
    await directory.load_voices()

    directory.clear()
    await directory.close()

    assert directory.get_cached_voices() == []
    assert directory.get_selected_voice_id() is None
    assert session.get_state().voices == ()
    assert session.get_state().selected_voice is None
    beta.destroy.assert_awaited_once()
    assert directory.providers == ["alpha"]
