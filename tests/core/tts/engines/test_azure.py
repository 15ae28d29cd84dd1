"""Unit tests for core.tts.engines.azure module."""

from __future__ import annotations

from typing import Any

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from core.tts.engines.azure import AzureSpeech
from core.tts.interface import ApiError, Capability, ConfigurationError, PlaybackFailedError
from models.config_models import ProviderSettings
from models.voice_models import ElementKind, GenerationResult, TextChunk, VoiceInfo

ENV: dict[str, str] = {"AZURE_SPEECH_KEY": "key", "AZURE_SPEECH_REGION": "westeurope"}

AZURE_VOICES: list[dict[str, Any]] = [
    {
        "ShortName": "en-US-AriaNeural",
        "LocalName": "Aria",
        "LocaleName": "English (United States)",
        "Locale": "en-US",
        "Gender": "Female",
        "VoiceType": "Neural",
    },
    {"ShortName": "nl-NL-MaartenNeural", "Locale": "nl-NL", "Gender": "Male"},
]


def _app(requests: list[dict[str, Any]], headers: list[Any], *, audio: bytes = b"RIFFdata") -> web.Application:
    async def voices(request: web.Request) -> web.Response:
        headers.append(request.headers.copy())
        return web.json_response(AZURE_VOICES)

    async def synthesize(request: web.Request) -> web.Response:
        requests.append(await request.json())
        headers.append(request.headers.copy())
        return web.Response(body=audio, content_type="audio/wav", headers={"x-provider": "azure"})

    app = web.Application()
    app.router.add_get("/api/tts/azure/voices", voices)
    app.router.add_post("/api/tts/azure", synthesize)
    return app


def _adapter(server: TestServer) -> AzureSpeech:
    settings = ProviderSettings(SERVER=str(server.make_url("/api/tts/azure")), VOICE_ID="en-US-AriaNeural")
    return AzureSpeech(settings, environ=ENV)


def test_missing_region_is_reported() -> None:
    with pytest.raises(ConfigurationError) as exc_info:
        AzureSpeech(ProviderSettings(), environ={"AZURE_SPEECH_KEY": "key"})

    assert exc_info.value.message == (
        "Azure Speech API not configured. Please set AZURE_SPEECH_REGION in your environment variables"
    )
    assert exc_info.value.details == {"missing": ["AZURE_SPEECH_REGION"]}


def test_azure_has_voices_but_no_continuity() -> None:
    adapter = AzureSpeech(ProviderSettings(), environ=ENV)

    assert adapter.capabilities is Capability.VOICE_AWARE
    assert adapter.voices is not None
    assert not adapter.is_continuity_aware


@pytest.mark.asyncio
async def test_fetch_voices_maps_azure_listing() -> None:
    requests: list[dict[str, Any]] = []
    headers: list[Any] = []
    async with TestServer(_app(requests, headers)) as server:
        adapter: AzureSpeech = _adapter(server)
        try:
            voices: list[VoiceInfo] = await adapter.fetch_voices()
        finally:
            await adapter.destroy()

    assert voices[0] == VoiceInfo(
        id="en-US-AriaNeural",
        name="Aria (English (United States))",
        language="en-US",
        gender="female",
        provider="azure",
        extra={"VoiceType": "Neural"},
    )
    assert voices[1].name == "nl-NL-MaartenNeural (nl-NL)"
    assert voices[1].gender == "male"
    assert headers[0]["Ocp-Apim-Subscription-Key"] == "key"
    assert headers[0]["x-azure-region"] == "westeurope"


@pytest.mark.asyncio
async def test_generate_sends_ssml_fragment() -> None:
    requests: list[dict[str, Any]] = []
    headers: list[Any] = []
    async with TestServer(_app(requests, headers)) as server:
        adapter: AzureSpeech = _adapter(server)
        try:
            result: GenerationResult = await adapter.generate(TextChunk("Tom & Jerry", ElementKind.BOLD))
        finally:
            await adapter.destroy()

    assert requests == [{"text": '<emphasis level="strong">Tom &amp; Jerry</emphasis>', "voiceId": "en-US-AriaNeural"}]
    assert result.audio_bytes == b"RIFFdata"
    assert result.continuity_token is None


@pytest.mark.asyncio
async def test_empty_audio_is_a_playback_failure() -> None:
    requests: list[dict[str, Any]] = []
    headers: list[Any] = []
    async with TestServer(_app(requests, headers, audio=b"")) as server:
        adapter: AzureSpeech = _adapter(server)
        try:
            with pytest.raises(PlaybackFailedError, match="Unable to generate audio with Azure Speech"):
                await adapter.generate(TextChunk("Hello."))
        finally:
            await adapter.destroy()


@pytest.mark.asyncio
async def test_continuity_is_refused() -> None:
    adapter = AzureSpeech(ProviderSettings(), environ=ENV)

    with pytest.raises(PlaybackFailedError, match="context continuity"):
        await adapter.play_with_continuity(TextChunk("Hello."))


@pytest.mark.parametrize("payload", [{"voices": []}, [{"Locale": "en-US"}]])
def test_parse_voices_rejects_invalid_listing(payload: Any) -> None:
    adapter = AzureSpeech(ProviderSettings(), environ=ENV)

    with pytest.raises(ApiError):
        adapter.parse_voices(payload)
