"""Unit tests for core.tts.engines.http_core module."""

from __future__ import annotations

import pytest

from core.tts.engines.http_core import translate_error
from core.tts.interface import (
    ApiAuthError,
    ApiError,
    InvalidInputError,
    NetworkError,
    PlaybackFailedError,
    TTSExceptionError,
)
from handlers.async_comm import AsyncCommConnectionError, AsyncCommError, AsyncCommTimeoutError


def test_taxonomy_errors_pass_through() -> None:
    err = InvalidInputError("Text cannot be empty")

    assert translate_error(err, provider="azure", language="en") is err


@pytest.mark.parametrize(
    "err",
    [
        AsyncCommTimeoutError("timeout"),
        AsyncCommConnectionError("refused"),
        OSError("Network is unreachable"),
        RuntimeError("Failed to fetch"),
    ],
)
def test_connectivity_failures_become_network_errors(err: Exception) -> None:
    translated: TTSExceptionError = translate_error(err, provider="azure", language="en")

    assert isinstance(translated, NetworkError)
    assert translated.message.startswith("No internet connection available for Azure Speech.")
    assert translated.details == {"cause": str(err)}


def test_network_message_is_localized() -> None:
    translated: TTSExceptionError = translate_error(AsyncCommTimeoutError("t"), provider="azure", language="nl")

    assert translated.message.startswith("Geen internetverbinding")


def test_unauthorized_status() -> None:
    err = AsyncCommError("Error response", status=401, body={"error": "Invalid API key"})

    translated: TTSExceptionError = translate_error(err, provider="elevenlabs", language="en")

    assert isinstance(translated, ApiAuthError)
    assert translated.details["status"] == 401


def test_other_status_keeps_gateway_message() -> None:
    err = AsyncCommError("Error response", status=500, body={"error": "Azure synthesis failed", "details": "x"})

    translated: TTSExceptionError = translate_error(err, provider="azure", language="en")

    assert isinstance(translated, ApiError)
    assert translated.status == 500
    assert translated.message == "Azure Speech API error: Azure synthesis failed"
    assert translated.details == {"cause": str(err), "status": 500, "body": "x"}


def test_status_with_text_body() -> None:
    err = AsyncCommError("Error response", status=502, body="Bad gateway")

    translated: TTSExceptionError = translate_error(err, provider="azure", language="en")

    assert translated.message == "Azure Speech API error: Bad gateway"


def test_anything_else_is_a_playback_failure() -> None:
    translated: TTSExceptionError = translate_error(ValueError("bad audio"), provider="mock", language="en")

    assert isinstance(translated, PlaybackFailedError)
    assert translated.message.startswith("Unable to generate audio with Mock TTS.")
