"""Base class for speech adapters backed by an HTTP gateway.

Every gateway exposes the same two endpoints:

- ``GET {SERVER}/voices`` returns the provider's voice listing.
- ``POST {SERVER}`` with ``{text, voiceId, modelId?, previousRequestIds?}`` returns audio.

Subclasses supply the credential headers, the request body and the conversion of the voice
listing into `VoiceInfo` records. Transport and status failures are translated into the TTS
error taxonomy here, so adapters and callers never see aiohttp or `AsyncCommError` types.
"""

from __future__ import annotations

import json
from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Final, Literal, TypeVar, overload

from marshmallow.exceptions import ValidationError

from core.tts.interface import (
    ApiAuthError,
    ApiError,
    NetworkError,
    PlaybackFailedError,
    SpeechAdapter,
    TTSExceptionError,
    is_network_error,
)
from handlers.async_comm import (
    AsyncCommConnectionError,
    AsyncCommError,
    AsyncCommTimeoutError,
    AsyncHttp,
    HttpResponse,
)
from models.message_models import format_error_message
from models.provider_models import GatewayError
from models.voice_models import GenerationResult
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from dataclasses_json import DataClassJsonMixin

    from models.voice_models import TextChunk, VoiceInfo


__all__: list[str] = ["HttpSpeechAdapter", "translate_error"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

REQUEST_ID_HEADER: Final[str] = "x-request-id"
PROVIDER_HEADER: Final[str] = "x-provider"
AUDIO_CONTENT_TYPES: Final[tuple[str, ...]] = ("audio/mpeg", "audio/wav", "audio/x-wav", "application/octet-stream")

T = TypeVar("T", bound="DataClassJsonMixin")


def _gateway_message(body: Any) -> str:
    """Extract the ``error`` text of a gateway error body."""
    if isinstance(body, dict):
        try:
            return GatewayError.from_dict(body, infer_missing=True).error
        except (ValidationError, TypeError, KeyError):
            return ""
    if isinstance(body, str):
        return body
    return ""


def translate_error(err: Exception, *, provider: str, language: str) -> TTSExceptionError:
    """Map an exception raised while talking to a gateway onto the TTS error taxonomy.

    Args:
        err (Exception): The original exception.
        provider (str): Provider name used in messages.
        language (str): Message catalog language.

    Returns:
        TTSExceptionError: ``err`` itself when it already belongs to the taxonomy.
    """
    if isinstance(err, TTSExceptionError):
        return err

    details: dict[str, Any] = {"cause": str(err)}
    if isinstance(err, (AsyncCommTimeoutError, AsyncCommConnectionError)) or (
        not isinstance(err, AsyncCommError) and is_network_error(str(err))
    ):
        msg: str = format_error_message("NETWORK_ERROR", provider=provider, language=language)
        return NetworkError(msg, provider=provider, details=details)

    if isinstance(err, AsyncCommError) and err.status is not None:
        gateway_message: str = _gateway_message(err.body)
        details["status"] = err.status
        if isinstance(err.body, dict) and err.body.get("details") is not None:
            details["body"] = err.body["details"]
        if err.status == 401:
            msg = format_error_message("API_AUTH_ERROR", provider=provider, message=gateway_message, language=language)
            return ApiAuthError(msg, provider=provider, details=details)
        msg = format_error_message(
            "API_ERROR", provider=provider, message=gateway_message or str(err), language=language
        )
        return ApiError(msg, status=err.status, provider=provider, details=details)

    msg = format_error_message("PLAYBACK_FAILED", provider=provider, message=str(err), language=language)
    return PlaybackFailedError(msg, provider=provider, details=details)


class HttpSpeechAdapter(SpeechAdapter):
    """Speech adapter talking to one provider gateway.

    Attributes:
        async_http (AsyncHttp): Client bound to this adapter, closed on destroy.
    """

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.async_http = AsyncHttp(headers=self.auth_headers())
        for content_type in AUDIO_CONTENT_TYPES:
            self.async_http.add_handler(content_type, lambda raw: raw)

    @staticmethod
    def fetch_provider_name() -> str:
        return ""

    @property
    def server(self) -> str:
        return self.config.server

    @abstractmethod
    def auth_headers(self) -> dict[str, str]:
        """Credential headers sent with every request."""
        raise NotImplementedError

    @abstractmethod
    def build_request_body(self, chunk: TextChunk, prior_tokens: tuple[str, ...]) -> dict[str, Any]:
        """JSON body of the generation request."""
        raise NotImplementedError

    @abstractmethod
    def parse_voices(self, payload: Any) -> list[VoiceInfo]:
        """Convert the voice listing payload into VoiceInfo records."""
        raise NotImplementedError

    def extract_continuity_token(self, response: HttpResponse) -> str | None:
        _ = response
        return None

    async def fetch_voices(self) -> list[VoiceInfo]:
        payload: Any = await self._api_request("GET", f"{self.server}/voices", log_action="GET voices")
        voices: list[VoiceInfo] = self.parse_voices(payload)
        logger.info("'%s': %d voices available", self.provider, len(voices))
        return voices

    async def _synthesize(self, chunk: TextChunk, prior_tokens: tuple[str, ...]) -> GenerationResult:
        response: HttpResponse = await self._api_request(
            "POST",
            self.server,
            data=self.build_request_body(chunk, prior_tokens),
            log_action="POST speech",
            raw_response=True,
        )
        audio: Any = response.data
        if not audio or not isinstance(audio, bytes):
            msg: str = format_error_message(
                "PLAYBACK_FAILED", provider=self.provider, message="No audio data received", language=self.language
            )
            raise PlaybackFailedError(msg, provider=self.provider)
        token: str | None = self.extract_continuity_token(response)
        logger.debug(
            "'%s': received %d bytes (provider=%s, token=%s)",
            self.provider,
            len(audio),
            response.headers.get(PROVIDER_HEADER, self.provider),
            token,
        )
        return GenerationResult(audio_bytes=audio, continuity_token=token)

    @overload
    async def _api_request(
        self,
        method: Literal["GET", "POST"],
        url: str,
        *,
        data: Any = ...,
        log_action: str = ...,
        raw_response: Literal[True],
    ) -> HttpResponse: ...

    @overload
    async def _api_request(
        self,
        method: Literal["GET", "POST"],
        url: str,
        *,
        data: Any = ...,
        log_action: str = ...,
        raw_response: Literal[False] = False,
    ) -> Any: ...

    async def _api_request(
        self,
        method: Literal["GET", "POST"],
        url: str,
        *,
        data: Any = None,
        log_action: str = "",
        raw_response: bool = False,
    ) -> Any:
        """Make a request to the gateway.

        Args:
            method (Literal["GET", "POST"]): HTTP method.
            url (str): Request URL.
            data (Any): JSON body for POST requests.
            log_action (str): Action name for logging purposes.
            raw_response (bool): Return the whole HttpResponse instead of the decoded body.

        Returns:
            Any: Decoded body, or the HttpResponse when ``raw_response`` is set.

        Raises:
            TTSExceptionError: Any failure, translated by `translate_error`.
        """
        logger.info("'%s': '%s'", log_action or method, url)
        try:
            kwargs: dict[str, Any] = {"json": data} if data is not None else {}
            response: HttpResponse = await self.async_http.request(
                method, url=url, total_timeout=self.config.timeout, **kwargs
            )
        except (AsyncCommError, OSError) as err:
            translated: TTSExceptionError = translate_error(err, provider=self.provider, language=self.language)
            logger.error("'%s': %s failed: %s", self.provider, log_action or method, translated.message)
            raise translated from err
        except json.JSONDecodeError as err:
            msg: str = f"The response data from the API is invalid: {err}"
            logger.error(msg)
            raise PlaybackFailedError(msg, provider=self.provider) from err
        return response if raw_response else response.data

    async def close(self) -> None:
        await self.async_http.close()
        logger.info("%s process termination", self.__class__.__name__)
