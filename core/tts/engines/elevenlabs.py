"""ElevenLabs speech adapter.

Voice-aware and continuity-aware: the gateway returns the vendor request id in the
``x-request-id`` header, and later requests of the same passage list the earlier ids in
``previousRequestIds`` so that prosody carries over chunk boundaries.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar, Final

from marshmallow.exceptions import ValidationError

from core.tts.engines.http_core import REQUEST_ID_HEADER, HttpSpeechAdapter
from core.tts.interface import ApiError, Capability
from models.provider_models import ElevenLabsVoice, ElevenLabsVoiceList
from models.voice_models import VoiceInfo, normalize_gender
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from handlers.async_comm import HttpResponse
    from models.voice_models import TextChunk

__all__: list[str] = ["ElevenLabs"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

API_KEY_ENV: Final[str] = "ELEVENLABS_API_KEY"
API_KEY_HEADER: Final[str] = "xi-api-key"


class ElevenLabs(HttpSpeechAdapter):
    """ElevenLabs adapter. Text is sent whitespace-normalized, without markup."""

    CAPABILITIES: ClassVar[Capability] = Capability.VOICE_AWARE | Capability.CONTINUITY_AWARE
    REQUIRED_ENV: ClassVar[tuple[str, ...]] = (API_KEY_ENV,)

    @staticmethod
    def fetch_provider_name() -> str:
        return "elevenlabs"

    def auth_headers(self) -> dict[str, str]:
        return {API_KEY_HEADER: self.credentials[API_KEY_ENV]}

    def build_request_body(self, chunk: TextChunk, prior_tokens: tuple[str, ...]) -> dict[str, Any]:
        body: dict[str, Any] = {
            "text": self.text_processor.format(chunk.text, chunk.element_kind),
            "voiceId": self.voice_id,
        }
        if self.config.model_id:
            body["modelId"] = self.config.model_id
        if prior_tokens:
            body["previousRequestIds"] = list(prior_tokens)
        return body

    def extract_continuity_token(self, response: HttpResponse) -> str | None:
        return response.headers.get(REQUEST_ID_HEADER) or None

    def parse_voices(self, payload: Any) -> list[VoiceInfo]:
        """Convert ``{voices: [{voiceId, name, labels}]}`` into VoiceInfo records.

        Entries using the vendor's snake case ``voice_id`` are accepted as well.
        """
        if isinstance(payload, list):
            payload = {"voices": payload}
        if not isinstance(payload, dict):
            msg: str = f"Unexpected voice listing from ElevenLabs: {type(payload).__name__}"
            raise ApiError(msg, provider=self.provider)
        try:
            entries: list[dict[str, Any]] = [self._normalize_entry(entry) for entry in payload.get("voices") or []]
            listing: ElevenLabsVoiceList = ElevenLabsVoiceList.from_dict({**payload, "voices": entries})
        except (ValidationError, KeyError, TypeError, AttributeError) as err:
            msg = f"The voice listing from ElevenLabs is invalid: {err}"
            logger.error(msg)
            raise ApiError(msg, provider=self.provider) from err
        return [self._to_voice_info(voice) for voice in listing.voices]

    @staticmethod
    def _normalize_entry(entry: dict[str, Any]) -> dict[str, Any]:
        normalized: dict[str, Any] = dict(entry)
        if "voiceId" not in normalized and "voice_id" in normalized:
            normalized["voiceId"] = normalized.pop("voice_id")
        if normalized.get("labels") is None:
            normalized["labels"] = {}
        return normalized

    def _to_voice_info(self, voice: ElevenLabsVoice) -> VoiceInfo:
        labels: dict[str, str] = dict(voice.labels)
        return VoiceInfo(
            id=voice.voiceId,
            name=voice.name or voice.voiceId,
            language=labels.get("language") or "unknown",
            gender=normalize_gender(labels.get("gender")),
            provider=self.provider,
            extra={**voice.unknown, "labels": labels},
        )
