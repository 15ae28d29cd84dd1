"""Azure Speech adapter.

Voice-aware without continuity support. Text is shaped into an SSML fragment according to
the chunk's element kind before it is sent to the gateway.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar, Final

from marshmallow.exceptions import ValidationError

from core.tts.engines.http_core import HttpSpeechAdapter
from core.tts.interface import ApiError, Capability
from models.provider_models import AzureVoice
from models.voice_models import VoiceInfo, normalize_gender
from utils.logger_utils import LoggerUtils
from utils.text_processor import SsmlTextProcessor, TextProcessor

if TYPE_CHECKING:
    import logging

    from models.voice_models import TextChunk

__all__: list[str] = ["AzureSpeech"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

SPEECH_KEY_ENV: Final[str] = "AZURE_SPEECH_KEY"
SPEECH_REGION_ENV: Final[str] = "AZURE_SPEECH_REGION"
SUBSCRIPTION_KEY_HEADER: Final[str] = "Ocp-Apim-Subscription-Key"
REGION_HEADER: Final[str] = "x-azure-region"


class AzureSpeech(HttpSpeechAdapter):
    CAPABILITIES: ClassVar[Capability] = Capability.VOICE_AWARE
    REQUIRED_ENV: ClassVar[tuple[str, ...]] = (SPEECH_KEY_ENV, SPEECH_REGION_ENV)
    TEXT_PROCESSOR: ClassVar[type[TextProcessor]] = SsmlTextProcessor

    @staticmethod
    def fetch_provider_name() -> str:
        return "azure"

    def auth_headers(self) -> dict[str, str]:
        return {
            SUBSCRIPTION_KEY_HEADER: self.credentials[SPEECH_KEY_ENV],
            REGION_HEADER: self.credentials[SPEECH_REGION_ENV],
        }

    def build_request_body(self, chunk: TextChunk, prior_tokens: tuple[str, ...]) -> dict[str, Any]:
        _ = prior_tokens
        return {
            "text": self.text_processor.format(chunk.text, chunk.element_kind),
            "voiceId": self.voice_id,
        }

    def parse_voices(self, payload: Any) -> list[VoiceInfo]:
        """Convert the Azure voice list (a JSON array) into VoiceInfo records.

        The display name combines the local name with the locale name, e.g.
        'Aria (English (United States))'.
        """
        if not isinstance(payload, list):
            msg: str = f"Unexpected voice listing from Azure: {type(payload).__name__}"
            raise ApiError(msg, provider=self.provider)
        try:
            voices: list[AzureVoice] = [AzureVoice.from_dict(entry) for entry in payload]
        except (ValidationError, KeyError, TypeError, AttributeError) as err:
            msg = f"The voice listing from Azure is invalid: {err}"
            logger.error(msg)
            raise ApiError(msg, provider=self.provider) from err

        return [
            VoiceInfo(
                id=voice.ShortName,
                name=f"{voice.LocalName or voice.ShortName} ({voice.LocaleName or voice.Locale})",
                language=voice.Locale or "unknown",
                gender=normalize_gender(voice.Gender),
                provider=self.provider,
                extra=dict(voice.unknown),
            )
            for voice in voices
        ]
