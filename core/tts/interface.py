from __future__ import annotations

import inspect
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Flag, auto
from typing import TYPE_CHECKING, Any, ClassVar, Final, Literal, Protocol

from models.message_models import DEFAULT_LANGUAGE, format_error_message, provider_display_name
from models.state_models import ErrorInfo
from models.voice_models import GenerationResult, TextChunk
from utils.logger_utils import LoggerUtils
from utils.text_processor import MAX_TEXT_LENGTH, PlainTextProcessor, TextProcessor

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable, Mapping, Sequence

    from models.config_models import ProviderSettings
    from models.voice_models import Gender, VoiceInfo


__all__: list[str] = [
    "ADAPTER_EVENTS",
    "ApiAuthError",
    "ApiError",
    "Capability",
    "ConfigurationError",
    "InvalidInputError",
    "NetworkError",
    "PlaybackFailedError",
    "SpeechAdapter",
    "TTSExceptionError",
    "TextTooLongError",
    "VoiceControl",
    "VoiceLoadError",
    "VoiceUnsupportedError",
    "is_network_error",
    "status_for_error",
]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

type AdapterEvent = Literal["wordBoundary", "end", "play", "pause", "resume", "stop", "error"]
type EventCallback = Callable[[Any], None]

ADAPTER_EVENTS: Final[frozenset[str]] = frozenset({"wordBoundary", "end", "play", "pause", "resume", "stop", "error"})

DEFAULT_TIMEOUT: Final[float] = 30.0

NETWORK_ERROR_KEYWORDS: Final[tuple[str, ...]] = ("network", "fetch", "connection", "offline", "no internet")


class TTSExceptionError(Exception):
    """Base class for TTS exceptions.

    Every subclass carries a stable ``code`` from the error taxonomy. The code may be
    overridden per instance when the failure was caused by a more specific condition,
    e.g. a voice load that failed because the network was down.

    Attributes:
        message (str): User-facing message.
        code (str): Taxonomy code.
        provider (str): Provider involved, empty when not provider specific.
        details (Any): Diagnostic payload, only exposed in debug mode.
    """

    code: str = "TTS_ERROR"

    def __init__(self, message: str = "", *, code: str | None = None, provider: str = "", details: Any = None) -> None:
        self.message: str = message or self.code
        if code is not None:
            self.code = code
        self.provider: str = provider
        self.details: Any = details
        super().__init__(self.message)

    def to_info(self, *, debug: bool = False) -> ErrorInfo:
        """Convert to the record stored in the playback state."""
        return ErrorInfo(code=self.code, message=self.message, details=self.details if debug else None)


class InvalidInputError(TTSExceptionError):
    """Text is empty, whitespace only or otherwise unusable."""

    code = "INVALID_INPUT"


class TextTooLongError(InvalidInputError):
    """Text exceeds the configured maximum length and must be chunked by the caller."""

    code = "TEXT_TOO_LONG"


class VoiceLoadError(TTSExceptionError):
    """The voice list of a provider could not be loaded."""

    code = "VOICE_LOAD_ERROR"


class VoiceUnsupportedError(TTSExceptionError):
    """The active adapter cannot list or set voices."""

    code = "VOICE_UNSUPPORTED"


class NetworkError(TTSExceptionError):
    """The provider could not be reached."""

    code = "NETWORK_ERROR"


class ApiAuthError(TTSExceptionError):
    """The provider rejected the credentials."""

    code = "API_AUTH_ERROR"


class ApiError(TTSExceptionError):
    """The provider answered with a non-success status other than 401.

    Attributes:
        status (int | None): HTTP status of the response.
    """

    code = "API_ERROR"

    def __init__(self, message: str = "", *, status: int | None = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.status: int | None = status


class PlaybackFailedError(TTSExceptionError):
    """Audio could not be generated or played."""

    code = "PLAYBACK_FAILED"


class ConfigurationError(TTSExceptionError):
    """Required provider configuration, such as credentials, is missing."""

    code = "CONFIGURATION_ERROR"


def is_network_error(text: str) -> bool:
    """Guess from an error description whether the cause was connectivity."""
    lowered: str = text.lower()
    return any(keyword in lowered for keyword in NETWORK_ERROR_KEYWORDS)


def status_for_error(message: str) -> int:
    """HTTP status a gateway reports for an error description."""
    lowered: str = message.lower()
    if "missing" in lowered or "required" in lowered:
        return 400
    if "auth" in lowered or "key" in lowered or "not configured" in lowered:
        return 401
    if "quota" in lowered or "limit" in lowered:
        return 429
    return 500


class Capability(Flag):
    """Optional adapter features, fixed per adapter class."""

    BASIC = 0
    VOICE_AWARE = auto()
    CONTINUITY_AWARE = auto()


class PlaybackController(Protocol):
    """Part of the playback executor an adapter needs for its play path."""

    async def play(self, adapter: SpeechAdapter, source: Any, success_value: Any, **kwargs: Any) -> Any: ...

    def pause(self) -> bool: ...

    def resume(self) -> bool: ...

    def stop(self) -> None: ...


@dataclass
class _AdapterConfig:
    """Connection settings of one provider.

    Attributes:
        server (str): Gateway base URL without trailing slash.
        timeout (float): Total request timeout in seconds.
        voice_id (str): Voice used until another one is selected.
        model_id (str): Synthesis model, empty for the provider default.
    """

    server: str = ""
    timeout: float = DEFAULT_TIMEOUT
    voice_id: str = ""
    model_id: str = ""

    @classmethod
    def from_settings(cls, settings: ProviderSettings) -> _AdapterConfig:
        """Create the adapter configuration from an INI provider section."""
        server: str = str(getattr(settings, "SERVER", "") or "").strip().rstrip("/")
        if server and not server.startswith(("http://", "https://")):
            msg: str = f"Invalid server URL '{server}'. Expected an http or https URL."
            raise ConfigurationError(msg)
        return cls(
            server=server,
            timeout=cls._parse_timeout(getattr(settings, "TIMEOUT", DEFAULT_TIMEOUT)),
            voice_id=str(getattr(settings, "VOICE_ID", "") or ""),
            model_id=str(getattr(settings, "MODEL_ID", "") or ""),
        )

    @staticmethod
    def _parse_timeout(timeout_value: float) -> float:
        try:
            timeout: float = float(timeout_value)
            if timeout <= 0:
                error_message = "Timeout must be a positive number."
                raise ValueError(error_message)
        except (TypeError, ValueError):
            logger.warning("Invalid timeout setting; using default value %s", DEFAULT_TIMEOUT)
            return DEFAULT_TIMEOUT
        else:
            return timeout


class VoiceControl:
    """Voice introspection of a voice-aware adapter.

    The voice list is fetched once and reused until ``get_voices(refresh=True)``.
    """

    def __init__(self, adapter: SpeechAdapter) -> None:
        self._adapter: SpeechAdapter = adapter
        self._voices: list[VoiceInfo] | None = None

    async def get_voices(self, *, refresh: bool = False) -> list[VoiceInfo]:
        if self._voices is None or refresh:
            self._voices = await self._adapter.fetch_voices()
        return list(self._voices)

    def set_voice(self, voice_id: str) -> None:
        if not voice_id:
            msg = "Voice id must not be empty"
            raise InvalidInputError(msg, provider=self._adapter.provider)
        logger.info("'%s' voice set to '%s'", self._adapter.provider, voice_id)
        self._adapter.voice_id = voice_id

    def get_current_voice(self) -> str | None:
        return self._adapter.voice_id or None

    async def get_voices_by_gender(self, gender: Gender) -> list[VoiceInfo]:
        return [voice for voice in await self.get_voices() if voice.gender == gender]


class SpeechAdapter(ABC):
    """Base class for speech adapters.

    One subclass per provider. Subclasses register themselves under the name returned by
    ``fetch_provider_name`` and declare their optional features in ``CAPABILITIES``. The
    capability set decides at construction time whether ``voices`` is available and whether
    ``play_with_continuity`` may be used.

    Attributes:
        _registered_adapters (dict[str, type[SpeechAdapter]]): Registered adapter classes.
        CAPABILITIES (Capability): Optional features of the adapter class.
        REQUIRED_ENV (tuple[str, ...]): Environment variables holding the provider credentials.
        TEXT_PROCESSOR (type[TextProcessor]): Formatter applied before text is sent.
    """

    _registered_adapters: ClassVar[dict[str, type[SpeechAdapter]]] = {}
    CAPABILITIES: ClassVar[Capability] = Capability.BASIC
    REQUIRED_ENV: ClassVar[tuple[str, ...]] = ()
    TEXT_PROCESSOR: ClassVar[type[TextProcessor]] = PlainTextProcessor

    def __init__(
        self,
        settings: ProviderSettings,
        *,
        max_text_length: int = MAX_TEXT_LENGTH,
        language: str = DEFAULT_LANGUAGE,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        """Validate credentials and settings.

        Args:
            settings (ProviderSettings): INI section of the provider.
            max_text_length (int): Longest text accepted per request.
            language (str): Message catalog language.
            environ (Mapping[str, str] | None): Environment to read credentials from. Defaults to os.environ.

        Raises:
            ConfigurationError: If credentials are missing or the server URL is invalid.
        """
        self.provider: str = self.fetch_provider_name()
        self.language: str = language
        self.max_text_length: int = max_text_length
        self.credentials: dict[str, str] = self._read_credentials(os.environ if environ is None else environ)
        self.config: _AdapterConfig = _AdapterConfig.from_settings(settings)
        self.voice_id: str = self.config.voice_id
        self.text_processor: TextProcessor = self.TEXT_PROCESSOR()
        self.voices: VoiceControl | None = VoiceControl(self) if self.is_voice_aware else None
        self.last_result: GenerationResult | None = None
        self._listeners: dict[str, list[EventCallback]] = {}
        self._executor: PlaybackController | None = None
        self._destroyed: bool = False
        logger.debug("%s created with capabilities %s", self.__class__.__name__, self.CAPABILITIES)

    @classmethod
    def get_registered(cls) -> dict[str, type[SpeechAdapter]]:
        return cls._registered_adapters

    @classmethod
    def register_adapter(cls, adapter_cls: type[SpeechAdapter]) -> None:
        """Register a concrete adapter class under its provider name."""
        if not issubclass(adapter_cls, cls):
            msg = "Must be a subclass of SpeechAdapter"
            raise TypeError(msg)
        name: str = adapter_cls.fetch_provider_name()
        if not name or inspect.isabstract(adapter_cls):
            return
        cls._registered_adapters[name] = adapter_cls
        logger.debug("Registered adapter: %s", name)

    @classmethod
    def get_adapter(cls, name: str) -> type[SpeechAdapter]:
        try:
            return cls._registered_adapters[name]
        except KeyError:
            msg: str = f"No such adapter registered: {name}"
            raise ValueError(msg) from None

    def __init_subclass__(cls, **kwargs) -> None:
        super().__init_subclass__(**kwargs)
        SpeechAdapter.register_adapter(cls)

    @staticmethod
    @abstractmethod
    def fetch_provider_name() -> str:
        """Registry name of the provider, e.g. 'elevenlabs'."""
        raise NotImplementedError

    @property
    def display_name(self) -> str:
        return provider_display_name(self.provider)

    @property
    def capabilities(self) -> Capability:
        return self.CAPABILITIES

    @property
    def is_voice_aware(self) -> bool:
        return Capability.VOICE_AWARE in self.CAPABILITIES

    @property
    def is_continuity_aware(self) -> bool:
        return Capability.CONTINUITY_AWARE in self.CAPABILITIES

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    def _read_credentials(self, environ: Mapping[str, str]) -> dict[str, str]:
        missing: list[str] = [key for key in self.REQUIRED_ENV if not environ.get(key)]
        if missing:
            msg: str = (
                f"{self.display_name} API not configured. "
                f"Please set {', '.join(missing)} in your environment variables"
            )
            raise ConfigurationError(msg, provider=self.provider, details={"missing": missing})
        return {key: environ[key] for key in self.REQUIRED_ENV}

    def on(self, event: AdapterEvent, callback: EventCallback) -> None:
        if event not in ADAPTER_EVENTS:
            msg: str = f"Unknown adapter event '{event}'"
            raise ValueError(msg)
        if self._destroyed:
            logger.debug("Ignoring listener registration on destroyed adapter '%s'", self.provider)
            return
        self._listeners.setdefault(event, []).append(callback)

    def off(self, event: AdapterEvent, callback: EventCallback | None = None) -> None:
        """Remove one listener, or every listener of the event when callback is None."""
        if callback is None:
            self._listeners.pop(event, None)
            return
        callbacks: list[EventCallback] = self._listeners.get(event, [])
        if callback in callbacks:
            callbacks.remove(callback)

    def emit(self, event: AdapterEvent, payload: Any = None) -> None:
        if self._destroyed:
            return
        for callback in list(self._listeners.get(event, [])):
            try:
                callback(payload)
            except Exception as err:  # noqa: BLE001
                logger.error("Listener for '%s' on '%s' raised: %s", event, self.provider, err)

    def clear_listeners(self) -> None:
        self._listeners.clear()

    def listener_count(self, event: AdapterEvent) -> int:
        return len(self._listeners.get(event, []))

    def validate_text(self, text: str) -> None:
        """Reject text that must not be sent to a provider.

        Raises:
            InvalidInputError: If the text is empty or whitespace only.
            TextTooLongError: If the text exceeds ``max_text_length``.
        """
        match TextProcessor.validate(text, self.max_text_length):
            case "empty":
                msg = "Text cannot be empty"
                raise InvalidInputError(msg, provider=self.provider)
            case "too_long":
                msg = f"Text exceeds maximum length of {self.max_text_length} characters"
                raise TextTooLongError(msg, provider=self.provider, details={"length": len(text)})
            case _:
                pass

    async def generate(self, chunk: TextChunk) -> GenerationResult:
        """Generate audio for one chunk without continuity tokens."""
        self.validate_text(chunk.text)
        self.last_result = await self._synthesize(chunk, ())
        return self.last_result

    async def play_with_continuity(self, chunk: TextChunk, prior_tokens: Sequence[str] = ()) -> GenerationResult:
        """Generate audio for one chunk, referencing earlier generations of the passage.

        Raises:
            PlaybackFailedError: If the adapter has no continuity support.
        """
        if not self.is_continuity_aware:
            msg: str = f"{self.display_name} does not support context continuity"
            raise PlaybackFailedError(msg, provider=self.provider)
        self.validate_text(chunk.text)
        self.last_result = await self._synthesize(chunk, tuple(prior_tokens))
        return self.last_result

    @abstractmethod
    async def _synthesize(self, chunk: TextChunk, prior_tokens: tuple[str, ...]) -> GenerationResult:
        """Provider specific generation. Text has already been validated.

        Raises:
            TTSExceptionError: Any failure, translated into the error taxonomy.
        """
        raise NotImplementedError

    async def fetch_voices(self) -> list[VoiceInfo]:
        """Fetch the provider's voice list. Voice-aware adapters override this.

        Raises:
            VoiceUnsupportedError: If the adapter is not voice-aware.
        """
        msg: str = format_error_message("VOICE_UNSUPPORTED", provider=self.provider, language=self.language)
        raise VoiceUnsupportedError(msg, provider=self.provider)

    def attach_executor(self, executor: PlaybackController) -> None:
        self._executor = executor

    @property
    def executor(self) -> PlaybackController:
        if self._executor is None:
            msg = "No playback executor is attached to the adapter"
            raise PlaybackFailedError(msg, provider=self.provider)
        return self._executor

    async def play(self, chunk: TextChunk) -> bytes | None:
        """Generate audio for a chunk and play it to the end.

        Returns:
            bytes | None: The audio that was played, or None when playback was stopped.
        """
        result: GenerationResult = await self.generate(chunk)
        return await self.executor.play(self, result.audio_bytes, result.audio_bytes, chunks=[chunk])

    def pause(self) -> bool:
        return self.executor.pause()

    def resume(self) -> bool:
        return self.executor.resume()

    def stop(self) -> None:
        if self._executor is not None:
            self._executor.stop()

    def cleanup(self) -> None:
        """Release per-playback state held by the adapter."""
        self.last_result = None

    async def close(self) -> None:
        """Release network resources (override if necessary)."""
        logger.info("%s closed", self.__class__.__name__)

    async def destroy(self) -> None:
        """Stop playback, drop all listeners and release resources. Idempotent."""
        if self._destroyed:
            return
        self.stop()
        self.cleanup()
        self.clear_listeners()
        self._destroyed = True
        self._executor = None
        await self.close()
        logger.info("%s destroyed", self.__class__.__name__)

