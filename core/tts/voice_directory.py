"""Voice listing and selection across providers.

The directory owns the voice lists fetched from each configured provider and the single
selected voice id. The active adapter is always a source; the factory can add voice-only
adapter instances of the other configured providers so that gender lookups can span every
provider.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Final, Protocol

from core.tts.engines.http_core import translate_error
from core.tts.interface import TTSExceptionError, VoiceLoadError, VoiceUnsupportedError
from handlers.async_comm import AsyncCommError
from models.message_models import format_error_message
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Mapping

    from core.tts.interface import SpeechAdapter
    from core.tts.state_store import SessionStore
    from models.voice_models import Gender, VoiceInfo

__all__: list[str] = ["VoiceDirectory", "VoiceSource"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

CAUSE_CODES: Final[frozenset[str]] = frozenset({"NETWORK_ERROR", "API_AUTH_ERROR"})


class VoiceSource(Protocol):
    async def fetch_voices(self) -> list[VoiceInfo]: ...

    async def destroy(self) -> None: ...


class VoiceDirectory:
    """Voice lists per provider and the selected voice.

    Args:
        adapter (SpeechAdapter): Active adapter; its provider is the default for loads.
        sources (Mapping[str, VoiceSource] | None): Additional providers for cross-provider lookups.
        session (SessionStore | None): Session store that mirrors loading and selection.
        strict (bool): Raise instead of logging where the production policy is lenient.
        language (str): Message catalog language.
        initial_voice_id (str | None): Voice selected before any list is loaded.
        auto_select (bool): Select the first voice after a load when nothing is selected.
    """

    def __init__(
        self,
        adapter: SpeechAdapter,
        *,
        sources: Mapping[str, VoiceSource] | None = None,
        session: SessionStore | None = None,
        strict: bool = False,
        language: str = "en",
        initial_voice_id: str | None = None,
        auto_select: bool = True,
    ) -> None:
        self.adapter: SpeechAdapter = adapter
        self.provider: str = adapter.provider
        self.session: SessionStore | None = session
        self.strict: bool = strict
        self.language: str = language
        self.auto_select: bool = auto_select
        self.sources: dict[str, VoiceSource] = {}
        if adapter.is_voice_aware:
            self.sources[self.provider] = adapter
        for provider, source in (sources or {}).items():
            self.sources.setdefault(provider, source)
        self._cache: dict[str, list[VoiceInfo]] = {}
        self._loaded: set[str] = set()
        self._lock: asyncio.Lock = asyncio.Lock()
        self._selected_voice_id: str | None = initial_voice_id or adapter.voice_id or None
        if self.session is not None:
            self.session.select_voice(self._selected_voice_id)

    @property
    def providers(self) -> list[str]:
        return list(self.sources)

    def is_loaded(self, provider: str) -> bool:
        return provider in self._loaded

    async def load_voices(self, provider_hint: str | None = None) -> list[VoiceInfo]:
        """Fetch the voice list of a provider and replace its cache.

        Args:
            provider_hint (str | None): Provider to load, defaults to the active one.

        Returns:
            list[VoiceInfo]: Voices in the order reported by the provider.

        Raises:
            VoiceUnsupportedError: If no voice source exists for the provider.
            VoiceLoadError: If the request fails. The code names the cause for network
                and authentication failures.
        """
        provider: str = provider_hint or self.provider
        source: VoiceSource | None = self.sources.get(provider)
        if source is None:
            msg: str = format_error_message("VOICE_UNSUPPORTED", provider=provider, language=self.language)
            raise VoiceUnsupportedError(msg, provider=provider)

        is_active: bool = provider == self.provider
        if is_active and self.session is not None:
            self.session.start_loading_voices()
        try:
            voices: list[VoiceInfo] = list(await source.fetch_voices())
        except (TTSExceptionError, AsyncCommError, OSError) as err:
            error: VoiceLoadError = self._load_error(err, provider)
            logger.error("Failed to load voices for '%s': %s", provider, error.message)
            if is_active and self.session is not None:
                self.session.fail_loading_voices(error.message)
            raise error from err

        self._cache[provider] = voices
        self._loaded.add(provider)
        logger.info("Loaded %d voices for '%s'", len(voices), provider)
        if is_active:
            if self.session is not None:
                self.session.finish_loading_voices(voices)
            if self.auto_select and self._selected_voice_id is None and voices:
                self.select_voice(voices[0].id)
        return list(voices)

    def _load_error(self, err: Exception, provider: str) -> VoiceLoadError:
        cause: TTSExceptionError = translate_error(err, provider=provider, language=self.language)
        if isinstance(cause, VoiceLoadError):
            return cause
        if cause.code in CAUSE_CODES:
            return VoiceLoadError(cause.message, code=cause.code, provider=provider, details=cause.details)
        msg: str = format_error_message(
            "VOICE_LOAD_ERROR", provider=provider, message=cause.message, language=self.language
        )
        return VoiceLoadError(msg, provider=provider, details=cause.details)

    def select_voice(self, voice_id: str) -> None:
        """Select a voice on the active adapter.

        Raises:
            VoiceUnsupportedError: If the active adapter cannot set voices.
        """
        if self.adapter.voices is None:
            msg: str = format_error_message("VOICE_UNSUPPORTED", provider=self.provider, language=self.language)
            raise VoiceUnsupportedError(msg, provider=self.provider)
        self.adapter.voices.set_voice(voice_id)
        self._selected_voice_id = voice_id
        if self.session is not None:
            self.session.select_voice(voice_id)

    def get_selected_voice_id(self) -> str | None:
        return self._selected_voice_id

    def get_cached_voices(self, provider: str | None = None) -> list[VoiceInfo]:
        return list(self._cache.get(provider or self.provider, []))

    async def get_voices_by_gender(self, gender: Gender) -> list[VoiceInfo]:
        """Voices of every configured provider with the given gender.

        All providers are loaded once; later calls are answered from the cache.

        Raises:
            VoiceLoadError: If any provider fails to load.
        """
        await self._ensure_all_loaded()
        return [voice for provider in self.sources for voice in self._cache.get(provider, []) if voice.gender == gender]

    async def get_current_voice_gender(self) -> Gender | None:
        """Gender of the selected voice, None when nothing is selected or the id is unknown.

        Raises:
            VoiceLoadError: Only in strict mode; otherwise load failures are logged.
        """
        if self._selected_voice_id is None:
            return None
        voice: VoiceInfo | None = self._find_voice(self._selected_voice_id)
        if voice is None:
            try:
                await self._ensure_all_loaded()
            except VoiceLoadError as err:
                if self.strict:
                    raise
                logger.warning("Unable to resolve the gender of '%s': %s", self._selected_voice_id, err.message)
                return None
            voice = self._find_voice(self._selected_voice_id)
        return voice.gender if voice is not None else None

    def _find_voice(self, voice_id: str) -> VoiceInfo | None:
        for voices in self._cache.values():
            for voice in voices:
                if voice.id == voice_id:
                    return voice
        return None

    async def _ensure_all_loaded(self) -> None:
        async with self._lock:
            for provider in [provider for provider in self.sources if provider not in self._loaded]:
                await self.load_voices(provider)

    def clear(self) -> None:
        """Drop every cached list and the selection."""
        self._cache.clear()
        self._loaded.clear()
        self._selected_voice_id = None
        if self.session is not None:
            self.session.update(voices=(), selected_voice=None, voices_error=None)

    async def close(self) -> None:
        """Destroy the auxiliary voice sources. The active adapter belongs to the bundle."""
        for source in self.sources.values():
            if source is not self.adapter:
                await source.destroy()
        self.sources = {self.provider: self.adapter} if self.adapter.is_voice_aware else {}
