"""Construction and replacement of adapter bundles.

A bundle is the live set of speech adapter, voice directory, playback executor and
orchestration engine for one provider. Only one bundle exists at a time: switching
providers destroys the current bundle completely before the next one is built, and
switches are serialized by a lock.
"""

from __future__ import annotations

import asyncio
import os
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final

from core.tts.engines import AzureSpeech, ElevenLabs, MockSpeech  # noqa: F401
from core.tts.audio_playback_manager import AudioPlaybackManager
from core.tts.interface import ConfigurationError, SpeechAdapter
from core.tts.orchestrator import SWITCH_CYCLE, OrchestrationCallbacks, OrchestrationEngine
from core.tts.playback_executor import PlaybackExecutor
from core.tts.voice_directory import VoiceDirectory
from models.config_models import ProviderSettings
from models.voice_models import ProviderInfo
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable, Mapping

    from config.loader import Config
    from core.tts.audio_playback_manager import PlaybackSurface
    from core.tts.state_store import SessionStore, StateStore
    from core.tts.voice_directory import VoiceSource
    from handlers.text_source import TextChunkProducer

__all__: list[str] = ["AVAILABLE_PROVIDERS", "AdapterBundle", "AdapterFactory"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

AVAILABLE_PROVIDERS: Final[tuple[tuple[str, str], ...]] = (
    ("elevenlabs", "ElevenLabs"),
    ("azure", "Azure TTS"),
    ("mock", "Mock TTS"),
)


@dataclass
class AdapterBundle:
    """The live objects of one provider.

    Attributes:
        provider (str): Provider name.
        speech_adapter (SpeechAdapter): Adapter used for generation.
        voice_directory (VoiceDirectory): Voice lists and selection.
        orchestration_engine (OrchestrationEngine): Reading state machine.
        executor (PlaybackExecutor): Executor owning the audio surface.
        voice_sources (dict[str, VoiceSource]): Voice-only adapters of the other providers.
    """

    provider: str
    speech_adapter: SpeechAdapter
    voice_directory: VoiceDirectory
    orchestration_engine: OrchestrationEngine
    executor: PlaybackExecutor
    voice_sources: dict[str, VoiceSource] = field(default_factory=dict)

    async def destroy(self) -> None:
        """Stop playback, detach every listener and release all resources."""
        self.orchestration_engine.destroy()
        await self.speech_adapter.destroy()
        await self.voice_directory.close()
        self.executor.release()
        logger.info("Bundle for '%s' destroyed", self.provider)


class AdapterFactory:
    """Builds the bundle of the active provider and replaces it on switch.

    Args:
        config (Config): Application configuration.
        store (StateStore): Shared playback store handed to every engine.
        session (SessionStore): Shared session store handed to every voice directory.
        text_source (TextChunkProducer): Source of the chunks to read.
        callbacks (OrchestrationCallbacks | None): Hooks passed to every engine.
        surface_factory (Callable[[], PlaybackSurface] | None): Creates the audio surface of a bundle.
        environ (Mapping[str, str] | None): Environment holding the provider credentials.
    """

    def __init__(
        self,
        config: Config,
        store: StateStore,
        session: SessionStore,
        text_source: TextChunkProducer,
        *,
        callbacks: OrchestrationCallbacks | None = None,
        surface_factory: Callable[[], PlaybackSurface] | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self.config: Config = config
        self.store: StateStore = store
        self.session: SessionStore = session
        self.text_source: TextChunkProducer = text_source
        self.callbacks: OrchestrationCallbacks | None = callbacks
        self.surface_factory: Callable[[], PlaybackSurface] = surface_factory or AudioPlaybackManager
        self.environ: Mapping[str, str] = os.environ if environ is None else environ
        self._bundle: AdapterBundle | None = None
        self._lock: asyncio.Lock = asyncio.Lock()

    @property
    def bundle(self) -> AdapterBundle | None:
        return self._bundle

    @property
    def current_provider(self) -> str | None:
        return self._bundle.provider if self._bundle is not None else None

    @staticmethod
    def available_providers() -> list[ProviderInfo]:
        registered: dict[str, type[SpeechAdapter]] = SpeechAdapter.get_registered()
        return [ProviderInfo(key=key, name=name, is_implemented=key in registered) for key, name in AVAILABLE_PROVIDERS]

    def create_adapter(self, provider: str) -> SpeechAdapter:
        """Instantiate the adapter registered for a provider.

        Raises:
            ConfigurationError: If the provider is unknown or its credentials are missing.
        """
        try:
            adapter_cls: type[SpeechAdapter] = SpeechAdapter.get_adapter(provider)
        except ValueError as err:
            msg: str = f"Unknown TTS provider '{provider}'"
            raise ConfigurationError(msg, provider=provider) from err
        settings: ProviderSettings = getattr(self.config, provider.upper(), None) or ProviderSettings()
        return adapter_cls(
            settings,
            max_text_length=self.config.TTS.MAX_TEXT_LENGTH,
            language=self.config.TTS.LANGUAGE,
            environ=self.environ,
        )

    def _create_voice_sources(self, active: str) -> dict[str, VoiceSource]:
        sources: dict[str, VoiceSource] = {}
        for provider in self.config.TTS.PROVIDERS:
            if provider == active or provider in sources:
                continue
            try:
                adapter: SpeechAdapter = self.create_adapter(provider)
            except ConfigurationError as err:
                logger.info("Voices of '%s' are unavailable: %s", provider, err.message)
                continue
            if adapter.is_voice_aware:
                sources[provider] = adapter
        return sources

    def _build(self, provider: str) -> AdapterBundle:
        adapter: SpeechAdapter = self.create_adapter(provider)
        voice_sources: dict[str, VoiceSource] = self._create_voice_sources(provider)
        directory = VoiceDirectory(
            adapter,
            sources=voice_sources,
            session=self.session,
            strict=self.config.GENERAL.DEBUG,
            language=self.config.TTS.LANGUAGE,
        )
        executor = PlaybackExecutor(
            self.surface_factory(),
            words_per_minute=self.config.TTS.WORDS_PER_MINUTE,
            highlight_interval=self.config.TTS.HIGHLIGHT_INTERVAL,
            language=self.config.TTS.LANGUAGE,
        )
        engine = OrchestrationEngine(
            adapter,
            executor,
            self.store,
            directory,
            self.text_source,
            config=self.config,
            callbacks=self.callbacks,
        )
        logger.info("Bundle for '%s' created", provider)
        return AdapterBundle(
            provider=provider,
            speech_adapter=adapter,
            voice_directory=directory,
            orchestration_engine=engine,
            executor=executor,
            voice_sources=voice_sources,
        )

    async def get_bundle(self) -> AdapterBundle:
        """Return the live bundle, building the configured provider's on first use."""
        if self._bundle is not None:
            return self._bundle
        return await self.switch_provider(self.config.TTS.PROVIDER)

    async def switch_provider(self, provider: str | None = None) -> AdapterBundle:
        """Replace the live bundle with one for another provider.

        Without a provider, ElevenLabs and Azure alternate.

        Raises:
            ConfigurationError: If the new adapter cannot be created. No bundle is live afterwards.
        """
        async with self._lock:
            target: str = provider or SWITCH_CYCLE.get(self.current_provider or "", "elevenlabs")
            self.session.start_switching_adapter()
            try:
                if self._bundle is not None:
                    old: AdapterBundle = self._bundle
                    self._bundle = None
                    await old.destroy()
                    self.store.set_adapter(None)
                    self.session.update(voices=(), voices_error=None)
                self._bundle = self._build(target)
            finally:
                self.session.finish_switching_adapter()
            logger.info("Active TTS provider: '%s'", target)
            return self._bundle

    async def close(self) -> None:
        async with self._lock:
            if self._bundle is not None:
                await self._bundle.destroy()
                self._bundle = None
                self.store.set_adapter(None)
