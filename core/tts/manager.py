from __future__ import annotations

from typing import TYPE_CHECKING

from core.tts.adapter_factory import AdapterFactory
from core.tts.interface import ConfigurationError
from core.tts.orchestrator import OrchestrationCallbacks
from core.tts.state_store import SessionStore, StateStore
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable, Mapping

    from config.loader import Config
    from core.tts.adapter_factory import AdapterBundle
    from core.tts.audio_playback_manager import PlaybackSurface
    from core.tts.state_store import Unsubscribe
    from handlers.text_source import TextChunkProducer
    from models.state_models import ErrorInfo, PlaybackState, SessionState
    from models.voice_models import Gender, ProviderInfo, VoiceInfo


__all__: list[str] = ["TTSManager"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class TTSManager:
    """TTSManager is the surface the reader UI talks to.

    It owns the playback and session stores and the adapter factory, and forwards
    commands to the live adapter bundle. The bundle itself is replaced on provider switch.
    """

    def __init__(
        self,
        config: Config,
        text_source: TextChunkProducer,
        *,
        surface_factory: Callable[[], PlaybackSurface] | None = None,
        environ: Mapping[str, str] | None = None,
        on_error: Callable[[ErrorInfo], None] | None = None,
    ) -> None:
        """Initialize the TTSManager with the given configuration.

        Args:
            config (Config): The configuration object containing TTS settings.
            text_source (TextChunkProducer): The source of the text to read.
            surface_factory (Callable[[], PlaybackSurface] | None): Creates audio outputs, PyAudio by default.
            environ (Mapping[str, str] | None): Environment holding provider credentials.
            on_error (Callable[[ErrorInfo], None] | None): Called with the error of a failed reading run.
        """
        logger.debug("Initializing TTSManager with config")
        self.config: Config = config
        self.debug: bool = config.GENERAL.DEBUG

        # Stores are shared by every bundle the factory builds, so UI subscriptions
        # survive provider switches.
        self.store: StateStore = StateStore(strict=self.debug)
        self.session: SessionStore = SessionStore(strict=self.debug)
        callbacks = OrchestrationCallbacks(on_error=on_error, on_adapter_switch=self.select_provider)
        self.factory: AdapterFactory = AdapterFactory(
            config,
            self.store,
            self.session,
            text_source,
            callbacks=callbacks,
            surface_factory=surface_factory,
            environ=environ,
        )

    @property
    def bundle(self) -> AdapterBundle | None:
        return self.factory.bundle

    @property
    def provider(self) -> str | None:
        return self.factory.current_provider

    async def initialize(self) -> bool:
        """Build the bundle of the configured provider.

        A configuration problem is recorded on the store rather than raised.

        Returns:
            bool: True when a bundle is live.
        """
        logger.info("TTSManager initialization started")
        if self.factory.bundle is not None:
            logger.warning("TTSManager is already initialized")
            return True
        return await self.select_provider(self.config.TTS.PROVIDER)

    async def close(self) -> None:
        """Stop reading and destroy the live bundle."""
        logger.info("Closing TTSManager")
        await self.factory.close()
        logger.info("TTSManager closed successfully")

    def subscribe(self, listener: Callable[[PlaybackState], None]) -> Unsubscribe:
        return self.store.subscribe(listener)

    def subscribe_session(self, listener: Callable[[SessionState], None]) -> Unsubscribe:
        return self.session.subscribe(listener)

    def get_state(self) -> PlaybackState:
        return self.store.get_state()

    def get_session(self) -> SessionState:
        return self.session.get_state()

    async def start_reading(self) -> None:
        if self.factory.bundle is None and not await self.initialize():
            return
        if (bundle := self.factory.bundle) is not None:
            await bundle.orchestration_engine.start_reading()

    def pause_reading(self) -> bool:
        if (bundle := self.factory.bundle) is None:
            return False
        return bundle.orchestration_engine.pause()

    def resume_reading(self) -> bool:
        if (bundle := self.factory.bundle) is None:
            return False
        return bundle.orchestration_engine.resume()

    def stop_reading(self) -> None:
        if (bundle := self.factory.bundle) is not None:
            bundle.orchestration_engine.stop()

    async def list_voices(self, provider: str | None = None, *, refresh: bool = False) -> list[VoiceInfo]:
        """Voices of a provider, the active one by default.

        Raises:
            VoiceLoadError: If the voice list cannot be fetched.
            VoiceUnsupportedError: If the provider offers no voice list.
        """
        bundle: AdapterBundle = await self.factory.get_bundle()
        directory = bundle.voice_directory
        target: str = provider or bundle.provider
        if directory.is_loaded(target) and not refresh:
            return directory.get_cached_voices(target)
        return await directory.load_voices(target)

    async def select_voice(self, voice_id: str) -> None:
        bundle: AdapterBundle = await self.factory.get_bundle()
        bundle.voice_directory.select_voice(voice_id)

    def get_selected_voice_id(self) -> str | None:
        if (bundle := self.factory.bundle) is None:
            return None
        return bundle.voice_directory.get_selected_voice_id()

    async def select_provider(self, provider: str | None = None) -> bool:
        """Switch to another provider, rebuilding the bundle.

        Without a provider, ElevenLabs and Azure alternate. A configuration problem
        leaves no bundle live and is recorded on the store.

        Returns:
            bool: True when the new bundle is live.
        """
        try:
            await self.factory.switch_provider(provider)
        except ConfigurationError as err:
            logger.error("Unable to switch TTS provider: %s", err.message)
            self.store.set_error(err.to_info(debug=self.debug))
            return False
        return True

    @staticmethod
    def available_providers() -> list[ProviderInfo]:
        return AdapterFactory.available_providers()

    def set_enabled(self, *, enabled: bool) -> None:
        if (bundle := self.factory.bundle) is not None:
            bundle.orchestration_engine.set_enabled(enabled=enabled)
        else:
            self.store.set_enabled(enabled=enabled)

    def toggle_enabled(self) -> bool:
        """Flip enablement and return the new value."""
        self.set_enabled(enabled=not self.store.get_state().is_enabled)
        return self.store.get_state().is_enabled

    async def get_voices_by_gender(self, gender: Gender) -> list[VoiceInfo]:
        bundle: AdapterBundle = await self.factory.get_bundle()
        return await bundle.voice_directory.get_voices_by_gender(gender)

    async def get_current_voice_gender(self) -> Gender | None:
        bundle: AdapterBundle = await self.factory.get_bundle()
        return await bundle.voice_directory.get_current_voice_gender()
