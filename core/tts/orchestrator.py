"""Orchestration engine: the reading state machine.

States are derived from the playback store::

    IDLE -> GENERATING -> PLAYING <-> PAUSED -> IDLE

`start_reading` pulls chunks from the text source, generates the passage audio with the
continuity protocol and plays it through the executor. Every run carries a run id; `stop`,
a new run or `destroy` invalidate it, and any state change attempted under an outdated id is
discarded. Errors never escape to the caller: they are recorded on the store and reported
through the ``on_error`` callback.
"""

from __future__ import annotations

import asyncio
import inspect
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Final, cast

from core.tts.continuity import generate_passage, join_audio
from core.tts.engines.mock import generate_tone
from core.tts.interface import PlaybackFailedError, TTSExceptionError
from handlers.text_source import PageNavigator
from models.message_models import format_error_message
from models.state_models import EngineState, ErrorInfo
from models.voice_models import PassageAudio
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Awaitable, Callable

    from config.loader import Config
    from core.tts.interface import SpeechAdapter
    from core.tts.playback_executor import PlaybackExecutor
    from core.tts.state_store import StateStore, Unsubscribe
    from core.tts.voice_directory import VoiceDirectory
    from handlers.text_source import TextChunkProducer
    from models.state_models import PlaybackState
    from models.voice_models import TextChunk

__all__: list[str] = ["OrchestrationCallbacks", "OrchestrationEngine"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

PAGE_SETTLE_DELAY: Final[float] = 1.0
PAGE_READY_INTERVAL: Final[float] = 0.2
PAGE_READY_ATTEMPTS: Final[int] = 10

SWITCH_CYCLE: Final[dict[str, str]] = {"elevenlabs": "azure", "azure": "elevenlabs"}


@dataclass
class OrchestrationCallbacks:
    """Optional hooks for the host application.

    Attributes:
        on_state_change: Called with every new playback state.
        on_error: Called with the error record of a failed run.
        on_adapter_switch: Called with the provider a switch was requested for. May be async.
    """

    on_state_change: Callable[[PlaybackState], None] | None = None
    on_error: Callable[[ErrorInfo], None] | None = None
    on_adapter_switch: Callable[[str], Awaitable[Any] | None] | None = None


class OrchestrationEngine:
    """Reading state machine for one adapter bundle.

    Args:
        adapter (SpeechAdapter): Active speech adapter.
        executor (PlaybackExecutor): Executor that owns the audio surface.
        store (StateStore): Shared playback store.
        voice_directory (VoiceDirectory): Directory holding the selected voice.
        text_source (TextChunkProducer): Source of the chunks to read.
        config (Config): Application configuration.
        callbacks (OrchestrationCallbacks | None): Host hooks.
    """

    def __init__(
        self,
        adapter: SpeechAdapter,
        executor: PlaybackExecutor,
        store: StateStore,
        voice_directory: VoiceDirectory,
        text_source: TextChunkProducer,
        *,
        config: Config,
        callbacks: OrchestrationCallbacks | None = None,
    ) -> None:
        self.adapter: SpeechAdapter = adapter
        self.executor: PlaybackExecutor = executor
        self.store: StateStore = store
        self.voice_directory: VoiceDirectory = voice_directory
        self.text_source: TextChunkProducer = text_source
        self.callbacks: OrchestrationCallbacks = callbacks or OrchestrationCallbacks()
        self.debug: bool = config.GENERAL.DEBUG
        self.language: str = config.TTS.LANGUAGE
        self.chunk_limit: int = 0 if config.TTS.WHOLE_PAGE_READING else config.TTS.CHUNK_LIMIT
        self.use_mock_audio: bool = config.TTS.MOCK_TTS
        self.continue_to_next_page: bool = config.TTS.CONTINUE_TO_NEXT_PAGE
        self._run_id: int = 0
        self._task: asyncio.Task[None] | None = None
        self._destroyed: bool = False

        self.adapter.attach_executor(self.executor)
        self.store.set_adapter(self.adapter.provider)
        self._unsubscribe: Unsubscribe = self.store.subscribe(self._on_store_change)

    @property
    def state(self) -> EngineState:
        return self.store.get_state().engine_state

    @property
    def provider(self) -> str:
        return self.adapter.provider

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    def _on_store_change(self, state: PlaybackState) -> None:
        if self.callbacks.on_state_change is not None:
            self.callbacks.on_state_change(state)

    def _is_current(self, run_id: int) -> bool:
        return not self._destroyed and run_id == self._run_id

    def _commit(self, run_id: int, mutate: Callable[[], object]) -> bool:
        """Apply a store mutation only while the run is still current."""
        if not self._is_current(run_id):
            logger.debug("Discarding state change of stale run %d (current %d)", run_id, self._run_id)
            return False
        mutate()
        return True

    def _report(self, info: ErrorInfo) -> None:
        self.store.set_error(info)
        if self.callbacks.on_error is not None:
            self.callbacks.on_error(info)

    def _message(self, code: str) -> str:
        return format_error_message(code, provider=self.provider, language=self.language)

    async def start_reading(self) -> None:
        """Read the current text aloud and return when the run is over.

        Without a selected voice, or while disabled, only an error is recorded. A second call
        while a run is in progress is ignored.
        """
        if self._destroyed:
            logger.warning("start_reading called on a destroyed engine")
            return
        if not self.store.get_state().is_enabled:
            self._report(ErrorInfo(code="TTS_DISABLED", message=self._message("TTS_DISABLED")))
            return
        if self.voice_directory.get_selected_voice_id() is None:
            self._report(ErrorInfo(code="NO_VOICE_SELECTED", message=self._message("NO_VOICE_SELECTED")))
            return
        if self.is_running:
            logger.debug("Reading already in progress; start request ignored")
            return

        self._run_id += 1
        run_id: int = self._run_id
        task: asyncio.Task[None] = asyncio.create_task(self._read(run_id))
        self._task = task
        try:
            await asyncio.wait({task})
        except asyncio.CancelledError:
            self.stop()
            raise
        finally:
            if self._task is task:
                self._task = None

    async def _read(self, run_id: int) -> None:
        try:
            has_read: bool = await self._read_page(run_id)
            while has_read and self._should_continue(run_id):
                navigator: PageNavigator = cast("PageNavigator", self.text_source)
                await navigator.navigate_to_next_page()
                await self._wait_for_page(navigator)
                has_read = await self._read_page(run_id)
        except asyncio.CancelledError:
            logger.debug("Reading run %d cancelled", run_id)
            raise
        except TTSExceptionError as err:
            self._fail(run_id, err)
        except Exception as err:  # noqa: BLE001
            logger.exception("Unexpected error while reading")
            message: str = format_error_message(
                "PLAYBACK_FAILED", provider=self.provider, message=str(err), language=self.language
            )
            self._fail(run_id, PlaybackFailedError(message, provider=self.provider, details={"cause": repr(err)}))

    async def _read_page(self, run_id: int) -> bool:
        """Generate and play the chunks of the current page.

        Returns:
            bool: True when audio played to its natural end.
        """
        if not self._commit(run_id, self.store.set_generating):
            return False
        chunks: list[TextChunk] = list(await self.text_source.extract_text_chunks())
        if self.chunk_limit > 0:
            chunks = chunks[: self.chunk_limit]
        if not chunks:
            logger.info("Nothing to read on the current page")
            self._commit(run_id, self.store.reset)
            return False

        passage: PassageAudio = await self._generate(run_id, chunks)
        if not self._commit(run_id, self.store.set_playing):
            return False
        logger.info("Playing %d chunks with '%s'", passage.chunk_count, self.provider)
        finished: bool | None = await self.executor.play(self.adapter, passage.audio_bytes, True, chunks=chunks)
        if finished is None:
            logger.info("Playback stopped before the end of the page")
            self._commit(run_id, self.store.reset)
            return False
        return self._commit(run_id, self.store.reset)

    async def _generate(self, run_id: int, chunks: list[TextChunk]) -> PassageAudio:
        if not self.use_mock_audio:
            return await generate_passage(self.adapter, chunks, is_current=lambda: self._is_current(run_id))
        for chunk in chunks:
            self.adapter.validate_text(chunk.text)
        logger.debug("Generating mock audio for %d chunks", len(chunks))
        return PassageAudio(
            audio_bytes=join_audio([generate_tone(chunk.text) for chunk in chunks]), chunk_count=len(chunks)
        )

    def _should_continue(self, run_id: int) -> bool:
        return (
            self.continue_to_next_page
            and self._is_current(run_id)
            and isinstance(self.text_source, PageNavigator)
            and self.text_source.has_next_page()
        )

    async def _wait_for_page(self, navigator: PageNavigator) -> None:
        await asyncio.sleep(PAGE_SETTLE_DELAY)
        for _ in range(PAGE_READY_ATTEMPTS):
            if navigator.is_page_ready():
                return
            await asyncio.sleep(PAGE_READY_INTERVAL)
        logger.warning("Next page did not become ready; reading it anyway")

    def _fail(self, run_id: int, err: TTSExceptionError) -> None:
        if not self._is_current(run_id):
            logger.debug("Ignoring error of stale run %d: %s", run_id, err.message)
            return
        logger.error("Reading failed [%s]: %s", err.code, err.message)
        self.executor.stop()
        self._report(err.to_info(debug=self.debug))

    def pause(self) -> bool:
        if not self.store.get_state().is_playing or not self.executor.pause():
            return False
        self.store.set_paused()
        return True

    def resume(self) -> bool:
        if not self.store.get_state().is_paused or not self.executor.resume():
            return False
        self.store.set_paused(is_paused=False)
        return True

    def stop(self) -> None:
        """Return to Idle from any state, discarding the results of the current run."""
        self._run_id += 1
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self.executor.stop()
        if not self._destroyed:
            self.store.reset()

    def set_enabled(self, *, enabled: bool) -> None:
        if not enabled:
            self.stop()
        self.store.set_enabled(enabled=enabled)

    def disable(self) -> None:
        self.set_enabled(enabled=False)

    def enable(self) -> None:
        self.set_enabled(enabled=True)

    async def switch_adapter(self, provider: str | None = None) -> str:
        """Request a provider switch from the host.

        Without a provider the engine alternates between ElevenLabs and Azure.

        Returns:
            str: The provider the switch was requested for.
        """
        target: str = provider or SWITCH_CYCLE.get(self.provider, "elevenlabs")
        logger.info("Adapter switch requested: '%s' -> '%s'", self.provider, target)
        if self.callbacks.on_adapter_switch is not None:
            result: Awaitable[Any] | None = self.callbacks.on_adapter_switch(target)
            if inspect.isawaitable(result):
                await result
        return target

    def destroy(self) -> None:
        """Stop and detach from the store. Idempotent."""
        if self._destroyed:
            return
        self.stop()
        self._destroyed = True
        self._unsubscribe()
        logger.debug("Engine for '%s' destroyed", self.provider)
