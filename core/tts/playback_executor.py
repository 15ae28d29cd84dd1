"""Universal playback executor.

`PlaybackExecutor.play` accepts either ready audio or a text chunk. Audio is played on the
playback surface owned by the executor; a chunk is handed to the adapter, which generates
audio and comes back to the executor with bytes. The executor is the only component that
touches the surface and the highlight sampler.

Highlighting is an approximation: each chunk gets a time window estimated from its word
count at a fixed words-per-minute rate, and a periodic sampler compares the playback
position against those windows.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any, Final

from core.tts.audio_playback_manager import AudioPlaybackManager
from core.tts.interface import PlaybackFailedError
from models.message_models import format_error_message
from models.voice_models import HighlightWindow, TextChunk
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Sequence

    from core.tts.audio_playback_manager import PlaybackSurface
    from core.tts.interface import SpeechAdapter

__all__: list[str] = ["PlaybackExecutor", "estimate_windows"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

DEFAULT_WORDS_PER_MINUTE: Final[int] = 150
DEFAULT_HIGHLIGHT_INTERVAL: Final[float] = 0.1
_STOPPED: Final[object] = object()


def estimate_windows(
    chunks: Sequence[TextChunk], words_per_minute: int = DEFAULT_WORDS_PER_MINUTE
) -> list[HighlightWindow]:
    """Estimate the playback interval of each chunk.

    A chunk of *n* words lasts ``n / words_per_minute * 60`` seconds; windows follow each
    other without gaps starting at zero.
    """
    windows: list[HighlightWindow] = []
    start: float = 0.0
    last: int = len(chunks) - 1
    for index, chunk in enumerate(chunks):
        end: float = start + chunk.word_count / words_per_minute * 60.0
        windows.append(
            HighlightWindow(index=index, chunk=chunk, start_time=start, end_time=end, is_last=index == last)
        )
        start = end
    return windows


class PlaybackExecutor:
    """Plays audio for an adapter and drives highlighting.

    Attributes:
        surface (PlaybackSurface): Audio output owned by the executor.
        words_per_minute (int): Speaking rate used for highlight windows.
        highlight_interval (float): Seconds between highlight samples.
        current_window (HighlightWindow | None): Window currently highlighted.
    """

    def __init__(
        self,
        surface: PlaybackSurface | None = None,
        *,
        words_per_minute: int = DEFAULT_WORDS_PER_MINUTE,
        highlight_interval: float = DEFAULT_HIGHLIGHT_INTERVAL,
        language: str = "en",
    ) -> None:
        self.surface: PlaybackSurface = surface if surface is not None else AudioPlaybackManager()
        self.words_per_minute: int = words_per_minute
        self.highlight_interval: float = highlight_interval
        self.language: str = language
        self.current_window: HighlightWindow | None = None
        self._windows: list[HighlightWindow] = []
        self._adapter: SpeechAdapter | None = None
        self._future: asyncio.Future[Any] | None = None
        self._sampler: asyncio.Task[None] | None = None
        self._paused: bool = False

    @property
    def is_active(self) -> bool:
        return self._future is not None and not self._future.done()

    @property
    def is_paused(self) -> bool:
        return self.is_active and self._paused

    async def play(
        self,
        adapter: SpeechAdapter,
        source: bytes | TextChunk,
        success_value: Any,
        *,
        chunks: Sequence[TextChunk] | None = None,
    ) -> Any:
        """Play audio bytes, or delegate a text chunk to the adapter.

        Args:
            adapter (SpeechAdapter): Adapter that receives the playback events.
            source (bytes | TextChunk): Ready audio, or a chunk to generate and play.
            success_value (Any): Returned when the audio plays to its natural end.
            chunks (Sequence[TextChunk] | None): Chunks the audio was generated from,
                used for highlight windows.

        Returns:
            Any: ``success_value`` for audio, the adapter's result for a chunk, or None when
                `stop` ends the playback early.

        Raises:
            PlaybackFailedError: If the audio cannot be decoded or playback fails.
        """
        if isinstance(source, TextChunk):
            return await adapter.play(source)
        if not isinstance(source, (bytes, bytearray)) or not source:
            msg: str = f"Unsupported playback input: {type(source).__name__}"
            raise PlaybackFailedError(msg, provider=adapter.provider)

        if self.is_active:
            self.stop()
        adapter.cleanup()

        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()

        def on_ended(_: Any) -> None:
            if not future.done():
                future.set_result(success_value)

        def on_error(err: Any) -> None:
            if not future.done():
                message: str = format_error_message(
                    "PLAYBACK_FAILED", provider=adapter.provider, message=str(err), language=self.language
                )
                failure = PlaybackFailedError(message, provider=adapter.provider, details={"cause": str(err)})
                future.set_exception(failure)

        self._adapter = adapter
        self._future = future
        self._paused = False
        self.surface.add_listener("ended", on_ended)
        self.surface.add_listener("error", on_error)
        success: bool = False
        try:
            self.surface.load(bytes(source))
            self.surface.start()
            adapter.emit("play", None)
            self._windows = estimate_windows(chunks or (), self.words_per_minute)
            self._start_sampler()
            result: Any = await future
            if result is _STOPPED:
                return None
            success = True
            return result
        except PlaybackFailedError as err:
            logger.error("Playback failed for '%s': %s", adapter.provider, err.message)
            adapter.emit("error", err)
            raise
        finally:
            self.surface.remove_listener("ended", on_ended)
            self.surface.remove_listener("error", on_error)
            # A newer playback may already own the sampler and windows
            if self._future is future:
                self._stop_sampler()
                self._clear_highlight()
                self._future = None
                self._windows = []
            adapter.emit("end", {"success": success})
            logger.debug("Playback finished for '%s' (success=%s)", adapter.provider, success)

    def pause(self) -> bool:
        """Pause playback and highlighting.

        Returns:
            bool: False when nothing is playing.
        """
        if not self.is_active or self._paused:
            return False
        self.surface.pause()
        self._paused = True
        self._stop_sampler()
        self._clear_highlight()
        if self._adapter is not None:
            self._adapter.emit("pause", None)
        return True

    def resume(self) -> bool:
        if not self.is_active or not self._paused:
            return False
        self.surface.resume()
        self._paused = False
        self._start_sampler()
        if self._adapter is not None:
            self._adapter.emit("resume", None)
        return True

    def stop(self) -> None:
        """Stop playback and highlighting. Safe to call in any state."""
        was_active: bool = self.is_active
        self.surface.stop()
        self._stop_sampler()
        self._clear_highlight()
        self._paused = False
        if self._future is not None and not self._future.done():
            self._future.set_result(_STOPPED)
        self._future = None
        if was_active and self._adapter is not None:
            self._adapter.emit("stop", None)

    def release(self) -> None:
        """Stop and release the playback surface."""
        self.stop()
        self._adapter = None
        self.surface.release()

    def _start_sampler(self) -> None:
        self._stop_sampler()
        if self._windows:
            self._sampler = asyncio.create_task(self._sample_highlight())

    def _stop_sampler(self) -> None:
        if self._sampler is not None and not self._sampler.done():
            self._sampler.cancel()
        self._sampler = None

    def _clear_highlight(self) -> None:
        if self.current_window is None:
            return
        self.current_window = None
        if self._adapter is not None:
            self._adapter.emit("wordBoundary", None)

    async def _sample_highlight(self) -> None:
        while True:
            position: float = self.surface.position
            window: HighlightWindow | None = next((w for w in self._windows if w.contains(position)), None)
            if window is not None and window != self.current_window:
                self.current_window = window
                if self._adapter is not None:
                    self._adapter.emit("wordBoundary", window)
            await asyncio.sleep(self.highlight_interval)
