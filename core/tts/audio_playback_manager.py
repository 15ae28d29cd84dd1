"""Audio playback surface built on PyAudio and soundfile.

The surface plays one in-memory audio payload at a time. Decoding is done by soundfile,
so anything libsndfile reads (WAV, FLAC, OGG and MP3 with libsndfile 1.1+) can be played.
PyAudio calls back from its own thread; completion and failure are handed back to the event
loop with ``call_soon_threadsafe`` and delivered to the 'ended' and 'error' listeners there.
"""

from __future__ import annotations

import asyncio
import contextlib
from functools import partial
from io import BytesIO
from typing import TYPE_CHECKING, Any, Final, Literal, Protocol

import pyaudio
import soundfile

from core.tts.interface import PlaybackFailedError
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable

type SurfaceEvent = Literal["ended", "error"]
type SurfaceCallback = Callable[[Any], None]

# soundfile -> pyaudio conversion tables
# Compressed and unlisted subtypes are decoded to float32
FORMAT_CONV: Final[dict[str, tuple[int, str]]] = {
    "PCM_16": (pyaudio.paInt16, "int16"),
    "PCM_24": (pyaudio.paInt32, "int32"),
    "PCM_32": (pyaudio.paInt32, "int32"),
    "FLOAT": (pyaudio.paFloat32, "float32"),
}
DEFAULT_FORMAT: Final[tuple[int, str]] = (pyaudio.paFloat32, "float32")

__all__: list[str] = ["AudioPlaybackManager", "PlaybackSurface"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class PlaybackSurface(Protocol):
    """What the playback executor needs from an audio output."""

    def load(self, audio: bytes) -> None: ...

    def start(self) -> None: ...

    def pause(self) -> None: ...

    def resume(self) -> None: ...

    def stop(self) -> None: ...

    @property
    def position(self) -> float: ...

    def add_listener(self, event: SurfaceEvent, callback: SurfaceCallback) -> None: ...

    def remove_listener(self, event: SurfaceEvent, callback: SurfaceCallback) -> None: ...

    def release(self) -> None: ...


def _stream_callback_logic(
    in_data,
    frame_count,
    time_info,
    status,
    /,
    manager: AudioPlaybackManager,
    sf: soundfile.SoundFile,
    dtype: str,
    loop: asyncio.AbstractEventLoop,
) -> tuple[bytes | None, int]:
    """Callback function for the PyAudio stream.

    Called by PyAudio on its own thread to fill the audio buffer.

    Returns:
        tuple[bytes | None, int]: Audio data and playback status.
    """
    # The first four are position-only arguments.
    # The order of definitions cannot be changed.
    _ = in_data
    _ = time_info
    _ = status
    try:
        if manager.stop_requested:
            return (None, pyaudio.paAbort)

        data = sf.read(frames=frame_count, dtype=dtype)
        frames_read: int = data.shape[0]
        manager.frames_played += frames_read
        # Considered complete when there is no more data to playback
        if frames_read < frame_count:
            loop.call_soon_threadsafe(manager.dispatch, "ended", None)
            return (data.tobytes(), pyaudio.paComplete)

    except soundfile.SoundFileRuntimeError as err:
        loop.call_soon_threadsafe(manager.dispatch, "error", err)
        return (None, pyaudio.paAbort)

    except RuntimeError as err:
        # Event loop already closed
        logger.critical("Runtime error in audio callback: %s", err)
        return (None, pyaudio.paAbort)

    return (data.tobytes(), pyaudio.paContinue)


class AudioPlaybackManager:
    """PyAudio playback surface for in-memory audio.

    Attributes:
        frames_played (int): Frames handed to PyAudio since the last load.
        stop_requested (bool): Set by `stop`, checked by the stream callback.
    """

    def __init__(self) -> None:
        self._pyaudio: pyaudio.PyAudio | None = None
        self.stream: pyaudio.Stream | None = None
        self.sound: soundfile.SoundFile | None = None
        self.frames_played: int = 0
        self.stop_requested: bool = False
        self._listeners: dict[str, list[SurfaceCallback]] = {"ended": [], "error": []}

    @property
    def pyaudio(self) -> pyaudio.PyAudio:
        """Gets the PyAudio instance, recreating it if necessary."""
        if self._pyaudio is None:
            self._pyaudio = pyaudio.PyAudio()
            logger.info("PyAudio instance created")
        return self._pyaudio

    @property
    def position(self) -> float:
        """Playback position in seconds."""
        if self.sound is None or not self.sound.samplerate:
            return 0.0
        return self.frames_played / self.sound.samplerate

    @property
    def duration(self) -> float:
        if self.sound is None or not self.sound.samplerate:
            return 0.0
        return self.sound.frames / self.sound.samplerate

    @property
    def is_playing(self) -> bool:
        if self.stream is None:
            return False
        return self.stream.is_active()

    def add_listener(self, event: SurfaceEvent, callback: SurfaceCallback) -> None:
        self._listeners[event].append(callback)

    def remove_listener(self, event: SurfaceEvent, callback: SurfaceCallback) -> None:
        if callback in self._listeners[event]:
            self._listeners[event].remove(callback)

    def dispatch(self, event: SurfaceEvent, payload: Any) -> None:
        """Deliver a surface event on the event loop thread."""
        if self.stop_requested:
            return
        for callback in list(self._listeners[event]):
            callback(payload)

    def load(self, audio: bytes) -> None:
        """Prepare a payload for playback, discarding the previous one.

        Raises:
            PlaybackFailedError: If the payload cannot be decoded.
        """
        self._close_stream()
        self._close_sound()
        try:
            self.sound = soundfile.SoundFile(BytesIO(audio))
        except (soundfile.LibsndfileError, soundfile.SoundFileRuntimeError, RuntimeError, TypeError) as err:
            msg: str = f"Unable to decode audio: {err}"
            logger.error(msg)
            raise PlaybackFailedError(msg) from err
        self.frames_played = 0
        self.stop_requested = False
        logger.debug(
            "Audio properties - Format: %s/%s, Channels: %s, Sampling rate: %s",
            self.sound.format,
            self.sound.subtype,
            self.sound.channels,
            self.sound.samplerate,
        )

    def start(self) -> None:
        """Open the output stream and start playing the loaded payload.

        Raises:
            PlaybackFailedError: If nothing is loaded or the device cannot be opened.
        """
        if self.sound is None:
            msg = "No audio loaded"
            raise PlaybackFailedError(msg)
        loop: asyncio.AbstractEventLoop = asyncio.get_running_loop()
        (_format, _dtype) = FORMAT_CONV.get(self.sound.subtype, DEFAULT_FORMAT)

        callback_fn: partial[tuple[bytes | None, int]] = partial(
            _stream_callback_logic, manager=self, sf=self.sound, dtype=_dtype, loop=loop
        )
        # The buffer size is set to 0.2 seconds of audio data.
        frame_buffer_size: int = max(2048, int(self.sound.samplerate * 0.2))
        try:
            self.stream = self.pyaudio.open(
                format=_format,
                channels=self.sound.channels,
                rate=self.sound.samplerate,
                output=True,
                frames_per_buffer=frame_buffer_size,
                stream_callback=callback_fn,
            )
            self.stream.start_stream()
        except (OSError, ValueError) as err:
            msg = f"Unable to open the audio output: {err}"
            logger.error(msg)
            self._close_stream()
            raise PlaybackFailedError(msg) from err
        logger.debug("Playback start")

    def pause(self) -> None:
        if self.stream is not None and self.stream.is_active():
            self.stream.stop_stream()
            logger.debug("Playback paused at %.2f s", self.position)

    def resume(self) -> None:
        if self.stream is not None and self.stream.is_stopped():
            self.stream.start_stream()
            logger.debug("Playback resumed at %.2f s", self.position)

    def stop(self) -> None:
        """Stop playback without firing 'ended'. Safe to call at any time."""
        self.stop_requested = True
        self._close_stream()
        self._close_sound()
        self.frames_played = 0

    def release(self) -> None:
        """Stop playback and release the PyAudio resources."""
        self.stop()
        for callbacks in self._listeners.values():
            callbacks.clear()
        if self._pyaudio is not None:
            self._pyaudio.terminate()
            self._pyaudio = None
            logger.info("PyAudio resources released")

    def _close_stream(self) -> None:
        if self.stream is not None:
            with contextlib.suppress(OSError):
                self.stream.stop_stream()
            with contextlib.suppress(OSError):
                self.stream.close()
            self.stream = None

    def _close_sound(self) -> None:
        if self.sound is not None:
            with contextlib.suppress(RuntimeError):
                self.sound.close()
            self.sound = None
