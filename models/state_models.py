"""Immutable state snapshots published by the state stores.

Stores never hand out a mutable object: every update produces a new frozen instance via
``dataclasses.replace``, so a listener may keep a snapshot around without it changing.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from models.voice_models import VoiceInfo

__all__: list[str] = ["EngineState", "ErrorInfo", "PlaybackState", "SessionState"]


class EngineState(StrEnum):
    """Lifecycle state of the orchestration engine, derived from PlaybackState."""

    IDLE = "idle"
    GENERATING = "generating"
    PLAYING = "playing"
    PAUSED = "paused"


@dataclass(frozen=True)
class ErrorInfo:
    """User-facing error record stored in the playback state.

    Attributes:
        code (str): Stable taxonomy code, e.g. 'NETWORK_ERROR'.
        message (str): Localized message for display.
        details (Any): Diagnostic payload. Only filled in debug mode.
    """

    code: str
    message: str
    details: Any = None


@dataclass(frozen=True)
class PlaybackState:
    """Single source of truth for the playback status.

    Attributes:
        is_playing (bool): Audio is audible.
        is_paused (bool): Audio is loaded but halted. Never true together with is_playing.
        is_generating (bool): A generation request is outstanding.
        is_enabled (bool): Reading aloud is switched on.
        current_adapter (str | None): Provider name of the live adapter bundle.
        error (ErrorInfo | None): Last error, cleared on the next successful start.
    """

    is_playing: bool = False
    is_paused: bool = False
    is_generating: bool = False
    is_enabled: bool = True
    current_adapter: str | None = None
    error: ErrorInfo | None = None

    @property
    def engine_state(self) -> EngineState:
        if self.is_paused:
            return EngineState.PAUSED
        if self.is_playing:
            return EngineState.PLAYING
        if self.is_generating:
            return EngineState.GENERATING
        return EngineState.IDLE


@dataclass(frozen=True)
class SessionState:
    """Voice loading and provider switching status.

    Attributes:
        voices (tuple[VoiceInfo, ...]): Voices of the active provider.
        selected_voice (str | None): Id of the selected voice.
        is_loading_voices (bool): A voice list request is outstanding.
        voices_error (str | None): Message of the last failed voice load.
        is_recreating_services (bool): The adapter bundle is being rebuilt.
    """

    voices: tuple[VoiceInfo, ...] = field(default_factory=tuple)
    selected_voice: str | None = None
    is_loading_voices: bool = False
    voices_error: str | None = None
    is_recreating_services: bool = False
