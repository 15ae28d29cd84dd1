"""Observable stores for playback and session state.

Both stores hold an immutable snapshot and replace it on every change. Listeners are called
synchronously with the new snapshot after each accepted change. A failing listener never
prevents the others from being called: in production the failure is logged, in strict mode
(debug builds and tests) the first failure is re-raised once all listeners have run.
"""

from __future__ import annotations

from dataclasses import fields, replace
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from models.state_models import PlaybackState, SessionState
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable, Iterable

    from models.state_models import ErrorInfo
    from models.voice_models import VoiceInfo

__all__: list[str] = ["SessionStore", "StateStore"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

S = TypeVar("S", PlaybackState, SessionState)

type Unsubscribe = Callable[[], None]


class _ObservableStore(Generic[S]):
    def __init__(self, initial: S, *, strict: bool = False) -> None:
        self._state: S = initial
        self._listeners: list[Callable[[S], None]] = []
        self.strict: bool = strict
        self._field_names: frozenset[str] = frozenset(field.name for field in fields(initial))

    @property
    def state(self) -> S:
        return self._state

    def get_state(self) -> S:
        return self._state

    def subscribe(self, listener: Callable[[S], None]) -> Unsubscribe:
        """Register a listener.

        Returns:
            Unsubscribe: Call to remove the listener. Calling it twice is harmless.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def _check_fields(self, changes: dict[str, Any]) -> None:
        unknown: list[str] = sorted(set(changes) - self._field_names)
        if unknown:
            msg: str = f"Unknown state fields: {', '.join(unknown)}"
            raise TypeError(msg)

    def _validate(self, state: S) -> None:
        _ = state

    def _apply(self, new_state: S) -> None:
        self._validate(new_state)
        self._state = new_state
        self._notify()

    def _notify(self) -> None:
        first_error: Exception | None = None
        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception as err:  # noqa: BLE001
                logger.error("State listener %r raised: %s", listener, err)
                if first_error is None:
                    first_error = err
        if first_error is not None and self.strict:
            raise first_error


class StateStore(_ObservableStore[PlaybackState]):
    """Single source of truth for the playback state.

    Invariant: ``is_playing`` and ``is_paused`` are never both true. Every change that sets
    ``is_enabled`` to false clears playing, paused, generating and the error, whatever the
    prior state. While disabled the playback flags stay cleared; an error can still be recorded.
    """

    def __init__(self, initial: PlaybackState | None = None, *, strict: bool = False) -> None:
        super().__init__(initial or PlaybackState(), strict=strict)

    def update(self, **changes: Any) -> PlaybackState:
        """Merge changes into the current state and notify listeners.

        Raises:
            TypeError: If a field name is unknown.
            ValueError: If the result would be both playing and paused.
        """
        self._check_fields(changes)
        new_state: PlaybackState = replace(self._state, **changes)
        if "is_enabled" in changes and not new_state.is_enabled:
            new_state = replace(new_state, is_playing=False, is_paused=False, is_generating=False, error=None)
        elif not new_state.is_enabled:
            new_state = replace(new_state, is_playing=False, is_paused=False, is_generating=False)
        self._apply(new_state)
        return self._state

    def _validate(self, state: PlaybackState) -> None:
        if state.is_playing and state.is_paused:
            msg = "Playback state cannot be playing and paused at the same time"
            raise ValueError(msg)

    def set_playing(self, *, is_playing: bool = True) -> PlaybackState:
        if is_playing:
            return self.update(is_playing=True, is_paused=False, is_generating=False, error=None)
        return self.update(is_playing=False)

    def set_paused(self, *, is_paused: bool = True) -> PlaybackState:
        if is_paused:
            return self.update(is_playing=False, is_paused=True)
        return self.update(is_playing=True, is_paused=False)

    def set_generating(self, *, is_generating: bool = True) -> PlaybackState:
        if is_generating:
            return self.update(is_generating=True, error=None)
        return self.update(is_generating=False)

    def set_error(self, error: ErrorInfo | None) -> PlaybackState:
        """Record an error. A non-empty error also ends playback and generation."""
        if error is None:
            return self.update(error=None)
        return self.update(error=error, is_playing=False, is_paused=False, is_generating=False)

    def set_adapter(self, provider: str | None) -> PlaybackState:
        return self.update(current_adapter=provider)

    def set_enabled(self, *, enabled: bool) -> PlaybackState:
        return self.update(is_enabled=enabled)

    def toggle_enabled(self) -> PlaybackState:
        return self.set_enabled(enabled=not self._state.is_enabled)

    def reset(self) -> PlaybackState:
        """Clear the transient playback fields and the error, keeping enablement and adapter."""
        return self.update(is_playing=False, is_paused=False, is_generating=False, error=None)


class SessionStore(_ObservableStore[SessionState]):
    """UI-facing session slice: voice list, selection and provider switching progress."""

    def __init__(self, initial: SessionState | None = None, *, strict: bool = False) -> None:
        super().__init__(initial or SessionState(), strict=strict)

    def update(self, **changes: Any) -> SessionState:
        """Merge changes into the session state and notify listeners.

        Raises:
            TypeError: If a field name is unknown.
        """
        self._check_fields(changes)
        if "voices" in changes:
            changes["voices"] = tuple(changes["voices"])
        self._apply(replace(self._state, **changes))
        return self._state

    def start_loading_voices(self) -> SessionState:
        return self.update(is_loading_voices=True, voices_error=None)

    def finish_loading_voices(self, voices: Iterable[VoiceInfo]) -> SessionState:
        return self.update(voices=voices, is_loading_voices=False, voices_error=None)

    def fail_loading_voices(self, message: str) -> SessionState:
        return self.update(voices=(), is_loading_voices=False, voices_error=message)

    def select_voice(self, voice_id: str | None) -> SessionState:
        return self.update(selected_voice=voice_id)

    def start_switching_adapter(self) -> SessionState:
        return self.update(is_recreating_services=True)

    def finish_switching_adapter(self) -> SessionState:
        return self.update(is_recreating_services=False)
