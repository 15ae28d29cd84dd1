"""Unit tests for core.tts.state_store module."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from core.tts.state_store import SessionStore, StateStore
from models.state_models import EngineState, ErrorInfo, PlaybackState, SessionState
from models.voice_models import VoiceInfo

ERROR = ErrorInfo(code="NETWORK_ERROR", message="offline")


def test_subscribe_update_round_trip() -> None:
    store = StateStore()
    received: list[PlaybackState] = []
    unsubscribe = store.subscribe(received.append)

    store.update(is_generating=True)

    assert received == [store.get_state()]
    assert received[0].is_generating is True

    unsubscribe()
    store.update(is_generating=False)

    assert len(received) == 1
    # Unsubscribing twice is harmless
    unsubscribe()


def test_update_notifies_even_without_change() -> None:
    store = StateStore()
    listener = MagicMock()
    store.subscribe(listener)

    store.update(is_playing=False)

    listener.assert_called_once_with(store.get_state())


def test_update_produces_new_snapshot() -> None:
    store = StateStore()
    before: PlaybackState = store.get_state()

    store.update(current_adapter="azure")

    assert before.current_adapter is None
    assert store.state.current_adapter == "azure"


def test_unknown_field_raises_type_error() -> None:
    store = StateStore()

    with pytest.raises(TypeError, match="is_speaking"):
        store.update(is_speaking=True)


def test_playing_and_paused_together_is_rejected() -> None:
    store = StateStore()
    listener = MagicMock()
    store.subscribe(listener)

    with pytest.raises(ValueError, match="playing and paused"):
        store.update(is_playing=True, is_paused=True)

    assert store.get_state() == PlaybackState()
    listener.assert_not_called()


def test_disabling_resets_transient_state() -> None:
    store = StateStore()
    store.set_playing()
    store.update(error=ERROR)

    state: PlaybackState = store.set_enabled(enabled=False)

    assert state == PlaybackState(is_enabled=False)


def test_disabling_again_clears_error_recorded_while_disabled() -> None:
    store = StateStore()
    store.set_enabled(enabled=False)
    store.set_error(ERROR)
    assert store.get_state().error == ERROR

    state: PlaybackState = store.set_enabled(enabled=False)

    assert state == PlaybackState(is_enabled=False)


def test_disabled_store_keeps_playback_flags_cleared() -> None:
    store = StateStore()
    store.set_enabled(enabled=False)

    state: PlaybackState = store.update(is_playing=True, is_generating=True)

    assert not state.is_playing
    assert not state.is_generating
    assert state.engine_state is EngineState.IDLE


def test_disabling_while_paused_or_generating() -> None:
    store = StateStore()
    store.set_generating()
    store.set_playing()
    store.set_paused()

    state: PlaybackState = store.toggle_enabled()

    assert not state.is_enabled
    assert not state.is_paused
    assert not state.is_playing
    assert not state.is_generating
    assert store.toggle_enabled().is_enabled


def test_state_transitions() -> None:
    store = StateStore()

    assert store.set_generating().engine_state is EngineState.GENERATING
    assert store.set_playing().engine_state is EngineState.PLAYING
    assert store.set_paused().engine_state is EngineState.PAUSED
    assert store.set_paused(is_paused=False).engine_state is EngineState.PLAYING
    assert store.reset().engine_state is EngineState.IDLE


def test_set_error_ends_playback_and_generating_clears_it() -> None:
    store = StateStore()
    store.set_playing()

    state: PlaybackState = store.set_error(ERROR)

    assert state.error == ERROR
    assert state.engine_state is EngineState.IDLE
    assert store.set_generating().error is None


def test_reset_keeps_adapter_and_enablement() -> None:
    store = StateStore()
    store.set_adapter("azure")
    store.set_error(ERROR)

    state: PlaybackState = store.reset()

    assert state == PlaybackState(current_adapter="azure")


def test_failing_listener_does_not_block_others() -> None:
    store = StateStore()
    failing = MagicMock(side_effect=RuntimeError("boom"))
    healthy = MagicMock()
    store.subscribe(failing)
    store.subscribe(healthy)

    store.set_playing()

    healthy.assert_called_once()


def test_strict_store_reraises_after_all_listeners() -> None:
    store = StateStore(strict=True)
    failing = MagicMock(side_effect=RuntimeError("boom"))
    healthy = MagicMock()
    store.subscribe(failing)
    store.subscribe(healthy)

    with pytest.raises(RuntimeError, match="boom"):
        store.set_playing()

    healthy.assert_called_once()
    assert store.get_state().is_playing


def test_listener_count() -> None:
    store = StateStore()
    unsubscribe = store.subscribe(MagicMock())
    store.subscribe(MagicMock())

    assert store.listener_count == 2
    unsubscribe()
    assert store.listener_count == 1


def test_session_store_voice_loading() -> None:
    session = SessionStore()
    voices: list[VoiceInfo] = [VoiceInfo(id="v1", name="One")]

    assert session.start_loading_voices().is_loading_voices
    state: SessionState = session.finish_loading_voices(voices)

    assert state.voices == (voices[0],)
    assert not state.is_loading_voices

    failed: SessionState = session.fail_loading_voices("offline")

    assert failed.voices == ()
    assert failed.voices_error == "offline"
    assert session.start_loading_voices().voices_error is None


def test_session_store_selection_and_switching() -> None:
    session = SessionStore()
    listener = MagicMock()
    session.subscribe(listener)

    session.select_voice("v1")
    session.start_switching_adapter()

    assert session.get_state().selected_voice == "v1"
    assert session.get_state().is_recreating_services
    assert not session.finish_switching_adapter().is_recreating_services
    assert listener.call_count == 3


def test_session_store_rejects_unknown_fields() -> None:
    with pytest.raises(TypeError):
        SessionStore().update(is_playing=True)
