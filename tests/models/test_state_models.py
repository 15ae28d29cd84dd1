"""Unit tests for models.state_models and models.voice_models modules."""

from __future__ import annotations

from dataclasses import FrozenInstanceError, replace

import pytest

from models.state_models import EngineState, PlaybackState
from models.voice_models import ElementKind, HighlightWindow, TextChunk, VoiceInfo, normalize_gender


@pytest.mark.parametrize(
    ("state", "expected"),
    [
        (PlaybackState(), EngineState.IDLE),
        (PlaybackState(is_generating=True), EngineState.GENERATING),
        (PlaybackState(is_playing=True), EngineState.PLAYING),
        (PlaybackState(is_paused=True), EngineState.PAUSED),
    ],
)
def test_engine_state_is_derived(state: PlaybackState, expected: EngineState) -> None:
    assert state.engine_state is expected


def test_playback_state_is_immutable() -> None:
    state = PlaybackState()

    with pytest.raises(FrozenInstanceError):
        state.is_playing = True  # type: ignore[misc]


def test_voice_info_extra_is_read_only() -> None:
    voice = VoiceInfo(id="v1", name="Voice", extra={"labels": {}})

    with pytest.raises(TypeError):
        voice.extra["labels"] = {"x": "y"}  # type: ignore[index]


@pytest.mark.parametrize(
    ("label", "expected"),
    [("Female", "female"), (" MALE ", "male"), ("neutral", "neutral"), ("other", None), ("", None), (None, None)],
)
def test_normalize_gender(label: str | None, expected: str | None) -> None:
    assert normalize_gender(label) == expected


@pytest.mark.parametrize(
    ("tag", "expected"),
    [
        ("h2", ElementKind.HEADING),
        ("P", ElementKind.PARAGRAPH),
        ("em", ElementKind.ITALIC),
        ("strong", ElementKind.BOLD),
        ("span", ElementKind.NORMAL),
        (None, ElementKind.NORMAL),
    ],
)
def test_element_kind_from_tag(tag: str | None, expected: ElementKind) -> None:
    assert ElementKind.from_tag(tag) is expected


def test_text_chunk_word_count_and_window_bounds() -> None:
    chunk = TextChunk("Hello brave  new world")
    window = HighlightWindow(index=0, chunk=chunk, start_time=1.0, end_time=2.0)

    assert chunk.word_count == 4
    assert window.contains(1.0)
    assert not window.contains(2.0)
    assert replace(window, is_last=True).contains(2.0)
    assert not replace(window, is_last=True).contains(2.1)
