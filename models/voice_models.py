"""Data models for speech synthesis.

This module defines:
- VoiceInfo: A voice offered by a provider.
- TextChunk: A unit of text submitted as one synthesis request.
- GenerationResult: Audio returned for one chunk plus its continuity token.
- PassageAudio: Audio stitched from all chunks of a passage.
- HighlightWindow: Estimated playback interval of one chunk.
- ProviderInfo: Display information for a selectable provider.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Final, Literal, cast

if TYPE_CHECKING:
    from collections.abc import Mapping

__all__: list[str] = [
    "GENDERS",
    "ElementKind",
    "Gender",
    "GenerationResult",
    "HighlightWindow",
    "PassageAudio",
    "ProviderInfo",
    "TextChunk",
    "VoiceInfo",
    "normalize_gender",
]

type Gender = Literal["male", "female", "neutral"]

GENDERS: Final[tuple[str, ...]] = ("male", "female", "neutral")

_HEADING_TAGS: Final[frozenset[str]] = frozenset({"h1", "h2", "h3", "h4", "h5", "h6"})


def normalize_gender(value: str | None) -> Gender | None:
    """Map a vendor gender label onto the supported set; unknown labels become None."""
    if not value:
        return None
    lowered: str = value.strip().lower()
    if lowered in GENDERS:
        return cast("Gender", lowered)
    return None


class ElementKind(StrEnum):
    """Markup classification of a chunk, used for prosody shaping."""

    HEADING = "heading"
    PARAGRAPH = "paragraph"
    ITALIC = "italic"
    BOLD = "bold"
    NORMAL = "normal"

    @classmethod
    def from_tag(cls, tag: str | None) -> ElementKind:
        """Classify an HTML tag name."""
        name: str = (tag or "").strip().lower()
        if name in _HEADING_TAGS:
            return cls.HEADING
        if name == "p":
            return cls.PARAGRAPH
        if name in ("i", "em"):
            return cls.ITALIC
        if name in ("b", "strong"):
            return cls.BOLD
        return cls.NORMAL


@dataclass(frozen=True)
class VoiceInfo:
    """A voice offered by a provider. Immutable once fetched.

    Attributes:
        id (str): Provider-specific voice identifier.
        name (str): Display name.
        language (str): Language or locale code, 'unknown' when not reported.
        gender (Gender | None): Normalized gender, None when not reported.
        provider (str): Name of the provider the voice belongs to.
        extra (Mapping[str, Any]): Remaining vendor metadata, read-only.
    """

    id: str
    name: str
    language: str = "unknown"
    gender: Gender | None = None
    provider: str = ""
    extra: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "extra", MappingProxyType(dict(self.extra)))


@dataclass(frozen=True)
class TextChunk:
    """A contiguous unit of source text.

    Attributes:
        text (str): Text to synthesize.
        element_kind (ElementKind): Markup classification of the source element.
    """

    text: str
    element_kind: ElementKind = ElementKind.NORMAL

    @property
    def word_count(self) -> int:
        return len(self.text.split())


@dataclass(frozen=True)
class GenerationResult:
    """Audio for one chunk.

    Attributes:
        audio_bytes (bytes): Encoded audio.
        continuity_token (str | None): Provider request identifier that later calls may reference.
            None when the provider has no continuity support.
    """

    audio_bytes: bytes
    continuity_token: str | None = None


@dataclass(frozen=True)
class PassageAudio:
    """Audio of a whole passage, concatenated in chunk order.

    Attributes:
        audio_bytes (bytes): Concatenated audio.
        continuity_tokens (tuple[str, ...]): Tokens collected in chunk order.
        chunk_count (int): Number of chunks generated.
    """

    audio_bytes: bytes
    continuity_tokens: tuple[str, ...] = ()
    chunk_count: int = 0


@dataclass(frozen=True)
class HighlightWindow:
    """Estimated playback interval of one chunk within the passage audio.

    Attributes:
        index (int): Chunk position in the passage.
        chunk (TextChunk): The chunk being spoken.
        start_time (float): Start offset in seconds.
        end_time (float): End offset in seconds, exclusive unless this is the last window.
        is_last (bool): Whether the window closes the passage.
    """

    index: int
    chunk: TextChunk
    start_time: float
    end_time: float
    is_last: bool = False

    def contains(self, position: float) -> bool:
        if self.is_last:
            return self.start_time <= position <= self.end_time
        return self.start_time <= position < self.end_time


@dataclass(frozen=True)
class ProviderInfo:
    """Selectable provider entry.

    Attributes:
        key (str): Registry name of the provider.
        name (str): Display name.
        is_implemented (bool): Whether an adapter is registered for it.
    """

    key: str
    name: str
    is_implemented: bool = True
