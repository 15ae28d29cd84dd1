"""Text chunk producers consumed by the orchestration engine.

The engine only depends on the `TextChunkProducer` protocol: a pull-based source that yields a
fresh, finite list of chunks for every reading request. `PlainTextSource` is the bundled
implementation for plain text documents, split into pages by form feed characters and into
chunks by sentence.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Final, Protocol, runtime_checkable

from models.voice_models import ElementKind, TextChunk
from utils.logger_utils import LoggerUtils
from utils.text_processor import TextProcessor

if TYPE_CHECKING:
    import logging
    from re import Pattern

__all__: list[str] = ["PageNavigator", "PlainTextSource", "TextChunkProducer", "split_sentences"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

PAGE_SEPARATOR: Final[str] = "\f"
SENTENCE_BOUNDARY: Final[Pattern[str]] = re.compile(r"(?<=[.!?…])\s+")
PARAGRAPH_BOUNDARY: Final[Pattern[str]] = re.compile(r"\n\s*\n")
HEADING_MARK: Final[Pattern[str]] = re.compile(r"^#{1,6}\s+")


@runtime_checkable
class TextChunkProducer(Protocol):
    """Source of the chunks to read. Each call starts over from the current page."""

    async def extract_text_chunks(self) -> list[TextChunk]: ...


@runtime_checkable
class PageNavigator(Protocol):
    """Optional extension of a producer that can move to the following page."""

    def has_next_page(self) -> bool: ...

    async def navigate_to_next_page(self) -> None: ...

    def is_page_ready(self) -> bool: ...


def split_sentences(text: str, max_length: int) -> list[str]:
    """Split text into sentences, breaking overlong sentences at word boundaries.

    Args:
        text (str): Text to split.
        max_length (int): Maximum characters per piece.

    Returns:
        list[str]: Non-empty pieces in reading order.
    """
    pieces: list[str] = []
    for sentence in SENTENCE_BOUNDARY.split(TextProcessor.normalize(text)):
        if not sentence:
            continue
        while len(sentence) > max_length:
            cut: int = sentence.rfind(" ", 0, max_length + 1)
            if cut <= 0:
                cut = max_length
            pieces.append(sentence[:cut].strip())
            sentence = sentence[cut:].strip()
        if sentence:
            pieces.append(sentence)
    return pieces


class PlainTextSource:
    """Chunk producer over plain text.

    Pages are separated by form feeds. Within a page, blank lines separate paragraphs, and a
    paragraph starting with Markdown style '#' marks is read as a heading.
    """

    def __init__(self, text: str, *, max_chunk_length: int = 5000) -> None:
        self.pages: list[str] = [page for page in text.split(PAGE_SEPARATOR) if page.strip()] or [""]
        self.max_chunk_length: int = max_chunk_length
        self.page_index: int = 0

    async def extract_text_chunks(self) -> list[TextChunk]:
        page: str = self.pages[self.page_index]
        chunks: list[TextChunk] = []
        for paragraph in PARAGRAPH_BOUNDARY.split(page):
            if not paragraph.strip():
                continue
            kind: ElementKind = ElementKind.NORMAL
            if HEADING_MARK.match(paragraph.lstrip()):
                kind = ElementKind.HEADING
                paragraph = HEADING_MARK.sub("", paragraph.lstrip())
            chunks.extend(
                TextChunk(text=piece, element_kind=kind)
                for piece in split_sentences(paragraph, self.max_chunk_length)
            )
        logger.debug("Extracted %d chunks from page %d", len(chunks), self.page_index)
        return chunks

    def has_next_page(self) -> bool:
        return self.page_index + 1 < len(self.pages)

    async def navigate_to_next_page(self) -> None:
        if not self.has_next_page():
            msg = "Already on the last page"
            raise IndexError(msg)
        self.page_index += 1
        logger.info("Moved to page %d of %d", self.page_index + 1, len(self.pages))

    def is_page_ready(self) -> bool:
        return True
