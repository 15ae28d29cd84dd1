"""Text validation and formatting before synthesis.

`PlainTextProcessor` only normalizes whitespace, for providers that take raw text.
`SsmlTextProcessor` additionally escapes markup characters and wraps the text in SSML
breaks and emphasis according to the chunk's element kind.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

from models.voice_models import ElementKind
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

__all__: list[str] = ["MAX_TEXT_LENGTH", "PlainTextProcessor", "SsmlTextProcessor", "TextProcessor"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

MAX_TEXT_LENGTH: Final[int] = 5000

_SSML_ESCAPES: Final[dict[str, str]] = {
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&apos;",
}


class TextProcessor:
    """Base text processor.

    ``validate`` returns an error description instead of raising, leaving it to the adapter
    to pick the matching exception class.
    """

    @staticmethod
    def normalize(text: str) -> str:
        """Collapse runs of whitespace into single spaces and trim the ends."""
        return " ".join(str(text or "").split())

    @staticmethod
    def escape_ssml(text: str) -> str:
        return "".join(_SSML_ESCAPES.get(char, char) for char in text)

    @staticmethod
    def validate(text: str, max_length: int = MAX_TEXT_LENGTH) -> str | None:
        """Check text before it is sent to a provider.

        Returns:
            str | None: 'empty' for blank text, 'too_long' above the limit, otherwise None.
        """
        if not text or not text.strip():
            return "empty"
        if len(text) > max_length:
            return "too_long"
        return None

    def format(self, text: str, element_kind: ElementKind = ElementKind.NORMAL) -> str:
        _ = element_kind
        return self.normalize(text)


class PlainTextProcessor(TextProcessor):
    """Whitespace normalization only."""


class SsmlTextProcessor(TextProcessor):
    """Produces an SSML fragment shaped by the element kind."""

    def format(self, text: str, element_kind: ElementKind = ElementKind.NORMAL) -> str:
        escaped: str = self.escape_ssml(self.normalize(text))
        match element_kind:
            case ElementKind.HEADING:
                return (
                    '<break time="0.5s"/><emphasis level="strong"><prosody rate="slow">'
                    f'{escaped}</prosody></emphasis><break time="1s"/>'
                )
            case ElementKind.PARAGRAPH:
                return f'{escaped}<break time="0.3s"/>'
            case ElementKind.ITALIC:
                return f'<emphasis level="moderate">{escaped}</emphasis>'
            case ElementKind.BOLD:
                return f'<emphasis level="strong">{escaped}</emphasis>'
            case _:
                return escaped
