"""Input and transport handlers for the reader TTS engine.

This package provides the asynchronous HTTP client used by the provider adapters and the
text chunk producers the orchestration engine reads from.
"""

from handlers.async_comm import (
    AsyncCommConnectionError,
    AsyncCommError,
    AsyncCommInvalidContentTypeError,
    AsyncCommTimeoutError,
    AsyncHttp,
    HttpResponse,
)
from handlers.text_source import PageNavigator, PlainTextSource, TextChunkProducer, split_sentences

__all__: list[str] = [
    "AsyncCommConnectionError",
    "AsyncCommError",
    "AsyncCommInvalidContentTypeError",
    "AsyncCommTimeoutError",
    "AsyncHttp",
    "HttpResponse",
    "PageNavigator",
    "PlainTextSource",
    "TextChunkProducer",
    "split_sentences",
]
