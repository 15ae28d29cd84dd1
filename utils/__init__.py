"""Utility modules for the reader TTS engine.

This package provides logging configuration and provider-specific text formatting.
"""

from utils.logger_utils import LoggerUtils
from utils.text_processor import PlainTextProcessor, SsmlTextProcessor, TextProcessor

__all__: list[str] = ["LoggerUtils", "PlainTextProcessor", "SsmlTextProcessor", "TextProcessor"]
