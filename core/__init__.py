"""Core components of the reader TTS engine.

This package contains the version string and the text-to-speech orchestration package.
"""

from core.version import VERSION

__all__: list[str] = ["VERSION"]
