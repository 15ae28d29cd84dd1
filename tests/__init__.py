"""Unit tests for the reader TTS engine.

Tests use pytest with asyncio support. Provider gateways are served by aiohttp test
servers and the audio output is replaced by fakes, so no network or sound device is needed.
"""
