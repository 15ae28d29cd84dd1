from __future__ import annotations

from textwrap import dedent
from typing import TYPE_CHECKING

import pytest

from config.loader import (
    ConfigFileNotFoundError,
    ConfigFormatError,
    ConfigLoader,
    ConfigTypeError,
    ConfigValueError,
)

if TYPE_CHECKING:
    from pathlib import Path


def _write_ini(tmp_path: Path, content: str) -> Path:
    ini_path: Path = tmp_path / "reader_tts.ini"
    ini_path.write_text(dedent(content), encoding="utf-8")
    return ini_path


def test_config_loader_raises_for_missing_file(tmp_path: Path) -> None:
    ini_path: Path = tmp_path / "missing.ini"
    with pytest.raises(ConfigFileNotFoundError, match="missing.ini"):
        ConfigLoader(config_filename=str(ini_path), script_name="test")


def test_config_loader_reads_typed_values(tmp_path: Path) -> None:
    ini_path: Path = _write_ini(
        tmp_path,
        """
        [GENERAL]
        DEBUG = False
        LOG_LEVEL = "WARNING"

        [TTS]
        PROVIDER = "azure"
        PROVIDERS = ["elevenlabs", "azure"]
        LANGUAGE = "nl"
        CHUNK_LIMIT = 0
        HIGHLIGHT_INTERVAL = 0.25
        CONTINUE_TO_NEXT_PAGE = True

        [AZURE]
        SERVER = "http://localhost:3000/api/tts/azure"
        TIMEOUT = "15"
        VOICE_ID = "nl-NL-ColetteNeural"
        """,
    )

    loader = ConfigLoader(config_filename=str(ini_path), script_name="test")

    assert loader.config.GENERAL.LOG_LEVEL == "WARNING"
    assert loader.config.GENERAL.SCRIPT_NAME == "test"
    assert loader.config.TTS.PROVIDER == "azure"
    assert loader.config.TTS.LANGUAGE == "nl"
    assert loader.config.TTS.CHUNK_LIMIT == 0
    assert loader.config.TTS.HIGHLIGHT_INTERVAL == pytest.approx(0.25)
    assert loader.config.TTS.CONTINUE_TO_NEXT_PAGE is True
    assert loader.config.AZURE.TIMEOUT == pytest.approx(15.0)
    assert loader.config.AZURE.VOICE_ID == "nl-NL-ColetteNeural"


def test_undefined_sections_keep_defaults(tmp_path: Path) -> None:
    ini_path: Path = _write_ini(
        tmp_path,
        """
        [GENERAL]
        DEBUG = False
        """,
    )

    loader = ConfigLoader(config_filename=str(ini_path), script_name="test")

    assert loader.config.TTS.PROVIDER == "elevenlabs"
    assert loader.config.TTS.MAX_TEXT_LENGTH == 5000
    assert loader.config.ELEVENLABS.SERVER == "http://127.0.0.1:3000/api/tts/elevenlabs"
    assert loader.config.MOCK.VOICE_ID == "mock-sine"


def test_command_line_overrides(tmp_path: Path) -> None:
    ini_path: Path = _write_ini(
        tmp_path,
        """
        [TTS]
        PROVIDER = "elevenlabs"
        PROVIDERS = ["elevenlabs"]
        """,
    )

    loader = ConfigLoader(
        config_filename=str(ini_path), script_name="test", debug=True, provider="mock", mock=True
    )

    assert loader.config.GENERAL.DEBUG is True
    assert loader.config.TTS.PROVIDER == "mock"
    assert loader.config.TTS.MOCK_TTS is True
    # The active provider is always part of the configured providers
    assert loader.config.TTS.PROVIDERS == ["elevenlabs", "mock"]


def test_unknown_provider_raises_config_value_error(tmp_path: Path) -> None:
    ini_path: Path = _write_ini(
        tmp_path,
        """
        [TTS]
        PROVIDER = "google"
        """,
    )

    with pytest.raises(ConfigValueError, match="google"):
        ConfigLoader(config_filename=str(ini_path), script_name="test")


def test_invalid_providers_type_raises_format_error(tmp_path: Path) -> None:
    ini_path: Path = _write_ini(
        tmp_path,
        """
        [TTS]
        PROVIDERS = 1
        """,
    )

    with pytest.raises(ConfigTypeError):
        ConfigLoader(config_filename=str(ini_path), script_name="test")


def test_invalid_boolean_value_raises_config_value_error(tmp_path: Path) -> None:
    ini_path: Path = _write_ini(
        tmp_path,
        """
        [TTS]
        MOCK_TTS = maybe
        """,
    )

    with pytest.raises(ConfigValueError):
        ConfigLoader(config_filename=str(ini_path), script_name="test")


@pytest.mark.parametrize(
    ("key", "value"),
    [
        ("MAX_TEXT_LENGTH", "0"),
        ("WORDS_PER_MINUTE", "-10"),
        ("CHUNK_LIMIT", "-1"),
    ],
)
def test_out_of_range_limits_raise_config_value_error(tmp_path: Path, key: str, value: str) -> None:
    ini_path: Path = _write_ini(tmp_path, f"[TTS]\n{key} = {value}\n")

    with pytest.raises(ConfigValueError, match=key):
        ConfigLoader(config_filename=str(ini_path), script_name="test")


def test_unquoted_string_raises_format_error(tmp_path: Path) -> None:
    ini_path: Path = _write_ini(
        tmp_path,
        """
        [ELEVENLABS]
        VOICE_ID = not a literal
        """,
    )

    with pytest.raises(ConfigFormatError):
        ConfigLoader(config_filename=str(ini_path), script_name="test")


def test_file_without_section_header_raises_format_error(tmp_path: Path) -> None:
    ini_path: Path = _write_ini(tmp_path, "DEBUG = True\n")

    with pytest.raises(ConfigFormatError, match="Failed to parse"):
        ConfigLoader(config_filename=str(ini_path), script_name="test")
