"""Read a text aloud from the command line.

The text is taken from a file when the argument names one, otherwise the argument itself
is read. Pages of a text file are separated by form feed characters; with
CONTINUE_TO_NEXT_PAGE enabled the whole file is read.

Press Ctrl-C to stop reading.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Final, NoReturn, cast

from config.loader import ConfigLoader, ConfigLoaderError
from core.tts.interface import TTSExceptionError
from core.tts.manager import TTSManager
from core.version import VERSION
from handlers.text_source import PlainTextSource
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    from config.loader import Config
    from models.state_models import ErrorInfo, PlaybackState
    from models.voice_models import VoiceInfo
    from utils.logger_utils import LevelType

CFG_FILE: Final[str] = "reader_tts.ini"


def check_python_version() -> None:
    """Check if Python version is 3.13 or later.

    Raises:
        RuntimeError: If Python version is below 3.13.
    """
    if sys.version_info < (3, 13):
        msg = "Python 3.13 or later is required"
        raise RuntimeError(msg)


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> NoReturn:
        print(f"\n{message}\n", file=sys.stderr)
        self.print_help(sys.stderr)
        raise SystemExit(2)


def parse_arguments(argv: list[str] | None = None) -> argparse.Namespace:
    parser = _ArgumentParser(
        description="Read a text aloud with a cloud text-to-speech provider",
        epilog='Example: python read_aloud.py --provider azure "Hello. World."',
    )
    parser.add_argument("source", nargs="?", metavar="TEXT_OR_FILE", help="Text file to read, or the text itself")
    parser.add_argument("--provider", dest="provider", metavar="NAME", help="Override TTS.PROVIDER")
    parser.add_argument("--voice", dest="voice", metavar="VOICE_ID", help="Voice to read with")
    parser.add_argument("--list-voices", dest="list_voices", action="store_true", help="List voices and exit")
    parser.add_argument("--config", dest="config", metavar="FILE", default=CFG_FILE, help="Configuration file")
    parser.add_argument("--debug", dest="debug", action="store_true", help="Enable debug logging and strict mode")
    parser.add_argument("--mock", dest="mock", action="store_true", help="Play generated tones instead of speech")
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    args: argparse.Namespace = parser.parse_args(argv)
    if not args.list_voices and not args.source:
        parser.error("Nothing to read: pass a text or a file name")
    return args


def load_config(args: argparse.Namespace) -> Config:
    """Load configuration file and apply CLI overrides.

    Raises:
        ConfigLoaderError: If configuration file cannot be loaded.
    """
    script_name: str = Path(sys.argv[0]).name
    return ConfigLoader(
        config_filename=args.config,
        script_name=script_name,
        debug=args.debug,
        provider=args.provider,
        mock=args.mock,
    ).config


def load_text(source: str) -> str:
    path = Path(source)
    if path.is_file():
        return path.read_text(encoding="utf-8")
    return source


def setup_logging(config: Config) -> None:
    logger_utils = LoggerUtils(config.GENERAL.LOG_FILE, debug=config.GENERAL.DEBUG)
    if not config.GENERAL.DEBUG:
        logger_utils.set_level(cast("LevelType", config.GENERAL.LOG_LEVEL))


def print_voices(voices: list[VoiceInfo]) -> None:
    for voice in voices:
        print(f"{voice.id:<40} {voice.name:<40} {voice.language:<10} {voice.gender or '-'}")


def print_error(error: ErrorInfo) -> None:
    print(f"\nError [{error.code}]: {error.message}", file=sys.stderr)


async def run(args: argparse.Namespace, config: Config) -> int:
    """Read the text, or list voices, and return the exit status."""
    source = PlainTextSource(load_text(args.source or ""), max_chunk_length=config.TTS.MAX_TEXT_LENGTH)
    errors: list[ErrorInfo] = []

    def on_error(error: ErrorInfo) -> None:
        errors.append(error)
        print_error(error)

    manager = TTSManager(config, source, on_error=on_error)

    def show_state(state: PlaybackState) -> None:
        print(f"[{state.engine_state}]", file=sys.stderr)

    try:
        if not await manager.initialize():
            if (error := manager.get_state().error) is not None:
                print_error(error)
            return 1

        if args.list_voices:
            print_voices(await manager.list_voices())
            return 0

        if args.voice:
            await manager.select_voice(args.voice)
        if config.GENERAL.DEBUG:
            manager.subscribe(show_state)
        await manager.start_reading()
    except TTSExceptionError as err:
        print(f"\nError [{err.code}]: {err.message}", file=sys.stderr)
        return 1
    finally:
        await manager.close()
    return 1 if errors else 0


def main(argv: list[str] | None = None) -> int:
    check_python_version()
    args: argparse.Namespace = parse_arguments(argv)
    try:
        config: Config = load_config(args)
    except ConfigLoaderError as err:
        print("\nError: Failed to load configuration file.", file=sys.stderr)
        print(f"Details: {err}", file=sys.stderr)
        return 1

    setup_logging(config)
    try:
        return asyncio.run(run(args, config))
    except KeyboardInterrupt:
        print("\nReading stopped by user.", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
