"""CLI entry point for StudyCards."""

from __future__ import annotations

import argparse
import asyncio
import signal
from pathlib import Path
from typing import TYPE_CHECKING

from studycards import __version__, logger
from studycards.async_runner import run_async
from studycards.backends.multimodal_openai import MultimodalLLMBackend
from studycards.decoder import decode_flashcards, encode_flashcards
from studycards.dependencies import ensure_cli_dependencies
from studycards.exceptions import PackageError
from studycards.export import export_flashcards_pdf
from studycards.logging import configure_logging
from studycards.pdf_render import FitzPageRasterizer
from studycards.session import FlashcardSession
from studycards.settings import get_settings
from studycards.typing.enums import InputMode, OutcomeStatus

if TYPE_CHECKING:
    from collections.abc import Sequence

    from studycards.settings import Settings
    from studycards.typing.models import Flashcard, GenerationOutcome

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CANCELLED = 130


def build_parser() -> argparse.ArgumentParser:
    """Create the command-line parser.

    Returns:
        argparse.ArgumentParser: The configured argument parser.
    """
    parser = argparse.ArgumentParser(prog="studycards")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command")

    text_parser = subparsers.add_parser("text", help="Generate flashcards from typed text")
    topic_group = text_parser.add_mutually_exclusive_group(required=True)
    topic_group.add_argument("--topic", default=None)
    topic_group.add_argument("--topic-file", type=Path, default=None, dest="topic_file")
    _add_output_arguments(text_parser)

    pdf_parser = subparsers.add_parser("pdf", help="Generate flashcards from selected PDF pages")
    pdf_parser.add_argument("--input", required=True, type=Path, dest="input_path")
    pdf_parser.add_argument(
        "--pages",
        default="",
        dest="page_selection",
        help='Pages to process, e.g. "1, 3, 5-8". Defaults to every page.',
    )
    _add_output_arguments(pdf_parser)

    export_parser = subparsers.add_parser("export", help="Export saved flashcards to a printable PDF")
    export_parser.add_argument("--cards", required=True, type=Path, dest="cards_path")
    export_parser.add_argument(
        "--output",
        type=Path,
        default=None,
        dest="output_path",
        help="Defaults to <RESULTS_DIR>/flashcards.pdf.",
    )

    return parser


def _add_output_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        dest="output_path",
        help="Defaults to <RESULTS_DIR>/flashcards.json.",
    )
    parser.add_argument("--export", type=Path, default=None, dest="export_path")


def _resolve_output_path(args: argparse.Namespace, settings: Settings) -> None:
    """Fill in the default output path under `RESULTS_DIR`."""
    if args.output_path is None:
        filename = "flashcards.pdf" if args.command == "export" else "flashcards.json"
        args.output_path = Path(settings.results_dir) / filename


def persist_flashcards(cards: Sequence[Flashcard], path: Path) -> None:
    """Persist flashcards as a JSON array.

    Args:
        cards (Sequence[Flashcard]): Flashcards to write.
        path (Path): Output path.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(encode_flashcards(cards, indent=2), encoding="utf-8")


def _build_session(args: argparse.Namespace, settings: Settings) -> FlashcardSession:
    """Build a session preloaded with the CLI input.

    Args:
        args (argparse.Namespace): Parsed CLI args.
        settings (Settings): Runtime settings.

    Returns:
        FlashcardSession: Session ready to generate.
    """
    session = FlashcardSession(
        MultimodalLLMBackend(settings),
        rasterizer=FitzPageRasterizer.from_settings(settings),
    )
    if args.command == "text":
        session.set_mode(InputMode.TEXT)
        topic = args.topic
        if args.topic_file is not None:
            topic = args.topic_file.read_text(encoding="utf-8")
        session.topic = topic or ""
    else:
        session.set_mode(InputMode.PDF)
        session.select_pdf(args.input_path)
        session.page_selection = args.page_selection
    return session


def _log_progress(percent: int) -> None:
    logger.info("Rendering pages", extra={"percent": percent})


async def _generate(session: FlashcardSession, settings: Settings) -> GenerationOutcome:
    """Run one generation, turning Ctrl+C into a cooperative cancellation.

    While pages are being rendered Ctrl+C flips the session's cancellation
    signal; afterwards it cancels the task.

    Args:
        session (FlashcardSession): Prepared session.
        settings (Settings): Runtime settings.

    Returns:
        GenerationOutcome: Generation outcome.
    """
    loop = asyncio.get_running_loop()
    task = asyncio.current_task()

    def _on_interrupt() -> None:
        if not session.cancel() and task is not None:
            task.cancel()

    try:
        loop.add_signal_handler(signal.SIGINT, _on_interrupt)
        handler_installed = True
    except (NotImplementedError, RuntimeError, ValueError):
        handler_installed = False

    try:
        return await session.generate(on_progress=_log_progress)
    finally:
        if handler_installed:
            loop.remove_signal_handler(signal.SIGINT)
        await settings.aclose_httpx_clients()


def _finish_generation(outcome: GenerationOutcome, args: argparse.Namespace) -> int:
    """Persist and export a successful outcome and pick the exit code.

    Args:
        outcome (GenerationOutcome): Generation outcome.
        args (argparse.Namespace): Parsed CLI args.

    Returns:
        int: Exit code.
    """
    if outcome.status == OutcomeStatus.CANCELLED:
        logger.info(outcome.message)
        return EXIT_CANCELLED
    if not outcome.ok:
        logger.error(outcome.message, extra={"status": outcome.status.value})
        return EXIT_FAILED

    persist_flashcards(outcome.flashcards, args.output_path)
    logger.info(
        "Flashcards saved",
        extra={"output_path": str(args.output_path), "count": len(outcome.flashcards)},
    )
    if args.export_path is not None:
        export_flashcards_pdf(outcome.flashcards, args.export_path)
    return EXIT_OK


def _run_export(args: argparse.Namespace) -> int:
    cards = decode_flashcards(args.cards_path.read_text(encoding="utf-8"))
    export_flashcards_pdf(cards, args.output_path)
    return EXIT_OK


def main(argv: Sequence[str] | None = None) -> int:
    """Run the CLI.

    Args:
        argv (Sequence[str] | None): Arguments, `sys.argv[1:]` by default.

    Returns:
        int: Exit code (0 for success, 1 for error, 130 when cancelled).
    """
    settings = get_settings()
    configure_logging(settings=settings)

    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return EXIT_OK

    _resolve_output_path(args, settings)

    try:
        ensure_cli_dependencies(args.command)
        if args.command == "export":
            return _run_export(args)

        session = _build_session(args, settings)
        outcome = run_async(_generate(session, settings))
        return _finish_generation(outcome, args)
    except PackageError:
        logger.exception("Command failed", extra={"command": args.command})
        return EXIT_FAILED
    except OSError:
        logger.exception("Could not read or write a file", extra={"command": args.command})
        return EXIT_FAILED
    except (KeyboardInterrupt, asyncio.CancelledError):
        logger.info("Aborted by user")
        return EXIT_CANCELLED
    finally:
        settings.close_httpx_clients()


if __name__ == "__main__":
    raise SystemExit(main())
