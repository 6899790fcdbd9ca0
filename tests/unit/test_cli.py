from __future__ import annotations

import asyncio
import json
from argparse import Namespace
from pathlib import Path

import pytest

from studycards import cli
from studycards.decoder import decode_flashcards
from studycards.exceptions import DependencyError
from studycards.settings import Settings
from studycards.typing.enums import InputMode, OutcomeStatus
from studycards.typing.models import Flashcard, GenerationOutcome

_CARD = Flashcard(term="Mitosis", definition="Cell division", mnemonic="My Tiny Owl Splits")


def test_build_parser_supports_version_flag(capsys) -> None:
    parser = cli.build_parser()

    with pytest.raises(SystemExit) as exc_info:
        parser.parse_args(["--version"])
    assert exc_info.value.code == 0

    captured = capsys.readouterr()
    assert "0.1.0" in captured.out


def test_build_parser_pdf_defaults() -> None:
    args = cli.build_parser().parse_args(["pdf", "--input", "notes.pdf"])

    assert args.command == "pdf"
    assert args.input_path == Path("notes.pdf")
    assert args.page_selection == ""
    assert args.output_path is None
    assert args.export_path is None


def test_build_parser_text_requires_one_topic_source() -> None:
    parser = cli.build_parser()

    with pytest.raises(SystemExit):
        parser.parse_args(["text"])
    with pytest.raises(SystemExit):
        parser.parse_args(["text", "--topic", "a", "--topic-file", "b.txt"])


def test_build_session_reads_topic_file(tmp_path: Path) -> None:
    topic_file = tmp_path / "topic.txt"
    topic_file.write_text("Photosynthesis", encoding="utf-8")
    args = Namespace(command="text", topic=None, topic_file=topic_file)

    session = cli._build_session(args, Settings())

    assert session.mode == InputMode.TEXT
    assert session.topic == "Photosynthesis"


def test_build_session_for_pdf() -> None:
    args = Namespace(command="pdf", input_path=Path("notes.pdf"), page_selection="1-3")

    session = cli._build_session(args, Settings())

    assert session.mode == InputMode.PDF
    assert session.pdf_path == Path("notes.pdf")
    assert session.page_selection == "1-3"


def test_persist_flashcards_writes_json_array(tmp_path: Path) -> None:
    output_path = tmp_path / "nested" / "cards.json"

    cli.persist_flashcards([_CARD], output_path)

    assert decode_flashcards(output_path.read_text(encoding="utf-8")) == [_CARD]


def test_main_runs_text_flow(mocker, tmp_path: Path) -> None:
    output_path = tmp_path / "cards.json"
    outcome = GenerationOutcome(status=OutcomeStatus.SUCCESS, flashcards=[_CARD])

    mocker.patch("studycards.cli.get_settings", return_value=Settings())
    mocker.patch("studycards.cli.ensure_cli_dependencies")
    mocker.patch("studycards.cli._generate")
    mocker.patch("studycards.cli.run_async", return_value=outcome)
    mock_export = mocker.patch("studycards.cli.export_flashcards_pdf")

    result = cli.main(["text", "--topic", "cells", "--output", str(output_path)])

    assert result == cli.EXIT_OK
    assert json.loads(output_path.read_text(encoding="utf-8"))[0]["term"] == "Mitosis"
    mock_export.assert_not_called()


def test_main_exports_when_requested(mocker, tmp_path: Path) -> None:
    output_path = tmp_path / "cards.json"
    export_path = tmp_path / "cards.pdf"
    outcome = GenerationOutcome(status=OutcomeStatus.SUCCESS, flashcards=[_CARD])

    mocker.patch("studycards.cli.get_settings", return_value=Settings())
    mocker.patch("studycards.cli.ensure_cli_dependencies")
    mocker.patch("studycards.cli._generate")
    mocker.patch("studycards.cli.run_async", return_value=outcome)
    mock_export = mocker.patch("studycards.cli.export_flashcards_pdf")

    result = cli.main(
        ["pdf", "--input", "notes.pdf", "--output", str(output_path), "--export", str(export_path)],
    )

    assert result == cli.EXIT_OK
    mock_export.assert_called_once_with([_CARD], export_path)


@pytest.mark.parametrize(
    ("status", "expected"),
    [
        (OutcomeStatus.CANCELLED, cli.EXIT_CANCELLED),
        (OutcomeStatus.FAILED, cli.EXIT_FAILED),
        (OutcomeStatus.EMPTY, cli.EXIT_FAILED),
        (OutcomeStatus.INVALID_INPUT, cli.EXIT_FAILED),
    ],
)
def test_finish_generation_exit_codes(tmp_path: Path, status: OutcomeStatus, expected: int) -> None:
    output_path = tmp_path / "cards.json"
    args = Namespace(output_path=output_path, export_path=None)

    result = cli._finish_generation(GenerationOutcome(status=status, message="msg"), args)

    assert result == expected
    assert not output_path.exists()


def test_main_returns_failure_on_missing_dependencies(mocker) -> None:
    mocker.patch("studycards.cli.get_settings", return_value=Settings())
    mocker.patch(
        "studycards.cli.ensure_cli_dependencies",
        side_effect=DependencyError(missing_package=["pymupdf"], message="pdf"),
    )
    mock_run = mocker.patch("studycards.cli.run_async")

    assert cli.main(["pdf", "--input", "notes.pdf"]) == cli.EXIT_FAILED
    mock_run.assert_not_called()


def test_main_returns_cancelled_on_keyboard_interrupt(mocker) -> None:
    mocker.patch("studycards.cli.get_settings", return_value=Settings())
    mocker.patch("studycards.cli.ensure_cli_dependencies")
    mocker.patch("studycards.cli._generate")
    mocker.patch("studycards.cli.run_async", side_effect=KeyboardInterrupt)

    assert cli.main(["text", "--topic", "cells"]) == cli.EXIT_CANCELLED


def test_main_export_command(mocker, tmp_path: Path) -> None:
    cards_path = tmp_path / "cards.json"
    output_path = tmp_path / "cards.pdf"
    cli.persist_flashcards([_CARD], cards_path)

    mocker.patch("studycards.cli.get_settings", return_value=Settings())
    mocker.patch("studycards.cli.ensure_cli_dependencies")
    mock_export = mocker.patch("studycards.cli.export_flashcards_pdf")

    result = cli.main(["export", "--cards", str(cards_path), "--output", str(output_path)])

    assert result == cli.EXIT_OK
    mock_export.assert_called_once_with([_CARD], output_path)


@pytest.mark.parametrize("content", [None, "not json", '{"term": "x"}'])
def test_main_export_rejects_unusable_cards_file(mocker, tmp_path: Path, content: str | None) -> None:
    cards_path = tmp_path / "cards.json"
    if content is not None:
        cards_path.write_text(content, encoding="utf-8")

    mocker.patch("studycards.cli.get_settings", return_value=Settings())
    mocker.patch("studycards.cli.ensure_cli_dependencies")
    mock_export = mocker.patch("studycards.cli.export_flashcards_pdf")

    assert cli.main(["export", "--cards", str(cards_path)]) == cli.EXIT_FAILED
    mock_export.assert_not_called()


def test_main_defaults_output_to_results_dir(mocker, tmp_path: Path) -> None:
    outcome = GenerationOutcome(status=OutcomeStatus.SUCCESS, flashcards=[_CARD])

    mocker.patch("studycards.cli.get_settings", return_value=Settings(results_dir=str(tmp_path / "out")))
    mocker.patch("studycards.cli.ensure_cli_dependencies")
    mocker.patch("studycards.cli._generate")
    mocker.patch("studycards.cli.run_async", return_value=outcome)

    assert cli.main(["text", "--topic", "cells"]) == cli.EXIT_OK
    assert (tmp_path / "out" / "flashcards.json").exists()


def test_main_without_command_prints_help(mocker, capsys) -> None:
    mocker.patch("studycards.cli.get_settings", return_value=Settings())

    assert cli.main([]) == cli.EXIT_OK
    assert "usage" in capsys.readouterr().out.lower()


def test_generate_closes_http_clients() -> None:
    settings = Settings()
    clients: list = []
    outcome = GenerationOutcome(status=OutcomeStatus.SUCCESS, flashcards=[_CARD])

    class _Session:
        async def generate(self, on_progress=None) -> GenerationOutcome:
            _ = on_progress
            clients.append(settings.get_async_httpx_client())
            return outcome

        def cancel(self) -> bool:
            return False

    result = asyncio.run(cli._generate(_Session(), settings))  # type: ignore[arg-type]

    assert result is outcome
    assert settings.httpx_clients == {}
    assert clients[0].is_closed
