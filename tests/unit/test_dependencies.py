from __future__ import annotations

import pytest

from studycards.dependencies import ensure_cli_dependencies
from studycards.exceptions import DependencyError


@pytest.mark.parametrize("command", ["text", "pdf", "export"])
def test_ensure_cli_dependencies_succeeds(monkeypatch, command: str) -> None:
    monkeypatch.setattr("studycards.dependencies._is_module_available", lambda module_name: True)
    ensure_cli_dependencies(command)


def test_ensure_cli_dependencies_reports_distribution_names(monkeypatch) -> None:
    monkeypatch.setattr("studycards.dependencies._is_module_available", lambda module_name: module_name != "fitz")

    with pytest.raises(DependencyError, match="Missing runtime dependencies for 'pdf'") as exc_info:
        ensure_cli_dependencies("pdf")

    assert exc_info.value.missing_package == ["pymupdf"]


def test_text_command_does_not_need_pymupdf(monkeypatch) -> None:
    monkeypatch.setattr("studycards.dependencies._is_module_available", lambda module_name: module_name != "fitz")
    ensure_cli_dependencies("text")
