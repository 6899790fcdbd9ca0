from __future__ import annotations

from studycards.exceptions import (
    AsyncExecutionError,
    BackendError,
    DependencyError,
    DocumentLoadError,
    EmptyResponseError,
    ExportError,
    InvalidSelectionError,
    MalformedResponseError,
    PackageError,
    PageRenderError,
    PipelineCancelledError,
    PipelineError,
    ResponseDecodeError,
    ResponseShapeError,
    SessionBusyError,
    SettingsError,
)


def test_root_exception_hierarchy() -> None:
    for error_type in (
        SettingsError,
        AsyncExecutionError,
        DependencyError,
        PipelineError,
        BackendError,
        ResponseDecodeError,
        SessionBusyError,
        ExportError,
    ):
        assert issubclass(error_type, PackageError)


def test_pipeline_error_family() -> None:
    for error_type in (DocumentLoadError, InvalidSelectionError, PageRenderError, PipelineCancelledError):
        assert issubclass(error_type, PipelineError)
    assert issubclass(EmptyResponseError, BackendError)
    assert issubclass(MalformedResponseError, ResponseDecodeError)
    assert issubclass(ResponseShapeError, ResponseDecodeError)


def test_error_messages() -> None:
    assert str(PipelineCancelledError()) == "Processing aborted by user"
    assert str(DocumentLoadError()) == "Failed to load PDF document"
    assert str(DocumentLoadError(exc=ValueError("bad xref"))) == "Failed to load PDF document: bad xref"
    assert str(PageRenderError(page_number=3)) == "Failed to render page 3"
    assert str(InvalidSelectionError(selection="9", page_count=5)) == (
        "Invalid page selection or range is out of bounds: '9' (document has 5 pages)"
    )
    assert str(DependencyError(missing_package=["pymupdf"], message="pdf")) == (
        "Missing runtime dependencies for 'pdf': pymupdf"
    )
    assert str(ExportError(message="No flashcards to export")) == "No flashcards to export"
