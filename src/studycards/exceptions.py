"""Package exceptions."""

from __future__ import annotations

from dataclasses import dataclass


class PackageError(Exception):
    """Root exception for the package."""


@dataclass(frozen=True)
class SettingsError(PackageError):
    """Raised when settings cannot be loaded or validated."""

    message: str = "Failed to load settings"
    exc: BaseException | None = None

    def __str__(self) -> str:
        """Return error message payload."""
        return f"{self.message}: {self.exc}" if self.exc else self.message


@dataclass(frozen=True)
class AsyncExecutionError(PackageError):
    """Raised when an async operation fails in compatibility runner."""

    result: BaseException
    message: str = "Async operation failed"

    def __str__(self) -> str:
        """Return error message payload."""
        return f"{self.message}: {self.result}"


@dataclass(frozen=True)
class DependencyError(PackageError):
    """Raised when optional runtime dependencies are missing."""

    missing_package: list[str]
    message: str

    def __str__(self) -> str:
        """Return error message payload."""
        return f"Missing runtime dependencies for '{self.message}': {', '.join(self.missing_package)}"


class PipelineError(PackageError):
    """Base class for errors that terminate a PDF pipeline run."""


@dataclass(frozen=True)
class DocumentLoadError(PipelineError):
    """Raised when source bytes cannot be opened as a PDF document."""

    message: str = "Failed to load PDF document"
    exc: BaseException | None = None

    def __str__(self) -> str:
        """Return error message payload."""
        return f"{self.message}: {self.exc}" if self.exc else self.message


@dataclass(frozen=True)
class InvalidSelectionError(PipelineError):
    """Raised when a non-blank page selection resolves to no pages."""

    selection: str
    page_count: int

    def __str__(self) -> str:
        """Return error message payload."""
        return (
            f"Invalid page selection or range is out of bounds: '{self.selection}' "
            f"(document has {self.page_count} pages)"
        )


@dataclass(frozen=True)
class PageRenderError(PipelineError):
    """Raised when a single page cannot be rasterized."""

    page_number: int
    exc: BaseException | None = None

    def __str__(self) -> str:
        """Return error message payload."""
        message = f"Failed to render page {self.page_number}"
        return f"{message}: {self.exc}" if self.exc else message


@dataclass(frozen=True)
class PipelineCancelledError(PipelineError):
    """Raised when a run is cooperatively cancelled."""

    message: str = "Processing aborted by user"

    def __str__(self) -> str:
        """Return error message payload."""
        return self.message


@dataclass(frozen=True)
class BackendError(PackageError):
    """Raised when a generation backend call fails."""

    message: str

    def __str__(self) -> str:
        """Return error message payload."""
        return self.message


@dataclass(frozen=True)
class EmptyResponseError(BackendError):
    """Raised when the generation backend returns no content."""

    message: str = "Generation service returned an empty response"


@dataclass(frozen=True)
class ResponseDecodeError(PackageError):
    """Base class for responses that do not decode into flashcards."""

    message: str

    def __str__(self) -> str:
        """Return error message payload."""
        return self.message


@dataclass(frozen=True)
class MalformedResponseError(ResponseDecodeError):
    """Raised when response text is not parseable JSON."""


@dataclass(frozen=True)
class ResponseShapeError(ResponseDecodeError):
    """Raised when response JSON is not an array of flashcard records."""


@dataclass(frozen=True)
class SessionBusyError(PackageError):
    """Raised when a generation starts while another one is in flight."""

    message: str = "A generation is already in progress"

    def __str__(self) -> str:
        """Return error message payload."""
        return self.message


@dataclass(frozen=True)
class ExportError(PackageError):
    """Raised when flashcards cannot be written to a document."""

    message: str
    exc: BaseException | None = None

    def __str__(self) -> str:
        """Return error message payload."""
        return f"{self.message}: {self.exc}" if self.exc else self.message
