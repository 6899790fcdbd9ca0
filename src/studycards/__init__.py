"""StudyCards package."""

from studycards.async_runner import run_async
from studycards.exceptions import (
    AsyncExecutionError,
    BackendError,
    DependencyError,
    DocumentLoadError,
    InvalidSelectionError,
    MalformedResponseError,
    PackageError,
    PageRenderError,
    PipelineCancelledError,
    ResponseShapeError,
    SettingsError,
)
from studycards.logging import configure_logging, get_logger
from studycards.settings import Settings, get_settings

__version__ = "0.1.0"

# Initialize package logger at import time via `get_logger`.
logger = get_logger("studycards")

__all__ = [
    "AsyncExecutionError",
    "BackendError",
    "DependencyError",
    "DocumentLoadError",
    "InvalidSelectionError",
    "MalformedResponseError",
    "PackageError",
    "PageRenderError",
    "PipelineCancelledError",
    "ResponseShapeError",
    "Settings",
    "SettingsError",
    "__version__",
    "configure_logging",
    "get_logger",
    "get_settings",
    "logger",
    "run_async",
]
