"""Project enums."""

from __future__ import annotations

from enum import StrEnum


class _EnumMixin(StrEnum):
    """Shared conversion helpers for user-facing enums."""

    @classmethod
    def from_str(cls, value: str) -> _EnumMixin:
        """Parse enum from string.

        Args:
            value: Raw string value.

        Raises:
            ValueError: If the value is not supported.

        Returns:
            _EnumMixin: Parsed enum value.
        """
        try:
            return cls(value.lower())
        except ValueError as exc:
            supported = ", ".join(member.value for member in cls)
            message = f"Unsupported {cls.__name__} value '{value}'. Expected one of: {supported}"
            raise ValueError(message) from exc


class InputMode(_EnumMixin):
    """Source of the material flashcards are generated from."""

    TEXT = "text"
    PDF = "pdf"


class ImageFormat(_EnumMixin):
    """Raster encodings supported for rendered pages."""

    PNG = "png"
    JPEG = "jpeg"

    @property
    def mime_type(self) -> str:
        """Return the MIME type used as encoding tag."""
        return f"image/{self.value}"


class OutcomeStatus(_EnumMixin):
    """Terminal state of one generation request."""

    SUCCESS = "success"
    EMPTY = "empty"
    CANCELLED = "cancelled"
    INVALID_INPUT = "invalid_input"
    FAILED = "failed"
