"""Interfaces between the pipeline, the generation backend and the exporter."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from studycards.typing.models import RasterImage


class DocumentHandle(Protocol):
    """Open paged document."""

    @property
    def page_count(self) -> int:
        """Return the number of pages in the document."""

    def close(self) -> None:
        """Release the underlying document."""


class PageRasterizer(Protocol):
    """Loads documents and renders single pages to raster images."""

    def load_document(self, data: bytes) -> DocumentHandle:
        """Open a document from raw bytes.

        Args:
            data: Raw document bytes.

        Returns:
            DocumentHandle: Open document.
        """

    def render_page(self, handle: DocumentHandle, page_number: int) -> RasterImage:
        """Render one page.

        Args:
            handle: Open document.
            page_number: Page to render (1-based).

        Returns:
            RasterImage: Encoded page image.
        """


class ContentGenerator(Protocol):
    """Generation service turning text or page images into raw flashcard JSON."""

    async def generate_from_text(self, text: str) -> str:
        """Generate flashcards from free text.

        Args:
            text: Source text.

        Returns:
            str: Raw response text expected to hold a JSON array.
        """

    async def generate_from_images(self, images: Sequence[RasterImage]) -> str:
        """Generate flashcards from rendered pages.

        Args:
            images: Rendered pages in page order.

        Returns:
            str: Raw response text expected to hold a JSON array.
        """


class DocumentWriter(Protocol):
    """Drawing primitives used to lay flashcards out on printable pages.

    Coordinates and sizes are millimetres from the top-left page corner.
    """

    @property
    def page_width(self) -> float:
        """Return the current page width."""

    @property
    def page_height(self) -> float:
        """Return the current page height."""

    def add_page(self) -> None:
        """Start a new page."""

    def rect(self, x: float, y: float, width: float, height: float) -> None:
        """Draw a rectangle outline."""

    def line(self, x1: float, y1: float, x2: float, y2: float) -> None:
        """Draw a straight line."""

    def text(
        self,
        lines: Sequence[str],
        x: float,
        y: float,
        *,
        font_size: float,
        style: str = "normal",
        align: str = "left",
    ) -> None:
        """Draw text lines with their first baseline at `y`."""

    def split_text_to_size(self, text: str, max_width: float, *, font_size: float) -> list[str]:
        """Wrap text into lines fitting `max_width`."""

    def save(self, path: Path) -> None:
        """Write the document to disk."""
