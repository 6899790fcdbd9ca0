"""Printable flashcard export.

Cards are laid out as a grid of boxes on A4 pages through the `DocumentWriter`
drawing primitives; `FitzDocumentWriter` implements them with PyMuPDF.
All layout values are millimetres.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Self

try:
    import fitz
except ImportError:  # pragma: no cover - optional dependency at runtime
    fitz: Any
    fitz = None

from studycards import logger
from studycards.exceptions import DependencyError, ExportError

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path
    from types import TracebackType

    from studycards.typing.models import Flashcard
    from studycards.typing.protocol import DocumentWriter

CARD_WIDTH = 85.0
CARD_HEIGHT = 65.0
MARGIN = 10.0
TERM_FONT_SIZE = 12.0
BODY_FONT_SIZE = 8.0
BODY_LINE_HEIGHT = 4.0
A4_SIZE = (210.0, 297.0)

_POINTS_PER_MM = 72.0 / 25.4
_LINE_HEIGHT_FACTOR = 1.15
_FONTS = {"normal": "helv", "bold": "hebo", "italic": "heit"}


def _mm(value: float) -> float:
    return value * _POINTS_PER_MM


class FitzDocumentWriter:
    """`DocumentWriter` producing a PDF with PyMuPDF."""

    def __init__(self, *, page_size: tuple[float, float] = A4_SIZE) -> None:
        """Create an empty document with one page.

        Args:
            page_size (tuple[float, float]): Page width and height in millimetres.

        Raises:
            DependencyError: If PyMuPDF is not installed.
        """
        if fitz is None:
            raise DependencyError(missing_package=["pymupdf"], message="PDF export")
        self._page_width, self._page_height = page_size
        self._document = fitz.open()
        self._page = self._new_page()

    def _new_page(self) -> fitz.Page:
        return self._document.new_page(width=_mm(self._page_width), height=_mm(self._page_height))

    @property
    def page_width(self) -> float:
        """Return the page width in millimetres."""
        return self._page_width

    @property
    def page_height(self) -> float:
        """Return the page height in millimetres."""
        return self._page_height

    @property
    def page_count(self) -> int:
        """Return the number of pages written so far."""
        return len(self._document)

    def add_page(self) -> None:
        """Start a new page."""
        self._page = self._new_page()

    def rect(self, x: float, y: float, width: float, height: float) -> None:
        """Draw a rectangle outline."""
        self._page.draw_rect(
            fitz.Rect(_mm(x), _mm(y), _mm(x + width), _mm(y + height)),
            color=(0, 0, 0),
            width=0.5,
        )

    def line(self, x1: float, y1: float, x2: float, y2: float) -> None:
        """Draw a straight line."""
        self._page.draw_line(
            fitz.Point(_mm(x1), _mm(y1)),
            fitz.Point(_mm(x2), _mm(y2)),
            color=(0, 0, 0),
            width=0.5,
        )

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
        """Draw text lines with their first baseline at `y`.

        With `align="center"`, `x` is the horizontal centre of each line.
        """
        fontname = _FONTS.get(style, _FONTS["normal"])
        line_step = font_size * _LINE_HEIGHT_FACTOR
        for index, line in enumerate(lines):
            left = _mm(x)
            if align == "center":
                left -= fitz.get_text_length(line, fontname=fontname, fontsize=font_size) / 2
            self._page.insert_text(
                fitz.Point(left, _mm(y) + index * line_step),
                line,
                fontname=fontname,
                fontsize=font_size,
            )

    def split_text_to_size(self, text: str, max_width: float, *, font_size: float) -> list[str]:
        """Greedily wrap text on spaces so each line fits `max_width`.

        Words wider than a full line are broken between characters.
        """
        limit = _mm(max_width)

        def _width(value: str) -> float:
            return fitz.get_text_length(value, fontname=_FONTS["normal"], fontsize=font_size)

        lines: list[str] = []
        current = ""
        for word in text.split():
            candidate = f"{current} {word}" if current else word
            if _width(candidate) <= limit:
                current = candidate
                continue
            if current:
                lines.append(current)
            current = ""
            for char in word:
                if current and _width(current + char) > limit:
                    lines.append(current)
                    current = ""
                current += char
        if current or not lines:
            lines.append(current)
        return lines

    def save(self, path: Path) -> None:
        """Write the document to disk."""
        path.parent.mkdir(parents=True, exist_ok=True)
        self._document.save(str(path), garbage=3, deflate=True)

    def close(self) -> None:
        """Release the in-memory document."""
        self._document.close()

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


def _draw_card(writer: DocumentWriter, card: Flashcard, x: float, y: float) -> None:
    """Draw one card box with its term heading and definition/mnemonic body."""
    writer.rect(x, y, CARD_WIDTH, CARD_HEIGHT)
    writer.text([card.term], x + CARD_WIDTH / 2, y + 8, font_size=TERM_FONT_SIZE, style="bold", align="center")
    writer.line(x, y + 12, x + CARD_WIDTH, y + 12)

    body_width = CARD_WIDTH - 10
    definition_lines = writer.split_text_to_size(
        f"Definition: {card.definition}",
        body_width,
        font_size=BODY_FONT_SIZE,
    )
    writer.text(definition_lines, x + 5, y + 18, font_size=BODY_FONT_SIZE)

    mnemonic_y = y + 18 + len(definition_lines) * BODY_LINE_HEIGHT
    mnemonic_lines = writer.split_text_to_size(
        f"Mnemonic: {card.mnemonic}",
        body_width,
        font_size=BODY_FONT_SIZE,
    )
    writer.text(mnemonic_lines, x + 5, mnemonic_y, font_size=BODY_FONT_SIZE, style="italic")


def layout_flashcards(cards: Sequence[Flashcard], writer: DocumentWriter) -> None:
    """Lay cards out left to right, top to bottom, adding pages as needed.

    Args:
        cards (Sequence[Flashcard]): Cards to draw.
        writer (DocumentWriter): Drawing target; its first page must already exist.
    """
    x = MARGIN
    y = MARGIN
    for card in cards:
        if y + CARD_HEIGHT > writer.page_height - MARGIN:
            writer.add_page()
            x = MARGIN
            y = MARGIN

        _draw_card(writer, card, x, y)

        x += CARD_WIDTH + MARGIN
        if x + CARD_WIDTH > writer.page_width - MARGIN:
            x = MARGIN
            y += CARD_HEIGHT + MARGIN


def export_flashcards_pdf(cards: Sequence[Flashcard], path: Path) -> Path:
    """Write cards to a printable PDF.

    Args:
        cards (Sequence[Flashcard]): Cards to export.
        path (Path): Output PDF path.

    Raises:
        ExportError: If there is nothing to export or the document cannot be written.

    Returns:
        Path: Written file.
    """
    if not cards:
        raise ExportError(message="No flashcards to export")

    try:
        with FitzDocumentWriter() as writer:
            layout_flashcards(cards, writer)
            writer.save(path)
            pages = writer.page_count
    except (OSError, RuntimeError, ValueError) as exc:
        raise ExportError(message=f"Failed to write {path}", exc=exc) from exc

    logger.info("Flashcards exported", extra={"output_path": str(path), "cards": len(cards), "pages": pages})
    return path
