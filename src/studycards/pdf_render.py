"""PDF loading and single-page rasterization with PyMuPDF."""

from __future__ import annotations

import base64
from typing import TYPE_CHECKING, Any, Self

try:
    import fitz
except ImportError:  # pragma: no cover - optional dependency at runtime
    fitz: Any
    fitz = None

from studycards import logger
from studycards.exceptions import DependencyError, DocumentLoadError, PageRenderError
from studycards.typing.enums import ImageFormat
from studycards.typing.models import RasterImage

if TYPE_CHECKING:
    from types import TracebackType

    from studycards.settings import Settings

DEFAULT_RENDER_SCALE = 1.5


class FitzDocumentHandle:
    """Open PyMuPDF document."""

    def __init__(self, document: fitz.Document) -> None:
        """Wrap an open document.

        Args:
            document (fitz.Document): Open PyMuPDF document.
        """
        self._document = document

    @property
    def document(self) -> fitz.Document:
        """Return the wrapped PyMuPDF document."""
        return self._document

    @property
    def page_count(self) -> int:
        """Return the number of pages in the document."""
        return len(self._document)

    def close(self) -> None:
        """Close the underlying document."""
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


def load_document(data: bytes) -> FitzDocumentHandle:
    """Open a PDF document from raw bytes.

    Args:
        data (bytes): PDF file content.

    Raises:
        DependencyError: If PyMuPDF is not installed.
        DocumentLoadError: If the bytes are not a readable PDF, are encrypted,
            or contain no page.

    Returns:
        FitzDocumentHandle: Open document.
    """
    if fitz is None:
        raise DependencyError(missing_package=["pymupdf"], message="PDF rendering")
    if not data:
        raise DocumentLoadError(message="PDF file is empty")

    try:
        document = fitz.open(stream=data, filetype="pdf")
    except Exception as exc:
        raise DocumentLoadError(exc=exc) from exc

    if document.needs_pass:
        document.close()
        raise DocumentLoadError(message="PDF document is password protected")
    if len(document) == 0:
        document.close()
        raise DocumentLoadError(message="PDF document has no pages")

    logger.info("PDF loaded", extra={"pages": len(document), "size_bytes": len(data)})
    return FitzDocumentHandle(document)


def render_page(
    handle: FitzDocumentHandle,
    page_number: int,
    *,
    scale: float = DEFAULT_RENDER_SCALE,
    image_format: ImageFormat = ImageFormat.PNG,
) -> RasterImage:
    """Render one page into a base64 encoded image.

    Args:
        handle (FitzDocumentHandle): Open document.
        page_number (int): Page to render (1-based).
        scale (float): Zoom factor relative to the page's native size.
        image_format (ImageFormat): Output encoding.

    Raises:
        PageRenderError: If the page does not exist or cannot be rasterized.

    Returns:
        RasterImage: Rendered page.
    """
    if not 1 <= page_number <= handle.page_count:
        raise PageRenderError(page_number=page_number, exc=IndexError("page out of range"))

    try:
        page = handle.document.load_page(page_number - 1)
        pix = page.get_pixmap(matrix=fitz.Matrix(scale, scale), alpha=False)
        image_bytes = pix.tobytes(output=image_format.value)
        del pix
    except Exception as exc:
        raise PageRenderError(page_number=page_number, exc=exc) from exc

    logger.debug("Page rendered", extra={"page_number": page_number, "bytes": len(image_bytes)})
    return RasterImage(
        page_number=page_number,
        mime_type=image_format.mime_type,
        data_base64=base64.b64encode(image_bytes).decode("ascii"),
    )


class FitzPageRasterizer:
    """Page rasterizer backed by PyMuPDF with a fixed scale and encoding."""

    def __init__(
        self,
        *,
        scale: float = DEFAULT_RENDER_SCALE,
        image_format: ImageFormat = ImageFormat.PNG,
    ) -> None:
        """Initialize rasterizer.

        Args:
            scale (float): Zoom factor applied to every page.
            image_format (ImageFormat): Output encoding for every page.
        """
        self.scale = scale
        self.image_format = image_format

    @classmethod
    def from_settings(cls, settings: Settings) -> FitzPageRasterizer:
        """Build a rasterizer from runtime settings."""
        return cls(scale=settings.render_scale, image_format=settings.render_image_format)

    def load_document(self, data: bytes) -> FitzDocumentHandle:
        """Open a PDF document from raw bytes."""
        return load_document(data)

    def render_page(self, handle: FitzDocumentHandle, page_number: int) -> RasterImage:
        """Render one page with the configured scale and encoding."""
        return render_page(handle, page_number, scale=self.scale, image_format=self.image_format)
