"""Cancellable, progress-reporting PDF pipeline.

A run loads the document, resolves the page selection and renders the selected
pages one at a time. Cancellation is cooperative: the signal is polled before
the document is loaded, before each page render and after it, so a cancelled run
never starts another render and never reports progress for a page rendered after
the cancellation point. Results are all-or-nothing.
"""

from __future__ import annotations

import asyncio
import math
import threading
from contextlib import aclosing
from typing import TYPE_CHECKING, Any

from studycards import logger
from studycards.exceptions import InvalidSelectionError, PipelineCancelledError
from studycards.page_ranges import is_blank_selection, parse_page_selection
from studycards.pdf_render import FitzPageRasterizer
from studycards.typing.models import ImageBatch, ProgressEvent, RasterImage

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable
    from pathlib import Path

    from studycards.typing.protocol import DocumentHandle, PageRasterizer


class CancellationSignal:
    """One-shot cooperative cancellation flag.

    The flag only moves from active to cancelled. It may be flipped from any
    thread (signal handlers included) and is polled by the run without locks.
    """

    def __init__(self) -> None:
        """Initialize an active signal."""
        self._event = threading.Event()

    @property
    def cancelled(self) -> bool:
        """Return whether cancellation was requested."""
        return self._event.is_set()

    def cancel(self) -> None:
        """Request cancellation; later calls are no-ops."""
        self._event.set()

    def raise_if_cancelled(self) -> None:
        """Raise when cancellation was requested.

        Raises:
            PipelineCancelledError: If the signal is cancelled.
        """
        if self._event.is_set():
            raise PipelineCancelledError


def progress_percent(completed: int, total: int) -> int:
    """Return completion as an integer percentage, rounding halves up.

    Args:
        completed (int): Pages rendered so far.
        total (int): Pages in the run.

    Returns:
        int: Percentage in `[0, 100]`.
    """
    return math.floor(completed / total * 100 + 0.5)


async def _in_worker_thread[T](
    func: Callable[..., T],
    *args: Any,
    on_discard: Callable[[T], None] | None = None,
) -> T:
    """Run blocking PyMuPDF or file work off the event loop.

    If the awaiting task is cancelled, the worker call is allowed to finish
    before the cancellation propagates, so the document is never closed under
    a running render. A result produced after the cancellation is passed to
    `on_discard`.
    """
    future = asyncio.ensure_future(asyncio.to_thread(func, *args))
    try:
        return await asyncio.shield(future)
    except asyncio.CancelledError:
        await asyncio.wait({future})
        if on_discard is not None and not future.cancelled() and future.exception() is None:
            on_discard(future.result())
        raise


def _close_handle(handle: DocumentHandle) -> None:
    handle.close()


async def read_pdf_bytes(path: Path, signal: CancellationSignal | None = None) -> bytes:
    """Read a PDF file as a cancellable step.

    Args:
        path (Path): File to read.
        signal (CancellationSignal | None): Optional cancellation signal.

    Raises:
        PipelineCancelledError: If cancelled before or during the read.

    Returns:
        bytes: File content.
    """
    if signal is not None:
        signal.raise_if_cancelled()
    data = await _in_worker_thread(path.read_bytes)
    if signal is not None:
        signal.raise_if_cancelled()
    return data


async def iter_pdf_pages(
    file_bytes: bytes,
    page_selection: str | None,
    signal: CancellationSignal,
    *,
    rasterizer: PageRasterizer | None = None,
) -> AsyncIterator[tuple[ProgressEvent, RasterImage]]:
    """Render selected pages, yielding progress with each rendered page.

    Args:
        file_bytes (bytes): PDF file content.
        page_selection (str | None): Page selection; blank means every page.
        signal (CancellationSignal): Cancellation signal polled at page boundaries.
        rasterizer (PageRasterizer | None): Rasterizer, PyMuPDF by default.

    Raises:
        PipelineCancelledError: If the signal is cancelled during the run.
        InvalidSelectionError: If a non-blank selection resolves to no page.

    Yields:
        tuple[ProgressEvent, RasterImage]: Progress and the page just rendered.
    """
    signal.raise_if_cancelled()
    rasterizer = rasterizer or FitzPageRasterizer()
    handle = await _in_worker_thread(rasterizer.load_document, file_bytes, on_discard=_close_handle)
    try:
        signal.raise_if_cancelled()
        page_count = handle.page_count
        pages = parse_page_selection(page_selection, page_count)
        if not pages and not is_blank_selection(page_selection):
            raise InvalidSelectionError(selection=page_selection or "", page_count=page_count)

        total = len(pages)
        for completed, page_number in enumerate(pages, start=1):
            signal.raise_if_cancelled()
            image = await _in_worker_thread(rasterizer.render_page, handle, page_number)
            signal.raise_if_cancelled()
            event = ProgressEvent(
                completed=completed,
                total=total,
                page_number=page_number,
                percent=progress_percent(completed, total),
            )
            yield event, image
    finally:
        handle.close()


async def run_pdf_pipeline(
    file_bytes: bytes,
    page_selection: str | None,
    on_progress: Callable[[int], None] | None = None,
    signal: CancellationSignal | None = None,
    *,
    rasterizer: PageRasterizer | None = None,
) -> ImageBatch:
    """Run the full pipeline and return every rendered page.

    Args:
        file_bytes (bytes): PDF file content.
        page_selection (str | None): Page selection; blank means every page.
        on_progress (Callable[[int], None] | None): Called with the percentage
            after each rendered page.
        signal (CancellationSignal | None): Cancellation signal.
        rasterizer (PageRasterizer | None): Rasterizer, PyMuPDF by default.

    Raises:
        PipelineCancelledError: If the run was cancelled; no partial batch is returned.

    Returns:
        ImageBatch: Rendered pages in ascending page order.
    """
    signal = signal or CancellationSignal()
    images: list[RasterImage] = []
    try:
        async with aclosing(iter_pdf_pages(file_bytes, page_selection, signal, rasterizer=rasterizer)) as updates:
            async for event, image in updates:
                images.append(image)
                if on_progress is not None:
                    on_progress(event.percent)
    except PipelineCancelledError:
        logger.info("PDF pipeline cancelled", extra={"pages_rendered": len(images)})
        raise

    batch = ImageBatch(images=images)
    logger.info("PDF pipeline completed", extra={"pages": batch.page_numbers})
    return batch
