"""Generation session state.

`FlashcardSession` holds everything one user works with: the input mode, the
current text or PDF input, the most recent flashcards and at most one in-flight
run with its cancellation signal. Every generation ends in a
`GenerationOutcome` carrying the message to show, and the session is back to
idle on every exit path.
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from studycards import logger
from studycards.decoder import decode_flashcards
from studycards.exceptions import (
    EmptyResponseError,
    InvalidSelectionError,
    PackageError,
    PipelineCancelledError,
    ResponseDecodeError,
    SessionBusyError,
)
from studycards.logging import bind_run_context, clear_run_context
from studycards.pipeline import CancellationSignal, read_pdf_bytes, run_pdf_pipeline
from studycards.typing.enums import InputMode, OutcomeStatus
from studycards.typing.models import Flashcard, GenerationOutcome

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from studycards.typing.protocol import ContentGenerator, PageRasterizer

MSG_CANCELLED = "Processing cancelled."
MSG_UNREADABLE_RESPONSE = "Could not understand the response from the AI. Please try again."
MSG_EMPTY_RESPONSE = "Failed to generate flashcards or received an empty response. Please try again."
MSG_NO_FLASHCARDS = "No valid flashcards could be generated. Please try a different input."
MSG_MISSING_TOPIC = "Please enter a topic or some terms and definitions."
MSG_MISSING_PDF = "Please select a PDF file."


class FlashcardSession:
    """Mutable state of one flashcard generation session."""

    def __init__(self, generator: ContentGenerator, *, rasterizer: PageRasterizer | None = None) -> None:
        """Initialize an idle session in text mode.

        Args:
            generator (ContentGenerator): Generation backend.
            rasterizer (PageRasterizer | None): Page rasterizer for PDF mode.
        """
        self._generator = generator
        self._rasterizer = rasterizer
        self.mode = InputMode.TEXT
        self.topic = ""
        self.pdf_path: Path | None = None
        self.page_selection = ""
        self.flashcards: list[Flashcard] = []
        self.message = ""
        self.progress: int | None = None
        self._signal: CancellationSignal | None = None
        self._busy = False

    @property
    def busy(self) -> bool:
        """Return whether a generation is in flight."""
        return self._busy

    @property
    def cancellable(self) -> bool:
        """Return whether the in-flight run can still be cancelled."""
        return self._signal is not None and not self._signal.cancelled

    def set_mode(self, mode: InputMode) -> None:
        """Switch input mode, clearing inputs, flashcards and messages.

        An in-flight PDF run is cancelled.
        """
        self.cancel()
        self.mode = mode
        self.topic = ""
        self.pdf_path = None
        self.page_selection = ""
        self.flashcards = []
        self.message = ""

    def select_pdf(self, path: Path | None) -> None:
        """Select the PDF to process and reset the page selection."""
        self.pdf_path = path
        self.page_selection = ""

    def cancel(self) -> bool:
        """Request cancellation of the in-flight PDF run.

        Returns:
            bool: True when a run was listening for cancellation.
        """
        if not self.cancellable:
            return False
        self._signal.cancel()  # type: ignore[union-attr]
        logger.info("Cancellation requested")
        return True

    def _report_progress(self, percent: int, on_progress: Callable[[int], None] | None) -> None:
        self.progress = percent
        if on_progress is not None:
            on_progress(percent)

    async def _generate_raw(self, on_progress: Callable[[int], None] | None) -> str | GenerationOutcome:
        """Run the mode-specific steps up to the raw generation response."""
        if self.mode == InputMode.TEXT:
            topic = self.topic.strip()
            if not topic:
                return GenerationOutcome(status=OutcomeStatus.INVALID_INPUT, message=MSG_MISSING_TOPIC)
            return await self._generator.generate_from_text(topic)

        if self.pdf_path is None:
            return GenerationOutcome(status=OutcomeStatus.INVALID_INPUT, message=MSG_MISSING_PDF)

        signal = CancellationSignal()
        self._signal = signal
        self.progress = 0
        try:
            data = await read_pdf_bytes(self.pdf_path, signal)
            batch = await run_pdf_pipeline(
                data,
                self.page_selection,
                lambda percent: self._report_progress(percent, on_progress),
                signal,
                rasterizer=self._rasterizer,
            )
        finally:
            self._signal = None
            self.progress = None
        return await self._generator.generate_from_images(batch.images)

    async def generate(self, on_progress: Callable[[int], None] | None = None) -> GenerationOutcome:
        """Generate flashcards from the current input.

        Args:
            on_progress (Callable[[int], None] | None): Receives page rendering
                progress in PDF mode.

        Raises:
            SessionBusyError: If a generation is already in flight.

        Returns:
            GenerationOutcome: Outcome with the message to display.
        """
        if self._busy:
            raise SessionBusyError

        self._busy = True
        self.flashcards = []
        self.message = ""
        bind_run_context(run_id=uuid.uuid4().hex, mode=self.mode.value)
        try:
            outcome = await self._run_generation(on_progress)
        finally:
            self._busy = False
            self._signal = None
            self.progress = None
            clear_run_context()

        self.flashcards = list(outcome.flashcards)
        self.message = outcome.message
        return outcome

    async def _run_generation(self, on_progress: Callable[[int], None] | None) -> GenerationOutcome:
        """Run one generation and map package errors to outcomes."""
        try:
            raw = await self._generate_raw(on_progress)
            if isinstance(raw, GenerationOutcome):
                return raw
            cards = decode_flashcards(raw)
        except PipelineCancelledError:
            return GenerationOutcome(status=OutcomeStatus.CANCELLED, message=MSG_CANCELLED)
        except InvalidSelectionError as exc:
            return GenerationOutcome(status=OutcomeStatus.INVALID_INPUT, message=f"An error occurred: {exc}")
        except EmptyResponseError:
            logger.warning("Generation returned an empty response")
            return GenerationOutcome(status=OutcomeStatus.FAILED, message=MSG_EMPTY_RESPONSE)
        except ResponseDecodeError as exc:
            logger.warning("Generation response could not be decoded", extra={"error": str(exc)})
            return GenerationOutcome(status=OutcomeStatus.FAILED, message=MSG_UNREADABLE_RESPONSE)
        except (PackageError, OSError) as exc:
            logger.exception("Flashcard generation failed")
            return GenerationOutcome(status=OutcomeStatus.FAILED, message=f"An error occurred: {exc}")

        if not cards:
            return GenerationOutcome(status=OutcomeStatus.EMPTY, message=MSG_NO_FLASHCARDS)
        logger.info("Flashcards generated", extra={"count": len(cards)})
        return GenerationOutcome(status=OutcomeStatus.SUCCESS, flashcards=cards)
