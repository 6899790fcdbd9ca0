"""Typing-centric domain modules."""

from studycards.typing.enums import ImageFormat, InputMode, OutcomeStatus
from studycards.typing.models import (
    Flashcard,
    FlashcardEnvelope,
    GenerationOutcome,
    ImageBatch,
    ProgressEvent,
    RasterImage,
    SanitizedJsonSchema,
)
from studycards.typing.protocol import ContentGenerator, DocumentHandle, DocumentWriter, PageRasterizer

__all__ = [
    "ContentGenerator",
    "DocumentHandle",
    "DocumentWriter",
    "Flashcard",
    "FlashcardEnvelope",
    "GenerationOutcome",
    "ImageBatch",
    "ImageFormat",
    "InputMode",
    "OutcomeStatus",
    "PageRasterizer",
    "ProgressEvent",
    "RasterImage",
    "SanitizedJsonSchema",
]
