"""Core domain model exports."""

from studycards.typing.models.flashcard import Flashcard, FlashcardEnvelope
from studycards.typing.models.generation import GenerationOutcome, SanitizedJsonSchema
from studycards.typing.models.pages import ImageBatch, ProgressEvent, RasterImage

__all__ = [
    "Flashcard",
    "FlashcardEnvelope",
    "GenerationOutcome",
    "ImageBatch",
    "ProgressEvent",
    "RasterImage",
    "SanitizedJsonSchema",
]
