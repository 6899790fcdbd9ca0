"""Flashcard models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class Flashcard(BaseModel):
    """Single study flashcard."""

    model_config = ConfigDict(extra="forbid", frozen=True, strict=True)

    term: str
    definition: str
    mnemonic: str


class FlashcardEnvelope(BaseModel):
    """Object wrapper requested from the model; structured outputs need an object root."""

    model_config = ConfigDict(extra="forbid")

    flashcards: list[Flashcard]
