"""Generation request and outcome models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from studycards.typing.enums import OutcomeStatus
from studycards.typing.models.flashcard import Flashcard


class SanitizedJsonSchema(BaseModel):
    """Schema payload used for strict structured output."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    name: str
    json_schema: dict[str, Any] = Field(alias="schema")
    strict: bool = True


class GenerationOutcome(BaseModel):
    """User-facing result of one generation request."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    status: OutcomeStatus
    message: str = ""
    flashcards: list[Flashcard] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        """Return whether flashcards were produced."""
        return self.status == OutcomeStatus.SUCCESS
