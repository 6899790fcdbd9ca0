"""Decode generation responses into flashcards."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from pydantic import TypeAdapter, ValidationError

from studycards import logger
from studycards.exceptions import MalformedResponseError, ResponseShapeError
from studycards.typing.models import Flashcard

if TYPE_CHECKING:
    from collections.abc import Sequence

_CARDS_ADAPTER: TypeAdapter[list[Flashcard]] = TypeAdapter(list[Flashcard])


def _reject_constant(name: str) -> None:
    message = f"Invalid JSON constant {name!r}"
    raise ValueError(message)


def decode_flashcards(raw_text: str) -> list[Flashcard]:
    """Decode a JSON array of flashcard records.

    Args:
        raw_text (str): Raw response text.

    Raises:
        MalformedResponseError: If the text is not valid JSON (including
            `NaN`/`Infinity` and nesting too deep to parse).
        ResponseShapeError: If the JSON is not an array, or an element is not a
            record with string `term`, `definition` and `mnemonic` fields.

    Returns:
        list[Flashcard]: Decoded flashcards, possibly empty.
    """
    try:
        payload = json.loads(raw_text, parse_constant=_reject_constant)
    except (TypeError, ValueError, RecursionError) as exc:
        raise MalformedResponseError(message=f"Response is not valid JSON: {exc}") from exc

    if not isinstance(payload, list):
        raise ResponseShapeError(message=f"Response is not a JSON array (got {type(payload).__name__})")

    cards: list[Flashcard] = []
    for index, item in enumerate(payload):
        try:
            cards.append(Flashcard.model_validate(item))
        except ValidationError as exc:
            raise ResponseShapeError(message=f"Response item {index} is not a flashcard: {exc}") from exc

    logger.info("Flashcards decoded", extra={"count": len(cards)})
    return cards


def encode_flashcards(cards: Sequence[Flashcard], *, indent: int | None = None) -> str:
    """Serialize flashcards back into a JSON array.

    Args:
        cards (Sequence[Flashcard]): Flashcards to serialize.
        indent (int | None): Optional JSON indentation.

    Returns:
        str: JSON array text.
    """
    return _CARDS_ADAPTER.dump_json(list(cards), indent=indent).decode("utf-8")
