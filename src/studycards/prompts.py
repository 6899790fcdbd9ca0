"""Prompt builders and response schema helpers."""

from __future__ import annotations

from copy import deepcopy
from typing import Any, cast

from studycards.typing.models import FlashcardEnvelope, SanitizedJsonSchema

BASE_PROMPT = (
    "Analyze the provided text/document and identify key concepts. "
    "For each concept, generate a flashcard with a term, a concise definition, "
    "and a clever mnemonic to help with memorization. "
    "The language of the flashcard content must match the language of the source material. "
    "Format the output as a JSON array of objects."
)


def sanitize_json_schema(schema: dict[str, Any]) -> dict[str, Any]:
    """Sanitize a JSON schema to maximize strict compatibility.

    Every object gets all of its properties marked required and
    `additionalProperties: false`; titles are dropped.

    Args:
        schema (dict[str, Any]): Raw JSON schema.

    Returns:
        dict[str, Any]: Sanitized JSON schema.
    """
    cleaned = deepcopy(schema)

    def _walk(node: object) -> None:
        if isinstance(node, dict):
            node_dict = cast("dict[str, Any]", node)
            if isinstance(node_dict.get("title"), str):
                node_dict.pop("title")
            if "properties" in node_dict:
                node_dict.setdefault("type", "object")
                props = node_dict["properties"]
                if isinstance(props, dict):
                    props_dict = cast("dict[str, Any]", props)
                    node_dict["required"] = sorted(str(key) for key in props_dict)
                    node_dict["additionalProperties"] = False
            for value in node_dict.values():
                _walk(value)
        elif isinstance(node, list):
            for item in node:
                _walk(item)

    _walk(cleaned)
    return cleaned


def flashcard_response_format() -> SanitizedJsonSchema:
    """Build the strict response format for flashcard generation.

    Returns:
        SanitizedJsonSchema: Strict response schema wrapper.
    """
    return SanitizedJsonSchema(
        name="flashcards_response",
        schema=sanitize_json_schema(FlashcardEnvelope.model_json_schema()),
        strict=True,
    )


def build_text_prompt(topic: str) -> str:
    """Build the prompt used to generate flashcards from free text.

    Args:
        topic (str): User-provided source text.

    Returns:
        str: Prompt text.
    """
    return f'{BASE_PROMPT}\n\nSource Text:\n"{topic}"'
