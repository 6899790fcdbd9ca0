"""OpenAI-compatible multimodal flashcard generation backend."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

try:
    import openai
    from openai import AsyncOpenAI
except ImportError:  # pragma: no cover - optional dependency at runtime
    openai: Any
    openai = None
    AsyncOpenAI: Any
    AsyncOpenAI = None

from studycards import logger
from studycards.exceptions import BackendError, DependencyError, EmptyResponseError
from studycards.prompts import BASE_PROMPT, build_text_prompt, flashcard_response_format

if TYPE_CHECKING:
    from collections.abc import Sequence

    from studycards.settings import Settings
    from studycards.typing.models import RasterImage


class MultimodalLLMBackend:
    """Flashcard generation against OpenAI-compatible chat completion endpoints."""

    def __init__(self, settings: Settings) -> None:
        """Initialize backend.

        Args:
            settings (Settings): Runtime settings.
        """
        self._settings = settings

    def _client(self) -> AsyncOpenAI:
        """Build the SDK client on top of the shared HTTPX client.

        Raises:
            DependencyError: If the openai SDK is not installed.
            BackendError: If no API key is configured.

        Returns:
            AsyncOpenAI: SDK client.
        """
        if AsyncOpenAI is None:
            raise DependencyError(missing_package=["openai"], message="flashcard generation")
        if not self._settings.openai_api_key:
            raise BackendError(message="OPENAI_API_KEY is required for flashcard generation")

        return AsyncOpenAI(
            api_key=self._settings.openai_api_key,
            base_url=self._settings.openai_base_url or None,
            http_client=self._settings.get_async_httpx_client(),
        )

    async def _complete(self, content: str | list[dict[str, Any]]) -> str:
        """Send one completion request and return the flashcard array text.

        Args:
            content (str | list[dict[str, Any]]): User message content.

        Raises:
            BackendError: If the request fails.
            EmptyResponseError: If the model returns no content.

        Returns:
            str: Raw response text expected to hold a JSON array.
        """
        client = self._client()
        response_format = flashcard_response_format()
        payload: dict[str, Any] = {
            "model": self._settings.openai_model,
            "messages": [{"role": "user", "content": content}],
            "response_format": {
                "type": "json_schema",
                "json_schema": response_format.model_dump(mode="json", by_alias=True),
            },
        }

        try:
            completion = await client.chat.completions.create(**payload)
        except openai.APIStatusError as exc:
            raise BackendError(
                message=f"Chat completion request failed with status {exc.status_code}",
            ) from exc
        except openai.APITimeoutError as exc:
            raise BackendError(message="Chat completion request timed out") from exc
        except openai.APIError as exc:
            raise BackendError(message=f"Chat completion request failed: {exc}") from exc

        usage = completion.usage
        logger.info(
            "Chat completion received",
            extra={
                "model": self._settings.openai_model,
                "input_tokens": usage.prompt_tokens if usage else None,
                "output_tokens": usage.completion_tokens if usage else None,
            },
        )

        if not completion.choices:
            raise EmptyResponseError
        content_text = completion.choices[0].message.content
        if not content_text or not content_text.strip():
            raise EmptyResponseError
        return self._unwrap_flashcards(content_text)

    @staticmethod
    def _unwrap_flashcards(content_text: str) -> str:
        """Extract the card array from the `{"flashcards": [...]}` envelope.

        Anything else is returned untouched so the decoder can classify it.

        Args:
            content_text (str): Message content returned by the model.

        Returns:
            str: JSON array text, or the original content.
        """
        try:
            payload = json.loads(content_text)
        except (ValueError, RecursionError):
            return content_text
        if isinstance(payload, dict) and "flashcards" in payload:
            return json.dumps(payload["flashcards"], ensure_ascii=False)
        return content_text

    @staticmethod
    def _image_content(image: RasterImage) -> dict[str, Any]:
        """Build image content chunk.

        Args:
            image (RasterImage): Rendered page.

        Returns:
            dict[str, Any]: OpenAI content block.
        """
        return {"type": "image_url", "image_url": {"url": image.as_data_url()}}

    async def generate_from_text(self, text: str) -> str:
        """Generate flashcards from free text.

        Args:
            text (str): Source text.

        Returns:
            str: Raw JSON array text.
        """
        logger.info("Generating flashcards from text", extra={"chars": len(text)})
        return await self._complete(build_text_prompt(text))

    async def generate_from_images(self, images: Sequence[RasterImage]) -> str:
        """Generate flashcards from rendered PDF pages.

        Args:
            images (Sequence[RasterImage]): Rendered pages in page order.

        Raises:
            BackendError: If the image list is empty.

        Returns:
            str: Raw JSON array text.
        """
        if not images:
            raise BackendError(message="Cannot generate flashcards from an empty page list")

        content: list[dict[str, Any]] = [{"type": "text", "text": BASE_PROMPT}]
        content.extend(self._image_content(image) for image in images)
        logger.info("Generating flashcards from pages", extra={"pages": len(images)})
        return await self._complete(content)
