"""Flashcard generation backends."""

from studycards.backends.multimodal_openai import MultimodalLLMBackend

__all__ = ["MultimodalLLMBackend"]
