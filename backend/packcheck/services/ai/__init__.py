"""Structuring and vision collaborators."""

from .gemini import GeminiClient, close_gemini_client, gemini_client, image_part
from .prompts import (
    DEFAULT_VISUAL_VERIFICATION_PROMPT,
    STRUCTURING_PROMPT,
    build_structuring_prompt,
)

__all__ = [
    "GeminiClient",
    "gemini_client",
    "close_gemini_client",
    "image_part",
    "STRUCTURING_PROMPT",
    "DEFAULT_VISUAL_VERIFICATION_PROMPT",
    "build_structuring_prompt",
]
