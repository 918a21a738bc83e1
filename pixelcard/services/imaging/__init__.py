from __future__ import annotations

from .base import PIXEL_ART_PROMPT, ImageStyleProvider
from .gemini_provider import GeminiImageProvider
from .openai_provider import OpenAIImageProvider
from .registry import create_provider

__all__ = [
    "PIXEL_ART_PROMPT",
    "GeminiImageProvider",
    "ImageStyleProvider",
    "OpenAIImageProvider",
    "create_provider",
]
