from __future__ import annotations

from pixelcard.config import Settings

from .base import ImageStyleProvider
from .gemini_provider import GeminiImageProvider
from .openai_provider import OpenAIImageProvider

_PROVIDERS: dict[str, type[ImageStyleProvider]] = {
    "openai": OpenAIImageProvider,
    "gemini": GeminiImageProvider,
}


def create_provider(settings: Settings) -> ImageStyleProvider:
    provider_key = settings.image_provider.lower()
    if provider_key not in _PROVIDERS:
        raise ValueError(f"Unsupported image provider: {provider_key}")
    return _PROVIDERS[provider_key](settings)
