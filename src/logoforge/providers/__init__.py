"""Provider adapters for the external generative services.

Modules
-------
base
    ``ImageProviderBase``, ``ImageResult`` and the provider registry.
gemini
    Gemini text (design analysis) and image (primary) providers.
pollinations
    URL-building fallback image provider.
"""

from .base import ImageProviderBase, ImageResult, provider_registry
from .gemini import GeminiImageProvider, GeminiTextProvider
from .pollinations import PollinationsImageProvider

__all__ = [
    "ImageProviderBase",
    "ImageResult",
    "provider_registry",
    "GeminiImageProvider",
    "GeminiTextProvider",
    "PollinationsImageProvider",
]
