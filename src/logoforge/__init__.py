"""Logoforge - Logo concept prompts and previews from a short brief."""

__version__ = "0.3.0"

from logoforge.core.config import LogoforgeConfig, config
from logoforge.providers.base import ImageProviderBase, ImageResult, provider_registry

# Import providers to ensure they're registered
from logoforge.providers import GeminiImageProvider, PollinationsImageProvider  # noqa: F401

__all__ = [
    "ImageProviderBase",
    "ImageResult",
    "provider_registry",
    "LogoforgeConfig",
    "config",
    "GeminiImageProvider",
    "PollinationsImageProvider",
]
