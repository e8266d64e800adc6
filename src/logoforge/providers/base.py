"""Base classes and registry for image providers.

Every image source Logoforge can use (the Gemini image model, the
Pollinations URL builder, test doubles) implements
:class:`ImageProviderBase`.  The fallback chain and the client only ever see
this interface, so providers are interchangeable.

Provider Pattern
----------------
Each provider encapsulates:
- Its own request format and response decoding
- Whether it is usable with the current configuration (``is_configured``)
- Its HTTP client lifecycle (``aclose``)

Usage Example
-------------
    >>> from logoforge.providers.base import provider_registry
    >>> from logoforge.core.config import config
    >>>
    >>> provider_registry.list_available()
    ['gemini', 'pollinations']
    >>> fallback = provider_registry.instantiate("pollinations", config)
    >>> result = await fallback.generate("Minimalist logo for 'SKYLINE'")
    >>> result.source
    'pollinations'
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Literal

from logoforge.core.config import LogoforgeConfig

logger = logging.getLogger(__name__)

ImageSourceName = Literal["gemini", "pollinations"]


@dataclass(frozen=True)
class ImageResult:
    """A generated image reference.

    Attributes
    ----------
    image : str
        Either a ``data:`` URI with base64 bytes or a remote URL
    source : str
        Name of the provider that produced it
    seed : int | None
        Seed embedded in the URL, for providers that take one
    """

    image: str
    source: ImageSourceName
    seed: int | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialise to the ``{image, source}`` response body."""
        return {"image": self.image, "source": self.source}


class ImageProviderBase(ABC):
    """Abstract base class for image providers.

    Attributes
    ----------
    name : str
        Registry key and ``source`` value (e.g. "gemini")
    description : str
        Brief description of the provider
    requires_credential : bool
        Whether the provider needs ``gemini_api_key`` to be set
    config : LogoforgeConfig
        Configuration object
    """

    name: str = "base"
    description: str = "Base class for image providers"
    requires_credential: bool = False

    def __init__(self, config: LogoforgeConfig, **kwargs: Any) -> None:
        self.config = config

    def is_configured(self) -> bool:
        """Return True if the provider can be called with the current config."""
        if self.requires_credential:
            return self.config.gemini_configured
        return True

    @abstractmethod
    async def generate(self, prompt: str) -> ImageResult:
        """Produce an image reference for *prompt*.

        Raises
        ------
        LogoforgeError
            If the provider cannot produce an image
        """

    async def aclose(self) -> None:
        """Release network resources.  No-op by default."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"


class ProviderRegistry:
    """Registry for image provider classes.

    Providers register themselves at import time with the
    :meth:`register` decorator and are instantiated by name.
    """

    def __init__(self) -> None:
        self._providers: dict[str, type[ImageProviderBase]] = {}

    def register(self, provider_class: type[ImageProviderBase]) -> type[ImageProviderBase]:
        """Register a provider class under its ``name``.

        Can be used as a class decorator.
        """
        name = provider_class.name
        if name in self._providers:
            logger.warning(f"Provider '{name}' already registered, overwriting")
        self._providers[name] = provider_class
        logger.debug(f"Registered image provider: {name}")
        return provider_class

    def get_provider_class(self, name: str) -> type[ImageProviderBase]:
        """Return the class registered under *name*.

        Raises
        ------
        KeyError
            If no provider is registered with that name
        """
        if name not in self._providers:
            available = ", ".join(self._providers)
            raise KeyError(f"Image provider '{name}' not found. Available: {available}")
        return self._providers[name]

    def list_available(self) -> list[str]:
        """Return the names of all registered providers."""
        return list(self._providers.keys())

    def instantiate(
        self, name: str, config: LogoforgeConfig, **kwargs: Any
    ) -> ImageProviderBase:
        """Create a provider instance by name."""
        provider_class = self.get_provider_class(name)
        return provider_class(config, **kwargs)


# Global provider registry
provider_registry = ProviderRegistry()
