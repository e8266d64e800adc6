"""Pollinations fallback image provider.

Pollinations renders an image for any prompt at a deterministic URL, so this
provider never performs network I/O: it only builds the URL.  The browser
fetches the image when it renders it.

URL format::

    {base}/{urlencoded prompt}?width=S&height=S&nologo=true&seed=N&enhance=true&model=flux

A fresh seed is drawn for every call and never equals the previous one, so
two calls with the same prompt always produce different images.
"""

from __future__ import annotations

import logging
import random
from typing import Any
from urllib.parse import quote, urlencode

from logoforge.core.config import LogoforgeConfig

from .base import ImageProviderBase, ImageResult, provider_registry

logger = logging.getLogger(__name__)


@provider_registry.register
class PollinationsImageProvider(ImageProviderBase):
    """Builds always-available image URLs from a prompt and a random seed.

    Args:
        config: Configuration (base URL, model, default size, seed range).
        rng: Random source for seeds.  Injected by tests.
        size: Override of ``config.image_size`` (the in-process client
            variant uses 512 px previews).
        enhance: Ask Pollinations to enhance the prompt.
    """

    name = "pollinations"
    description = "Pollinations URL builder (no credential, always available)"

    def __init__(
        self,
        config: LogoforgeConfig,
        rng: random.Random | None = None,
        size: int | None = None,
        enhance: bool = True,
        **kwargs: Any,
    ) -> None:
        super().__init__(config)
        self._rng = rng or random.Random()
        self.size = size or config.image_size
        self.enhance = enhance
        self._last_seed: int | None = None

    def next_seed(self) -> int:
        """Draw a seed in ``[0, max_seed)`` that differs from the last one."""
        seed = self._rng.randrange(self.config.max_seed)
        while seed == self._last_seed:
            seed = self._rng.randrange(self.config.max_seed)
        self._last_seed = seed
        return seed

    def build_url(self, prompt: str, seed: int) -> str:
        """Return the image URL for *prompt* rendered with *seed*."""
        params: dict[str, Any] = {
            "width": self.size,
            "height": self.size,
            "nologo": "true",
            "seed": seed,
        }
        if self.enhance:
            params["enhance"] = "true"
        params["model"] = self.config.pollinations_model

        base = self.config.pollinations_base_url.rstrip("/")
        return f"{base}/{quote(prompt, safe='')}?{urlencode(params)}"

    async def generate(self, prompt: str) -> ImageResult:
        seed = self.next_seed()
        url = self.build_url(prompt, seed)
        logger.debug(f"Pollinations URL built with seed {seed}")
        return ImageResult(image=url, source="pollinations", seed=seed)
