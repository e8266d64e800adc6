"""Pluggable image strategies for the client session.

A :class:`~logoforge.client.session.DesignSession` only needs something with
``async generate(prompt) -> ImageResult``.  Two strategies ship:

- :class:`GatewayImageSource` asks the Image Gateway, which tries Gemini and
  falls back to Pollinations server-side.
- :class:`LocalImageSource` runs an
  :class:`~logoforge.core.fallback.ImageFallbackChain` in process.  With no
  primary provider this reproduces the lightweight deployment that builds
  Pollinations URLs directly from the decorated logo prompt.
"""

from __future__ import annotations

import random
from typing import Protocol

from logoforge.core.config import LogoforgeConfig
from logoforge.core.fallback import ImageFallbackChain
from logoforge.core.prompt_builder import build_logo_image_prompt
from logoforge.providers import ImageResult, provider_registry

from .api_client import GatewayClient

LOCAL_PREVIEW_SIZE = 512


class ImageSource(Protocol):
    async def generate(self, prompt: str) -> ImageResult: ...


class GatewayImageSource:
    """Fetch previews from ``POST /generate-image``."""

    def __init__(self, client: GatewayClient, use_gemini: bool = True) -> None:
        self.client = client
        self.use_gemini = use_gemini

    async def generate(self, prompt: str) -> ImageResult:
        return await self.client.generate_image(prompt, use_gemini=self.use_gemini)


class LocalImageSource:
    """Build previews in process through a fallback chain.

    Args:
        chain: The provider chain to run.
        decorate: Append the vector-logo suffix to each prompt first.
    """

    def __init__(self, chain: ImageFallbackChain, decorate: bool = True) -> None:
        self.chain = chain
        self.decorate = decorate

    @classmethod
    def pollinations_only(
        cls, config: LogoforgeConfig, rng: random.Random | None = None
    ) -> LocalImageSource:
        """Pollinations-only source with 512 px previews."""
        fallback = provider_registry.instantiate(
            "pollinations", config, rng=rng, size=LOCAL_PREVIEW_SIZE, enhance=False
        )
        return cls(ImageFallbackChain(primary=None, fallback=fallback))

    async def generate(self, prompt: str) -> ImageResult:
        if self.decorate:
            prompt = build_logo_image_prompt(prompt)
        return await self.chain.generate(prompt)
