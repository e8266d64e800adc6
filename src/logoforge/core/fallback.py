"""Primary-then-fallback image generation.

:class:`ImageFallbackChain` tries the primary provider once and, on any
failure, asks the fallback provider.  The fallback is expected to be always
available (Pollinations only builds a URL), so callers only see an error
when both providers fail.

Decision table
--------------

==============================  ==========================================
Situation                       Result
==============================  ==========================================
``use_primary`` is False        fallback
no primary / not configured     fallback
primary raises anything         fallback (logged at WARNING)
primary returns an image        primary result
fallback raises                 ``UpstreamFailure("Image generation failed")``
==============================  ==========================================

The chain is not idempotent: each call asks the fallback for a new seed.
"""

from __future__ import annotations

import logging

from logoforge.core.errors import UpstreamFailure
from logoforge.providers.base import ImageProviderBase, ImageResult

logger = logging.getLogger(__name__)


class ImageFallbackChain:
    """Run a primary image provider with a fallback.

    Args:
        primary: Preferred provider, or None to always use the fallback.
        fallback: Provider used whenever the primary is skipped or fails.
    """

    def __init__(self, primary: ImageProviderBase | None, fallback: ImageProviderBase) -> None:
        self.primary = primary
        self.fallback = fallback

    def primary_available(self) -> bool:
        return self.primary is not None and self.primary.is_configured()

    async def generate(self, prompt: str, use_primary: bool = True) -> ImageResult:
        """Generate an image reference for *prompt*.

        Args:
            prompt: Image prompt.
            use_primary: Attempt the primary provider first.

        Returns:
            The primary's result, or the fallback's when the primary was
            skipped or failed.

        Raises:
            UpstreamFailure: If the fallback provider fails too.
        """
        if use_primary and self.primary_available():
            try:
                result = await self.primary.generate(prompt)
                logger.info(f"Image generated by {self.primary.name}")
                return result
            except Exception as e:
                logger.warning(
                    f"{self.primary.name} image generation failed, falling back: "
                    f"{e.__class__.__name__}: {e}"
                )

        try:
            result = await self.fallback.generate(prompt)
        except Exception as e:
            logger.error(f"All image generation methods failed: {e}", exc_info=True)
            raise UpstreamFailure(
                "Image generation failed",
                "فشل في توليد الصورة",
            ) from e

        logger.info(f"Fallback to {self.fallback.name}")
        return result

    async def aclose(self) -> None:
        """Close both providers."""
        if self.primary is not None:
            await self.primary.aclose()
        await self.fallback.aclose()
