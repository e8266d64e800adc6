"""Google Gemini providers for design analysis and primary images.

Both providers talk to the generative-language REST API with a shared
``httpx.AsyncClient``.  The API key is passed as the ``key`` query parameter
and is never logged.

Text generation
---------------
``POST {base}/{text_model}:generateContent`` with
``responseMimeType: application/json``.  The answer's embedded JSON is
parsed into a :class:`~logoforge.api.models.DesignResult`.

Image generation
----------------
``POST {base}/{image_model}:predict``.  The response is decoded with
:func:`~logoforge.core.parsing.decode_image_payload`, which accepts both
response shapes the endpoint has been seen to return.  Failures are raised,
never retried; the fallback chain decides what happens next.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from logoforge.api.models import DesignResult
from logoforge.core.config import LogoforgeConfig
from logoforge.core.errors import UpstreamConfigError, UpstreamFailure
from logoforge.core.parsing import decode_image_payload, extract_candidate_text, parse_design_result
from logoforge.core.prompt_builder import build_analysis_prompt

from .base import ImageProviderBase, ImageResult, provider_registry

logger = logging.getLogger(__name__)


class _GeminiTransport:
    """HTTP plumbing shared by the Gemini providers."""

    def __init__(
        self,
        config: LogoforgeConfig,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.config = config
        self._client = http_client
        self._owns_client = http_client is None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.config.request_timeout_seconds),
                headers={"Content-Type": "application/json"},
            )
            self._owns_client = True
        return self._client

    async def aclose(self) -> None:
        """Close the HTTP client if this provider created it."""
        if self._owns_client and self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None if self._owns_client else self._client

    def _api_key(self) -> str:
        if not self.config.gemini_configured:
            logger.error("GEMINI_API_KEY not found in environment variables")
            raise UpstreamConfigError()
        return self.config.gemini_api_key.strip()

    def _url(self, model: str, method: str) -> str:
        return f"{self.config.gemini_base_url.rstrip('/')}/{model}:{method}"

    async def _post(self, model: str, method: str, payload: dict[str, Any]) -> httpx.Response:
        api_key = self._api_key()
        client = await self._get_client()
        try:
            return await client.post(
                self._url(model, method),
                params={"key": api_key},
                json=payload,
            )
        except httpx.HTTPError as e:
            logger.error(f"Gemini {method} request failed: {e.__class__.__name__}: {e}")
            raise UpstreamFailure(details=f"Gemini API request failed: {e}") from e


class GeminiTextProvider(_GeminiTransport):
    """Generates the two-variant design analysis.

    Args:
        config: Configuration (model, sampling parameters, credential).
        http_client: Optional shared client; injected by tests.
    """

    def build_payload(self, project_name: str, input_text: str) -> dict[str, Any]:
        """Return the ``generateContent`` request body."""
        return {
            "contents": [{"parts": [{"text": build_analysis_prompt(project_name, input_text)}]}],
            "generationConfig": {
                "responseMimeType": "application/json",
                "temperature": self.config.text_temperature,
                "topK": self.config.text_top_k,
                "topP": self.config.text_top_p,
            },
        }

    async def generate_design(self, project_name: str, input_text: str) -> DesignResult:
        """Ask the provider for a design analysis.

        Raises:
            UpstreamConfigError: If no credential is configured.
            UpstreamFailure: On transport errors, non-success statuses or an
                unparseable answer.
        """
        response = await self._post(
            self.config.text_model,
            "generateContent",
            self.build_payload(project_name, input_text),
        )

        if not response.is_success:
            logger.error(f"Gemini API Error {response.status_code}: {response.text[:500]}")
            raise UpstreamFailure(
                details=f"Gemini API error: {response.status_code}",
                upstream_status=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamFailure(details="Gemini API returned a non-JSON body") from e

        return parse_design_result(extract_candidate_text(data))


@provider_registry.register
class GeminiImageProvider(_GeminiTransport, ImageProviderBase):
    """Primary image provider backed by the Gemini image model."""

    name = "gemini"
    description = "Gemini image model (base64 image bytes)"
    requires_credential = True

    def __init__(
        self,
        config: LogoforgeConfig,
        http_client: httpx.AsyncClient | None = None,
        **kwargs: Any,
    ) -> None:
        _GeminiTransport.__init__(self, config, http_client)

    def build_payload(self, prompt: str) -> dict[str, Any]:
        """Return the ``predict`` request body."""
        return {
            "instances": [{"prompt": prompt}],
            "parameters": {
                "sampleCount": 1,
                "aspectRatio": self.config.image_aspect_ratio,
                "negativePrompt": self.config.image_negative_prompt,
                "safetySetting": "block_some",
            },
        }

    async def generate(self, prompt: str) -> ImageResult:
        """Generate one image and return it as a data URI.

        Raises:
            UpstreamConfigError: If no credential is configured.
            UpstreamFailure: On transport errors or non-success statuses.
            NoImageData: If the response contains no image bytes.
        """
        response = await self._post(self.config.image_model, "predict", self.build_payload(prompt))

        if not response.is_success:
            raise UpstreamFailure(
                "Image generation failed",
                details=f"Gemini image API error: {response.status_code}",
                upstream_status=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamFailure(details="Gemini image API returned a non-JSON body") from e

        payload = decode_image_payload(data)
        logger.debug(f"Decoded Gemini image from '{payload.shape}' response shape")
        return ImageResult(image=payload.data_uri, source="gemini")
