"""Tests for logoforge.providers - Gemini, Pollinations and the registry.

All network traffic goes to the ``fake_gemini`` fixture through
``httpx.MockTransport``; nothing leaves the process.
"""

from __future__ import annotations

import asyncio
import random
from urllib.parse import parse_qs, unquote, urlparse

import pytest

from logoforge.core.errors import NoImageData, UpstreamConfigError, UpstreamFailure
from logoforge.providers import (
    GeminiImageProvider,
    GeminiTextProvider,
    PollinationsImageProvider,
    provider_registry,
)
from logoforge.providers.base import ImageProviderBase, ImageResult


class TestPollinationsImageProvider:
    """Test URL construction and seed handling."""

    def test_url_format(self, test_config, seeded_rng):
        """The URL should carry the encoded prompt, size, seed, model and flags."""
        provider = PollinationsImageProvider(test_config, rng=seeded_rng)
        result = asyncio.run(provider.generate("Minimalist logo for 'SKYLINE'"))

        parsed = urlparse(result.image)
        assert f"{parsed.scheme}://{parsed.netloc}" == "https://image.pollinations.ai"
        assert unquote(parsed.path) == "/prompt/Minimalist logo for 'SKYLINE'"
        query = parse_qs(parsed.query)
        assert query["width"] == ["1024"]
        assert query["height"] == ["1024"]
        assert query["nologo"] == ["true"]
        assert query["enhance"] == ["true"]
        assert query["model"] == ["flux"]
        assert query["seed"] == [str(result.seed)]
        assert result.source == "pollinations"

    def test_prompt_is_fully_encoded(self, test_config):
        """Reserved characters in the prompt should be percent-encoded."""
        provider = PollinationsImageProvider(test_config)
        url = provider.build_url("a/b?c&d=e #f", seed=7)
        assert "/prompt/a%2Fb%3Fc%26d%3De%20%23f?" in url

    def test_same_prompt_gives_different_urls(self, test_config):
        """Repeated calls are not idempotent: each gets a fresh seed."""
        provider = PollinationsImageProvider(test_config)
        first = asyncio.run(provider.generate("logo"))
        second = asyncio.run(provider.generate("logo"))
        assert first.seed != second.seed
        assert first.image != second.image

    def test_seed_never_repeats_consecutively(self, test_config):
        """Even a random source that repeats itself cannot reuse the last seed."""

        class StuckRandom(random.Random):
            def __init__(self):
                super().__init__()
                self.values = [5, 5, 5, 9]

            def randrange(self, *args, **kwargs):
                return self.values.pop(0)

        provider = PollinationsImageProvider(test_config, rng=StuckRandom())
        assert provider.next_seed() == 5
        assert provider.next_seed() == 9

    def test_seed_range(self, test_config, seeded_rng):
        """Seeds should stay within [0, max_seed)."""
        provider = PollinationsImageProvider(test_config, rng=seeded_rng)
        seeds = [provider.next_seed() for _ in range(50)]
        assert all(0 <= s < test_config.max_seed for s in seeds)

    def test_size_override_and_no_enhance(self, test_config):
        """A size override and enhance=False should show in the query."""
        provider = PollinationsImageProvider(test_config, size=512, enhance=False)
        query = parse_qs(urlparse(provider.build_url("x", seed=1)).query)
        assert query["width"] == ["512"]
        assert "enhance" not in query

    def test_always_configured(self, unconfigured_config):
        """Pollinations should need no credential."""
        assert PollinationsImageProvider(unconfigured_config).is_configured()


class TestGeminiTextProvider:
    """Test the design analysis call."""

    def test_generate_design(self, test_config, fake_gemini):
        """The text provider should send the analysis prompt and parse the reply."""
        provider = GeminiTextProvider(test_config, http_client=fake_gemini.client())
        result = asyncio.run(provider.generate_design("SKYLINE", "modern minimal"))

        assert len(result.variants) == 2
        assert all("SKYLINE" in v.prompt for v in result.variants)

        path, body, params = fake_gemini.text_calls[0]
        assert path.endswith("/gemini-2.0-flash-exp:generateContent")
        assert params["key"] == "test-key"
        assert body["generationConfig"]["responseMimeType"] == "application/json"
        assert body["generationConfig"]["temperature"] == 0.8
        assert body["generationConfig"]["topK"] == 40
        assert body["generationConfig"]["topP"] == 0.95
        assert 'Project Name: "SKYLINE"' in body["contents"][0]["parts"][0]["text"]

    def test_fenced_response(self, test_config, fake_gemini):
        """A fenced JSON reply should still parse."""
        fake_gemini.text_fenced = True
        provider = GeminiTextProvider(test_config, http_client=fake_gemini.client())
        result = asyncio.run(provider.generate_design("SKYLINE", "modern minimal"))
        assert result.variants[0].id == 1

    def test_missing_key(self, unconfigured_config, fake_gemini):
        """No credential: fails before any network call."""
        provider = GeminiTextProvider(unconfigured_config, http_client=fake_gemini.client())
        with pytest.raises(UpstreamConfigError):
            asyncio.run(provider.generate_design("SKYLINE", "modern minimal"))
        assert fake_gemini.calls == []

    @pytest.mark.parametrize("status", [400, 403, 404, 429, 500, 503])
    def test_error_status(self, test_config, fake_gemini, status):
        """An upstream error status should raise UpstreamFailure naming it."""
        fake_gemini.text_status = status
        provider = GeminiTextProvider(test_config, http_client=fake_gemini.client())
        with pytest.raises(UpstreamFailure) as exc_info:
            asyncio.run(provider.generate_design("SKYLINE", "modern minimal"))
        assert exc_info.value.details == f"Gemini API error: {status}"
        assert exc_info.value.upstream_status == status

    def test_network_error(self, test_config, fake_gemini):
        """A transport error should raise UpstreamFailure."""
        fake_gemini.fail_network = True
        provider = GeminiTextProvider(test_config, http_client=fake_gemini.client())
        with pytest.raises(UpstreamFailure) as exc_info:
            asyncio.run(provider.generate_design("SKYLINE", "modern minimal"))
        assert "request failed" in exc_info.value.details

    def test_malformed_text(self, test_config, fake_gemini):
        """A non-JSON reply should raise UpstreamFailure."""
        fake_gemini.text_raw = "Sorry, I cannot help with that."
        provider = GeminiTextProvider(test_config, http_client=fake_gemini.client())
        with pytest.raises(UpstreamFailure):
            asyncio.run(provider.generate_design("SKYLINE", "modern minimal"))


class TestGeminiImageProvider:
    """Test the primary image call."""

    def test_predictions_response(self, test_config, fake_gemini):
        """An Imagen predictions reply should become a data URI."""
        provider = GeminiImageProvider(test_config, http_client=fake_gemini.client())
        result = asyncio.run(provider.generate("logo for SKYLINE"))
        assert result.source == "gemini"
        assert result.image.startswith("data:image/png;base64,")

        path, body, _ = fake_gemini.image_calls[0]
        assert path.endswith("/imagen-3.0-generate-001:predict")
        assert body["instances"] == [{"prompt": "logo for SKYLINE"}]
        assert body["parameters"]["sampleCount"] == 1
        assert body["parameters"]["aspectRatio"] == "1:1"
        assert body["parameters"]["safetySetting"] == "block_some"

    def test_candidates_response(self, test_config, fake_gemini):
        """An inline-data reply should become a data URI with its mime type."""
        fake_gemini.image_body = {
            "candidates": [{"content": {"parts": [{"inlineData": {"mimeType": "image/webp", "data": "UklG"}}]}}]
        }
        provider = GeminiImageProvider(test_config, http_client=fake_gemini.client())
        result = asyncio.run(provider.generate("logo"))
        assert result.image == "data:image/webp;base64,UklG"

    def test_no_image_data(self, test_config, fake_gemini):
        """An empty predictions list should raise NoImageData."""
        fake_gemini.image_body = {"predictions": []}
        provider = GeminiImageProvider(test_config, http_client=fake_gemini.client())
        with pytest.raises(NoImageData):
            asyncio.run(provider.generate("logo"))
        assert len(fake_gemini.image_calls) == 1

    def test_error_status(self, test_config, fake_gemini):
        """An upstream error status should raise UpstreamFailure."""
        fake_gemini.image_status = 500
        provider = GeminiImageProvider(test_config, http_client=fake_gemini.client())
        with pytest.raises(UpstreamFailure):
            asyncio.run(provider.generate("logo"))

    def test_configuration_flag(self, test_config, unconfigured_config):
        """is_configured should follow the credential."""
        assert GeminiImageProvider(test_config).is_configured()
        assert not GeminiImageProvider(unconfigured_config).is_configured()


class TestProviderRegistry:
    """Test provider registration and lookup."""

    def test_builtin_providers_registered(self):
        """Both built-in providers should be registered."""
        available = provider_registry.list_available()
        assert "gemini" in available
        assert "pollinations" in available

    def test_instantiate(self, test_config):
        """instantiate should build the named provider with overrides."""
        provider = provider_registry.instantiate("pollinations", test_config, size=256)
        assert isinstance(provider, PollinationsImageProvider)
        assert provider.size == 256

    def test_unknown_provider(self):
        """Looking up an unknown name should raise KeyError."""
        with pytest.raises(KeyError, match="not found"):
            provider_registry.get_provider_class("dall-e")

    def test_register_custom_provider(self, test_config):
        """A decorated class should be registered under its name."""
        from logoforge.providers.base import ProviderRegistry

        registry = ProviderRegistry()

        @registry.register
        class StaticProvider(ImageProviderBase):
            name = "static"

            async def generate(self, prompt: str) -> ImageResult:
                return ImageResult(image="https://example.com/x.png", source="pollinations")

        provider = registry.instantiate("static", test_config)
        assert asyncio.run(provider.generate("x")).image == "https://example.com/x.png"
