"""Configuration management for Logoforge.

This module provides centralized configuration management using Pydantic Settings.
All configuration is loaded from environment variables with the LOGOFORGE_ prefix,
allowing easy customization without code changes.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Environment variables (LOGOFORGE_* prefix)
2. .env file in the project root
3. Default values defined in LogoforgeConfig

The provider credential is the one exception to the prefix rule: it is read
from ``GEMINI_API_KEY`` (the name used by existing deployments) or from
``LOGOFORGE_GEMINI_API_KEY``.

Example .env file:
    GEMINI_API_KEY=AIza...
    LOGOFORGE_ANALYSIS_RATE_LIMIT=10
    LOGOFORGE_IMAGE_RATE_LIMIT=20
    LOGOFORGE_SERVER_PORT=8000

Global Configuration Instance
------------------------------
A global `config` instance is created automatically at module import time.
The gateway and the UI both read from it; tests build their own
``LogoforgeConfig`` instances and pass them in explicitly.

Usage Example
-------------
    from logoforge.core.config import config

    print(config.text_model)
    print(config.gemini_configured)

Rate Limits
-----------
Limits are counted per client identifier over a trailing window:
- analysis_rate_limit: requests to ``/generate-analysis`` per window (10)
- image_rate_limit: requests to ``/generate-image`` per window (20)
- rate_window_seconds: window length (60)
- retry_after_seconds: fixed hint returned with a 429 (60). This is not the
  real remaining window time.
"""

from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LogoforgeConfig(BaseSettings):
    """Main configuration for Logoforge.

    Values are loaded from environment variables with the LOGOFORGE_ prefix,
    with fallback to defaults defined here.

    Attributes
    ----------
    Provider Settings:
        gemini_api_key : str | None
            Credential for the Gemini text and image endpoints
        gemini_base_url : str
            Base URL of the generative-language models API
        text_model : str
            Model used for the design analysis call
        image_model : str
            Model used for primary image generation
        text_temperature, text_top_k, text_top_p
            Sampling parameters for the analysis call

    Fallback Image Settings:
        pollinations_base_url : str
            Base URL of the always-available fallback provider
        pollinations_model : str
            Model name passed to the fallback provider
        image_size : int
            Square output size requested from the fallback provider
        max_seed : int
            Exclusive upper bound for random seeds

    Gateway Settings:
        analysis_rate_limit, image_rate_limit : int
            Requests per window per client identifier
        rate_window_seconds : float
            Trailing window length
        retry_after_seconds : int
            Fixed retry hint returned with a 429

    Client Settings:
        client_max_retries : int
            Retries after the first failed analysis call
        client_initial_backoff_ms : int
            First backoff delay; doubled after each attempt
        api_base_url : str
            Gateway URL the UI talks to
        use_gateway_images : bool
            Ask the Image Gateway for previews (True) or build fallback URLs
            in process (False)

    Examples
    --------
        >>> custom_config = LogoforgeConfig(
        ...     gemini_api_key="test-key",
        ...     analysis_rate_limit=2,
        ... )
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="LOGOFORGE_",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Provider settings
    gemini_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "gemini_api_key", "GEMINI_API_KEY", "LOGOFORGE_GEMINI_API_KEY"
        ),
        description="Gemini API key (read from GEMINI_API_KEY)",
    )
    gemini_base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta/models",
        description="Base URL of the generative-language models API",
    )
    text_model: str = Field(
        default="gemini-2.0-flash-exp",
        description="Model used to generate the design analysis",
    )
    image_model: str = Field(
        default="imagen-3.0-generate-001",
        description="Model used for primary image generation",
    )
    text_temperature: float = Field(default=0.8, ge=0.0, le=2.0)
    text_top_k: int = Field(default=40, ge=1)
    text_top_p: float = Field(default=0.95, ge=0.0, le=1.0)
    image_aspect_ratio: Literal["1:1", "3:4", "4:3", "9:16", "16:9"] = Field(
        default="1:1",
        description="Aspect ratio requested from the primary image provider",
    )
    image_negative_prompt: str = Field(
        default="blurry, low quality, distorted, watermark",
        description="Negative prompt sent to the primary image provider",
    )

    # Fallback image provider
    pollinations_base_url: str = Field(
        default="https://image.pollinations.ai/prompt",
        description="Base URL of the fallback image provider",
    )
    pollinations_model: str = Field(default="flux")
    image_size: int = Field(default=1024, ge=64, le=2048)
    max_seed: int = Field(
        default=1_000_000,
        ge=2,
        description="Exclusive upper bound for fallback image seeds",
    )

    # Gateway limits
    analysis_rate_limit: int = Field(default=10, ge=1)
    image_rate_limit: int = Field(default=20, ge=1)
    rate_window_seconds: float = Field(default=60.0, gt=0)
    retry_after_seconds: int = Field(default=60, ge=1)
    request_timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        description="HTTP timeout for outbound provider calls",
    )

    # Client retry policy
    client_max_retries: int = Field(default=3, ge=0, le=10)
    client_initial_backoff_ms: int = Field(default=1000, ge=0)

    # Server settings
    server_host: str = Field(default="0.0.0.0")
    server_port: int = Field(default=8000, ge=1024, le=65535)
    api_base_url: str = Field(
        default="http://127.0.0.1:8000",
        description="Gateway URL used by the UI client",
    )
    use_gateway_images: bool = Field(
        default=True,
        description="Fetch previews through the Image Gateway instead of locally",
    )

    # UI settings
    gradio_server_name: str = Field(
        default="0.0.0.0",
        description="Server bind address (0.0.0.0 for local network)",
    )
    gradio_server_port: int = Field(
        default=7860,
        description="Server port",
        ge=1024,
        le=65535,
    )
    gradio_share: bool = Field(
        default=False,
        description="Create public gradio.live link (keep False for local-only)",
    )

    @property
    def gemini_configured(self) -> bool:
        """True when a non-blank Gemini credential is available."""
        return bool(self.gemini_api_key and self.gemini_api_key.strip())


# Global configuration instance
# Loads values from environment variables (LOGOFORGE_* prefix) and .env file.
config = LogoforgeConfig()
