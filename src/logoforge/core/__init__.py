"""Core components of Logoforge.

This package contains the provider-independent pieces:

- config: Pydantic Settings configuration (``LOGOFORGE_*`` variables)
- errors: Error taxonomy mapped onto HTTP responses
- rate_limiter: Per-identifier sliding-window limiter
- prompt_builder: Analysis and logo preview prompt templates
- parsing: Provider response decoding
- fallback: Primary-then-fallback image generation
- retry: Exponential backoff loop with typed results
"""

from .config import LogoforgeConfig, config
from .errors import (
    LogoforgeError,
    NoImageData,
    RateLimitExceeded,
    UpstreamConfigError,
    UpstreamFailure,
    ValidationError,
)
from .rate_limiter import RateLimiter

__all__ = [
    "LogoforgeConfig",
    "config",
    "LogoforgeError",
    "NoImageData",
    "RateLimitExceeded",
    "UpstreamConfigError",
    "UpstreamFailure",
    "ValidationError",
    "RateLimiter",
]
