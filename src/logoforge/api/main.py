"""Logoforge Gateway - FastAPI Application.

This module is the single entry point for the gateway.  It defines the
:func:`create_app` factory, the module-level ``app`` instance used by
uvicorn, and the ``main()`` CLI function that launches the server.

Architecture
------------
The gateway is stateless apart from two in-memory rate limiters:

- **Configuration** comes from :data:`~logoforge.core.config.config`
  (``LOGOFORGE_*`` variables plus ``GEMINI_API_KEY``).
- **Rate limiting** uses one :class:`~logoforge.core.rate_limiter.RateLimiter`
  per endpoint, created with the app and stored on ``app.state``.
- **Design analysis** is delegated to
  :class:`~logoforge.providers.gemini.GeminiTextProvider`.
- **Image generation** goes through an
  :class:`~logoforge.core.fallback.ImageFallbackChain` (Gemini first,
  Pollinations as the always-available fallback).
- **Errors** are raised as :class:`~logoforge.core.errors.LogoforgeError`
  subclasses and turned into ``{error, message, ...}`` bodies by a single
  exception handler.

Endpoints
---------
========  =======================  ========================================
Method    Path                     Purpose
========  =======================  ========================================
POST      ``/generate-analysis``   Two logo prompts + palette for a brief
POST      ``/generate-image``      One preview image for a prompt
OPTIONS   both of the above        Preflight, empty 200
GET       ``/health``              Liveness and credential status
========  =======================  ========================================

Every response carries ``Access-Control-Allow-Origin: *``.

Usage
-----
CLI (installed entry point)::

    logoforge

Direct invocation::

    python -m logoforge.api.main
"""

from __future__ import annotations

import logging
import random
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from logoforge import __version__
from logoforge.api.models import DesignRequest, DesignResult, ImageRequest, ImageResponse
from logoforge.core.config import LogoforgeConfig, config
from logoforge.core.errors import LogoforgeError, RateLimitExceeded, ValidationError
from logoforge.core.fallback import ImageFallbackChain
from logoforge.core.rate_limiter import RateLimiter
from logoforge.providers import GeminiTextProvider, provider_registry

logger = logging.getLogger(__name__)

UNKNOWN_CLIENT = "unknown"

GENERATION_PATHS = ("/generate-analysis", "/generate-image")

PREFLIGHT_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Accept, Content-Type, X-Requested-With",
}

# ---------------------------------------------------------------------------
# Client identification.
# ---------------------------------------------------------------------------


def client_identifier(request: Request) -> str:
    """Resolve the rate-limit key for a request.

    Uses the first address in ``X-Forwarded-For``, then ``X-Real-IP``, and
    falls back to ``"unknown"`` when neither header is present.  All
    header-less callers therefore share one budget.

    Args:
        request: The incoming request.

    Returns:
        The client identifier string.
    """
    forwarded = request.headers.get("x-forwarded-for", "")
    first = forwarded.split(",")[0].strip()
    if first:
        return first
    real_ip = request.headers.get("x-real-ip", "").strip()
    return real_ip or UNKNOWN_CLIENT


def _check_rate_limit(limiter: RateLimiter, identifier: str, cfg: LogoforgeConfig, message: str) -> None:
    if not limiter.allow(identifier):
        raise RateLimitExceeded(message=message, retry_after=cfg.retry_after_seconds)


# ---------------------------------------------------------------------------
# Application factory.
# ---------------------------------------------------------------------------


def create_app(
    cfg: LogoforgeConfig | None = None,
    *,
    http_client: httpx.AsyncClient | None = None,
    rng: random.Random | None = None,
    text_provider: GeminiTextProvider | None = None,
    image_chain: ImageFallbackChain | None = None,
) -> FastAPI:
    """Build a gateway application.

    Rate limiters and providers are created here (not in the lifespan) so
    that the app is usable even when the ASGI lifespan is not run.

    Args:
        cfg: Configuration; defaults to the global ``config``.
        http_client: Shared outbound HTTP client for the Gemini providers.
            Tests pass one backed by ``httpx.MockTransport``.
        rng: Random source for fallback image seeds.
        text_provider: Replaces the default Gemini text provider.
        image_chain: Replaces the default Gemini-then-Pollinations chain.

    Returns:
        The configured FastAPI application.
    """
    cfg = cfg or config

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Log startup and close provider HTTP clients on shutdown."""
        # --- Startup -------------------------------------------------------
        if not cfg.gemini_configured:
            logger.warning("GEMINI_API_KEY is not set; analysis will fail and images will fall back")
        logger.info(
            f"Gateway ready (analysis limit {cfg.analysis_rate_limit}, "
            f"image limit {cfg.image_rate_limit} per {cfg.rate_window_seconds:.0f}s)"
        )

        yield  # Application runs here.

        # --- Shutdown ------------------------------------------------------
        await app.state.text_provider.aclose()
        await app.state.image_chain.aclose()
        logger.info("Provider clients closed on shutdown.")

    app = FastAPI(
        title="Logoforge Gateway",
        description="Logo design prompts and previews from a short brief.",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.config = cfg
    app.state.analysis_limiter = RateLimiter(cfg.analysis_rate_limit, cfg.rate_window_seconds)
    app.state.image_limiter = RateLimiter(cfg.image_rate_limit, cfg.rate_window_seconds)
    app.state.text_provider = text_provider or GeminiTextProvider(cfg, http_client=http_client)
    app.state.image_chain = image_chain or ImageFallbackChain(
        primary=provider_registry.instantiate("gemini", cfg, http_client=http_client),
        fallback=provider_registry.instantiate("pollinations", cfg, rng=rng),
    )

    # Browser clients are served from other origins; credentials are never
    # used, so the wildcard origin is echoed as-is.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["POST", "OPTIONS"],
        allow_headers=["*"],
    )

    # Registered after CORSMiddleware, so it runs first.  Every OPTIONS
    # request on a generation path gets an empty 200, whatever method a
    # browser preflight asks about.
    @app.middleware("http")
    async def always_allow_origin(request: Request, call_next):
        if request.method == "OPTIONS" and request.url.path in GENERATION_PATHS:
            return preflight_response()
        response = await call_next(request)
        response.headers.setdefault("Access-Control-Allow-Origin", "*")
        return response

    _register_exception_handlers(app)
    _register_routes(app)
    return app


# ---------------------------------------------------------------------------
# Error responses.
# ---------------------------------------------------------------------------


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(LogoforgeError)
    async def logoforge_error_handler(request: Request, exc: LogoforgeError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        # Malformed JSON or wrongly typed fields.
        error = ValidationError("Invalid request body", "صيغة الطلب غير صحيحة")
        return JSONResponse(status_code=error.status_code, content=error.to_dict())

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == 405:
            content = {"error": "Method not allowed", "message": "الطريقة غير مسموحة"}
        else:
            content = {"error": str(exc.detail), "message": str(exc.detail)}
        return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)


# ---------------------------------------------------------------------------
# Routes.
# ---------------------------------------------------------------------------


def preflight_response() -> Response:
    """Empty 200 carrying the CORS allow headers."""
    return Response(status_code=200, headers=PREFLIGHT_HEADERS)


def _register_routes(app: FastAPI) -> None:
    @app.post("/generate-analysis", response_model=DesignResult)
    async def generate_analysis(req: DesignRequest, request: Request) -> DesignResult:
        """Generate two logo design prompts for a project brief.

        This endpoint:

        1. Applies the per-client analysis rate limit.
        2. Requires non-blank ``projectName`` and ``inputText``.
        3. Sends the compiled analysis prompt to the text provider.
        4. Returns the provider's parsed JSON document.

        Args:
            req: Validated :class:`DesignRequest` payload.
            request: The raw request (for client identification).

        Returns:
            The parsed :class:`DesignResult`.

        Raises:
            RateLimitExceeded: 429 once the client's budget is used up.
            ValidationError: 400 for a missing field.
            UpstreamConfigError: 500 when no credential is configured.
            UpstreamFailure: 500 when the provider fails.
        """
        state = request.app.state
        identifier = client_identifier(request)
        _check_rate_limit(state.analysis_limiter, identifier, state.config, RateLimitExceeded.default_message)

        if not req.is_complete():
            raise ValidationError()

        result = await state.text_provider.generate_design(req.projectName, req.inputText)
        logger.info(f"Request from {identifier} for project: {req.projectName}")
        return result

    @app.post("/generate-image", response_model=ImageResponse)
    async def generate_image(req: ImageRequest, request: Request) -> dict:
        """Generate one preview image for a prompt.

        The primary provider is tried when ``useGemini`` is true and a
        credential is configured; any failure falls back to Pollinations.

        Args:
            req: Validated :class:`ImageRequest` payload.
            request: The raw request (for client identification).

        Returns:
            Dictionary with ``image`` (data URI or URL) and ``source``.

        Raises:
            RateLimitExceeded: 429 once the client's budget is used up.
            ValidationError: 400 for a missing prompt.
            UpstreamFailure: 500 only if the fallback fails as well.
        """
        state = request.app.state
        identifier = client_identifier(request)
        _check_rate_limit(state.image_limiter, identifier, state.config, "تجاوزت الحد المسموح. انتظر دقيقة")

        if not req.prompt or not req.prompt.strip():
            raise ValidationError("Missing prompt", "وصف الصورة مطلوب")

        result = await state.image_chain.generate(req.prompt, use_primary=req.useGemini)
        logger.info(f"Image for {identifier} served by {result.source}")
        return result.to_dict()

    @app.get("/health")
    async def health(request: Request) -> dict:
        """Return liveness information and whether a credential is set."""
        return {
            "status": "ok",
            "version": __version__,
            "gemini_configured": request.app.state.config.gemini_configured,
        }


# ---------------------------------------------------------------------------
# Module-level application used by uvicorn.
# ---------------------------------------------------------------------------
app = create_app(config)


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


def main() -> None:
    """Launch the uvicorn ASGI server.

    Reads host and port from :data:`~logoforge.core.config.config` (which
    loads from ``LOGOFORGE_SERVER_HOST`` and ``LOGOFORGE_SERVER_PORT``
    environment variables).  Defaults to ``0.0.0.0:8000``.

    This function is registered as the ``logoforge`` console script in
    ``pyproject.toml``.
    """
    import uvicorn

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    uvicorn.run(
        "logoforge.api.main:app",
        host=config.server_host,
        port=config.server_port,
        reload=False,
    )


if __name__ == "__main__":
    main()
