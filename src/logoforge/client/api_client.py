"""Async HTTP client for the Logoforge gateway.

:class:`GatewayClient` is what the UI (and any other Python caller) uses to
talk to ``/generate-analysis`` and ``/generate-image``.

- The analysis call is retried with exponential backoff (1 s, 2 s, 4 s by
  default) and returns an :class:`~logoforge.core.retry.Ok` or
  :class:`~logoforge.core.retry.Err` instead of raising.
- Authentication failures are not retried.  The gateway reports an upstream
  403 as a 500 whose ``details`` reads ``"Gemini API error: 403"``; that
  signature is classified as :attr:`ErrorKind.FORBIDDEN`, a terminal kind.
- The image call is a single attempt; the gateway already falls back.
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Any

import httpx

from logoforge.api.models import DesignRequest, DesignResult
from logoforge.core.retry import ClassifiedError, Err, ErrorKind, Ok, RetryPolicy, retry_async
from logoforge.providers.base import ImageResult

logger = logging.getLogger(__name__)

_UPSTREAM_STATUS = re.compile(r"error:\s*(\d{3})")

_STATUS_KINDS: dict[int, ErrorKind] = {
    400: ErrorKind.VALIDATION,
    403: ErrorKind.FORBIDDEN,
    404: ErrorKind.NOT_FOUND,
    429: ErrorKind.RATE_LIMITED,
}


def classify_status(status_code: int, body: dict[str, Any] | None = None) -> ErrorKind:
    """Map a gateway error response to an :class:`ErrorKind`.

    Args:
        status_code: HTTP status returned by the gateway.
        body: Parsed JSON error body, if any.

    Returns:
        The failure class.  Upstream statuses reported in a 500's
        ``details`` take precedence over the generic server kind.
    """
    body = body or {}
    if status_code in _STATUS_KINDS:
        return _STATUS_KINDS[status_code]

    if status_code >= 500:
        if body.get("error") == "Server configuration error":
            return ErrorKind.MISSING_KEY
        match = _UPSTREAM_STATUS.search(str(body.get("details") or ""))
        if match:
            upstream = int(match.group(1))
            if upstream in (403, 404, 429):
                return _STATUS_KINDS[upstream]
        return ErrorKind.SERVER

    return ErrorKind.UNKNOWN


def _error_from_response(response: httpx.Response) -> Err:
    try:
        body = response.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}
    kind = classify_status(response.status_code, body)
    message = body.get("message") or f"HTTP error! status: {response.status_code}"
    return Err(kind, message, response.status_code)


def _classify_exception(exc: Exception) -> Err:
    if isinstance(exc, ClassifiedError):
        return exc.err
    if isinstance(exc, httpx.HTTPError):
        return Err(ErrorKind.NETWORK, str(exc))
    return Err(ErrorKind.UNKNOWN, str(exc))


class GatewayClient:
    """Client for the two gateway endpoints.

    Args:
        base_url: Gateway root, e.g. ``http://127.0.0.1:8000``.
        http_client: Optional preconfigured client (tests pass one with a
            mock transport or the FastAPI app).
        policy: Retry policy for the analysis call.
        sleep: Awaitable sleep used between retries.
    """

    def __init__(
        self,
        base_url: str,
        http_client: httpx.AsyncClient | None = None,
        policy: RetryPolicy | None = None,
        timeout: float = 90.0,
        sleep=None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.policy = policy or RetryPolicy()
        self._client = http_client
        self._owns_client = http_client is None
        self._timeout = timeout
        self._sleep = sleep
        self.loop: asyncio.AbstractEventLoop | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self._timeout))
            self._owns_client = True
            # Connections belong to this loop; aclose must run on it too
            self.loop = asyncio.get_running_loop()
        return self._client

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None and not self._client.is_closed:
            await self._client.aclose()

    async def _post_json(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        client = await self._get_client()
        response = await client.post(f"{self.base_url}{path}", json=payload)
        if not response.is_success:
            raise ClassifiedError(_error_from_response(response))
        try:
            return response.json()
        except ValueError as e:
            raise ClassifiedError(Err(ErrorKind.SERVER, "Invalid JSON from gateway")) from e

    async def generate_analysis(self, request: DesignRequest) -> Ok[DesignResult] | Err:
        """Request a design analysis, retrying transient failures.

        Args:
            request: The submitted design request.

        Returns:
            ``Ok(DesignResult)`` on success, otherwise the last ``Err``.
        """
        payload = {"projectName": request.projectName, "inputText": request.inputText}

        async def attempt() -> DesignResult:
            data = await self._post_json("/generate-analysis", payload)
            try:
                return DesignResult.model_validate(data)
            except ValueError as e:
                raise ClassifiedError(
                    Err(ErrorKind.SERVER, "Unexpected analysis response")
                ) from e

        kwargs = {"sleep": self._sleep} if self._sleep is not None else {}
        result = await retry_async(attempt, self.policy, _classify_exception, **kwargs)
        if isinstance(result, Err):
            logger.warning(
                f"Analysis failed after {result.attempts} attempt(s): {result.kind.value}"
            )
        return result

    async def generate_image(self, prompt: str, use_gemini: bool = True) -> ImageResult:
        """Request one preview image.

        Raises:
            ClassifiedError: If the gateway rejects the request or is
                unreachable.
        """
        try:
            data = await self._post_json(
                "/generate-image", {"prompt": prompt, "useGemini": use_gemini}
            )
        except httpx.HTTPError as e:
            raise ClassifiedError(Err(ErrorKind.NETWORK, str(e))) from e

        source = data.get("source")
        if not data.get("image") or source not in ("gemini", "pollinations"):
            raise ClassifiedError(Err(ErrorKind.SERVER, "Unexpected image response"))
        return ImageResult(image=data["image"], source=source)
