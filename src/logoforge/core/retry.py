"""Retry with exponential backoff, returning typed results.

:func:`retry_async` runs an async operation in an explicit loop.  Failures
are classified into an :class:`ErrorKind`; terminal kinds (missing
credential, HTTP 403, validation) stop immediately, anything else is retried
after a delay that starts at ``initial_delay`` and doubles each time.

Instead of raising, the loop returns :class:`Ok` or :class:`Err`, so callers
can tell a terminal failure from an exhausted retry budget::

    result = await retry_async(call, RetryPolicy(max_retries=3), classify)
    if isinstance(result, Ok):
        use(result.value)
    else:
        show(result.kind, result.attempts)

With the default policy an operation runs at most four times (one attempt
plus three retries), sleeping 1 s, 2 s and 4 s between attempts.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ErrorKind(str, Enum):
    """Failure classes the client distinguishes."""

    MISSING_KEY = "missing_key"
    VALIDATION = "validation"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    RATE_LIMITED = "rate_limited"
    SERVER = "server"
    NETWORK = "network"
    UNKNOWN = "unknown"

    @property
    def is_terminal(self) -> bool:
        """True for failures that retrying cannot fix."""
        return self in _TERMINAL_KINDS


_TERMINAL_KINDS = frozenset({ErrorKind.MISSING_KEY, ErrorKind.VALIDATION, ErrorKind.FORBIDDEN})


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful outcome."""

    value: T
    attempts: int = 1


@dataclass(frozen=True)
class Err:
    """Failed outcome.

    Attributes:
        kind: Failure class of the last attempt.
        message: Human-readable message (server-supplied when available).
        status_code: HTTP status of the last attempt, if any.
        attempts: How many attempts were made.
    """

    kind: ErrorKind
    message: str = ""
    status_code: int | None = None
    attempts: int = 1

    @property
    def terminal(self) -> bool:
        return self.kind.is_terminal


@dataclass(frozen=True)
class RetryPolicy:
    """Backoff schedule.

    Attributes:
        max_retries: Retries after the first attempt.
        initial_delay: Delay before the first retry, in seconds.
        multiplier: Factor applied to the delay after each retry.
    """

    max_retries: int = 3
    initial_delay: float = 1.0
    multiplier: float = 2.0

    def delay_for(self, retry_index: int) -> float:
        """Return the delay before retry number *retry_index* (0-based)."""
        return self.initial_delay * (self.multiplier**retry_index)

    @classmethod
    def from_config(cls, config) -> RetryPolicy:
        """Build the client policy from a ``LogoforgeConfig``."""
        return cls(
            max_retries=config.client_max_retries,
            initial_delay=config.client_initial_backoff_ms / 1000.0,
        )


class ClassifiedError(Exception):
    """Exception carrying an :class:`Err` for :func:`retry_async`.

    Operations raise it to report a failure that has already been
    classified (for example, from an HTTP status).
    """

    def __init__(self, err: Err) -> None:
        super().__init__(err.message or err.kind.value)
        self.err = err


def default_classify(exc: Exception) -> Err:
    """Classify exceptions that were not raised as :class:`ClassifiedError`."""
    if isinstance(exc, ClassifiedError):
        return exc.err
    if isinstance(exc, (ConnectionError, TimeoutError, OSError)):
        return Err(ErrorKind.NETWORK, str(exc))
    return Err(ErrorKind.UNKNOWN, str(exc))


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy | None = None,
    classify: Callable[[Exception], Err] = default_classify,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> Ok[T] | Err:
    """Run *operation* until it succeeds, fails terminally or runs out of retries.

    Args:
        operation: Zero-argument coroutine function performing one attempt.
        policy: Backoff schedule (defaults to 3 retries from 1 s).
        classify: Maps an exception to an :class:`Err`.
        sleep: Awaitable sleep, injected by tests.

    Returns:
        :class:`Ok` with the operation's value, or :class:`Err` describing
        the last failure.
    """
    policy = policy or RetryPolicy()
    attempt = 0

    while True:
        attempt += 1
        try:
            value = await operation()
            return Ok(value, attempts=attempt)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            err = classify(e)

        retries_used = attempt - 1
        if err.terminal or retries_used >= policy.max_retries:
            if err.terminal:
                logger.warning(f"Terminal failure ({err.kind.value}) on attempt {attempt}, not retrying")
            else:
                logger.error(f"Giving up after {attempt} attempts: {err.kind.value}")
            return Err(err.kind, err.message, err.status_code, attempts=attempt)

        delay = policy.delay_for(retries_used)
        logger.info(
            f"Attempt {attempt} failed ({err.kind.value}), retrying in {delay:.1f}s"
        )
        await sleep(delay)
