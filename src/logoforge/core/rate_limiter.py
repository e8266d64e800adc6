"""Sliding-window rate limiting keyed by client identifier.

Each :class:`RateLimiter` remembers, per identifier, the instants of the
requests it allowed during the trailing window.  A call to :meth:`allow`
first drops instants that have left the window and then compares the
remaining count against the limit.

The limiter holds all state in process memory.  It is correct for a single
gateway process only: there is no persistence across restarts and no
coordination between replicas.  Identifiers are never evicted, so memory
grows with the number of distinct callers seen over the process lifetime.

Usage
-----
::

    limiter = RateLimiter(limit=10, window_seconds=60)
    if not limiter.allow(client_id):
        raise RateLimitExceeded(retry_after=60)
"""

from __future__ import annotations

import logging
import time
from collections import deque
from collections.abc import Callable

logger = logging.getLogger(__name__)


class RateLimiter:
    """In-memory trailing-window limiter.

    Access is expected from a single event loop, so no locking is done;
    :meth:`allow` never awaits and therefore runs without interleaving.

    Args:
        limit: Maximum allowed requests per identifier within the window.
        window_seconds: Length of the trailing window.
        clock: Monotonic clock returning seconds.  Injected by tests.
    """

    def __init__(
        self,
        limit: int,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if limit < 1:
            raise ValueError(f"limit must be >= 1, got {limit}")
        if window_seconds <= 0:
            raise ValueError(f"window_seconds must be > 0, got {window_seconds}")

        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: dict[str, deque[float]] = {}

    def allow(self, identifier: str, now: float | None = None) -> bool:
        """Record a request for *identifier* if it is within budget.

        Args:
            identifier: Client identifier (usually the forwarded address).
            now: Current instant in seconds.  Defaults to the limiter's clock.

        Returns:
            True if the request is allowed (and has been recorded), False if
            the identifier already has ``limit`` requests in the window.
        """
        if now is None:
            now = self._clock()

        window = self._windows.setdefault(identifier, deque())
        self._prune(window, now)

        if len(window) >= self.limit:
            logger.info(f"Rate limit hit for {identifier} ({len(window)}/{self.limit})")
            return False

        window.append(now)
        return True

    def hits(self, identifier: str, now: float | None = None) -> int:
        """Return how many requests *identifier* has inside the window."""
        if now is None:
            now = self._clock()
        window = self._windows.get(identifier)
        if window is None:
            return 0
        self._prune(window, now)
        return len(window)

    def reset(self) -> None:
        """Forget every identifier."""
        self._windows.clear()

    def _prune(self, window: deque[float], now: float) -> None:
        # Instants are appended in order, so stale ones sit at the left.
        while window and now - window[0] >= self.window_seconds:
            window.popleft()

    def __len__(self) -> int:
        return len(self._windows)

    def __repr__(self) -> str:
        return (
            f"RateLimiter(limit={self.limit}, window_seconds={self.window_seconds}, "
            f"identifiers={len(self._windows)})"
        )
