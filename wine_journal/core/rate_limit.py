"""
In-memory fixed-window rate limiter for expensive operations.

One limiter instance is created when the web app starts and shared by every
request handler. State lives in this process only, so horizontally scaled
deployments each enforce their own windows.

Expired entries are not swept; they are replaced the next time the same key
is checked.
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from threading import Lock

logger = logging.getLogger(__name__)

WINDOW_DURATION_SECONDS = 60.0
MAX_REQUESTS_PER_WINDOW = 10


@dataclass
class RateLimitEntry:
    """Admission count for one key within its current window."""

    key: str
    count: int
    window_expires_at: float


class FixedWindowRateLimiter:
    """
    Keyed fixed-window admission gate.

    Each key gets ``max_requests`` admissions per window, where the window
    starts at the first admitted request and lasts ``window_seconds``.
    Bursts of up to twice the limit are possible across a window boundary.
    """

    def __init__(
        self,
        max_requests: int = MAX_REQUESTS_PER_WINDOW,
        window_seconds: float = WINDOW_DURATION_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_requests <= 0:
            raise ValueError("max_requests must be positive")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self._max_requests = max_requests
        self._window_seconds = window_seconds
        self._clock = clock
        self._entries: dict[str, RateLimitEntry] = {}
        # Keys already reported as throttled in their current window
        self._throttled: set[str] = set()
        self._lock = Lock()

    def check_and_admit(self, key: str) -> bool:
        """
        Count a request against ``key`` and decide whether to admit it.

        Args:
            key: Opaque caller identity, conventionally "{operation}-{user_id}".

        Returns:
            True if the request is admitted, False if the key has used up
            its window.
        """
        with self._lock:
            now = self._clock()
            entry = self._entries.get(key)

            if entry is None or now >= entry.window_expires_at:
                self._entries[key] = RateLimitEntry(
                    key=key,
                    count=1,
                    window_expires_at=now + self._window_seconds,
                )
                self._throttled.discard(key)
                return True

            if entry.count < self._max_requests:
                entry.count += 1
                return True

            first_rejection = key not in self._throttled
            self._throttled.add(key)

        if first_rejection:
            logger.info(f"Rate limit reached for key '{key}' until its window expires")
        return False

    def reset(self, key: str) -> None:
        """Forget any window for ``key``; the next check starts fresh."""
        with self._lock:
            self._entries.pop(key, None)
            self._throttled.discard(key)
