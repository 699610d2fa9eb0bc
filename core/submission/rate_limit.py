"""
Rate Limiter - Per-Caller Fixed-Window Request Counter

A courtesy throttle for the intake endpoint, not a security boundary.
Counts live in process memory and reset whenever the process restarts.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable, Final


DEFAULT_WINDOW_SECONDS: Final[int] = 60
DEFAULT_MAX_REQUESTS: Final[int] = 10


@dataclass(frozen=True)
class RateLimitDecision:
    """Result of a rate-limit check."""

    allowed: bool
    remaining: int


@dataclass
class _WindowEntry:
    count: int
    window_start: float


class RateLimiter:
    """
    Fixed-window counter keyed by caller id.

    Expired entries are pruned lazily on every check. The table is shared
    by all requests served by this process, so access goes through a lock.
    """

    def __init__(
        self,
        max_requests: int = DEFAULT_MAX_REQUESTS,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialise the limiter.

        Args:
            max_requests: Requests allowed per caller per window.
            window_seconds: Window length in seconds.
            clock: Time source returning seconds; injectable for tests.
        """
        self._max_requests = max_requests
        self._window_seconds = window_seconds
        self._clock = clock
        self._entries: dict[str, _WindowEntry] = {}
        self._lock = threading.Lock()

    @property
    def max_requests(self) -> int:
        return self._max_requests

    @property
    def window_seconds(self) -> float:
        return self._window_seconds

    def check(self, caller_id: str) -> RateLimitDecision:
        """
        Count a request from caller_id and decide whether it may proceed.

        Args:
            caller_id: Caller identity, usually the client IP.

        Returns:
            RateLimitDecision with allowed flag and remaining quota.
        """
        with self._lock:
            now = self._clock()
            self._prune(now)

            entry = self._entries.get(caller_id)
            if entry is None or entry.window_start < now - self._window_seconds:
                self._entries[caller_id] = _WindowEntry(count=1, window_start=now)
                return RateLimitDecision(allowed=True, remaining=self._max_requests - 1)

            if entry.count >= self._max_requests:
                return RateLimitDecision(allowed=False, remaining=0)

            entry.count += 1
            return RateLimitDecision(
                allowed=True,
                remaining=self._max_requests - entry.count,
            )

    def _prune(self, now: float) -> None:
        cutoff = now - self._window_seconds
        expired = [key for key, entry in self._entries.items() if entry.window_start < cutoff]
        for key in expired:
            del self._entries[key]

    def reset(self) -> None:
        """Forget every caller."""
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
