"""
Fixed-Window Rate Limiter.

Counts hits per ``(client key, route)`` in windows of ``window_seconds``. State is
kept in process memory; the background sweeper drops windows that have ended.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from fastapi import Request

from commitlabs.core.logging_config import get_logger
from commitlabs.server.core.config import RateLimitConfig, settings
from commitlabs.server.errors import TooManyRequestsError

logger = get_logger(__name__)

ANONYMOUS_CLIENT = "anonymous"


def client_key(request: Request) -> str:
    """First ``X-Forwarded-For`` entry, else the socket peer, else ``anonymous``."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    if request.client and request.client.host:
        return request.client.host
    return ANONYMOUS_CLIENT


@dataclass
class _Window:
    started_at: float
    count: int = 0


class RateLimiter:
    def __init__(
        self,
        requests: int,
        window_seconds: int,
        enabled: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.requests = requests
        self.window_seconds = window_seconds
        self.enabled = enabled
        self._clock = clock
        self._lock = threading.Lock()
        self._windows: Dict[Tuple[str, str], _Window] = {}

    @classmethod
    def from_config(cls, config: RateLimitConfig) -> "RateLimiter":
        return cls(requests=config.requests, window_seconds=config.window_seconds, enabled=config.enabled)

    def hit(self, key: str, route: str) -> bool:
        """Count one request; returns False when the window is exhausted."""
        if not self.enabled:
            return True
        now = self._clock()
        with self._lock:
            window = self._windows.get((key, route))
            if window is None or now - window.started_at >= self.window_seconds:
                window = _Window(started_at=now)
                self._windows[(key, route)] = window
            if window.count >= self.requests:
                return False
            window.count += 1
            return True

    def check(self, key: str, route: str) -> None:
        """
        Raises:
            TooManyRequestsError: the client exhausted its window for ``route``.
        """
        if not self.hit(key, route):
            logger.warning(f"Rate limit exceeded for {key} on {route}")
            raise TooManyRequestsError()

    def sweep(self) -> int:
        """Drop ended windows and return how many were removed."""
        now = self._clock()
        with self._lock:
            stale = [k for k, w in self._windows.items() if now - w.started_at >= self.window_seconds]
            for k in stale:
                del self._windows[k]
        return len(stale)

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()


_rate_limiter: Optional[RateLimiter] = None


def get_rate_limiter() -> RateLimiter:
    global _rate_limiter
    if _rate_limiter is None:
        _rate_limiter = RateLimiter.from_config(settings.rate_limit)
    return _rate_limiter
