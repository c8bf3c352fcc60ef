"""
In-memory fixed-window rate limiter.

Counts requests per key (client IP, namespaced per endpoint) inside a window
that starts with the first request and resets once it has elapsed. State
lives in this process only, so limits are per instance when the API is
scaled out.
"""
import asyncio
import logging
import math
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from app.services.errors import RateLimitedError

logger = logging.getLogger(__name__)


@dataclass
class RateLimitEntry:
    """Active window for one key."""

    count: int
    reset_time: float


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of a single check."""

    allowed: bool
    remaining: int
    reset_time: float


class RateLimiter:
    """
    Fixed-window counter keyed by an arbitrary string.

    Times come from `clock` (seconds, monotonic by default) so tests can
    drive the window explicitly.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: dict[str, RateLimitEntry] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def check(self, key: str, limit: int, window_s: float) -> RateLimitResult:
        """
        Count one request for `key` and decide whether it is allowed.

        Args:
            key: Identifier to limit on (e.g. "projects-create:203.0.113.7")
            limit: Maximum requests per window
            window_s: Window length in seconds

        Returns:
            RateLimitResult; reset_time is on the limiter's clock
        """
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)

            if entry is None or now > entry.reset_time:
                entry = RateLimitEntry(count=1, reset_time=now + window_s)
                self._entries[key] = entry
                return RateLimitResult(allowed=True, remaining=limit - 1, reset_time=entry.reset_time)

            if entry.count >= limit:
                return RateLimitResult(allowed=False, remaining=0, reset_time=entry.reset_time)

            entry.count += 1
            return RateLimitResult(
                allowed=True,
                remaining=limit - entry.count,
                reset_time=entry.reset_time,
            )

    def retry_after(self, result: RateLimitResult) -> int:
        """Whole seconds until the window of a denied result resets (at least 1)."""
        return max(1, math.ceil(result.reset_time - self._clock()))

    def sweep(self) -> int:
        """Drop entries whose window has passed. Returns how many were removed."""
        now = self._clock()
        with self._lock:
            expired = [key for key, entry in self._entries.items() if now > entry.reset_time]
            for key in expired:
                del self._entries[key]
        if expired:
            logger.debug(f"Rate limiter swept {len(expired)} expired entries")
        return len(expired)

    async def run_sweeper(self, interval_s: float = 60.0) -> None:
        """Sweep forever every `interval_s` seconds; cancel the task to stop."""
        while True:
            await asyncio.sleep(interval_s)
            self.sweep()

    def reset(self) -> None:
        with self._lock:
            self._entries.clear()


def get_client_ip(request: Request) -> str:
    """Best-effort client IP: X-Forwarded-For, then X-Real-IP, then the peer."""
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first

    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()

    if request.client and request.client.host:
        return request.client.host

    return "unknown"


class RateLimit:
    """
    FastAPI dependency enforcing a fixed-window limit per client IP.

    Usage:
        @router.post("", dependencies=[Depends(RateLimit("contact", limit=5, window_s=3600))])

    The limiter is taken from request.app.state.rate_limiter.
    """

    def __init__(self, namespace: str, limit: int, window_s: float):
        self.namespace = namespace
        self.limit = limit
        self.window_s = window_s

    def __call__(self, request: Request) -> RateLimitResult:
        limiter: Optional[RateLimiter] = getattr(request.app.state, "rate_limiter", None)
        if limiter is None:
            limiter = RateLimiter()
            request.app.state.rate_limiter = limiter

        client_ip = get_client_ip(request)
        result = limiter.check(f"{self.namespace}:{client_ip}", self.limit, self.window_s)
        if not result.allowed:
            retry_after = limiter.retry_after(result)
            logger.warning(f"Rate limit hit for {self.namespace} from {client_ip}; retry in {retry_after}s")
            raise RateLimitedError(retry_after=retry_after)
        return result
