"""
Rate limiting for the staff validation endpoint.

Fixed window per caller address: a window opens on the first request, allows
`limit` requests, and is re-armed once `window` seconds have elapsed.
"""
import math
import time
import logging
import threading
from typing import Dict, Tuple, Optional

from fastapi import Depends, Request

from config import VALIDATE_RATE_LIMIT, RATE_LIMIT_WINDOW_SECONDS
from errors import TooManyRequestsError

logger = logging.getLogger("gym_pass")


class RateLimiter:
    """Capability the validation route depends on. Swap in a shared store for multi-instance deployments."""

    def check(self, key: str) -> bool:
        """Count one request for key; False when it must be rejected."""
        raise NotImplementedError

    def retry_after(self, key: str) -> int:
        """Seconds until key may try again."""
        return 0


class FixedWindowRateLimiter(RateLimiter):
    """Process-local counters. Lost on restart, not shared between instances."""

    def __init__(self, limit: int = VALIDATE_RATE_LIMIT, window: int = RATE_LIMIT_WINDOW_SECONDS, clock=None):
        self.limit = limit
        self.window = window
        self.clock = clock or time.monotonic
        self._windows: Dict[str, Tuple[float, int]] = {}  # key -> (window_start, count)
        self._lock = threading.Lock()

    def check(self, key: str) -> bool:
        now = self.clock()
        with self._lock:
            start, count = self._windows.get(key, (now, 0))
            if now - start >= self.window:
                start, count = now, 0
            if count >= self.limit:
                self._windows[key] = (start, count)
                return False
            self._windows[key] = (start, count + 1)
            self._prune(now)
            return True

    def retry_after(self, key: str) -> int:
        now = self.clock()
        with self._lock:
            entry = self._windows.get(key)
        if not entry:
            return 0
        return max(0, math.ceil(entry[0] + self.window - now))

    def reset(self):
        with self._lock:
            self._windows.clear()

    def _prune(self, now: float):
        # Keep memory bounded by dropping windows that already elapsed
        if len(self._windows) < 10000:
            return
        expired = [k for k, (start, _) in self._windows.items() if now - start >= self.window]
        for k in expired:
            del self._windows[k]


# Singleton instance
validate_rate_limiter = FixedWindowRateLimiter()


def get_validate_rate_limiter() -> RateLimiter:
    """Dependency injection helper."""
    return validate_rate_limiter


def client_address(request: Request) -> str:
    client_ip: Optional[str] = request.client.host if request.client else None
    return f"ip:{client_ip or 'unknown'}"


async def enforce_validate_rate_limit(
    request: Request,
    limiter: RateLimiter = Depends(get_validate_rate_limiter)
):
    key = client_address(request)
    if not limiter.check(key):
        logger.warning(f"Rate limit exceeded on {request.url.path} for {key}")
        raise TooManyRequestsError(limiter.retry_after(key))
