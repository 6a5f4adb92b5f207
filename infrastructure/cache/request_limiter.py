"""Fixed-window request limiter keyed by client IP.

Counting is delegated to the ``limits`` package (the engine behind
Flask-Limiter and slowapi), whose Redis storage increments and sets the
window expiry in one script. Its storages are synchronous, so every call is
pushed to a worker thread. Without a storage, or when the storage errors,
requests are let through.
"""

import asyncio
import math
import time
from dataclasses import dataclass
from typing import Optional

from limits import RateLimitItemPerSecond
from limits.storage import Storage, storage_from_string
from limits.strategies import FixedWindowRateLimiter

from shared.logging import get_logger

log = get_logger(__name__)


@dataclass
class LimitResult:
    allowed: bool
    limit: int
    remaining: int
    reset_seconds: int


def create_limiter_storage(redis_uri: Optional[str]) -> Optional[Storage]:
    """Build a Redis-backed ``limits`` storage, or None when Redis is not configured."""
    if not redis_uri:
        return None
    return storage_from_string(redis_uri)


class RequestLimiter:
    def __init__(
        self,
        storage: Optional[Storage],
        limit: int = 50,
        window_seconds: int = 900,
        scope: str = "auth",
    ) -> None:
        self._limiter = FixedWindowRateLimiter(storage) if storage is not None else None
        self._item = RateLimitItemPerSecond(limit, window_seconds)
        self.limit = limit
        self.window_seconds = window_seconds
        self.scope = scope

    def _open(self) -> LimitResult:
        return LimitResult(True, self.limit, self.limit, self.window_seconds)

    async def hit(self, client_ip: str) -> LimitResult:
        """Count one request from *client_ip* and report whether it may proceed."""
        if self._limiter is None or not client_ip:
            return self._open()
        try:
            allowed = await asyncio.to_thread(
                self._limiter.hit, self._item, self.scope, client_ip
            )
            stats = await asyncio.to_thread(
                self._limiter.get_window_stats, self._item, self.scope, client_ip
            )
        except Exception as e:
            log.warning("request_limiter_error", error=str(e), error_type=type(e).__name__)
            return self._open()

        reset = max(1, math.ceil(stats.reset_time - time.time()))
        if not allowed:
            log.warning("request_rate_limited", scope=self.scope)
        return LimitResult(allowed, self.limit, stats.remaining, reset)
