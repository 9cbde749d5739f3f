# dit/middleware/rate_limiter.py
# Rate limiting middleware for mutating endpoints
# Fixed window counters, in-memory (sharded) or Redis-backed for multi-instance deployments

from __future__ import annotations

import threading
import time
import logging
import zlib
from typing import Callable, Dict, List, Mapping, Optional, Tuple

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from dit.middleware.error_handler import RateLimited
from dit.observability.metrics import RATE_LIMITED

logger = logging.getLogger(__name__)

UNKNOWN_CLIENT = "unknown"


class FixedWindowCounter:
    """
    Fixed window rate limiter held in process memory.

    The key map is split into shards, each guarded by its own lock, so the
    counter is safe under a threaded server and contention stays per shard.
    Counts do not survive a restart and are not shared across instances.
    """

    def __init__(self, window_size: int = 60, shards: int = 16, clock: Callable[[], float] = time.time):
        self.window_size = window_size  # seconds
        self._clock = clock
        # key -> [count, window_start]
        self._shards: List[Dict[str, List[float]]] = [{} for _ in range(shards)]
        self._locks = [threading.Lock() for _ in range(shards)]

    def _shard(self, key: str) -> int:
        return zlib.crc32(key.encode("utf-8")) % len(self._shards)

    async def allow(self, key: str, limit: int) -> bool:
        """Count one hit for key. Returns False once limit is reached in the window."""
        now = self._clock()
        idx = self._shard(key)
        with self._locks[idx]:
            counters = self._shards[idx]
            entry = counters.get(key)
            if entry is None or now - entry[1] > self.window_size:
                counters[key] = [1, now]
                return True
            if entry[0] < limit:
                entry[0] += 1
                return True
            return False

    def cleanup_old_entries(self) -> int:
        """Remove entries whose window has elapsed. Returns the number removed."""
        now = self._clock()
        removed = 0
        for counters, lock in zip(self._shards, self._locks):
            with lock:
                stale = [k for k, (_, start) in counters.items() if now - start > self.window_size]
                for k in stale:
                    del counters[k]
                removed += len(stale)
        return removed

    def __len__(self) -> int:
        return sum(len(c) for c in self._shards)


class RedisWindowCounter:
    """
    Fixed window counter shared through Redis (INCR + EXPIRE).

    The first hit of a window sets the key expiry, so the window starts at
    the first request exactly like the in-memory counter.
    """

    def __init__(self, redis_client, window_size: int = 60, prefix: str = "rl"):
        self.window_size = window_size
        self.prefix = prefix
        self._redis = redis_client

    async def allow(self, key: str, limit: int) -> bool:
        redis_key = f"{self.prefix}:{key}"
        count = await self._redis.incr(redis_key)
        if count == 1:
            await self._redis.expire(redis_key, self.window_size)
        return count <= limit

    def cleanup_old_entries(self) -> int:
        # Redis expires keys on its own
        return 0


def build_counter(settings) -> FixedWindowCounter | RedisWindowCounter:
    """Pick the counter backend named by RATE_LIMIT_BACKEND."""
    if settings.RATE_LIMIT_BACKEND == "redis":
        import redis.asyncio as aioredis

        client = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
        return RedisWindowCounter(client, window_size=settings.RATE_LIMIT_WINDOW_SECONDS)
    return FixedWindowCounter(window_size=settings.RATE_LIMIT_WINDOW_SECONDS)


def default_rules(settings) -> Dict[Tuple[str, str], Tuple[str, int]]:
    """(method, path) -> (rule name, limit per window) for every mutating endpoint."""
    return {
        ("POST", "/api/auth"): ("auth", settings.AUTH_RATE_LIMIT),
        ("POST", "/api/qr"): ("qr", settings.QR_RATE_LIMIT),
        ("POST", "/api/likes/toggle"): ("likes", settings.LIKES_RATE_LIMIT),
        ("POST", "/api/comments"): ("comments", settings.COMMENTS_RATE_LIMIT),
        ("POST", "/api/posts"): ("posts", settings.POSTS_RATE_LIMIT),
        ("POST", "/api/chat"): ("chat", settings.CHAT_RATE_LIMIT),
        ("POST", "/api/guardian"): ("guardian", settings.CHAT_RATE_LIMIT),
        ("POST", "/api/analytics/track"): ("analytics", settings.ANALYTICS_RATE_LIMIT),
    }


def client_key(request: Request) -> str:
    """Extract client identifier from request."""
    # Try to get real IP from proxy headers
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        # Take first IP (original client)
        first = forwarded.split(",")[0].strip()
        if first:
            return first

    real_ip = request.headers.get("X-Real-IP")
    if real_ip and real_ip.strip():
        return real_ip.strip()

    # Every unidentifiable client shares one bucket
    return UNKNOWN_CLIENT


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    FastAPI middleware for rate limiting.
    Only requests matching a rule are counted, each rule with its own limit.
    """

    def __init__(
        self,
        app,
        counter: FixedWindowCounter | RedisWindowCounter,
        rules: Mapping[Tuple[str, str], Tuple[str, int]],
        cleanup_interval: float = 300.0,
        clock: Optional[Callable[[], float]] = None,
    ):
        super().__init__(app)
        self.counter = counter
        self.rules = dict(rules)
        self.cleanup_interval = cleanup_interval
        self._clock = clock or time.time
        self._last_cleanup = self._clock()

    async def dispatch(self, request: Request, call_next):
        rule = self.rules.get((request.method, request.url.path.rstrip("/") or "/"))
        if rule is None:
            return await call_next(request)

        # Periodic sweep bounds memory for one-off clients
        now = self._clock()
        if now - self._last_cleanup > self.cleanup_interval:
            removed = self.counter.cleanup_old_entries()
            self._last_cleanup = now
            if removed:
                logger.debug(f"Rate limiter swept {removed} stale entries")

        rule_name, limit = rule
        client = client_key(request)

        if not await self.counter.allow(f"{rule_name}:{client}", limit):
            RATE_LIMITED.labels(rule_name).inc()
            logger.warning(f"Rate limit exceeded for {client} on {request.url.path}")
            err = RateLimited(retry_after=int(getattr(self.counter, "window_size", 60)))
            return err.to_response(headers={"Retry-After": str(err.retry_after)})

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(limit)
        return response
