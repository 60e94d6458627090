"""Per-client request rate limiting.

Each client address gets a token bucket holding ``rate_limit_max_requests``
tokens that refills continuously over ``rate_limit_window_seconds``. Requests
that find the bucket empty are rejected with 429 instead of waiting.
"""

from __future__ import annotations

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from devcamper.core.config import get_settings
from devcamper.core.logging_safety import safe_log_identifier
from devcamper.schemas.error import ErrorResponse

logger = logging.getLogger(__name__)


class TokenBucket:
    """Non-blocking token bucket that refills at a constant rate."""

    def __init__(self, rate: float, capacity: float) -> None:
        self.rate = rate
        self.capacity = capacity
        self.tokens = capacity
        self._last_refill = time.monotonic()

    def try_acquire(self) -> bool:
        self._refill()
        if self.tokens < 1.0:
            return False
        self.tokens -= 1.0
        return True

    def is_full(self) -> bool:
        self._refill()
        return self.tokens >= self.capacity

    def _refill(self) -> None:
        now = time.monotonic()
        elapsed = now - self._last_refill
        self.tokens = min(self.capacity, self.tokens + elapsed * self.rate)
        self._last_refill = now


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Per-client buckets; a bucket that has refilled completely carries no state and is dropped."""

    sweep_interval_seconds = 60.0

    def __init__(self, app) -> None:
        super().__init__(app)
        self._buckets: dict[str, TokenBucket] = {}
        self._last_sweep = time.monotonic()

    def evict_idle(self) -> int:
        idle = [client for client, bucket in self._buckets.items() if bucket.is_full()]
        for client in idle:
            del self._buckets[client]
        self._last_sweep = time.monotonic()
        return len(idle)

    def _bucket_for(self, client: str) -> TokenBucket:
        bucket = self._buckets.get(client)
        if bucket is None:
            settings = get_settings()
            capacity = float(settings.rate_limit_max_requests)
            bucket = TokenBucket(rate=capacity / settings.rate_limit_window_seconds, capacity=capacity)
            self._buckets[client] = bucket
        return bucket

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if time.monotonic() - self._last_sweep >= self.sweep_interval_seconds:
            self.evict_idle()
        client = request.client.host if request.client else "unknown"
        if not self._bucket_for(client).try_acquire():
            logger.warning(
                "ratelimit.exceeded client=%s path=%s",
                safe_log_identifier(client, prefix="ip"),
                request.url.path,
            )
            return JSONResponse(
                status_code=429,
                content=ErrorResponse(error="Too many requests, please try again later").model_dump(),
            )
        return await call_next(request)


__all__ = ["RateLimitMiddleware", "TokenBucket"]
