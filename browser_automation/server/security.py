"""
================================================================================
Control API Security
================================================================================

Development-mode gate and per-client rate limiting for the control API.

Dev gate:
    Development-only endpoints (console logs, JS errors, store snapshot,
    function waits) answer 403 with a remediation hint outside development
    mode and log a ``[SECURITY]`` event. Allowed responses carry the
    ``X-Dev-Mode-Only: true`` header.

Rate limiting:
    One token bucket per (endpoint group, client). Capacity equals the
    per-minute budget; tokens refill continuously. An empty bucket answers
    429 with ``retryAfter`` in seconds.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import asyncio
import math
import time
from dataclasses import dataclass, field
from typing import Dict, Optional

from fastapi import Request, Response
from loguru import logger

from browser_automation.common import RateLimitedError, SecurityDeniedError


DEV_MODE_HEADER = "X-Dev-Mode-Only"
DEV_MODE_HINT = "Set ENVIRONMENT=development (or NODE_ENV=development) to enable this endpoint"


@dataclass
class TokenBucket:
    """
    Token bucket refilled continuously at ``rate`` tokens per second.

    Starts full; ``capacity`` is the burst size.
    """

    rate: float
    capacity: float
    tokens: float = field(init=False)
    last_refill: float = field(init=False)

    def __post_init__(self) -> None:
        self.tokens = self.capacity
        self.last_refill = time.monotonic()

    def _refill(self) -> None:
        now = time.monotonic()
        self.tokens = min(self.capacity, self.tokens + (now - self.last_refill) * self.rate)
        self.last_refill = now

    def try_acquire(self, tokens: float = 1.0) -> bool:
        self._refill()
        if self.tokens >= tokens:
            self.tokens -= tokens
            return True
        return False

    def seconds_until_available(self, tokens: float = 1.0) -> float:
        self._refill()
        deficit = tokens - self.tokens
        return 0.0 if deficit <= 0 else deficit / self.rate

    def is_full(self) -> bool:
        self._refill()
        return self.tokens >= self.capacity


class RateLimiter:
    """
    Per-client token buckets for one endpoint group.

    Usage:
        limiter = RateLimiter("console", requests_per_minute=30)
        retry_after = await limiter.hit("127.0.0.1")
        if retry_after is not None:
            ...  # reject with 429
    """

    def __init__(self, name: str, requests_per_minute: int):
        if requests_per_minute <= 0:
            raise ValueError("requests_per_minute must be positive")
        self.name = name
        self.requests_per_minute = requests_per_minute
        self._buckets: Dict[str, TokenBucket] = {}
        self._lock = asyncio.Lock()

    async def hit(self, client: str) -> Optional[int]:
        """
        Consume one request for a client.

        Returns:
            None when allowed, otherwise seconds to wait before retrying
        """
        async with self._lock:
            bucket = self._buckets.get(client)
            if bucket is None:
                self._evict_idle()
                bucket = TokenBucket(
                    rate=self.requests_per_minute / 60,
                    capacity=self.requests_per_minute,
                )
                self._buckets[client] = bucket
            if bucket.try_acquire():
                return None
            return max(1, math.ceil(bucket.seconds_until_available()))

    def _evict_idle(self) -> None:
        """Drop buckets that have refilled to capacity."""
        idle = [client for client, bucket in self._buckets.items() if bucket.is_full()]
        for client in idle:
            del self._buckets[client]

    def reset(self) -> None:
        self._buckets.clear()


def client_key(request: Request) -> str:
    return request.client.host if request.client else "unknown"


# ================================================================================
# FastAPI dependencies
# ================================================================================

def require_dev_mode(request: Request, response: Response) -> None:
    """
    Refuse the request outside development mode.

    Raises:
        SecurityDeniedError: 403 with remediation hint
    """
    context = request.app.state.context
    if not context.settings.dev_mode:
        logger.warning(
            f"[SECURITY] Blocked development-only endpoint {request.method} "
            f"{request.url.path} from {client_key(request)} "
            f"(environment={context.settings.environment})"
        )
        raise SecurityDeniedError(
            "This endpoint is only available in development mode",
            hint=DEV_MODE_HINT,
        )
    response.headers[DEV_MODE_HEADER] = "true"


def rate_limit(name: str):
    """Dependency factory enforcing the named limiter of the context."""

    async def dependency(request: Request) -> None:
        limiter: Optional[RateLimiter] = request.app.state.context.limiters.get(name)
        if limiter is None:
            return
        client = client_key(request)
        retry_after = await limiter.hit(client)
        if retry_after is not None:
            logger.warning(f"Rate limit exceeded for '{name}' by {client}")
            raise RateLimitedError(
                f"Too many requests, limit is {limiter.requests_per_minute} per minute",
                retry_after=retry_after,
            )

    return dependency


__all__ = [
    "TokenBucket",
    "RateLimiter",
    "client_key",
    "require_dev_mode",
    "rate_limit",
    "DEV_MODE_HEADER",
    "DEV_MODE_HINT",
]
