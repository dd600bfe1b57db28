from __future__ import annotations

import logging
from dataclasses import dataclass

from fastapi import Depends, Request
from redis.exceptions import RedisError

from quizdeck.core.config import settings
from quizdeck.core.errors import RateLimited
from quizdeck.core.redis_client import get_redis

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimit:
    key: str
    limit: int
    window_seconds: int
    current: int


def _client_key(request: Request) -> str:
    # Authenticated requests are limited per user, anonymous ones per address.
    user_id = getattr(getattr(request, "state", None), "user_id", None)
    if user_id is not None:
        return f"user:{user_id}"
    if settings.trust_proxy_headers:
        xff = str(request.headers.get("x-forwarded-for") or "").split(",")[0].strip()
        if xff:
            return f"ip:{xff}"
    if request.client and request.client.host:
        return f"ip:{request.client.host}"
    return "ip:unknown"


def rate_limit(*, key_prefix: str, limit: int, window_seconds: int):
    """Fixed-window request limiter backed by redis; fails open on redis errors."""

    def _dep(request: Request) -> RateLimit:
        key = f"rl:{key_prefix}:{_client_key(request)}"
        if not settings.rate_limit_enabled:
            return RateLimit(key=key, limit=limit, window_seconds=window_seconds, current=0)

        r = get_redis()
        try:
            current = int(r.incr(key))
            if current == 1:
                r.expire(key, int(window_seconds))
        except RedisError:
            logger.warning("rate limiter unavailable, allowing request", extra={"key": key})
            return RateLimit(key=key, limit=limit, window_seconds=window_seconds, current=0)

        if current > limit:
            try:
                ttl = int(r.ttl(key))
            except RedisError:
                ttl = 0
            retry_after = ttl if ttl > 0 else int(window_seconds)
            raise RateLimited("rate limit exceeded", retry_after=retry_after)

        return RateLimit(key=key, limit=limit, window_seconds=window_seconds, current=current)

    return Depends(_dep)
