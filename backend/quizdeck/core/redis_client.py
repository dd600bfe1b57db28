from __future__ import annotations

from functools import lru_cache

import redis

from quizdeck.core.config import settings


@lru_cache(maxsize=1)
def _pool() -> redis.ConnectionPool:
    return redis.ConnectionPool.from_url(
        settings.redis_url,
        decode_responses=True,
        socket_connect_timeout=1.0,
        socket_timeout=1.0,
    )


def get_redis() -> redis.Redis:
    return redis.Redis(connection_pool=_pool())
