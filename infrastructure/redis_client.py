"""Async Redis connection factory for the token store.

Returns an async redis.Redis client, or None if the connection fails. Unlike a
cache, the token store cannot silently degrade once Redis is configured, so
callers turn None into StoreUnavailableError.
"""

from typing import Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from shared.logging import get_logger

log = get_logger(__name__)


async def create_redis_client(
    redis_uri: str, timeout_seconds: float = 2.0
) -> Optional[aioredis.Redis]:
    """Connect to Redis and return a client, or None on failure.

    A client whose ping fails is closed before returning so its pool is not
    left behind.
    """
    client: aioredis.Redis = aioredis.from_url(
        redis_uri,
        decode_responses=True,
        socket_timeout=timeout_seconds,
        socket_connect_timeout=timeout_seconds,
    )
    try:
        await client.ping()
        log.info("redis_connected", uri=redis_uri.split("@")[-1])  # mask credentials
        return client
    except RedisError as e:
        log.warning(
            "redis_connection_failed", error=str(e), error_type=type(e).__name__
        )
    except OSError as e:
        log.warning("redis_unexpected_error", error=str(e), error_type=type(e).__name__)

    await client.aclose()
    return None
