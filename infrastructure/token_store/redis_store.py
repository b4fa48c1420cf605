"""Redis-backed TokenStore.

Layout: one string key per token, ``"{namespace}:{value}" -> principal``, with
Redis-native PX expiry. Consuming reads use GETDEL (Redis >= 6.2) so two
racing validators can never both see the principal.

Every command runs under a per-operation deadline. Timeouts and RedisError
surface as StoreUnavailableError; they are never reported as a missing token.
"""

import asyncio
from datetime import timedelta
from typing import Any, Awaitable, Optional, Union

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from errors import StoreUnavailableError, ValidationError
from schemas.models.token import TokenKey
from shared.logging import fingerprint, get_logger

log = get_logger(__name__)


def _decode(raw: Optional[Union[str, bytes]]) -> Optional[str]:
    if raw is None:
        return None
    if isinstance(raw, bytes):
        return raw.decode("utf-8")
    return raw


class RedisTokenStore:
    def __init__(
        self, redis_client: aioredis.Redis, timeout_seconds: float = 2.0
    ) -> None:
        self._redis = redis_client
        self.timeout_seconds = timeout_seconds

    async def _run(self, op: str, key: Optional[TokenKey], call: Awaitable[Any]) -> Any:
        context = {"op": op}
        if key is not None:
            context.update(purpose=key.purpose.value, fingerprint=fingerprint(key.value))
        try:
            return await asyncio.wait_for(call, timeout=self.timeout_seconds)
        except asyncio.TimeoutError as e:
            log.error("token_store_timeout", timeout_seconds=self.timeout_seconds, **context)
            raise StoreUnavailableError("Token store timed out") from e
        except RedisError as e:
            log.error(
                "token_store_error",
                error=str(e),
                error_type=type(e).__name__,
                **context,
            )
            raise StoreUnavailableError("Token store unavailable") from e

    async def put(self, key: TokenKey, principal: str, ttl: timedelta) -> None:
        ttl_ms = int(ttl.total_seconds() * 1000)
        if ttl_ms <= 0:
            raise ValidationError("ttl must be positive", field="ttl")
        await self._run(
            "put", key, self._redis.set(key.namespaced(), principal, px=ttl_ms)
        )

    async def get(self, key: TokenKey) -> Optional[str]:
        raw = await self._run("get", key, self._redis.get(key.namespaced()))
        return _decode(raw)

    async def remaining_ttl(self, key: TokenKey) -> Optional[timedelta]:
        pttl = await self._run("remaining_ttl", key, self._redis.pttl(key.namespaced()))
        # -2: no such key, -1: key without expiry
        if pttl == -1:
            log.warning(
                "token_without_expiry",
                purpose=key.purpose.value,
                fingerprint=fingerprint(key.value),
            )
        if pttl is None or pttl < 0:
            return None
        return timedelta(milliseconds=pttl)

    async def delete(self, key: TokenKey) -> bool:
        removed = await self._run("delete", key, self._redis.delete(key.namespaced()))
        return bool(removed)

    async def get_and_delete(self, key: TokenKey) -> Optional[str]:
        raw = await self._run(
            "get_and_delete", key, self._redis.getdel(key.namespaced())
        )
        return _decode(raw)

    async def ping(self) -> None:
        await self._run("ping", None, self._redis.ping())

    async def aclose(self) -> None:
        await self._redis.aclose()
