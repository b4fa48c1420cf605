"""TokenStore protocol: issuer and validator depend on this, not on a backend."""

from datetime import timedelta
from typing import Optional, Protocol, runtime_checkable

from schemas.models.token import TokenKey


@runtime_checkable
class TokenStore(Protocol):
    """Namespaced, TTL-aware mapping of token keys to principals.

    Implementations must never return an expired entry, must not extend TTL on
    reads, and must raise StoreUnavailableError (never return None) when the
    backing store cannot answer.
    """

    async def put(self, key: TokenKey, principal: str, ttl: timedelta) -> None: ...

    async def get(self, key: TokenKey) -> Optional[str]: ...

    async def remaining_ttl(self, key: TokenKey) -> Optional[timedelta]: ...

    async def delete(self, key: TokenKey) -> bool: ...

    async def get_and_delete(self, key: TokenKey) -> Optional[str]: ...

    async def ping(self) -> None: ...

    async def aclose(self) -> None: ...
