"""In-process TokenStore.

Used by tests (with a fake clock) and by single-process deployments without
Redis. All state sits behind one threading.Lock, so the store is safe to share
between event loops running in different threads as well as between tasks.

Expiry is checked on every read. Expired entries are also purged by a sweep
that runs on writes once ``sweep_interval`` has elapsed since the last one.
"""

import threading
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Callable, Optional

from errors import ValidationError
from schemas.models.token import TokenKey
from shared.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class StoredEntry:
    principal: str
    expires_at: float  # clock() units (seconds)


class InMemoryTokenStore:
    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        sweep_interval: timedelta = timedelta(seconds=60),
    ) -> None:
        self._clock = clock
        self._sweep_interval = sweep_interval.total_seconds()
        self._entries: dict[str, StoredEntry] = {}
        self._lock = threading.Lock()
        self._last_sweep = clock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _live(self, namespaced: str, now: float) -> Optional[StoredEntry]:
        """Return the entry if still valid, dropping it if expired. Lock held."""
        entry = self._entries.get(namespaced)
        if entry is None:
            return None
        if entry.expires_at <= now:
            del self._entries[namespaced]
            log.info("token_expired", purpose=namespaced.split(":", 1)[0])
            return None
        return entry

    def purge_expired(self) -> int:
        """Remove every expired entry. Returns how many were removed."""
        with self._lock:
            return self._purge_locked(self._clock())

    def _purge_locked(self, now: float) -> int:
        expired = [k for k, e in self._entries.items() if e.expires_at <= now]
        for k in expired:
            del self._entries[k]
        self._last_sweep = now
        if expired:
            log.info("token_store_swept", expired=len(expired))
        return len(expired)

    async def put(self, key: TokenKey, principal: str, ttl: timedelta) -> None:
        seconds = ttl.total_seconds()
        if seconds <= 0:
            raise ValidationError("ttl must be positive", field="ttl")
        with self._lock:
            now = self._clock()
            if now - self._last_sweep >= self._sweep_interval:
                self._purge_locked(now)
            self._entries[key.namespaced()] = StoredEntry(principal, now + seconds)

    async def get(self, key: TokenKey) -> Optional[str]:
        with self._lock:
            entry = self._live(key.namespaced(), self._clock())
            return entry.principal if entry else None

    async def remaining_ttl(self, key: TokenKey) -> Optional[timedelta]:
        with self._lock:
            now = self._clock()
            entry = self._live(key.namespaced(), now)
            if entry is None:
                return None
            return timedelta(seconds=entry.expires_at - now)

    async def delete(self, key: TokenKey) -> bool:
        with self._lock:
            namespaced = key.namespaced()
            if self._live(namespaced, self._clock()) is None:
                return False
            del self._entries[namespaced]
            return True

    async def get_and_delete(self, key: TokenKey) -> Optional[str]:
        with self._lock:
            namespaced = key.namespaced()
            entry = self._live(namespaced, self._clock())
            if entry is None:
                return None
            del self._entries[namespaced]
            return entry.principal

    async def ping(self) -> None:
        return None

    async def aclose(self) -> None:
        with self._lock:
            self._entries.clear()
