"""
Token validation, consumption and revocation.

Consuming purposes go through the store's atomic get-and-delete, so when two
requests present the same verification or reset token only the first one
wins. Refresh tokens are read without being removed and stay valid until they
expire or are revoked.

Every failure is the same InvalidOrExpiredTokenError; only the logs tell
consumed, revoked and expired apart.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Mapping, NoReturn, Optional

from errors import InvalidOrExpiredTokenError
from infrastructure.token_store.protocol import TokenStore
from schemas.models.token import CredentialToken, TokenKey, TokenPolicy, TokenPurpose
from services.token_issuer import require_policies
from shared.logging import fingerprint, get_logger

log = get_logger(__name__)


class TokenValidator:
    def __init__(
        self, store: TokenStore, policies: Mapping[TokenPurpose, TokenPolicy]
    ) -> None:
        self._store = store
        self._policies = require_policies(policies)

    async def validate(self, purpose: TokenPurpose, value: str) -> CredentialToken:
        """Resolve *value* to its principal, applying the purpose's policy."""
        if self._policies[purpose].consuming:
            return await self.consume(purpose, value)

        principal: Optional[str] = None
        remaining: Optional[timedelta] = None
        if value:
            key = TokenKey(purpose, value)
            principal = await self._store.get(key)
            if principal is not None:
                # May have expired between the two reads
                remaining = await self._store.remaining_ttl(key)

        if principal is None or remaining is None:
            self._reject(purpose, value)

        log.info(
            "token_validated",
            purpose=purpose.value,
            principal=principal,
            fingerprint=fingerprint(value),
        )
        return CredentialToken(
            value=value,
            purpose=purpose,
            principal=principal,
            remaining_lifetime=remaining,
        )

    async def consume(self, purpose: TokenPurpose, value: str) -> CredentialToken:
        """Atomically resolve and remove *value*, whatever the purpose's policy."""
        principal = None
        if value:
            principal = await self._store.get_and_delete(TokenKey(purpose, value))

        if principal is None:
            self._reject(purpose, value)

        log.info(
            "token_consumed",
            purpose=purpose.value,
            principal=principal,
            fingerprint=fingerprint(value),
        )
        return CredentialToken(
            value=value,
            purpose=purpose,
            principal=principal,
            remaining_lifetime=timedelta(0),
        )

    async def revoke(self, purpose: TokenPurpose, value: str) -> bool:
        """Remove *value* if present. Revoking an unknown token is a no-op.

        Returns:
            True if a live entry was removed.
        """
        removed = bool(value) and await self._store.delete(TokenKey(purpose, value))
        if removed:
            log.info("token_revoked", purpose=purpose.value, fingerprint=fingerprint(value))
        else:
            log.info(
                "token_revoke_noop", purpose=purpose.value, fingerprint=fingerprint(value)
            )
        return removed

    def _reject(self, purpose: TokenPurpose, value: str) -> NoReturn:
        log.warning(
            "token_validation_failed",
            purpose=purpose.value,
            fingerprint=fingerprint(value or None),
            reason="not_found_or_expired",
        )
        raise InvalidOrExpiredTokenError()
