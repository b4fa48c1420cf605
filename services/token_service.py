"""
Collaborator-facing token API.

Account management calls these at signup, login, "forgot password" and token
refresh. The service owns no state of its own; the injected TokenStore is the
only shared resource and provides all cross-call atomicity.

create_token_service() wires a service from settings: Redis when REDIS_URI is
configured, otherwise an in-process store.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Mapping, Optional

from config import AppSettings
from errors import InvalidOrExpiredTokenError, StoreUnavailableError
from infrastructure.redis_client import create_redis_client
from infrastructure.token_store.memory_store import InMemoryTokenStore
from infrastructure.token_store.protocol import TokenStore
from infrastructure.token_store.redis_store import RedisTokenStore
from schemas.models.token import CredentialToken, TokenPolicy, TokenPurpose
from services.token_issuer import TokenIssuer, build_policies
from services.token_validator import TokenValidator
from shared.generators import TokenGenerator
from shared.logging import get_logger

log = get_logger(__name__)


class TokenService:
    def __init__(
        self,
        store: TokenStore,
        policies: Mapping[TokenPurpose, TokenPolicy],
        generator: Optional[TokenGenerator] = None,
    ) -> None:
        self.store = store
        self.issuer = TokenIssuer(store, generator or TokenGenerator(), policies)
        self.validator = TokenValidator(store, policies)

    # ── Email verification ───────────────────────────────────────────────────

    async def issue_verification_token(self, principal: str) -> CredentialToken:
        return await self.issuer.issue(TokenPurpose.EMAIL_VERIFICATION, principal)

    async def consume_verification_token(self, value: str) -> str:
        token = await self.validator.validate(TokenPurpose.EMAIL_VERIFICATION, value)
        return token.principal

    # ── Password reset ───────────────────────────────────────────────────────

    async def issue_reset_token(self, principal: str) -> CredentialToken:
        return await self.issuer.issue(TokenPurpose.PASSWORD_RESET, principal)

    async def consume_reset_token(self, value: str) -> str:
        token = await self.validator.validate(TokenPurpose.PASSWORD_RESET, value)
        return token.principal

    # ── Session refresh ──────────────────────────────────────────────────────

    async def issue_refresh_token(self, principal: str) -> CredentialToken:
        """Issue a refresh token; ``expires_in_seconds`` is the full TTL."""
        return await self.issuer.issue(TokenPurpose.SESSION_REFRESH, principal)

    async def validate_refresh_token(self, value: str) -> tuple[str, timedelta]:
        """Return ``(principal, remaining_ttl)`` without consuming the token."""
        token = await self.validator.validate(TokenPurpose.SESSION_REFRESH, value)
        return token.principal, token.remaining_lifetime

    async def revoke_refresh_token(self, value: str) -> None:
        await self.validator.revoke(TokenPurpose.SESSION_REFRESH, value)

    async def rotate_refresh_token(self, value: str) -> CredentialToken:
        """Swap a refresh token for a new one with a fresh TTL.

        The new token is stored before the old one is consumed, so a store
        failure at any step leaves the old token usable for a retry. Consuming
        the old token is atomic: of two racing rotations only one keeps its
        new token, the loser's is revoked.
        """
        old = await self.validator.validate(TokenPurpose.SESSION_REFRESH, value)
        new = await self.issuer.issue(TokenPurpose.SESSION_REFRESH, old.principal)
        try:
            await self.validator.consume(TokenPurpose.SESSION_REFRESH, value)
        except InvalidOrExpiredTokenError:
            await self.validator.revoke(TokenPurpose.SESSION_REFRESH, new.value)
            raise
        return new


async def create_token_service(settings: Optional[AppSettings] = None) -> TokenService:
    """Build a TokenService for *settings*.

    Raises:
        StoreUnavailableError: REDIS_URI is set but Redis cannot be reached.
        EntropySourceUnavailableError: no usable CSPRNG on this host.
    """
    if settings is None:
        settings = AppSettings()

    policies = build_policies(settings.tokens)
    generator = TokenGenerator()

    store: TokenStore
    if settings.redis.redis_uri:
        timeout = settings.redis.token_store_timeout_seconds
        client = await create_redis_client(settings.redis.redis_uri, timeout)
        if client is None:
            raise StoreUnavailableError("Token store unavailable")
        store = RedisTokenStore(client, timeout_seconds=timeout)
        log.info("token_service_ready", backend="redis")
    else:
        store = InMemoryTokenStore(
            sweep_interval=timedelta(
                seconds=settings.tokens.memory_sweep_interval_seconds
            )
        )
        log.info("token_service_ready", backend="memory")

    return TokenService(store, policies, generator)
