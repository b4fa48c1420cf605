"""
Token issuance.

The issuer generates a value, writes one store entry under the purpose's
namespace with the purpose's TTL, and hands the CredentialToken back. Delivery
(email, response body) is the caller's job; if it fails the entry simply
expires on its own.

Several live tokens per (purpose, principal) are allowed: every call creates an
independent entry under a fresh random value.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Mapping

from config import TokenSettings
from errors import ValidationError
from infrastructure.token_store.protocol import TokenStore
from schemas.models.token import CredentialToken, TokenKey, TokenPolicy, TokenPurpose
from shared.generators import TokenGenerator
from shared.logging import fingerprint, get_logger

log = get_logger(__name__)


def build_policies(settings: TokenSettings) -> dict[TokenPurpose, TokenPolicy]:
    """Return the per-purpose policy table for *settings*.

    Verification and reset tokens are single use. Refresh tokens are read
    repeatedly until they expire or are revoked; their TTL is never extended.
    """
    return {
        TokenPurpose.EMAIL_VERIFICATION: TokenPolicy(
            ttl=timedelta(seconds=settings.verification_token_ttl_seconds),
            byte_length=settings.verification_token_bytes,
            consuming=True,
        ),
        TokenPurpose.PASSWORD_RESET: TokenPolicy(
            ttl=timedelta(seconds=settings.reset_token_ttl_seconds),
            byte_length=settings.reset_token_bytes,
            consuming=True,
        ),
        TokenPurpose.SESSION_REFRESH: TokenPolicy(
            ttl=timedelta(seconds=settings.refresh_token_ttl_seconds),
            byte_length=settings.refresh_token_bytes,
            consuming=False,
        ),
    }


def require_policies(
    policies: Mapping[TokenPurpose, TokenPolicy],
) -> dict[TokenPurpose, TokenPolicy]:
    missing = [p.value for p in TokenPurpose if p not in policies]
    if missing:
        raise ValidationError("Missing token policies", details={"purposes": missing})
    return dict(policies)


def require_principal(principal: str) -> str:
    if not isinstance(principal, str) or not principal.strip():
        raise ValidationError("principal must be a non-empty string", field="principal")
    return principal


class TokenIssuer:
    def __init__(
        self,
        store: TokenStore,
        generator: TokenGenerator,
        policies: Mapping[TokenPurpose, TokenPolicy],
    ) -> None:
        self._store = store
        self._generator = generator
        self._policies = require_policies(policies)

    def policy(self, purpose: TokenPurpose) -> TokenPolicy:
        return self._policies[purpose]

    async def issue(self, purpose: TokenPurpose, principal: str) -> CredentialToken:
        """Create, store and return a new token for *principal*.

        Raises:
            ValidationError: *principal* is blank.
            EntropySourceUnavailableError: the CSPRNG could not be read.
            StoreUnavailableError: the store write failed or timed out.
        """
        require_principal(principal)
        policy = self._policies[purpose]

        value = self._generator.generate(policy.byte_length)
        await self._store.put(TokenKey(purpose, value), principal, policy.ttl)

        log.info(
            "token_issued",
            purpose=purpose.value,
            principal=principal,
            fingerprint=fingerprint(value),
            ttl_seconds=int(policy.ttl.total_seconds()),
        )
        return CredentialToken(
            value=value,
            purpose=purpose,
            principal=principal,
            remaining_lifetime=policy.ttl,
        )
