"""
Credential token value types.

TokenPurpose is a closed set; each member's value is the namespace its tokens
live under in the store. TokenKey is the typed (purpose, value) pair used
everywhere inside the subsystem and only turned into "namespace:value" at the
store boundary.

CredentialToken is a snapshot handed to callers. The store stays the single
source of truth: holding a CredentialToken does not keep the token alive.
"""

from __future__ import annotations

from datetime import timedelta
from enum import Enum, unique
from typing import NamedTuple

from pydantic import BaseModel, ConfigDict, Field


@unique
class TokenPurpose(str, Enum):
    EMAIL_VERIFICATION = "email_verify"
    PASSWORD_RESET = "password_reset"
    SESSION_REFRESH = "refresh_token"

    @property
    def namespace(self) -> str:
        return self.value


class TokenKey(NamedTuple):
    purpose: TokenPurpose
    value: str

    def namespaced(self) -> str:
        return f"{self.purpose.namespace}:{self.value}"


class TokenPolicy(BaseModel):
    """Per-purpose issuance and consumption rules."""

    model_config = ConfigDict(frozen=True)

    ttl: timedelta
    byte_length: int = Field(gt=0)
    consuming: bool


class CredentialToken(BaseModel):
    model_config = ConfigDict(frozen=True)

    value: str
    purpose: TokenPurpose
    principal: str
    remaining_lifetime: timedelta

    @property
    def key(self) -> TokenKey:
        return TokenKey(self.purpose, self.value)

    @property
    def expires_in_seconds(self) -> int:
        return max(int(self.remaining_lifetime.total_seconds()), 0)
