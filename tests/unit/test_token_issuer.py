"""Unit tests for TokenIssuer and the policy table."""

from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from config import TokenSettings
from errors import StoreUnavailableError, ValidationError
from schemas.models.token import TokenKey, TokenPolicy, TokenPurpose
from services.token_issuer import TokenIssuer, build_policies
from shared.generators import TokenGenerator


@pytest.fixture
def issuer(store, policies):
    return TokenIssuer(store, TokenGenerator(), policies)


# ---------------------------------------------------------------------------
# build_policies
# ---------------------------------------------------------------------------


class TestBuildPolicies:
    def test_covers_every_purpose(self, policies):
        assert set(policies) == set(TokenPurpose)

    def test_default_values(self, policies):
        assert policies[TokenPurpose.EMAIL_VERIFICATION] == TokenPolicy(
            ttl=timedelta(seconds=300), byte_length=6, consuming=True
        )
        assert policies[TokenPurpose.PASSWORD_RESET] == TokenPolicy(
            ttl=timedelta(seconds=300), byte_length=6, consuming=True
        )
        assert policies[TokenPurpose.SESSION_REFRESH] == TokenPolicy(
            ttl=timedelta(days=30), byte_length=32, consuming=False
        )

    def test_reads_settings(self, monkeypatch):
        monkeypatch.setenv("RESET_TOKEN_TTL_SECONDS", "900")
        monkeypatch.setenv("RESET_TOKEN_BYTES", "12")
        policy = build_policies(TokenSettings())[TokenPurpose.PASSWORD_RESET]
        assert policy.ttl == timedelta(seconds=900)
        assert policy.byte_length == 12

    def test_namespaces_are_distinct(self):
        namespaces = [p.namespace for p in TokenPurpose]
        assert len(set(namespaces)) == len(namespaces)


def test_issuer_requires_every_policy(store, policies):
    partial = {TokenPurpose.PASSWORD_RESET: policies[TokenPurpose.PASSWORD_RESET]}
    with pytest.raises(ValidationError):
        TokenIssuer(store, TokenGenerator(), partial)


# ---------------------------------------------------------------------------
# issue
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("purpose", list(TokenPurpose), ids=lambda p: p.value)
async def test_issue_persists_binding(issuer, store, purpose):
    token = await issuer.issue(purpose, "u@example.com")
    assert token.purpose is purpose
    assert token.principal == "u@example.com"
    assert token.remaining_lifetime == issuer.policy(purpose).ttl
    assert await store.get(TokenKey(purpose, token.value)) == "u@example.com"


async def test_issue_uses_policy_ttl(issuer, store, clock):
    token = await issuer.issue(TokenPurpose.EMAIL_VERIFICATION, "u@example.com")
    clock.advance(300)
    assert await store.get(token.key) is None


async def test_issue_uses_policy_byte_length(store, policies):
    seen = []

    def source(n):
        seen.append(n)
        return "v" * n

    issuer = TokenIssuer(store, TokenGenerator(source=source), policies)
    await issuer.issue(TokenPurpose.SESSION_REFRESH, "u@example.com")
    assert seen[-1] == 32


async def test_second_issue_is_independent(issuer, store):
    first = await issuer.issue(TokenPurpose.PASSWORD_RESET, "u@example.com")
    second = await issuer.issue(TokenPurpose.PASSWORD_RESET, "u@example.com")
    assert first.value != second.value
    assert await store.get(first.key) == "u@example.com"
    assert await store.get(second.key) == "u@example.com"


@pytest.mark.parametrize("principal", ["", "   ", None], ids=["empty", "blank", "none"])
async def test_issue_rejects_blank_principal(issuer, store, principal):
    with pytest.raises(ValidationError):
        await issuer.issue(TokenPurpose.PASSWORD_RESET, principal)
    assert len(store) == 0


async def test_issue_propagates_store_failure(policies):
    store = AsyncMock()
    store.put.side_effect = StoreUnavailableError("down")
    issuer = TokenIssuer(store, TokenGenerator(), policies)
    with pytest.raises(StoreUnavailableError):
        await issuer.issue(TokenPurpose.PASSWORD_RESET, "u@example.com")


async def test_expires_in_seconds(issuer):
    token = await issuer.issue(TokenPurpose.SESSION_REFRESH, "u@example.com")
    assert token.expires_in_seconds == 2592000
