"""
Unit test configuration.

Patches dotenv so pydantic-settings never reads the project's real .env file
during unit tests. Tests control config exclusively through monkeypatch.setenv().

Also provides a controllable clock and ready-made token stores/services so
expiry can be tested without sleeping.
"""

from datetime import timedelta

import pytest

from config import TokenSettings
from infrastructure.token_store.memory_store import InMemoryTokenStore
from services.token_issuer import build_policies
from services.token_service import TokenService


class FakeClock:
    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def disable_dotenv_loading(monkeypatch):
    """Prevent pydantic-settings from loading .env files in all unit tests."""
    import pydantic_settings.sources.providers.dotenv as ps_dotenv

    monkeypatch.setattr(ps_dotenv, "dotenv_values", lambda *a, **kw: {})


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return InMemoryTokenStore(clock=clock, sweep_interval=timedelta(seconds=60))


@pytest.fixture
def policies():
    return build_policies(TokenSettings())


@pytest.fixture
def service(store, policies):
    return TokenService(store, policies)
