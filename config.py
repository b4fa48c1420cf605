"""
Application configuration via pydantic-settings.

All settings are loaded from environment variables (and .env file).

Token lifetimes and sizes live in TokenSettings; the issuer turns them into a
per-purpose policy table at startup.
"""

from __future__ import annotations

from typing import Optional

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RedisSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Optional; self-hosters without Redis get an in-process token store
    redis_uri: Optional[str] = None
    token_store_timeout_seconds: float = Field(default=2.0, gt=0)


class TokenSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    verification_token_ttl_seconds: int = Field(default=300, gt=0)
    verification_token_bytes: int = Field(default=6, gt=0)

    reset_token_ttl_seconds: int = Field(default=300, gt=0)
    reset_token_bytes: int = Field(default=6, gt=0)

    refresh_token_ttl_seconds: int = Field(default=2592000, gt=0)
    refresh_token_bytes: int = Field(default=32, gt=0)

    # Only used by the in-memory store
    memory_sweep_interval_seconds: int = Field(default=60, gt=0)


class LoggingSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    log_level: str = "INFO"
    log_format: str = "console"  # "json" in production


class SentrySettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    sentry_dsn: str = ""
    sentry_send_pii: bool = False
    sentry_traces_sample_rate: float = 0.1


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    env: str = "development"
    app_name: str = "ephemeral-tokens"

    # Sub-configs (composed via model_validator below)
    redis: Optional[RedisSettings] = None
    tokens: Optional[TokenSettings] = None
    logging: Optional[LoggingSettings] = None
    sentry: Optional[SentrySettings] = None

    @model_validator(mode="after")
    def _populate_sub_configs(self) -> "AppSettings":
        # Populate sub-configs from the same env/dotenv source
        if self.redis is None:
            self.redis = RedisSettings()
        if self.tokens is None:
            self.tokens = TokenSettings()
        if self.logging is None:
            self.logging = LoggingSettings()
        if self.sentry is None:
            self.sentry = SentrySettings()

        return self

    @property
    def is_production(self) -> bool:
        return self.env == "production"
