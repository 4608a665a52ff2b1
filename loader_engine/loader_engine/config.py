"""Loader configuration loaded from environment variables."""

from __future__ import annotations

import codecs
import logging

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from loader_engine.literals.classifier import LargeLiteralPolicy

logger = logging.getLogger(__name__)


class LoaderSettings(BaseSettings):
    """Application settings loaded from environment variables with SQLLOADER_ prefix."""

    model_config = SettingsConfigDict(
        env_prefix="SQLLOADER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    debug: bool = False
    structured_logging: bool = False

    # Target database
    database_url: str | None = None
    user: str | None = None
    password: SecretStr | None = None
    # Connectivity check; chosen from the dialect when unset.
    ping_sql: str | None = None

    # Loading
    batch_size: int = Field(default=500, ge=1)
    ignore_pk: bool = False
    pk_name: str = "WCSID"
    continue_on_error: bool = False

    # Input
    charset: str = "utf-8"
    chunk_size: int = Field(default=32 * 1024, ge=1)

    # Inline literal limits
    large_literal_max_bytes: int = Field(default=4000, ge=1)
    large_literal_max_chars: int = Field(default=2000, ge=1)

    # Progress
    progress_interval: float = Field(default=0.5, ge=0.0)

    @field_validator("password", mode="before")
    @classmethod
    def mask_password_in_repr(cls, v: str | None) -> SecretStr | None:
        if v is None:
            return None
        if isinstance(v, SecretStr):
            return v
        return SecretStr(v)

    @field_validator("charset")
    @classmethod
    def check_charset(cls, v: str) -> str:
        try:
            return codecs.lookup(v).name
        except LookupError as exc:
            raise ValueError(f"Unknown charset: {v}") from exc

    def literal_policy(self) -> LargeLiteralPolicy:
        return LargeLiteralPolicy(
            max_bytes=self.large_literal_max_bytes,
            max_chars=self.large_literal_max_chars,
        )

    def is_database_configured(self) -> bool:
        return self.database_url is not None


def load_settings(**overrides: object) -> LoaderSettings:
    """Load settings from environment, with optional overrides for the CLI and tests."""
    settings = LoaderSettings(**overrides)  # type: ignore[arg-type]

    if settings.debug:
        logger.info("Loaded settings (batch_size=%d, charset=%s)", settings.batch_size, settings.charset)

    return settings
