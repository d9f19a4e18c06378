# BimaHub Rating - Premium Rating and Policy Rules Engine
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Configuration management using Pydantic Settings."""

from enum import Enum
from pathlib import Path

from beartype import beartype
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class PrivateRateBasis(str, Enum):
    """Which private comprehensive tier a "Private Rate + X" row is priced from."""

    CLAIM_HISTORY = "claim_history"
    CLAIM_FREE = "claim_free"
    WITH_CLAIMS = "with_claims"


class Settings(BaseSettings):
    """Rating engine settings with immutable configuration."""

    model_config = SettingsConfigDict(
        env_prefix="BIMAHUB_",
        env_file=None,
        env_file_encoding="utf-8",
        frozen=True,
        validate_default=True,
        extra="forbid",
    )

    quote_id_prefix: str = Field(
        default="BIMAHUB-Q",
        min_length=1,
        max_length=32,
        pattern=r"^[A-Z0-9][A-Z0-9-]*$",
        description="Prefix of issued quote identifiers",
    )
    default_currency: str = Field(
        default="TZS",
        pattern=r"^[A-Z]{3}$",
        description="ISO 4217 currency stamped on quotes without one",
    )
    rule_table_path: Path | None = Field(
        default=None,
        description="Optional JSON rule table loaded instead of the built-in one",
    )
    commercial_private_rate_basis: PrivateRateBasis = Field(
        default=PrivateRateBasis.CLAIM_HISTORY,
        description="Private tier used to price 'Private Rate + X' commercial rows",
    )
    log_level: str = Field(
        default="INFO",
        description="Root log level",
    )
    slow_operation_ms: int = Field(
        default=50,
        ge=1,
        le=60_000,
        description="Rating calls slower than this are logged as warnings",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls: type["Settings"], v: str) -> str:
        """Normalise and validate the log level name."""
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level: {v}")
        return level

    @field_validator("rule_table_path")
    @classmethod
    def validate_rule_table_path(
        cls: type["Settings"], v: Path | None
    ) -> Path | None:
        """Reject rule table paths that are not JSON files."""
        if v is not None and v.suffix.lower() != ".json":
            raise ValueError(f"Rule table must be a .json file: {v}")
        return v


_settings: Settings | None = None


@beartype
def get_settings() -> Settings:
    """Get cached settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


@beartype
def clear_settings_cache() -> None:
    """Clear settings cache (for testing)."""
    global _settings
    _settings = None
