"""
Settings - Pydantic-based Configuration Management

Provides centralized configuration management using Pydantic Settings.
Values come from environment variables or a local .env file.

Files that USE this module:
- xconvert.app (builds the currency service from settings)
- xconvert.application.currency_service (CurrencyPolicy.from_settings)
- xconvert.adapters.providers.* (provider URLs and HTTP timeouts)
- xconvert.adapters.resilience.policy (retry and circuit parameters)

Files that this module USES:
- xconvert.shared.validators (currency list parsing)
"""

from __future__ import annotations  # Enable postponed evaluation of annotations

from typing import FrozenSet, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from xconvert.shared.validators import parse_currency_list, validate_http_url


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # --- Currency policy ---
    # Comma-separated list; parsed into restricted_currencies
    restricted_currencies_raw: str = Field(default="TRY,PLN,THB,MXN", alias="RESTRICTED_CURRENCIES")
    default_page_size: int = Field(default=10, alias="DEFAULT_PAGE_SIZE", ge=1, le=1000)

    # --- Cache TTLs (in minutes) ---
    latest_rates_cache_minutes: int = Field(default=60, alias="LATEST_RATES_CACHE_MINUTES", ge=1, le=10080)
    conversion_cache_minutes: int = Field(default=60, alias="CONVERSION_CACHE_MINUTES", ge=1, le=10080)
    historical_cache_minutes: int = Field(default=24 * 60, alias="HISTORICAL_CACHE_MINUTES", ge=1, le=10080)

    # --- Resilience ---
    retry_count: int = Field(default=3, alias="RETRY_COUNT", ge=0, le=10)
    retry_backoff_base: float = Field(default=2.0, alias="RETRY_BACKOFF_BASE", gt=0.0, le=60.0)
    circuit_failure_threshold: int = Field(default=5, alias="CIRCUIT_FAILURE_THRESHOLD", ge=1, le=100)
    circuit_break_seconds: float = Field(default=60.0, alias="CIRCUIT_BREAK_SECONDS", gt=0.0)

    # --- HTTP Settings ---
    http_timeout_seconds: int = Field(default=10, alias="HTTP_TIMEOUT_SECONDS", ge=1, le=60)
    # Unset: no deadline beyond the per-attempt HTTP timeout and the retry budget
    request_timeout_seconds: Optional[float] = Field(default=None, alias="REQUEST_TIMEOUT_SECONDS")

    # --- Providers ---
    default_provider: str = Field(default="Frankfurter", alias="DEFAULT_PROVIDER")
    frankfurter_url: str = Field(default="https://api.frankfurter.app", alias="FRANKFURTER_URL")

    # --- Logging ---
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_file: Optional[str] = Field(default=None, alias="LOG_FILE")
    log_dir: Optional[str] = Field(default=None, alias="LOG_DIR")
    log_stdout: bool = Field(default=True, alias="XCONVERT_LOG_STDOUT")
    log_max_bytes: int = Field(default=10 * 1024 * 1024, alias="LOG_MAX_BYTES")  # 10MB
    log_backup_count: int = Field(default=5, alias="LOG_BACKUP_COUNT")

    @property
    def restricted_currencies(self) -> FrozenSet[str]:
        """Restricted currency codes, upper-cased."""
        return parse_currency_list(self.restricted_currencies_raw)

    @field_validator("restricted_currencies_raw")
    @classmethod
    def validate_restricted_currencies(cls, v: str) -> str:
        """Normalize the restricted currency list."""
        return ",".join(sorted(parse_currency_list(v)))

    @field_validator("frankfurter_url")
    @classmethod
    def validate_frankfurter_url(cls, v: str) -> str:
        """Validate provider URL format."""
        if not validate_http_url(v):
            raise ValueError("FRANKFURTER_URL must be an http(s) URL")
        return v.rstrip("/")

    @field_validator("request_timeout_seconds")
    @classmethod
    def validate_request_timeout(cls, v: Optional[float]) -> Optional[float]:
        """Non-positive values disable the per-request deadline."""
        if v is not None and v <= 0:
            return None
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate logging level name."""
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError("LOG_LEVEL must be one of DEBUG, INFO, WARNING, ERROR, CRITICAL")
        return level


# Global settings instance
settings = Settings()
