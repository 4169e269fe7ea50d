"""
Configuration management for the bet settlement core.

Uses pydantic-settings for type-safe, validated configuration from environment.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # =========================================================================
    # Settlement
    # =========================================================================
    settlement_max_workers: int = Field(
        default=4,
        ge=1,
        le=64,
        description="Thread pool size for batch settlement of a finished match",
    )
    payout_places: int = Field(
        default=2,
        ge=0,
        le=8,
        description="Decimal places used when displaying payouts (settlement math is exact)",
    )

    # =========================================================================
    # Logging
    # =========================================================================
    log_level: str = Field(default="INFO")
    log_file: Optional[Path] = Field(default=None)
    log_json: bool = Field(default=False)

    # =========================================================================
    # Validation
    # =========================================================================
    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize and check the log level name."""
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @field_validator("log_file", mode="before")
    @classmethod
    def validate_log_file(cls, v: Optional[str | Path]) -> Optional[Path]:
        """Convert string to Path and create parent dir if needed."""
        if v is None:
            return None
        path = Path(v)
        path.parent.mkdir(parents=True, exist_ok=True)
        return path


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()


# Convenience exports
settings = get_settings()
