"""
Engine configuration using pydantic-settings.

Environment variables (prefix: COMMUNISTOPOLY_):
    COMMUNISTOPOLY_SEED             - RNG seed for reproducible games (default: unset)
    COMMUNISTOPOLY_STARTING_RUBLES  - Rubles dealt to every comrade (default: 1500)
    COMMUNISTOPOLY_STOY_TRAVEL_TAX  - Tax for passing STOY (default: 200)
    COMMUNISTOPOLY_MAX_LOG_ENTRIES  - Log entries kept in snapshots (default: 50)
    COMMUNISTOPOLY_LOG_LEVEL        - Python logging level (default: INFO)
    COMMUNISTOPOLY_LOG_DIR          - Directory for JSONL game logs (default: logs)
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    """Environment-backed defaults for new games and the simulation CLI."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_prefix="COMMUNISTOPOLY_",
    )

    seed: Optional[int] = Field(
        default=None,
        description="Seed for the game RNG; unset means nondeterministic.",
    )
    starting_rubles: int = Field(
        default=1500,
        gt=0,
        description="Rubles dealt to every non-Stalin player.",
    )
    stoy_travel_tax: int = Field(
        default=200,
        ge=0,
        description="Tax charged for passing (not landing on) STOY.",
    )
    max_log_entries: int = Field(
        default=50,
        gt=0,
        description="Number of recent log entries persisted in snapshots.",
    )
    log_level: str = Field(
        default="INFO",
        description="Python logging level name.",
    )
    log_dir: str = Field(
        default="logs",
        description="Directory where JSONL game logs are written.",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value: Optional[str]) -> str:
        """Accept any casing and fall back to INFO for unknown names."""
        if not value:
            return "INFO"
        value = str(value).upper()
        if value not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            return "INFO"
        return value


@lru_cache
def get_settings() -> EngineSettings:
    """Return cached engine settings instance."""
    return EngineSettings()
