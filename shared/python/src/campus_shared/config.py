"""
config.py — pydantic-settings Settings class.

All environment variables for the campus EAV engine are declared here.
The engine, its CLI and the tests import `settings` from this module.

Usage:
    from campus_shared.config import settings
    print(settings.database_path)
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _find_dotenv() -> Path | None:
    """Walk up from CWD to find the nearest .env file."""
    current = Path.cwd()
    for parent in [current, *current.parents]:
        candidate = parent / ".env"
        if candidate.is_file():
            return candidate
    return None


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=_find_dotenv() or ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # DuckDB
    # -------------------------------------------------------------------------
    database_path: str = Field(default="./data/campus_eav.duckdb")

    # -------------------------------------------------------------------------
    # Query engine
    # -------------------------------------------------------------------------
    default_page_size: int = Field(default=10, ge=1)
    max_page_size: int = Field(default=500, ge=1)

    # -------------------------------------------------------------------------
    # Write retries (DuckDB write-write conflicts)
    # -------------------------------------------------------------------------
    write_retry_attempts: int = Field(default=5, ge=1)
    write_retry_base_delay: float = Field(default=0.05, ge=0)

    # -------------------------------------------------------------------------
    # Logging
    # -------------------------------------------------------------------------
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO"
    )
    log_format: Literal["json", "console"] = Field(default="console")

    # -------------------------------------------------------------------------
    # Derived / computed
    # -------------------------------------------------------------------------
    @property
    def is_in_memory(self) -> bool:
        return self.database_path == ":memory:"

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_log_level(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v


# ---------------------------------------------------------------------------
# Module-level singleton, import this everywhere
# ---------------------------------------------------------------------------
settings = Settings()
