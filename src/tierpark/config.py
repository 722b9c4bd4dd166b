# File: src/tierpark/config.py
"""
Application configuration using Pydantic-Settings.
Every setting can be overridden via TIERPARK_* environment variables or a
.env file; command line flags take precedence over both.
"""

from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LotSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="TIERPARK_",
        env_file=".env",
        extra="ignore",
    )

    # ── Layout ────────────────────────────────────────────────────────────
    num_floors: Optional[int] = Field(default=None, ge=1)
    spots_per_floor: Optional[int] = Field(default=None, ge=1)

    # ── Logging ───────────────────────────────────────────────────────────
    log_level: str = "WARNING"
    log_file: Optional[str] = None

    # ── Terminal ──────────────────────────────────────────────────────────
    prompt: str = "\nEnter command: "

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level

    @property
    def has_layout(self) -> bool:
        return self.num_floors is not None and self.spots_per_floor is not None
