from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class Settings(BaseSettings):
    """Runtime settings, read from PAYMENTS_ENGINE_* environment variables or .env."""

    model_config = SettingsConfigDict(
        env_prefix="PAYMENTS_ENGINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # 1 processes every record in the calling thread
    num_workers: int = Field(default=1, ge=1)

    # Logging goes to stderr; stdout carries only the report
    log_level: LogLevel = "WARNING"

    # False restricts disputes to deposits
    allow_withdrawal_disputes: bool = True

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v):
        if isinstance(v, str):
            return v.strip().upper()
        return v


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
