"""Configuration management using Pydantic Settings.

Priority order:
1. Environment variables prefixed with TEXDRAFT_ (highest priority)
2. .env file (local development fallback)
3. Defaults below

API keys are not configured here. They live in the local key/value store
and are managed through ApiKeyVault.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_prefix="TEXDRAFT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Durable local storage (keys, provider choice, theme, history)
    storage_path: Path = Path.home() / ".texdraft" / "storage.json"

    # Outbound HTTP
    request_timeout: float = 120.0  # LLM replies for full documents are slow

    # Simulated compilation latency for preview/download artifacts
    compile_delay_seconds: float = 1.0

    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        """Accept lowercase level names from the environment."""
        return value.upper()

    @field_validator("storage_path")
    @classmethod
    def expand_storage_path(cls, value: Path) -> Path:
        """Expand a leading ~ so .env files can use it."""
        return value.expanduser()


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Default settings instance
settings = get_settings()
