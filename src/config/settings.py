"""
Replenishment engine settings.

Values come from the environment (or a ``.env`` file). Each section reads
its own prefix: ``STORAGE_DATA_DIR``, ``API_PORT``,
``INVENTORY_OUTSTANDING_LIMIT`` and so on.
"""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """SQLite store location and connection pool."""

    model_config = SettingsConfigDict(env_prefix="STORAGE_")

    data_dir: Path = Path("data")
    db_name: str = "replenishment.db"
    pool_size: int = Field(default=5, ge=1, le=64)
    busy_timeout: int = Field(
        default=30000,
        ge=0,
        description="Milliseconds a transaction waits for the write lock before failing",
    )

    @property
    def db_path(self) -> Path:
        return self.data_dir / self.db_name


class InventorySettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="INVENTORY_")

    outstanding_limit: int = Field(
        default=500,
        ge=1,
        description="Most rows the outstanding purchase order listing returns",
    )


class APISettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="API_")

    host: str = "0.0.0.0"
    port: int = Field(default=8000, ge=1, le=65535)
    debug: bool = False
    cors_origins: list[str] = Field(
        default=["*"],
        description='JSON list, e.g. API_CORS_ORIGINS=\'["http://localhost:3000"]\'',
    )


class Settings(BaseSettings):
    """Top-level settings; sections are built from their own env prefixes."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "Replenishment Engine"
    app_version: str = "1.0.0"
    environment: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_json: bool | None = Field(
        default=None,
        description="Render logs as JSON lines; unset means only in production",
    )

    storage: StorageSettings = Field(default_factory=StorageSettings)
    inventory: InventorySettings = Field(default_factory=InventorySettings)
    api: APISettings = Field(default_factory=APISettings)


_settings: Settings | None = None


def get_settings() -> Settings:
    """Process-wide settings, read once."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Forget cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None
