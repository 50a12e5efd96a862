"""Application configuration using Pydantic Settings.

Every value can be overridden with an ``OLM_``-prefixed environment
variable or a ``.env`` file in the working directory.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="OLM_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Storage
    data_dir: Path = Field(default=Path("data"), description="Directory for local state")
    database_file: str = Field(default="orders.sqlite3", description="SQLite file under data_dir")

    log_level: str = Field(default="INFO")

    # Delivery proof codes
    delivery_code_backend: Literal["sqlite", "redis"] = "sqlite"
    redis_url: str = "redis://localhost:6379/0"
    delivery_code_ttl_seconds: int = Field(default=1800, gt=0)
    delivery_code_max_attempts: int = Field(default=3, ge=1)
    delivery_code_length: int = Field(default=4, ge=4, le=8)

    # Lifecycle
    max_active_deliveries: int = Field(default=5, ge=1)
    max_update_attempts: int = Field(default=3, ge=1)
    notification_workers: int = Field(default=2, ge=1)

    # Checkout pricing
    currency: str = "INR"
    delivery_fee: str = "30"
    free_delivery_above: str = "500"
    tax_rate: str = "0"

    @property
    def database_path(self) -> Path:
        return self.data_dir / self.database_file


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance; call ``get_settings.cache_clear()`` in tests."""
    return Settings()
