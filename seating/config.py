"""Allocator configuration and settings."""

import logging
from functools import lru_cache
from typing import List, Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Allocator settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="SEATING_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    app_name: str = "Restaurant Seating Allocator"
    debug: bool = False
    log_level: str = "INFO"

    # Drainer
    drain_mode: Literal["worker", "inline"] = "worker"
    drain_thread_name: str = "seating-drainer"
    drain_poll_interval: float = Field(default=0.5, gt=0)  # seconds

    # Floor plan used by SeatingAllocator.from_settings
    table_capacities: List[int] = Field(default_factory=list)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def configure_logging(settings: Optional[Settings] = None):
    """Configure root logging from settings."""
    settings = settings or get_settings()
    level = logging.DEBUG if settings.debug else settings.log_level.upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
