"""Central configuration for the Ambre reconciliation package.

All parameters are read from ``AMBRE_RECO_*`` environment variables with
sensible defaults.
"""
from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path

import structlog
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parent.parent
DATA_DIR = BASE_DIR / "data"
ARCHIVE_DIR = DATA_DIR / "history"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="AMBRE_RECO_",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    workers: int = Field(default=1, ge=1)
    parallel_threshold: int = Field(default=20000, ge=1)
    log_level: str = Field(default="INFO")
    # Used by ``--archive`` when no directory is given.
    archive_dir: Path = Field(default=ARCHIVE_DIR)


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance. Raises ``pydantic.ValidationError`` on bad values."""
    return Settings()


def configure_logging(level: str | None = None) -> None:
    """Route structlog output to the console, filtered at ``level``."""
    level_name = (level or get_settings().log_level).upper()
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level_name, logging.INFO)),
        cache_logger_on_first_use=False,
    )
