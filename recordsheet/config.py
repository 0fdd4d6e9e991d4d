"""
Configuration using Pydantic Settings.

Values are read from environment variables prefixed with ``RECORDSHEET_``
(for example ``RECORDSHEET_DOWNLOAD_DIR``) or from a local ``.env`` file.
"""

import logging
from enum import Enum
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class DecodePolicy(str, Enum):
    """How the row mapper reacts to a cell that cannot be converted."""

    BEST_EFFORT = "best_effort"
    STRICT = "strict"


class Settings(BaseSettings):
    """Engine settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="RECORDSHEET_",
        env_file=".env",
        extra="ignore",
    )

    # Output location for generated exports
    download_dir: str = "./download"
    # Root used to resolve "/profile/..." image references
    profile_dir: str = "./profile"

    # Rows per sheet, header row included
    sheet_row_limit: int = 65536

    decode_policy: DecodePolicy = DecodePolicy.BEST_EFFORT

    image_timeout_seconds: float = 30.0

    log_level: str = "INFO"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def configure_logging(settings: Settings | None = None) -> None:
    """Apply the configured log level and format to the package logger."""
    settings = settings or get_settings()
    logging.basicConfig(format=settings.log_format)
    logging.getLogger("recordsheet").setLevel(settings.log_level.upper())
