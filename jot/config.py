"""
Configuration settings for jot.

Values come from environment variables or a ``.env`` file in the working
directory.
"""

from __future__ import annotations

import logging
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Library settings loaded from environment variables"""

    # Database
    DATABASE_URL: str = Field(default="jot.db", validation_alias="DATABASE_URL")
    DATABASE_DRIVER: str = Field(default="sqlite3", validation_alias="DATABASE_DRIVER")
    POOL_SIZE: int = Field(default=1, validation_alias="POOL_SIZE")
    VALIDATION_TIMEOUT: int = Field(default=1, validation_alias="VALIDATION_TIMEOUT")

    # Graph database
    NEO4J_URL: str = Field(default="http://localhost:7474", validation_alias="NEO4J_URL")
    NEO4J_USERNAME: Optional[str] = Field(default=None, validation_alias="NEO4J_USERNAME")
    NEO4J_PASSWORD: Optional[str] = Field(default=None, validation_alias="NEO4J_PASSWORD")
    HTTP_MAX_RETRIES: int = Field(default=3, validation_alias="HTTP_MAX_RETRIES")
    RETRY_BACKOFF_FACTOR: int = Field(default=2, validation_alias="RETRY_BACKOFF_FACTOR")

    # Logging
    LOG_LEVEL: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"

    @field_validator("POOL_SIZE")
    @classmethod
    def _check_pool_size(cls, value: int) -> int:
        if value < 1:
            raise ValueError(f"Invalid pool size: {value}")
        return value


def configure_logging(level: Optional[str] = None) -> None:
    """Install a root handler using ``LOG_LEVEL`` unless *level* is given."""
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


# Global settings instance
settings = Settings()
