"""Configuration for ScrumBoard.

Settings are read from environment variables (``SCRUMBOARD_`` prefix, ``__``
between nested sections) on top of the defaults below. An explicit
``Settings`` instance can be handed to ``create_app`` instead, which is what
the tests do.

Example environment override:
    SCRUMBOARD_DATABASE__URL="postgresql+psycopg://localhost/scrumboard"
    SCRUMBOARD_LOGGING__FORMAT=console
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_DATA_DIR = Path(".scrumboard")


class DatabaseSettings(BaseModel):
    """Database connection settings.

    Attributes:
        url: SQLAlchemy database URL
        echo: Log every SQL statement
        backup_before_migrate: Copy an existing SQLite file before upgrading it
    """

    url: str = Field(default=f"sqlite:///{DEFAULT_DATA_DIR}/database.db")
    echo: bool = False
    backup_before_migrate: bool = True


class LoggingSettings(BaseModel):
    """Logging settings.

    Attributes:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format: ``json`` or ``console``
        file: Optional log file; stdout when unset
    """

    level: str = "INFO"
    format: str = "json"
    file: Optional[Path] = None

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v_upper

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        v_lower = v.lower()
        if v_lower not in {"json", "console"}:
            raise ValueError(f"Invalid log format: {v}. Must be json or console")
        return v_lower


class WebSettings(BaseModel):
    """HTTP server settings"""

    host: str = "127.0.0.1"
    port: int = Field(default=8080, ge=1, le=65535)
    cors_origins: List[str] = Field(
        default_factory=lambda: [
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ]
    )


class Settings(BaseSettings):
    """Root settings object"""

    model_config = SettingsConfigDict(
        env_prefix="SCRUMBOARD_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    web: WebSettings = Field(default_factory=WebSettings)
    run_migrations_on_startup: bool = True


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings loaded from the environment"""
    return Settings()
