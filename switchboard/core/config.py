"""
Host settings for the Switchboard.

Values come from ``SWITCHBOARD_*`` environment variables or a ``.env`` file.
These are host-wide knobs; per-module configuration lives in the definition
file and goes through the config resolver.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="SWITCHBOARD_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    ENVIRONMENT: Literal["development", "production"] = "development"

    # Definition discovery
    DEFINITION_PATH: Optional[Path] = None
    PROJECT_ROOT: Path = Field(default_factory=Path.cwd)

    # Mount points
    ROOT_URI: str = "/nexus"
    MODULES_ROOT: str = "/m"

    # Authorization
    ADMIN_SCOPE: str = "admin"
    AUTH_DISABLED: bool = False

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: Literal["text", "json"] = "text"
    LOG_FILE: Optional[str] = None

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 3001

    METRICS_ENABLED: bool = True


@lru_cache()
def get_settings() -> Settings:
    return Settings()
