"""Shared configuration management using pydantic-settings."""
from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings


class CoverageSettings(BaseSettings):
    """Process-level settings read from the environment."""
    log_level: str = Field(default="info", validation_alias="LOG_LEVEL")
    log_file: str = Field(default="", validation_alias="LOG_FILE")
    config_path: str = Field(default="", validation_alias="COVERAGE_CONFIG")

    model_config = {
        "populate_by_name": True,
        "extra": "ignore",
    }
