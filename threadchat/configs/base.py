"""
Relay-wide settings.

Service identity, log level and bind address shared by every settings
class through the aggregated Settings.

Dependencies: pydantic_settings
System role: Foundation for all configuration classes
"""

import logging

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings as PydanticBaseSettings, SettingsConfigDict

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class BaseSettings(PydanticBaseSettings):
    """Unprefixed relay settings (LOG_LEVEL, ENVIRONMENT, HOST, PORT)."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    service_name: str = Field(default="threadchat-relay", description="Name reported in startup logs")
    environment: str = Field(default="development", description="Deployment environment label")
    log_level: str = Field(default="INFO", description="Root log level")
    host: str = Field(default="0.0.0.0", description="uvicorn bind host")
    port: int = Field(default=8000, ge=1, le=65535, description="uvicorn bind port")

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value: object) -> str:
        """Accept any case; unknown names fall back to INFO with a warning."""
        level = str(value or "").strip().upper()
        if level not in _LOG_LEVELS:
            logging.getLogger(__name__).warning("Unknown LOG_LEVEL %r, using INFO", value)
            return "INFO"
        return level
