"""
Unified application settings.

Aggregates all configuration modules into a single Settings class.
Provides dependency injection factory for FastAPI.

Dependencies: All config modules
System role: Central configuration aggregator for the application
"""

from functools import lru_cache

from pydantic import Field

from threadchat.configs.base import BaseSettings
from threadchat.configs.conversation import (
    IngestionSettings,
    ModelSettings,
    PersonaSettings,
    ReplySettings,
    RunSettings,
)
from threadchat.configs.kintone import KintoneSettings
from threadchat.configs.openai import OpenAISettings


class Settings(BaseSettings):
    """Unified application settings aggregating all config modules."""

    kintone: KintoneSettings = Field(default_factory=KintoneSettings)
    openai: OpenAISettings = Field(default_factory=OpenAISettings)
    models: ModelSettings = Field(default_factory=ModelSettings)
    run: RunSettings = Field(default_factory=RunSettings)
    personas: PersonaSettings = Field(default_factory=PersonaSettings)
    reply: ReplySettings = Field(default_factory=ReplySettings)
    ingestion: IngestionSettings = Field(default_factory=IngestionSettings)


@lru_cache
def get_settings() -> Settings:
    """
    Get application settings singleton.

    Returns Settings instance, cached for dependency injection.
    Environment variables loaded once at startup.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
