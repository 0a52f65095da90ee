"""
Language-model service configuration.

Dependencies: pydantic_settings
System role: OpenAI client configuration
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class OpenAISettings(BaseSettings):
    """Settings for the OpenAI client."""

    model_config = SettingsConfigDict(
        env_prefix="OPENAI_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    api_key: str | None = Field(default=None, description="OpenAI API key")
    base_url: str | None = Field(default=None, description="Optional API base URL override")
    timeout_seconds: float = Field(default=60.0, gt=0, description="Timeout per API call")
    max_retries: int = Field(
        default=2,
        ge=0,
        description="SDK-level retries for transient failures",
    )
