"""
Conversation behaviour configuration.

Model allow-list, run polling policy, persona file area, reply presentation
and document ingestion policy.

Dependencies: pydantic_settings
System role: Conversation orchestration configuration
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ModelSettings(BaseSettings):
    """Allow-listed language models."""

    model_config = SettingsConfigDict(
        env_prefix="MODELS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    allowed: str = Field(
        default="gpt-4o,gpt-4o-mini",
        description="Comma separated allow-list of model identifiers",
    )
    default: str = Field(
        default="gpt-4o-mini",
        description="Fallback model, must be a member of the allow-list",
    )

    @property
    def allowed_models(self) -> tuple[str, ...]:
        """Allow-list as an ordered tuple, default model always included."""
        models = [item.strip() for item in self.allowed.split(",") if item.strip()]
        if self.default not in models:
            models.append(self.default)
        return tuple(dict.fromkeys(models))


class RunSettings(BaseSettings):
    """Polling policy for asynchronous generation runs."""

    model_config = SettingsConfigDict(
        env_prefix="RUN_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    poll_interval_seconds: float = Field(default=1.2, ge=0)
    backoff_multiplier: float = Field(
        default=1.0,
        ge=1.0,
        description="Interval growth per poll (1.0 keeps a fixed interval)",
    )
    max_poll_interval_seconds: float = Field(default=5.0, ge=0)
    deadline_seconds: float = Field(
        default=120.0,
        gt=0,
        description="Maximum time a run may stay queued or in progress",
    )
    request_timeout_seconds: float = Field(
        default=300.0,
        gt=0,
        description="Budget for a whole turn request",
    )


class PersonaSettings(BaseSettings):
    """Persona file area."""

    model_config = SettingsConfigDict(
        env_prefix="PERSONA_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    directory: str = Field(default=".personas", description="Directory holding persona JSON files")
    default_name: str = Field(default="default")


class ReplySettings(BaseSettings):
    """Reply presentation."""

    model_config = SettingsConfigDict(
        env_prefix="REPLY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    append_closing_prompt: bool = Field(default=False)
    closing_prompt: str = Field(
        default="Is there anything else you would like to dig into?",
    )
    no_reply_text: str = Field(default="(no reply)")


class IngestionSettings(BaseSettings):
    """Document ingestion policy."""

    model_config = SettingsConfigDict(
        env_prefix="INGESTION_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    skip_duplicates: bool = Field(
        default=False,
        description="Skip upload when the store already holds a file with the same name",
    )
