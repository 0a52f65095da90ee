"""
Kintone record store configuration.

Connection settings and field codes for the chat app (one record per
conversation) and the document app (reference documents with attachments).

Dependencies: pydantic_settings
System role: Record store configuration
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class KintoneSettings(BaseSettings):
    """Settings for the Kintone REST API and the field layout of both apps."""

    model_config = SettingsConfigDict(
        env_prefix="KINTONE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    domain: str = Field(
        default="example.cybozu.com",
        description="Kintone subdomain host, without scheme",
    )
    chat_app_id: str = Field(default="", description="App id of the chat app")
    chat_token: str = Field(default="", description="API token for the chat app")
    document_app_id: str = Field(default="", description="App id of the document app")
    document_token: str = Field(default="", description="API token for the document app")
    timeout_seconds: float = Field(default=30.0, gt=0, description="HTTP timeout per call")

    # Chat app field codes
    conversation_field: str = Field(
        default="$id",
        description="Field matched against the inbound conversation id",
    )
    assistant_id_field: str = Field(default="assistant_id")
    thread_id_field: str = Field(default="thread_id")
    vector_store_id_field: str = Field(default="vector_store_id")
    assistant_config_field: str = Field(
        default="assistant_config",
        description="Per-session instruction override",
    )
    persona_field: str = Field(default="persona_name")
    log_field: str = Field(default="chat_log", description="Subtable holding the turn log")
    log_user_field: str = Field(default="user_message")
    log_reply_field: str = Field(default="ai_reply")
    log_model_field: str = Field(default="model_used")

    # Document app field codes
    document_key_field: str = Field(default="documentID")
    attachment_field: str = Field(default="file_attach")

    @property
    def base_url(self) -> str:
        """Base URL of the Kintone REST API."""
        return f"https://{self.domain}"
