"""
Chat session domain models.

A chat session mirrors one chat record: provisioned resource ids, persona
selection, optional instruction override and the append-only turn log.

Dependencies: pydantic
System role: Session and turn log representation
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Turn(BaseModel):
    """One exchange in the turn log. Immutable once appended."""

    model_config = ConfigDict(frozen=True)

    user_message: str
    ai_reply: str
    model_used: str


class LogRow(BaseModel):
    """A turn log row as stored, including the record store's raw row payload."""

    model_config = ConfigDict(frozen=True)

    turn: Turn
    raw: dict[str, Any] | None = Field(
        default=None,
        description="Row exactly as read, written back unchanged",
    )


class ChatSession(BaseModel):
    """Resolved chat session."""

    conversation_id: str
    record_id: str
    revision: str | None = None
    assistant_id: str | None = None
    thread_id: str | None = None
    knowledge_store_id: str | None = None
    persona_name: str | None = None
    instructions_override: str | None = None
    log: list[LogRow] = Field(default_factory=list)

    @property
    def turns(self) -> list[Turn]:
        return [row.turn for row in self.log]

    @property
    def is_provisioned(self) -> bool:
        return bool(self.assistant_id and self.thread_id and self.knowledge_store_id)


class Attachment(BaseModel):
    """A file attached to a document record."""

    file_key: str
    name: str
    content_type: str | None = None
    size: int | None = None


class DocumentRecord(BaseModel):
    """A reference document record."""

    document_id: str
    record_id: str
    attachments: list[Attachment] = Field(default_factory=list)
