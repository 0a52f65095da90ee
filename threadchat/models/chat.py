"""
Chat turn request/response schemas.

Wire contract of POST /assist/thread-chat. Field names are camelCase on the
wire; the legacy `chatRecordId` key is accepted for the conversation id.

Dependencies: pydantic
System role: Chat API contracts
"""

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class TurnRequest(BaseModel):
    """Inbound turn request. Numeric record ids arrive as JSON numbers and become strings."""

    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    conversation_id: str = Field(
        validation_alias=AliasChoices("conversationId", "chatRecordId", "conversation_id"),
        description="External conversation id (chat record key)",
    )
    message: str | None = Field(default=None, description="User message")
    document_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("documentId", "document_id"),
        description="Reference document to ingest before answering",
    )
    model: str | None = Field(default=None, description="Requested model label")


class TurnResponse(BaseModel):
    """Reply to a turn request."""

    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    reply: str = Field(description="Sanitized HTML reply")
    model: str = Field(description="Model actually used")
    requested_model: str | None = Field(default=None, serialization_alias="requestedModel")
    model_substituted: bool = Field(default=False, serialization_alias="modelSubstituted")
    thread_id: str = Field(serialization_alias="threadId")
    assistant_id: str = Field(serialization_alias="assistantId")
    knowledge_store_id: str = Field(serialization_alias="knowledgeStoreId")
    warnings: list[str] = Field(default_factory=list)
