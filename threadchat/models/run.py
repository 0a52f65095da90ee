"""
Generation run models.

Dependencies: pydantic
System role: Run parameters and transient run state
"""

from enum import Enum

from pydantic import BaseModel, Field


class RunStatus(str, Enum):
    """Run lifecycle states reported by the language-model service."""

    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    REQUIRES_ACTION = "requires_action"
    CANCELLING = "cancelling"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    FAILED = "failed"
    INCOMPLETE = "incomplete"
    EXPIRED = "expired"


class RunParameters(BaseModel):
    """Everything a run is started with."""

    assistant_id: str
    model: str
    instructions: str
    knowledge_store_id: str | None = None
    temperature: float | None = None
    top_p: float | None = None
    presence_penalty: float | None = None
    frequency_penalty: float | None = None
    max_output_tokens: int | None = None
    response_format: str | None = None
    metadata: dict[str, str] = Field(default_factory=dict)


class RunState(BaseModel):
    """Snapshot of a run."""

    run_id: str
    status: str
    last_error: str | None = None

    @property
    def is_pending(self) -> bool:
        return self.status in (RunStatus.QUEUED.value, RunStatus.IN_PROGRESS.value)
