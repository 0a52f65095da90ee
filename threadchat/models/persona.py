"""
Persona domain models.

A persona is a named bundle of instructions and generation parameters,
independent of any single session.

Dependencies: pydantic
System role: Persona configuration schemas
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_INSTRUCTIONS = (
    "You are a sincere and courteous assistant. "
    "Answer logically and in a well structured way."
)


class GenerationParams(BaseModel):
    """
    Generation parameters stored with a persona.

    Attributes:
        model: Allow-listed model identifier
        temperature: Sampling temperature (0.0-2.0)
        top_p: Nucleus sampling parameter (0.0-1.0)
        presence_penalty: Presence penalty (-2.0-2.0)
        frequency_penalty: Frequency penalty (-2.0-2.0)
        max_output_tokens: Maximum completion tokens
        response_format: "auto", "text" or "json_object"
        metadata: Free-form string metadata forwarded with each run
    """

    model_config = ConfigDict(frozen=True)

    model: str
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    top_p: float = Field(default=1.0, ge=0.0, le=1.0)
    presence_penalty: float = Field(default=0.0, ge=-2.0, le=2.0)
    frequency_penalty: float = Field(default=0.0, ge=-2.0, le=2.0)
    max_output_tokens: int = Field(default=1800, gt=0)
    response_format: str = Field(default="auto")
    metadata: dict[str, str] = Field(default_factory=dict)


class PersonaConfig(BaseModel):
    """Named behavioural profile."""

    model_config = ConfigDict(frozen=True)

    name: str
    instructions: str = DEFAULT_INSTRUCTIONS
    params: GenerationParams


class PersonaUpdateRequest(BaseModel):
    """
    Persona update payload.

    Numeric values arrive loosely typed from record forms; they are coerced
    by the persona store, not rejected here.
    """

    instructions: str | None = None
    model: str | None = None
    temperature: Any = None
    top_p: Any = None
    presence_penalty: Any = None
    frequency_penalty: Any = None
    max_output_tokens: Any = None
    response_format: str | None = None
    metadata: dict[str, Any] | None = None


class PersonaResponse(BaseModel):
    """Persona as returned by the API."""

    name: str
    instructions: str
    model: str
    temperature: float
    top_p: float
    presence_penalty: float
    frequency_penalty: float
    max_output_tokens: int
    response_format: str
    metadata: dict[str, str]
    stored: bool = Field(description="False when the built-in default was returned")

    @classmethod
    def from_persona(cls, persona: PersonaConfig, stored: bool = True) -> "PersonaResponse":
        return cls(
            name=persona.name,
            instructions=persona.instructions,
            stored=stored,
            **persona.params.model_dump(),
        )


class PersonaListResponse(BaseModel):
    """Stored persona names."""

    names: list[str]
    total: int
