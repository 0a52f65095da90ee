"""Persona API endpoints.

Routes:
- GET /personas - List stored persona names
- GET /personas/{name} - Get a persona (built-in default when not stored)
- PUT /personas/{name} - Create or overwrite a persona
- DELETE /personas/{name} - Delete a stored persona

Dependencies: threadchat.application.services.persona_service
System role: Persona configuration HTTP API
"""

from fastapi import APIRouter, Depends, Response, status

from threadchat.api.deps import get_persona_service
from threadchat.api.routers.error_handling import handle_relay_errors
from threadchat.application.services.persona_service import PersonaService
from threadchat.models.persona import (
    PersonaListResponse,
    PersonaResponse,
    PersonaUpdateRequest,
)

router = APIRouter(prefix="/personas", tags=["personas"])


@router.get("", response_model=PersonaListResponse)
@handle_relay_errors
async def list_personas(
    persona_service: PersonaService = Depends(get_persona_service),
) -> PersonaListResponse:
    """List stored persona names."""
    names = persona_service.list_names()
    return PersonaListResponse(names=names, total=len(names))


@router.get("/{name}", response_model=PersonaResponse)
@handle_relay_errors
async def get_persona(
    name: str,
    persona_service: PersonaService = Depends(get_persona_service),
) -> PersonaResponse:
    """Get a persona; absent names return the built-in default with stored=false."""
    persona = persona_service.load(name)
    return PersonaResponse.from_persona(persona, stored=persona_service.exists(name))


@router.put("/{name}", response_model=PersonaResponse)
@handle_relay_errors
async def update_persona(
    name: str,
    request: PersonaUpdateRequest,
    persona_service: PersonaService = Depends(get_persona_service),
) -> PersonaResponse:
    """Create or overwrite a persona. Numeric fields are coerced, not rejected."""
    persona = persona_service.update(
        name,
        request.instructions,
        request.model_dump(exclude={"instructions"}),
    )
    return PersonaResponse.from_persona(persona)


@router.delete("/{name}", status_code=status.HTTP_204_NO_CONTENT)
@handle_relay_errors
async def delete_persona(
    name: str,
    persona_service: PersonaService = Depends(get_persona_service),
) -> Response:
    """Delete a stored persona."""
    persona_service.delete(name)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
