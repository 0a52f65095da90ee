"""Chat turn API endpoint.

Routes:
- POST /assist/thread-chat - Run one conversational turn for a chat record

Dependencies: threadchat.application.services.turn_service
System role: Chat turn HTTP API
"""

import logging

from fastapi import APIRouter, Depends

from threadchat.api.deps import get_turn_service
from threadchat.api.routers.error_handling import handle_relay_errors
from threadchat.application.services.turn_service import TurnService
from threadchat.models.chat import TurnRequest, TurnResponse
from threadchat.models.common import ErrorResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/assist", tags=["chat"])


@router.post(
    "/thread-chat",
    response_model=TurnResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
        504: {"model": ErrorResponse},
    },
)
@handle_relay_errors
async def thread_chat(
    request: TurnRequest,
    turn_service: TurnService = Depends(get_turn_service),
) -> TurnResponse:
    """Run one turn: provision session, ingest document, generate and log the reply.

    Args:
        request: TurnRequest with conversationId and message and/or documentId
        turn_service: Injected TurnService

    Returns:
        TurnResponse: Sanitized HTML reply with the session's resource ids
    """
    return await turn_service.process_turn(request)
