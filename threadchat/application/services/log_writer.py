"""
Reply postprocessor and turn log writer.

Renders the raw reply to sanitized HTML and appends one turn to the chat
record's log. The record is re-read right before the write so the append
builds on the latest log; the write carries that revision.

Dependencies: threadchat.boundary.kintone, threadchat.core.reply_renderer
System role: Turn persistence
"""

import logging
from dataclasses import dataclass

from threadchat.boundary.kintone.records import ChatRecordRepository
from threadchat.core.exceptions import SessionNotFoundError
from threadchat.core.reply_renderer import ReplyRenderer
from threadchat.models.session import ChatSession, Turn

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WrittenTurn:
    turn: Turn
    session: ChatSession


def document_sent_label(document_id: str) -> str:
    """User side of a document-only turn."""
    return f"Document sent: {document_id}"


class ChatLogWriter:
    """Appends rendered turns to the chat record."""

    def __init__(self, records: ChatRecordRepository, renderer: ReplyRenderer) -> None:
        self._records = records
        self._renderer = renderer

    async def append(
        self,
        conversation_id: str,
        user_message: str,
        reply: str,
        model_used: str,
        notice: str | None = None,
    ) -> WrittenTurn:
        """
        Render and append one turn.

        Args:
            conversation_id: External conversation id
            user_message: User message or document label
            reply: Raw reply markdown (may be empty for notice-only turns)
            model_used: Model that produced the reply
            notice: Informational paragraph shown before the reply

        Returns:
            WrittenTurn: Appended turn and the session after the write

        Raises:
            SessionNotFoundError: If the chat record disappeared
            ConcurrentUpdateError: If the record changed after the re-read
        """
        turn = Turn(
            user_message=user_message,
            ai_reply=self._renderer.render(reply, notice=notice),
            model_used=model_used,
        )
        latest = await self._records.get(conversation_id)
        if latest is None:
            raise SessionNotFoundError(conversation_id)
        session = await self._records.append_turn(latest, turn)
        logger.info(
            "Turn appended: conversation_id=%s log_length=%d model=%s",
            conversation_id, len(session.log), model_used,
        )
        return WrittenTurn(turn=turn, session=session)
