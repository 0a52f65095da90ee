"""
Chat and document record repositories.

Map Kintone records onto the relay's domain models using the configured
field codes. All writes on chat records carry the last seen revision.

Dependencies: threadchat.boundary.kintone.client, threadchat.configs
System role: Record store data access
"""

import logging
from typing import Any

from threadchat.boundary.kintone.client import KintoneClient
from threadchat.configs.kintone import KintoneSettings
from threadchat.models.session import (
    Attachment,
    ChatSession,
    DocumentRecord,
    LogRow,
    Turn,
)

logger = logging.getLogger(__name__)


def _value(record: dict[str, Any], field: str) -> Any:
    entry = record.get(field)
    if isinstance(entry, dict):
        return entry.get("value")
    return None


def _text(record: dict[str, Any], field: str) -> str | None:
    value = _value(record, field)
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _writable_row(raw: dict[str, Any]) -> dict[str, Any]:
    """Drop read-only "type" keys; keep row id and field values untouched."""
    values = {
        code: {"value": cell.get("value") if isinstance(cell, dict) else cell}
        for code, cell in (raw.get("value") or {}).items()
    }
    row: dict[str, Any] = {"value": values}
    if raw.get("id") is not None:
        row["id"] = raw["id"]
    return row


class ChatRecordRepository:
    """Reads and writes chat session records."""

    def __init__(self, client: KintoneClient, settings: KintoneSettings) -> None:
        self._client = client
        self._settings = settings

    async def get(self, conversation_id: str) -> ChatSession | None:
        """
        Fetch the chat record for a conversation id.

        Args:
            conversation_id: External conversation id

        Returns:
            ChatSession | None: Parsed session, None when no record matches
        """
        s = self._settings
        raw = await self._client.get_matching(
            s.chat_app_id,
            s.chat_token,
            {s.conversation_field: conversation_id},
        )
        if raw is None:
            return None
        return self._to_session(conversation_id, raw)

    async def set_field(self, session: ChatSession, field: str, value: str) -> ChatSession:
        """
        Write a single text field and return the session with the new revision.

        Raises:
            ConcurrentUpdateError: When the record changed since it was read
        """
        revision = await self._client.update(
            self._settings.chat_app_id,
            self._settings.chat_token,
            session.record_id,
            {field: {"value": value}},
            revision=session.revision,
        )
        return session.model_copy(update={"revision": revision})

    async def append_turn(self, session: ChatSession, turn: Turn) -> ChatSession:
        """
        Write the full log plus one new turn in a single update.

        Existing rows are sent back exactly as read.

        Args:
            session: Freshly read session
            turn: Turn to append

        Returns:
            ChatSession: Session with the appended turn and new revision
        """
        s = self._settings
        new_raw = self._row_for(turn)
        rows = [_writable_row(row.raw) if row.raw else self._row_for(row.turn) for row in session.log]
        rows.append(new_raw)

        revision = await self._client.update(
            s.chat_app_id,
            s.chat_token,
            session.record_id,
            {s.log_field: {"value": rows}},
            revision=session.revision,
        )
        logger.info(
            "Turn log written: conversation_id=%s turns=%d",
            session.conversation_id, len(rows),
        )
        return session.model_copy(
            update={
                "revision": revision,
                "log": [*session.log, LogRow(turn=turn, raw=new_raw)],
            }
        )

    def _row_for(self, turn: Turn) -> dict[str, Any]:
        s = self._settings
        return {
            "value": {
                s.log_user_field: {"value": turn.user_message},
                s.log_reply_field: {"value": turn.ai_reply},
                s.log_model_field: {"value": turn.model_used},
            }
        }

    def _to_session(self, conversation_id: str, raw: dict[str, Any]) -> ChatSession:
        s = self._settings
        log = []
        for row in _value(raw, s.log_field) or []:
            cells = row.get("value") or {}
            log.append(
                LogRow(
                    turn=Turn(
                        user_message=_value(cells, s.log_user_field) or "",
                        ai_reply=_value(cells, s.log_reply_field) or "",
                        model_used=_value(cells, s.log_model_field) or "",
                    ),
                    raw=row,
                )
            )
        return ChatSession(
            conversation_id=conversation_id,
            record_id=str(_value(raw, "$id")),
            revision=_text(raw, "$revision"),
            assistant_id=_text(raw, s.assistant_id_field),
            thread_id=_text(raw, s.thread_id_field),
            knowledge_store_id=_text(raw, s.vector_store_id_field),
            persona_name=_text(raw, s.persona_field),
            instructions_override=_text(raw, s.assistant_config_field),
            log=log,
        )


class DocumentRepository:
    """Reads reference documents and their attachments."""

    def __init__(self, client: KintoneClient, settings: KintoneSettings) -> None:
        self._client = client
        self._settings = settings

    async def find(self, document_id: str) -> DocumentRecord | None:
        """Fetch the document record whose key field equals document_id."""
        s = self._settings
        raw = await self._client.get_matching(
            s.document_app_id,
            s.document_token,
            {s.document_key_field: document_id},
        )
        if raw is None:
            return None
        attachments = [
            Attachment(
                file_key=item["fileKey"],
                name=item.get("name") or "document",
                content_type=item.get("contentType"),
                size=int(item["size"]) if item.get("size") else None,
            )
            for item in (_value(raw, s.attachment_field) or [])
            if item.get("fileKey")
        ]
        return DocumentRecord(
            document_id=document_id,
            record_id=str(_value(raw, "$id")),
            attachments=attachments,
        )

    async def download(self, attachment: Attachment) -> bytes:
        """Download an attachment's bytes."""
        return await self._client.download_file(attachment.file_key, self._settings.document_token)
