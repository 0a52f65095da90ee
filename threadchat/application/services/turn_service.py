"""
Turn service.

Request-scoped orchestration of one conversational turn:

1. Validate the request
2. Serialize on the conversation id
3. Resolve (and lazily provision) the session
4. Ingest the referenced document, if any
5. Run the turn, or log a notice when there is nothing to run
6. Append the turn to the record's log

The whole turn is bounded by the request timeout.

Dependencies: threadchat.application.services.*, threadchat.core.session_locks
System role: Turn use case orchestration
"""

import asyncio
import logging

from threadchat.application.services.knowledge_ingestion import KnowledgeIngestionPipeline
from threadchat.application.services.log_writer import ChatLogWriter, document_sent_label
from threadchat.application.services.run_engine import ConversationRunEngine
from threadchat.application.services.session_registry import SessionRegistry
from threadchat.core.exceptions import UpstreamTimeoutError, ValidationError
from threadchat.core.session_locks import SessionLockRegistry
from threadchat.models.chat import TurnRequest, TurnResponse

logger = logging.getLogger(__name__)


class TurnService:
    """Session orchestrator for inbound turn requests."""

    def __init__(
        self,
        registry: SessionRegistry,
        ingestion: KnowledgeIngestionPipeline,
        engine: ConversationRunEngine,
        log_writer: ChatLogWriter,
        locks: SessionLockRegistry,
        request_timeout_seconds: float | None = None,
    ) -> None:
        """
        Initialize turn service.

        Args:
            registry: Session registry
            ingestion: Knowledge ingestion pipeline
            engine: Conversation run engine
            log_writer: Reply postprocessor and log writer
            locks: Per-conversation lock registry
            request_timeout_seconds: Budget for one turn, None disables it
        """
        self.registry = registry
        self.ingestion = ingestion
        self.engine = engine
        self.log_writer = log_writer
        self.locks = locks
        self.request_timeout_seconds = request_timeout_seconds

    async def process_turn(self, request: TurnRequest) -> TurnResponse:
        """
        Process one turn request.

        Raises:
            ValidationError: Missing conversation id, or neither message nor document
            NotFoundError: Session or document absent
            UpstreamUnavailableError: Record store or language-model failure
            UpstreamTimeoutError: Turn exceeded the request timeout
            RunNotCompletedError: Run ended failed, expired or timed out
            ConcurrentUpdateError: Record changed concurrently
        """
        conversation_id = (request.conversation_id or "").strip()
        message = (request.message or "").strip() or None
        document_id = (request.document_id or "").strip() or None

        if not conversation_id:
            raise ValidationError("conversationId is required", field="conversationId")
        if message is None and document_id is None:
            raise ValidationError("Either message or documentId is required", field="message")

        if self.request_timeout_seconds is None:
            return await self._process(conversation_id, message, document_id, request.model)
        try:
            return await asyncio.wait_for(
                self._process(conversation_id, message, document_id, request.model),
                timeout=self.request_timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            logger.error(
                "Turn timed out: conversation_id=%s timeout=%.1fs",
                conversation_id, self.request_timeout_seconds,
            )
            raise UpstreamTimeoutError(
                f"Turn did not finish within {self.request_timeout_seconds:g} seconds",
                operation="process_turn",
                details={"conversation_id": conversation_id},
            ) from e

    async def _process(
        self,
        conversation_id: str,
        message: str | None,
        document_id: str | None,
        requested_model: str | None,
    ) -> TurnResponse:
        async with self.locks.hold(conversation_id):
            session = await self.registry.resolve(conversation_id)

            notice = None
            ingested = False
            if document_id:
                result = await self.ingestion.ingest(session, document_id)
                notice = result.notice
                ingested = result.ingested

            plan = self.engine.plan(session, requested_model)
            user_side = message or document_sent_label(document_id)

            if message is None and not ingested:
                # Nothing new for the model to answer; log the notice only.
                written = await self.log_writer.append(
                    conversation_id,
                    user_message=user_side,
                    reply="",
                    model_used=plan.resolution.model,
                    notice=notice,
                )
            else:
                outcome = await self.engine.run_turn(session, message, plan)
                written = await self.log_writer.append(
                    conversation_id,
                    user_message=user_side,
                    reply=outcome.reply,
                    model_used=plan.resolution.model,
                    notice=notice,
                )

        warnings = [plan.resolution.warning] if plan.resolution.warning else []
        return TurnResponse(
            reply=written.turn.ai_reply,
            model=plan.resolution.model,
            requested_model=requested_model or None,
            model_substituted=plan.resolution.substituted,
            thread_id=session.thread_id,
            assistant_id=session.assistant_id,
            knowledge_store_id=session.knowledge_store_id,
            warnings=warnings,
        )
