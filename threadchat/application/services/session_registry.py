"""
Session registry.

Maps an external conversation id to its chat record and lazily provisions
the three language-model resources of the session: assistant, thread and
knowledge store. Each id is created at most once and persisted immediately;
a failure part way keeps what was already written, so retrying the same
request resumes where it stopped.

Dependencies: threadchat.boundary.kintone, threadchat.boundary.llm,
    threadchat.application.services.persona_service
System role: Session resolution and resource provisioning
"""

import logging

from threadchat.application.services.persona_service import PersonaService
from threadchat.boundary.kintone.records import ChatRecordRepository
from threadchat.boundary.llm.openai_gateway import OpenAIGateway
from threadchat.configs.kintone import KintoneSettings
from threadchat.core.exceptions import SessionNotFoundError
from threadchat.core.model_resolver import ModelResolver
from threadchat.models.session import ChatSession

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Resolves conversation ids to fully provisioned sessions."""

    def __init__(
        self,
        records: ChatRecordRepository,
        gateway: OpenAIGateway,
        personas: PersonaService,
        resolver: ModelResolver,
        fields: KintoneSettings,
    ) -> None:
        """
        Initialize session registry.

        Args:
            records: Chat record repository
            gateway: Language-model service gateway
            personas: Persona store (assistant defaults)
            resolver: Model allow-list resolver
            fields: Field codes of the chat app
        """
        self._records = records
        self._gateway = gateway
        self._personas = personas
        self._resolver = resolver
        self._fields = fields

    async def get(self, conversation_id: str) -> ChatSession:
        """
        Read the current state of a session without provisioning.

        Raises:
            SessionNotFoundError: If no chat record matches
        """
        session = await self._records.get(conversation_id)
        if session is None:
            raise SessionNotFoundError(conversation_id)
        return session

    async def resolve(self, conversation_id: str) -> ChatSession:
        """
        Resolve a session, provisioning whatever resource ids are missing.

        Args:
            conversation_id: External conversation id

        Returns:
            ChatSession: Session with assistant, thread and knowledge store ids

        Raises:
            SessionNotFoundError: If no chat record matches
            UpstreamUnavailableError: If a provisioning or write call fails
            ConcurrentUpdateError: If the record changed during provisioning
        """
        session = await self.get(conversation_id)
        if session.is_provisioned:
            return session

        if not session.assistant_id:
            persona = self._personas.load(session.persona_name)
            model = self._resolver.resolve(persona.params.model).model
            assistant_id = await self._gateway.create_assistant(
                name=f"Chat-{conversation_id}",
                instructions=session.instructions_override or persona.instructions,
                model=model,
            )
            session = await self._records.set_field(
                session, self._fields.assistant_id_field, assistant_id
            )
            session = session.model_copy(update={"assistant_id": assistant_id})
            logger.info(
                "Assistant created: conversation_id=%s assistant_id=%s",
                conversation_id, assistant_id,
            )

        if not session.thread_id:
            thread_id = await self._gateway.create_thread()
            session = await self._records.set_field(
                session, self._fields.thread_id_field, thread_id
            )
            session = session.model_copy(update={"thread_id": thread_id})
            logger.info(
                "Thread created: conversation_id=%s thread_id=%s",
                conversation_id, thread_id,
            )

        if not session.knowledge_store_id:
            store_id = await self._gateway.create_knowledge_store(name=f"vs-{conversation_id}")
            session = await self._records.set_field(
                session, self._fields.vector_store_id_field, store_id
            )
            session = session.model_copy(update={"knowledge_store_id": store_id})
            logger.info(
                "Knowledge store created: conversation_id=%s store_id=%s",
                conversation_id, store_id,
            )

        return session
