"""
Dependency injection container.

Factory functions for FastAPI dependencies. Long-lived clients (record store
HTTP client, OpenAI gateway, session locks) live in one process-wide cache;
services are assembled per request from them.

Dependencies: threadchat.configs, threadchat.application, threadchat.boundary
System role: DI container for service injection
"""

from threadchat.application.services import (
    ChatLogWriter,
    ConversationRunEngine,
    KnowledgeIngestionPipeline,
    PersonaService,
    SessionRegistry,
    TurnService,
)
from threadchat.boundary.kintone import ChatRecordRepository, DocumentRepository, KintoneClient
from threadchat.boundary.llm import OpenAIGateway
from threadchat.boundary.storage import JsonFileStore
from threadchat.configs import Settings, get_settings
from threadchat.core.model_resolver import ModelResolver
from threadchat.core.reply_renderer import ReplyRenderer
from threadchat.core.session_locks import SessionLockRegistry


class ServiceCache:
    """Container for cached service instances."""

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings
        self._kintone_client = None
        self._gateway = None
        self._resolver = None
        self._persona_service = None
        self._locks = SessionLockRegistry()

    @property
    def settings(self) -> Settings:
        if self._settings is None:
            self._settings = get_settings()
        return self._settings

    @property
    def kintone_client(self) -> KintoneClient:
        """Get cached Kintone client."""
        if self._kintone_client is None:
            kintone = self.settings.kintone
            self._kintone_client = KintoneClient(
                base_url=kintone.base_url,
                timeout_seconds=kintone.timeout_seconds,
            )
        return self._kintone_client

    @property
    def gateway(self) -> OpenAIGateway:
        """Get cached OpenAI gateway."""
        if self._gateway is None:
            openai_settings = self.settings.openai
            self._gateway = OpenAIGateway.from_settings(
                api_key=openai_settings.api_key,
                base_url=openai_settings.base_url,
                timeout_seconds=openai_settings.timeout_seconds,
                max_retries=openai_settings.max_retries,
            )
        return self._gateway

    @property
    def resolver(self) -> ModelResolver:
        """Get cached model resolver."""
        if self._resolver is None:
            models = self.settings.models
            self._resolver = ModelResolver(models.allowed_models, models.default)
        return self._resolver

    @property
    def persona_service(self) -> PersonaService:
        """Get cached persona service."""
        if self._persona_service is None:
            personas = self.settings.personas
            self._persona_service = PersonaService(
                store=JsonFileStore(personas.directory),
                resolver=self.resolver,
                default_name=personas.default_name,
            )
        return self._persona_service

    @property
    def locks(self) -> SessionLockRegistry:
        return self._locks

    async def aclose(self) -> None:
        """Close network clients and clear cached instances."""
        if self._kintone_client is not None:
            await self._kintone_client.aclose()
        if self._gateway is not None:
            await self._gateway.aclose()
        self._kintone_client = None
        self._gateway = None
        self._resolver = None
        self._persona_service = None


# Global service cache
_service_cache = ServiceCache()


def get_service_cache() -> ServiceCache:
    """Get service cache singleton."""
    return _service_cache



def get_persona_service() -> PersonaService:
    """
    Get persona service instance.

    Returns:
        PersonaService: Persona store over the configured file area
    """
    return get_service_cache().persona_service


def get_turn_service() -> TurnService:
    """
    Get turn service instance wired to the shared clients.

    Returns:
        TurnService: Session orchestrator
    """
    cache = get_service_cache()
    settings = cache.settings
    records = ChatRecordRepository(cache.kintone_client, settings.kintone)
    documents = DocumentRepository(cache.kintone_client, settings.kintone)

    registry = SessionRegistry(
        records=records,
        gateway=cache.gateway,
        personas=cache.persona_service,
        resolver=cache.resolver,
        fields=settings.kintone,
    )
    ingestion = KnowledgeIngestionPipeline(
        documents=documents,
        gateway=cache.gateway,
        skip_duplicates=settings.ingestion.skip_duplicates,
    )
    engine = ConversationRunEngine(
        gateway=cache.gateway,
        personas=cache.persona_service,
        resolver=cache.resolver,
        settings=settings.run,
        no_reply_text=settings.reply.no_reply_text,
    )
    renderer = ReplyRenderer(
        closing_prompt=settings.reply.closing_prompt,
        append_closing_prompt=settings.reply.append_closing_prompt,
    )
    return TurnService(
        registry=registry,
        ingestion=ingestion,
        engine=engine,
        log_writer=ChatLogWriter(records, renderer),
        locks=cache.locks,
        request_timeout_seconds=settings.run.request_timeout_seconds,
    )
