"""Service orchestrators."""

from .knowledge_ingestion import IngestionResult, IngestionStatus, KnowledgeIngestionPipeline
from .log_writer import ChatLogWriter
from .persona_service import PersonaService
from .run_engine import ConversationRunEngine
from .session_registry import SessionRegistry
from .turn_service import TurnService

__all__ = [
    "ChatLogWriter",
    "ConversationRunEngine",
    "IngestionResult",
    "IngestionStatus",
    "KnowledgeIngestionPipeline",
    "PersonaService",
    "SessionRegistry",
    "TurnService",
]
