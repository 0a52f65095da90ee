"""
Knowledge ingestion pipeline.

Downloads the first attachment of a referenced document and registers it
in the session's knowledge store. A document without attachments is not an
error: the result carries a notice for the turn log instead.

Dependencies: threadchat.boundary.kintone, threadchat.boundary.llm
System role: Document to knowledge store ingestion
"""

import logging
from dataclasses import dataclass
from enum import Enum

from threadchat.boundary.kintone.records import DocumentRepository
from threadchat.boundary.llm.openai_gateway import OpenAIGateway
from threadchat.core.exceptions import DocumentNotFoundError
from threadchat.models.session import ChatSession

logger = logging.getLogger(__name__)


class IngestionStatus(str, Enum):
    INGESTED = "ingested"
    NO_ATTACHMENT = "no_attachment"
    DUPLICATE = "duplicate"


@dataclass(frozen=True)
class IngestionResult:
    """Outcome of ingesting one document reference."""

    document_id: str
    status: IngestionStatus
    filename: str | None = None
    file_id: str | None = None
    notice: str | None = None

    @property
    def ingested(self) -> bool:
        return self.status is IngestionStatus.INGESTED


class KnowledgeIngestionPipeline:
    """Moves referenced documents into a session's knowledge store."""

    def __init__(
        self,
        documents: DocumentRepository,
        gateway: OpenAIGateway,
        skip_duplicates: bool = False,
    ) -> None:
        """
        Initialize pipeline.

        Args:
            documents: Document record repository
            gateway: Language-model service gateway
            skip_duplicates: Skip files whose name is already in the store
        """
        self._documents = documents
        self._gateway = gateway
        self._skip_duplicates = skip_duplicates

    async def ingest(self, session: ChatSession, document_id: str) -> IngestionResult:
        """
        Ingest a document into the session's knowledge store.

        Args:
            session: Provisioned session
            document_id: Document key

        Returns:
            IngestionResult: Ingested, or skipped with a notice

        Raises:
            DocumentNotFoundError: If no document record matches
            UpstreamUnavailableError: If download, upload or registration fails
        """
        document = await self._documents.find(document_id)
        if document is None:
            raise DocumentNotFoundError(document_id)

        if not document.attachments:
            logger.info("Document has no attachment, skipping ingestion: document_id=%s", document_id)
            return IngestionResult(
                document_id=document_id,
                status=IngestionStatus.NO_ATTACHMENT,
                notice=(
                    f"Document {document_id} has no attachment; "
                    "nothing was added to the knowledge store."
                ),
            )

        attachment = document.attachments[0]
        store_id = session.knowledge_store_id

        if self._skip_duplicates:
            existing = await self._gateway.list_store_filenames(store_id)
            if attachment.name in existing:
                logger.info(
                    "File already in knowledge store, skipping: document_id=%s filename=%s",
                    document_id, attachment.name,
                )
                return IngestionResult(
                    document_id=document_id,
                    status=IngestionStatus.DUPLICATE,
                    filename=attachment.name,
                    notice=f"{attachment.name} is already in the knowledge store.",
                )

        content = await self._documents.download(attachment)
        file_id = await self._gateway.upload_file(content, attachment.name)
        await self._gateway.register_file_to_store(store_id, file_id)

        logger.info(
            "Document ingested: document_id=%s filename=%s file_id=%s store_id=%s",
            document_id, attachment.name, file_id, store_id,
        )
        return IngestionResult(
            document_id=document_id,
            status=IngestionStatus.INGESTED,
            filename=attachment.name,
            file_id=file_id,
        )
