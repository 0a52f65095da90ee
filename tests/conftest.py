"""
Shared test fixtures and configuration for entire test suite.

Provides: in-memory Kintone client, scripted OpenAI gateway, wired services
Dependencies: pytest
System role: Test infrastructure and fixture management
"""

import asyncio
import copy
from collections import defaultdict
from typing import Any

import pytest

from threadchat.application.services import (
    ChatLogWriter,
    ConversationRunEngine,
    KnowledgeIngestionPipeline,
    PersonaService,
    SessionRegistry,
    TurnService,
)
from threadchat.boundary.kintone.records import ChatRecordRepository, DocumentRepository
from threadchat.boundary.llm.openai_gateway import ThreadMessage
from threadchat.boundary.storage.json_store import JsonFileStore
from threadchat.configs.conversation import RunSettings
from threadchat.configs.kintone import KintoneSettings
from threadchat.core.exceptions import ConcurrentUpdateError, UpstreamUnavailableError
from threadchat.core.model_resolver import ModelResolver
from threadchat.core.reply_renderer import ReplyRenderer
from threadchat.core.session_locks import SessionLockRegistry
from threadchat.models.run import RunParameters, RunState

CHAT_APP = "10"
DOC_APP = "20"


class FakeKintoneClient:
    """In-memory stand-in for KintoneClient with revision checks."""

    def __init__(self) -> None:
        self.apps: dict[str, dict[str, dict[str, Any]]] = defaultdict(dict)
        self.files: dict[str, bytes] = {}
        self.update_calls: list[dict[str, Any]] = []
        self.download_calls: list[str] = []
        self._next_id = 0
        self._next_row_id = 100

    def add_record(self, app_id: str, **fields: Any) -> str:
        self._next_id += 1
        record_id = str(self._next_id)
        record = {"$id": {"type": "__ID__", "value": record_id}, "$revision": {"type": "__REVISION__", "value": "1"}}
        for code, value in fields.items():
            record[code] = {"type": "SINGLE_LINE_TEXT", "value": value}
        self.apps[app_id][record_id] = record
        return record_id

    def record(self, app_id: str, record_id: str) -> dict[str, Any]:
        return self.apps[app_id][record_id]

    async def get_matching(self, app_id: str, token: str, conditions: dict[str, str]) -> dict[str, Any] | None:
        await asyncio.sleep(0)
        for record in self.apps[app_id].values():
            if all(str((record.get(f) or {}).get("value")) == str(v) for f, v in conditions.items()):
                return copy.deepcopy(record)
        return None

    async def update(
        self,
        app_id: str,
        token: str,
        record_id: str,
        fields: dict[str, Any],
        revision: str | None = None,
    ) -> str:
        await asyncio.sleep(0)
        record = self.apps[app_id][record_id]
        current = record["$revision"]["value"]
        if revision is not None and revision != current:
            raise ConcurrentUpdateError("Record was modified by another request")
        self.update_calls.append({"app": app_id, "id": record_id, "record": copy.deepcopy(fields)})
        for code, payload in fields.items():
            value = copy.deepcopy(payload["value"])
            if isinstance(value, list):
                for row in value:
                    if "id" not in row:
                        self._next_row_id += 1
                        row["id"] = str(self._next_row_id)
            record[code] = {"type": "SUBTABLE" if isinstance(value, list) else "SINGLE_LINE_TEXT", "value": value}
        new_revision = str(int(current) + 1)
        record["$revision"]["value"] = new_revision
        return new_revision

    async def download_file(self, file_key: str, token: str) -> bytes:
        self.download_calls.append(file_key)
        return self.files[file_key]


class FakeGateway:
    """Scripted stand-in for OpenAIGateway."""

    def __init__(self) -> None:
        self.assistants: list[dict[str, Any]] = []
        self.threads: list[str] = []
        self.stores: list[str] = []
        self.uploads: list[tuple[str, bytes]] = []
        self.registrations: list[tuple[str, str]] = []
        self.messages: dict[str, list[tuple[str, str]]] = defaultdict(list)
        self.runs: list[tuple[str, RunParameters]] = []
        self.cancelled: list[str] = []
        self.get_run_calls = 0
        self.store_filenames: dict[str, set[str]] = defaultdict(set)
        self.run_script: list[str] = ["queued", "in_progress", "completed"]
        self.reply_text = "Hello! How can I help you today?"
        self.fail_on: set[str] = set()
        self._script: list[str] = []

    def _maybe_fail(self, operation: str) -> None:
        if operation in self.fail_on:
            raise UpstreamUnavailableError(f"OpenAI {operation} failed", service="openai", operation=operation)

    async def create_assistant(self, name: str, instructions: str, model: str) -> str:
        await asyncio.sleep(0)
        self._maybe_fail("create_assistant")
        assistant_id = f"asst_{len(self.assistants) + 1}"
        self.assistants.append({"id": assistant_id, "name": name, "instructions": instructions, "model": model})
        return assistant_id

    async def create_thread(self) -> str:
        await asyncio.sleep(0)
        self._maybe_fail("create_thread")
        thread_id = f"thread_{len(self.threads) + 1}"
        self.threads.append(thread_id)
        return thread_id

    async def create_knowledge_store(self, name: str) -> str:
        await asyncio.sleep(0)
        self._maybe_fail("create_knowledge_store")
        store_id = f"vs_{len(self.stores) + 1}"
        self.stores.append(store_id)
        return store_id

    async def upload_file(self, content: bytes, filename: str) -> str:
        self._maybe_fail("upload_file")
        self.uploads.append((filename, content))
        return f"file_{len(self.uploads)}"

    async def register_file_to_store(self, store_id: str, file_id: str) -> str:
        self._maybe_fail("register_file_to_store")
        self.registrations.append((store_id, file_id))
        filename = self.uploads[int(file_id.split("_")[1]) - 1][0]
        self.store_filenames[store_id].add(filename)
        return "completed"

    async def list_store_filenames(self, store_id: str) -> set[str]:
        return set(self.store_filenames[store_id])

    async def append_message(self, thread_id: str, role: str, content: str) -> str:
        self.messages[thread_id].append((role, content))
        return f"msg_{len(self.messages[thread_id])}"

    async def start_run(self, thread_id: str, params: RunParameters) -> RunState:
        self._maybe_fail("start_run")
        self.runs.append((thread_id, params))
        self._script = list(self.run_script)
        return RunState(run_id=f"run_{len(self.runs)}", status=self._script.pop(0))

    async def get_run(self, thread_id: str, run_id: str) -> RunState:
        self.get_run_calls += 1
        status = self._script.pop(0) if len(self._script) > 1 else self._script[0]
        last_error = "Rate limit exceeded" if status == "failed" else None
        return RunState(run_id=run_id, status=status, last_error=last_error)

    async def cancel_run(self, thread_id: str, run_id: str) -> RunState:
        self.cancelled.append(run_id)
        return RunState(run_id=run_id, status="cancelling")

    async def list_recent_messages(self, thread_id: str, limit: int = 1) -> list[ThreadMessage]:
        if not self.reply_text:
            return []
        return [ThreadMessage(role="assistant", text=self.reply_text)]


@pytest.fixture
def kintone_settings() -> KintoneSettings:
    """Kintone settings pointing at the fake apps."""
    return KintoneSettings(
        domain="test.cybozu.com",
        chat_app_id=CHAT_APP,
        chat_token="chat-token",
        document_app_id=DOC_APP,
        document_token="doc-token",
        conversation_field="conversation_key",
    )


@pytest.fixture
def run_settings() -> RunSettings:
    """Polling policy without real waiting."""
    return RunSettings(
        poll_interval_seconds=0.0,
        max_poll_interval_seconds=0.0,
        deadline_seconds=5.0,
        request_timeout_seconds=10.0,
    )


@pytest.fixture
def kintone() -> FakeKintoneClient:
    return FakeKintoneClient()


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def resolver() -> ModelResolver:
    return ModelResolver(("gpt-4o", "gpt-4o-mini"), "gpt-4o-mini")


@pytest.fixture
def persona_service(tmp_path, resolver: ModelResolver) -> PersonaService:
    return PersonaService(JsonFileStore(tmp_path / "personas"), resolver)


@pytest.fixture
def records(kintone: FakeKintoneClient, kintone_settings: KintoneSettings) -> ChatRecordRepository:
    return ChatRecordRepository(kintone, kintone_settings)


@pytest.fixture
def documents(kintone: FakeKintoneClient, kintone_settings: KintoneSettings) -> DocumentRepository:
    return DocumentRepository(kintone, kintone_settings)


@pytest.fixture
def registry(
    records: ChatRecordRepository,
    gateway: FakeGateway,
    persona_service: PersonaService,
    resolver: ModelResolver,
    kintone_settings: KintoneSettings,
) -> SessionRegistry:
    return SessionRegistry(records, gateway, persona_service, resolver, kintone_settings)


@pytest.fixture
def engine(
    gateway: FakeGateway,
    persona_service: PersonaService,
    resolver: ModelResolver,
    run_settings: RunSettings,
) -> ConversationRunEngine:
    return ConversationRunEngine(gateway, persona_service, resolver, run_settings)


@pytest.fixture
def turn_service(
    registry: SessionRegistry,
    documents: DocumentRepository,
    gateway: FakeGateway,
    engine: ConversationRunEngine,
    records: ChatRecordRepository,
    run_settings: RunSettings,
) -> TurnService:
    return TurnService(
        registry=registry,
        ingestion=KnowledgeIngestionPipeline(documents, gateway),
        engine=engine,
        log_writer=ChatLogWriter(records, ReplyRenderer()),
        locks=SessionLockRegistry(),
        request_timeout_seconds=run_settings.request_timeout_seconds,
    )


@pytest.fixture
def chat_record(kintone: FakeKintoneClient) -> str:
    """A brand-new chat record for conversation C1; returns its record id."""
    return kintone.add_record(CHAT_APP, conversation_key="C1")
