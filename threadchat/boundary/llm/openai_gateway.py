"""
OpenAI Assistants gateway.

Single fixed interface to the assistants, threads, runs, files and vector
store endpoints of the openai SDK. Every SDK failure is translated into
the relay's upstream errors.

Dependencies: openai, threadchat.core.exceptions
System role: Language-model service boundary
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

import openai
from openai import AsyncOpenAI

from threadchat.core.exceptions import UpstreamTimeoutError, UpstreamUnavailableError
from threadchat.models.run import RunParameters, RunState

logger = logging.getLogger(__name__)

T = TypeVar("T")

FILE_SEARCH_TOOL = {"type": "file_search"}
_STRUCTURED_FORMATS = {"text", "json_object"}


@dataclass(frozen=True)
class ThreadMessage:
    """Text content of one thread message."""

    role: str
    text: str


class OpenAIGateway:
    """Async gateway over the OpenAI Assistants API."""

    def __init__(self, client: AsyncOpenAI) -> None:
        """
        Initialize gateway.

        Args:
            client: Configured AsyncOpenAI client
        """
        self._client = client
        self._penalty_notice_logged = False

    @classmethod
    def from_settings(
        cls,
        api_key: str | None,
        base_url: str | None = None,
        timeout_seconds: float = 60.0,
        max_retries: int = 2,
    ) -> "OpenAIGateway":
        """Build a gateway with its own AsyncOpenAI client."""
        if not api_key:
            raise ValueError("OPENAI_API_KEY is required")
        client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout_seconds,
            max_retries=max_retries,
        )
        return cls(client)

    async def aclose(self) -> None:
        await self._client.close()

    # ------------------------------------------------------------------
    # Provisioning
    # ------------------------------------------------------------------

    async def create_assistant(self, name: str, instructions: str, model: str) -> str:
        assistant = await self._call(
            "create_assistant",
            self._client.beta.assistants.create,
            name=name,
            instructions=instructions,
            model=model,
            tools=[FILE_SEARCH_TOOL],
        )
        return assistant.id

    async def create_thread(self) -> str:
        thread = await self._call("create_thread", self._client.beta.threads.create)
        return thread.id

    async def create_knowledge_store(self, name: str) -> str:
        store = await self._call(
            "create_knowledge_store",
            self._client.vector_stores.create,
            name=name,
        )
        return store.id

    # ------------------------------------------------------------------
    # Knowledge ingestion
    # ------------------------------------------------------------------

    async def upload_file(self, content: bytes, filename: str) -> str:
        uploaded = await self._call(
            "upload_file",
            self._client.files.create,
            file=(filename, content),
            purpose="assistants",
        )
        return uploaded.id

    async def register_file_to_store(self, store_id: str, file_id: str) -> str:
        """
        Attach an uploaded file to a vector store and wait for indexing.

        Returns:
            str: Final status ("completed")

        Raises:
            UpstreamUnavailableError: When indexing ends in any other status
        """
        store_file = await self._call(
            "register_file_to_store",
            self._client.vector_stores.files.create_and_poll,
            vector_store_id=store_id,
            file_id=file_id,
        )
        if store_file.status != "completed":
            last_error = getattr(store_file.last_error, "message", None)
            raise UpstreamUnavailableError(
                f"File indexing ended with status {store_file.status}",
                service="openai",
                operation="register_file_to_store",
                details={"file_id": file_id, "store_id": store_id, "last_error": last_error},
            )
        return store_file.status

    async def list_store_filenames(self, store_id: str) -> set[str]:
        """Filenames of every file registered to a vector store."""
        names: set[str] = set()
        try:
            async for store_file in self._client.vector_stores.files.list(vector_store_id=store_id):
                file_object = await self._client.files.retrieve(store_file.id)
                names.add(file_object.filename)
        except openai.OpenAIError as e:
            raise _translate("list_store_files", e) from e
        return names

    # ------------------------------------------------------------------
    # Threads and runs
    # ------------------------------------------------------------------

    async def append_message(self, thread_id: str, role: str, content: str) -> str:
        message = await self._call(
            "append_message",
            self._client.beta.threads.messages.create,
            thread_id,
            role=role,
            content=content,
        )
        return message.id

    async def start_run(self, thread_id: str, params: RunParameters) -> RunState:
        """
        Bind the knowledge store to the thread and start a run.

        Penalties are not part of the runs endpoint signature and are never
        sent; the first run that carries non-zero values logs a warning.
        """
        if params.knowledge_store_id:
            await self._call(
                "bind_knowledge_store",
                self._client.beta.threads.update,
                thread_id,
                tool_resources={"file_search": {"vector_store_ids": [params.knowledge_store_id]}},
            )

        kwargs: dict[str, Any] = {
            "assistant_id": params.assistant_id,
            "model": params.model,
            "instructions": params.instructions,
            "tools": [FILE_SEARCH_TOOL],
        }
        if params.temperature is not None:
            kwargs["temperature"] = params.temperature
        if params.top_p is not None:
            kwargs["top_p"] = params.top_p
        if params.max_output_tokens is not None:
            kwargs["max_completion_tokens"] = params.max_output_tokens
        if params.metadata:
            kwargs["metadata"] = params.metadata
        if params.response_format in _STRUCTURED_FORMATS:
            kwargs["response_format"] = {"type": params.response_format}

        if (params.presence_penalty or params.frequency_penalty) and not self._penalty_notice_logged:
            logger.warning(
                "Runs do not accept presence or frequency penalties; "
                "stored persona penalties are not sent (presence=%s frequency=%s)",
                params.presence_penalty, params.frequency_penalty,
            )
            self._penalty_notice_logged = True

        run = await self._call(
            "start_run",
            self._client.beta.threads.runs.create,
            thread_id=thread_id,
            **kwargs,
        )
        return _run_state(run)

    async def get_run(self, thread_id: str, run_id: str) -> RunState:
        run = await self._call(
            "get_run",
            self._client.beta.threads.runs.retrieve,
            run_id,
            thread_id=thread_id,
        )
        return _run_state(run)

    async def cancel_run(self, thread_id: str, run_id: str) -> RunState:
        run = await self._call(
            "cancel_run",
            self._client.beta.threads.runs.cancel,
            run_id,
            thread_id=thread_id,
        )
        return _run_state(run)

    async def list_recent_messages(self, thread_id: str, limit: int = 1) -> list[ThreadMessage]:
        """Most recent messages first."""
        page = await self._call(
            "list_messages",
            self._client.beta.threads.messages.list,
            thread_id,
            order="desc",
            limit=limit,
        )
        messages = []
        for message in page.data:
            parts = [
                block.text.value
                for block in message.content
                if getattr(block, "type", None) == "text"
            ]
            messages.append(ThreadMessage(role=message.role, text="\n\n".join(parts)))
        return messages

    async def _call(self, operation: str, func: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T:
        try:
            return await func(*args, **kwargs)
        except openai.OpenAIError as e:
            raise _translate(operation, e) from e


def _translate(operation: str, error: openai.OpenAIError) -> UpstreamUnavailableError:
    logger.error("OpenAI %s failed: %s: %s", operation, type(error).__name__, error)
    if isinstance(error, openai.APITimeoutError):
        return UpstreamTimeoutError(
            f"OpenAI {operation} timed out",
            service="openai",
            operation=operation,
        )
    details: dict[str, Any] = {}
    status = getattr(error, "status_code", None)
    if status is not None:
        details["status"] = status
    return UpstreamUnavailableError(
        f"OpenAI {operation} failed: {error}",
        service="openai",
        operation=operation,
        details=details,
    )


def _run_state(run: Any) -> RunState:
    last_error = getattr(run, "last_error", None)
    return RunState(
        run_id=run.id,
        status=str(run.status),
        last_error=getattr(last_error, "message", None) if last_error else None,
    )
