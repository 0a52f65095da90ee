"""
Conversation run engine.

Executes one turn against a session's thread:

    NEW -> (append user message) -> RUNNING -> COMPLETED | FAILED | EXPIRED

Polling is bounded by a deadline. When the deadline passes or the calling
task is cancelled, the run is cancelled upstream before the turn fails.

Dependencies: threadchat.boundary.llm, threadchat.application.services.persona_service,
    threadchat.core.model_resolver
System role: Turn execution state machine
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from threadchat.application.services.persona_service import PersonaService
from threadchat.boundary.llm.openai_gateway import OpenAIGateway
from threadchat.configs.conversation import RunSettings
from threadchat.core.exceptions import RunNotCompletedError, UpstreamUnavailableError
from threadchat.core.model_resolver import ModelResolution, ModelResolver
from threadchat.models.persona import PersonaConfig
from threadchat.models.run import RunParameters, RunState, RunStatus
from threadchat.models.session import ChatSession
from threadchat.observability.log_utils import preview_text

logger = logging.getLogger(__name__)

TIMED_OUT = "timed_out"


@dataclass(frozen=True)
class TurnPlan:
    """Persona and model chosen for a turn."""

    persona: PersonaConfig
    resolution: ModelResolution
    params: RunParameters


@dataclass(frozen=True)
class RunOutcome:
    """Completed run."""

    reply: str
    run_id: str
    plan: TurnPlan


class ConversationRunEngine:
    """Runs a turn and waits for the reply."""

    def __init__(
        self,
        gateway: OpenAIGateway,
        personas: PersonaService,
        resolver: ModelResolver,
        settings: RunSettings,
        no_reply_text: str = "(no reply)",
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize run engine.

        Args:
            gateway: Language-model service gateway
            personas: Persona store
            resolver: Model allow-list resolver
            settings: Polling policy
            no_reply_text: Placeholder when the run produced no text
            sleep: Awaitable sleep (injected by tests)
            clock: Monotonic clock (injected by tests)
        """
        self._gateway = gateway
        self._personas = personas
        self._resolver = resolver
        self._settings = settings
        self._no_reply_text = no_reply_text
        self._sleep = sleep
        self._clock = clock

    def plan(self, session: ChatSession, requested_model: str | None = None) -> TurnPlan:
        """
        Resolve persona, model and run parameters for a session.

        The requested model wins over the persona's model; the session's
        instruction override wins over the persona's instructions.
        """
        persona = self._personas.load(session.persona_name)
        label = requested_model if requested_model and requested_model.strip() else persona.params.model
        resolution = self._resolver.resolve(label)

        gen = persona.params
        params = RunParameters(
            assistant_id=session.assistant_id or "",
            model=resolution.model,
            instructions=session.instructions_override or persona.instructions,
            knowledge_store_id=session.knowledge_store_id,
            temperature=gen.temperature,
            top_p=gen.top_p,
            presence_penalty=gen.presence_penalty,
            frequency_penalty=gen.frequency_penalty,
            max_output_tokens=gen.max_output_tokens,
            response_format=gen.response_format,
            metadata=dict(gen.metadata),
        )
        return TurnPlan(persona=persona, resolution=resolution, params=params)

    async def run_turn(
        self,
        session: ChatSession,
        message: str | None,
        plan: TurnPlan,
    ) -> RunOutcome:
        """
        Append the user message (if any), run, wait, and fetch the reply.

        Args:
            session: Provisioned session
            message: User message, None for document-only turns
            plan: Output of plan()

        Returns:
            RunOutcome: Raw reply text and run id

        Raises:
            RunNotCompletedError: Terminal status other than completed, or deadline passed
            UpstreamUnavailableError: If a service call fails
        """
        thread_id = session.thread_id
        if message:
            await self._gateway.append_message(thread_id, "user", message)
            logger.info(
                "User message appended: thread_id=%s message=%s",
                thread_id, preview_text(message),
            )

        state = await self._gateway.start_run(thread_id, plan.params)
        logger.info(
            "Run started: thread_id=%s run_id=%s model=%s",
            thread_id, state.run_id, plan.params.model,
        )

        state = await self.wait_for_completion(thread_id, state)
        if state.status != RunStatus.COMPLETED.value:
            logger.warning(
                "Run ended without completion: run_id=%s status=%s error=%s",
                state.run_id, state.status, state.last_error,
            )
            raise RunNotCompletedError(state.status, run_id=state.run_id, last_error=state.last_error)

        reply = await self._latest_reply(thread_id)
        logger.info("Run completed: run_id=%s reply_length=%d", state.run_id, len(reply))
        return RunOutcome(reply=reply, run_id=state.run_id, plan=plan)

    async def wait_for_completion(self, thread_id: str, state: RunState) -> RunState:
        """
        Poll a run until it leaves queued/in_progress.

        Raises:
            RunNotCompletedError: With status "timed_out" when the deadline passes
        """
        settings = self._settings
        deadline = self._clock() + settings.deadline_seconds
        interval = settings.poll_interval_seconds
        max_interval = max(settings.max_poll_interval_seconds, settings.poll_interval_seconds)
        polls = 0

        try:
            while state.is_pending:
                remaining = deadline - self._clock()
                if remaining <= 0:
                    logger.warning(
                        "Run deadline reached: run_id=%s polls=%d status=%s",
                        state.run_id, polls, state.status,
                    )
                    await self._cancel_quietly(thread_id, state.run_id)
                    raise RunNotCompletedError(TIMED_OUT, run_id=state.run_id)
                await self._sleep(min(interval, remaining))
                state = await self._gateway.get_run(thread_id, state.run_id)
                polls += 1
                interval = min(interval * settings.backoff_multiplier, max_interval)
        except asyncio.CancelledError:
            logger.warning("Turn cancelled while polling: run_id=%s", state.run_id)
            await asyncio.shield(self._cancel_quietly(thread_id, state.run_id))
            raise

        logger.debug("Run left pending states: run_id=%s status=%s polls=%d", state.run_id, state.status, polls)
        return state

    async def _latest_reply(self, thread_id: str) -> str:
        messages = await self._gateway.list_recent_messages(thread_id, limit=1)
        if messages and messages[0].role == "assistant" and messages[0].text.strip():
            return messages[0].text
        return self._no_reply_text

    async def _cancel_quietly(self, thread_id: str, run_id: str) -> None:
        try:
            await self._gateway.cancel_run(thread_id, run_id)
        except UpstreamUnavailableError as e:
            logger.warning("Run cancellation failed: run_id=%s error=%s", run_id, e)
