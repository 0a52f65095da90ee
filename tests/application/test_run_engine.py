"""
Test suite for ConversationRunEngine.

Covers the run state machine: completion, terminal failures, deadline,
cancellation and parameter planning.
"""

import asyncio

import pytest

from threadchat.application.services.run_engine import TIMED_OUT, ConversationRunEngine
from threadchat.configs.conversation import RunSettings
from threadchat.core.exceptions import RunNotCompletedError
from threadchat.models.run import RunState
from threadchat.models.session import ChatSession


class FakeClock:
    """Monotonic clock advanced only by the fake sleep."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def session() -> ChatSession:
    return ChatSession(
        conversation_id="C1",
        record_id="1",
        assistant_id="asst_1",
        thread_id="thread_1",
        knowledge_store_id="vs_1",
    )


class TestRunTurn:
    """Tests for run_turn()."""

    @pytest.mark.asyncio
    async def test_completed_run_returns_latest_reply(self, engine, gateway, session) -> None:
        outcome = await engine.run_turn(session, "hello", engine.plan(session))

        assert outcome.reply == "Hello! How can I help you today?"
        assert outcome.run_id == "run_1"
        assert gateway.messages["thread_1"] == [("user", "hello")]
        assert gateway.get_run_calls == 2

    @pytest.mark.asyncio
    async def test_no_message_skips_append(self, engine, gateway, session) -> None:
        await engine.run_turn(session, None, engine.plan(session))

        assert gateway.messages["thread_1"] == []
        assert len(gateway.runs) == 1

    @pytest.mark.asyncio
    async def test_empty_reply_uses_placeholder(self, engine, gateway, session) -> None:
        gateway.reply_text = ""

        outcome = await engine.run_turn(session, "hello", engine.plan(session))

        assert outcome.reply == "(no reply)"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("terminal", ["failed", "expired", "cancelled", "incomplete"])
    async def test_terminal_status_raises(self, engine, gateway, session, terminal) -> None:
        gateway.run_script = ["queued", terminal]

        with pytest.raises(RunNotCompletedError) as exc_info:
            await engine.run_turn(session, "hello", engine.plan(session))

        assert exc_info.value.status == terminal
        assert exc_info.value.run_id == "run_1"

    @pytest.mark.asyncio
    async def test_failed_run_carries_last_error(self, engine, gateway, session) -> None:
        gateway.run_script = ["queued", "failed"]

        with pytest.raises(RunNotCompletedError) as exc_info:
            await engine.run_turn(session, "hello", engine.plan(session))

        assert exc_info.value.last_error == "Rate limit exceeded"
        assert gateway.cancelled == []


class TestWaitForCompletion:
    """Tests for bounded polling."""

    @pytest.mark.asyncio
    async def test_deadline_cancels_run(self, gateway, persona_service, resolver) -> None:
        clock = FakeClock()
        settings = RunSettings(
            poll_interval_seconds=1.0,
            backoff_multiplier=2.0,
            max_poll_interval_seconds=4.0,
            deadline_seconds=10.0,
        )
        engine = ConversationRunEngine(
            gateway, persona_service, resolver, settings, sleep=clock.sleep, clock=clock
        )
        gateway._script = ["in_progress"]

        with pytest.raises(RunNotCompletedError) as exc_info:
            await engine.wait_for_completion("thread_1", RunState(run_id="run_9", status="queued"))

        assert exc_info.value.status == TIMED_OUT
        assert gateway.cancelled == ["run_9"]
        assert clock.sleeps == [1.0, 2.0, 4.0, 3.0]

    @pytest.mark.asyncio
    async def test_fixed_interval_without_backoff(self, gateway, persona_service, resolver) -> None:
        clock = FakeClock()
        settings = RunSettings(poll_interval_seconds=1.2, deadline_seconds=60.0)
        engine = ConversationRunEngine(
            gateway, persona_service, resolver, settings, sleep=clock.sleep, clock=clock
        )
        gateway._script = ["in_progress", "in_progress", "completed"]

        state = await engine.wait_for_completion("thread_1", RunState(run_id="run_1", status="queued"))

        assert state.status == "completed"
        assert clock.sleeps == [1.2, 1.2, 1.2]

    @pytest.mark.asyncio
    async def test_cancellation_cancels_run_upstream(self, gateway, persona_service, resolver) -> None:
        settings = RunSettings(poll_interval_seconds=30.0, deadline_seconds=60.0)
        engine = ConversationRunEngine(gateway, persona_service, resolver, settings)
        gateway._script = ["in_progress"]

        task = asyncio.create_task(
            engine.wait_for_completion("thread_1", RunState(run_id="run_3", status="queued"))
        )
        await asyncio.sleep(0)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert gateway.cancelled == ["run_3"]


class TestPlan:
    """Tests for plan()."""

    def test_persona_params_flow_into_run(self, engine, persona_service, session) -> None:
        persona_service.update("analyst", "Be precise.", {"model": "gpt-4o", "temperature": 0.1})
        session = session.model_copy(update={"persona_name": "analyst"})

        plan = engine.plan(session)

        assert plan.params.model == "gpt-4o"
        assert plan.params.instructions == "Be precise."
        assert plan.params.temperature == 0.1
        assert plan.params.knowledge_store_id == "vs_1"
        assert not plan.resolution.substituted

    def test_requested_model_wins_over_persona(self, engine, persona_service, session) -> None:
        persona_service.update("analyst", "Be precise.", {"model": "gpt-4o"})
        session = session.model_copy(update={"persona_name": "analyst"})

        plan = engine.plan(session, "gpt-4o-mini")

        assert plan.params.model == "gpt-4o-mini"

    def test_instruction_override_wins(self, engine, session) -> None:
        session = session.model_copy(update={"instructions_override": "Only answer in English."})

        plan = engine.plan(session)

        assert plan.params.instructions == "Only answer in English."

    def test_unknown_requested_model_is_substituted(self, engine, session) -> None:
        plan = engine.plan(session, "gpt-5")

        assert plan.params.model == "gpt-4o-mini"
        assert plan.resolution.substituted
        assert "gpt-5" in plan.resolution.warning
