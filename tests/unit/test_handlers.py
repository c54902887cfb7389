"""Unit tests for the ask, plan and agent mode handlers."""

import json
from unittest.mock import AsyncMock

import pytest

from taskpilot.handlers import AgentHandler, AskHandler, PlanHandler
from taskpilot.schema import ExecutionStatus
from taskpilot.utils.error_handler import CompletionError, InputValidationError

THOUGHT = json.dumps({"reasoning": "Compute the sum", "considerations": ["precision"], "assumptions": []})
PLAN = json.dumps({
    "steps": [
        {"order": 1, "description": "Add numbers", "tool": "calculator", "parameters": {"expression": "19 + 23"}},
        {"order": 2, "description": "Report the answer", "dependencies": [1]},
    ],
    "confidence": 0.9,
})
PLAN_WITH_BAD_PARAMS = json.dumps({
    "steps": [
        {"order": 1, "description": "Add numbers", "tool": "calculator", "parameters": {"expr": "1+1"}},
        {"order": 2, "description": "Search", "tool": "web_search"},
    ],
})
REFLECTION = json.dumps({"success": True, "analysis": "Sum computed", "shouldIterate": False})


class TestInputValidation:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("user_id,query", [("", "hello"), ("u1", ""), ("u1", "   "), (None, "hello")])
    async def test_rejected_before_any_completion(self, kernel, settings, event_recorder, user_id, query):
        provider = AsyncMock()
        handler = AskHandler(kernel, provider, settings)

        with pytest.raises(InputValidationError):
            await handler.handle(user_id=user_id, query=query, session_id="s1")

        provider.complete.assert_not_awaited()
        assert event_recorder.topics == ["ask.error"]
        payload = event_recorder.payloads("ask.error")[0]
        assert payload["userId"] == user_id
        assert payload["error"]

    @pytest.mark.asyncio
    async def test_overlong_query(self, kernel, settings, event_recorder):
        settings.orchestration.max_query_length = 10
        handler = PlanHandler(kernel, AsyncMock(), settings)

        with pytest.raises(InputValidationError, match="maximum length"):
            await handler.handle(user_id="u1", query="x" * 11, session_id="s1")

        assert event_recorder.topics == ["plan.error"]
        assert event_recorder.payloads("plan.error")[0]["query"] == "x" * 11


class TestAskHandler:
    @pytest.mark.asyncio
    async def test_answers_and_saves_exchange(self, kernel, settings, scripted_provider, event_recorder):
        handler = AskHandler(kernel, scripted_provider("Paris."), settings)

        response = await handler.handle(user_id="u1", query="Capital of France?", session_id="s1")

        assert response.response == "Paris."
        assert response.session_id == "s1"
        assert event_recorder.topics == ["ask.query.received", "ask.response.generated", "ask.response.sent"]
        messages = (await kernel.context.get_context("s1")).messages
        assert [(m.role, m.content) for m in messages] == [("user", "Capital of France?"), ("assistant", "Paris.")]

    @pytest.mark.asyncio
    async def test_history_is_sent_with_the_query(self, kernel, settings, scripted_provider):
        provider = scripted_provider("first", "second")
        handler = AskHandler(kernel, provider, settings)
        spy = AsyncMock(wraps=provider.complete)
        provider.complete = spy

        await handler.handle(user_id="u1", query="one", session_id="s1")
        await handler.handle(user_id="u1", query="two", session_id="s1")

        history = spy.await_args.args[1]
        assert [m.content for m in history] == ["one", "first"]

    @pytest.mark.asyncio
    async def test_generates_session_id(self, kernel, settings, scripted_provider):
        response = await AskHandler(kernel, scripted_provider("ok"), settings).handle(user_id="u1", query="hi")
        assert response.session_id

    @pytest.mark.asyncio
    async def test_completion_failure_emits_error(self, kernel, settings, event_recorder):
        provider = AsyncMock()
        provider.complete.side_effect = CompletionError("Completion failed: 429", user_message="Rate limited")
        handler = AskHandler(kernel, provider, settings)

        with pytest.raises(CompletionError):
            await handler.handle(user_id="u1", query="hi", session_id="s1")

        assert event_recorder.topics == ["ask.query.received", "ask.error"]
        assert event_recorder.payloads("ask.error")[0]["error"] == "Rate limited"
        assert (await kernel.context.get_context("s1")).messages == []


class TestPlanHandler:
    @pytest.mark.asyncio
    async def test_plans_without_executing(self, kernel, settings, scripted_provider, event_recorder):
        handler = PlanHandler(kernel, scripted_provider(THOUGHT, PLAN), settings)

        response = await handler.handle(user_id="u1", query="What is 19 + 23?", session_id="s1")

        assert response.thought.reasoning == "Compute the sum"
        assert [s.order for s in response.plan.steps] == [1, 2]
        assert response.plan.required_tools == ["calculator"]
        assert response.warnings == []
        assert event_recorder.topics == [
            "plan.query.received",
            "plan.tools.discovered",
            "plan.thought.completed",
            "plan.plan.generated",
            "plan.completed",
        ]
        assert not any(topic.startswith("plan.executor") for topic in event_recorder.topics)
        saved = (await kernel.context.get_context("s1")).messages[-1]
        assert json.loads(saved.content)["id"] == response.plan.id

    @pytest.mark.asyncio
    async def test_reports_validation_warnings(self, kernel, settings, scripted_provider, event_recorder):
        handler = PlanHandler(kernel, scripted_provider(THOUGHT, PLAN_WITH_BAD_PARAMS), settings)

        response = await handler.handle(user_id="u1", query="Add and search", session_id="s1")

        assert len(response.warnings) == 2
        assert any("web_search" in warning for warning in response.warnings)
        assert any(warning.startswith("Step 1 (calculator)") for warning in response.warnings)
        assert event_recorder.payloads("plan.validation.warnings")[0]["warnings"] == response.warnings

    @pytest.mark.asyncio
    async def test_tool_discovery_failure_continues_without_tools(
        self, kernel, settings, scripted_provider, event_recorder,
    ):
        kernel.tools = AsyncMock()
        kernel.tools.discover.side_effect = ConnectionError("registry down")
        handler = PlanHandler(kernel, scripted_provider(THOUGHT, '{"steps": [{"description": "Think"}]}'), settings)

        response = await handler.handle(user_id="u1", query="Plan my week", session_id="s1")

        assert event_recorder.payloads("plan.tools.discovered")[0] == {"count": 0, "tools": []}
        assert response.plan.steps[0].is_manual


class TestAgentHandler:
    @pytest.mark.asyncio
    async def test_executes_plan_and_reflects(self, kernel, settings, scripted_provider, event_recorder):
        handler = AgentHandler(kernel, scripted_provider(THOUGHT, PLAN, REFLECTION), settings)

        response = await handler.handle(user_id="u1", query="What is 19 + 23?", session_id="s1")

        assert response.iterations == 1
        assert response.execution.status == ExecutionStatus.COMPLETED
        assert response.execution.results["steps"][0]["result"] == {"success": True, "data": "42"}
        assert response.reflection.success is True
        assert event_recorder.topics == [
            "agent.query.received",
            "agent.thought.completed",
            "agent.plan.completed",
            "agent.executor.started",
            "agent.executor.step.progress",
            "agent.executor.step.progress",
            "agent.executor.completed",
            "agent.reflection.completed",
            "agent.execution.completed",
        ]

        memories = await kernel.memory.recall("s1")
        assert [(m["type"], m["iteration"], m["success"]) for m in memories] == [("reflection", 1, True)]
        saved = (await kernel.context.get_context("s1")).messages[-1]
        assert json.loads(saved.content)["status"] == "completed"

    @pytest.mark.asyncio
    async def test_iterations_bounded_by_settings(self, kernel, settings, scripted_provider):
        settings.orchestration.max_iterations = 2
        retry = json.dumps({"success": False, "analysis": "bad", "shouldIterate": True})
        bad_plan = json.dumps({"steps": [{"order": 1, "description": "Add", "tool": "calculator",
                                          "parameters": {"expression": "1 +"}}]})
        handler = AgentHandler(kernel, scripted_provider(THOUGHT, bad_plan, retry, retry), settings)

        response = await handler.handle(user_id="u1", query="Add", session_id="s1")

        assert response.iterations == 2
        assert response.execution.status == ExecutionStatus.FAILED
        assert response.reflection.success is False
        assert len(await kernel.memory.recall("s1")) == 2
