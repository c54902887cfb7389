"""Unit tests for application assembly and the command-line front end."""

import json

import pytest

from taskpilot.cli import parse_args, render_result, run_once
from taskpilot.runtime.app import build_application
from taskpilot.schema import AskResponse, ModeSelection

THOUGHT = json.dumps({"reasoning": "Need the time"})
PLAN = json.dumps({"steps": [{"order": 1, "description": "Read clock", "tool": "now"}]})
REFLECTION = json.dumps({"success": True, "analysis": "Got the time"})


class TestApplication:
    def test_builds_every_mode_handler(self, settings, scripted_provider):
        app = build_application(settings, provider=scripted_provider("unused"))

        assert set(app.handlers) == {"ask", "plan", "agent"}
        assert app.kernel.variants["context"] == "sqlite"

    @pytest.mark.asyncio
    async def test_explicit_mode_is_honoured(self, settings, kernel, scripted_provider, event_recorder):
        app = build_application(settings, provider=scripted_provider(THOUGHT, PLAN, REFLECTION), kernel=kernel)

        selection, result = await app.handle(user_id="u1", query="What time is it?", session_id="s1", mode="agent")

        assert selection == ModeSelection(mode="agent", confidence=1.0, reasoning="User explicitly selected mode")
        assert result.reflection.success is True
        assert event_recorder.topics[-1] == "agent.execution.completed"

    @pytest.mark.asyncio
    async def test_routed_by_classification(self, settings, kernel, scripted_provider):
        provider = scripted_provider('{"mode": "ask", "confidence": 0.9, "reasoning": "simple"}', "It is noon.")
        app = build_application(settings, provider=provider, kernel=kernel)

        selection, result = await app.handle(user_id="u1", query="What time is it?", session_id="s1")

        assert selection.mode == "ask"
        assert isinstance(result, AskResponse)
        assert result.response == "It is noon."


class TestCli:
    def test_parse_args(self):
        args = parse_args(["hello", "--mode", "plan", "--user", "alice", "--events"])
        assert (args.query, args.mode, args.user, args.events) == ("hello", "plan", "alice", True)
        assert parse_args([]).query is None

    def test_rejects_unknown_mode(self):
        with pytest.raises(SystemExit):
            parse_args(["hello", "--mode", "dance"])

    def test_render_ask(self):
        assert render_result(AskResponse(session_id="s", response="hi", model="m")) == "hi"

    @pytest.mark.asyncio
    async def test_run_once_prints_result(self, settings, kernel, scripted_provider, capsys):
        app = build_application(settings, provider=scripted_provider("Hello!"), kernel=kernel)

        await run_once(app, parse_args(["hi", "--mode", "ask"]), "hi", "s1")

        assert capsys.readouterr().out.strip() == "[ask] Hello!"

    @pytest.mark.asyncio
    async def test_run_once_reports_errors(self, settings, kernel, scripted_provider, capsys):
        app = build_application(settings, provider=scripted_provider("unused"), kernel=kernel)

        await run_once(app, parse_args(["x", "--mode", "ask", "--user", " "]), "x", "s1")

        assert capsys.readouterr().out.strip() == "Error: User ID is required"
