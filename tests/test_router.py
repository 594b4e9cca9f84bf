"""Tests for the multi-turn intent router."""

from __future__ import annotations

import json

import pytest

from tests.helpers import (
    FakeClipboard,
    FakeNotifier,
    FakeReplySource,
    FakeTerminal,
    FakeTerminalHost,
    function_call,
    make_context,
    reply,
)
from voiceprompt.ai.routing.errors import RoutingError
from voiceprompt.ai.routing.protocol import FunctionCall
from voiceprompt.ai.routing.router import MAX_TOOL_TURNS, IntentRouter, RouterConfig
from voiceprompt.ai.tools.dispatcher import ToolDispatcher
from voiceprompt.ai.tools.tool_wiring import build_default_registry


def _router(source: FakeReplySource, *, max_turns: int = MAX_TOOL_TURNS, **context_kwargs) -> tuple[IntentRouter, object]:
    context = make_context(**context_kwargs)
    dispatcher = ToolDispatcher(build_default_registry(), context)
    router = IntentRouter(source, dispatcher, lambda: '{"editor": {"available": false}}', RouterConfig(max_turns=max_turns))
    return router, context


def _outputs(items: list[dict]) -> list[dict]:
    return [json.loads(item["output"]) for item in items if item["type"] == "function_call_output"]


class TestIntentRouter:
    @pytest.mark.asyncio
    async def test_reply_without_calls_is_unhandled_after_one_turn(self) -> None:
        source = FakeReplySource([reply()])
        router, _ = _router(source)

        outcome = await router.run("hello there")

        assert not outcome.handled
        assert outcome.reason == "no_tool_call"
        assert outcome.turns == 1
        assert len(source.requests) == 1

    @pytest.mark.asyncio
    async def test_terminal_request_inserts_command(self) -> None:
        terminal = FakeTerminal()
        source = FakeReplySource([reply(function_call("insert_terminal_command", {"command": "git status"}))])
        router, context = _router(source, terminal=FakeTerminalHost(terminal))

        handled = await router.route("terminal git status")

        assert handled is True
        assert terminal.sent == [("git status", False)]
        assert context.terminal_tracker.snapshot("term-1", 10)["lines"] == ["$ git status"]
        assert len(source.requests) == 1

    @pytest.mark.asyncio
    async def test_first_request_carries_policy_context_and_tools(self) -> None:
        source = FakeReplySource([reply()])
        router, _ = _router(source)

        await router.route("open the readme")

        input_items, tools = source.requests[0]
        assert [item["role"] for item in input_items] == ["developer", "user"]
        assert "open the readme" in input_items[1]["content"][0]["text"]
        assert '"available": false' in input_items[1]["content"][0]["text"]
        assert len(tools) == 11
        assert all(tool["type"] == "function" for tool in tools)

    @pytest.mark.asyncio
    async def test_feedback_ends_run(self) -> None:
        notifier = FakeNotifier()
        source = FakeReplySource([reply(function_call("send_feedback", {"message": "Nothing to do."}))])
        router, _ = _router(source, notifier=notifier)

        outcome = await router.run("mumble")

        assert outcome.handled
        assert outcome.tool == "send_feedback"
        assert notifier.messages == ["Nothing to do."]

    @pytest.mark.asyncio
    async def test_unhandled_result_continues_with_echo_and_output(self) -> None:
        source = FakeReplySource(
            [
                reply(function_call("read_clipboard", {}, call_id="c1")),
                reply(function_call("write_clipboard", {"text": "HELLO"}, call_id="c2")),
            ]
        )
        clipboard = FakeClipboard("hello")
        router, _ = _router(source, clipboard=clipboard)

        outcome = await router.run("uppercase the clipboard")

        assert outcome.handled
        assert outcome.turns == 2
        assert clipboard.text == "HELLO"
        second_input = source.requests[1][0]
        assert [item["type"] for item in second_input] == ["function_call", "function_call_output"]
        assert second_input[0]["call_id"] == "c1"
        assert second_input[1]["call_id"] == "c1"
        assert _outputs(second_input) == [{"ok": True, "handled": False, "data": {"text": "hello", "length": 5}}]

    @pytest.mark.asyncio
    async def test_next_input_replaces_previous_turn(self) -> None:
        source = FakeReplySource(
            [
                reply(function_call("read_clipboard", {}, call_id="c1")),
                reply(function_call("read_clipboard", {}, call_id="c2")),
                reply(),
            ]
        )
        router, _ = _router(source)

        await router.run("peek twice")

        third_input = source.requests[2][0]
        assert [item["call_id"] for item in third_input] == ["c2", "c2"]

    @pytest.mark.asyncio
    async def test_failed_call_is_reported_and_loop_continues(self) -> None:
        source = FakeReplySource(
            [
                reply(function_call("execute_editor_control", {"action": "goto_line", "line": 3})),
                reply(),
            ]
        )
        router, _ = _router(source)

        outcome = await router.run("go to line 4")

        assert not outcome.handled
        assert outcome.turns == 2
        assert _outputs(source.requests[1][0]) == [{"ok": False, "handled": False, "error": "No active editor."}]

    @pytest.mark.asyncio
    async def test_stops_after_max_turns(self) -> None:
        source = FakeReplySource([reply(function_call("read_clipboard", {}))])
        router, _ = _router(source, max_turns=3)

        outcome = await router.run("loop forever")

        assert not outcome.handled
        assert outcome.reason == "turn_budget_exhausted"
        assert outcome.turns == 3
        assert len(source.requests) == 3

    @pytest.mark.asyncio
    async def test_default_limit_is_six_turns(self) -> None:
        source = FakeReplySource([reply(function_call("search_project_files", {"query": "x"}))])
        router, _ = _router(source)

        await router.run("search")

        assert len(source.requests) == MAX_TOOL_TURNS == 6

    @pytest.mark.asyncio
    async def test_short_circuits_within_a_turn(self) -> None:
        notifier = FakeNotifier()
        source = FakeReplySource(
            [
                reply(
                    function_call("read_clipboard", {}, call_id="c1"),
                    function_call("send_feedback", {"message": "first"}, call_id="c2"),
                    function_call("send_feedback", {"message": "second"}, call_id="c3"),
                )
            ]
        )
        router, _ = _router(source, notifier=notifier)

        outcome = await router.run("do things")

        assert outcome.handled
        assert notifier.messages == ["first"]

    @pytest.mark.asyncio
    async def test_missing_call_ids_are_synthesized(self) -> None:
        source = FakeReplySource(
            [
                reply(FunctionCall(name="read_clipboard", arguments="{}")),
                reply(),
            ]
        )
        router, _ = _router(source)

        await router.run("peek")

        second_input = source.requests[1][0]
        assert [item["call_id"] for item in second_input] == ["call_1_0", "call_1_0"]
        assert "id" not in second_input[0]

    @pytest.mark.asyncio
    async def test_unknown_tool_and_bad_json_are_fed_back(self) -> None:
        source = FakeReplySource(
            [
                reply(
                    function_call("format_disk", {}, call_id="c1"),
                    function_call("send_feedback", "{not json", call_id="c2"),
                ),
                reply(),
            ]
        )
        router, _ = _router(source)

        await router.run("oops")

        assert _outputs(source.requests[1][0]) == [
            {"ok": False, "handled": False, "error": "Unsupported tool call."},
            {"ok": False, "handled": False, "error": "Invalid tool arguments JSON."},
        ]

    @pytest.mark.asyncio
    async def test_routing_error_propagates(self) -> None:
        source = FakeReplySource([RoutingError("Cloud command routing failed (401): unauthorized", 401)])
        router, _ = _router(source)

        with pytest.raises(RoutingError) as excinfo:
            await router.route("anything")

        assert excinfo.value.status_code == 401

    @pytest.mark.asyncio
    async def test_router_is_reusable(self) -> None:
        source = FakeReplySource([reply(function_call("send_feedback", {"message": "ok"}))])
        router, _ = _router(source)

        assert await router.route("one")
        assert await router.route("two")
        assert len(source.requests) == 2
        assert "two" in source.requests[1][0][1]["content"][0]["text"]
