"""Tests for the Responses API wire adapter."""

from __future__ import annotations

import json
from types import SimpleNamespace
from typing import Any, Iterable

import pytest

from voiceprompt.ai.routing.protocol import (
    FunctionCall,
    ResponsesReply,
    build_initial_input,
    collect_function_calls_from_stream,
    dedupe_calls,
    extract_function_calls,
    function_call_item,
    function_call_output_item,
    normalize_responses_base_url,
    normalize_responses_payload,
)
from voiceprompt.ai.tools.types import ToolResult


class _Dumpable:
    """Stand-in for an SDK model exposing ``model_dump``."""

    def __init__(self, payload: dict[str, Any]) -> None:
        self._payload = payload

    def model_dump(self) -> dict[str, Any]:
        return self._payload


async def _events(items: Iterable[Any]):
    for item in items:
        yield item


def _call_item(call_id: str, name: str = "send_feedback", arguments: str = '{"message":"hi"}') -> dict[str, Any]:
    return {"type": "function_call", "call_id": call_id, "id": f"fc_{call_id}", "name": name, "arguments": arguments}


class TestInputBuilders:
    def test_initial_input_has_developer_then_user(self) -> None:
        items = build_initial_input("terminal git status", '{"editor": {}}', "POLICY")

        assert [item["role"] for item in items] == ["developer", "user"]
        assert items[0]["content"] == [{"type": "input_text", "text": "POLICY"}]
        user_text = items[1]["content"][0]["text"]
        assert user_text.startswith("Transcribed request:\nterminal git status")
        assert user_text.endswith('Ambient context:\n{"editor": {}}')

    def test_function_call_item_defaults(self) -> None:
        item = function_call_item(FunctionCall(name="x"), "call_1_0")

        assert item == {
            "type": "function_call",
            "call_id": "call_1_0",
            "name": "x",
            "arguments": "{}",
            "status": "completed",
        }

    def test_function_call_item_keeps_id_and_status(self) -> None:
        call = FunctionCall(name="x", arguments='{"a":1}', id="fc_1", call_id="c1", status="in_progress")

        item = function_call_item(call, "c1")

        assert item["id"] == "fc_1"
        assert item["status"] == "in_progress"
        assert item["arguments"] == '{"a":1}'

    def test_function_call_output_serializes_result(self) -> None:
        item = function_call_output_item("c1", ToolResult.success({"inserted": "ls"}))

        assert item["type"] == "function_call_output"
        assert item["call_id"] == "c1"
        assert json.loads(item["output"]) == {"ok": True, "handled": True, "data": {"inserted": "ls"}}

    def test_unserializable_result_falls_back_to_summary(self) -> None:
        item = function_call_output_item("c1", ToolResult.success({"value": object()}))

        payload = json.loads(item["output"])
        assert payload["ok"] is True
        assert payload["handled"] is True
        assert payload["error"] == "Result was not serializable."


class TestReplyParsing:
    def test_payload_keeps_only_function_calls(self) -> None:
        response = {
            "id": "resp_1",
            "output": [
                {"type": "reasoning", "summary": []},
                _call_item("c1"),
                {"type": "message", "content": []},
            ],
        }

        reply = normalize_responses_payload(response)

        assert reply.id == "resp_1"
        assert [call.call_id for call in reply.output] == ["c1"]

    def test_payload_accepts_sdk_objects(self) -> None:
        reply = normalize_responses_payload(_Dumpable({"id": "r", "output": [_Dumpable(_call_item("c2"))]}))

        assert reply.output[0].name == "send_feedback"

    def test_malformed_payload_is_empty(self) -> None:
        assert normalize_responses_payload("nope") == ResponsesReply()
        assert normalize_responses_payload({"output": "bad"}).output == ()

    def test_dedupe_keeps_first_occurrence(self) -> None:
        first = FunctionCall(name="a", arguments="{}", call_id="c1")
        second = FunctionCall(name="b", arguments="{}", call_id="c2")

        assert dedupe_calls([first, second, first]) == (first, second)

    @pytest.mark.asyncio
    async def test_stream_collects_and_dedupes(self) -> None:
        events = [
            {"type": "response.created"},
            {"type": "response.output_item.done", "item": _call_item("c1")},
            SimpleNamespace(model_dump=lambda: {"type": "response.output_item.done", "item": _call_item("c2", "read_clipboard", "{}")}),
            {"type": "response.output_item.done", "item": {"type": "message"}},
            {
                "type": "response.completed",
                "response": {"id": "resp_9", "output": [_call_item("c1"), _call_item("c2", "read_clipboard", "{}")]},
            },
        ]

        reply = await collect_function_calls_from_stream(_events(events))

        assert reply.id == "resp_9"
        assert [(call.call_id, call.name) for call in reply.output] == [("c1", "send_feedback"), ("c2", "read_clipboard")]

    @pytest.mark.asyncio
    async def test_stream_without_calls(self) -> None:
        reply = await collect_function_calls_from_stream(_events([{"type": "response.completed", "response": {"id": "r"}}]))

        assert reply == ResponsesReply(id="r")

    def test_extract_defaults_arguments_and_drops_nameless(self) -> None:
        reply = ResponsesReply(output=(FunctionCall(name="a"), FunctionCall(name=None, call_id="x"), FunctionCall(name="")))

        calls = extract_function_calls(reply)

        assert [(call.name, call.arguments) for call in calls] == [("a", "{}")]


class TestBaseUrl:
    @pytest.mark.parametrize(
        ("url", "expected"),
        [
            ("https://chatgpt.com/backend-api/codex", "https://chatgpt.com/backend-api/codex"),
            ("https://api.example.com/v1/responses", "https://api.example.com/v1"),
            ("https://api.example.com/v1/responses/ ", "https://api.example.com/v1"),
        ],
    )
    def test_trailing_responses_is_stripped(self, url: str, expected: str) -> None:
        assert normalize_responses_base_url(url) == expected
