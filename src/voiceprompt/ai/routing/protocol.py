"""Translation between routing turns and the Responses API wire shape.

Everything here is pure: builders return fresh JSON-ready dictionaries and
parsers skip anything malformed instead of raising.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, replace
from typing import Any, AsyncIterable, Iterable, Mapping

from ..tools.types import ToolResult

__all__ = [
    "FunctionCall",
    "ResponsesReply",
    "InputItem",
    "build_initial_input",
    "extract_function_calls",
    "normalize_responses_payload",
    "collect_function_calls_from_stream",
    "dedupe_calls",
    "function_call_item",
    "function_call_output_item",
    "normalize_responses_base_url",
]

LOGGER = logging.getLogger(__name__)

InputItem = Mapping[str, Any]

_RESPONSES_SUFFIX = re.compile(r"/responses/?$")
_OUTPUT_ITEM_DONE = "response.output_item.done"
_RESPONSE_COMPLETED = "response.completed"


@dataclass(slots=True, frozen=True)
class FunctionCall:
    """A function call emitted by the model.

    ``name`` and ``arguments`` stay ``None`` when the wire item omitted
    them; :func:`extract_function_calls` fills the defaults.
    """

    name: str | None = None
    arguments: str | None = None
    id: str | None = None
    call_id: str | None = None
    status: str | None = None

    @property
    def identity(self) -> tuple[str, str, str, str]:
        return (self.call_id or "", self.id or "", self.name or "", self.arguments or "")


@dataclass(slots=True, frozen=True)
class ResponsesReply:
    """One model reply reduced to its function calls."""

    id: str | None = None
    output: tuple[FunctionCall, ...] = ()


# ----------------------------------------------------------------------
# Input builders
# ----------------------------------------------------------------------


def _message(role: str, text: str) -> dict[str, Any]:
    return {"type": "message", "role": role, "content": [{"type": "input_text", "text": text}]}


def build_initial_input(
    utterance: str, ambient_context_text: str, developer_prompt: str
) -> tuple[dict[str, Any], ...]:
    """Return the developer policy message followed by the user request."""

    user_text = f"Transcribed request:\n{utterance}\n\nAmbient context:\n{ambient_context_text}"
    return (_message("developer", developer_prompt), _message("user", user_text))


def function_call_item(call: FunctionCall, call_id: str) -> dict[str, Any]:
    """Echo ``call`` back so the next turn can pair it with its output."""

    item: dict[str, Any] = {
        "type": "function_call",
        "call_id": call_id,
        "name": call.name or "",
        "arguments": call.arguments if call.arguments is not None else "{}",
        "status": call.status or "completed",
    }
    if call.id:
        item["id"] = call.id
    return item


def function_call_output_item(call_id: str, result: ToolResult) -> dict[str, Any]:
    """Serialize ``result`` as the output paired with ``call_id``."""

    payload = result.to_dict()
    try:
        output = json.dumps(payload, ensure_ascii=False)
    except (TypeError, ValueError) as exc:
        LOGGER.warning("Tool result for %s was not JSON serializable (%s); sending summary", call_id, exc)
        output = json.dumps(
            {"ok": result.ok, "handled": result.handled, "error": result.error or "Result was not serializable."}
        )
    return {"type": "function_call_output", "call_id": call_id, "output": output}


# ----------------------------------------------------------------------
# Reply parsers
# ----------------------------------------------------------------------


def _as_mapping(value: Any) -> Mapping[str, Any] | None:
    if isinstance(value, Mapping):
        return value
    dump = getattr(value, "model_dump", None)
    if callable(dump):
        try:
            dumped = dump()
        except Exception:  # pragma: no cover - foreign objects
            LOGGER.debug("model_dump() failed for %s", type(value).__name__, exc_info=True)
            return None
        if isinstance(dumped, Mapping):
            return dumped
    return None


def _optional_str(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _as_function_call(entry: Any) -> FunctionCall | None:
    mapping = _as_mapping(entry)
    if mapping is None or mapping.get("type") != "function_call":
        return None
    return FunctionCall(
        name=_optional_str(mapping.get("name")),
        arguments=_optional_str(mapping.get("arguments")),
        id=_optional_str(mapping.get("id")),
        call_id=_optional_str(mapping.get("call_id")),
        status=_optional_str(mapping.get("status")),
    )


def _calls_from_output(output: Any) -> list[FunctionCall]:
    if not isinstance(output, (list, tuple)):
        return []
    calls: list[FunctionCall] = []
    for entry in output:
        call = _as_function_call(entry)
        if call is not None:
            calls.append(call)
    return calls


def dedupe_calls(calls: Iterable[FunctionCall]) -> tuple[FunctionCall, ...]:
    """Drop repeated calls, keeping the first occurrence of each identity."""

    seen: set[tuple[str, str, str, str]] = set()
    unique: list[FunctionCall] = []
    for call in calls:
        if call.identity in seen:
            continue
        seen.add(call.identity)
        unique.append(call)
    return tuple(unique)


def normalize_responses_payload(response: Any) -> ResponsesReply:
    """Reduce a non-streamed reply to its de-duplicated function calls."""

    mapping = _as_mapping(response)
    if mapping is None:
        return ResponsesReply()
    return ResponsesReply(
        id=_optional_str(mapping.get("id")),
        output=dedupe_calls(_calls_from_output(mapping.get("output"))),
    )


async def collect_function_calls_from_stream(events: AsyncIterable[Any]) -> ResponsesReply:
    """Accumulate function calls from a streamed reply.

    Calls may arrive both as ``response.output_item.done`` events and again
    in the ``response.completed`` summary; the duplicates are coalesced.
    """

    calls: list[FunctionCall] = []
    response_id: str | None = None
    async for event in events:
        mapping = _as_mapping(event)
        if mapping is None:
            continue
        event_type = mapping.get("type")
        if event_type == _OUTPUT_ITEM_DONE:
            call = _as_function_call(mapping.get("item"))
            if call is not None:
                calls.append(call)
        elif event_type == _RESPONSE_COMPLETED:
            response = _as_mapping(mapping.get("response"))
            if response is None:
                continue
            response_id = _optional_str(response.get("id")) or response_id
            calls.extend(_calls_from_output(response.get("output")))
    return ResponsesReply(id=response_id, output=dedupe_calls(calls))


def extract_function_calls(reply: ResponsesReply) -> list[FunctionCall]:
    """Return the dispatchable calls with ``name``/``arguments`` defaulted."""

    extracted: list[FunctionCall] = []
    for call in reply.output:
        name = call.name or ""
        if not name:
            continue
        arguments = call.arguments if call.arguments is not None else "{}"
        extracted.append(replace(call, name=name, arguments=arguments))
    return extracted


def normalize_responses_base_url(url: str) -> str:
    """Strip a trailing ``/responses`` so the SDK does not append it twice."""

    return _RESPONSES_SUFFIX.sub("", url.strip())
