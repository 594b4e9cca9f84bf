"""Multi-turn tool-calling loop that routes one utterance to one action.

Each turn sends the conversation input, dispatches the returned calls in
order, and echoes every call together with its result as the next turn's
input. The first call that succeeds *and* is handled ends the run; a reply
without calls, or running out of turns, ends it unhandled.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Protocol, Sequence

from ..prompts import ROUTER_DEVELOPER_PROMPT
from ..tools.dispatcher import ToolDispatcher
from .protocol import (
    ResponsesReply,
    build_initial_input,
    extract_function_calls,
    function_call_item,
    function_call_output_item,
)

__all__ = [
    "MAX_TOOL_TURNS",
    "ReplySource",
    "RouterConfig",
    "RouterState",
    "RoutingOutcome",
    "IntentRouter",
]

LOGGER = logging.getLogger(__name__)

MAX_TOOL_TURNS = 6


class ReplySource(Protocol):
    """Anything that can turn conversation input into a model reply."""

    async def complete(
        self,
        input_items: Sequence[Mapping[str, Any]],
        *,
        tools: Sequence[Mapping[str, Any]] = (),
    ) -> ResponsesReply: ...


class RouterState(enum.Enum):
    BUILDING = "building"
    AWAITING_REPLY = "awaiting_reply"
    DISPATCHING = "dispatching"
    CONTINUING = "continuing"
    DONE = "done"


@dataclass(slots=True, frozen=True)
class RouterConfig:
    """Tunable limits for a routing run.

    Attributes:
        max_turns: Upper bound on remote calls per utterance.
        developer_prompt: Routing policy sent as the developer message.
    """

    max_turns: int = MAX_TOOL_TURNS
    developer_prompt: str = ROUTER_DEVELOPER_PROMPT


@dataclass(slots=True, frozen=True)
class RoutingOutcome:
    """Result of one routing run."""

    handled: bool
    turns: int
    reason: str
    tool: str | None = None


class IntentRouter:
    """Drives the turn loop for one utterance at a time.

    The router keeps no per-run state, so a single instance can serve
    consecutive utterances. Transport failures propagate unchanged as
    :class:`~voiceprompt.ai.routing.errors.RoutingError`.
    """

    def __init__(
        self,
        reply_source: ReplySource,
        dispatcher: ToolDispatcher,
        ambient_context: Callable[[], str],
        config: RouterConfig | None = None,
    ) -> None:
        self._reply_source = reply_source
        self._dispatcher = dispatcher
        self._ambient_context = ambient_context
        self._config = config or RouterConfig()

    @property
    def config(self) -> RouterConfig:
        return self._config

    async def route(self, utterance: str) -> bool:
        """Route ``utterance``; return whether an action handled it."""

        outcome = await self.run(utterance)
        return outcome.handled

    async def run(self, utterance: str) -> RoutingOutcome:
        state = self._transition(None, RouterState.BUILDING)
        tools = self._dispatcher.registry.get_responses_tools()
        next_input: tuple[Mapping[str, Any], ...] = build_initial_input(
            utterance, self._ambient_context(), self._config.developer_prompt
        )
        max_turns = max(1, self._config.max_turns)

        for turn in range(1, max_turns + 1):
            state = self._transition(state, RouterState.AWAITING_REPLY, turn=turn)
            reply = await self._reply_source.complete(next_input, tools=tools)
            calls = extract_function_calls(reply)
            if not calls:
                self._transition(state, RouterState.DONE, turn=turn)
                LOGGER.info("Routing ended without a tool call after %d turn(s)", turn)
                return RoutingOutcome(handled=False, turns=turn, reason="no_tool_call")

            state = self._transition(state, RouterState.DISPATCHING, turn=turn)
            items: list[Mapping[str, Any]] = []
            for index, call in enumerate(calls):
                call_id = call.call_id or call.id or f"call_{turn}_{index}"
                result = await self._dispatcher.dispatch(call)
                items.append(function_call_item(call, call_id))
                items.append(function_call_output_item(call_id, result))
                if result.is_terminal:
                    self._transition(state, RouterState.DONE, turn=turn)
                    LOGGER.info("Routing handled by %s on turn %d", call.name, turn)
                    return RoutingOutcome(handled=True, turns=turn, reason="handled", tool=call.name)
                LOGGER.debug(
                    "Tool %s returned ok=%s handled=%s; continuing", call.name, result.ok, result.handled
                )

            state = self._transition(state, RouterState.CONTINUING, turn=turn)
            next_input = tuple(items)

        self._transition(state, RouterState.DONE, turn=max_turns)
        LOGGER.info("Routing gave up after %d turn(s) without a handled action", max_turns)
        return RoutingOutcome(handled=False, turns=max_turns, reason="turn_budget_exhausted")

    @staticmethod
    def _transition(current: RouterState | None, target: RouterState, *, turn: int = 0) -> RouterState:
        LOGGER.debug(
            "Router %s -> %s (turn %d)", current.value if current else "start", target.value, turn
        )
        return target
