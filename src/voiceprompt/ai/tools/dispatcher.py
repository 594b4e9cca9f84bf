"""Tool dispatcher for the routing loop.

The dispatcher never raises: argument problems, unknown tools, tool
errors, crashes, and timeouts all become ``ok=False`` results that the
model sees on its next turn.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from dataclasses import dataclass
from typing import Any

from ..routing.protocol import FunctionCall
from .context import ToolContext
from .errors import ToolError
from .registry import ToolRegistry
from .types import ToolResult

__all__ = ["DispatcherConfig", "ToolDispatcher", "parse_arguments"]

LOGGER = logging.getLogger(__name__)

INVALID_ARGUMENTS_MESSAGE = "Invalid tool arguments JSON."
UNSUPPORTED_TOOL_MESSAGE = "Unsupported tool call."


@dataclass(slots=True, frozen=True)
class DispatcherConfig:
    """Configuration for the tool dispatcher.

    Attributes:
        default_timeout: Seconds a single tool may run; ``None`` disables the limit.
        log_arguments: Whether to log tool arguments (may contain user text).
        log_results: Whether to log tool results.
    """

    default_timeout: float | None = 30.0
    log_arguments: bool = False
    log_results: bool = False


def parse_arguments(raw: str | None) -> dict[str, Any] | None:
    """Decode a call's JSON arguments; ``None`` unless they form an object."""

    try:
        value = json.loads(raw if raw is not None else "{}")
    except (TypeError, ValueError):
        return None
    return value if isinstance(value, dict) else None


class ToolDispatcher:
    """Executes model function calls against the registered tools."""

    def __init__(
        self,
        registry: ToolRegistry,
        context: ToolContext,
        config: DispatcherConfig | None = None,
    ) -> None:
        self._registry = registry
        self._context = context
        self._config = config or DispatcherConfig()

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    @property
    def context(self) -> ToolContext:
        return self._context

    async def dispatch(self, call: FunctionCall) -> ToolResult:
        name = call.name or ""
        arguments = parse_arguments(call.arguments)
        if arguments is None:
            LOGGER.debug("Tool %s received invalid arguments: %r", name, call.arguments)
            return ToolResult.failure(INVALID_ARGUMENTS_MESSAGE)

        registration = self._registry.get(name)
        if registration is None:
            LOGGER.warning("Model requested unknown tool %r", name)
            return ToolResult.failure(UNSUPPORTED_TOOL_MESSAGE)

        if self._config.log_arguments:
            LOGGER.debug("Executing tool %s (call_id=%s) with arguments: %s", name, call.call_id, arguments)
        else:
            LOGGER.debug("Executing tool %s (call_id=%s)", name, call.call_id)

        timeout = self._config.default_timeout
        start_time = time.perf_counter()
        try:
            if timeout is not None and timeout > 0:
                result = await asyncio.wait_for(registration.handler(arguments, self._context), timeout=timeout)
            else:
                result = await registration.handler(arguments, self._context)
        except ToolError as exc:
            LOGGER.info("Tool %s failed: %s", name, exc.to_dict())
            return ToolResult.failure(exc.message)
        except asyncio.TimeoutError:
            LOGGER.warning("Tool %s timed out after %.1fs", name, timeout)
            return ToolResult.failure(f"Tool {name} timed out after {timeout:g}s.")
        except Exception as exc:
            LOGGER.exception("Tool %s raised unexpectedly", name)
            return ToolResult.failure(f"Internal error: {exc}")

        duration_ms = (time.perf_counter() - start_time) * 1000
        if self._config.log_results:
            LOGGER.debug("Tool %s completed in %.1fms with result: %s", name, duration_ms, result.to_dict())
        else:
            LOGGER.debug("Tool %s completed in %.1fms (ok=%s handled=%s)", name, duration_ms, result.ok, result.handled)
        return result
