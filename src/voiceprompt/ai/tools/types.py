"""Tool system types for the intent router.

This module defines the closed set of tool names, the schema record sent
to the model, and the structured result every tool returns.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Coroutine, Mapping

if TYPE_CHECKING:
    from .context import ToolContext

__all__ = [
    "ToolName",
    "ToolSpec",
    "ToolResult",
    "ToolHandler",
]


# -----------------------------------------------------------------------------
# Tool Names
# -----------------------------------------------------------------------------


class ToolName(str, Enum):
    """Every tool the router can offer to the model."""

    INSERT_TERMINAL_COMMAND = "insert_terminal_command"
    EXECUTE_EDITOR_CONTROL = "execute_editor_control"
    APPLY_EDITOR_EDIT = "apply_editor_edit"
    SEARCH_PROJECT_FILES = "search_project_files"
    SEARCH_AVAILABLE_COMMANDS = "search_available_commands"
    EXECUTE_HOST_COMMAND = "execute_host_command"
    EXECUTE_AGENT_HANDOFF = "execute_agent_handoff"
    EXECUTE_KEYPRESS = "execute_keypress"
    READ_CLIPBOARD = "read_clipboard"
    WRITE_CLIPBOARD = "write_clipboard"
    SEND_FEEDBACK = "send_feedback"

    @classmethod
    def parse(cls, value: str) -> "ToolName | None":
        """Return the member named ``value`` or ``None`` for unknown names."""
        try:
            return cls(value)
        except ValueError:
            return None


# -----------------------------------------------------------------------------
# Tool Specification
# -----------------------------------------------------------------------------


@dataclass(slots=True, frozen=True)
class ToolSpec:
    """Specification for a tool's interface.

    Attributes:
        name: Tool identifier.
        description: Human-readable description shown to the model.
        parameters: JSON Schema for the tool's arguments.
    """

    name: ToolName
    description: str
    parameters: Mapping[str, Any] = field(default_factory=dict)

    def to_responses_tool(self) -> dict[str, Any]:
        """Convert to the flat Responses API function-tool shape."""
        return {
            "type": "function",
            "name": self.name.value,
            "description": self.description,
            "parameters": dict(self.parameters) if self.parameters else {
                "type": "object",
                "properties": {},
                "additionalProperties": False,
            },
        }


# -----------------------------------------------------------------------------
# Tool Result
# -----------------------------------------------------------------------------


@dataclass(slots=True)
class ToolResult:
    """Outcome of one tool call.

    ``ok`` reports whether the tool succeeded; ``handled`` reports whether
    the routing run's purpose is fulfilled. The two are independent: a
    read-only search succeeds without being handled.
    """

    ok: bool
    handled: bool
    data: Any = None
    error: str | None = None

    @classmethod
    def success(cls, data: Any = None, *, handled: bool = True) -> "ToolResult":
        return cls(ok=True, handled=handled, data=data)

    @classmethod
    def failure(cls, error: str) -> "ToolResult":
        return cls(ok=False, handled=False, error=error)

    @property
    def is_terminal(self) -> bool:
        return self.ok and self.handled

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"ok": self.ok, "handled": self.handled}
        if self.data is not None:
            payload["data"] = self.data
        if self.error is not None:
            payload["error"] = self.error
        return payload


# -----------------------------------------------------------------------------
# Tool Handler Type
# -----------------------------------------------------------------------------

# Every handler is async and receives the parsed arguments plus the host context.
ToolHandler = Callable[[Mapping[str, Any], "ToolContext"], Coroutine[Any, Any, ToolResult]]
