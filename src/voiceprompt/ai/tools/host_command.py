"""Execute a known host command by id."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from .arguments import string_arg
from .context import ToolContext
from .errors import CommandFailedError, MissingParameterError, UnknownCommandError
from .types import ToolName, ToolResult, ToolSpec

__all__ = ["EXECUTE_HOST_COMMAND_SPEC", "execute_host_command", "normalize_command_args", "simplify_result"]

LOGGER = logging.getLogger(__name__)

_MISSING = object()

EXECUTE_HOST_COMMAND_SPEC = ToolSpec(
    name=ToolName.EXECUTE_HOST_COMMAND,
    description="Run a host command by id. Look the id up with search_available_commands first.",
    parameters={
        "type": "object",
        "properties": {
            "commandId": {"type": "string", "description": "Exact command id."},
            "args": {"type": "array", "description": "Optional positional arguments.", "items": {}},
        },
        "required": ["commandId"],
        "additionalProperties": False,
    },
)


def normalize_command_args(value: Any) -> list[Any]:
    if value is _MISSING:
        return []
    if isinstance(value, list):
        return value
    return [value]


def simplify_result(value: Any) -> Any:
    """Reduce a command's return value to something small and JSON-safe."""

    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, (list, tuple)):
        return f"[array:{len(value)}]"
    return "[object]"


async def execute_host_command(arguments: Mapping[str, Any], context: ToolContext) -> ToolResult:
    command_id = string_arg(arguments, "commandId")
    if not command_id:
        raise MissingParameterError(parameter="commandId")

    commands = context.host.commands
    available = set(await commands.list_commands())
    if command_id not in available:
        raise UnknownCommandError(command_id=command_id)

    command_args = normalize_command_args(arguments.get("args", _MISSING))
    try:
        result = await commands.execute(command_id, *command_args)
    except Exception as exc:
        LOGGER.debug("Host command %s raised", command_id, exc_info=True)
        raise CommandFailedError(message=f"Failed to execute host command '{command_id}': {exc}") from exc
    return ToolResult.success(
        {"commandId": command_id, "argsCount": len(command_args), "result": simplify_result(result)}
    )
