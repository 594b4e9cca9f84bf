"""Insert a shell command into the active terminal without running it."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from .arguments import string_arg
from .context import ToolContext
from .errors import MissingParameterError
from .types import ToolName, ToolResult, ToolSpec

__all__ = ["INSERT_TERMINAL_COMMAND_SPEC", "insert_terminal_command"]

LOGGER = logging.getLogger(__name__)

INSERT_TERMINAL_COMMAND_SPEC = ToolSpec(
    name=ToolName.INSERT_TERMINAL_COMMAND,
    description="Insert command text into the active terminal input. The command is not executed.",
    parameters={
        "type": "object",
        "properties": {
            "command": {"type": "string", "description": "Shell command to insert."},
        },
        "required": ["command"],
        "additionalProperties": False,
    },
)


async def insert_terminal_command(arguments: Mapping[str, Any], context: ToolContext) -> ToolResult:
    command = string_arg(arguments, "command")
    if not command:
        raise MissingParameterError(parameter="command")

    terminals = context.host.terminal
    terminal = terminals.active_terminal() or terminals.create_terminal()
    terminal.show(preserve_focus=False)
    terminal.send_text(command, execute=False)
    context.terminal_tracker.record_command(terminal.session_id, command)
    LOGGER.debug("Inserted command into terminal %s", terminal.name)
    return ToolResult.success({"inserted": command, "terminal": terminal.name})
