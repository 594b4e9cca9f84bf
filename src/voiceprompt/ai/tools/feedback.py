"""Give up on a request and tell the user why."""

from __future__ import annotations

from typing import Any, Mapping

from .arguments import string_arg
from .context import ToolContext
from .errors import MissingParameterError
from .types import ToolName, ToolResult, ToolSpec

__all__ = ["SEND_FEEDBACK_SPEC", "send_feedback"]

SEND_FEEDBACK_SPEC = ToolSpec(
    name=ToolName.SEND_FEEDBACK,
    description=(
        "Show a short message to the user when the request cannot be fulfilled "
        "with the other tools. Explain what was missing."
    ),
    parameters={
        "type": "object",
        "properties": {
            "message": {"type": "string", "description": "Message to show the user."},
        },
        "required": ["message"],
        "additionalProperties": False,
    },
)


async def send_feedback(arguments: Mapping[str, Any], context: ToolContext) -> ToolResult:
    message = string_arg(arguments, "message")
    if not message:
        raise MissingParameterError(parameter="message")
    context.host.notifier.show_information(message)
    return ToolResult.success({"message": message})
