"""Clipboard read/write tools."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from .context import ToolContext
from .errors import BackendUnavailableError, MissingParameterError
from .types import ToolName, ToolResult, ToolSpec

__all__ = ["READ_CLIPBOARD_SPEC", "WRITE_CLIPBOARD_SPEC", "read_clipboard", "write_clipboard"]

LOGGER = logging.getLogger(__name__)

READ_CLIPBOARD_SPEC = ToolSpec(
    name=ToolName.READ_CLIPBOARD,
    description="Read the current clipboard text. Does not finish the request on its own.",
    parameters={"type": "object", "properties": {}, "additionalProperties": False},
)

WRITE_CLIPBOARD_SPEC = ToolSpec(
    name=ToolName.WRITE_CLIPBOARD,
    description="Replace the clipboard contents with the given text.",
    parameters={
        "type": "object",
        "properties": {
            "text": {"type": "string", "description": "Text to place on the clipboard."},
        },
        "required": ["text"],
        "additionalProperties": False,
    },
)


async def read_clipboard(arguments: Mapping[str, Any], context: ToolContext) -> ToolResult:
    del arguments
    try:
        text = await context.host.clipboard.read_text()
    except Exception as exc:
        LOGGER.debug("Clipboard read failed", exc_info=True)
        raise BackendUnavailableError(message=str(exc) or "Failed to read clipboard.") from exc
    text = text or ""
    return ToolResult.success({"text": text, "length": len(text)}, handled=False)


async def write_clipboard(arguments: Mapping[str, Any], context: ToolContext) -> ToolResult:
    text = arguments.get("text")
    if not isinstance(text, str) or not text:
        raise MissingParameterError(parameter="text")
    try:
        await context.host.clipboard.write_text(text)
    except Exception as exc:
        LOGGER.debug("Clipboard write failed", exc_info=True)
        raise BackendUnavailableError(message=str(exc) or "Failed to write clipboard.") from exc
    return ToolResult.success({"length": len(text)})
