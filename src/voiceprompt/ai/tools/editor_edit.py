"""Apply a concrete text replacement in the focused editor."""

from __future__ import annotations

from typing import Any, Mapping

from .arguments import Position, normalize_column, normalize_line, position_after_insert
from .context import ToolContext
from .errors import EditRejectedError, InvalidRangeError, NoActiveEditorError
from .types import ToolName, ToolResult, ToolSpec

__all__ = ["APPLY_EDITOR_EDIT_SPEC", "apply_editor_edit"]

APPLY_EDITOR_EDIT_SPEC = ToolSpec(
    name=ToolName.APPLY_EDITOR_EDIT,
    description="Replace a zero-based line/column range in the active editor with new text.",
    parameters={
        "type": "object",
        "properties": {
            "startLine": {"type": "number"},
            "startCol": {"type": "number"},
            "endLine": {"type": "number"},
            "endCol": {"type": "number"},
            "newText": {"type": "string"},
        },
        "required": ["startLine", "startCol", "endLine", "endCol", "newText"],
        "additionalProperties": False,
    },
)


def _column(arguments: Mapping[str, Any], key: str, alias: str) -> int:
    value = arguments.get(key)
    if value is None:
        value = arguments.get(alias)
    return normalize_column(value)


async def apply_editor_edit(arguments: Mapping[str, Any], context: ToolContext) -> ToolResult:
    editor = context.host.editor.active_editor()
    if editor is None:
        raise NoActiveEditorError()

    line_count = editor.line_count
    start = Position(
        normalize_line(arguments.get("startLine"), line_count),
        _column(arguments, "startCol", "startCharacter"),
    )
    end = Position(
        normalize_line(arguments.get("endLine"), line_count),
        _column(arguments, "endCol", "endCharacter"),
    )
    new_text = arguments.get("newText")
    if not isinstance(new_text, str):
        new_text = ""

    if (end.line, end.column) < (start.line, start.column):
        raise InvalidRangeError()

    if not await editor.replace(start, end, new_text):
        raise EditRejectedError()

    cursor = position_after_insert(start, new_text)
    editor.set_selection(cursor)
    editor.reveal(cursor)
    return ToolResult.success({"applied": True, "cursor": cursor.to_dict()})
