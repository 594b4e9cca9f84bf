"""Editor navigation and focus control."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping

from .arguments import Position, normalize_column, normalize_line, string_arg
from .context import ToolContext
from .errors import FileNotFoundToolError, InvalidParameterError, MissingParameterError, NoActiveEditorError
from .host import EditorHandle
from .types import ToolName, ToolResult, ToolSpec

__all__ = ["EDITOR_CONTROL_ACTIONS", "EDITOR_CONTROL_SPEC", "execute_editor_control"]

LOGGER = logging.getLogger(__name__)

EDITOR_CONTROL_ACTIONS: tuple[str, ...] = ("goto_line", "open_file_at_line", "focus_terminal", "focus_editor")

EDITOR_CONTROL_SPEC = ToolSpec(
    name=ToolName.EXECUTE_EDITOR_CONTROL,
    description="Control editor navigation and focus: go to a line, open a file at a line, or focus the terminal or editor.",
    parameters={
        "type": "object",
        "properties": {
            "action": {"type": "string", "enum": list(EDITOR_CONTROL_ACTIONS)},
            "filePath": {"type": "string", "description": "Workspace-relative or absolute path."},
            "line": {"type": "number", "description": "Zero-based line number."},
            "column": {"type": "number", "description": "Zero-based column."},
        },
        "required": ["action"],
        "additionalProperties": False,
    },
)


def _move_cursor(editor: EditorHandle, arguments: Mapping[str, Any]) -> Position:
    position = Position(
        normalize_line(arguments.get("line"), editor.line_count),
        normalize_column(arguments.get("column")),
    )
    editor.set_selection(position)
    editor.reveal(position)
    return position


def _resolve_path(file_path: str, root: Path | None) -> str:
    candidate = Path(file_path).expanduser()
    if candidate.is_absolute() or root is None:
        return str(candidate)
    return str(root / candidate)


async def execute_editor_control(arguments: Mapping[str, Any], context: ToolContext) -> ToolResult:
    action = string_arg(arguments, "action")
    host = context.host

    if action == "focus_terminal":
        await host.terminal.focus_terminal()
        return ToolResult.success({"action": action})

    if action == "focus_editor":
        await host.editor.focus_editor()
        return ToolResult.success({"action": action})

    if action == "goto_line":
        editor = host.editor.active_editor()
        if editor is None:
            raise NoActiveEditorError()
        position = _move_cursor(editor, arguments)
        return ToolResult.success({"action": action, "line": position.line, "column": position.column})

    if action == "open_file_at_line":
        file_path = string_arg(arguments, "filePath")
        if not file_path:
            raise MissingParameterError(parameter="filePath")
        resolved = _resolve_path(file_path, host.workspace.root)
        try:
            editor = await host.editor.open_document(resolved, preview=False)
        except OSError as exc:
            LOGGER.debug("Unable to open %s: %s", resolved, exc)
            raise FileNotFoundToolError(path=resolved) from exc
        position = _move_cursor(editor, arguments)
        return ToolResult.success(
            {"action": action, "filePath": resolved, "line": position.line, "column": position.column}
        )

    raise InvalidParameterError(message="Unsupported execute_editor_control action.", parameter="action")
