"""Ambient editor/terminal context embedded in the first routing turn."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Callable, Hashable

from ..tools.arguments import Position
from ..tools.host import EditorHandle
from .terminal_tracker import TerminalContextTracker

__all__ = [
    "DEFAULT_LINES_BEFORE",
    "DEFAULT_LINES_AFTER",
    "DEFAULT_TERMINAL_LINES",
    "EditorSnapshot",
    "EditorSnapshotProvider",
    "snapshot_editor",
    "build_ambient_context",
]

DEFAULT_LINES_BEFORE = 60
DEFAULT_LINES_AFTER = 60
DEFAULT_TERMINAL_LINES = 80


@dataclass(slots=True, frozen=True)
class EditorSnapshot:
    """Read-only view of the focused editor around its cursor."""

    available: bool
    filePath: str | None = None
    languageId: str | None = None
    cursorLine: int = 0
    cursorCol: int = 0
    selectionStart: Position | None = None
    selectionEnd: Position | None = None
    windowStartLine: int = 0
    windowEndLine: int = 0
    windowText: str = ""
    reason: str | None = None

    @classmethod
    def unavailable(cls, reason: str) -> "EditorSnapshot":
        return cls(available=False, reason=reason)

    def to_dict(self) -> dict[str, Any]:
        if not self.available:
            return {"available": False, "reason": self.reason or "No active editor."}
        return {
            "available": True,
            "filePath": self.filePath,
            "languageId": self.languageId,
            "cursorLine": self.cursorLine,
            "cursorCol": self.cursorCol,
            "selectionStart": self.selectionStart.to_dict() if self.selectionStart else None,
            "selectionEnd": self.selectionEnd.to_dict() if self.selectionEnd else None,
            "windowStartLine": self.windowStartLine,
            "windowEndLine": self.windowEndLine,
            "windowText": self.windowText,
        }


EditorSnapshotProvider = Callable[[int, int], EditorSnapshot]


def snapshot_editor(editor: EditorHandle | None, lines_before: int, lines_after: int) -> EditorSnapshot:
    """Capture the window ``[cursor - before, cursor + after]`` of ``editor``."""

    if editor is None:
        return EditorSnapshot.unavailable("No active editor.")
    line_count = max(1, editor.line_count)
    cursor = editor.cursor
    start_line = max(0, cursor.line - max(0, lines_before))
    end_line = min(line_count - 1, cursor.line + max(0, lines_after))
    start_line = min(start_line, end_line)
    window = "\n".join(editor.line_text(line) for line in range(start_line, end_line + 1))
    selection_start, selection_end = editor.selection
    return EditorSnapshot(
        available=True,
        filePath=editor.file_path,
        languageId=editor.language_id,
        cursorLine=cursor.line,
        cursorCol=cursor.column,
        selectionStart=selection_start,
        selectionEnd=selection_end,
        windowStartLine=start_line,
        windowEndLine=end_line,
        windowText=window,
    )


def build_ambient_context(
    editor_snapshot_provider: EditorSnapshotProvider,
    terminal_tracker: TerminalContextTracker,
    *,
    active_session: Hashable | None,
    terminal_name: str | None = None,
    lines_before: int = DEFAULT_LINES_BEFORE,
    lines_after: int = DEFAULT_LINES_AFTER,
    terminal_max_lines: int = DEFAULT_TERMINAL_LINES,
) -> str:
    """Serialize the editor and terminal snapshots as pretty-printed JSON."""

    editor = editor_snapshot_provider(lines_before, lines_after)
    terminal = terminal_tracker.snapshot(active_session, terminal_max_lines, name=terminal_name)
    return json.dumps({"editor": editor.to_dict(), "terminal": terminal}, indent=2)
