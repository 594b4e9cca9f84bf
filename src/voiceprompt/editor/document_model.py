"""Dataclasses representing an editor buffer addressed by line and column."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from ..ai.tools.arguments import Position

__all__ = ["DocumentMetadata", "SelectionRange", "DocumentState", "language_for_path"]

_LANGUAGE_BY_SUFFIX: dict[str, str] = {
    ".py": "python",
    ".pyi": "python",
    ".js": "javascript",
    ".jsx": "javascriptreact",
    ".ts": "typescript",
    ".tsx": "typescriptreact",
    ".json": "json",
    ".md": "markdown",
    ".rs": "rust",
    ".go": "go",
    ".c": "c",
    ".h": "c",
    ".cpp": "cpp",
    ".java": "java",
    ".sh": "shellscript",
    ".toml": "toml",
    ".yaml": "yaml",
    ".yml": "yaml",
    ".html": "html",
    ".css": "css",
}


def language_for_path(path: Path | None) -> str:
    if path is None:
        return "plaintext"
    return _LANGUAGE_BY_SUFFIX.get(path.suffix.lower(), "plaintext")


@dataclass(slots=True)
class DocumentMetadata:
    """Where the document lives on disk and how it is highlighted."""

    path: Optional[Path] = None
    language: str = "plaintext"


@dataclass(slots=True)
class SelectionRange:
    """Selection as anchor/active positions; equal positions form a caret."""

    anchor: Position = field(default_factory=lambda: Position(0, 0))
    active: Position = field(default_factory=lambda: Position(0, 0))

    def ordered(self) -> tuple[Position, Position]:
        first, second = self.anchor, self.active
        if (second.line, second.column) < (first.line, first.column):
            first, second = second, first
        return first, second


@dataclass(slots=True)
class DocumentState:
    """Text buffer plus cursor state for one open document."""

    text: str = ""
    metadata: DocumentMetadata = field(default_factory=DocumentMetadata)
    selection: SelectionRange = field(default_factory=SelectionRange)
    dirty: bool = False

    @property
    def line_count(self) -> int:
        return self.text.count("\n") + 1

    def line_text(self, line: int) -> str:
        lines = self.text.split("\n")
        if 0 <= line < len(lines):
            return lines[line]
        return ""

    def clamp(self, position: Position) -> Position:
        """Clamp ``position`` onto an existing line and column."""

        line = min(max(position.line, 0), self.line_count - 1)
        column = min(max(position.column, 0), len(self.line_text(line)))
        return Position(line, column)

    def offset_at(self, position: Position) -> int:
        clamped = self.clamp(position)
        lines = self.text.split("\n")
        return sum(len(lines[index]) + 1 for index in range(clamped.line)) + clamped.column

    def replace_range(self, start: Position, end: Position, new_text: str) -> None:
        """Replace the text between ``start`` and ``end`` with ``new_text``."""

        start_offset = self.offset_at(start)
        end_offset = self.offset_at(end)
        if end_offset < start_offset:
            raise ValueError("Range end precedes start")
        self.update_text(self.text[:start_offset] + new_text + self.text[end_offset:])

    def update_text(self, new_text: str) -> None:
        self.text = new_text
        self.dirty = True
