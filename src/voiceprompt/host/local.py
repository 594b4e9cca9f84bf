"""Headless host backed by the local filesystem and standard streams.

Editors are in-memory documents whose edits are written back to disk,
terminals print inserted commands instead of running them, and the
clipboard goes through ``pyperclip``.
"""

from __future__ import annotations

import asyncio
import inspect
import itertools
import logging
import re
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Hashable, Sequence, TextIO

import pyperclip

from ..ai.tools.arguments import Position
from ..ai.tools.host import (
    CommandContribution,
    HostCapabilities,
    KeybindingContribution,
    ProcessRunner,
    SubprocessRunner,
)
from ..editor.document_model import DocumentMetadata, DocumentState, SelectionRange, language_for_path

__all__ = [
    "LocalEditor",
    "LocalEditorHost",
    "LocalTerminal",
    "LocalTerminalHost",
    "PyperclipClipboard",
    "LocalCommandHost",
    "LocalWorkspace",
    "StreamNotifier",
    "LocalHost",
]

LOGGER = logging.getLogger(__name__)

_ESCAPED = re.compile(r"\\(.)")


# -----------------------------------------------------------------------------
# Editor
# -----------------------------------------------------------------------------


class LocalEditor:
    """:class:`EditorHandle` over a :class:`DocumentState`."""

    def __init__(self, document: DocumentState) -> None:
        self._document = document

    @property
    def document(self) -> DocumentState:
        return self._document

    @property
    def file_path(self) -> str | None:
        path = self._document.metadata.path
        return str(path) if path is not None else None

    @property
    def language_id(self) -> str:
        return self._document.metadata.language

    @property
    def line_count(self) -> int:
        return self._document.line_count

    def line_text(self, line: int) -> str:
        return self._document.line_text(line)

    @property
    def cursor(self) -> Position:
        return self._document.selection.active

    @property
    def selection(self) -> tuple[Position, Position]:
        return self._document.selection.ordered()

    def set_selection(self, anchor: Position, active: Position | None = None) -> None:
        anchor = self._document.clamp(anchor)
        active = self._document.clamp(active) if active is not None else anchor
        self._document.selection = SelectionRange(anchor=anchor, active=active)

    def reveal(self, position: Position) -> None:
        LOGGER.debug("Reveal %s:%d:%d", self.file_path or "<untitled>", position.line, position.column)

    async def replace(self, start: Position, end: Position, text: str) -> bool:
        previous_text = self._document.text
        previous_selection = self._document.selection
        previous_dirty = self._document.dirty
        try:
            self._document.replace_range(start, end, text)
        except ValueError:
            return False
        path = self._document.metadata.path
        if path is None:
            return True
        try:
            await asyncio.to_thread(path.write_text, self._document.text, encoding="utf-8")
        except OSError as exc:
            LOGGER.warning("Unable to write %s: %s", path, exc)
            self._document.update_text(previous_text)
            self._document.selection = previous_selection
            self._document.dirty = previous_dirty
            return False
        self._document.dirty = False
        return True


class LocalEditorHost:
    def __init__(self) -> None:
        self._editors: dict[Path, LocalEditor] = {}
        self._active: LocalEditor | None = None

    def active_editor(self) -> LocalEditor | None:
        return self._active

    async def open_document(
        self, path: str, *, preview: bool = False, preserve_focus: bool = False
    ) -> LocalEditor:
        resolved = Path(path).expanduser().resolve()
        editor = self._editors.get(resolved)
        if editor is None:
            text = await asyncio.to_thread(resolved.read_text, encoding="utf-8")
            metadata = DocumentMetadata(path=resolved, language=language_for_path(resolved))
            editor = LocalEditor(DocumentState(text=text, metadata=metadata))
            self._editors[resolved] = editor
        if not preserve_focus or self._active is None:
            self._active = editor
        LOGGER.debug("Opened %s (preview=%s)", resolved, preview)
        return editor

    async def focus_editor(self) -> None:
        LOGGER.debug("Editor focus requested")


# -----------------------------------------------------------------------------
# Terminal
# -----------------------------------------------------------------------------


class LocalTerminal:
    """Terminal that prints inserted text instead of executing it."""

    def __init__(self, session_id: Hashable, name: str, output: TextIO) -> None:
        self._session_id = session_id
        self._name = name
        self._output = output

    @property
    def session_id(self) -> Hashable:
        return self._session_id

    @property
    def name(self) -> str:
        return self._name

    def show(self, preserve_focus: bool = False) -> None:
        LOGGER.debug("Terminal %s shown (preserve_focus=%s)", self._name, preserve_focus)

    def send_text(self, text: str, *, execute: bool = False) -> None:
        suffix = "" if execute else "  # not executed"
        self._output.write(f"[{self._name}] $ {text}{suffix}\n")
        self._output.flush()


class LocalTerminalHost:
    def __init__(self, output: TextIO) -> None:
        self._output = output
        self._counter = itertools.count(1)
        self._terminals: list[LocalTerminal] = []
        self._active: LocalTerminal | None = None

    def active_terminal(self) -> LocalTerminal | None:
        return self._active

    def create_terminal(self) -> LocalTerminal:
        index = next(self._counter)
        terminal = LocalTerminal(session_id=f"local-{index}", name=f"voiceprompt {index}", output=self._output)
        self._terminals.append(terminal)
        self._active = terminal
        return terminal

    async def focus_terminal(self) -> None:
        if self._active is None:
            self.create_terminal()
        LOGGER.debug("Terminal focus requested")


# -----------------------------------------------------------------------------
# Clipboard / commands / workspace / notifications
# -----------------------------------------------------------------------------


class PyperclipClipboard:
    async def read_text(self) -> str:
        return await asyncio.to_thread(pyperclip.paste)

    async def write_text(self, text: str) -> None:
        await asyncio.to_thread(pyperclip.copy, text)


@dataclass(slots=True)
class _RegisteredCommand:
    handler: Callable[..., Any]
    contribution: CommandContribution


class LocalCommandHost:
    """In-process command registry."""

    def __init__(self) -> None:
        self._commands: dict[str, _RegisteredCommand] = {}
        self._keybindings: list[KeybindingContribution] = []

    def register(
        self,
        command_id: str,
        handler: Callable[..., Any],
        *,
        title: str | None = None,
        category: str | None = None,
        key: str | None = None,
    ) -> None:
        self._commands[command_id] = _RegisteredCommand(
            handler=handler,
            contribution=CommandContribution(command_id=command_id, title=title, category=category),
        )
        if key:
            self._keybindings.append(KeybindingContribution(command=command_id, key=key, source="local"))

    async def list_commands(self) -> list[str]:
        return list(self._commands)

    async def execute(self, command_id: str, *args: Any) -> Any:
        command = self._commands.get(command_id)
        if command is None:
            raise KeyError(f"command '{command_id}' not found")
        result = command.handler(*args)
        if inspect.isawaitable(result):
            result = await result
        return result

    def command_contributions(self) -> Sequence[CommandContribution]:
        return [command.contribution for command in self._commands.values()]

    def keybinding_contributions(self) -> Sequence[KeybindingContribution]:
        return list(self._keybindings)


def _glob_to_pathlib(pattern: str) -> str:
    # Backslash escapes become fnmatch bracket escapes where the character is special.
    def _replace(match: re.Match[str]) -> str:
        char = match.group(1)
        return f"[{char}]" if char in "*?[" else char

    return _ESCAPED.sub(_replace, pattern)


class LocalWorkspace:
    def __init__(self, root: Path | None) -> None:
        self._root = root.expanduser().resolve() if root is not None else None

    @property
    def root(self) -> Path | None:
        return self._root

    async def find_files(self, pattern: str, max_results: int) -> list[Path]:
        root = self._root
        if root is None:
            return []
        translated = _glob_to_pathlib(pattern)

        def _scan() -> list[Path]:
            found: list[Path] = []
            for candidate in root.glob(translated):
                if candidate.is_file():
                    found.append(candidate)
                    if len(found) >= max_results:
                        break
            return found

        return await asyncio.to_thread(_scan)


class StreamNotifier:
    def __init__(self, output: TextIO) -> None:
        self._output = output
        self.messages: list[str] = []

    def show_information(self, message: str) -> None:
        self.messages.append(message)
        self._output.write(f"voiceprompt: {message}\n")
        self._output.flush()


# -----------------------------------------------------------------------------
# Host bundle
# -----------------------------------------------------------------------------


class LocalHost:
    """Every host capability implemented for a terminal session."""

    def __init__(
        self,
        *,
        workspace: Path | None = None,
        output: TextIO | None = None,
        processes: ProcessRunner | None = None,
        platform: str | None = None,
    ) -> None:
        stream = output or sys.stdout
        self.editor = LocalEditorHost()
        self.terminal = LocalTerminalHost(stream)
        self.clipboard = PyperclipClipboard()
        self.commands = LocalCommandHost()
        self.workspace = LocalWorkspace(workspace)
        self.notifier = StreamNotifier(stream)
        self.processes = processes or SubprocessRunner()
        self.platform = platform or sys.platform
        self._register_builtin_commands()

    def capabilities(self) -> HostCapabilities:
        return HostCapabilities(
            editor=self.editor,
            terminal=self.terminal,
            clipboard=self.clipboard,
            commands=self.commands,
            workspace=self.workspace,
            notifier=self.notifier,
            processes=self.processes,
            platform=self.platform,
        )

    def _register_builtin_commands(self) -> None:
        self.commands.register(
            "workbench.action.files.save",
            self._save_active,
            title="Save",
            category="File",
            key="ctrl+s",
        )
        self.commands.register(
            "workbench.action.terminal.new",
            self.terminal.create_terminal,
            title="Create New Terminal",
            category="Terminal",
            key="ctrl+shift+`",
        )
        self.commands.register(
            "workbench.action.terminal.focus",
            self.terminal.focus_terminal,
            title="Focus Terminal",
            category="Terminal",
        )
        self.commands.register(
            "workbench.action.focusActiveEditorGroup",
            self.editor.focus_editor,
            title="Focus Active Editor Group",
            category="View",
        )

    async def _save_active(self) -> bool:
        editor = self.editor.active_editor()
        if editor is None or editor.document.metadata.path is None:
            return False
        path = editor.document.metadata.path
        await asyncio.to_thread(path.write_text, editor.document.text, encoding="utf-8")
        editor.document.dirty = False
        return True
