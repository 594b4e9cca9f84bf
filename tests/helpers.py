"""Shared test helpers and stub classes.

This module contains reusable host fakes and scripted reply sources used
across multiple test files. Import from here instead of duplicating these
classes in individual test files.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Hashable, Mapping, Sequence

from voiceprompt.ai.routing.protocol import FunctionCall, ResponsesReply
from voiceprompt.ai.routing.terminal_tracker import TerminalContextTracker
from voiceprompt.ai.tools.arguments import Position
from voiceprompt.ai.tools.context import ToolContext
from voiceprompt.ai.tools.host import (
    CommandContribution,
    HostCapabilities,
    KeybindingContribution,
    ProcessError,
)
from voiceprompt.editor.document_model import DocumentMetadata, DocumentState
from voiceprompt.host.local import LocalEditor


class FakeEditorHost:
    """Editor host with an optional active editor and a table of openable files."""

    def __init__(self, editor: LocalEditor | None = None, files: Mapping[str, str] | None = None) -> None:
        self.editor = editor
        self.files = dict(files or {})
        self.opened: list[tuple[str, bool, bool]] = []
        self.focus_calls = 0

    def active_editor(self) -> LocalEditor | None:
        return self.editor

    async def open_document(self, path: str, *, preview: bool = False, preserve_focus: bool = False) -> LocalEditor:
        self.opened.append((path, preview, preserve_focus))
        if path not in self.files:
            raise FileNotFoundError(path)
        editor = make_editor(self.files[path])
        if not preserve_focus:
            self.editor = editor
        return editor

    async def focus_editor(self) -> None:
        self.focus_calls += 1


class FakeTerminal:
    def __init__(self, session_id: Hashable = "term-1", name: str = "bash") -> None:
        self._session_id = session_id
        self._name = name
        self.sent: list[tuple[str, bool]] = []
        self.shown = 0

    @property
    def session_id(self) -> Hashable:
        return self._session_id

    @property
    def name(self) -> str:
        return self._name

    def show(self, preserve_focus: bool = False) -> None:
        self.shown += 1

    def send_text(self, text: str, *, execute: bool = False) -> None:
        self.sent.append((text, execute))


class FakeTerminalHost:
    def __init__(self, terminal: FakeTerminal | None = None) -> None:
        self.terminal = terminal
        self.created: list[FakeTerminal] = []
        self.focus_calls = 0

    def active_terminal(self) -> FakeTerminal | None:
        return self.terminal

    def create_terminal(self) -> FakeTerminal:
        terminal = FakeTerminal(session_id=f"new-{len(self.created) + 1}", name="voiceprompt")
        self.created.append(terminal)
        self.terminal = terminal
        return terminal

    async def focus_terminal(self) -> None:
        self.focus_calls += 1


class FakeClipboard:
    def __init__(self, text: str = "", *, fail: bool = False) -> None:
        self.text = text
        self.fail = fail

    async def read_text(self) -> str:
        if self.fail:
            raise RuntimeError("clipboard offline")
        return self.text

    async def write_text(self, text: str) -> None:
        if self.fail:
            raise RuntimeError("clipboard offline")
        self.text = text


class FakeCommandHost:
    """Command host whose handlers are plain callables keyed by id."""

    def __init__(
        self,
        handlers: Mapping[str, Callable[..., Any]] | None = None,
        *,
        contributions: Sequence[CommandContribution] = (),
        keybindings: Sequence[KeybindingContribution] = (),
    ) -> None:
        self.handlers = dict(handlers or {})
        self.contributions = list(contributions)
        self.keybindings = list(keybindings)
        self.executed: list[tuple[str, tuple[Any, ...]]] = []

    async def list_commands(self) -> list[str]:
        return list(self.handlers)

    async def execute(self, command_id: str, *args: Any) -> Any:
        self.executed.append((command_id, args))
        return self.handlers[command_id](*args)

    def command_contributions(self) -> Sequence[CommandContribution]:
        return self.contributions

    def keybinding_contributions(self) -> Sequence[KeybindingContribution]:
        return self.keybindings


class FakeWorkspace:
    def __init__(self, root: Path | None = None, found: Sequence[Path] = ()) -> None:
        self._root = root
        self.found = list(found)
        self.patterns: list[str] = []

    @property
    def root(self) -> Path | None:
        return self._root

    async def find_files(self, pattern: str, max_results: int) -> list[Path]:
        self.patterns.append(pattern)
        return self.found[:max_results]


class FakeNotifier:
    def __init__(self) -> None:
        self.messages: list[str] = []

    def show_information(self, message: str) -> None:
        self.messages.append(message)


class FakeProcessRunner:
    """Records argv lists; returns ``stdout`` or raises ``ProcessError`` when ``error`` is set."""

    def __init__(self, stdout: str = "", *, error: str | None = None) -> None:
        self.stdout = stdout
        self.error = error
        self.calls: list[tuple[list[str], Path | None]] = []

    async def run(self, argv: Sequence[str], *, cwd: Path | None = None) -> str:
        self.calls.append((list(argv), cwd))
        if self.error is not None:
            raise ProcessError(self.error, returncode=1, stderr=self.error)
        return self.stdout


def make_editor(text: str, *, path: Path | None = None, cursor: Position | None = None) -> LocalEditor:
    """Return an in-memory editor; pass ``path`` only when writes may hit disk."""

    metadata = DocumentMetadata(path=path, language="python" if path and path.suffix == ".py" else "plaintext")
    editor = LocalEditor(DocumentState(text=text, metadata=metadata))
    if cursor is not None:
        editor.set_selection(cursor)
    return editor


def make_context(
    *,
    editor: FakeEditorHost | None = None,
    terminal: FakeTerminalHost | None = None,
    clipboard: FakeClipboard | None = None,
    commands: FakeCommandHost | None = None,
    workspace: FakeWorkspace | None = None,
    notifier: FakeNotifier | None = None,
    processes: FakeProcessRunner | None = None,
    platform: str = "linux",
    temp_dir: Path | None = None,
    tracker: TerminalContextTracker | None = None,
) -> ToolContext:
    host = HostCapabilities(
        editor=editor or FakeEditorHost(),
        terminal=terminal or FakeTerminalHost(),
        clipboard=clipboard or FakeClipboard(),
        commands=commands or FakeCommandHost(),
        workspace=workspace or FakeWorkspace(),
        notifier=notifier or FakeNotifier(),
        processes=processes or FakeProcessRunner(),
        platform=platform,
    )
    if temp_dir is not None:
        host.temp_dir = temp_dir
    return ToolContext(host=host, terminal_tracker=tracker or TerminalContextTracker())


def function_call(name: str, arguments: Mapping[str, Any] | str | None = None, *, call_id: str | None = "c1") -> FunctionCall:
    raw = arguments if isinstance(arguments, str) or arguments is None else json.dumps(arguments)
    return FunctionCall(name=name, arguments=raw, id=f"fc_{call_id}" if call_id else None, call_id=call_id)


def reply(*calls: FunctionCall, response_id: str = "resp_1") -> ResponsesReply:
    return ResponsesReply(id=response_id, output=tuple(calls))


class FakeReplySource:
    """Scripted :class:`ReplySource`; repeats the last reply once the script runs out."""

    def __init__(self, replies: Sequence[ResponsesReply | BaseException]) -> None:
        self.replies = list(replies)
        self.requests: list[tuple[list[dict[str, Any]], list[dict[str, Any]]]] = []

    async def complete(
        self,
        input_items: Sequence[Mapping[str, Any]],
        *,
        tools: Sequence[Mapping[str, Any]] = (),
    ) -> ResponsesReply:
        self.requests.append(([dict(item) for item in input_items], [dict(tool) for tool in tools]))
        index = min(len(self.requests) - 1, len(self.replies) - 1)
        outcome = self.replies[index]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome
