"""Host capability protocols consumed by the routing tools.

The router never talks to an editor, terminal, or clipboard directly. Each
host environment supplies objects satisfying these protocols, bundled in a
:class:`HostCapabilities` record.
"""

from __future__ import annotations

import asyncio
import logging
import sys
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Hashable, Protocol, Sequence, runtime_checkable

from .arguments import Position

__all__ = [
    "EditorHandle",
    "EditorHost",
    "TerminalHandle",
    "TerminalHost",
    "ClipboardHost",
    "CommandContribution",
    "KeybindingContribution",
    "CommandHost",
    "WorkspaceHost",
    "ProcessError",
    "ProcessRunner",
    "SubprocessRunner",
    "Notifier",
    "HostCapabilities",
]

LOGGER = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Editor
# -----------------------------------------------------------------------------


@runtime_checkable
class EditorHandle(Protocol):
    """A focused text editor with a cursor."""

    @property
    def file_path(self) -> str | None: ...

    @property
    def language_id(self) -> str: ...

    @property
    def line_count(self) -> int: ...

    def line_text(self, line: int) -> str: ...

    @property
    def cursor(self) -> Position: ...

    @property
    def selection(self) -> tuple[Position, Position]: ...

    def set_selection(self, anchor: Position, active: Position | None = None) -> None: ...

    def reveal(self, position: Position) -> None: ...

    async def replace(self, start: Position, end: Position, text: str) -> bool:
        """Replace ``[start, end)``; return ``False`` when the host rejects the edit."""
        ...


class EditorHost(Protocol):
    def active_editor(self) -> EditorHandle | None: ...

    async def open_document(
        self, path: str, *, preview: bool = False, preserve_focus: bool = False
    ) -> EditorHandle:
        """Open ``path`` and return its editor; raise ``OSError`` when it cannot be read."""
        ...

    async def focus_editor(self) -> None: ...


# -----------------------------------------------------------------------------
# Terminal
# -----------------------------------------------------------------------------


class TerminalHandle(Protocol):
    @property
    def session_id(self) -> Hashable: ...

    @property
    def name(self) -> str: ...

    def show(self, preserve_focus: bool = False) -> None: ...

    def send_text(self, text: str, *, execute: bool = False) -> None: ...


class TerminalHost(Protocol):
    def active_terminal(self) -> TerminalHandle | None: ...

    def create_terminal(self) -> TerminalHandle: ...

    async def focus_terminal(self) -> None: ...


# -----------------------------------------------------------------------------
# Clipboard / commands / workspace / notifications
# -----------------------------------------------------------------------------


class ClipboardHost(Protocol):
    async def read_text(self) -> str: ...

    async def write_text(self, text: str) -> None: ...


@dataclass(slots=True, frozen=True)
class CommandContribution:
    """Display metadata a host publishes for a command id."""

    command_id: str
    title: str | None = None
    category: str | None = None


@dataclass(slots=True, frozen=True)
class KeybindingContribution:
    """A keybinding entry; platform-specific keys override ``key``."""

    command: str
    key: str | None = None
    linux: str | None = None
    mac: str | None = None
    win: str | None = None
    when: str | None = None
    source: str | None = None

    def keys_for(self, platform: str) -> str | None:
        if platform.startswith("linux"):
            specific = self.linux
        elif platform == "darwin":
            specific = self.mac
        elif platform in ("win32", "cygwin"):
            specific = self.win
        else:
            specific = None
        if specific and specific.strip():
            return specific.strip()
        if self.key and self.key.strip():
            return self.key.strip()
        return None


class CommandHost(Protocol):
    async def list_commands(self) -> list[str]:
        """Return every registered command id, internal ones included."""
        ...

    async def execute(self, command_id: str, *args: Any) -> Any: ...

    def command_contributions(self) -> Sequence[CommandContribution]: ...

    def keybinding_contributions(self) -> Sequence[KeybindingContribution]: ...


class WorkspaceHost(Protocol):
    @property
    def root(self) -> Path | None: ...

    async def find_files(self, pattern: str, max_results: int) -> list[Path]:
        """Return absolute paths under :attr:`root` matching a glob ``pattern``."""
        ...


class Notifier(Protocol):
    def show_information(self, message: str) -> None: ...


# -----------------------------------------------------------------------------
# Processes
# -----------------------------------------------------------------------------


class ProcessError(Exception):
    """Raised when a child process cannot start or exits non-zero."""

    def __init__(self, message: str, *, returncode: int | None = None, stderr: str = "") -> None:
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(message)


class ProcessRunner(Protocol):
    async def run(self, argv: Sequence[str], *, cwd: Path | None = None) -> str:
        """Run ``argv`` to completion and return its stdout; raise :class:`ProcessError`."""
        ...


class SubprocessRunner:
    """:class:`ProcessRunner` backed by ``asyncio`` child processes."""

    def __init__(self, *, max_output_bytes: int = 8 * 1024 * 1024) -> None:
        self._max_output_bytes = max_output_bytes

    async def run(self, argv: Sequence[str], *, cwd: Path | None = None) -> str:
        if not argv:
            raise ProcessError("No command given.")
        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                cwd=str(cwd) if cwd is not None else None,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise ProcessError(f"{argv[0]}: {exc.strerror or exc}") from exc
        try:
            stdout, stderr = await process.communicate()
        except BaseException:
            if process.returncode is None:
                process.kill()
                await process.wait()
            raise
        error_text = stderr.decode("utf-8", errors="replace").strip()
        if process.returncode != 0:
            LOGGER.debug("%s exited with %s: %s", argv[0], process.returncode, error_text)
            raise ProcessError(
                error_text or f"{argv[0]} exited with status {process.returncode}",
                returncode=process.returncode,
                stderr=error_text,
            )
        return stdout[: self._max_output_bytes].decode("utf-8", errors="replace")


# -----------------------------------------------------------------------------
# Capability bundle
# -----------------------------------------------------------------------------


@dataclass(slots=True)
class HostCapabilities:
    """Everything a tool may touch in the host environment."""

    editor: EditorHost
    terminal: TerminalHost
    clipboard: ClipboardHost
    commands: CommandHost
    workspace: WorkspaceHost
    notifier: Notifier
    processes: ProcessRunner = field(default_factory=SubprocessRunner)
    platform: str = sys.platform
    temp_dir: Path = field(default_factory=lambda: Path(tempfile.gettempdir()))
