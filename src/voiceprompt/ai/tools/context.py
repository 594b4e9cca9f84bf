"""Per-run context handed to every tool handler."""

from __future__ import annotations

from dataclasses import dataclass

from ..routing.terminal_tracker import TerminalContextTracker
from .host import HostCapabilities

__all__ = ["ToolContext", "DEFAULT_AGENT_FOCUS_COMMAND", "DEFAULT_AGENT_ADD_FILE_COMMAND"]

DEFAULT_AGENT_FOCUS_COMMAND = "chatgpt.sidebarView.focus"
DEFAULT_AGENT_ADD_FILE_COMMAND = "chatgpt.addFileToThread"


@dataclass(slots=True)
class ToolContext:
    """Host capabilities plus the engine-owned terminal tracker.

    Attributes:
        host: Editor, terminal, clipboard, command, and workspace access.
        terminal_tracker: Buffer that records inserted terminal commands.
        agent_focus_command: Command that reveals the agent panel, if registered.
        agent_add_file_command: Command that attaches a file to the agent thread.
    """

    host: HostCapabilities
    terminal_tracker: TerminalContextTracker
    agent_focus_command: str = DEFAULT_AGENT_FOCUS_COMMAND
    agent_add_file_command: str = DEFAULT_AGENT_ADD_FILE_COMMAND
