"""Default wiring of every routing tool into a registry."""

from __future__ import annotations

from .agent_handoff import EXECUTE_AGENT_HANDOFF_SPEC, execute_agent_handoff
from .clipboard import READ_CLIPBOARD_SPEC, WRITE_CLIPBOARD_SPEC, read_clipboard, write_clipboard
from .command_search import SEARCH_AVAILABLE_COMMANDS_SPEC, search_available_commands
from .editor_control import EDITOR_CONTROL_SPEC, execute_editor_control
from .editor_edit import APPLY_EDITOR_EDIT_SPEC, apply_editor_edit
from .feedback import SEND_FEEDBACK_SPEC, send_feedback
from .host_command import EXECUTE_HOST_COMMAND_SPEC, execute_host_command
from .keypress import KEYPRESS_SPEC, execute_keypress
from .project_files import SEARCH_PROJECT_FILES_SPEC, search_project_files
from .registry import ToolRegistry
from .terminal_command import INSERT_TERMINAL_COMMAND_SPEC, insert_terminal_command

__all__ = ["build_default_registry", "DEFAULT_TOOLS"]

DEFAULT_TOOLS = (
    (INSERT_TERMINAL_COMMAND_SPEC, insert_terminal_command),
    (EDITOR_CONTROL_SPEC, execute_editor_control),
    (APPLY_EDITOR_EDIT_SPEC, apply_editor_edit),
    (SEARCH_PROJECT_FILES_SPEC, search_project_files),
    (SEARCH_AVAILABLE_COMMANDS_SPEC, search_available_commands),
    (EXECUTE_HOST_COMMAND_SPEC, execute_host_command),
    (EXECUTE_AGENT_HANDOFF_SPEC, execute_agent_handoff),
    (KEYPRESS_SPEC, execute_keypress),
    (READ_CLIPBOARD_SPEC, read_clipboard),
    (WRITE_CLIPBOARD_SPEC, write_clipboard),
    (SEND_FEEDBACK_SPEC, send_feedback),
)


def build_default_registry() -> ToolRegistry:
    """Register all built-in tools and verify none is missing."""

    registry = ToolRegistry()
    for spec, handler in DEFAULT_TOOLS:
        registry.register(spec, handler)
    registry.ensure_complete()
    return registry
