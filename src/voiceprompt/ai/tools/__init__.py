"""Routing tools and the machinery that dispatches them.

Example:
    from voiceprompt.ai.tools import ToolName, ToolResult
    from voiceprompt.ai.tools.tool_wiring import build_default_registry

    registry = build_default_registry()
    registry.has(ToolName.SEND_FEEDBACK)
"""

from .errors import ErrorCode, ToolError
from .registry import DuplicateToolError, IncompleteRegistryError, ToolNotFoundError, ToolRegistry
from .types import ToolName, ToolResult, ToolSpec

__all__ = [
    # errors.py
    "ErrorCode",
    "ToolError",
    # registry.py
    "ToolRegistry",
    "DuplicateToolError",
    "ToolNotFoundError",
    "IncompleteRegistryError",
    # types.py
    "ToolName",
    "ToolResult",
    "ToolSpec",
]
