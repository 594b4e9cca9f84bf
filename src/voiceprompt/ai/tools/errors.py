"""Standardized error types for routing tools.

Tools raise these errors; the dispatcher turns them into ``ok=False``
results that are fed back to the model instead of aborting the run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


# -----------------------------------------------------------------------------
# Error Code Constants
# -----------------------------------------------------------------------------

class ErrorCode:
    """Constants for error codes used in tool responses."""

    # Argument errors
    INVALID_PARAMETER = "invalid_parameter"
    MISSING_PARAMETER = "missing_parameter"

    # Editor errors
    NO_ACTIVE_EDITOR = "no_active_editor"
    FILE_NOT_FOUND = "file_not_found"
    INVALID_RANGE = "invalid_range"
    EDIT_REJECTED = "edit_rejected"

    # Workspace / host errors
    NO_WORKSPACE = "no_workspace"
    UNKNOWN_COMMAND = "unknown_command"
    COMMAND_FAILED = "command_failed"
    BACKEND_UNAVAILABLE = "backend_unavailable"
    UNSUPPORTED_PLATFORM = "unsupported_platform"


# -----------------------------------------------------------------------------
# Base Error Class
# -----------------------------------------------------------------------------

@dataclass
class ToolError(Exception):
    """Base exception class for all tool errors.

    Attributes:
        error_code: Machine-readable error identifier.
        message: Human-readable error description, shown to the model.
        details: Additional structured error information.
    """

    error_code: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        Exception.__init__(self, self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a dictionary for logging."""
        result: dict[str, Any] = {
            "error": self.error_code,
            "message": self.message,
        }
        if self.details:
            result["details"] = dict(self.details)
        return result

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"


# -----------------------------------------------------------------------------
# Argument Errors
# -----------------------------------------------------------------------------

@dataclass
class MissingParameterError(ToolError):
    """Error raised when a required argument is absent or blank."""

    error_code: str = field(default=ErrorCode.MISSING_PARAMETER)
    message: str = field(default="")
    details: dict[str, Any] = field(default_factory=dict)

    parameter: str = field(default="")

    def __post_init__(self) -> None:
        if not self.message:
            self.message = f"{self.parameter or 'parameter'} is required."
        super().__post_init__()


@dataclass
class InvalidParameterError(ToolError):
    """Error raised when an argument has an unsupported value."""

    error_code: str = field(default=ErrorCode.INVALID_PARAMETER)
    message: str = field(default="Invalid tool argument.")
    details: dict[str, Any] = field(default_factory=dict)

    parameter: str | None = field(default=None)


# -----------------------------------------------------------------------------
# Editor Errors
# -----------------------------------------------------------------------------

@dataclass
class NoActiveEditorError(ToolError):
    """Error raised when a tool needs an editor and none is focused."""

    error_code: str = field(default=ErrorCode.NO_ACTIVE_EDITOR)
    message: str = field(default="No active editor.")
    details: dict[str, Any] = field(default_factory=dict)


@dataclass
class FileNotFoundToolError(ToolError):
    """Error raised when a path cannot be opened.

    The message points the model at ``search_project_files`` so the next
    turn can look the path up and retry.
    """

    error_code: str = field(default=ErrorCode.FILE_NOT_FOUND)
    message: str = field(default="")
    details: dict[str, Any] = field(default_factory=dict)

    path: str = field(default="")

    def __post_init__(self) -> None:
        if not self.message:
            self.message = (
                f"File not found: {self.path}. Call search_project_files with a partial "
                "path and retry with the matched file."
            )
        super().__post_init__()


@dataclass
class InvalidRangeError(ToolError):
    """Error raised when an edit range ends before it starts."""

    error_code: str = field(default=ErrorCode.INVALID_RANGE)
    message: str = field(default="Invalid range: end before start.")
    details: dict[str, Any] = field(default_factory=dict)


@dataclass
class EditRejectedError(ToolError):
    """Error raised when the host refuses to apply an edit."""

    error_code: str = field(default=ErrorCode.EDIT_REJECTED)
    message: str = field(default="Failed to apply editor edit.")
    details: dict[str, Any] = field(default_factory=dict)


# -----------------------------------------------------------------------------
# Host Errors
# -----------------------------------------------------------------------------

@dataclass
class NoWorkspaceError(ToolError):
    """Error raised when a workspace-scoped tool runs without a workspace."""

    error_code: str = field(default=ErrorCode.NO_WORKSPACE)
    message: str = field(default="No workspace folder is open.")
    details: dict[str, Any] = field(default_factory=dict)


@dataclass
class UnknownCommandError(ToolError):
    """Error raised when a command id is not registered with the host."""

    error_code: str = field(default=ErrorCode.UNKNOWN_COMMAND)
    message: str = field(default="")
    details: dict[str, Any] = field(default_factory=dict)

    command_id: str = field(default="")

    def __post_init__(self) -> None:
        if not self.message:
            self.message = f"Unknown host command: {self.command_id}"
        super().__post_init__()


@dataclass
class CommandFailedError(ToolError):
    """Error raised when a host command or handoff step raises."""

    error_code: str = field(default=ErrorCode.COMMAND_FAILED)
    message: str = field(default="Host command failed.")
    details: dict[str, Any] = field(default_factory=dict)


@dataclass
class BackendUnavailableError(ToolError):
    """Error raised when a side-effect backend (clipboard, injector) fails."""

    error_code: str = field(default=ErrorCode.BACKEND_UNAVAILABLE)
    message: str = field(default="Backend unavailable.")
    details: dict[str, Any] = field(default_factory=dict)


@dataclass
class UnsupportedPlatformError(ToolError):
    """Error raised when a tool cannot run on the current platform."""

    error_code: str = field(default=ErrorCode.UNSUPPORTED_PLATFORM)
    message: str = field(default="Unsupported platform.")
    details: dict[str, Any] = field(default_factory=dict)


__all__ = [
    "ErrorCode",
    "ToolError",
    "MissingParameterError",
    "InvalidParameterError",
    "NoActiveEditorError",
    "FileNotFoundToolError",
    "InvalidRangeError",
    "EditRejectedError",
    "NoWorkspaceError",
    "UnknownCommandError",
    "CommandFailedError",
    "BackendUnavailableError",
    "UnsupportedPlatformError",
]
