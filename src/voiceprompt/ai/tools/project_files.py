"""Workspace file lookup by partial name or path."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Mapping

from .arguments import clamp_int, escape_glob, optional_int, string_arg
from .context import ToolContext
from .errors import MissingParameterError, NoWorkspaceError
from .host import ProcessError, ProcessRunner
from .types import ToolName, ToolResult, ToolSpec

__all__ = ["SEARCH_PROJECT_FILES_SPEC", "search_project_files", "list_files_with_ripgrep"]

LOGGER = logging.getLogger(__name__)

_DEFAULT_MAX_RESULTS = 20
_RIPGREP_FILE_LIMIT = 10_000

SEARCH_PROJECT_FILES_SPEC = ToolSpec(
    name=ToolName.SEARCH_PROJECT_FILES,
    description="Search files in the current workspace by partial name or path.",
    parameters={
        "type": "object",
        "properties": {
            "query": {"type": "string", "description": "Partial filename/path or keyword to search for."},
            "maxResults": {
                "type": "number",
                "description": "Maximum number of matches to return (default 20, min 1, max 100).",
            },
        },
        "required": ["query"],
        "additionalProperties": False,
    },
)


async def list_files_with_ripgrep(runner: ProcessRunner, root: Path) -> list[str]:
    """Return workspace-relative paths from ``rg --files``; empty when rg fails."""

    try:
        stdout = await runner.run(["rg", "--files"], cwd=root)
    except ProcessError as exc:
        LOGGER.debug("rg --files unavailable in %s: %s", root, exc)
        return []
    files: list[str] = []
    for line in stdout.splitlines():
        entry = line.strip()
        if entry:
            files.append(entry)
            if len(files) >= _RIPGREP_FILE_LIMIT:
                break
    return files


async def search_project_files(arguments: Mapping[str, Any], context: ToolContext) -> ToolResult:
    query = string_arg(arguments, "query")
    if not query:
        raise MissingParameterError(parameter="query")
    max_results = clamp_int(optional_int(arguments.get("maxResults"), _DEFAULT_MAX_RESULTS), 1, 100)

    workspace = context.host.workspace
    root = workspace.root
    if root is None:
        raise NoWorkspaceError()

    needle = query.lower()
    listed = await list_files_with_ripgrep(context.host.processes, root)
    matches = [path for path in listed if needle in path.lower()][:max_results]
    source = "ripgrep"
    if not matches:
        found = await workspace.find_files(f"**/*{escape_glob(query)}*", max_results)
        matches = [os.path.relpath(path, root) for path in found][:max_results]
        source = "glob"

    return ToolResult.success(
        {"query": query, "count": len(matches), "files": matches, "source": source},
        handled=False,
    )
