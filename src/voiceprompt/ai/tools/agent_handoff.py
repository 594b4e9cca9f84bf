"""Hand a prompt to an external agent panel through a temporary file."""

from __future__ import annotations

import asyncio
import logging
import re
import time
from pathlib import Path
from typing import Any, Mapping

from .context import ToolContext
from .errors import CommandFailedError, MissingParameterError, UnknownCommandError
from .host import CommandHost, EditorHost
from .types import ToolName, ToolResult, ToolSpec

__all__ = ["EXECUTE_AGENT_HANDOFF_SPEC", "execute_agent_handoff", "strip_agent_prefix"]

LOGGER = logging.getLogger(__name__)

_PREFIX = re.compile(r"^\s*agent\b\s*:?\s*", re.IGNORECASE)

EXECUTE_AGENT_HANDOFF_SPEC = ToolSpec(
    name=ToolName.EXECUTE_AGENT_HANDOFF,
    description=(
        "Send an agent-prefixed request to the coding agent panel by focusing it and "
        "attaching the prompt as a temporary file to the thread."
    ),
    parameters={
        "type": "object",
        "properties": {
            "prompt": {"type": "string", "description": "Prompt text for the agent."},
        },
        "required": ["prompt"],
        "additionalProperties": False,
    },
)


def strip_agent_prefix(value: str) -> str:
    return _PREFIX.sub("", value, count=1)


def _write_prompt(path: Path, prompt: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(prompt, encoding="utf-8")


async def _attach_file(commands: CommandHost, editors: EditorHost, command_id: str, path: Path) -> None:
    text_path = str(path)
    uri = path.as_uri()
    payloads: list[Any] = [
        path,
        {"uri": uri},
        {"resource": uri},
        {"fileUri": uri},
        text_path,
        {"path": text_path},
    ]
    last_error: Exception | None = None
    for payload in payloads:
        try:
            await commands.execute(command_id, payload)
            return
        except Exception as exc:
            last_error = exc

    # Some implementations ignore arguments and read the active editor instead.
    try:
        await editors.open_document(text_path, preview=True, preserve_focus=True)
        await commands.execute(command_id)
    except Exception as exc:
        raise CommandFailedError(
            message=f"{command_id} failed. Last errors: [payload] {last_error} | [fallback] {exc}"
        ) from exc


async def execute_agent_handoff(arguments: Mapping[str, Any], context: ToolContext) -> ToolResult:
    raw = arguments.get("prompt")
    prompt = strip_agent_prefix(raw).strip() if isinstance(raw, str) else ""
    if not prompt:
        raise MissingParameterError(parameter="prompt")

    host = context.host
    available = set(await host.commands.list_commands())
    if context.agent_add_file_command not in available:
        raise UnknownCommandError(command_id=context.agent_add_file_command)

    if context.agent_focus_command in available:
        try:
            await host.commands.execute(context.agent_focus_command)
        except Exception as exc:
            raise CommandFailedError(message=f"Failed to focus agent panel: {exc}") from exc

    path = host.temp_dir / f"voice-prompt-agent-{int(time.time() * 1000)}.md"
    try:
        await asyncio.to_thread(_write_prompt, path, prompt)
    except OSError as exc:
        raise CommandFailedError(message=f"Failed to write prompt file: {exc}") from exc

    await _attach_file(host.commands, host.editor, context.agent_add_file_command, path)
    LOGGER.debug("Handed prompt to agent via %s", path)
    return ToolResult.success({"prompt": prompt, "via": context.agent_add_file_command, "file": str(path)})
