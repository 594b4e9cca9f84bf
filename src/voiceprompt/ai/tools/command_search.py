"""Fuzzy lookup over host commands and their keybindings."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Sequence

from thefuzz import fuzz

from .arguments import clamp_int, optional_int, string_arg
from .context import ToolContext
from .errors import MissingParameterError
from .host import CommandContribution, KeybindingContribution
from .types import ToolName, ToolResult, ToolSpec

__all__ = [
    "SEARCH_AVAILABLE_COMMANDS_SPEC",
    "CommandEntry",
    "CommandIndex",
    "search_available_commands",
]

LOGGER = logging.getLogger(__name__)

_DEFAULT_MAX_RESULTS = 20
_SCORE_CUTOFF = 60

SEARCH_AVAILABLE_COMMANDS_SPEC = ToolSpec(
    name=ToolName.SEARCH_AVAILABLE_COMMANDS,
    description=(
        "Fuzzy-search host commands and keyboard shortcuts by id, title, or key chord. "
        "Use the returned commandId with execute_host_command."
    ),
    parameters={
        "type": "object",
        "properties": {
            "query": {"type": "string", "description": "Words describing the command or shortcut."},
            "maxResults": {"type": "number", "description": "Maximum matches (default 20, min 1, max 100)."},
            "includeInternal": {
                "type": "boolean",
                "description": "Include internal command ids that start with an underscore.",
            },
        },
        "required": ["query"],
        "additionalProperties": False,
    },
)


@dataclass(slots=True, frozen=True)
class CommandEntry:
    """One searchable command or shortcut."""

    type: str
    command_id: str
    title: str | None = None
    category: str | None = None
    keys: str | None = None
    when: str | None = None
    source: str | None = None

    @property
    def internal(self) -> bool:
        return self.command_id.startswith("_")

    @property
    def haystack(self) -> str:
        parts = [self.type, self.keys, self.command_id, self.title, self.category, self.when]
        return " ".join(part for part in parts if part)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"type": self.type, "commandId": self.command_id}
        for key, value in (
            ("title", self.title),
            ("category", self.category),
            ("keys", self.keys),
            ("when", self.when),
            ("source", self.source),
        ):
            if value is not None:
                payload[key] = value
        return payload


class CommandIndex:
    """Search index rebuilt only when the command or shortcut set changes."""

    def __init__(self) -> None:
        self._signature: str | None = None
        self._entries: tuple[CommandEntry, ...] = ()

    def entries_for(
        self,
        command_ids: Sequence[str],
        contributions: Sequence[CommandContribution],
        keybindings: Sequence[KeybindingContribution],
        platform: str,
    ) -> tuple[CommandEntry, ...]:
        metadata = _metadata_by_id(contributions)
        shortcuts = _shortcut_entries(metadata, keybindings, platform)
        signature = _index_signature(command_ids, metadata, shortcuts)
        if signature != self._signature:
            commands = [
                CommandEntry(
                    type="command",
                    command_id=command_id,
                    title=metadata.get(command_id, (None, None))[0],
                    category=metadata.get(command_id, (None, None))[1],
                )
                for command_id in command_ids
            ]
            self._entries = tuple(commands) + tuple(shortcuts)
            self._signature = signature
            LOGGER.debug("Rebuilt command index with %d entries", len(self._entries))
        return self._entries

    @staticmethod
    def rank(
        entries: Sequence[CommandEntry],
        query: str,
        *,
        limit: int,
        include_internal: bool = False,
    ) -> list[CommandEntry]:
        scored: list[tuple[int, int, int, CommandEntry]] = []
        for position, entry in enumerate(entries):
            if entry.internal and not include_internal:
                continue
            haystack = entry.haystack
            score = max(fuzz.token_set_ratio(query, haystack), fuzz.partial_ratio(query.lower(), haystack.lower()))
            if score < _SCORE_CUTOFF:
                continue
            closeness = fuzz.ratio(query.lower(), (entry.title or entry.command_id).lower())
            scored.append((-score, -closeness, position, entry))
        scored.sort(key=lambda item: item[:3])
        return [item[3] for item in scored[:limit]]


_INDEX = CommandIndex()


def _metadata_by_id(contributions: Sequence[CommandContribution]) -> dict[str, tuple[str | None, str | None]]:
    metadata: dict[str, tuple[str | None, str | None]] = {}
    for item in contributions:
        if not item.command_id:
            continue
        title, category = metadata.get(item.command_id, (None, None))
        metadata[item.command_id] = (title or item.title, category or item.category)
    return metadata


def _index_signature(
    command_ids: Sequence[str],
    metadata: Mapping[str, tuple[str | None, str | None]],
    shortcuts: Sequence[CommandEntry],
) -> str:
    commands = sorted(f"{command_id}|{metadata.get(command_id, (None, None))}" for command_id in command_ids)
    bindings = sorted(
        f"{item.command_id}|{item.keys}|{item.when or ''}|{item.source or ''}|{item.title or ''}|{item.category or ''}"
        for item in shortcuts
    )
    return "\n".join(commands) + "\n---\n" + "\n".join(bindings)


def _shortcut_entries(
    metadata: Mapping[str, tuple[str | None, str | None]],
    keybindings: Sequence[KeybindingContribution],
    platform: str,
) -> list[CommandEntry]:
    entries: list[CommandEntry] = []
    for binding in keybindings:
        # A leading "-" removes a default binding rather than adding one.
        if not binding.command or binding.command.startswith("-"):
            continue
        keys = binding.keys_for(platform)
        if not keys:
            continue
        title, category = metadata.get(binding.command, (None, None))
        entries.append(
            CommandEntry(
                type="shortcut",
                command_id=binding.command,
                title=title,
                category=category,
                keys=keys,
                when=binding.when,
                source=binding.source,
            )
        )
    return entries


async def search_available_commands(arguments: Mapping[str, Any], context: ToolContext) -> ToolResult:
    query = string_arg(arguments, "query")
    if not query:
        raise MissingParameterError(parameter="query")
    max_results = clamp_int(optional_int(arguments.get("maxResults"), _DEFAULT_MAX_RESULTS), 1, 100)
    include_internal = arguments.get("includeInternal") is True

    commands = context.host.commands
    entries = _INDEX.entries_for(
        await commands.list_commands(),
        commands.command_contributions(),
        commands.keybinding_contributions(),
        context.host.platform,
    )
    ranked = CommandIndex.rank(entries, query, limit=max_results, include_internal=include_internal)
    return ToolResult.success(
        {"query": query, "count": len(ranked), "results": [entry.to_dict() for entry in ranked]},
        handled=False,
    )
