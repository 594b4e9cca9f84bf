"""Registry mapping every :class:`ToolName` to its spec and handler."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from .types import ToolHandler, ToolName, ToolSpec

__all__ = [
    "ToolRegistry",
    "ToolRegistration",
    "DuplicateToolError",
    "ToolNotFoundError",
    "IncompleteRegistryError",
]

LOGGER = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Exceptions
# -----------------------------------------------------------------------------


class DuplicateToolError(Exception):
    """Raised when attempting to register a tool with a name that already exists."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Tool '{name}' is already registered")


class ToolNotFoundError(Exception):
    """Raised when a requested tool is not found in the registry."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Tool '{name}' not found")


class IncompleteRegistryError(Exception):
    """Raised when some :class:`ToolName` members have no handler."""

    def __init__(self, missing: list[ToolName]) -> None:
        self.missing = missing
        names = ", ".join(member.value for member in missing)
        super().__init__(f"No handler registered for: {names}")


# -----------------------------------------------------------------------------
# Registry
# -----------------------------------------------------------------------------


@dataclass(slots=True, frozen=True)
class ToolRegistration:
    """Record of a registered tool."""

    spec: ToolSpec
    handler: ToolHandler

    @property
    def name(self) -> ToolName:
        return self.spec.name


class ToolRegistry:
    """Registry for the router's closed tool set.

    Example:
        registry = ToolRegistry()
        registry.register(SEND_FEEDBACK_SPEC, send_feedback)
        registration = registry.get("send_feedback")
    """

    def __init__(self) -> None:
        self._tools: dict[ToolName, ToolRegistration] = {}

    def register(
        self,
        spec: ToolSpec,
        handler: ToolHandler,
        *,
        allow_override: bool = False,
    ) -> ToolRegistration:
        """Register ``handler`` under ``spec.name``.

        Raises:
            DuplicateToolError: If the name is taken and ``allow_override`` is False.
        """
        if spec.name in self._tools and not allow_override:
            raise DuplicateToolError(spec.name.value)
        registration = ToolRegistration(spec=spec, handler=handler)
        self._tools[spec.name] = registration
        LOGGER.debug("Registered tool: %s", spec.name.value)
        return registration

    def unregister(self, name: ToolName | str) -> bool:
        member = ToolName.parse(name) if isinstance(name, str) else name
        if member is not None and member in self._tools:
            del self._tools[member]
            return True
        return False

    def get(self, name: ToolName | str) -> ToolRegistration | None:
        """Return the registration for ``name`` or ``None`` for unknown names."""
        member = name if isinstance(name, ToolName) else ToolName.parse(name)
        if member is None:
            return None
        return self._tools.get(member)

    def get_required(self, name: ToolName | str) -> ToolRegistration:
        registration = self.get(name)
        if registration is None:
            raise ToolNotFoundError(str(getattr(name, "value", name)))
        return registration

    def has(self, name: ToolName | str) -> bool:
        return self.get(name) is not None

    def list_names(self) -> list[str]:
        return [member.value for member in self._tools]

    def list_specs(self) -> list[ToolSpec]:
        return [registration.spec for registration in self._tools.values()]

    def get_responses_tools(self) -> list[dict[str, Any]]:
        """Return tool definitions in the Responses API format."""
        return [spec.to_responses_tool() for spec in self.list_specs()]

    def ensure_complete(self) -> None:
        """Fail fast when a :class:`ToolName` member has no handler.

        Raises:
            IncompleteRegistryError: Listing every unregistered member.
        """
        missing = [member for member in ToolName if member not in self._tools]
        if missing:
            raise IncompleteRegistryError(missing)

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, (str, ToolName)) and self.has(name)
