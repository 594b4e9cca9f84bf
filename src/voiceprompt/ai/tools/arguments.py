"""Argument coercion helpers shared by the routing tools.

Model-supplied arguments are loosely typed. These helpers never raise:
anything that is not a usable number collapses to a safe default.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any, Mapping

__all__ = [
    "Position",
    "clamp_int",
    "escape_glob",
    "normalize_column",
    "normalize_line",
    "optional_int",
    "position_after_insert",
    "string_arg",
]

_GLOB_SPECIAL = re.compile(r"([\[\]{}()*?!\\])")


@dataclass(slots=True, frozen=True)
class Position:
    """Zero-based line/column pair."""

    line: int
    column: int

    def to_dict(self) -> dict[str, int]:
        return {"line": self.line, "column": self.column}


def clamp_int(value: int, minimum: int, maximum: int) -> int:
    return min(max(value, minimum), maximum)


def _floor_number(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    if isinstance(value, float) and not math.isfinite(value):
        return 0
    return math.floor(value)


def normalize_line(value: Any, line_count: int) -> int:
    """Floor ``value`` and clamp it into ``[0, line_count - 1]``."""
    return clamp_int(_floor_number(value), 0, max(0, line_count - 1))


def normalize_column(value: Any) -> int:
    return max(0, _floor_number(value))


def optional_int(value: Any, default: int) -> int:
    """Floor numeric ``value`` or return ``default`` when it is not a number."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    if isinstance(value, float) and not math.isfinite(value):
        return default
    return math.floor(value)


def string_arg(arguments: Mapping[str, Any], key: str, *, strip: bool = True) -> str:
    """Return ``arguments[key]`` when it is a string, else an empty string."""
    value = arguments.get(key)
    if not isinstance(value, str):
        return ""
    return value.strip() if strip else value


def position_after_insert(start: Position, text: str) -> Position:
    """Return where the cursor lands after inserting ``text`` at ``start``."""
    lines = text.split("\n")
    if len(lines) == 1:
        return Position(start.line, start.column + len(text))
    return Position(start.line + len(lines) - 1, len(lines[-1]))


def escape_glob(value: str) -> str:
    return _GLOB_SPECIAL.sub(r"\\\1", value)
