"""Keypress injection via ``ydotool``.

Key names map to Linux input-event keycodes. A single key becomes one
down/up pair; a single ``mod+...+key`` chord presses modifiers in order,
taps the key, then releases modifiers in reverse. Anything that is not
exactly one recognizable key or chord is typed as literal text.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Literal, Mapping

from .context import ToolContext
from .errors import BackendUnavailableError, MissingParameterError, UnsupportedPlatformError
from .host import ProcessError
from .types import ToolName, ToolResult, ToolSpec

__all__ = [
    "KeyPress",
    "KEYPRESS_SPEC",
    "execute_keypress",
    "keycode_for_key",
    "keycode_for_modifier",
    "parse_keypress",
    "strip_keypress_prefix",
]

LOGGER = logging.getLogger(__name__)

_PREFIX = re.compile(r"^\s*keypress\b\s*:?\s*", re.IGNORECASE)
_TEXT_PREFIX = re.compile(r"^text\s*:\s*(.*)$", re.IGNORECASE | re.DOTALL)
_RUNNER = "ydotool"

_NAMED_KEYS: dict[str, int] = {
    "enter": 96,
    "return": 96,
    "mainenter": 28,
    "esc": 1,
    "escape": 1,
    "tab": 15,
    "space": 57,
    "backspace": 14,
    "delete": 111,
    "del": 111,
    "insert": 110,
    "ins": 110,
    "home": 102,
    "end": 107,
    "pageup": 104,
    "pgup": 104,
    "pagedown": 109,
    "pgdn": 109,
    "up": 103,
    "down": 108,
    "left": 105,
    "right": 106,
    "f1": 59,
    "f2": 60,
    "f3": 61,
    "f4": 62,
    "f5": 63,
    "f6": 64,
    "f7": 65,
    "f8": 66,
    "f9": 67,
    "f10": 68,
    "f11": 87,
    "f12": 88,
}

_LETTERS: dict[str, int] = {
    "a": 30, "b": 48, "c": 46, "d": 32, "e": 18, "f": 33, "g": 34, "h": 35, "i": 23,
    "j": 36, "k": 37, "l": 38, "m": 50, "n": 49, "o": 24, "p": 25, "q": 16, "r": 19,
    "s": 31, "t": 20, "u": 22, "v": 47, "w": 17, "x": 45, "y": 21, "z": 44,
}

_DIGITS: dict[str, int] = {
    "1": 2, "2": 3, "3": 4, "4": 5, "5": 6, "6": 7, "7": 8, "8": 9, "9": 10, "0": 11,
}

_PUNCTUATION: dict[str, int] = {
    "-": 12, "=": 13, "[": 26, "]": 27, "\\": 43, ";": 39, "'": 40, "`": 41,
    ",": 51, ".": 52, "/": 53,
    "minus": 12, "equal": 13, "lbracket": 26, "rbracket": 27, "backslash": 43,
    "semicolon": 39, "apostrophe": 40, "grave": 41, "comma": 51, "dot": 52,
    "period": 52, "slash": 53,
}

_MODIFIERS: dict[str, int] = {
    "ctrl": 29,
    "control": 29,
    "shift": 42,
    "alt": 56,
    "super": 125,
    "meta": 125,
    "win": 125,
}


@dataclass(slots=True, frozen=True)
class KeyPress:
    """Encoded keypress request.

    ``sequence`` holds ydotool ``<code>:<state>`` tokens for keys and
    chords; ``text`` holds the literal string for text injection.
    """

    kind: Literal["key", "combo", "text"]
    sequence: tuple[str, ...] = ()
    text: str = ""

    def to_argv(self) -> list[str]:
        if self.kind == "text":
            return [_RUNNER, "type", self.text]
        return [_RUNNER, "key", *self.sequence]


def strip_keypress_prefix(value: str) -> str:
    return _PREFIX.sub("", value, count=1).strip()


def keycode_for_key(value: str) -> int | None:
    lower = value.lower()
    if lower in _NAMED_KEYS:
        return _NAMED_KEYS[lower]
    if len(lower) == 1:
        code = _LETTERS.get(lower)
        if code is None:
            code = _DIGITS.get(lower)
        if code is not None:
            return code
    return _PUNCTUATION.get(lower)


def keycode_for_modifier(value: str) -> int | None:
    return _MODIFIERS.get(value.lower())


def parse_keypress(value: str) -> KeyPress:
    """Encode ``value`` as a single key, a single chord, or literal text."""

    normalized = value.strip()
    text_match = _TEXT_PREFIX.match(normalized)
    if text_match:
        return KeyPress(kind="text", text=text_match.group(1))

    single = keycode_for_key(normalized)
    if single is not None:
        return KeyPress(kind="key", sequence=(f"{single}:1", f"{single}:0"))

    parts = [part.strip() for part in normalized.split("+")]
    if len(parts) >= 2 and all(parts):
        key_code = keycode_for_key(parts[-1])
        modifier_codes = [keycode_for_modifier(part) for part in parts[:-1]]
        if key_code is not None and all(code is not None for code in modifier_codes):
            mods = [code for code in modifier_codes if code is not None]
            sequence = (
                [f"{code}:1" for code in mods]
                + [f"{key_code}:1", f"{key_code}:0"]
                + [f"{code}:0" for code in reversed(mods)]
            )
            return KeyPress(kind="combo", sequence=tuple(sequence))

    return KeyPress(kind="text", text=normalized)


KEYPRESS_SPEC = ToolSpec(
    name=ToolName.EXECUTE_KEYPRESS,
    description="Send one key, one key chord, or literal text to the focused Linux application using ydotool.",
    parameters={
        "type": "object",
        "properties": {
            "keys": {
                "type": "string",
                "description": "One key or chord, e.g. Return, ctrl+d, ctrl+shift+p. Prefix with 'text:' to type literal text.",
            }
        },
        "required": ["keys"],
        "additionalProperties": False,
    },
)


async def execute_keypress(arguments: Mapping[str, Any], context: ToolContext) -> ToolResult:
    raw = arguments.get("keys")
    keys = strip_keypress_prefix(raw) if isinstance(raw, str) else ""
    if not keys:
        raise MissingParameterError(parameter="keys")
    if not context.host.platform.startswith("linux"):
        raise UnsupportedPlatformError(message="execute_keypress is Linux-only in this build.")

    parsed = parse_keypress(keys)
    try:
        await context.host.processes.run(parsed.to_argv())
    except ProcessError as exc:
        raise BackendUnavailableError(
            message=(
                "Failed to send keypress via ydotool. Ensure ydotoold is running and "
                f"YDOTOOL_SOCKET is set correctly. Details: {exc}"
            ),
        ) from exc
    LOGGER.debug("Sent %s keypress %r", parsed.kind, keys)
    return ToolResult.success({"keys": keys, "kind": parsed.kind, "runner": _RUNNER})
