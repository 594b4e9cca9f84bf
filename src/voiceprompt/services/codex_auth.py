"""Reuse credentials written by the Codex CLI login flow."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

__all__ = ["CodexAuth", "DEFAULT_CODEX_AUTH_PATH", "load_codex_auth"]

LOGGER = logging.getLogger(__name__)

DEFAULT_CODEX_AUTH_PATH = Path.home() / ".codex" / "auth.json"


@dataclass(slots=True, frozen=True)
class CodexAuth:
    access_token: str
    account_id: str | None = None


def _clean(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def load_codex_auth(path: Path | None = None) -> CodexAuth | None:
    """Return the stored access token, or ``None`` when none is usable."""

    auth_path = path or DEFAULT_CODEX_AUTH_PATH
    try:
        payload = json.loads(auth_path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return None
    except (OSError, ValueError) as exc:
        LOGGER.debug("Ignoring unreadable Codex auth file %s: %s", auth_path, exc)
        return None

    tokens = payload.get("tokens") if isinstance(payload, dict) else None
    if not isinstance(tokens, dict):
        return None
    access_token = _clean(tokens.get("access_token"))
    if not access_token:
        return None
    return CodexAuth(access_token=access_token, account_id=_clean(tokens.get("account_id")) or None)
