"""Service layer helpers (settings, credentials)."""

from .codex_auth import CodexAuth, load_codex_auth
from .settings import SecretVault, Settings, SettingsStore, redact_secret

__all__ = [
    "CodexAuth",
    "load_codex_auth",
    "SecretVault",
    "Settings",
    "SettingsStore",
    "redact_secret",
]
