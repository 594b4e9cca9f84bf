"""Shared pytest fixtures."""

from __future__ import annotations

import logging
import os
from pathlib import Path

import pytest

from voiceprompt.ai.tools import command_search
from voiceprompt.utils import logging as logging_utils


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep settings, logs, and env overrides away from the real home directory."""

    for name in list(os.environ):
        if name.startswith("VOICEPROMPT_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(logging_utils, "DEFAULT_LOG_DIR", tmp_path / "logs")
    monkeypatch.setattr(command_search, "_INDEX", command_search.CommandIndex())
    monkeypatch.setattr(logging_utils, "_LOG_PATH", None)


@pytest.fixture(autouse=True)
def _reset_root_logging():
    yield
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()


@pytest.fixture
def sample_source() -> str:
    return "\n".join(f"line {index}" for index in range(10))
