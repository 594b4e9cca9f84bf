"""Logging setup for the ``voiceprompt`` CLI.

Stdout is reserved for the routing verdict, so handlers installed here write
either to the rotating log file or to stderr. The log directory and verbosity
come from :class:`~voiceprompt.services.settings.Settings` (``log_dir`` and
``debug_logging``).
"""

from __future__ import annotations

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import TYPE_CHECKING, TextIO

if TYPE_CHECKING:  # pragma: no cover
    from ..services.settings import Settings

__all__ = ["DEFAULT_LOG_DIR", "LOG_FILE_NAME", "configure_from_settings", "get_log_path", "setup_logging"]

DEFAULT_LOG_DIR = Path.home() / ".voiceprompt" / "logs"
LOG_FILE_NAME = "voiceprompt.log"

_FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_CONSOLE_FORMAT = "voiceprompt: %(levelname)s %(name)s: %(message)s"
_NOISY_LOGGERS: tuple[str, ...] = ("asyncio", "httpx", "httpcore", "openai")
_LOG_PATH: Path | None = None


def setup_logging(
    *,
    debug: bool = False,
    log_dir: Path | str | None = None,
    console: TextIO | None = None,
    max_bytes: int = 1_000_000,
    backup_count: int = 3,
) -> Path:
    """Route records to ``<log_dir>/voiceprompt.log`` and warnings to ``console``.

    The file receives INFO and above, or everything when ``debug`` is set.
    The console handler (stderr unless ``console`` is given) only shows
    warnings unless ``debug`` is set. Calling again replaces the handlers.
    """

    global _LOG_PATH
    target_dir = Path(log_dir or DEFAULT_LOG_DIR).expanduser()
    target_dir.mkdir(parents=True, exist_ok=True)
    log_path = target_dir / LOG_FILE_NAME
    level = logging.DEBUG if debug else logging.INFO

    file_handler = logging.handlers.RotatingFileHandler(
        log_path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

    console_handler = logging.StreamHandler(console if console is not None else sys.stderr)
    console_handler.setLevel(logging.DEBUG if debug else logging.WARNING)
    console_handler.setFormatter(logging.Formatter(_CONSOLE_FORMAT))

    logging.basicConfig(level=level, handlers=[file_handler, console_handler], force=True)
    logging.captureWarnings(True)
    for logger_name in _NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    _LOG_PATH = log_path
    return log_path


def configure_from_settings(settings: "Settings", *, console: TextIO | None = None) -> Path:
    """Apply ``settings.log_dir`` and ``settings.debug_logging``."""

    return setup_logging(
        debug=settings.debug_logging,
        log_dir=settings.log_dir or None,
        console=console,
    )


def get_log_path() -> Path | None:
    """Return the log file installed by the last :func:`setup_logging` call."""

    return _LOG_PATH
