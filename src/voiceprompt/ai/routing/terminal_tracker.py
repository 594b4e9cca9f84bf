"""Per-session terminal output capture.

Each terminal session owns a bounded line buffer guarded by its own lock.
Writers for different sessions never contend; the session map itself is
only locked while an entry is created or removed.
"""

from __future__ import annotations

import asyncio
import logging
import re
import threading
from collections import deque
from dataclasses import dataclass, field
from typing import Any, AsyncIterable, Hashable

__all__ = [
    "DEFAULT_BUFFER_LINES",
    "TerminalContextTracker",
    "normalize_terminal_chunk",
]

LOGGER = logging.getLogger(__name__)

DEFAULT_BUFFER_LINES = 800
_ANSI_CSI = re.compile(r"\x1b\[[0-?]*[ -/]*[@-~]")


def normalize_terminal_chunk(chunk: Any) -> list[str]:
    """Strip ANSI escapes, unify line endings, and return the non-empty lines."""

    if isinstance(chunk, (bytes, bytearray)):
        chunk = bytes(chunk).decode("utf-8", errors="replace")
    if not isinstance(chunk, str):
        return []
    text = _ANSI_CSI.sub("", chunk).replace("\r\n", "\n").replace("\r", "\n").strip()
    if not text:
        return []
    return [line for line in text.split("\n") if line]


@dataclass(slots=True)
class _SessionBuffer:
    lines: deque[str]
    lock: threading.Lock = field(default_factory=threading.Lock)
    captures: set[asyncio.Task[None]] = field(default_factory=set)


class TerminalContextTracker:
    """Bounded, per-session record of terminal commands and output."""

    def __init__(self, *, max_lines: int = DEFAULT_BUFFER_LINES) -> None:
        self._max_lines = max(1, int(max_lines))
        self._sessions: dict[Hashable, _SessionBuffer] = {}
        self._sessions_lock = threading.Lock()

    @property
    def max_lines(self) -> int:
        return self._max_lines

    # ------------------------------------------------------------------
    # Writers
    # ------------------------------------------------------------------
    def record_command(self, session: Hashable, command_text: str) -> None:
        """Record a command inserted or executed in ``session``."""

        self._append(session, [f"$ {command_text}"])

    def on_session_output_chunk(self, session: Hashable, raw_chunk: Any) -> None:
        """Append the printable lines of one raw output chunk."""

        try:
            lines = normalize_terminal_chunk(raw_chunk)
        except Exception:  # pragma: no cover - garbled input is dropped
            LOGGER.debug("Dropping unreadable terminal chunk for %r", session, exc_info=True)
            return
        if lines:
            self._append(session, lines)

    def on_execution_started(
        self,
        session: Hashable,
        command_line: str,
        output: AsyncIterable[Any],
    ) -> asyncio.Task[None]:
        """Record ``command_line`` and start capturing its output stream.

        Must be called from a running event loop. The returned task lives
        until the stream ends or the session closes.
        """

        self.record_command(session, command_line)
        task = asyncio.get_running_loop().create_task(
            self._capture(session, output), name=f"terminal-capture:{session!r}"
        )
        buffer = self._buffer_for(session)
        with buffer.lock:
            buffer.captures.add(task)
        task.add_done_callback(lambda done: self._forget_capture(session, done))
        return task

    def on_session_closed(self, session: Hashable) -> None:
        """Cancel capture for ``session`` and drop its buffer."""

        with self._sessions_lock:
            buffer = self._sessions.pop(session, None)
        if buffer is None:
            return
        with buffer.lock:
            captures = list(buffer.captures)
            buffer.captures.clear()
        for task in captures:
            task.cancel()
        LOGGER.debug("Terminal session %r closed; %d capture(s) cancelled", session, len(captures))

    async def aclose(self) -> None:
        """Cancel every running capture and wait for them to finish."""

        with self._sessions_lock:
            buffers = list(self._sessions.values())
        tasks: list[asyncio.Task[None]] = []
        for buffer in buffers:
            with buffer.lock:
                tasks.extend(buffer.captures)
                buffer.captures.clear()
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    # ------------------------------------------------------------------
    # Readers
    # ------------------------------------------------------------------
    def snapshot(
        self,
        session: Hashable | None,
        max_lines: int,
        *,
        name: str | None = None,
    ) -> dict[str, Any]:
        """Return the newest ``max_lines`` lines recorded for ``session``."""

        if session is None:
            return {"available": False, "reason": "No active terminal."}
        with self._sessions_lock:
            buffer = self._sessions.get(session)
        if buffer is None:
            lines: list[str] = []
        else:
            with buffer.lock:
                lines = list(buffer.lines)
        limit = max(0, int(max_lines))
        return {
            "available": True,
            "name": name if name is not None else str(session),
            "lineCount": len(lines),
            "lines": lines[-limit:] if limit else [],
            "source": "stream" if lines else "none",
        }

    def sessions(self) -> list[Hashable]:
        with self._sessions_lock:
            return list(self._sessions)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _buffer_for(self, session: Hashable) -> _SessionBuffer:
        with self._sessions_lock:
            buffer = self._sessions.get(session)
            if buffer is None:
                buffer = _SessionBuffer(lines=deque(maxlen=self._max_lines))
                self._sessions[session] = buffer
            return buffer

    def _append(self, session: Hashable, lines: list[str]) -> None:
        buffer = self._buffer_for(session)
        with buffer.lock:
            buffer.lines.extend(lines)

    async def _capture(self, session: Hashable, output: AsyncIterable[Any]) -> None:
        try:
            async for chunk in output:
                self.on_session_output_chunk(session, chunk)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            LOGGER.debug("Terminal capture for %r stopped: %s", session, exc)

    def _forget_capture(self, session: Hashable, task: asyncio.Task[None]) -> None:
        with self._sessions_lock:
            buffer = self._sessions.get(session)
        if buffer is None:
            return
        with buffer.lock:
            buffer.captures.discard(task)
