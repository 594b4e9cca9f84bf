"""Classification of transport-level routing failures."""

from __future__ import annotations

import json
import logging
import re
from typing import Any

__all__ = ["RoutingError", "sanitize_for_log", "BODY_EXCERPT_LIMIT"]

LOGGER = logging.getLogger(__name__)

BODY_EXCERPT_LIMIT = 700
_DEFAULT_STATUS = 500
_WHITESPACE = re.compile(r"\s+")


def sanitize_for_log(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


class RoutingError(Exception):
    """Raised when the remote routing call itself fails.

    Tool failures never raise this; they are ordinary loop outcomes.

    Attributes:
        status_code: HTTP-like status, 500 when the failure carried none.
        sanitized_body: Whitespace-collapsed diagnostic excerpt.
    """

    def __init__(self, message: str, status_code: int = _DEFAULT_STATUS, sanitized_body: str = "") -> None:
        self.status_code = status_code
        self.sanitized_body = sanitized_body
        super().__init__(message)

    @property
    def message(self) -> str:
        return str(self.args[0]) if self.args else ""

    @classmethod
    def from_api_error(cls, api_url: str, model: str, error: BaseException | Any) -> "RoutingError":
        """Classify ``error`` and log it once."""

        if isinstance(error, RoutingError):
            return error
        status_code = _extract_status_code(error)
        if status_code is None:
            status_code = _DEFAULT_STATUS
        body = sanitize_for_log(_extract_error_body(error))[:BODY_EXCERPT_LIMIT]
        LOGGER.warning("Upstream %s url=%s model=%s: %s", status_code, api_url, model, body or "<empty>")
        return cls(
            f"Cloud command routing failed ({status_code}): {body or 'no response body'}",
            status_code,
            body,
        )


def _extract_status_code(error: Any) -> int | None:
    for attribute in ("status_code", "status"):
        value = getattr(error, attribute, None)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    response = getattr(error, "response", None)
    if response is not None:
        for attribute in ("status_code", "status"):
            value = getattr(response, attribute, None)
            if isinstance(value, int) and not isinstance(value, bool):
                return value
    return None


def _extract_error_body(error: Any) -> str:
    if error is None:
        return ""
    if isinstance(error, str):
        return error
    message = getattr(error, "message", None)
    if isinstance(message, str) and message.strip():
        return message
    if isinstance(error, BaseException):
        text = str(error)
        if text.strip():
            return text
    for key in ("body", "error", "data", "response", "cause"):
        value = getattr(error, key, None)
        if key == "cause" and value is None and isinstance(error, BaseException):
            value = error.__cause__
        if not value:
            continue
        rendered = _render(value)
        if rendered and rendered != "{}":
            return rendered
    return repr(error)


def _render(value: Any) -> str:
    if isinstance(value, str):
        return value
    try:
        text = getattr(value, "text", None)
    except Exception:  # unread streaming responses refuse .text
        text = None
    if isinstance(text, str):
        return text
    try:
        return json.dumps(value, default=str)
    except (TypeError, ValueError):
        return str(value)
