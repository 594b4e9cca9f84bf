"""Async Responses API client used by the intent router."""

from __future__ import annotations

import inspect
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Sequence

import httpx
from openai import APIConnectionError, APIError, APIStatusError, AsyncOpenAI, RateLimitError
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from .prompts import ROUTER_INSTRUCTIONS
from .routing.errors import RoutingError
from .routing.protocol import (
    ResponsesReply,
    collect_function_calls_from_stream,
    normalize_responses_base_url,
    normalize_responses_payload,
)

__all__ = ["ClientSettings", "ResponsesClient", "ACCOUNT_ID_HEADER"]

LOGGER = logging.getLogger(__name__)

ACCOUNT_ID_HEADER = "chatgpt-account-id"


@dataclass(slots=True)
class ClientSettings:
    """Subset of settings required to configure the Responses client."""

    base_url: str
    api_key: str
    model: str
    instructions: str = ROUTER_INSTRUCTIONS
    account_id: str | None = None
    request_timeout: float | None = 20.0
    max_retries: int = 1
    retry_min_seconds: float = 0.5
    retry_max_seconds: float = 4.0
    stream: bool = True
    default_headers: Mapping[str, str] | None = None
    debug_logging: bool = False


class ResponsesClient:
    """Sends one routing turn and returns the model's function calls.

    Every failure, including one raised while a stream is being read, is
    re-raised as :class:`RoutingError`.
    """

    def __init__(self, settings: ClientSettings, *, client: AsyncOpenAI | None = None) -> None:
        self._settings = settings
        self._base_url = normalize_responses_base_url(settings.base_url)
        self._client = client or self._build_client(settings)

    @property
    def settings(self) -> ClientSettings:
        return self._settings

    @property
    def endpoint(self) -> str:
        return f"{self._base_url}/responses"

    async def complete(
        self,
        input_items: Sequence[Mapping[str, Any]],
        *,
        tools: Sequence[Mapping[str, Any]] = (),
    ) -> ResponsesReply:
        """Send ``input_items`` with ``tools`` and collect the reply's function calls."""

        payload = self._build_payload(input_items, tools)
        LOGGER.debug(
            "Requesting %s reply via %s with %d input item(s)",
            "streamed" if self._settings.stream else "buffered",
            self._settings.model,
            len(payload["input"]),
        )
        if self._settings.debug_logging:
            self._log_payload(payload)

        try:
            reply = ResponsesReply()
            async for attempt in self._retrying():
                with attempt:
                    reply = await self._request(payload)
        except Exception as exc:
            raise RoutingError.from_api_error(self.endpoint, self._settings.model, exc) from exc

        LOGGER.debug("Reply %s carried %d function call(s)", reply.id, len(reply.output))
        return reply

    async def _request(self, payload: Dict[str, Any]) -> ResponsesReply:
        response = await self._client.responses.create(**payload)
        if not self._settings.stream:
            return normalize_responses_payload(response)
        try:
            return await collect_function_calls_from_stream(response)
        finally:
            await _close_quietly(response)

    def _build_client(self, settings: ClientSettings) -> AsyncOpenAI:
        headers = dict(settings.default_headers) if settings.default_headers else {}
        if settings.account_id:
            headers[ACCOUNT_ID_HEADER] = settings.account_id
        return AsyncOpenAI(
            api_key=settings.api_key,
            base_url=self._base_url,
            timeout=settings.request_timeout,
            max_retries=0,
            default_headers=headers or None,
        )

    def _build_payload(
        self,
        input_items: Sequence[Mapping[str, Any]],
        tools: Sequence[Mapping[str, Any]],
    ) -> Dict[str, Any]:
        if not input_items:
            raise ValueError("At least one input item is required")
        return {
            "model": self._settings.model,
            "instructions": self._settings.instructions,
            "store": False,
            "stream": self._settings.stream,
            "input": [dict(item) for item in input_items],
            "tools": [dict(tool) for tool in tools],
            "tool_choice": "auto",
            "parallel_tool_calls": False,
        }

    def _retrying(self) -> AsyncRetrying:
        return AsyncRetrying(
            reraise=True,
            stop=stop_after_attempt(max(1, self._settings.max_retries)),
            wait=wait_exponential(
                multiplier=self._settings.retry_min_seconds,
                max=self._settings.retry_max_seconds,
            ),
            retry=retry_if_exception_type(
                (
                    APIError,
                    APIStatusError,
                    APIConnectionError,
                    RateLimitError,
                    httpx.TimeoutException,
                )
            ),
        )

    def _log_payload(self, payload: Mapping[str, Any]) -> None:
        try:
            serialized = json.dumps(payload, ensure_ascii=False, indent=2)
        except (TypeError, ValueError):
            LOGGER.debug("Routing payload (unserializable): %s", payload)
        else:
            LOGGER.debug("Routing payload:\n%s", serialized)

    async def aclose(self) -> None:
        """Close the underlying OpenAI client to release network resources."""

        close = getattr(self._client, "close", None)
        if close is None:
            return
        try:
            result = close()
        except Exception as exc:  # pragma: no cover - defensive guard
            LOGGER.debug("Responses client close failed to start: %s", exc)
            return
        if inspect.isawaitable(result):
            await result


async def _close_quietly(stream: Any) -> None:
    close = getattr(stream, "close", None) or getattr(stream, "aclose", None)
    if close is None:
        return
    try:
        result = close()
        if inspect.isawaitable(result):
            await result
    except Exception:  # pragma: no cover - best effort
        LOGGER.debug("Failed to close response stream", exc_info=True)
