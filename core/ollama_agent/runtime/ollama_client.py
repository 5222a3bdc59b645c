"""
HTTP client for a local Ollama server.
Lists models and runs chat completions, whole or streamed as newline-delimited JSON.
"""

import json
from dataclasses import dataclass, field
from typing import Any, AsyncGenerator, Optional

import httpx

from ollama_agent.config import OLLAMA_BASE_URL, PROBE_TIMEOUT_S
from ollama_agent.utils.logging import logger


class OllamaConnectionError(Exception):
    """Transport-level failure talking to Ollama: network error or non-success status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


@dataclass
class ToolCall:
    """A tool invocation requested by the model."""

    name: str
    arguments: dict[str, Any] = field(default_factory=dict)


@dataclass
class ChatIncrement:
    """One parsed reply object: a stream line, or the whole non-streamed reply."""

    content: str = ""
    tool_calls: list[ToolCall] = field(default_factory=list)
    done: bool = False


def _parse_arguments(raw: Any) -> dict[str, Any]:
    if isinstance(raw, dict):
        return raw
    if isinstance(raw, str) and raw.strip():
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"Failed to parse tool arguments: {raw[:80]}")
            return {}
        return parsed if isinstance(parsed, dict) else {}
    return {}


def parse_tool_calls(raw: Any) -> list[ToolCall]:
    if not isinstance(raw, list):
        return []
    calls = []
    for item in raw:
        function = item.get("function") if isinstance(item, dict) else None
        if not isinstance(function, dict) or not function.get("name"):
            continue
        calls.append(ToolCall(name=str(function["name"]), arguments=_parse_arguments(function.get("arguments"))))
    return calls


def parse_reply(data: Any) -> ChatIncrement:
    """Pull content and tool calls out of a decoded reply object."""
    if not isinstance(data, dict):
        return ChatIncrement()
    message = data.get("message") or {}
    if not isinstance(message, dict):
        message = {}
    content = message.get("content")
    return ChatIncrement(
        content=content if isinstance(content, str) else "",
        tool_calls=parse_tool_calls(message.get("tool_calls")),
        done=bool(data.get("done", False)),
    )


def parse_chat_line(line: str) -> Optional[ChatIncrement]:
    """Parse one NDJSON line. Returns None for anything that is not a JSON object."""
    try:
        data = json.loads(line)
    except json.JSONDecodeError:
        return None
    if not isinstance(data, dict):
        return None
    return parse_reply(data)


class OllamaClient:
    """
    Thin async wrapper over the Ollama REST API.

    Every httpx failure is re-raised as OllamaConnectionError so callers deal
    with a single exception type. Chat requests carry no timeout.
    """

    def __init__(
        self,
        base_url: str = OLLAMA_BASE_URL,
        probe_timeout: float = PROBE_TIMEOUT_S,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.probe_timeout = probe_timeout
        self.client = httpx.AsyncClient(base_url=self.base_url, timeout=None, transport=transport)

    async def list_models(self) -> dict[str, Any]:
        """GET /api/tags."""
        try:
            resp = await self.client.get("/api/tags", timeout=self.probe_timeout)
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPStatusError as exc:
            raise OllamaConnectionError(
                f"HTTP error! status: {exc.response.status_code}", exc.response.status_code
            ) from exc
        except httpx.HTTPError as exc:
            raise OllamaConnectionError(f"Cannot reach Ollama at {self.base_url}: {exc}") from exc
        except ValueError as exc:
            raise OllamaConnectionError(f"Invalid model list from {self.base_url}") from exc

    async def chat(self, payload: dict[str, Any]) -> ChatIncrement:
        """POST /api/chat with ``stream: false`` and return the whole reply."""
        try:
            resp = await self.client.post("/api/chat", json=payload)
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError as exc:
            raise OllamaConnectionError(
                f"HTTP error! status: {exc.response.status_code}", exc.response.status_code
            ) from exc
        except httpx.HTTPError as exc:
            raise OllamaConnectionError(f"Chat request failed: {exc}") from exc
        except ValueError as exc:
            raise OllamaConnectionError("Chat reply was not valid JSON") from exc
        return parse_reply(data)

    async def chat_stream(self, payload: dict[str, Any]) -> AsyncGenerator[ChatIncrement, None]:
        """
        POST /api/chat with ``stream: true``.

        Yields one ChatIncrement per parseable line, in arrival order. Lines
        that are not JSON objects are skipped.
        """
        try:
            async with self.client.stream("POST", "/api/chat", json=payload) as resp:
                resp.raise_for_status()
                async for line in resp.aiter_lines():
                    if not line.strip():
                        continue
                    increment = parse_chat_line(line)
                    if increment is None:
                        logger.debug(f"Skipping invalid stream line: {line[:80]}")
                        continue
                    yield increment
        except httpx.HTTPStatusError as exc:
            raise OllamaConnectionError(
                f"HTTP error! status: {exc.response.status_code}", exc.response.status_code
            ) from exc
        except httpx.HTTPError as exc:
            raise OllamaConnectionError(f"Chat stream failed: {exc}") from exc

    async def close(self) -> None:
        await self.client.aclose()
