"""
Backend that proxies through the external bridge process (see :mod:`verdant.bridge.server`).

The bridge keeps its own copy of the garden for prompting, so this backend pushes a compact
snapshot before every call.  Tool definitions are not sent: the bridge instructs its model to
express intent as ``action`` blocks, which the shared parser recovers.
"""

import logging
from typing import (
    Any,
    Dict,
    List,
    Mapping,
    Sequence,
)

import httpx

from verdant.backends.base import (
    BackendError,
    BaseBackend,
    register_backend,
)
from verdant.config import settings
from verdant.core.schema import ToolSpec

logger = logging.getLogger(__name__)


def message_text(message: Mapping[str, Any]) -> str:
    content = message.get("content")
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        for part in content:
            if isinstance(part, dict) and part.get("type") in ("text", "input_text"):
                return str(part.get("text", ""))
    return ""


def last_user_message(messages: Sequence[Mapping[str, Any]]) -> str:
    """Text of the most recent user-role message, or an empty string."""
    for message in reversed(messages):
        if message.get("role") == "user":
            return message_text(message)
    return ""


def to_output_items(data: Mapping[str, Any]) -> List[Dict[str, Any]]:
    """Convert a bridge ``{text, toolCalls}`` reply into the list-of-items shape."""
    items: List[Dict[str, Any]] = []
    if data.get("text"):
        items.append({"type": "text", "text": data["text"]})
    calls = data.get("toolCalls")
    for call in calls if isinstance(calls, list) else []:
        if not isinstance(call, dict):
            logger.warning("Skipping malformed bridge tool call: %r", call)
            continue
        items.append(
            {"type": "tool_use", "name": call.get("name"), "arguments": call.get("arguments") or {}}
        )
    return items


@register_backend("bridge")
class BridgeBackend(BaseBackend):
    """Bridge-process backend over HTTP."""

    requires_state_push = True

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        history_limit: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.BRIDGE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.BRIDGE_TIMEOUT
        self.history_limit = (
            history_limit if history_limit is not None else settings.BRIDGE_HISTORY_LIMIT
        )
        self._transport = transport

    def _client(self, timeout: float | None = None) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout if timeout is not None else self.timeout,
            transport=self._transport,
        )

    async def call(
        self,
        messages: Sequence[Mapping[str, Any]],
        system_prompt: str,
        tools: Sequence[ToolSpec],
        extra: Mapping[str, Any] | None = None,
    ) -> Any:
        extra = dict(extra or {})
        message = extra.pop("utterance", None) or last_user_message(messages)
        interaction = extra.pop("interaction", None)
        body = {
            "message": message,
            "context": extra,
            "interaction": interaction,
            "history": list(messages)[-self.history_limit :] if self.history_limit else [],
        }

        try:
            async with self._client() as client:
                resp = await client.post("/api/chat", json=body)
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPStatusError as e:
            logger.error("Bridge returned %d: %s", e.response.status_code, e.response.text)
            raise BackendError(f"Bridge server error: {e.response.status_code}") from e
        except httpx.HTTPError as e:
            logger.error("Bridge request error: %s", str(e))
            raise BackendError(f"Cannot reach bridge server: {e}") from e
        except ValueError as e:
            raise BackendError("Bridge server replied with a non-JSON body") from e

        logger.debug("Bridge response: %s", data)
        if not isinstance(data, dict):
            logger.warning("Bridge reply is not an object, passing it through as raw output")
            return data
        return {"output": to_output_items(data)}

    async def push_state(self, state: Dict[str, Any]) -> None:
        try:
            async with self._client() as client:
                resp = await client.post("/api/state", json=state)
                resp.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning("Failed to push state to bridge: %s", e)

    async def reset(self) -> None:
        try:
            async with self._client() as client:
                resp = await client.post("/api/reset")
                resp.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning("Failed to reset bridge conversation: %s", e)

    async def is_available(self) -> bool:
        try:
            async with self._client(timeout=2.0) as client:
                resp = await client.get("/api/health")
                return resp.is_success
        except httpx.HTTPError:
            return False
