"""Backend that talks directly to a hosted model endpoint over HTTP."""

import asyncio
import logging
from typing import (
    Any,
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


@register_backend("hosted")
class HostedBackend(BaseBackend):
    """
    Hosted-model backend with an httpx client.

    The reply body is returned essentially verbatim; tool and context data travel inline in the
    request, so no state push is needed.
    """

    def __init__(
        self,
        url: str | None = None,
        token: str | None = None,
        model: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.url = url or settings.HOSTED_API_URL
        self.token = token if token is not None else settings.HOSTED_API_TOKEN
        self.model = model or settings.HOSTED_MODEL
        self.timeout = timeout if timeout is not None else settings.HOSTED_TIMEOUT
        self.max_retries = max(
            0, max_retries if max_retries is not None else settings.HOSTED_MAX_RETRIES
        )
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def call(
        self,
        messages: Sequence[Mapping[str, Any]],
        system_prompt: str,
        tools: Sequence[ToolSpec],
        extra: Mapping[str, Any] | None = None,
    ) -> Any:
        payload = {
            "model": self.model,
            "instructions": system_prompt,
            "input": list(messages),
            "tools": [tool.to_api() for tool in tools],
        }

        for attempt in range(self.max_retries + 1):
            try:
                async with httpx.AsyncClient(
                    timeout=self.timeout, transport=self._transport
                ) as client:
                    resp = await client.post(self.url, json=payload, headers=self._headers())
                    resp.raise_for_status()
            except httpx.ConnectError as e:
                # On connection refused, retry with exponential backoff
                if attempt < self.max_retries:
                    retry_delay = 0.5 * (2**attempt)  # 0.5s, 1s, 2s...
                    logger.info(
                        "Model endpoint unreachable, retrying in %.1f seconds (attempt %d/%d)...",
                        retry_delay,
                        attempt + 1,
                        self.max_retries + 1,
                    )
                    await asyncio.sleep(retry_delay)
                    continue
                logger.error("Hosted backend connection error: %s", str(e))
                raise BackendError(f"Cannot reach model endpoint: {e}") from e
            except httpx.HTTPStatusError as e:
                logger.error(
                    "Hosted backend returned %d: %s", e.response.status_code, e.response.text
                )
                raise BackendError(f"Model endpoint returned {e.response.status_code}") from e
            except httpx.HTTPError as e:
                logger.error("Hosted backend request error: %s", str(e))
                raise BackendError(f"Error calling model endpoint: {e}") from e

            try:
                data = resp.json()
            except ValueError:
                logger.warning("Hosted backend replied with a non-JSON body")
                return resp.text
            logger.debug("Hosted backend response: %s", data)
            return data

        raise BackendError("Model endpoint unreachable")  # pragma: no cover
