"""Anthropic Messages API backend for collabframe.

Talks to POST {base_url}/v1/messages directly over httpx.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from collabframe.backends.base import Backend, CompletionRequest
from collabframe.errors import BackendError, MalformedReplyError
from collabframe.format.adapters.anthropic import (
    AnthropicDefinitionAdapter,
    AnthropicMessageAdapter,
    AnthropicReplyParser,
)
from collabframe.format.types import ParsedReply

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.anthropic.com"
DEFAULT_API_VERSION = "2023-06-01"


class AnthropicBackend(Backend):
    """Anthropic LLM backend."""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str = DEFAULT_BASE_URL,
        api_version: str = DEFAULT_API_VERSION,
        timeout: float = 300,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.transport = transport

        self.headers = {
            "content-type": "application/json",
            "anthropic-version": api_version,
        }
        if api_key:
            self.headers["x-api-key"] = api_key

        self.definitions = AnthropicDefinitionAdapter()
        self.messages = AnthropicMessageAdapter()
        self.parser = AnthropicReplyParser()

    def build_payload(self, request: CompletionRequest) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": request.model,
            "max_tokens": request.max_tokens,
            "messages": self.messages.format_messages(request.turns),
        }
        if request.tools:
            payload["tools"] = self.definitions.format_tools(request.tools)
        if request.system:
            payload["system"] = request.system
        if request.temperature is not None:
            payload["temperature"] = request.temperature
        return payload

    def _client(self, timeout: float | None = None) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=timeout if timeout is not None else self.timeout,
            transport=self.transport,
        )

    async def complete(self, request: CompletionRequest) -> ParsedReply:
        """Send one messages request."""
        payload = self.build_payload(request)

        try:
            async with self._client() as client:
                response = await client.post(
                    f"{self.base_url}/v1/messages",
                    json=payload,
                    headers=self.headers,
                )
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            raise self.map_status_error(e) from e
        except httpx.TimeoutException as e:
            raise BackendError(f"Model request timed out: {e}", failure_type="timeout") from e
        except httpx.HTTPError as e:
            raise BackendError(f"Model request failed: {e}", failure_type="backend_error") from e
        except ValueError as e:
            raise MalformedReplyError(f"Model reply is not JSON: {e}") from e

        parsed = self.parser.parse(data)
        logger.debug(
            "Model reply: stop_reason=%s blocks=%s",
            parsed.stop_reason,
            [b.type for b in parsed.blocks],
        )
        return parsed

    def map_status_error(self, exc: httpx.HTTPStatusError) -> BackendError:
        """Map an HTTP error status to BackendError with a failure_type."""
        status = exc.response.status_code
        detail = _error_detail(exc.response)

        if status in (401, 403):
            failure_type = "auth_error"
        elif status == 429:
            failure_type = "rate_limit"
        elif status >= 500:
            failure_type = "server_error"
        else:
            failure_type = "api_error"
        return BackendError(f"Model API error {status}: {detail}", failure_type=failure_type)

    async def health_check(self) -> bool:
        """Check if backend is available."""
        try:
            async with self._client(timeout=5) as client:
                response = await client.get(
                    f"{self.base_url}/v1/models",
                    headers=self.headers,
                )
                return response.status_code == 200
        except httpx.HTTPError:
            return False


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    return response.reason_phrase
