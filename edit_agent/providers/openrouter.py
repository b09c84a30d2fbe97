"""OpenRouter client used by the text chat passthrough."""

import json
from typing import AsyncIterator, List, Optional

import httpx

from .base import BaseProvider
from ..utils.logger import get_logger

logger = get_logger(__name__)


class OpenRouterClient(BaseProvider):
    """Client for OpenRouter's OpenAI-compatible chat completions."""

    provider_name = "openrouter"

    def __init__(
        self,
        api_key: str,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(
            api_key=api_key,
            base_url="https://openrouter.ai/api/v1",
            timeout=timeout,
            transport=transport,
        )

    def _get_default_headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "X-Title": "Edit Agent",
        }

    async def stream_chat(
        self,
        messages: List[dict],
        model: str,
    ) -> AsyncIterator[str]:
        """
        Stream a chat completion as text deltas.

        Args:
            messages: OpenAI-style ``{"role", "content"}`` messages
            model: OpenRouter model id (``vendor/model``)

        Yields:
            Content deltas in arrival order
        """
        self._ensure_client()

        payload = {
            "model": model,
            "messages": messages,
            "stream": True,
        }

        logger.info(
            "Starting chat stream",
            extra={"model": model, "message_count": len(messages)}
        )

        async with self.client.stream(
            "POST",
            f"{self.base_url}/chat/completions",
            json=payload,
        ) as response:
            if response.status_code >= 400:
                await response.aread()
                self._handle_response_errors(response)

            async for line in response.aiter_lines():
                if not line.startswith("data:"):
                    # SSE comments (": OPENROUTER PROCESSING") and blank lines
                    continue
                data = line[len("data:"):].strip()
                if data == "[DONE]":
                    break
                try:
                    chunk = json.loads(data)
                except json.JSONDecodeError:
                    logger.warning("Skipping malformed chat chunk", extra={"chunk": data[:200]})
                    continue

                choices = chunk.get("choices") or []
                if not choices:
                    continue
                delta = (choices[0].get("delta") or {}).get("content")
                if delta:
                    yield delta
