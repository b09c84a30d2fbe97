"""WaveSpeedAI client used by the single-shot image generation passthrough."""

import asyncio
import time
from typing import Optional, Tuple

import httpx

from .base import BaseProvider
from ..utils.errors import AuthenticationError, ProviderError
from ..utils.logger import get_logger
from ..utils.retry import retry_async

logger = get_logger(__name__)


class WaveSpeedAIClient(BaseProvider):
    """Client for WaveSpeedAI's submit-then-poll prediction API."""

    provider_name = "wavespeed"

    def __init__(
        self,
        api_key: str,
        timeout: float = 120.0,
        polling_timeout: float = 180.0,
        poll_interval: float = 2.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(
            api_key=api_key,
            base_url="https://api.wavespeed.ai/api/v3",
            timeout=timeout,
            transport=transport,
        )
        self.polling_timeout = polling_timeout
        self.poll_interval = poll_interval

    def _get_default_headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    async def text_to_image(self, prompt: str, model_id: str) -> Tuple[bytes, str]:
        """
        Generate one image from a text prompt.

        Returns:
            Tuple of (image_bytes, media_type)
        """
        task_id = await self._submit(prompt, model_id)
        image_url = await self._poll_for_result(task_id)
        return await self._download_image(image_url)

    @retry_async(
        max_attempts=3,
        exceptions=(httpx.RequestError, ProviderError),
        give_up_on=(AuthenticationError,),
    )
    async def _submit(self, prompt: str, model_id: str) -> str:
        self._ensure_client()

        payload = {
            "prompt": prompt,
            "enable_base64_output": False,
            "enable_sync_mode": False,
        }

        logger.info(
            f"Submitting to WaveSpeed: {model_id}",
            extra={"model_id": model_id, "prompt": prompt[:100]}
        )

        response = await self.client.post(f"{self.base_url}/{model_id}", json=payload)
        self._handle_response_errors(response)

        result = response.json()
        if result.get("code") != 200:
            raise ProviderError(
                self.provider_name,
                f"API error: {result.get('message', 'Unknown error')}"
            )

        task_id = (result.get("data") or {}).get("id")
        if not task_id:
            raise ProviderError(self.provider_name, "No task ID in response")

        logger.info("Task submitted", extra={"model_id": model_id, "task_id": task_id})
        return task_id

    async def _poll_for_result(self, task_id: str) -> str:
        """Poll until the prediction completes and return the first output URL."""
        start_time = time.monotonic()

        while time.monotonic() - start_time < self.polling_timeout:
            response = await self.client.get(
                f"{self.base_url}/predictions/{task_id}/result",
            )

            if response.status_code == 200:
                result = response.json()
                data = result.get("data") or {}
                status = data.get("status")

                logger.debug("Task status", extra={"task_id": task_id, "status": status})

                if status == "completed":
                    outputs = data.get("outputs") or []
                    if not outputs:
                        raise ProviderError(self.provider_name, "No outputs in completed task")
                    return outputs[0]

                if status == "failed":
                    error = data.get("error", "Unknown error")
                    raise ProviderError(self.provider_name, f"Task failed: {error}")

            await asyncio.sleep(self.poll_interval)

        raise ProviderError(self.provider_name, f"Task timeout after {self.polling_timeout}s")

    async def _download_image(self, url: str) -> Tuple[bytes, str]:
        response = await self.client.get(url)
        if response.status_code >= 400:
            raise ProviderError(
                self.provider_name,
                f"Download failed: HTTP {response.status_code}",
                response.status_code,
            )
        media_type = response.headers.get("Content-Type", "image/png").split(";")[0]
        return response.content, media_type
