"""Google Gemini client for image generation and vision judging."""

from typing import List, Optional, Tuple

from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from ..utils.errors import AuthenticationError, ProviderError, RateLimitError
from ..utils.logger import get_logger

logger = get_logger(__name__)


def text_part(text: str) -> types.Part:
    return types.Part.from_text(text=text)


def image_part(data: bytes, media_type: str) -> types.Part:
    return types.Part.from_bytes(data=data, mime_type=media_type)


class GeminiClient:
    """Thin async wrapper over ``genai.Client`` with the provider error mapping."""

    provider_name = "gemini"

    def __init__(
        self,
        api_key: str,
        timeout: float = 120.0,
        client: Optional[genai.Client] = None,
    ):
        """
        Args:
            api_key: Gemini API key
            timeout: Per-request timeout in seconds
            client: Prebuilt SDK client (tests pass a stand-in)
        """
        self.api_key = api_key
        self.timeout = timeout
        self._injected = client
        self.client = None

    async def __aenter__(self):
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def initialize(self):
        if self.client is None:
            self.client = self._injected or genai.Client(
                api_key=self.api_key,
                http_options=types.HttpOptions(timeout=int(self.timeout * 1000)),
            )
            logger.info("GeminiClient initialized", extra={"provider": self.provider_name})

    async def close(self):
        if self.client is not None:
            self.client = None
            logger.info("GeminiClient closed", extra={"provider": self.provider_name})

    def _ensure_client(self):
        if self.client is None:
            raise RuntimeError(
                "GeminiClient not initialized. "
                "Call initialize() or use as async context manager."
            )

    def _translate_error(self, error: genai_errors.APIError) -> ProviderError:
        code = error.code
        if code in (401, 403):
            return AuthenticationError(self.provider_name)
        if code == 429:
            return RateLimitError(self.provider_name)
        message = error.message or str(error)
        logger.error(
            "gemini request failed",
            extra={"provider": self.provider_name, "status": code, "error": message[:500]}
        )
        return ProviderError(self.provider_name, message, code)

    async def generate_content(
        self,
        model: str,
        parts: List[types.Part],
        response_modalities: Optional[List[str]] = None,
    ) -> types.GenerateContentResponse:
        """
        Send one user turn and return the SDK response.

        Args:
            model: Model id, e.g. ``gemini-2.5-flash``
            parts: Content parts built with ``text_part`` / ``image_part``
            response_modalities: e.g. ``["TEXT", "IMAGE"]`` for image output

        Raises:
            ProviderError: The API rejected the call
            httpx.HTTPError: On transport failure
        """
        self._ensure_client()

        config = None
        if response_modalities:
            config = types.GenerateContentConfig(response_modalities=response_modalities)

        logger.info(
            f"Calling {model}",
            extra={
                "model": model,
                "part_count": len(parts),
                "image_parts": sum(1 for p in parts if p.inline_data is not None),
            }
        )

        try:
            return await self.client.aio.models.generate_content(
                model=model,
                contents=[types.Content(role="user", parts=parts)],
                config=config,
            )
        except genai_errors.APIError as e:
            raise self._translate_error(e) from e

    @staticmethod
    def _response_parts(response: types.GenerateContentResponse) -> List[types.Part]:
        if not response.candidates:
            return []
        content = response.candidates[0].content
        if content is None:
            return []
        return content.parts or []

    @classmethod
    def extract_text(cls, response: types.GenerateContentResponse) -> str:
        """Concatenate every text part of the first candidate."""
        return "".join(part.text for part in cls._response_parts(response) if part.text)

    @classmethod
    def extract_images(cls, response: types.GenerateContentResponse) -> List[Tuple[bytes, str]]:
        """Return ``(bytes, media_type)`` for each image part of the first candidate.

        An image part with an empty payload is returned with empty bytes so
        callers can tell "no image" from "empty image".
        """
        images = []
        for part in cls._response_parts(response):
            blob = part.inline_data
            if blob is None:
                continue
            media_type = blob.mime_type or "image/png"
            if not media_type.startswith("image/"):
                continue
            images.append((blob.data or b"", media_type))
        return images
