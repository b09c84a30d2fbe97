"""Abstract base class for API providers."""

from abc import ABC, abstractmethod
from typing import Optional

import httpx

from ..utils.errors import AuthenticationError, ProviderError, RateLimitError
from ..utils.logger import get_logger

logger = get_logger(__name__)


class BaseProvider(ABC):
    """Shared lifecycle and error mapping for HTTP providers."""

    provider_name = "provider"

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize provider.

        Args:
            api_key: API key for authentication
            base_url: Base URL for API endpoints
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests use MockTransport)
        """
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport
        self.client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def initialize(self):
        """Initialize the HTTP client."""
        if self.client is None:
            self.client = httpx.AsyncClient(
                timeout=self.timeout,
                headers=self._get_default_headers(),
                transport=self.transport,
            )
            logger.info(
                f"{self.__class__.__name__} initialized",
                extra={"provider": self.provider_name}
            )

    async def close(self):
        """Close the HTTP client."""
        if self.client:
            await self.client.aclose()
            self.client = None
            logger.info(
                f"{self.__class__.__name__} closed",
                extra={"provider": self.provider_name}
            )

    @abstractmethod
    def _get_default_headers(self) -> dict:
        """Get default headers for requests."""

    def _ensure_client(self):
        if self.client is None:
            raise RuntimeError(
                f"{self.__class__.__name__} not initialized. "
                "Call initialize() or use as async context manager."
            )

    def _handle_response_errors(self, response: httpx.Response):
        """Raise a ProviderError subclass for any non-2xx response."""
        if response.status_code == 401 or response.status_code == 403:
            raise AuthenticationError(self.provider_name)
        if response.status_code == 429:
            retry_after = response.headers.get("Retry-After")
            raise RateLimitError(
                self.provider_name,
                int(retry_after) if retry_after and retry_after.isdigit() else None
            )
        if response.status_code >= 400:
            try:
                error_data = response.json()
                error = error_data.get("error", {})
                message = error.get("message") if isinstance(error, dict) else str(error)
                message = message or response.text
            except ValueError:
                message = response.text

            logger.error(
                f"{self.provider_name} request failed",
                extra={
                    "provider": self.provider_name,
                    "status": response.status_code,
                    "error": message[:500],
                }
            )
            raise ProviderError(self.provider_name, message, response.status_code)
