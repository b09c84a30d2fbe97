"""Consumer-side client for the streaming image-edit endpoint."""

import mimetypes
from typing import AsyncIterator, Callable, List, Optional, Tuple

import httpx

from .core.aggregator import apply_event
from .core.event_stream import decode_stream
from .models.events import ProgressEvent
from .models.schemas import SessionView
from .providers.base import BaseProvider
from .utils.errors import IncompleteSessionError
from .utils.logger import get_logger

logger = get_logger(__name__)

EDIT_PATH = "/api/ai/agent/image-edit"


class EditAgentClient(BaseProvider):
    """Posts edit requests and decodes the event stream that comes back."""

    provider_name = "edit-agent"

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        timeout: float = 300.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(
            api_key=None,
            base_url=base_url,
            timeout=timeout,
            transport=transport,
        )

    def _get_default_headers(self) -> dict:
        return {"Accept": "text/plain"}

    async def stream_edit(
        self,
        prompt: str,
        images: List[Tuple[str, bytes]],
        max_iterations: Optional[int] = None,
    ) -> AsyncIterator[ProgressEvent]:
        """
        Start a session and yield its events as they arrive.

        Args:
            prompt: Edit instruction
            images: ``(filename, bytes)`` pairs; the first is the edit target
            max_iterations: Optional cap (the server clamps it to 1..12)

        Raises:
            ProviderError: If the server rejects the request
        """
        self._ensure_client()

        data = {"prompt": prompt}
        if max_iterations is not None:
            data["maxIterations"] = str(max_iterations)

        files = [
            ("image", (name, content, mimetypes.guess_type(name)[0] or "application/octet-stream"))
            for name, content in images
        ]

        async with self.client.stream(
            "POST",
            f"{self.base_url}{EDIT_PATH}",
            data=data,
            files=files,
        ) as response:
            if response.status_code >= 400:
                await response.aread()
                self._handle_response_errors(response)

            async for event in decode_stream(response.aiter_bytes()):
                yield event

    async def run_edit(
        self,
        prompt: str,
        images: List[Tuple[str, bytes]],
        max_iterations: Optional[int] = None,
        on_event: Optional[Callable[[ProgressEvent, SessionView], None]] = None,
    ) -> SessionView:
        """
        Run a session to the end and return the folded view.

        Raises:
            IncompleteSessionError: The stream ended with neither a complete
                nor an error event
        """
        view = SessionView()
        async for event in self.stream_edit(prompt, images, max_iterations):
            view = apply_event(view, event)
            if on_event:
                on_event(event, view)

        if not view.is_terminal:
            logger.error(
                "Session stream ended without a terminal event",
                extra={"iterations_seen": len(view.iterations)}
            )
            raise IncompleteSessionError("Stream ended without a complete or error event")

        return view
