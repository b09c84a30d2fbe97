"""Single-shot text and image generation passthroughs."""

from typing import AsyncIterator, List

import httpx
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse, Response, StreamingResponse

from ..providers.openrouter import OpenRouterClient
from ..providers.wavespeed import WaveSpeedAIClient
from ..utils.errors import ProviderError
from ..utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()


async def get_openrouter_client(request: Request) -> OpenRouterClient:
    client = getattr(request.app.state, "openrouter", None)
    if client is None:
        raise HTTPException(status_code=503, detail="Chat is not configured")
    return client


async def get_wavespeed_client(request: Request) -> WaveSpeedAIClient:
    client = getattr(request.app.state, "wavespeed", None)
    if client is None:
        raise HTTPException(status_code=503, detail="Image generation is not configured")
    return client


async def _json_body(request: Request) -> dict:
    try:
        body = await request.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


CHAT_ABORTED_MARKER = "\n\n[chat stream interrupted]"


async def _relay_chat(
    stream: AsyncIterator[str],
    first: str,
    model: str,
) -> AsyncIterator[str]:
    yield first
    try:
        async for delta in stream:
            yield delta
    except (ProviderError, httpx.HTTPError) as e:
        # Headers are already sent; mark the cut so the reader can see it.
        logger.error("Chat stream aborted", extra={"model": model, "error": str(e)})
        yield CHAT_ABORTED_MARKER


@router.post("/chat")
async def chat(
    request: Request,
    client: OpenRouterClient = Depends(get_openrouter_client),
):
    """Stream a chat completion as plain text."""
    body = await _json_body(request)

    messages = body.get("messages")
    if not isinstance(messages, list):
        messages = []

    model = body.get("model")
    if not (isinstance(model, str) and "/" in model):
        model = request.app.state.config.models.chat

    # Pull the first delta before committing to a 200 so upstream failures
    # surface as an error status.
    stream = client.stream_chat(messages, model)
    try:
        first = await stream.__anext__()
    except StopAsyncIteration:
        first = ""
    except (ProviderError, httpx.HTTPError) as e:
        logger.error("Chat stream failed", extra={"model": model, "error": str(e)})
        return JSONResponse({"error": str(e)}, status_code=502)

    return StreamingResponse(
        _relay_chat(stream, first, model),
        media_type="text/plain; charset=utf-8",
    )


@router.post("/image")
async def generate_image(
    request: Request,
    client: WaveSpeedAIClient = Depends(get_wavespeed_client),
):
    """Generate one image from a text prompt and return its bytes."""
    body = await _json_body(request)

    prompt = body.get("prompt")
    if not isinstance(prompt, str) or not prompt.strip():
        return JSONResponse({"error": "Missing prompt"}, status_code=400)

    model = body.get("model")
    if not (isinstance(model, str) and model):
        model = request.app.state.config.models.image

    try:
        image_bytes, media_type = await client.text_to_image(prompt, model)
    except (ProviderError, httpx.HTTPError) as e:
        logger.error("Image generation failed", extra={"model": model, "error": str(e)})
        return JSONResponse({"error": str(e)}, status_code=502)

    return Response(
        content=image_bytes,
        media_type=media_type,
        headers={"Cache-Control": "no-store"},
    )
