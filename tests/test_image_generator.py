"""Tests for the Gemini-backed image generator."""

import httpx
import pytest
from google.genai import errors as genai_errors
from google.genai import types

from edit_agent.core import ImageGenerator
from edit_agent.models import ImageAsset
from edit_agent.providers import GeminiClient
from edit_agent.utils.errors import (
    AuthenticationError,
    GenerationError,
    ProviderError,
    RateLimitError,
    TransientError,
)

from conftest import FakeGenAI, gemini_response, make_image_bytes


def _image_reply(data: bytes, mime_type: str = "image/png"):
    return lambda *args: gemini_response(
        types.Part(text="Here you go"),
        types.Part(inline_data=types.Blob(mime_type=mime_type, data=data)),
    )


@pytest.fixture
def target():
    return ImageAsset(data=make_image_bytes(), media_type="image/png")


@pytest.fixture
def reference():
    return ImageAsset(data=make_image_bytes(color=(0, 0, 255)), media_type="image/png")


class TestImageGenerator:

    @pytest.mark.asyncio
    async def test_returns_first_image_part(self, target, reference):
        """Prompt comes first, then the edit target, then supplementary images."""
        produced = make_image_bytes(color=(9, 9, 9), fmt="JPEG")
        sdk = FakeGenAI(_image_reply(produced, "image/jpeg"))

        async with GeminiClient("k", client=sdk) as client:
            asset = await ImageGenerator(client).generate("add sunglasses", [target, reference])

        assert asset.data == produced
        assert asset.media_type == "image/jpeg"

        call = sdk.calls[0]
        assert call["model"] == "gemini-2.5-flash-image-preview"
        assert call["config"].response_modalities == ["TEXT", "IMAGE"]

        parts = call["contents"][0].parts
        assert parts[0].text == "add sunglasses"
        assert parts[1].inline_data.data == target.data
        assert parts[2].inline_data.data == reference.data

    @pytest.mark.asyncio
    async def test_text_only_response_is_no_image(self, target):
        sdk = FakeGenAI(lambda *args: gemini_response(types.Part(text="I can't do that.")))

        async with GeminiClient("k", client=sdk) as client:
            with pytest.raises(GenerationError, match="No image generated"):
                await ImageGenerator(client).generate("p", [target])

    @pytest.mark.asyncio
    async def test_non_image_blob_is_no_image(self, target):
        sdk = FakeGenAI(_image_reply(b"%PDF-1.4", "application/pdf"))

        async with GeminiClient("k", client=sdk) as client:
            with pytest.raises(GenerationError, match="No image generated"):
                await ImageGenerator(client).generate("p", [target])

    @pytest.mark.asyncio
    async def test_empty_image_payload(self, target):
        sdk = FakeGenAI(_image_reply(b""))

        async with GeminiClient("k", client=sdk) as client:
            with pytest.raises(GenerationError, match="Empty image generated"):
                await ImageGenerator(client).generate("p", [target])

    @pytest.mark.asyncio
    async def test_api_failure_is_transient(self, target):
        error = genai_errors.ServerError(503, {"error": {"code": 503, "message": "overloaded", "status": "UNAVAILABLE"}})
        sdk = FakeGenAI(lambda *args: error)

        async with GeminiClient("k", client=sdk) as client:
            with pytest.raises(TransientError, match="overloaded"):
                await ImageGenerator(client).generate("p", [target])

    @pytest.mark.asyncio
    async def test_transport_failure_is_transient(self, target):
        sdk = FakeGenAI(lambda *args: httpx.ReadTimeout("timed out"))

        async with GeminiClient("k", client=sdk) as client:
            with pytest.raises(TransientError):
                await ImageGenerator(client).generate("p", [target])

    @pytest.mark.asyncio
    async def test_requires_an_image(self):
        async with GeminiClient("k", client=FakeGenAI(lambda *args: None)) as client:
            with pytest.raises(ValueError):
                await ImageGenerator(client).generate("p", [])

    @pytest.mark.asyncio
    async def test_uninitialized_client(self, target):
        client = GeminiClient("k", client=FakeGenAI(lambda *args: None))
        with pytest.raises(RuntimeError):
            await ImageGenerator(client).generate("p", [target])


class TestGeminiErrorMapping:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("code, expected", [
        (401, AuthenticationError),
        (403, AuthenticationError),
        (429, RateLimitError),
        (400, ProviderError),
    ])
    async def test_status_codes(self, code, expected):
        error = genai_errors.ClientError(code, {"error": {"code": code, "message": "nope", "status": "X"}})

        async with GeminiClient("k", client=FakeGenAI(lambda *args: error)) as client:
            with pytest.raises(expected):
                await client.generate_content("m", [])

    @pytest.mark.asyncio
    async def test_provider_error_keeps_status_and_message(self):
        error = genai_errors.ClientError(400, {"error": {"code": 400, "message": "bad image", "status": "INVALID_ARGUMENT"}})

        async with GeminiClient("k", client=FakeGenAI(lambda *args: error)) as client:
            with pytest.raises(ProviderError) as exc_info:
                await client.generate_content("m", [])

        assert exc_info.value.status_code == 400
        assert "bad image" in str(exc_info.value)
