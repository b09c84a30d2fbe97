"""Pytest configuration and shared fixtures."""

import struct
import zlib
from contextlib import asynccontextmanager
from io import BytesIO
from typing import List, Optional

import pytest
from fastapi import FastAPI
from google.genai import types
from PIL import Image

from edit_agent.api import agent, health, passthrough
from edit_agent.core import ImageNormalizer, Orchestrator
from edit_agent.models import ImageAsset, Verdict
from edit_agent.utils.config import Config
from edit_agent.utils.errors import GenerationError


def make_image_bytes(
    size=(64, 48),
    mode: str = "RGB",
    fmt: str = "PNG",
    color=(200, 40, 40),
) -> bytes:
    """Encode a solid-color test image."""
    if mode == "L":
        color = 128
    elif mode == "RGBA" and len(color) == 3:
        color = (*color, 255)
    image = Image.new(mode, size, color)
    buffer = BytesIO()
    image.save(buffer, format=fmt)
    return buffer.getvalue()


def make_oversized_png(width: int = 40000, height: int = 40000) -> bytes:
    """A structurally valid PNG whose header claims a huge canvas."""
    def chunk(kind: bytes, body: bytes) -> bytes:
        return struct.pack(">I", len(body)) + kind + body + struct.pack(">I", zlib.crc32(kind + body))

    header = struct.pack(">IIBBBBB", width, height, 8, 2, 0, 0, 0)
    return (
        b"\x89PNG\r\n\x1a\n"
        + chunk(b"IHDR", header)
        + chunk(b"IDAT", zlib.compress(b"\x00"))
        + chunk(b"IEND", b"")
    )


class FakeGenerator:
    """Generation double. Each call pops the next scripted result.

    A script entry is an ImageAsset to return, or an exception to raise.
    When the script runs out, a fresh red square is returned.
    """

    def __init__(self, script: Optional[list] = None):
        self.script = list(script or [])
        self.calls: List[tuple] = []

    async def generate(self, prompt: str, images: List[ImageAsset]) -> ImageAsset:
        self.calls.append((prompt, list(images)))
        if self.script:
            result = self.script.pop(0)
            if isinstance(result, BaseException):
                raise result
            return result
        return ImageAsset(data=make_image_bytes(color=(10, 200, 10)), media_type="image/png")


class FakeJudge:
    """Judge double returning scripted verdicts; rejects once the script runs out."""

    def __init__(self, verdicts: Optional[list] = None):
        self.verdicts = list(verdicts or [])
        self.calls: List[tuple] = []

    async def evaluate(self, prompt: str, original: ImageAsset, candidate: ImageAsset) -> Verdict:
        self.calls.append((prompt, original, candidate))
        if self.verdicts:
            result = self.verdicts.pop(0)
            if isinstance(result, BaseException):
                raise result
            return result
        return Verdict(is_acceptable=False, feedback="No, still not right.")


class FakeGenAI:
    """Stand-in for ``genai.Client``. ``reply(model, contents, config)`` builds
    each response, or returns an exception to raise."""

    def __init__(self, reply):
        self.reply = reply
        self.calls: List[dict] = []
        self.aio = self
        self.models = self

    async def generate_content(self, model, contents, config=None):
        self.calls.append({"model": model, "contents": contents, "config": config})
        result = self.reply(model, contents, config)
        if isinstance(result, BaseException):
            raise result
        return result


def gemini_response(*parts: types.Part) -> types.GenerateContentResponse:
    return types.GenerateContentResponse(
        candidates=[types.Candidate(content=types.Content(role="model", parts=list(parts)))]
    )


def reject(feedback: str = "No, the hat color is wrong.") -> Verdict:
    return Verdict(is_acceptable=False, feedback=feedback)


def accept(feedback: str = "Yes, everything matches.") -> Verdict:
    return Verdict(is_acceptable=True, feedback=feedback)


@pytest.fixture
def png_bytes() -> bytes:
    return make_image_bytes()


@pytest.fixture
def normalizer() -> ImageNormalizer:
    return ImageNormalizer(upload_max_dimension=2048)


@pytest.fixture
def fake_generator() -> FakeGenerator:
    return FakeGenerator()


@pytest.fixture
def fake_judge() -> FakeJudge:
    return FakeJudge()


@pytest.fixture
def orchestrator(fake_generator, fake_judge, normalizer) -> Orchestrator:
    return Orchestrator(
        generator=fake_generator,
        judge=fake_judge,
        normalizer=normalizer,
        default_max_iterations=10,
    )


@pytest.fixture
def no_image_error() -> GenerationError:
    return GenerationError("No image generated")


# Sample test data
@pytest.fixture
def sample_prompt():
    return "add sunglasses"


def build_app(orchestrator=None, openrouter=None, wavespeed=None) -> FastAPI:
    """Same routes as the service, wired to test doubles instead of live providers."""
    providers = [p for p in (openrouter, wavespeed) if p is not None]

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        for provider in providers:
            await provider.initialize()
        yield
        for provider in providers:
            await provider.close()

    app = FastAPI(lifespan=lifespan)
    app.include_router(health.router, prefix="/health")
    app.include_router(agent.router, prefix="/api/ai/agent")
    app.include_router(passthrough.router, prefix="/api/ai")

    app.state.config = Config(gemini_api_key="test-key")
    app.state.orchestrator = orchestrator
    app.state.openrouter = openrouter
    app.state.wavespeed = wavespeed
    return app
