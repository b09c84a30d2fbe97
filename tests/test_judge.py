"""Tests for verdict parsing and the Gemini-backed judge."""

import httpx
import pytest
from google.genai import errors as genai_errors
from google.genai import types

from edit_agent.core import Judge, parse_verdict
from edit_agent.core.judge import JUDGE_INSTRUCTIONS
from edit_agent.models import ImageAsset
from edit_agent.providers import GeminiClient
from edit_agent.utils.errors import EvaluationError

from conftest import FakeGenAI, gemini_response, make_image_bytes


class TestParseVerdict:
    """Affirmative means the answer starts with the word "yes"."""

    @pytest.mark.parametrize("text", [
        "Yes",
        "yes.",
        "YES, all requirements are met.",
        "  \n Yes - the sunglasses look right",
        "yes\nThe hat is red.",
    ])
    def test_affirmative(self, text):
        verdict = parse_verdict(text)
        assert verdict.is_acceptable is True
        assert verdict.feedback == text

    @pytest.mark.parametrize("text", [
        "No, the hat is still blue.",
        "The image mostly matches. Yes, except the hat.",
        "Yesterday's version was better.",
        "",
        "   ",
    ])
    def test_not_affirmative(self, text):
        verdict = parse_verdict(text)
        assert verdict.is_acceptable is False
        assert verdict.feedback == text


class TestJudge:

    @pytest.fixture
    def original(self):
        return ImageAsset(data=make_image_bytes(color=(1, 1, 1)), media_type="image/png")

    @pytest.fixture
    def candidate(self):
        return ImageAsset(data=make_image_bytes(color=(2, 2, 2)), media_type="image/png")

    @pytest.mark.asyncio
    async def test_sends_requirements_original_then_candidate(self, original, candidate):
        """The judge sees the prompt, the original, the candidate, then the instructions."""
        sdk = FakeGenAI(lambda *args: gemini_response(types.Part(text="No, add the sunglasses.")))

        async with GeminiClient("test-key", client=sdk) as client:
            verdict = await Judge(client).evaluate("add sunglasses", original, candidate)

        assert verdict.is_acceptable is False
        assert verdict.feedback == "No, add the sunglasses."

        call = sdk.calls[0]
        assert call["model"] == "gemini-2.5-flash"
        assert call["config"] is None

        parts = call["contents"][0].parts
        assert parts[0].text == "User requirements (all must be met): add sunglasses"
        assert parts[1].text == "Original image:"
        assert parts[2].inline_data.data == original.data
        assert parts[3].text == "Candidate edited image:"
        assert parts[4].inline_data.data == candidate.data
        assert parts[5].text == JUDGE_INSTRUCTIONS

    @pytest.mark.asyncio
    async def test_joins_multiple_text_parts(self, original, candidate):
        sdk = FakeGenAI(lambda *args: gemini_response(
            types.Part(text="Yes"),
            types.Part(text=", looks right."),
        ))

        async with GeminiClient("k", client=sdk) as client:
            verdict = await Judge(client).evaluate("p", original, candidate)

        assert verdict.is_acceptable is True
        assert verdict.feedback == "Yes, looks right."

    @pytest.mark.asyncio
    async def test_no_text_is_a_rejection(self, original, candidate):
        sdk = FakeGenAI(lambda *args: types.GenerateContentResponse(candidates=[]))

        async with GeminiClient("k", client=sdk) as client:
            verdict = await Judge(client).evaluate("p", original, candidate)

        assert verdict.is_acceptable is False
        assert verdict.feedback == ""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [
        genai_errors.ClientError(401, {"error": {"code": 401, "message": "bad key", "status": "UNAUTHENTICATED"}}),
        genai_errors.ClientError(429, {"error": {"code": 429, "message": "quota", "status": "RESOURCE_EXHAUSTED"}}),
        genai_errors.ServerError(500, {"error": {"code": 500, "message": "backend down", "status": "INTERNAL"}}),
    ])
    async def test_api_failure_raises_evaluation_error(self, original, candidate, error):
        sdk = FakeGenAI(lambda *args: error)

        async with GeminiClient("k", client=sdk) as client:
            with pytest.raises(EvaluationError):
                await Judge(client).evaluate("p", original, candidate)

    @pytest.mark.asyncio
    async def test_transport_failure_raises_evaluation_error(self, original, candidate):
        sdk = FakeGenAI(lambda *args: httpx.ConnectError("connection refused"))

        async with GeminiClient("k", client=sdk) as client:
            with pytest.raises(EvaluationError):
                await Judge(client).evaluate("p", original, candidate)
