"""Judge capability: decide whether a candidate satisfies the edit request."""

import re
import time
from typing import Optional

import httpx

from ..models.schemas import ImageAsset, Verdict
from ..providers.gemini import GeminiClient, image_part, text_part
from ..utils.errors import EvaluationError, ProviderError
from ..utils.logger import get_logger
from ..utils.retry import timeout_async

logger = get_logger(__name__)

DEFAULT_JUDGE_MODEL = "gemini-2.5-flash"

JUDGE_INSTRUCTIONS = (
    "Be strict. First, verify the main subject/character identity matches the "
    "original (face/structure/skin tone/hair/unique features). If identity "
    "changed, answer NO. Otherwise, verify the candidate fully satisfies ALL "
    "requirements (content, style, composition, colors, objects and their "
    "counts, text/typography if any, aspect ratio, and other constraints). "
    "Answer YES only if everything is satisfied. If not, answer NO and provide "
    "a brief, actionable critique to improve the next iteration."
)

_AFFIRMATIVE = re.compile(r"yes\b")


def parse_verdict(text: str) -> Verdict:
    """
    Turn the judge's free-text answer into a verdict.

    Acceptable iff the trimmed, lowercased answer starts with the word "yes".
    The full text is kept as feedback either way.
    """
    normalized = text.strip().lower()
    return Verdict(
        is_acceptable=bool(_AFFIRMATIVE.match(normalized)),
        feedback=text,
    )


class Judge:
    """Evaluates candidates with a vision-capable Gemini model."""

    def __init__(
        self,
        gemini_client: GeminiClient,
        model: str = DEFAULT_JUDGE_MODEL,
        timeout_seconds: Optional[float] = None,
    ):
        self.client = gemini_client
        self.model = model
        self.timeout_seconds = timeout_seconds

    async def evaluate(
        self,
        prompt: str,
        original: ImageAsset,
        candidate: ImageAsset,
    ) -> Verdict:
        """
        Compare the candidate against the original and the user's requirements.

        Raises:
            EvaluationError: The judge call failed
        """
        parts = [
            text_part(f"User requirements (all must be met): {prompt}"),
            text_part("Original image:"),
            image_part(original.data, original.media_type),
            text_part("Candidate edited image:"),
            image_part(candidate.data, candidate.media_type),
            text_part(JUDGE_INSTRUCTIONS),
        ]

        start = time.time()
        try:
            response = await timeout_async(
                self.client.generate_content(self.model, parts),
                self.timeout_seconds,
            )
        except (ProviderError, httpx.HTTPError) as e:
            logger.error(
                "Evaluation call failed",
                extra={"model": self.model, "error": str(e), "error_type": type(e).__name__}
            )
            raise EvaluationError(f"Evaluation request failed: {e}") from e

        verdict = parse_verdict(GeminiClient.extract_text(response))

        logger.info(
            "Evaluation complete",
            extra={
                "model": self.model,
                "is_acceptable": verdict.is_acceptable,
                "feedback": verdict.feedback[:300],
                "duration_seconds": round(time.time() - start, 2),
            }
        )

        return verdict
