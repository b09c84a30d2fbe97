"""Refinement loop: generate, normalize, judge, and feed critique back."""

import asyncio
import time
import uuid
from typing import AsyncIterator, List, Optional

from .image_generator import ImageGenerator
from .judge import Judge
from .normalizer import ImageNormalizer
from ..models.enums import LoopOutcome
from ..models.events import (
    CompleteEvent,
    ErrorEvent,
    EvaluationEvent,
    ImageEvent,
    ProgressEvent,
    StatusEvent,
)
from ..models.schemas import EditRequest, IterationState
from ..utils.errors import GenerationError
from ..utils.logger import get_logger

logger = get_logger(__name__)

IDENTITY_GUARD = (
    "Important: Preserve the main subject's identity from the original image(s). "
    "Do not change facial identity, facial structure, skin tone, hairline/style, "
    "or other distinctive features. Only make the requested edits."
)


def build_iteration_prompt(prompt: str, last_feedback: Optional[str] = None) -> str:
    """Base prompt, then the previous critique (or a subtle-refine hint), then the identity guard."""
    if last_feedback:
        return f"{prompt}\nAddress these issues from the last result: {last_feedback}\n\n{IDENTITY_GUARD}"
    return f"{prompt}\nRefine subtly to better match if needed.\n\n{IDENTITY_GUARD}"


class Orchestrator:
    """Drives one edit session at a time; holds no per-session state itself."""

    def __init__(
        self,
        generator: ImageGenerator,
        judge: Judge,
        normalizer: Optional[ImageNormalizer] = None,
        default_max_iterations: int = 10,
    ):
        """
        Args:
            generator: Generation capability (``generate(prompt, images)``)
            judge: Judge capability (``evaluate(prompt, original, candidate)``)
            normalizer: Canonical encoder for uploads and candidates
            default_max_iterations: Used when a request names no cap
        """
        self.generator = generator
        self.judge = judge
        self.normalizer = normalizer or ImageNormalizer()
        self.default_max_iterations = default_max_iterations

    def prepare_request(
        self,
        prompt: str,
        uploads: List[bytes],
        max_iterations: Optional[int] = None,
    ) -> EditRequest:
        """
        Normalize uploaded images and build the session request.

        Raises:
            DecodeError: If any upload is not a decodable image
        """
        images = [self.normalizer.normalize_upload(data) for data in uploads]

        logger.info(
            "Uploads normalized",
            extra={
                "image_count": len(images),
                "sizes_kb": [round(len(img.data) / 1024, 2) for img in images],
            }
        )

        return EditRequest(
            prompt=prompt,
            reference_images=images,
            max_iterations=(
                self.default_max_iterations if max_iterations is None else max_iterations
            ),
        )

    async def run(
        self,
        request: EditRequest,
        cancel: Optional[asyncio.Event] = None,
    ) -> AsyncIterator[ProgressEvent]:
        """
        Run the refinement loop, yielding progress events in order.

        Terminal events:
          - accepted or out of iterations: ``complete``. Exhaustion is still a
            completion; read ``isAcceptable`` on the evaluations for success.
          - model returned no usable image: ``error`` then ``complete``
          - any other failure: ``error`` only

        ``cancel`` is checked between calls. Once it is set the loop stops
        without emitting anything further; a call already in flight is
        allowed to finish first.
        """
        session_id = uuid.uuid4().hex[:8]
        total = request.max_iterations
        state = IterationState(current_image=request.original)
        # Stays CANCELLED unless the loop reaches a terminal state itself.
        outcome = LoopOutcome.CANCELLED
        attempts = 0
        start_time = time.time()

        def cancelled() -> bool:
            return cancel is not None and cancel.is_set()

        logger.info(
            "Starting edit session",
            extra={
                "session_id": session_id,
                "max_iterations": total,
                "reference_images": len(request.reference_images),
                "prompt_length": len(request.prompt),
            }
        )

        try:
            while state.iteration < total:
                k = state.iteration
                label = f"Iteration {k + 1}/{total}"

                if cancelled():
                    return

                yield StatusEvent(message=f"{label}: generating candidate...")
                attempts += 1

                iteration_prompt = build_iteration_prompt(request.prompt, state.last_feedback)
                try:
                    generated = await self.generator.generate(
                        iteration_prompt,
                        [state.current_image, *request.supplementary],
                    )
                except GenerationError as e:
                    outcome = LoopOutcome.FAILED
                    logger.warning(
                        "No usable image, stopping session",
                        extra={"session_id": session_id, "iteration": k, "error": str(e)}
                    )
                    yield ErrorEvent(message=f"{e} in iteration {k + 1}")
                    break

                candidate = self.normalizer.normalize_candidate(generated.data)
                yield ImageEvent(
                    iteration=k,
                    base64=candidate.to_base64(),
                    media_type=candidate.media_type,
                )

                if cancelled():
                    return

                yield StatusEvent(message=f"{label}: evaluating against requirements...")

                verdict = await self.judge.evaluate(request.prompt, request.original, candidate)
                yield EvaluationEvent(
                    iteration=k,
                    feedback=verdict.feedback,
                    is_acceptable=verdict.is_acceptable,
                )

                logger.info(
                    f"{label} evaluated",
                    extra={
                        "session_id": session_id,
                        "iteration": k,
                        "is_acceptable": verdict.is_acceptable,
                    }
                )

                if verdict.is_acceptable:
                    outcome = LoopOutcome.ACCEPTED
                    break

                state = state.advance(candidate, verdict.feedback)
            else:
                outcome = LoopOutcome.EXHAUSTED

            yield CompleteEvent()

        except Exception as e:
            outcome = LoopOutcome.FAILED
            logger.error(
                "Edit session failed",
                extra={
                    "session_id": session_id,
                    "iteration": state.iteration,
                    "error": str(e),
                    "error_type": type(e).__name__,
                },
                exc_info=True,
            )
            yield ErrorEvent(message=str(e) or type(e).__name__)

        finally:
            logger.info(
                "Edit session finished",
                extra={
                    "session_id": session_id,
                    "outcome": outcome.value,
                    "iterations_run": attempts,
                    "duration_seconds": round(time.time() - start_time, 2),
                }
            )
