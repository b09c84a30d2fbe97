"""Generation capability: produce one candidate edit from a prompt and images."""

import time
from typing import List, Optional

import httpx

from ..models.schemas import ImageAsset
from ..providers.gemini import GeminiClient, image_part, text_part
from ..utils.errors import GenerationError, ProviderError, TransientError
from ..utils.logger import get_logger
from ..utils.retry import timeout_async

logger = get_logger(__name__)

DEFAULT_GENERATION_MODEL = "gemini-2.5-flash-image-preview"


class ImageGenerator:
    """Generates candidate images with an image-output Gemini model."""

    def __init__(
        self,
        gemini_client: GeminiClient,
        model: str = DEFAULT_GENERATION_MODEL,
        timeout_seconds: Optional[float] = None,
    ):
        """
        Args:
            gemini_client: Initialized Gemini client
            model: Image-capable model id
            timeout_seconds: Optional client-side limit per call
        """
        self.client = gemini_client
        self.model = model
        self.timeout_seconds = timeout_seconds

    async def generate(self, prompt: str, images: List[ImageAsset]) -> ImageAsset:
        """
        Generate a candidate.

        The first image is the edit target; the rest are supplementary
        references. Failures are reported, never retried here.

        Raises:
            GenerationError: The model returned no image, or an empty one
            TransientError: The call itself failed
        """
        if not images:
            raise ValueError("at least one image is required")

        parts = [text_part(prompt)]
        parts.extend(image_part(img.data, img.media_type) for img in images)

        start = time.time()
        try:
            response = await timeout_async(
                self.client.generate_content(
                    self.model,
                    parts,
                    response_modalities=["TEXT", "IMAGE"],
                ),
                self.timeout_seconds,
            )
        except (ProviderError, httpx.HTTPError) as e:
            logger.error(
                "Generation call failed",
                extra={"model": self.model, "error": str(e), "error_type": type(e).__name__}
            )
            raise TransientError(f"Image generation request failed: {e}") from e

        generated = GeminiClient.extract_images(response)
        if not generated:
            raise GenerationError("No image generated")

        data, media_type = generated[0]
        if not data:
            raise GenerationError("Empty image generated")

        logger.info(
            "Candidate generated",
            extra={
                "model": self.model,
                "media_type": media_type,
                "size_kb": round(len(data) / 1024, 2),
                "duration_seconds": round(time.time() - start, 2),
            }
        )

        return ImageAsset(data=data, media_type=media_type)
