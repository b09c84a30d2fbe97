"""Canonical image encoding for uploads and generated candidates."""

from io import BytesIO
from typing import Optional

from PIL import Image, UnidentifiedImageError

from ..models.schemas import ImageAsset
from ..utils.errors import DecodeError
from ..utils.logger import get_logger

logger = get_logger(__name__)

CANONICAL_FORMAT = "PNG"
CANONICAL_MEDIA_TYPE = "image/png"
CANONICAL_COMPRESS_LEVEL = 6
DEFAULT_UPLOAD_MAX_DIMENSION = 2048


class ImageNormalizer:
    """Convert arbitrary image bytes into RGBA PNG, optionally bounded in size."""

    def __init__(self, upload_max_dimension: int = DEFAULT_UPLOAD_MAX_DIMENSION):
        self.upload_max_dimension = upload_max_dimension

    def normalize(self, data: bytes, max_dimension: Optional[int] = None) -> ImageAsset:
        """
        Decode, force an alpha channel, shrink to fit and re-encode.

        Args:
            data: Encoded image bytes in any format Pillow can read
            max_dimension: Bounding box side; ``None`` keeps the original size.
                Images are only ever downscaled.

        Returns:
            ImageAsset in the canonical encoding

        Raises:
            DecodeError: If the bytes are not a decodable image
        """
        if not data:
            raise DecodeError("Image data is empty")

        try:
            image = Image.open(BytesIO(data))
            image.load()
        except Image.DecompressionBombError as e:
            raise DecodeError(f"Image too large to decode: {e}") from e
        except (UnidentifiedImageError, OSError, ValueError) as e:
            raise DecodeError(f"Could not decode image: {e}") from e

        try:
            return self._encode(image, max_dimension)
        except Exception as e:
            raise DecodeError(f"Could not convert image: {e}") from e

    def _encode(self, image: Image.Image, max_dimension: Optional[int]) -> ImageAsset:
        # Animated formats: keep the first frame only.
        image.seek(0)

        if image.mode != "RGBA":
            image = image.convert("RGBA")

        width, height = image.size
        if max_dimension is not None and (width > max_dimension or height > max_dimension):
            ratio = min(max_dimension / width, max_dimension / height)
            new_size = (max(1, round(width * ratio)), max(1, round(height * ratio)))
            image = image.resize(new_size, Image.LANCZOS)

            logger.info(
                f"Resized image from {width}x{height} to {new_size[0]}x{new_size[1]}",
                extra={
                    "original_width": width,
                    "original_height": height,
                    "new_width": new_size[0],
                    "new_height": new_size[1],
                }
            )

        buffer = BytesIO()
        image.save(buffer, format=CANONICAL_FORMAT, compress_level=CANONICAL_COMPRESS_LEVEL)

        return ImageAsset(data=buffer.getvalue(), media_type=CANONICAL_MEDIA_TYPE)

    def normalize_upload(self, data: bytes) -> ImageAsset:
        return self.normalize(data, max_dimension=self.upload_max_dimension)

    def normalize_candidate(self, data: bytes) -> ImageAsset:
        # Candidates come back from the model at a usable size.
        return self.normalize(data, max_dimension=None)
