"""Pydantic schemas for data validation."""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from .enums import SessionStatus
from ..utils.images import bytes_to_base64, to_data_url

MIN_ITERATIONS = 1
MAX_ITERATIONS_CAP = 12


def clamp_iterations(requested: int) -> int:
    """Clamp a requested iteration count into [MIN_ITERATIONS, MAX_ITERATIONS_CAP]."""
    return max(MIN_ITERATIONS, min(MAX_ITERATIONS_CAP, requested))


class ImageAsset(BaseModel):
    """Encoded image bytes plus their media type."""
    data: bytes
    media_type: str = "image/png"

    class Config:
        frozen = True

    @field_validator("data")
    @classmethod
    def _non_empty(cls, value: bytes) -> bytes:
        if not value:
            raise ValueError("image data must not be empty")
        return value

    @field_validator("media_type")
    @classmethod
    def _image_type(cls, value: str) -> str:
        if not value.startswith("image/"):
            raise ValueError(f"not an image media type: {value}")
        return value

    def to_base64(self) -> str:
        return bytes_to_base64(self.data)

    def to_data_url(self) -> str:
        return to_data_url(self.to_base64(), self.media_type)


class EditRequest(BaseModel):
    """One edit session's input. ``max_iterations`` is clamped on construction."""
    prompt: str = Field(..., min_length=1)
    reference_images: List[ImageAsset] = Field(..., min_length=1)
    max_iterations: int = 10

    class Config:
        frozen = True

    @field_validator("prompt")
    @classmethod
    def _prompt_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("prompt must not be blank")
        return value

    @field_validator("max_iterations")
    @classmethod
    def _clamp(cls, value: int) -> int:
        return clamp_iterations(value)

    @property
    def original(self) -> ImageAsset:
        """The primary reference image, kept for judging every candidate."""
        return self.reference_images[0]

    @property
    def supplementary(self) -> List[ImageAsset]:
        return list(self.reference_images[1:])


class IterationState(BaseModel):
    """Loop state for one iteration. Each iteration gets a fresh value."""
    iteration: int = Field(default=0, ge=0)
    current_image: ImageAsset
    last_feedback: Optional[str] = None

    class Config:
        frozen = True

    @property
    def current_media_type(self) -> str:
        return self.current_image.media_type

    def advance(self, candidate: ImageAsset, feedback: str) -> "IterationState":
        """State for the next iteration, working from ``candidate``."""
        return IterationState(
            iteration=self.iteration + 1,
            current_image=candidate,
            last_feedback=feedback,
        )


class Verdict(BaseModel):
    """Judge outcome for one candidate."""
    is_acceptable: bool
    feedback: str


class IterationView(BaseModel):
    """Consumer-side view of one iteration."""
    image: Optional[str] = None
    feedback: Optional[str] = None
    is_acceptable: Optional[bool] = None

    class Config:
        frozen = True


class SessionView(BaseModel):
    """Consumer-side view of a whole session, built by folding events."""
    iterations: Dict[int, IterationView] = Field(default_factory=dict)
    status_message: str = ""
    complete: bool = False
    error: Optional[str] = None

    class Config:
        frozen = True

    @property
    def status(self) -> SessionStatus:
        if self.error is not None:
            return SessionStatus.ERROR
        if self.complete:
            return SessionStatus.COMPLETE
        return SessionStatus.IN_PROGRESS

    @property
    def is_terminal(self) -> bool:
        return self.complete or self.error is not None

    @property
    def accepted_iteration(self) -> Optional[int]:
        """Index of the accepted iteration, if any.

        A completed session is not necessarily a successful one: an exhausted
        loop also completes, with every iteration rejected.
        """
        for index in sorted(self.iterations):
            if self.iterations[index].is_acceptable:
                return index
        return None

    @property
    def latest_image(self) -> Optional[str]:
        for index in sorted(self.iterations, reverse=True):
            if self.iterations[index].image is not None:
                return self.iterations[index].image
        return None
