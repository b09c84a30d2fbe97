"""Progress events emitted by the refinement loop.

``ProgressEvent`` is a closed union discriminated by ``type``. Field names on
the wire are camelCase (``mediaType``, ``isAcceptable``); use
``model_dump(by_alias=True)`` to serialize and ``parse_event`` to read.
"""

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter


class _Event(BaseModel):
    class Config:
        frozen = True
        populate_by_name = True


class StatusEvent(_Event):
    type: Literal["status"] = "status"
    message: str


class ImageEvent(_Event):
    type: Literal["image"] = "image"
    iteration: int = Field(..., ge=0)
    base64: str
    media_type: str = Field(default="image/png", alias="mediaType")


class EvaluationEvent(_Event):
    type: Literal["evaluation"] = "evaluation"
    iteration: int = Field(..., ge=0)
    feedback: str = ""
    is_acceptable: bool = Field(..., alias="isAcceptable")


class CompleteEvent(_Event):
    type: Literal["complete"] = "complete"


class ErrorEvent(_Event):
    type: Literal["error"] = "error"
    message: str


ProgressEvent = Annotated[
    Union[StatusEvent, ImageEvent, EvaluationEvent, CompleteEvent, ErrorEvent],
    Field(discriminator="type"),
]

_adapter: TypeAdapter = TypeAdapter(ProgressEvent)


def parse_event(data: Any) -> ProgressEvent:
    """Build a typed event from a decoded JSON object.

    Raises:
        pydantic.ValidationError: unknown ``type`` or missing fields
    """
    return _adapter.validate_python(data)


def event_to_dict(event: ProgressEvent) -> dict:
    return event.model_dump(by_alias=True)
