"""Data models and schemas for the edit agent."""

from .schemas import (
    ImageAsset,
    EditRequest,
    IterationState,
    Verdict,
    IterationView,
    SessionView,
    clamp_iterations,
    MIN_ITERATIONS,
    MAX_ITERATIONS_CAP,
)
from .events import (
    ProgressEvent,
    StatusEvent,
    ImageEvent,
    EvaluationEvent,
    CompleteEvent,
    ErrorEvent,
    parse_event,
    event_to_dict,
)
from .enums import (
    EventType,
    SessionStatus,
    LoopOutcome,
)

__all__ = [
    "ImageAsset",
    "EditRequest",
    "IterationState",
    "Verdict",
    "IterationView",
    "SessionView",
    "clamp_iterations",
    "MIN_ITERATIONS",
    "MAX_ITERATIONS_CAP",
    "ProgressEvent",
    "StatusEvent",
    "ImageEvent",
    "EvaluationEvent",
    "CompleteEvent",
    "ErrorEvent",
    "parse_event",
    "event_to_dict",
    "EventType",
    "SessionStatus",
    "LoopOutcome",
]
