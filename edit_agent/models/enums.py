"""Enumerations for the edit agent."""

from enum import Enum


class EventType(str, Enum):
    """Discriminator values of progress events on the wire."""
    STATUS = "status"
    IMAGE = "image"
    EVALUATION = "evaluation"
    COMPLETE = "complete"
    ERROR = "error"
    # Reserved on the wire, never produced and ignored on decode.
    ITERATION = "iteration"


class SessionStatus(str, Enum):
    """Overall status of a session as seen by a consumer."""
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"
    ERROR = "error"


class LoopOutcome(str, Enum):
    """Terminal state of the refinement loop."""
    ACCEPTED = "accepted"
    EXHAUSTED = "exhausted"
    FAILED = "failed"
    CANCELLED = "cancelled"
