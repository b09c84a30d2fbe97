"""Core business logic components."""

from .normalizer import ImageNormalizer
from .image_generator import ImageGenerator
from .judge import Judge, parse_verdict
from .orchestrator import Orchestrator, build_iteration_prompt
from .event_stream import (
    EventStreamDecoder,
    encode_event,
    decode_stream,
    encoded_session,
)
from .aggregator import apply_event, fold_events

__all__ = [
    "ImageNormalizer",
    "ImageGenerator",
    "Judge",
    "parse_verdict",
    "Orchestrator",
    "build_iteration_prompt",
    "EventStreamDecoder",
    "encode_event",
    "decode_stream",
    "encoded_session",
    "apply_event",
    "fold_events",
]
