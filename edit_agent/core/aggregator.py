"""Fold a progress event sequence into a renderable session view."""

from typing import Iterable, Optional

from ..models.events import (
    CompleteEvent,
    ErrorEvent,
    EvaluationEvent,
    ImageEvent,
    ProgressEvent,
    StatusEvent,
)
from ..models.schemas import IterationView, SessionView
from ..utils.images import to_data_url


def _merge_iteration(view: SessionView, index: int, **fields) -> SessionView:
    # Only the fields this event carries are replaced.
    current = view.iterations.get(index, IterationView())
    iterations = dict(view.iterations)
    iterations[index] = current.model_copy(update=fields)
    return view.model_copy(update={"iterations": iterations})


def apply_event(view: SessionView, event: ProgressEvent) -> SessionView:
    """Return a new view with ``event`` applied. ``view`` is left untouched."""
    if isinstance(event, StatusEvent):
        return view.model_copy(update={"status_message": event.message})
    if isinstance(event, ImageEvent):
        return _merge_iteration(
            view,
            event.iteration,
            image=to_data_url(event.base64, event.media_type or "image/png"),
        )
    if isinstance(event, EvaluationEvent):
        return _merge_iteration(
            view,
            event.iteration,
            feedback=event.feedback,
            is_acceptable=event.is_acceptable,
        )
    if isinstance(event, CompleteEvent):
        return view.model_copy(update={"complete": True})
    if isinstance(event, ErrorEvent):
        return view.model_copy(update={"error": event.message or "An error occurred"})
    raise TypeError(f"Unknown event type: {type(event).__name__}")


def fold_events(
    events: Iterable[ProgressEvent],
    view: Optional[SessionView] = None,
) -> SessionView:
    """Apply ``events`` in order, starting from ``view`` or an empty session."""
    view = view or SessionView()
    for event in events:
        view = apply_event(view, event)
    return view
