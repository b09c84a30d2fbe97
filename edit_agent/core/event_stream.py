"""Line-oriented wire format for progress events.

Each event is one line: ``0:`` followed by a compact JSON object and ``\\n``.
The decoder tolerates arbitrary chunk boundaries, including ones that split
a multi-byte UTF-8 sequence.
"""

import asyncio
import codecs
import json
from typing import AsyncIterable, AsyncIterator, List, Optional, Set

from pydantic import ValidationError

from .orchestrator import Orchestrator
from ..models.enums import EventType
from ..models.events import ProgressEvent, event_to_dict, parse_event
from ..models.schemas import EditRequest
from ..utils.errors import EncodingError
from ..utils.logger import get_logger

logger = get_logger(__name__)

FRAME_PREFIX = "0:"
STREAM_MEDIA_TYPE = "text/plain; charset=utf-8"


def encode_event(event: ProgressEvent) -> bytes:
    """
    Serialize one event to a single wire line.

    Raises:
        EncodingError: If the event cannot be serialized
    """
    try:
        payload = json.dumps(event_to_dict(event), separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError, AttributeError) as e:
        raise EncodingError(f"Could not encode {type(event).__name__}: {e}") from e
    return f"{FRAME_PREFIX}{payload}\n".encode("utf-8")


class EventStreamDecoder:
    """Incremental decoder: feed raw chunks, get complete events back."""

    def __init__(self, prefix: str = FRAME_PREFIX):
        self.prefix = prefix
        self.dropped = 0
        self._text = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""

    def feed(self, chunk: bytes) -> List[ProgressEvent]:
        """Consume a chunk; return the events from every line it completed."""
        self._buffer += self._text.decode(chunk)
        lines = self._buffer.split("\n")
        # The last piece has no newline yet; keep it for the next chunk.
        self._buffer = lines.pop()
        return self._parse_lines(lines)

    def flush(self) -> List[ProgressEvent]:
        """End of stream: parse whatever is left in the buffer."""
        self._buffer += self._text.decode(b"", final=True)
        remaining, self._buffer = self._buffer, ""
        return self._parse_lines([remaining])

    def _parse_lines(self, lines: List[str]) -> List[ProgressEvent]:
        events = []
        for line in lines:
            event = self._parse_line(line)
            if event is not None:
                events.append(event)
        return events

    def _parse_line(self, line: str) -> Optional[ProgressEvent]:
        line = line.strip()
        if not line:
            return None
        if not line.startswith(self.prefix):
            logger.debug("Ignoring non-event line", extra={"line": line[:100]})
            return None

        raw = line[len(self.prefix):]
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            self.dropped += 1
            logger.warning(
                "Failed to parse stream data",
                extra={"line": raw[:200], "error": str(e)}
            )
            return None

        if isinstance(data, dict) and data.get("type") == EventType.ITERATION.value:
            return None

        try:
            return parse_event(data)
        except ValidationError as e:
            self.dropped += 1
            logger.warning(
                "Dropping invalid event",
                extra={"line": raw[:200], "error_count": e.error_count()}
            )
            return None


async def decode_stream(chunks: AsyncIterable[bytes]) -> AsyncIterator[ProgressEvent]:
    """Decode an async byte stream into events, in order."""
    decoder = EventStreamDecoder()
    async for chunk in chunks:
        for event in decoder.feed(chunk):
            yield event
    for event in decoder.flush():
        yield event


# Producer tasks are referenced here until they finish, so a session whose
# consumer disconnected is not garbage-collected mid-call.
_running_sessions: Set[asyncio.Task] = set()

_END = object()


def _on_session_done(task: asyncio.Task):
    _running_sessions.discard(task)
    if not task.cancelled() and task.exception() is not None:
        logger.error(
            "Session producer crashed",
            extra={"error": str(task.exception())}
        )


async def encoded_session(
    orchestrator: Orchestrator,
    request: EditRequest,
    cancel: Optional[asyncio.Event] = None,
) -> AsyncIterator[bytes]:
    """
    Run a session and yield its encoded frames one at a time.

    The loop runs in its own task and hands events over a queue, so a slow or
    vanished consumer never blocks it. When the consumer stops iterating, the
    cancel event is set; the loop notices at its next check.
    """
    cancel = cancel or asyncio.Event()
    queue: asyncio.Queue = asyncio.Queue()

    async def produce():
        try:
            async for event in orchestrator.run(request, cancel):
                queue.put_nowait(event)
        finally:
            queue.put_nowait(_END)

    task = asyncio.create_task(produce())
    _running_sessions.add(task)
    task.add_done_callback(_on_session_done)

    try:
        while True:
            event = await queue.get()
            if event is _END:
                break
            try:
                frame = encode_event(event)
            except EncodingError as e:
                logger.warning(
                    "Skipping event that failed to encode",
                    extra={"event_type": getattr(event, "type", None), "error": str(e)}
                )
                continue
            yield frame
    finally:
        if not task.done():
            cancel.set()
            logger.info("Consumer stopped reading, cancelling session")
