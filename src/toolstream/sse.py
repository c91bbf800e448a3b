"""Server-Sent Events framing in both directions.

``decode_frames`` turns a chunked chat-completion body into decoded JSON
frames; ``sse_generator`` encodes the Runner's own events for a web
front-end.
"""

from __future__ import annotations

import codecs
import json
import logging
from collections.abc import AsyncIterable, AsyncIterator
from dataclasses import asdict

from toolstream.events import RunCompleteEvent, StreamEvent

logger = logging.getLogger(__name__)

DATA_PREFIX = "data: "
DONE_SENTINEL = "data: [DONE]"


def _decode_line(line: str) -> dict | None:
    line = line.strip()
    if not line or line == DONE_SENTINEL:
        return None
    if not line.startswith(DATA_PREFIX):
        return None
    try:
        frame = json.loads(line[len(DATA_PREFIX):])
    except json.JSONDecodeError:
        logger.debug(f"Skipping malformed frame: {line[:80]!r}")
        return None
    if not isinstance(frame, dict):
        return None
    return frame


async def decode_frames(
    chunks: AsyncIterable[bytes | str],
) -> AsyncIterator[dict]:
    """Reassemble ``data:`` frames from arbitrarily split chunks.

    Lines are only decoded once their newline has arrived, so chunk
    boundaries may fall anywhere, including inside a multi-byte
    character. Errors raised by *chunks* itself propagate.
    """
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    buffer = ""
    async for chunk in chunks:
        if isinstance(chunk, bytes):
            buffer += decoder.decode(chunk)
        else:
            buffer += chunk
        lines = buffer.split("\n")
        buffer = lines.pop()
        for line in lines:
            frame = _decode_line(line)
            if frame is not None:
                yield frame

    buffer += decoder.decode(b"", final=True)
    frame = _decode_line(buffer)
    if frame is not None:
        yield frame


async def sse_generator(
    event_stream: AsyncIterator[StreamEvent],
) -> AsyncIterator[str]:
    """Convert a StreamEvent async iterator into SSE-formatted strings."""
    async for event in event_stream:
        event_type = type(event).__name__
        if isinstance(event, RunCompleteEvent):
            data = json.dumps(event.result.summary())
        else:
            data = json.dumps(asdict(event))
        yield f"event: {event_type}\ndata: {data}\n\n"
    yield "event: done\ndata: {}\n\n"
