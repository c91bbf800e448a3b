"""Streaming primitives for chat completion responses.

Decoded wire frames are normalised into :class:`StreamChunk` objects.
The :class:`ToolCallAccumulator` reassembles tool calls whose names and
arguments arrive in fragments across multiple chunks, and the
:class:`DeltaAccumulator` folds a whole response into a
:class:`StreamResult`.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field, replace
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class ToolCallFragment:
    """A fragment of a tool call from a streaming chunk."""

    index: int
    call_id: str | None = None
    name: str | None = None
    arguments_delta: str | None = None


@dataclass
class StreamChunk:
    """Normalised streaming chunk."""

    content_delta: str | None = None
    tool_call_fragments: list[ToolCallFragment] | None = None
    finish_reason: str | None = None


@dataclass
class ToolCall:
    """A tool call announced by the model.

    ``arguments`` is only valid JSON once the owning response has ended.
    """

    id: str = ""
    name: str = ""
    arguments: str = ""


@dataclass
class StreamResult:
    """Collapsed state of one response stream."""

    content: str = ""
    tool_calls: list[ToolCall] = field(default_factory=list)
    finish_reason: str | None = None


def _placeholder_id() -> str:
    return f"call_{uuid.uuid4().hex[:24]}"


def _parse_fragment(raw: Any, position: int) -> ToolCallFragment | None:
    if not isinstance(raw, dict):
        return None
    index = raw.get("index", position)
    if not isinstance(index, int) or isinstance(index, bool):
        return None
    function = raw.get("function")
    if not isinstance(function, dict):
        function = {}
    call_id = raw.get("id")
    name = function.get("name")
    arguments = function.get("arguments")
    return ToolCallFragment(
        index=index,
        call_id=call_id if isinstance(call_id, str) else None,
        name=name if isinstance(name, str) else None,
        arguments_delta=arguments if isinstance(arguments, str) else None,
    )


def parse_chunk(frame: dict) -> StreamChunk:
    """Read ``choices[0]`` of a decoded frame into a :class:`StreamChunk`.

    Pieces of the wrong shape are dropped rather than raised, the same way
    the frame decoder treats undecodable lines.
    """
    choices = frame.get("choices")
    if not isinstance(choices, list) or not choices:
        return StreamChunk()
    choice = choices[0]
    if not isinstance(choice, dict):
        return StreamChunk()

    finish_reason = choice.get("finish_reason")
    delta = choice.get("delta")
    if not isinstance(delta, dict):
        delta = {}

    content = delta.get("content")
    fragments = None
    raw_calls = delta.get("tool_calls")
    if isinstance(raw_calls, list):
        fragments = [
            frag for frag in (
                _parse_fragment(raw, pos) for pos, raw in enumerate(raw_calls)
            )
            if frag is not None
        ] or None

    return StreamChunk(
        content_delta=content if isinstance(content, str) and content else None,
        tool_call_fragments=fragments,
        finish_reason=finish_reason if isinstance(finish_reason, str) else None,
    )


class ToolCallAccumulator:
    """Assembles complete tool calls from streaming fragments.

    Fragments for different indices may interleave freely.
    """

    def __init__(self) -> None:
        self._pending: dict[int, ToolCall] = {}

    def feed(self, fragment: ToolCallFragment) -> ToolCall:
        if fragment.index not in self._pending:
            self._pending[fragment.index] = ToolCall(id=_placeholder_id())
        tc = self._pending[fragment.index]
        if fragment.call_id:
            tc.id = fragment.call_id
        if fragment.name is not None:
            tc.name += fragment.name
        if fragment.arguments_delta is not None:
            tc.arguments += fragment.arguments_delta
        return tc

    def get(self, index: int) -> ToolCall | None:
        return self._pending.get(index)

    def finalize(self) -> list[ToolCall]:
        """Return copies of the tool calls in index order."""
        return [replace(self._pending[i]) for i in sorted(self._pending)]


class DeltaAccumulator:
    """Folds the frames of one response into a :class:`StreamResult`.

    Owned by a single request; the Runner creates a fresh one per
    iteration and drops it once the stream has ended.
    """

    def __init__(self) -> None:
        self.content = ""
        self.finish_reason: str | None = None
        self.tool_calls = ToolCallAccumulator()

    def feed(self, frame: dict) -> StreamChunk:
        chunk = parse_chunk(frame)
        if chunk.finish_reason is not None:
            self.finish_reason = chunk.finish_reason
        if chunk.content_delta:
            self.content += chunk.content_delta
        if chunk.tool_call_fragments:
            for frag in chunk.tool_call_fragments:
                self.tool_calls.feed(frag)
        return chunk

    def finalize(self) -> StreamResult:
        result = StreamResult(
            content=self.content,
            tool_calls=self.tool_calls.finalize(),
            finish_reason=self.finish_reason,
        )
        logger.debug(
            "Stream finished: %d chars, %d tool calls, finish_reason=%s",
            len(result.content), len(result.tool_calls), result.finish_reason,
        )
        return result
