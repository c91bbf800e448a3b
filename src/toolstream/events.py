"""Streaming events emitted while a conversation runs."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class StreamEvent:
    """Base for all streaming events."""


@dataclass
class ContentDeltaEvent(StreamEvent):
    """Text delta from the model, forwarded as soon as it is decoded."""

    content: str = ""


@dataclass
class FilePreviewEvent(StreamEvent):
    """Best-effort view of a ``file_write`` call whose arguments are
    still streaming. Advisory only; superseded by the ToolCallEvent.

    ``replaces_tool_call_id`` is set when the call's id changed since its
    previous preview; consumers keyed by id drop that entry."""

    tool_call_id: str = ""
    file_path: str = ""
    streamed_content: str = ""
    is_complete: bool = False
    replaces_tool_call_id: str | None = None


@dataclass
class ToolCallEvent(StreamEvent):
    """A tool call that has been dispatched, with its outcome."""

    tool_call_id: str = ""
    tool_name: str = ""
    file_path: str | None = None
    content: str | None = None
    result: dict = field(default_factory=dict)


@dataclass
class RunErrorEvent(StreamEvent):
    """The run stopped because the transport or the loop failed."""

    error: str = ""


@dataclass
class RunCompleteEvent(StreamEvent):
    """Final event, always the last one yielded."""

    result: Any = None
