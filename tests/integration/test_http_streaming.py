"""End-to-end streaming: HTTP body in, Runner events and SSE frames out."""

import json

import httpx
import pytest

from toolstream.agent import Agent
from toolstream.builtin_tools import default_tools
from toolstream.events import (
    ContentDeltaEvent,
    FilePreviewEvent,
    RunCompleteEvent,
    ToolCallEvent,
)
from toolstream.message import Message, MessageRole
from toolstream.provider import OpenAICompatibleProvider
from toolstream.runner import Runner
from toolstream.session import Session
from toolstream.sse import sse_generator

from tests.conftest import text_response, tool_call_response


class QueuedBodies:
    """httpx handler answering each POST with the next queued body."""

    def __init__(self, bodies: list[list[bytes]]):
        self.bodies = list(bodies)
        self.requests: list[dict] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(json.loads(request.content))
        return httpx.Response(
            200,
            content=b"".join(self.bodies.pop(0)),
            headers={"content-type": "text/event-stream"},
        )


def _agent(handler, settings):
    provider = OpenAICompatibleProvider(
        base_url="https://llm.example.com/v1",
        api_key="sk-test",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )
    return Agent(
        model="m", provider=provider,
        tools=default_tools(settings), system_prompt="Help.",
    )


def _session(text="make a page"):
    session = Session(session_id="s1")
    session.append(Message(role=MessageRole.USER, content=text))
    return session


class TestRunnerOverHttp:
    @pytest.mark.asyncio
    async def test_text_response_events(self, settings, context):
        handler = QueuedBodies([text_response("Hello!")])
        events = [e async for e in Runner().iter(_agent(handler, settings), _session(), context)]

        assert all(isinstance(e, ContentDeltaEvent) for e in events[:-1])
        assert "".join(e.content for e in events[:-1]) == "Hello!"
        assert isinstance(events[-1], RunCompleteEvent)
        assert handler.requests[0]["messages"][0] == {"role": "system", "content": "Help."}

    @pytest.mark.asyncio
    async def test_file_write_event_sequence(self, settings, context, sandbox):
        args = {
            "file_path": "/home/user/site/index.html",
            "operations": [{"type": "write", "content": "<h1>Hi</h1>\n"}],
        }
        handler = QueuedBodies([
            tool_call_response("file_write", args, call_id="call_w", content="Sure."),
            text_response("Created."),
        ])

        events = [e async for e in Runner().iter(_agent(handler, settings), _session(), context)]
        kinds = [type(e) for e in events]

        first_tool = kinds.index(ToolCallEvent)
        assert ContentDeltaEvent in kinds[:first_tool]
        assert FilePreviewEvent in kinds[:first_tool]
        assert kinds[-1] is RunCompleteEvent
        assert sandbox.files["/home/user/site/index.html"] == "<h1>Hi</h1>\n"

        followup = handler.requests[1]["messages"]
        assert followup[2]["tool_calls"][0]["id"] == "call_w"
        assert followup[3]["role"] == "tool"
        assert followup[3]["tool_call_id"] == "call_w"
        assert json.loads(followup[3]["content"])["success"] is True


class TestSSE:
    @pytest.mark.asyncio
    async def test_sse_format(self, settings, context):
        handler = QueuedBodies([text_response("Hi")])

        frames = [
            f async for f in sse_generator(
                Runner().iter(_agent(handler, settings), _session(), context),
            )
        ]

        assert frames[0].startswith("event: ContentDeltaEvent\n")
        assert frames[-2].startswith("event: RunCompleteEvent\n")
        assert frames[-1] == "event: done\ndata: {}\n\n"
        for frame in frames:
            assert frame.endswith("\n\n")

    @pytest.mark.asyncio
    async def test_sse_payloads(self, settings, context):
        handler = QueuedBodies([text_response("Hello world")])

        frames = [
            f async for f in sse_generator(
                Runner().iter(_agent(handler, settings), _session(), context),
            )
        ]

        payloads = [
            json.loads(f.split("\n")[1].removeprefix("data: ")) for f in frames
        ]
        text = "".join(p["content"] for p in payloads[:-2])
        assert text == "Hello world"
        assert payloads[-2]["status"] == "done"
        assert payloads[-2]["content"] == "Hello world"
