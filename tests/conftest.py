import asyncio
import copy
import json

import pytest

from toolstream.agent import Agent
from toolstream.builtin_tools import default_tools
from toolstream.config import Settings
from toolstream.context import Context
from toolstream.provider import ModelInfo, ModelProvider
from toolstream.sandbox import CommandResult, Sandbox
from toolstream.session import Session


# ---------------------------------------------------------------------------
# SSE body builders (mirror the chat completions stream shape)
# ---------------------------------------------------------------------------

def frame(delta: dict | None = None, finish_reason: str | None = None) -> str:
    """One ``data:`` line for a single-choice chunk."""
    payload = {
        "id": "gen-1",
        "object": "chat.completion.chunk",
        "choices": [{
            "index": 0,
            "delta": delta or {},
            "finish_reason": finish_reason,
        }],
    }
    return f"data: {json.dumps(payload)}\n\n"


def split_bytes(body: str, size: int) -> list[bytes]:
    """Cut an encoded body into *size*-byte chunks, ignoring line breaks."""
    raw = body.encode()
    return [raw[i:i + size] for i in range(0, len(raw), size)]


def _pieces(text: str, size: int) -> list[str]:
    return [text[i:i + size] for i in range(0, len(text), size)] or [""]


def text_response(content: str, chunk_size: int = 7) -> list[bytes]:
    """Fake stream with text only (no tool calls)."""
    body = "".join(frame({"content": piece}) for piece in _pieces(content, 5))
    body += frame(finish_reason="stop") + "data: [DONE]\n\n"
    return split_bytes(body, chunk_size)


def tool_call_response(
    name: str,
    args: dict,
    call_id: str = "call_1",
    content: str | None = None,
    chunk_size: int = 11,
) -> list[bytes]:
    """Fake stream announcing a single tool call."""
    return multi_tool_call_response(
        [(name, args, call_id)], content=content, chunk_size=chunk_size,
    )


def multi_tool_call_response(
    calls: list[tuple[str, dict | str, str]],
    content: str | None = None,
    chunk_size: int = 11,
    interleave: bool = True,
) -> list[bytes]:
    """Fake stream announcing several tool calls.

    Each item in *calls* is ``(func_name, args, call_id)``; *args* may be a
    raw string to send malformed arguments. With *interleave*, argument
    fragments of different calls alternate.
    """
    body = ""
    if content:
        body += "".join(frame({"content": piece}) for piece in _pieces(content, 5))

    streams = []
    for index, (name, args, call_id) in enumerate(calls):
        text = args if isinstance(args, str) else json.dumps(args)
        body += frame({"tool_calls": [{
            "index": index, "id": call_id, "type": "function",
            "function": {"name": name, "arguments": ""},
        }]})
        streams.append([(index, piece) for piece in _pieces(text, 9)])

    if interleave:
        ordered = []
        longest = max(len(s) for s in streams)
        for i in range(longest):
            ordered.extend(s[i] for s in streams if i < len(s))
    else:
        ordered = [item for s in streams for item in s]

    for index, piece in ordered:
        body += frame({"tool_calls": [{
            "index": index, "function": {"arguments": piece},
        }]})
    body += frame(finish_reason="tool_calls") + "data: [DONE]\n\n"
    return split_bytes(body, chunk_size)


# ---------------------------------------------------------------------------
# Mock provider
# ---------------------------------------------------------------------------

class MockProvider(ModelProvider):
    """Provider that replays pre-queued byte streams. No network calls.

    An exception placed in a response's chunk list is raised at that
    point of the stream.
    """

    name = "mock"

    def __init__(self):
        self.responses: list[list] = []
        self.call_log: list[dict] = []
        self.models: list[ModelInfo] = []

    async def stream_chat(self, model, messages, tools=None):
        self.call_log.append({
            "model": model,
            "messages": copy.deepcopy(messages),
            "tools": tools,
        })
        if not self.responses:
            raise AssertionError("MockProvider has no queued response")
        for chunk in self.responses.pop(0):
            if isinstance(chunk, BaseException):
                raise chunk
            yield chunk

    async def list_models(self):
        return list(self.models)


# ---------------------------------------------------------------------------
# In-memory sandbox
# ---------------------------------------------------------------------------

HANG = "<hang>"


class InMemorySandbox(Sandbox):
    """Sandbox test double keeping files in a dict.

    ``command_results`` maps a command to a CommandResult, ``None``, an
    exception to raise, or ``HANG`` to never finish.
    """

    def __init__(self):
        self.files: dict[str, str] = {}
        self.directories: set[str] = set()
        self.log: list[tuple] = []
        self.command_results: dict = {}
        self.write_ok = True

    async def write_file(self, path, content):
        self.log.append(("write_file", path))
        if not self.write_ok:
            return False
        self.files[path] = content
        return True

    async def make_directory(self, path):
        self.log.append(("make_directory", path))
        existed = path in self.directories
        self.directories.add(path)
        return not existed

    async def read_file(self, path):
        self.log.append(("read_file", path))
        return self.files.get(path)

    async def run_command(self, command, background=False):
        self.log.append(("run_command", command, background))
        outcome = self.command_results.get(
            command, CommandResult(stdout=f"ran: {command}\n"),
        )
        if outcome == HANG:
            await asyncio.Event().wait()
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_provider():
    return MockProvider()


@pytest.fixture
def sandbox():
    return InMemorySandbox()


@pytest.fixture
def settings():
    return Settings(update_interval=0.05)


@pytest.fixture
def context(sandbox, settings):
    return Context(sandbox=sandbox, settings=settings)


@pytest.fixture
def session():
    return Session(session_id="s1")


@pytest.fixture
def make_agent(mock_provider, settings):
    """Factory fixture to build agents on the mock provider."""
    def _make(tools=None, system_prompt="You are helpful.", provider=None):
        return Agent(
            model="mock-model",
            provider=provider or mock_provider,
            tools=default_tools(settings) if tools is None else tools,
            system_prompt=system_prompt,
        )
    return _make
