from toolstream.agent import Agent
from toolstream.builtin_tools import BashTool, FileReadTool, FileWriteTool, default_tools
from toolstream.chat import ChatSession, ChatSnapshot
from toolstream.config import Settings, configure_logging
from toolstream.context import Context
from toolstream.events import (
    ContentDeltaEvent,
    FilePreviewEvent,
    RunCompleteEvent,
    RunErrorEvent,
    StreamEvent,
    ToolCallEvent,
)
from toolstream.instrumentation import instrument, uninstrument
from toolstream.message import (
    Message,
    MessageRole,
    ToolCallRequestMessage,
    ToolCallResultMessage,
)
from toolstream.provider import (
    ModelInfo,
    ModelProvider,
    OpenAICompatibleProvider,
    OpenRouter,
)
from toolstream.runner import Runner, RunResult
from toolstream.sandbox import CommandResult, Sandbox
from toolstream.session import Session
from toolstream.tools import Tool, ToolArgumentError, ToolResult

__all__ = [
    "Agent",
    "BashTool",
    "ChatSession",
    "ChatSnapshot",
    "CommandResult",
    "ContentDeltaEvent",
    "Context",
    "FilePreviewEvent",
    "FileReadTool",
    "FileWriteTool",
    "Message",
    "MessageRole",
    "ModelInfo",
    "ModelProvider",
    "OpenAICompatibleProvider",
    "OpenRouter",
    "RunCompleteEvent",
    "RunErrorEvent",
    "RunResult",
    "Runner",
    "Sandbox",
    "Session",
    "Settings",
    "StreamEvent",
    "Tool",
    "ToolArgumentError",
    "ToolCallEvent",
    "ToolCallRequestMessage",
    "ToolCallResultMessage",
    "ToolResult",
    "configure_logging",
    "default_tools",
    "instrument",
    "uninstrument",
]
