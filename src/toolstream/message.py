from enum import Enum

from pydantic import BaseModel, ConfigDict, field_serializer

from toolstream.streaming import ToolCall


class MessageRole(Enum):
    SYSTEM = "system"
    ASSISTANT = "assistant"
    USER = "user"
    TOOL = "tool"


class Message(BaseModel):
    """One turn of the conversation. Turns never change once appended."""

    model_config = ConfigDict(frozen=True)

    role: MessageRole
    content: str | None

    @field_serializer('role')
    def serialize_role(self, role: MessageRole, _info) -> str:
        return role.value


class ToolCallRequestMessage(Message):
    """Assistant turn that announced one or more tool calls."""

    tool_calls: tuple[ToolCall, ...]

    @field_serializer("tool_calls")
    def serialize_tool_calls(self, tool_calls: tuple[ToolCall, ...]) -> list[dict]:
        return [
            {
                "id": t.id,
                "type": "function",
                "function": {
                    "arguments": t.arguments,
                    "name": t.name
                }
            }
            for t in tool_calls
        ]


class ToolCallResultMessage(Message):
    tool_call_id: str
