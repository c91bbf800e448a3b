import pytest
from pydantic import ValidationError

from toolstream.message import (
    Message,
    MessageRole,
    ToolCallRequestMessage,
    ToolCallResultMessage,
)
from toolstream.streaming import ToolCall


def test_tool_call_request_serializes_to_wire_shape():
    """The custom serializer emits the chat completions tool_calls shape."""
    msg = ToolCallRequestMessage(
        role=MessageRole.ASSISTANT,
        content=None,
        tool_calls=(ToolCall(id="call_abc", name="greet", arguments='{"name": "world"}'),),
    )
    dumped = msg.model_dump()
    assert dumped == {
        "role": "assistant",
        "content": None,
        "tool_calls": [
            {
                "id": "call_abc",
                "type": "function",
                "function": {
                    "name": "greet",
                    "arguments": '{"name": "world"}',
                },
            }
        ],
    }


def test_tool_result_message_keeps_call_id():
    msg = ToolCallResultMessage(
        role=MessageRole.TOOL, content='{"success": true}', tool_call_id="call_1",
    )
    assert msg.model_dump() == {
        "role": "tool", "content": '{"success": true}', "tool_call_id": "call_1",
    }


def test_messages_are_immutable():
    msg = Message(role=MessageRole.USER, content="hi")
    with pytest.raises(ValidationError):
        msg.content = "changed"
