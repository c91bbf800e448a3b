from toolstream.message import (
    Message,
    MessageRole,
    ToolCallRequestMessage,
    ToolCallResultMessage,
)
from toolstream.session import Session
from toolstream.streaming import ToolCall


def test_plain_messages_round_trip():
    """A transcript of plain messages survives dump/validate."""
    session = Session(session_id="s1")
    session.append(Message(role=MessageRole.USER, content="hello"))
    session.append(Message(role=MessageRole.ASSISTANT, content="hi there"))
    session.append(Message(role=MessageRole.USER, content="bye"))

    restored = Session.model_validate(session.model_dump())

    assert restored.session_id == "s1"
    assert [m.content for m in restored.transcript] == ["hello", "hi there", "bye"]
    for orig, rest in zip(session.transcript, restored.transcript):
        assert orig.role == rest.role


def test_subclass_fields_survive_dump():
    """Tool-call turns keep their own fields when the session is dumped."""
    session = Session(session_id="s1")
    session.append(Message(role=MessageRole.USER, content="hi"))
    session.append(ToolCallResultMessage(
        role=MessageRole.TOOL, content="result data", tool_call_id="call_42",
    ))

    dumped = session.model_dump()

    assert dumped["transcript"][1] == {
        "role": "tool", "content": "result data", "tool_call_id": "call_42",
    }


def test_to_openai_preserves_order_and_shape():
    session = Session(session_id="s1")
    session.append(Message(role=MessageRole.USER, content="write it"))
    session.append(ToolCallRequestMessage(
        role=MessageRole.ASSISTANT,
        content="On it.",
        tool_calls=(ToolCall(id="c1", name="bash", arguments="{}"),),
    ))
    session.append(ToolCallResultMessage(
        role=MessageRole.TOOL, content="{}", tool_call_id="c1",
    ))

    messages = session.to_openai()

    assert [m["role"] for m in messages] == ["user", "assistant", "tool"]
    assert messages[1]["tool_calls"][0]["id"] == "c1"
    assert messages[2]["tool_call_id"] == "c1"


def test_new_sessions_do_not_share_history():
    a, b = Session(session_id="a"), Session(session_id="b")
    a.append(Message(role=MessageRole.USER, content="x"))
    assert b.transcript == []
