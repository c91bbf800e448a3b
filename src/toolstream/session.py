from pydantic import BaseModel, Field, SerializeAsAny

from toolstream.message import Message


class Session(BaseModel):
    """Ordered turn history of one conversation.

    The history only grows: the Runner appends turns and nothing removes
    or reorders them.
    """

    session_id: str
    transcript: list[SerializeAsAny[Message]] = Field(default_factory=list)

    def append(self, message: Message) -> None:
        self.transcript.append(message)

    def to_openai(self) -> list[dict]:
        return [m.model_dump() for m in self.transcript]
