import logging
import uuid
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass, field, replace

from toolstream.agent import Agent
from toolstream.builtin_tools import default_tools
from toolstream.config import Settings
from toolstream.context import Context
from toolstream.events import (
    ContentDeltaEvent,
    FilePreviewEvent,
    RunCompleteEvent,
    RunErrorEvent,
    StreamEvent,
    ToolCallEvent,
)
from toolstream.message import Message, MessageRole
from toolstream.provider import ModelInfo, provider_from_settings
from toolstream.runner import Runner, RunResult
from toolstream.sandbox import Sandbox
from toolstream.session import Session
from toolstream.throttle import UpdateThrottle

logger = logging.getLogger(__name__)


@dataclass
class ChatSnapshot:
    """What a front-end needs to render the reply in progress.

    Args:
        content: Visible assistant text so far.
        previews: Live ``file_write`` previews keyed by tool call id.
            A preview is dropped once its call has been executed.
        tool_events: Executed tool calls, in order.
        error: Set when the run aborted.
        is_streaming: ``False`` only on the final snapshot.
    """

    content: str = ""
    previews: dict[str, FilePreviewEvent] = field(default_factory=dict)
    tool_events: list[ToolCallEvent] = field(default_factory=list)
    error: str | None = None
    is_streaming: bool = True

    def copy(self) -> "ChatSnapshot":
        return replace(
            self,
            previews=dict(self.previews),
            tool_events=list(self.tool_events),
        )


class ChatSession:
    """A conversation with one agent over one sandbox.

    Owns the transcript across ``send()`` calls. Only one reply may be in
    flight at a time.

    Args:
        agent: Model, provider and tools to use.
        sandbox: Where tool calls take effect.
        settings: Limits, or defaults.
        runner: Runner instance, or one built from *settings*.
        session: Existing transcript to continue.
    """

    def __init__(
        self,
        agent: Agent,
        sandbox: Sandbox,
        settings: Settings | None = None,
        runner: Runner | None = None,
        session: Session | None = None,
    ):
        self.settings = settings or Settings()
        self.agent = agent
        self.context = Context(sandbox=sandbox, settings=self.settings)
        self.runner = runner or Runner(max_iterations=self.settings.max_tool_iterations)
        self.session = session or Session(session_id=str(uuid.uuid4()))
        self._streaming = False

    @classmethod
    def from_settings(
        cls, settings: Settings, sandbox: Sandbox, model: str | None = None,
    ) -> "ChatSession":
        model = model or settings.model
        if not model:
            raise ValueError("a model must be given or set in settings")
        agent = Agent(
            model=model,
            provider=provider_from_settings(settings),
            tools=default_tools(settings),
        )
        return cls(agent=agent, sandbox=sandbox, settings=settings)

    @property
    def is_streaming(self) -> bool:
        return self._streaming

    async def models(self) -> list[ModelInfo]:
        return await self.agent.provider.list_models()

    async def iter(self, user_message: str) -> AsyncIterator[StreamEvent]:
        """Append a user message and stream the Runner's events."""
        if not user_message.strip():
            raise ValueError("message is empty")
        if self._streaming:
            raise RuntimeError("a reply is already streaming")
        self._streaming = True
        try:
            self.session.append(
                Message(role=MessageRole.USER, content=user_message.strip())
            )
            async for event in self.runner.iter(self.agent, self.session, self.context):
                yield event
        finally:
            self._streaming = False

    async def send(
        self,
        user_message: str,
        observer: Callable[[ChatSnapshot], None] | None = None,
    ) -> RunResult:
        """Run one exchange, publishing throttled snapshots to *observer*.

        The final snapshot is always delivered, immediately, with
        ``is_streaming=False``.
        """
        snapshot = ChatSnapshot()
        throttle = None
        if observer is not None:
            throttle = UpdateThrottle(
                lambda s: observer(s.copy()), self.settings.update_interval,
            )

        result: RunResult | None = None
        try:
            async for event in self.iter(user_message):
                if isinstance(event, RunCompleteEvent):
                    result = event.result
                    continue
                self._apply(snapshot, event)
                if throttle is not None:
                    throttle.update(snapshot)
        finally:
            if throttle is not None:
                throttle.cancel()

        if result is None:
            raise RuntimeError("iter() ended without emitting RunCompleteEvent")
        snapshot.is_streaming = False
        if throttle is not None:
            throttle.flush(snapshot)
        return result

    @staticmethod
    def _apply(snapshot: ChatSnapshot, event: StreamEvent) -> None:
        if isinstance(event, ContentDeltaEvent):
            snapshot.content += event.content
        elif isinstance(event, FilePreviewEvent):
            if event.replaces_tool_call_id is not None:
                snapshot.previews.pop(event.replaces_tool_call_id, None)
            snapshot.previews[event.tool_call_id] = event
        elif isinstance(event, ToolCallEvent):
            snapshot.previews.pop(event.tool_call_id, None)
            snapshot.tool_events.append(event)
        elif isinstance(event, RunErrorEvent):
            logger.info(f"Reply failed: {event.error}")
            snapshot.error = event.error
            separator = "\n\n" if snapshot.content else ""
            snapshot.content += f"{separator}Error: {event.error}"
