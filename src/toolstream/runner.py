import logging
from collections.abc import AsyncIterator, Iterator
from dataclasses import dataclass

from toolstream.agent import Agent
from toolstream.builtin_tools import FILE_WRITE_TOOL_NAME
from toolstream.context import Context
from toolstream.dispatcher import ToolDispatcher
from toolstream.events import (
    ContentDeltaEvent,
    FilePreviewEvent,
    RunCompleteEvent,
    RunErrorEvent,
    StreamEvent,
    ToolCallEvent,
)
from toolstream.instrumentation import (
    completion_span,
    conversation_span,
    record_error,
    record_finish,
)
from toolstream.message import (
    Message,
    MessageRole,
    ToolCallRequestMessage,
    ToolCallResultMessage,
)
from toolstream.preview import PartialPreview, preview_file_write
from toolstream.session import Session
from toolstream.sse import decode_frames
from toolstream.streaming import DeltaAccumulator, StreamChunk

logger = logging.getLogger(__name__)

MAX_ITERATIONS_NOTICE = (
    "\n\n[Stopped after {limit} tool iterations, the maximum for one "
    "message. Send another message to continue.]"
)


@dataclass
class RunResult:
    """The result of a single Runner.run() invocation.

    ``status`` is ``"done"``, ``"max_iterations"`` or ``"error"``.
    ``content`` is all text shown to the user during the run.
    """

    status: str
    content: str
    iterations: int
    last_message: Message | None = None
    error: str | None = None

    def summary(self) -> dict:
        return {
            "status": self.status,
            "content": self.content,
            "iterations": self.iterations,
            "error": self.error,
        }


class Runner:
    """Drives the request / stream / dispatch cycle for one user message.

    Each iteration sends the system prompt, the whole transcript and the
    tool schemas; streams the response; and, if the model called tools,
    appends the assistant turn plus one tool turn per call (in announced
    order) before requesting again. Tool calls run one at a time after
    their response has fully ended, since later calls may read files
    written by earlier ones.

    ``run()`` drains ``iter()``.  ``iter()`` is the streaming entry point.

    Args:
        max_iterations: Maximum number of request/dispatch rounds before
            stopping with a notice instead of requesting again.
    """

    def __init__(self, max_iterations: int = 100):
        if max_iterations < 1:
            raise ValueError("max_iterations must be at least 1")
        self.max_iterations = max_iterations

    async def run(
        self, agent: Agent, session: Session, context: Context,
    ) -> RunResult:
        """Run the loop until a final response, the cap, or an error."""
        result: RunResult | None = None
        async for event in self.iter(agent, session, context):
            if isinstance(event, RunCompleteEvent):
                result = event.result
        if result is None:
            raise RuntimeError("iter() ended without emitting RunCompleteEvent")
        return result

    async def iter(
        self, agent: Agent, session: Session, context: Context,
    ) -> AsyncIterator[StreamEvent]:
        """Run the loop, yielding events as execution proceeds."""
        dispatcher = ToolDispatcher(agent.tools, context)
        tool_schemas = dispatcher.schemas()
        visible: list[str] = []
        iterations = 0

        async with conversation_span(agent.name, agent.model) as run_span:
            try:
                for _ in range(self.max_iterations):
                    iterations += 1
                    messages = [
                        {"role": "system", "content": agent.system_prompt},
                        *session.to_openai(),
                    ]

                    acc = DeltaAccumulator()
                    previews: dict[int, tuple[str, PartialPreview]] = {}
                    async with completion_span(agent.provider.name, agent.model) as span:
                        frames = decode_frames(agent.provider.stream_chat(
                            model=agent.model, messages=messages,
                            tools=tool_schemas or None,
                        ))
                        async for frame in frames:
                            chunk = acc.feed(frame)
                            if chunk.content_delta:
                                visible.append(chunk.content_delta)
                                yield ContentDeltaEvent(content=chunk.content_delta)
                            for event in self._preview_events(chunk, acc, previews):
                                yield event
                        streamed = acc.finalize()
                        record_finish(span, streamed.finish_reason, len(streamed.tool_calls))

                    if not streamed.tool_calls:
                        if streamed.content:
                            session.append(Message(
                                role=MessageRole.ASSISTANT, content=streamed.content,
                            ))
                        yield RunCompleteEvent(result=RunResult(
                            status="done",
                            content="".join(visible),
                            iterations=iterations,
                            last_message=session.transcript[-1] if session.transcript else None,
                        ))
                        return

                    for index, (sent_id, preview) in previews.items():
                        call_id = acc.tool_calls.get(index).id
                        yield FilePreviewEvent(
                            tool_call_id=call_id,
                            file_path=preview.file_path,
                            streamed_content=preview.content,
                            is_complete=True,
                            replaces_tool_call_id=sent_id if sent_id != call_id else None,
                        )

                    session.append(ToolCallRequestMessage(
                        role=MessageRole.ASSISTANT,
                        content=streamed.content or None,
                        tool_calls=tuple(streamed.tool_calls),
                    ))
                    for tc in streamed.tool_calls:
                        result = await dispatcher.dispatch(tc)
                        session.append(ToolCallResultMessage(
                            role=MessageRole.TOOL,
                            content=result.to_tool_content(),
                            tool_call_id=tc.id,
                        ))
                        yield ToolCallEvent(
                            tool_call_id=tc.id,
                            tool_name=tc.name,
                            file_path=getattr(result, "file_path", None),
                            content=getattr(result, "content", None),
                            result=result.model_dump(exclude_none=True),
                        )
            except Exception as e:
                logger.exception(f"Run aborted on iteration {iterations}: {e}")
                record_error(run_span, e)
                message = str(e) or type(e).__name__
                yield RunErrorEvent(error=message)
                yield RunCompleteEvent(result=RunResult(
                    status="error",
                    content="".join(visible),
                    iterations=iterations,
                    last_message=session.transcript[-1] if session.transcript else None,
                    error=message,
                ))
                return

        logger.warning(f"Reached max iterations ({self.max_iterations})")
        notice = MAX_ITERATIONS_NOTICE.format(limit=self.max_iterations)
        visible.append(notice)
        yield ContentDeltaEvent(content=notice)
        last = Message(role=MessageRole.ASSISTANT, content=notice.strip())
        session.append(last)
        yield RunCompleteEvent(result=RunResult(
            status="max_iterations",
            content="".join(visible),
            iterations=iterations,
            last_message=last,
        ))

    # ------------------------------------------------------------------
    # Live previews
    # ------------------------------------------------------------------

    @staticmethod
    def _preview_events(
        chunk: StreamChunk,
        acc: DeltaAccumulator,
        previews: dict[int, tuple[str, PartialPreview]],
    ) -> Iterator[FilePreviewEvent]:
        """Each index remembers the id its last preview went out under. When
        a real id replaces the placeholder, the next event names the old one
        in ``replaces_tool_call_id``."""
        if not chunk.tool_call_fragments:
            return
        for index in dict.fromkeys(f.index for f in chunk.tool_call_fragments):
            tc = acc.tool_calls.get(index)
            if tc is None or tc.name != FILE_WRITE_TOOL_NAME:
                continue
            preview = preview_file_write(tc.arguments)
            if preview is None:
                continue
            sent = previews.get(index)
            if sent == (tc.id, preview):
                continue
            previews[index] = (tc.id, preview)
            yield FilePreviewEvent(
                tool_call_id=tc.id,
                file_path=preview.file_path,
                streamed_content=preview.content,
                replaces_tool_call_id=(
                    sent[0] if sent is not None and sent[0] != tc.id else None
                ),
            )
