"""Optional OpenTelemetry tracing for toolstream.

Call ``toolstream.instrument()`` once at startup, after configuring a
TracerProvider. Requires ``opentelemetry-api``
(``pip install toolstream[otel]``); without it every span helper below
yields ``None`` and costs nothing.

Spans follow the GenAI semantic conventions:

- ``conversation_span`` wraps one ``Runner.iter()`` run,
- ``completion_span`` wraps each streamed request,
- ``tool_span`` wraps each tool dispatch.
"""

import importlib.util
import logging
from contextlib import asynccontextmanager

logger = logging.getLogger(__name__)

_tracer = None


def instrument(*, tracer_name: str = "toolstream") -> None:
    """Enable OpenTelemetry tracing for all toolstream operations.

    Args:
        tracer_name: Name passed to ``trace.get_tracer()``.

    Raises:
        ImportError: If ``opentelemetry-api`` is not installed.
    """
    global _tracer
    if importlib.util.find_spec("opentelemetry.trace") is None:
        raise ImportError(
            "opentelemetry-api is required for instrumentation. "
            "Install it with: pip install toolstream[otel]"
        )
    from opentelemetry import trace
    _tracer = trace.get_tracer(tracer_name)
    if isinstance(_tracer, trace.NoOpTracer):
        logger.info(
            "No TracerProvider configured, spans will be discarded"
        )
    else:
        logger.info("toolstream instrumentation enabled")


def uninstrument() -> None:
    """Disable tracing. Subsequent operations emit no spans."""
    global _tracer
    _tracer = None


@asynccontextmanager
async def conversation_span(agent_name: str, model: str):
    if _tracer is None:
        yield None
        return
    with _tracer.start_as_current_span(
        f"invoke_agent {agent_name}",
        attributes={
            "gen_ai.operation.name": "invoke_agent",
            "gen_ai.agent.name": agent_name,
            "gen_ai.request.model": model,
        },
    ) as span:
        yield span


@asynccontextmanager
async def completion_span(system: str, model: str):
    if _tracer is None:
        yield None
        return
    from opentelemetry.trace import SpanKind

    with _tracer.start_as_current_span(
        f"chat {model}",
        kind=SpanKind.CLIENT,
        attributes={
            "gen_ai.operation.name": "chat",
            "gen_ai.provider.name": system,
            "gen_ai.request.model": model,
        },
    ) as span:
        yield span


@asynccontextmanager
async def tool_span(tool_name: str, call_id: str):
    if _tracer is None:
        yield None
        return
    with _tracer.start_as_current_span(
        f"execute_tool {tool_name}",
        attributes={
            "gen_ai.operation.name": "execute_tool",
            "gen_ai.tool.name": tool_name,
            "gen_ai.tool.call.id": call_id,
        },
    ) as span:
        yield span


def record_finish(span, finish_reason: str | None, tool_calls: int) -> None:
    """Annotate a completion span with how the response ended."""
    if span is None:
        return
    if finish_reason is not None:
        span.set_attribute(
            "gen_ai.response.finish_reasons", [finish_reason]
        )
    span.set_attribute("toolstream.tool_calls", tool_calls)


def record_error(span, exception: BaseException) -> None:
    """Record an exception and set ERROR status on a span.

    No-ops when *span* is ``None`` (tracing disabled).
    """
    if span is None:
        return
    from opentelemetry.trace import StatusCode

    span.set_status(StatusCode.ERROR, str(exception))
    span.record_exception(exception)
    span.set_attribute(
        "error.type", type(exception).__qualname__
    )
