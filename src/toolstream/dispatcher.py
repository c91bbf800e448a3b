import logging

from toolstream.context import Context
from toolstream.instrumentation import record_error, tool_span
from toolstream.streaming import ToolCall
from toolstream.tools import Tool, ToolArgumentError, ToolResult

logger = logging.getLogger(__name__)


class ToolDispatcher:
    """Executes completed tool calls against the sandbox.

    ``dispatch`` never raises: every call the model made gets a
    structured result, including calls to unknown tools and calls whose
    arguments do not validate, so the next request always carries one
    tool turn per announced call.

    Args:
        tools: The tools advertised to the model.
        context: Sandbox and limits handed to each execution.
    """

    def __init__(self, tools: list[Tool], context: Context):
        self.tool_registry: dict[str, Tool] = {t.name: t for t in tools}
        self.context = context

    def schemas(self) -> list[dict]:
        return [t.tool_schema() for t in self.tool_registry.values()]

    async def dispatch(self, tc: ToolCall) -> ToolResult:
        async with tool_span(tc.name, tc.id) as span:
            tool_obj = self.tool_registry.get(tc.name)
            if tool_obj is None:
                logger.warning(f"Tool not found: {tc.name}")
                return ToolResult(
                    success=False, message=f"Error: tool '{tc.name}' not found",
                )

            try:
                args = tool_obj.parse_arguments(tc.arguments)
            except ToolArgumentError as e:
                logger.warning(f"Invalid arguments for {tc.name}: {e}")
                return ToolResult(
                    success=False,
                    message=f"Error: invalid arguments for {tc.name}: {e}",
                )

            logger.info(f"Calling {tc.name} ({tc.id})")
            try:
                result = await tool_obj.execute(args, self.context)
            except Exception as e:
                logger.error(f"Tool {tc.name} raised: {e}")
                record_error(span, e)
                return ToolResult(
                    success=False, message=f"Error calling {tc.name}: {e}",
                )

            if span is not None:
                span.set_attribute("toolstream.tool.success", result.success)
            return result
