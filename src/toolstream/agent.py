import logging

from toolstream.prompts import SYSTEM_PROMPT
from toolstream.provider import ModelProvider
from toolstream.tools import Tool

logger = logging.getLogger(__name__)


class Agent:
    """
    What the Runner talks to: a model on a provider, the system prompt
    that frames it, and the tools it may call.

    Args:
        model: String representing the model name.
        provider: Transport for the chat requests.
        tools: Tools advertised on every request.
        system_prompt: Sent as the first turn of every request, never
            stored in the transcript.
        name: Label for logs and tracing.
    """

    def __init__(
        self,
        model: str,
        provider: ModelProvider,
        tools: list[Tool] | None = None,
        system_prompt: str = SYSTEM_PROMPT,
        name: str = "assistant",
    ):
        self.model = model
        self.provider = provider
        self.tools = list(tools or [])
        self.system_prompt = system_prompt
        self.name = name
        names = [t.name for t in self.tools]
        if len(names) != len(set(names)):
            raise ValueError(f"Duplicate tool names: {names}")
        logger.debug(f"Agent {name} on {model} with tools {names}")
