from __future__ import annotations

from dataclasses import dataclass, field

from toolstream.config import Settings
from toolstream.sandbox import Sandbox


@dataclass
class Context:
    """Runtime context handed to every tool execution.

    Tools never see the conversation history, only the sandbox they act
    on and the limits they must enforce.

    Args:
        sandbox: The execution environment for file and command calls.
        settings: Limits and timeouts for this session.
    """

    sandbox: Sandbox
    settings: Settings = field(default_factory=Settings)
