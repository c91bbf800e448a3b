from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from pydantic import BaseModel, ValidationError

if TYPE_CHECKING:
    from toolstream.context import Context


class ToolArgumentError(ValueError):
    """Raised when a completed tool call carries unusable arguments."""


class ToolResult(BaseModel):
    """Outcome of one tool call, fed back to the model as a tool turn."""

    success: bool
    message: str

    def to_tool_content(self) -> str:
        return self.model_dump_json(exclude_none=True)


class FileWriteResult(ToolResult):
    file_path: str
    content: str | None = None


class FileReadResult(ToolResult):
    file_path: str
    content: str | None = None
    line_count: int | None = None


class BashResult(ToolResult):
    command: str
    description: str
    stdout: str = ""
    stderr: str = ""
    exit_code: int | None = None
    timed_out: bool = False
    is_background: bool = False


class Tool(ABC):
    """A side-effecting capability the model can call.

    Subclasses declare the advertised JSON schema, the pydantic model the
    completed arguments are validated against, and ``execute``.
    """

    name: str
    description: str
    parameters_schema: dict
    args_model: type[BaseModel]

    def tool_schema(self) -> dict:
        """Return an OpenAI-compatible function tool schema."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters_schema,
            },
        }

    def parse_arguments(self, arguments_text: str) -> BaseModel:
        try:
            params = json.loads(arguments_text or "{}")
        except json.JSONDecodeError as e:
            raise ToolArgumentError(f"invalid JSON arguments: {e}") from e
        if not isinstance(params, dict):
            raise ToolArgumentError("arguments must be a JSON object")
        try:
            return self.args_model.model_validate(params)
        except ValidationError as e:
            errors = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'arguments'}: {err['msg']}"
                for err in e.errors()
            )
            raise ToolArgumentError(errors) from e

    @abstractmethod
    async def execute(self, args: BaseModel, context: Context) -> ToolResult:
        ...
