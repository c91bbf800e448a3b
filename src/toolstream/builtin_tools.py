"""The file and shell tools advertised to the model."""

from __future__ import annotations

import asyncio
import logging
import posixpath
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from toolstream.config import Settings
from toolstream.context import Context
from toolstream.tools import (
    BashResult,
    FileReadResult,
    FileWriteResult,
    Tool,
)

logger = logging.getLogger(__name__)

FILE_WRITE_TOOL_NAME = "file_write"
FILE_READ_TOOL_NAME = "file_read"
BASH_TOOL_NAME = "bash"

OUTPUT_TRUNCATED = "\n... [output truncated]"


# ---------------------------------------------------------------------------
# file_write
# ---------------------------------------------------------------------------

class WriteOperation(BaseModel):
    type: Literal["write"]
    content: str


class FileWriteArgs(BaseModel):
    file_path: str = Field(min_length=1)
    operations: list[WriteOperation]


class FileWriteTool(Tool):
    name = FILE_WRITE_TOOL_NAME
    description = """\
Creates or overwrites a file at the specified path with the provided content. \
Use this tool when you need to create new files or modify existing files in the sandbox filesystem.

USAGE INSTRUCTIONS:
- Use this tool for EVERY file you need to create or write
- Provide the complete file path starting with / (e.g., /home/user/project/src/app.js)
- Include the full content of the file in the operations array
- The tool will automatically create parent directories if they don't exist

EXAMPLE:
{
  "file_path": "/home/user/project/index.html",
  "operations": [{"type": "write", "content": "<!DOCTYPE html>\\n<html></html>"}]
}"""
    parameters_schema = {
        "type": "object",
        "properties": {
            "file_path": {
                "type": "string",
                "description": (
                    "The absolute path where the file should be created or "
                    "written, including filename and extension "
                    "(e.g., /home/user/project/src/app.js)"
                ),
            },
            "operations": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "type": {
                            "type": "string",
                            "enum": ["write"],
                            "description": "The type of operation to perform",
                        },
                        "content": {
                            "type": "string",
                            "description": "The content to write to the file",
                        },
                    },
                    "required": ["type", "content"],
                },
                "description": (
                    "Array of write operations to perform on the file. Each "
                    'operation has a type ("write") and content (the file '
                    "content to write)."
                ),
            },
        },
        "required": ["file_path", "operations"],
    }
    args_model = FileWriteArgs

    async def execute(self, args: FileWriteArgs, context: Context) -> FileWriteResult:
        file_path = args.file_path
        sandbox = context.sandbox
        try:
            dir_path = posixpath.dirname(file_path)
            if dir_path and dir_path != "/":
                if not await sandbox.make_directory(dir_path):
                    logger.debug(f"make_directory({dir_path}) returned False")

            final_content = ""
            for operation in args.operations:
                final_content = operation.content

            if not await sandbox.write_file(file_path, final_content):
                return FileWriteResult(
                    success=False,
                    file_path=file_path,
                    message=f"Failed to write file: {file_path}",
                )
        except Exception as e:
            logger.error(f"file_write {file_path} raised: {e}")
            return FileWriteResult(
                success=False,
                file_path=file_path,
                message=f"Error writing file: {e}",
            )

        return FileWriteResult(
            success=True,
            file_path=file_path,
            message=f"Successfully created/wrote file: {file_path}",
            content=final_content,
        )


# ---------------------------------------------------------------------------
# file_read
# ---------------------------------------------------------------------------

class FileReadArgs(BaseModel):
    file_path: str = Field(min_length=1)


def truncate_file_content(
    content: str, max_lines: int, max_line_length: int,
) -> tuple[str, int]:
    """Apply the line-count and line-length caps.

    Returns the processed text and the number of lines it represents.
    """
    lines = content.split("\n")
    line_count = len(lines)
    marker = None
    if line_count > max_lines:
        omitted = line_count - max_lines
        marker = (
            f"[... truncated: showing {max_lines} of {line_count} lines, "
            f"{omitted} lines omitted ...]"
        )
        lines = lines[:max_lines]
        line_count = max_lines

    processed = []
    for line in lines:
        if len(line) > max_line_length:
            omitted_chars = len(line) - max_line_length
            line = (
                line[:max_line_length]
                + f"... [line truncated: {omitted_chars} characters omitted]"
            )
        processed.append(line)

    if marker is not None:
        processed.extend(["", marker])
    return "\n".join(processed), line_count


class FileReadTool(Tool):
    name = FILE_READ_TOOL_NAME
    parameters_schema = {
        "type": "object",
        "properties": {
            "file_path": {
                "type": "string",
                "description": (
                    "Absolute path of the file to read "
                    "(e.g., /home/user/project/src/app.js)"
                ),
            },
        },
        "required": ["file_path"],
    }
    args_model = FileReadArgs

    def __init__(self, settings: Settings | None = None):
        limits = settings or Settings()
        self.description = (
            "Reads and returns the content of a specified file from the "
            "sandbox filesystem. Supports text files.\n\n"
            "Usage:\n"
            "- Provide the absolute file path starting with / "
            "(e.g., /home/user/project/src/app.js)\n"
            f"- Maximum {limits.max_file_read_lines} lines can be read\n"
            f"- Lines longer than {limits.max_line_length} characters are truncated"
        )

    async def execute(self, args: FileReadArgs, context: Context) -> FileReadResult:
        file_path = args.file_path
        try:
            content = await context.sandbox.read_file(file_path)
        except Exception as e:
            logger.error(f"file_read {file_path} raised: {e}")
            return FileReadResult(
                success=False,
                file_path=file_path,
                message=f"Error reading file: {e}",
            )

        if content is None:
            return FileReadResult(
                success=False,
                file_path=file_path,
                message=(
                    f"Failed to read file: {file_path}. "
                    "File may not exist or is not accessible."
                ),
            )

        settings = context.settings
        processed, line_count = truncate_file_content(
            content, settings.max_file_read_lines, settings.max_line_length,
        )
        return FileReadResult(
            success=True,
            file_path=file_path,
            message=f"Successfully read file: {file_path}",
            content=processed,
            line_count=line_count,
        )


# ---------------------------------------------------------------------------
# bash
# ---------------------------------------------------------------------------

class BashArgs(BaseModel):
    command: str = Field(min_length=1)
    description: str = "Executing command"
    timeout: float | None = None
    wait_for_output: bool | None = True

    @field_validator("description")
    @classmethod
    def _default_description(cls, value: str) -> str:
        return value or "Executing command"


def effective_timeout(requested: float | None, settings: Settings) -> float:
    if not requested or requested <= 0:
        return settings.bash_default_timeout
    return min(requested, settings.bash_max_timeout)


def truncate_output(text: str, limit: int) -> str:
    if len(text) > limit:
        return text[:limit] + OUTPUT_TRUNCATED
    return text


class BashTool(Tool):
    name = BASH_TOOL_NAME
    args_model = BashArgs

    def __init__(self, settings: Settings | None = None):
        limits = settings or Settings()
        default, cap = limits.bash_default_timeout, limits.bash_max_timeout
        self.description = f"""\
Executes a bash command in the sandbox terminal.

Usage notes:
- Write a clear, concise description of what this command does in 5-10 words
- To run multiple commands, join them with ';' or '&&'. Do not use newlines
- For long-running tasks (e.g., starting servers), set wait_for_output to false
- You can specify an optional timeout in seconds (up to {cap:g} seconds). \
If not specified, commands will timeout after {default:g} seconds
- After running a command, the output will be returned to you

Examples:
- List files: {{"command": "ls -la", "description": "Lists files in current directory"}}
- Start server: {{"command": "npm run dev", "description": "Starts development server", "wait_for_output": false}}"""
        self.parameters_schema = {
            "type": "object",
            "properties": {
                "command": {
                    "type": "string",
                    "description": "The bash command to execute.",
                },
                "description": {
                    "type": "string",
                    "description": (
                        "Clear, concise description of what this command "
                        "does in 5-10 words."
                    ),
                },
                "timeout": {
                    "type": "integer",
                    "description": (
                        f"The timeout for the command in seconds. Maximum is "
                        f"{cap:g} seconds. Default is {default:g} seconds."
                    ),
                    "default": int(default),
                },
                "wait_for_output": {
                    "type": "boolean",
                    "description": (
                        "If true, wait for the command to finish and return "
                        "its output (up to the timeout). If false, run in "
                        "background and return immediately."
                    ),
                    "default": True,
                },
            },
            "required": ["command", "description"],
        }

    async def execute(self, args: BashArgs, context: Context) -> BashResult:
        settings = context.settings
        command, description = args.command, args.description
        timeout = effective_timeout(args.timeout, settings)

        if args.wait_for_output is False:
            try:
                await context.sandbox.run_command(command, background=True)
            except Exception as e:
                logger.error(f"Background command {command!r} raised: {e}")
                return BashResult(
                    success=False, command=command, description=description,
                    stderr=str(e), message=f"Command failed: {e}",
                )
            return BashResult(
                success=True,
                command=command,
                description=description,
                stdout="Command started in background",
                is_background=True,
                message=f"Background process started. Command: {command}",
            )

        try:
            result = await asyncio.wait_for(
                context.sandbox.run_command(command, background=False),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            logger.info(f"Command {command!r} timed out after {timeout:g}s")
            return BashResult(
                success=False,
                command=command,
                description=description,
                stderr="Command timed out",
                timed_out=True,
                message=f"Command timed out after {timeout:g} seconds",
            )
        except Exception as e:
            logger.error(f"Command {command!r} raised: {e}")
            return BashResult(
                success=False, command=command, description=description,
                stderr=str(e), message=f"Command failed: {e}",
            )

        if result is None:
            return BashResult(
                success=False,
                command=command,
                description=description,
                message="Command failed: the sandbox returned no result",
            )

        exit_code = result.exit_code if result.exit_code is not None else 0
        success = exit_code == 0
        limit = settings.max_command_output
        return BashResult(
            success=success,
            command=command,
            description=description,
            stdout=truncate_output(result.stdout or "", limit),
            stderr=truncate_output(result.stderr or "", limit),
            exit_code=exit_code,
            message=(
                "Command executed successfully"
                if success
                else f"Command failed with exit code {exit_code}"
            ),
        )


def default_tools(settings: Settings | None = None) -> list[Tool]:
    """The tool set a chat session advertises by default."""
    return [FileWriteTool(), FileReadTool(settings), BashTool(settings)]
