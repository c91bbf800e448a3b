"""Terminal chat whose tools act on a local scratch directory.

Demonstrates:
- Implementing Sandbox over a directory and asyncio subprocesses
- Building a ChatSession from Settings
- Streaming deltas, file previews and tool results from ChatSession.iter()

Paths the model uses (``/home/user/...``) are mapped under ``--root``.
Commands run with ``--root`` as their working directory and are NOT
isolated; only point this at a throwaway directory.

Usage:
    OPENROUTER_API_KEY=sk-or-... python examples/local_chat.py \
        --model openai/gpt-4o-mini --root /tmp/toolstream-scratch --trace
"""

import argparse
import asyncio
import logging
from pathlib import Path

from toolstream import (
    ChatSession,
    CommandResult,
    ContentDeltaEvent,
    FilePreviewEvent,
    RunErrorEvent,
    Sandbox,
    Settings,
    ToolCallEvent,
    configure_logging,
)

SANDBOX_HOME = "/home/user"


class LocalSandbox(Sandbox):
    def __init__(self, root: Path):
        self.root = root.resolve()
        self.root.mkdir(parents=True, exist_ok=True)
        self._background: set[asyncio.subprocess.Process] = set()

    def _resolve(self, path: str) -> Path:
        relative = path
        if relative.startswith(SANDBOX_HOME):
            relative = relative[len(SANDBOX_HOME):]
        target = (self.root / relative.lstrip("/")).resolve()
        if not target.is_relative_to(self.root):
            raise ValueError(f"{path} escapes the sandbox root")
        return target

    async def write_file(self, path: str, content: str) -> bool:
        try:
            self._resolve(path).write_text(content)
        except (OSError, ValueError):
            return False
        return True

    async def make_directory(self, path: str) -> bool:
        try:
            self._resolve(path).mkdir(parents=True, exist_ok=True)
        except (OSError, ValueError):
            return False
        return True

    async def read_file(self, path: str) -> str | None:
        try:
            return self._resolve(path).read_text()
        except (OSError, ValueError, UnicodeDecodeError):
            return None

    async def run_command(self, command: str, background: bool = False) -> CommandResult | None:
        proc = await asyncio.create_subprocess_shell(
            command,
            cwd=self.root,
            stdout=asyncio.subprocess.DEVNULL if background else asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.DEVNULL if background else asyncio.subprocess.PIPE,
        )
        if background:
            self._background.add(proc)
            return CommandResult(stdout="", stderr="", exit_code=0)
        try:
            stdout, stderr = await proc.communicate()
        except asyncio.CancelledError:
            proc.kill()
            raise
        return CommandResult(
            stdout=stdout.decode(errors="replace"),
            stderr=stderr.decode(errors="replace"),
            exit_code=proc.returncode,
        )


def setup_tracing(service_name: str):
    from opentelemetry import trace
    from opentelemetry.sdk.resources import SERVICE_NAME, Resource
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import (
        SimpleSpanProcessor, ConsoleSpanExporter,
    )
    from toolstream.instrumentation import instrument

    provider = TracerProvider(
        resource=Resource({SERVICE_NAME: service_name})
    )
    provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))
    trace.set_tracer_provider(provider)
    instrument()


async def main():
    parser = argparse.ArgumentParser(description="toolstream local chat")
    parser.add_argument("--model", default=None)
    parser.add_argument("--root", default="./scratch")
    parser.add_argument("--list-models", action="store_true")
    parser.add_argument("--trace", action="store_true")
    args = parser.parse_args()

    configure_logging(level=logging.WARNING)
    if args.trace:
        setup_tracing("toolstream-local-chat")

    settings = Settings.from_env()
    chat = ChatSession.from_settings(
        settings, sandbox=LocalSandbox(Path(args.root)),
        model=args.model or settings.model or "openai/gpt-4o-mini",
    )

    if args.list_models:
        for model in await chat.models():
            print(f"{model.id:50} {model.name}")
        return

    print(f"toolstream chat ({chat.agent.model}), files in {args.root}\n")
    while True:
        try:
            user_input = input("You: ")
        except (KeyboardInterrupt, EOFError):
            print("\nGoodbye!")
            break
        if not user_input.strip():
            continue

        previewing = set()
        async for event in chat.iter(user_input):
            if isinstance(event, ContentDeltaEvent):
                print(event.content, end="", flush=True)
            elif isinstance(event, FilePreviewEvent):
                known = event.replaces_tool_call_id in previewing
                if event.tool_call_id not in previewing:
                    previewing.add(event.tool_call_id)
                    if not known:
                        print(f"\n[writing {event.file_path} ...]", flush=True)
            elif isinstance(event, ToolCallEvent):
                status = "ok" if event.result.get("success") else "failed"
                target = event.file_path or event.result.get("command", "")
                print(f"\n[{event.tool_name} {target}: {status}] {event.result.get('message', '')}")
            elif isinstance(event, RunErrorEvent):
                print(f"\nError: {event.error}")
        print("\n")


if __name__ == "__main__":
    asyncio.run(main())
