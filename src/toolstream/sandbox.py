from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class CommandResult:
    """Captured output of a finished command."""

    stdout: str = ""
    stderr: str = ""
    exit_code: int = 0


class Sandbox(ABC):
    """The remote execution environment the tools act on.

    Implementations wrap whatever actually stores files and runs
    processes: a hosted sandbox, a container, a scratch directory. Calls
    may be slow and may fail; the tools add no retry around them and
    expect the sandbox to serialize its own access.

    Example::

        class ScratchDir(Sandbox):
            def __init__(self, root: Path):
                self._root = root

            async def read_file(self, path: str) -> str | None:
                target = self._root / path.lstrip("/")
                return target.read_text() if target.exists() else None
            ...
    """

    @abstractmethod
    async def write_file(self, path: str, content: str) -> bool:
        """Create or overwrite *path*. Returns ``False`` on failure."""

    @abstractmethod
    async def make_directory(self, path: str) -> bool:
        """Create *path* and its parents. An existing directory is fine."""

    @abstractmethod
    async def read_file(self, path: str) -> str | None:
        """Return the text of *path*, or ``None`` when it cannot be read."""

    @abstractmethod
    async def run_command(
        self, command: str, background: bool = False,
    ) -> CommandResult | None:
        """Run a shell command.

        With ``background=True`` the command is started and the call
        returns without waiting for it to finish.
        """
