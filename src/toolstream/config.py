import logging
import os

from pydantic import BaseModel


OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"


class Settings(BaseModel):
    """Runtime configuration for a chat session.

    Every limit the tools and the conversation loop enforce lives here so
    callers can tune them per session. ``Settings.from_env()`` fills the
    fields from the environment.

    Args:
        api_key: Key for the chat transport.
        base_url: OpenAI-compatible endpoint.
        model: Default model id.
        max_tool_iterations: Request/dispatch rounds before the loop stops.
        bash_default_timeout: Seconds a foreground command may run when the
            model does not ask for a timeout.
        bash_max_timeout: Hard cap on any requested command timeout.
        max_command_output: Characters kept from stdout and from stderr.
        max_file_read_lines: Lines returned by ``file_read``.
        max_line_length: Characters kept per line by ``file_read``.
        update_interval: Minimum seconds between observer updates.
        request_timeout: Transport timeout in seconds.
    """

    api_key: str | None = None
    base_url: str = OPENROUTER_BASE_URL
    model: str | None = None
    max_tool_iterations: int = 100
    bash_default_timeout: float = 60.0
    bash_max_timeout: float = 180.0
    max_command_output: int = 10_000
    max_file_read_lines: int = 5000
    max_line_length: int = 5000
    update_interval: float = 0.05
    request_timeout: float = 180.0
    app_title: str = "toolstream"
    app_url: str = "https://github.com/toolstream/toolstream"

    @classmethod
    def from_env(cls) -> "Settings":
        values = {}
        api_key = os.getenv("TOOLSTREAM_API_KEY") or os.getenv("OPENROUTER_API_KEY")
        if api_key:
            values["api_key"] = api_key
        for field_name in cls.model_fields:
            if field_name == "api_key":
                continue
            raw = os.getenv(f"TOOLSTREAM_{field_name.upper()}")
            if raw is not None:
                values[field_name] = raw
        return cls.model_validate(values)


def configure_logging(
    level: int = logging.INFO,
    log_file: str | None = "toolstream.log",
) -> None:
    """Set up root logging for entry points. Library code only logs."""
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.insert(0, logging.FileHandler(log_file))
    logging.basicConfig(
        level=level,
        format='%(asctime)s:%(name)s:%(levelname)s:%(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
        handlers=handlers,
    )
