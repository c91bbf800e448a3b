import logging
import os
from collections.abc import AsyncIterator

import httpx
from openai import AsyncOpenAI
from pydantic import BaseModel, ConfigDict, model_validator

from toolstream.config import OPENROUTER_BASE_URL, Settings

logger = logging.getLogger(__name__)


class ModelInfo(BaseModel):
    """A model the endpoint can serve."""

    model_config = ConfigDict(extra="ignore")

    id: str
    name: str = ""
    description: str | None = None
    context_length: int | None = None

    @model_validator(mode="after")
    def _default_name(self):
        if not self.name:
            self.name = self.id
        return self


class ModelProvider:
    """Chat transport.

    ``stream_chat`` returns the raw response body as it arrives; framing
    and decoding happen in :mod:`toolstream.sse`. Transport failures are
    raised from the iterator.
    """

    name = "custom"

    def stream_chat(
            self,
            model: str,
            messages: list[dict],
            tools: list[dict] | None = None,
    ) -> AsyncIterator[bytes]:
        raise NotImplementedError

    async def list_models(self) -> list[ModelInfo]:
        raise NotImplementedError


class OpenAICompatibleProvider(ModelProvider):
    """Any endpoint speaking the OpenAI chat completions protocol.

    Retries are disabled: a failed request surfaces to the caller once.
    """

    name = "openai"

    def __init__(
            self,
            base_url: str,
            api_key: str | None = None,
            timeout: float = 180.0,
            default_headers: dict[str, str] | None = None,
            http_client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.client = AsyncOpenAI(
            base_url=self.base_url,
            api_key=api_key or "DUMMY",
            max_retries=0,
            timeout=timeout,
            default_headers=default_headers,
            http_client=http_client,
        )

    async def stream_chat(
            self,
            model: str,
            messages: list[dict],
            tools: list[dict] | None = None,
    ) -> AsyncIterator[bytes]:
        kwargs = {"model": model, "messages": messages, "stream": True}
        if tools:
            kwargs["tools"] = tools
            kwargs["tool_choice"] = "auto"
        logger.debug(f"Streaming {model} with {len(messages)} messages")
        async with self.client.chat.completions.with_streaming_response.create(
            **kwargs
        ) as response:
            async for chunk in response.iter_bytes():
                yield chunk

    async def list_models(self) -> list[ModelInfo]:
        models = []
        async for entry in self.client.models.list():
            models.append(ModelInfo.model_validate(entry.model_dump()))
        return sorted(models, key=lambda m: m.name.lower())


class OpenRouter(OpenAICompatibleProvider):

    name = "openrouter"

    def __init__(
            self,
            api_key: str | None = None,
            timeout: float = 180.0,
            app_title: str = "toolstream",
            app_url: str | None = None,
            http_client: httpx.AsyncClient | None = None,
    ):
        if not api_key:
            api_key = os.getenv("OPENROUTER_API_KEY")
        headers = {"X-Title": app_title}
        if app_url:
            headers["HTTP-Referer"] = app_url
        super().__init__(
            base_url=OPENROUTER_BASE_URL,
            api_key=api_key,
            timeout=timeout,
            default_headers=headers,
            http_client=http_client,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "OpenRouter":
        return cls(
            api_key=settings.api_key,
            timeout=settings.request_timeout,
            app_title=settings.app_title,
            app_url=settings.app_url,
        )


def provider_from_settings(settings: Settings) -> ModelProvider:
    """OpenRouter for its own URL, a generic client for anything else."""
    if settings.base_url.rstrip("/") == OPENROUTER_BASE_URL:
        return OpenRouter.from_settings(settings)
    return OpenAICompatibleProvider(
        base_url=settings.base_url,
        api_key=settings.api_key,
        timeout=settings.request_timeout,
    )
