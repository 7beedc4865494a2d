"""OpenAI provider using openai SDK with native async and streaming."""

import asyncio
import logging
import time
from collections.abc import AsyncIterator
from typing import Any

from openai import AsyncOpenAI

from config.config_loader import ModelConfig
from roundtable.models import Message
from roundtable.providers.base import GenerationOptions, GenerationProvider, ProviderError, normalize_messages

logger = logging.getLogger(__name__)


class OpenAIProvider(GenerationProvider):
    """OpenAI provider via openai SDK."""

    def __init__(self, config: ModelConfig) -> None:
        super().__init__(config)
        self._client: AsyncOpenAI | None = None

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self._api_key(),
                base_url=self._config.base_url,
                timeout=float(self._config.timeout_sec),
            )
        return self._client

    def _format_messages(self, messages: list[Message], options: GenerationOptions) -> list[dict[str, str]]:
        formatted = [{"role": m.role, "content": m.content} for m in normalize_messages(messages)]
        if options.system:
            formatted.insert(0, {"role": "system", "content": options.system})
        return formatted

    def _request(self, messages: list[Message], options: GenerationOptions) -> dict[str, Any]:
        return {
            "model": self.model_string(options),
            "messages": self._format_messages(messages, options),
            "max_tokens": self._max_tokens(options),
        }

    async def _create(self, messages: list[Message], options: GenerationOptions) -> Any:
        client = self._get_client()
        try:
            return await asyncio.wait_for(
                client.chat.completions.create(**self._request(messages, options)),
                timeout=self._config.timeout_sec,
            )
        except TimeoutError as exc:
            raise ProviderError(self._config.name, f"Request timed out after {self._config.timeout_sec}s") from exc
        except Exception as exc:
            raise ProviderError(self._config.name, f"API call failed: {exc}") from exc

    async def complete(self, messages: list[Message], options: GenerationOptions) -> str:
        start = time.monotonic()
        response = await self._create(messages, options)

        choice = response.choices[0] if response.choices else None
        if not choice or not choice.message.content:
            raise ProviderError(self._config.name, "Empty response content")

        token_count: int | None = None
        if response.usage:
            token_count = response.usage.total_tokens

        logger.info(
            "%s %s: %.2fs, %s tokens",
            self._config.name,
            self.model_string(options),
            time.monotonic() - start,
            token_count,
        )
        return choice.message.content

    async def stream(self, messages: list[Message], options: GenerationOptions) -> AsyncIterator[str]:
        client = self._get_client()
        received = False
        try:
            stream = await client.chat.completions.create(**self._request(messages, options), stream=True)
            async for chunk in stream:
                if not chunk.choices:
                    continue
                text = chunk.choices[0].delta.content
                if text:
                    received = True
                    yield text
        except Exception as exc:
            raise ProviderError(self._config.name, f"Streaming call failed: {exc}") from exc

        if not received:
            raise ProviderError(self._config.name, "Empty streamed response")
