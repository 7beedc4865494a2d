"""Anthropic Claude provider using anthropic SDK with native async and streaming."""

import asyncio
import logging
import time
from collections.abc import AsyncIterator
from typing import Any

import anthropic as anthropic_sdk

from config.config_loader import ModelConfig
from roundtable.models import Message
from roundtable.providers.base import GenerationOptions, GenerationProvider, ProviderError, normalize_messages

logger = logging.getLogger(__name__)


class AnthropicProvider(GenerationProvider):
    """Anthropic Claude provider via anthropic SDK."""

    def __init__(self, config: ModelConfig) -> None:
        super().__init__(config)
        self._client: anthropic_sdk.AsyncAnthropic | None = None

    def _get_client(self) -> anthropic_sdk.AsyncAnthropic:
        if self._client is None:
            self._client = anthropic_sdk.AsyncAnthropic(
                api_key=self._api_key(),
                timeout=float(self._config.timeout_sec),
            )
        return self._client

    def _request(self, messages: list[Message], options: GenerationOptions) -> dict[str, Any]:
        request: dict[str, Any] = {
            "model": self.model_string(options),
            "max_tokens": self._max_tokens(options),
            "messages": [{"role": m.role, "content": m.content} for m in normalize_messages(messages)],
        }
        if options.system:
            request["system"] = options.system
        return request

    async def complete(self, messages: list[Message], options: GenerationOptions) -> str:
        client = self._get_client()
        start = time.monotonic()
        try:
            response = await asyncio.wait_for(
                client.messages.create(**self._request(messages, options)),
                timeout=self._config.timeout_sec,
            )
        except TimeoutError as exc:
            raise ProviderError(self._config.name, f"Request timed out after {self._config.timeout_sec}s") from exc
        except Exception as exc:
            raise ProviderError(self._config.name, f"API call failed: {exc}") from exc

        if not response.content:
            raise ProviderError(self._config.name, "Empty response content")

        text_blocks = [b.text for b in response.content if b.type == "text"]
        if not text_blocks:
            raise ProviderError(self._config.name, "No text blocks in response")

        token_count: int | None = None
        if response.usage:
            token_count = response.usage.input_tokens + response.usage.output_tokens

        logger.info(
            "Anthropic %s: %.2fs, %s tokens",
            self.model_string(options),
            time.monotonic() - start,
            token_count,
        )
        return "\n".join(text_blocks)

    async def stream(self, messages: list[Message], options: GenerationOptions) -> AsyncIterator[str]:
        client = self._get_client()
        received = False
        try:
            async with client.messages.stream(**self._request(messages, options)) as stream:
                async for text in stream.text_stream:
                    if text:
                        received = True
                        yield text
        except Exception as exc:
            raise ProviderError(self._config.name, f"Streaming call failed: {exc}") from exc

        if not received:
            raise ProviderError(self._config.name, "Empty streamed response")
