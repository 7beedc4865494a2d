"""Gemini provider using google-genai SDK with native async and streaming."""

import asyncio
import logging
import time
from collections.abc import AsyncIterator

from google import genai
from google.genai import types as genai_types

from config.config_loader import ModelConfig
from roundtable.models import Message
from roundtable.providers.base import GenerationOptions, GenerationProvider, ProviderError, normalize_messages

logger = logging.getLogger(__name__)


def to_contents(messages: list[Message]) -> list[genai_types.Content]:
    """Convert chat messages to Gemini contents; Gemini calls the assistant 'model'."""
    return [
        genai_types.Content(
            role="model" if m.role == "assistant" else "user",
            parts=[genai_types.Part(text=m.content)],
        )
        for m in normalize_messages(messages)
    ]


class GeminiProvider(GenerationProvider):
    """Google Gemini provider via google-genai SDK."""

    def __init__(self, config: ModelConfig) -> None:
        super().__init__(config)
        self._client: genai.Client | None = None

    def _get_client(self) -> genai.Client:
        if self._client is None:
            self._client = genai.Client(api_key=self._api_key())
        return self._client

    def _generation_config(self, options: GenerationOptions) -> genai_types.GenerateContentConfig:
        return genai_types.GenerateContentConfig(
            max_output_tokens=self._max_tokens(options),
            system_instruction=options.system or None,
        )

    async def complete(self, messages: list[Message], options: GenerationOptions) -> str:
        client = self._get_client()
        start = time.monotonic()
        try:
            response = await asyncio.wait_for(
                client.aio.models.generate_content(
                    model=self.model_string(options),
                    contents=to_contents(messages),
                    config=self._generation_config(options),
                ),
                timeout=self._config.timeout_sec,
            )
        except TimeoutError as exc:
            raise ProviderError(self._config.name, f"Request timed out after {self._config.timeout_sec}s") from exc
        except Exception as exc:
            raise ProviderError(self._config.name, f"API call failed: {exc}") from exc

        if not response.text:
            raise ProviderError(self._config.name, "Empty response text")

        token_count: int | None = None
        if response.usage_metadata:
            token_count = response.usage_metadata.total_token_count

        logger.info(
            "Gemini %s: %.2fs, %s tokens",
            self.model_string(options),
            time.monotonic() - start,
            token_count,
        )
        return response.text

    async def stream(self, messages: list[Message], options: GenerationOptions) -> AsyncIterator[str]:
        client = self._get_client()
        received = False
        try:
            stream = await client.aio.models.generate_content_stream(
                model=self.model_string(options),
                contents=to_contents(messages),
                config=self._generation_config(options),
            )
            async for chunk in stream:
                if chunk.text:
                    received = True
                    yield chunk.text
        except Exception as exc:
            raise ProviderError(self._config.name, f"Streaming call failed: {exc}") from exc

        if not received:
            raise ProviderError(self._config.name, "Empty streamed response")
