"""Perplexity provider using openai SDK (OpenAI-compatible API with web search)."""

import logging
import time

from config.config_loader import ModelConfig
from roundtable.models import Message
from roundtable.providers.base import GenerationOptions, ProviderError
from roundtable.providers.openai_provider import OpenAIProvider

logger = logging.getLogger(__name__)


def format_citations(citations: list[str]) -> str:
    """Render citation URLs as a numbered "Sources:" block."""
    lines = [f"[{idx}] {url}" for idx, url in enumerate(citations, start=1)]
    return "Sources:\n" + "\n".join(lines)


class PerplexityProvider(OpenAIProvider):
    """Perplexity Sonar provider via OpenAI-compatible API.

    Sonar models search the web before answering and return the URLs they
    used in a top-level ``citations`` field, which is appended to the text.
    """

    def __init__(self, config: ModelConfig) -> None:
        if not config.base_url:
            raise ProviderError(config.name, "base_url is required for Perplexity provider")
        super().__init__(config)

    async def complete(self, messages: list[Message], options: GenerationOptions) -> str:
        start = time.monotonic()
        response = await self._create(messages, options)

        choice = response.choices[0] if response.choices else None
        if not choice or not choice.message.content:
            raise ProviderError(self._config.name, "Empty response content")

        content = choice.message.content
        citations = getattr(response, "citations", None) or []
        if citations:
            content = f"{content}\n\n{format_citations(list(citations))}"

        logger.info(
            "Perplexity %s: %.2fs, %d citations",
            self.model_string(options),
            time.monotonic() - start,
            len(citations),
        )
        return content
