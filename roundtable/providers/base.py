"""Abstract base for all text-generation providers."""

import os
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from dataclasses import dataclass

from config.config_loader import ModelConfig
from roundtable.models import ErrorCategory, Message


class ProviderError(Exception):
    """Raised when a provider call fails."""

    def __init__(
        self,
        provider_name: str,
        message: str,
        category: ErrorCategory = ErrorCategory.SERVICE_ERROR,
    ) -> None:
        self.provider_name = provider_name
        self.category = category
        super().__init__(f"[{provider_name}] {message}")


@dataclass
class GenerationOptions:
    model: str | None = None        # overrides the configured model
    system: str | None = None
    max_tokens: int | None = None


def normalize_messages(messages: list[Message]) -> list[Message]:
    """Merge consecutive same-role messages and make sure the first is from the user.

    Participant memory interleaves the participant's own replies with what
    everyone else said, so raw memory rarely alternates cleanly.
    """
    merged: list[Message] = []
    for msg in messages:
        if merged and merged[-1].role == msg.role:
            merged[-1] = Message(msg.role, f"{merged[-1].content}\n\n---\n\n{msg.content}")
        else:
            merged.append(Message(msg.role, msg.content))

    if not merged:
        return [Message("user", "Please respond.")]
    if merged[0].role != "user":
        merged.insert(0, Message("user", "Here is the discussion context:"))
    return merged


class GenerationProvider(ABC):
    """Abstract base for all text-generation providers."""

    def __init__(self, config: ModelConfig) -> None:
        self._config = config

    def name(self) -> str:
        """Return the short provider name (e.g. 'anthropic', 'perplexity')."""
        return self._config.name

    def model_string(self, options: GenerationOptions | None = None) -> str:
        """Return the model identifier used for a call."""
        if options is not None and options.model:
            return options.model
        return self._config.model

    def _api_key(self) -> str:
        api_key = os.environ.get(self._config.api_key_env, "").strip()
        if not api_key:
            raise ProviderError(
                self._config.name,
                f"Missing API key: {self._config.api_key_env}",
                category=ErrorCategory.MISSING_CREDENTIAL,
            )
        return api_key

    def _max_tokens(self, options: GenerationOptions) -> int:
        return options.max_tokens or self._config.max_tokens

    @abstractmethod
    async def complete(self, messages: list[Message], options: GenerationOptions) -> str:
        """Generate a complete response.

        Args:
            messages: Role-tagged conversation, oldest first.
            options: Model override, system instructions, token budget.

        Returns:
            The full response text.

        Raises:
            ProviderError: On missing credential, API failure, timeout, or empty response.
        """
        ...

    async def stream(self, messages: list[Message], options: GenerationOptions) -> AsyncIterator[str]:
        """Yield response text increments.

        Providers without native streaming yield the complete response once.
        """
        yield await self.complete(messages, options)
