"""Shared pytest fixtures."""

from collections.abc import AsyncIterator, Callable
from unittest.mock import AsyncMock

import pytest

from config.config_loader import LimitsConfig, ModelConfig, PromptsConfig
from roundtable.deliberation import Deliberation
from roundtable.events import SessionEvent
from roundtable.models import Message
from roundtable.participant import Participant
from roundtable.personalities import Personality
from roundtable.providers.base import GenerationOptions, GenerationProvider


@pytest.fixture
def sample_model_config() -> ModelConfig:
    return ModelConfig(
        name="test_model",
        sdk="test",
        model="test-model-1",
        api_key_env="TEST_API_KEY",
        timeout_sec=30,
        max_tokens=1024,
        base_url=None,
    )


@pytest.fixture
def sample_prompts_config() -> PromptsConfig:
    return PromptsConfig(
        framework_opening="[TURN {turn}/{max_turns}] Propose a framework for: {topic}",
        framework_summary="Summarize the framework, then open the discussion on: {topic}",
        nominated="[TURN {turn}/{max_turns}] You were nominated. Topic: {topic}",
        awaiting="[TURN {turn}/{max_turns}] Your turn from the queue. Topic: {topic}",
        interjection="[TURN {turn}/{max_turns}] The user said: {message}",
        synthesis="Synthesize {turn_count} turns.\n\n{fact_check_summary}",
        fact_check_request="Check {check_id} from {source}:\n{claims}",
        evaluation='Topic: {topic}\nContext: {user_context}\n\n{transcript}\n\nReply as {{"scores": {{}}}}',
    )


@pytest.fixture
def sample_limits() -> LimitsConfig:
    return LimitsConfig()


class ScriptedProvider(GenerationProvider):
    """Test double provider.

    ``complete`` is an AsyncMock; ``stream`` yields the scripted chunks, or
    falls back to one chunk with the ``complete`` result.
    """

    def __init__(
        self,
        provider_name: str = "mock",
        response: str = "Mock response",
        chunks: list[str] | None = None,
    ) -> None:
        super().__init__(
            ModelConfig(
                name=provider_name,
                sdk="test",
                model="mock-model",
                api_key_env="MOCK_API_KEY",
                timeout_sec=5,
                max_tokens=256,
            )
        )
        self.chunks = chunks
        self.calls: list[tuple[list[Message], GenerationOptions]] = []
        self.complete = AsyncMock(return_value=response)  # type: ignore[method-assign]

    async def complete(self, messages: list[Message], options: GenerationOptions) -> str:  # type: ignore[override]
        """Default implementation; replaced by AsyncMock in __init__."""
        return "Mock response"

    async def stream(self, messages: list[Message], options: GenerationOptions) -> AsyncIterator[str]:
        self.calls.append((list(messages), options))
        if self.chunks is None:
            yield await self.complete(messages, options)
            return
        for chunk in self.chunks:
            yield chunk


class RecordingParticipant(Participant):
    """Participant whose speak requests are recorded instead of generated."""

    def __init__(self, personality: str | Personality, **kwargs) -> None:
        super().__init__(personality, ScriptedProvider(str(personality)), **kwargs)
        self.contexts: list[str] = []

    def speak(self, context: str) -> None:  # type: ignore[override]
        self.contexts.append(context)


FULL_ROSTER: tuple[Personality, ...] = tuple(Personality)


@pytest.fixture
def roster() -> dict[str, RecordingParticipant]:
    return {p.value: RecordingParticipant(p) for p in FULL_ROSTER}


@pytest.fixture
def make_deliberation(
    roster: dict[str, RecordingParticipant],
    sample_prompts_config: PromptsConfig,
) -> Callable[..., tuple[Deliberation, list[SessionEvent]]]:
    """Factory returning a deliberation over ``roster`` and the list its events land in."""

    def _make(limits: LimitsConfig | None = None, evaluator=None) -> tuple[Deliberation, list[SessionEvent]]:
        deliberation = Deliberation(
            roster.values(),
            sample_prompts_config,
            limits or LimitsConfig(),
            evaluator=evaluator,
            session_id="test-session",
        )
        events: list[SessionEvent] = []
        deliberation.subscribe(events.append)
        return deliberation, events

    return _make
