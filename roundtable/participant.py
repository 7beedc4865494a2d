"""Participant actor: one personality bound to one generation provider."""

import asyncio
import logging
from collections.abc import Callable, Iterable, Mapping

from config.config_loader import SeatConfig
from roundtable.events import InboxEvent, ParticipantChunk, ParticipantCompleted, ParticipantErrored
from roundtable.models import ErrorCategory, Message, ParticipantStatus
from roundtable.personalities import FACT_CHECK_ROLE, Personality, get_profile, resolve
from roundtable.providers.base import GenerationOptions, GenerationProvider, ProviderError

logger = logging.getLogger(__name__)


class Participant:
    """A deliberation seat with private memory.

    ``speak`` returns immediately; generation runs in its own task and the
    outcome is published through ``notify`` as chunk, completed, or errored
    events. Requests to one participant are served one at a time, in order.
    """

    def __init__(
        self,
        personality: str | Personality,
        provider: GenerationProvider,
        *,
        model: str | None = None,
        max_tokens: int | None = None,
        participant_id: str | None = None,
        notify: Callable[[InboxEvent], None] | None = None,
    ) -> None:
        self.personality = resolve(personality)
        self.profile = get_profile(self.personality)
        self.id = participant_id or self.personality.value
        self.name = self.profile.name
        self.provider = provider
        self.model = model
        self.max_tokens = max_tokens
        self.notify = notify
        self.memory: list[Message] = []
        self.status = ParticipantStatus.IDLE
        self._lock = asyncio.Lock()
        self._tasks: set[asyncio.Task[None]] = set()

    def __repr__(self) -> str:
        return f"Participant(id={self.id!r}, provider={self.provider.name()!r}, status={self.status.value})"

    @property
    def streams(self) -> bool:
        """Fact checks run in a sidebar, so only they skip streaming."""
        return self.personality is not FACT_CHECK_ROLE

    def remember(self, message: Message) -> None:
        self.memory.append(message)

    def clear_memory(self) -> None:
        self.memory = []

    def build_messages(self, context: str) -> list[Message]:
        return [*self.memory, Message("user", context)]

    def speak(self, context: str) -> asyncio.Task[None]:
        """Queue a speak request. Must be called from a running event loop."""
        self.status = ParticipantStatus.THINKING
        task = asyncio.create_task(self._speak(context), name=f"speak-{self.id}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _speak(self, context: str) -> None:
        async with self._lock:
            messages = self.build_messages(context)
            options = GenerationOptions(
                model=self.model,
                system=self.profile.system_prompt,
                max_tokens=self.max_tokens,
            )
            self.status = ParticipantStatus.SPEAKING
            try:
                if self.streams:
                    parts: list[str] = []
                    async for increment in self.provider.stream(messages, options):
                        parts.append(increment)
                        self._publish(ParticipantChunk(self.id, increment))
                    text = "".join(parts)
                else:
                    text = await self.provider.complete(messages, options)
            except ProviderError as exc:
                logger.warning("%s failed: %s", self.name, exc)
                self._fail(exc.category, str(exc))
                return
            except Exception as exc:
                logger.warning("%s unexpected failure: %s", self.name, exc)
                self._fail(ErrorCategory.SERVICE_ERROR, f"Unexpected error: {exc}")
                return

            self.memory.append(Message("assistant", text))
            self.status = ParticipantStatus.IDLE
            logger.debug("%s finished speaking (%d chars)", self.name, len(text))
            self._publish(ParticipantCompleted(self.id, text))

    def _fail(self, category: ErrorCategory, detail: str) -> None:
        self.status = ParticipantStatus.ERROR
        self._publish(ParticipantErrored(self.id, category, detail))

    def _publish(self, event: InboxEvent) -> None:
        if self.notify is not None:
            self.notify(event)


def build_participants(
    seats: Iterable[SeatConfig],
    providers: Mapping[str, GenerationProvider],
) -> list[Participant]:
    """Create one participant per roster seat.

    Raises:
        InvalidPersonalityError: If a seat names an unknown personality.
        KeyError: If a seat names a provider that was not built.
    """
    participants = []
    for seat in seats:
        personality = resolve(seat.personality)
        participants.append(Participant(personality, providers[seat.provider], model=seat.model))
    return participants
