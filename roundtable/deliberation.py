"""Deliberation orchestration: phases, turn-taking, nominations, fact-check barrier."""

import asyncio
import dataclasses
import logging
import secrets
import uuid
from collections.abc import Callable, Iterable

from config.config_loader import LimitsConfig, PromptsConfig
from roundtable.claims import detect_claims
from roundtable.evaluator import Evaluator, failed
from roundtable.events import (
    Chunk,
    EvaluationComplete,
    EvaluationFinished,
    FactCheckCompleted,
    FactCheckQueued,
    InboxEvent,
    ParticipantChunk,
    ParticipantCompleted,
    ParticipantErrored,
    ParticipantFailed,
    PhaseChanged,
    ResponseComplete,
    SessionEvent,
    SpeakingStarted,
    Stopped,
    TopicSet,
    TurnCountUpdated,
    TurnLimitReached,
    UserMessage,
    WaitingForFactChecks,
)
from roundtable.fact_check import format_claims, parse_verdict, pending_count, summarize, trim_completed
from roundtable.models import (
    DeliberationSession,
    EntryKind,
    ErrorCategory,
    Evaluation,
    FactCheckItem,
    FactCheckStatus,
    Message,
    ParticipantView,
    Phase,
    SessionSnapshot,
    TranscriptEntry,
)
from roundtable.nominations import find_nominations, synthesis_requested
from roundtable.participant import Participant
from roundtable.personalities import FACT_CHECK_ROLE, OPENING_SPEAKER, ROTATION, SYNTHESIS_ROLE

logger = logging.getLogger(__name__)

USER_STOP_REASON = "Discussion stopped by user"
SYNTHESIS_STOP_REASON = "Synthesis complete. Discussion concluded."

_PHASE_ORDER = {
    Phase.UNINITIALIZED: 0,
    Phase.FRAMEWORK: 1,
    Phase.DISCUSSION: 2,
    Phase.SYNTHESIS: 3,
    Phase.STOPPED: 4,
}


class DeliberationStateError(RuntimeError):
    """Raised when a lifecycle call is not valid in the current phase."""


def _generate_id() -> str:
    return secrets.token_urlsafe(8)


class Deliberation:
    """Single-writer orchestrator for one deliberation session.

    All session state is mutated synchronously inside ``start``, ``interject``,
    ``stop`` and ``handle_event``. Participants post their events to the inbox
    queue; ``run`` drains it one event at a time.
    """

    def __init__(
        self,
        participants: Iterable[Participant],
        prompts: PromptsConfig,
        limits: LimitsConfig | None = None,
        evaluator: Evaluator | None = None,
        session_id: str | None = None,
    ) -> None:
        self._participants: dict[str, Participant] = {}
        for participant in participants:
            if participant.id in self._participants:
                raise ValueError(f"Duplicate participant id: {participant.id}")
            self._participants[participant.id] = participant
        by_role = {p.personality: p for p in self._participants.values()}
        for role in (OPENING_SPEAKER, SYNTHESIS_ROLE):
            if role not in by_role:
                raise ValueError(f"Roster is missing the {role.value} seat")

        self._opener = by_role[OPENING_SPEAKER]
        self._synthesizer = by_role[SYNTHESIS_ROLE]
        self._fact_checker = by_role.get(FACT_CHECK_ROLE)
        self._rotation = [by_role[role] for role in ROTATION if role in by_role]

        self._prompts = prompts
        self._limits = limits or LimitsConfig()
        self._evaluator = evaluator
        self._evaluation_task: asyncio.Task[None] | None = None
        self._listeners: list[Callable[[SessionEvent], None]] = []
        self._inbox: asyncio.Queue[InboxEvent | None] = asyncio.Queue()

        self.session = DeliberationSession(id=session_id or _generate_id())

        for participant in self._participants.values():
            participant.notify = self._inbox.put_nowait

    # --- Public API ---

    @property
    def participants(self) -> dict[str, Participant]:
        return dict(self._participants)

    def subscribe(self, listener: Callable[[SessionEvent], None]) -> None:
        self._listeners.append(listener)

    def snapshot(self) -> SessionSnapshot:
        s = self.session
        return SessionSnapshot(
            id=s.id,
            topic=s.topic,
            phase=s.phase,
            current_speaker=s.current_speaker,
            turn_count=s.turn_count,
            per_participant_turn_count=dict(s.per_participant_turn_count),
            awaiting_queue=tuple(s.awaiting_queue),
            transcript=tuple(dataclasses.replace(e) for e in s.transcript),
            fact_check_queue=tuple(dataclasses.replace(i, claims=list(i.claims)) for i in s.fact_check_queue),
            pending_synthesis=s.pending_synthesis,
            evaluation=s.evaluation,
            participants=tuple(
                ParticipantView(p.id, p.name, p.personality.value, p.status) for p in self._participants.values()
            ),
        )

    def start(self, topic: str, user_context: str | None = None) -> None:
        """Open the framework phase with the opening speaker.

        Raises:
            DeliberationStateError: If the deliberation was already started or stopped.
        """
        if self.session.phase is not Phase.UNINITIALIZED:
            raise DeliberationStateError(f"Cannot start a deliberation in phase {self.session.phase.value}")

        self.session.topic = topic
        self.session.user_context = user_context
        self._set_phase(Phase.FRAMEWORK)
        self._emit(TopicSet(topic))
        logger.info("Deliberation %s started: %s", self.session.id, topic)

        self._dispatch_turn(
            self._opener,
            self._prompts.framework_opening,
            turn=1,
            max_turns=self._limits.framework_turns,
        )

    def interject(self, text: str) -> None:
        """Add a user comment and have the current speaker acknowledge it."""
        session = self.session
        if session.phase is Phase.STOPPED:
            logger.debug("Ignoring interjection on stopped deliberation %s", session.id)
            return
        if session.phase is Phase.UNINITIALIZED:
            raise DeliberationStateError("Cannot interject before the deliberation starts")

        session.transcript.append(TranscriptEntry(EntryKind.USER, text))
        self._emit(UserMessage(text))
        for participant in self._participants.values():
            participant.remember(Message("user", f"User interjection: {text}"))

        responder = self._participants.get(session.current_speaker or "", self._synthesizer)
        max_turns = (
            self._limits.framework_turns if session.phase is Phase.FRAMEWORK else self._limits.discussion_turns
        )
        session.current_speaker = responder.id
        responder.speak(
            self._prompts.interjection.format(turn=session.turn_count, max_turns=max_turns, message=text)
        )
        self._emit(SpeakingStarted(responder.id, responder.name))

    def stop(self, reason: str = USER_STOP_REASON) -> None:
        """Freeze the session. Idempotent; in-flight generation is not cancelled."""
        if self.session.phase is Phase.STOPPED:
            return
        self.session.stop_reason = reason
        self._set_phase(Phase.STOPPED)
        self._emit(Stopped(reason))
        logger.info("Deliberation %s stopped: %s", self.session.id, reason)
        self._inbox.put_nowait(None)

    async def run(self) -> None:
        """Process inbox events until the session is stopped and evaluated."""
        while not self._settled():
            event = await self._inbox.get()
            if event is not None:
                self.handle_event(event)

    def handle_event(self, event: InboxEvent) -> None:
        if isinstance(event, EvaluationFinished):
            self._record_evaluation(event.evaluation)
            return
        if self.session.phase is Phase.STOPPED:
            logger.debug("Discarding %s after stop", type(event).__name__)
            return

        participant = self._participants.get(event.participant_id)
        if participant is None:
            logger.warning("Event from unknown participant %s", event.participant_id)
            return

        if isinstance(event, ParticipantChunk):
            self._emit(Chunk(participant.id, participant.name, event.text))
        elif isinstance(event, ParticipantCompleted):
            self._on_complete(participant, event.text)
        elif isinstance(event, ParticipantErrored):
            logger.error("%s error (%s): %s", participant.name, event.category.value, event.detail)
            self._emit(ParticipantFailed(participant.id, participant.name, event.category, event.detail))

    # --- Transition function ---

    def _on_complete(self, participant: Participant, text: str) -> None:
        session = self.session
        logger.info(
            "%s done | phase: %s | turn: %d | awaiting: %s",
            participant.name,
            session.phase.value,
            session.turn_count,
            list(session.awaiting_queue),
        )

        # Fact checks run beside the discussion and never drive turn-taking.
        if participant is self._fact_checker:
            self._resolve_fact_check(participant, text)
            return

        session.transcript.append(
            TranscriptEntry(EntryKind.PARTICIPANT, text, participant_id=participant.id, speaker=participant.name)
        )
        self._emit(ResponseComplete(participant.id, participant.name, text))
        self._share(participant, f"[{participant.name}]: {text}")

        claims = detect_claims(text, limit=self._limits.claims_per_check)
        if claims:
            self._queue_fact_check(participant, claims)

        phase = session.phase
        if phase is Phase.SYNTHESIS:
            self._conclude()
        elif phase is Phase.FRAMEWORK and session.turn_count >= self._limits.framework_turns:
            self._begin_discussion()
        elif session.pending_synthesis:
            self._attempt_synthesis()
        elif phase is Phase.DISCUSSION and session.turn_count >= self._limits.discussion_turns:
            logger.info("Discussion turn limit (%d) reached", session.turn_count)
            self._emit(TurnLimitReached(session.turn_count))
            self._attempt_synthesis()
        elif synthesis_requested(text):
            logger.info("%s asked to move to synthesis", participant.name)
            self._attempt_synthesis()
        elif session.awaiting_queue:
            self._dispatch_awaiting()
        else:
            nominees = find_nominations(text, self._rotation, exclude=participant.id)
            logger.debug("Parsed nominations: %s", nominees)
            self._dispatch_nominated(nominees)

    def _set_phase(self, phase: Phase) -> None:
        current = self.session.phase
        if _PHASE_ORDER[phase] <= _PHASE_ORDER[current]:
            raise DeliberationStateError(f"Illegal phase transition {current.value} -> {phase.value}")
        self.session.phase = phase
        self._emit(PhaseChanged(phase))

    # --- Turn-taking ---

    def _can_speak(self, participant: Participant) -> bool:
        if participant is self._synthesizer:
            return True
        count = self.session.per_participant_turn_count.get(participant.id, 0)
        return count < self._limits.participant_turns

    def _next_in_rotation(self) -> Participant:
        """Next eligible seat after the current speaker, or the synthesizer if all are capped."""
        ids = [p.id for p in self._rotation]
        current = self.session.current_speaker
        start = ids.index(current) + 1 if current in ids else 0
        for offset in range(len(self._rotation)):
            candidate = self._rotation[(start + offset) % len(self._rotation)]
            if self._can_speak(candidate):
                return candidate
        return self._synthesizer

    def _phase_turn_cap(self) -> int:
        if self.session.phase is Phase.FRAMEWORK:
            return self._limits.framework_turns
        return self._limits.discussion_turns

    def _dispatch_turn(
        self,
        participant: Participant,
        template: str,
        turn: int | None = None,
        max_turns: int | None = None,
    ) -> None:
        session = self.session
        session.turn_count = session.turn_count + 1 if turn is None else turn
        counts = session.per_participant_turn_count
        counts[participant.id] = counts.get(participant.id, 0) + 1
        session.current_speaker = participant.id

        logger.info(
            "Dispatching %s (turn %d/%d for participant) | global turn %d",
            participant.name,
            counts[participant.id],
            self._limits.participant_turns,
            session.turn_count,
        )
        participant.speak(
            template.format(
                turn=session.turn_count,
                max_turns=max_turns or self._phase_turn_cap(),
                topic=session.topic,
            )
        )
        self._emit(SpeakingStarted(participant.id, participant.name))
        self._emit(TurnCountUpdated(session.turn_count))

    def _dispatch_nominated(self, nominees: list[str]) -> None:
        available = [self._participants[n] for n in nominees if self._can_speak(self._participants[n])]
        if not available:
            nxt = self._next_in_rotation()
            logger.info("No eligible nomination, rotating to %s", nxt.name)
            self._dispatch_turn(nxt, self._prompts.nominated)
            return

        first, *rest = available
        self.session.awaiting_queue.extend(p.id for p in rest)
        self._dispatch_turn(first, self._prompts.nominated)

    def _dispatch_awaiting(self) -> None:
        queue = self.session.awaiting_queue
        while queue:
            participant = self._participants[queue.popleft()]
            if self._can_speak(participant):
                self._dispatch_turn(participant, self._prompts.awaiting)
                return
            logger.info("Skipping %s (at max %d turns)", participant.name, self._limits.participant_turns)
        self._dispatch_turn(self._next_in_rotation(), self._prompts.nominated)

    # --- Phase transitions ---

    def _begin_discussion(self) -> None:
        logger.info("Framework turn limit reached, moving to discussion")
        self._set_phase(Phase.DISCUSSION)
        self.session.transcript.append(TranscriptEntry(EntryKind.SYSTEM, "Framework established. Discussion begins."))
        self._dispatch_turn(self._synthesizer, self._prompts.framework_summary, turn=1)

    def _attempt_synthesis(self) -> None:
        session = self.session
        pending = pending_count(session.fact_check_queue)
        if pending:
            logger.info("Synthesis deferred: waiting for %d fact check(s)", pending)
            session.pending_synthesis = True
            self._emit(WaitingForFactChecks(pending))
            return

        session.pending_synthesis = False
        self._set_phase(Phase.SYNTHESIS)
        session.transcript.append(TranscriptEntry(EntryKind.SYSTEM, "Discussion complete. Synthesis begins."))
        session.current_speaker = self._synthesizer.id
        self._synthesizer.speak(
            self._prompts.synthesis.format(
                turn_count=session.turn_count,
                fact_check_summary=summarize(session.fact_check_queue),
            )
        )
        self._emit(SpeakingStarted(self._synthesizer.id, self._synthesizer.name))

    def _conclude(self) -> None:
        self.stop(SYNTHESIS_STOP_REASON)
        if self._evaluator is not None:
            self._evaluation_task = asyncio.create_task(self._evaluate(), name=f"evaluate-{self.session.id}")

    async def _evaluate(self) -> None:
        session = self.session
        assert self._evaluator is not None
        try:
            evaluation = await self._evaluator.evaluate(
                list(session.transcript), session.topic or "", session.user_context
            )
        except Exception as exc:
            logger.exception("Evaluator failed")
            evaluation = failed(ErrorCategory.SERVICE_ERROR, f"Evaluation failed: {exc}")
        self._inbox.put_nowait(EvaluationFinished(evaluation))

    def _record_evaluation(self, evaluation: Evaluation) -> None:
        if self.session.evaluation is not None:
            logger.warning("Evaluation already recorded for %s, ignoring", self.session.id)
            return
        self.session.evaluation = evaluation
        self._emit(EvaluationComplete(evaluation))

    # --- Fact checking ---

    def _queue_fact_check(self, source: Participant, claims: list[str]) -> None:
        if self._fact_checker is None:
            return
        item = FactCheckItem(
            id=uuid.uuid4().hex[:8],
            source_id=source.id,
            source_name=source.name,
            claims=claims,
        )
        self.session.fact_check_queue.append(item)
        logger.debug("Queued fact check %s for %s with %d claim(s)", item.id, source.name, len(claims))
        self._fact_checker.speak(
            self._prompts.fact_check_request.format(
                check_id=item.id,
                source=source.name,
                claims=format_claims(claims),
            )
        )
        self._emit(FactCheckQueued(dataclasses.replace(item, claims=list(claims))))

    def _resolve_fact_check(self, checker: Participant, text: str) -> None:
        session = self.session
        item = next((i for i in session.fact_check_queue if i.status is FactCheckStatus.CHECKING), None)
        if item is None:
            logger.warning("Fact check result arrived with nothing checking")
            return

        item.status = FactCheckStatus.COMPLETE
        item.verdict = parse_verdict(text)
        item.result = text
        logger.debug("Fact check %s complete: %s", item.id, item.verdict.value)

        queue = [i for i in session.fact_check_queue if i is not item] + [item]
        session.fact_check_queue = trim_completed(queue, self._limits.fact_check_history)
        session.transcript.append(
            TranscriptEntry(EntryKind.FACT_CHECK, text, participant_id=checker.id, speaker=checker.name)
        )
        self._share(checker, f"[{checker.name}]: {text}")
        self._emit(FactCheckCompleted(dataclasses.replace(item, claims=list(item.claims))))

        if session.pending_synthesis and pending_count(session.fact_check_queue) == 0:
            self._attempt_synthesis()

    # --- Helpers ---

    def _share(self, source: Participant, content: str) -> None:
        for participant in self._participants.values():
            if participant is not source:
                participant.remember(Message("user", content))

    def _settled(self) -> bool:
        if self.session.phase is not Phase.STOPPED:
            return False
        return self._evaluation_task is None or self.session.evaluation is not None

    def _emit(self, event: SessionEvent) -> None:
        for listener in self._listeners:
            try:
                listener(event)
            except Exception:
                logger.exception("Session listener failed on %s", type(event).__name__)
