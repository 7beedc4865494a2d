"""Event types: participant -> orchestrator inbox, and orchestrator -> observers."""

from dataclasses import dataclass

from roundtable.models import ErrorCategory, Evaluation, FactCheckItem, Phase

# --- Participant -> orchestrator ---


@dataclass(frozen=True)
class ParticipantChunk:
    participant_id: str
    text: str


@dataclass(frozen=True)
class ParticipantCompleted:
    participant_id: str
    text: str


@dataclass(frozen=True)
class ParticipantErrored:
    participant_id: str
    category: ErrorCategory
    detail: str


@dataclass(frozen=True)
class EvaluationFinished:
    evaluation: Evaluation


InboxEvent = ParticipantChunk | ParticipantCompleted | ParticipantErrored | EvaluationFinished

# --- Orchestrator -> observers ---


@dataclass(frozen=True)
class PhaseChanged:
    phase: Phase


@dataclass(frozen=True)
class TopicSet:
    topic: str


@dataclass(frozen=True)
class SpeakingStarted:
    participant_id: str
    name: str


@dataclass(frozen=True)
class Chunk:
    participant_id: str
    name: str
    text: str


@dataclass(frozen=True)
class ResponseComplete:
    participant_id: str
    name: str
    text: str


@dataclass(frozen=True)
class ParticipantFailed:
    participant_id: str
    name: str
    category: ErrorCategory
    detail: str


@dataclass(frozen=True)
class UserMessage:
    text: str


@dataclass(frozen=True)
class TurnCountUpdated:
    turn_count: int


@dataclass(frozen=True)
class TurnLimitReached:
    turn_count: int


@dataclass(frozen=True)
class FactCheckQueued:
    item: FactCheckItem


@dataclass(frozen=True)
class FactCheckCompleted:
    item: FactCheckItem


@dataclass(frozen=True)
class WaitingForFactChecks:
    pending: int


@dataclass(frozen=True)
class Stopped:
    reason: str


@dataclass(frozen=True)
class EvaluationComplete:
    evaluation: Evaluation


SessionEvent = (
    PhaseChanged
    | TopicSet
    | SpeakingStarted
    | Chunk
    | ResponseComplete
    | ParticipantFailed
    | UserMessage
    | TurnCountUpdated
    | TurnLimitReached
    | FactCheckQueued
    | FactCheckCompleted
    | WaitingForFactChecks
    | Stopped
    | EvaluationComplete
)
