"""Dataclasses and enums for deliberation state. No logic beyond defaults, no deps."""

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Phase(str, Enum):
    UNINITIALIZED = "uninitialized"
    FRAMEWORK = "framework"
    DISCUSSION = "discussion"
    SYNTHESIS = "synthesis"
    STOPPED = "stopped"


class ParticipantStatus(str, Enum):
    IDLE = "idle"
    THINKING = "thinking"
    SPEAKING = "speaking"
    ERROR = "error"


class EntryKind(str, Enum):
    USER = "user"
    PARTICIPANT = "participant"
    SYSTEM = "system"
    FACT_CHECK = "fact_check"


class FactCheckStatus(str, Enum):
    CHECKING = "checking"
    COMPLETE = "complete"


class Verdict(str, Enum):
    VERIFIED = "verified"
    PARTIAL = "partial"
    DISPUTED = "disputed"
    FALSE = "false"
    UNVERIFIABLE = "unverifiable"
    UNKNOWN = "unknown"


class ErrorCategory(str, Enum):
    MISSING_CREDENTIAL = "missing_credential"
    SERVICE_ERROR = "service_error"
    PARSE_ERROR = "parse_error"
    INVALID_CONSTRUCTION = "invalid_construction"


@dataclass
class Message:
    role: str              # "user" or "assistant"
    content: str


@dataclass
class TranscriptEntry:
    kind: EntryKind
    content: str
    participant_id: str | None = None
    speaker: str | None = None   # display name, e.g. "The Analyst"
    timestamp: datetime = field(default_factory=_utcnow)


@dataclass
class FactCheckItem:
    id: str
    source_id: str
    source_name: str
    claims: list[str]
    status: FactCheckStatus = FactCheckStatus.CHECKING
    verdict: Verdict | None = None
    result: str | None = None
    created_at: datetime = field(default_factory=_utcnow)


SCORE_DIMENSIONS: tuple[str, ...] = (
    "engagement",
    "evidence",
    "diversity",
    "context_integration",
    "actionability",
    "synthesis",
    "fact_checking",
    "conciseness",
)


@dataclass
class Evaluation:
    status: str = "pending"    # "pending", "complete", "error"
    scores: dict[str, int | float] = field(default_factory=lambda: {d: 0 for d in SCORE_DIMENSIONS})
    overall: int | float = 0
    details: dict[str, str] = field(default_factory=dict)
    error: str | None = None
    error_category: ErrorCategory | None = None


@dataclass
class DeliberationSession:
    id: str
    topic: str | None = None
    user_context: str | None = None
    phase: Phase = Phase.UNINITIALIZED
    current_speaker: str | None = None
    turn_count: int = 0
    per_participant_turn_count: dict[str, int] = field(default_factory=dict)
    awaiting_queue: deque[str] = field(default_factory=deque)
    transcript: list[TranscriptEntry] = field(default_factory=list)
    fact_check_queue: list[FactCheckItem] = field(default_factory=list)
    pending_synthesis: bool = False
    evaluation: Evaluation | None = None
    stop_reason: str | None = None


@dataclass(frozen=True)
class ParticipantView:
    id: str
    name: str
    personality: str
    status: ParticipantStatus


@dataclass(frozen=True)
class SessionSnapshot:
    """Read-only copy of session state for observers."""

    id: str
    topic: str | None
    phase: Phase
    current_speaker: str | None
    turn_count: int
    per_participant_turn_count: dict[str, int]
    awaiting_queue: tuple[str, ...]
    transcript: tuple[TranscriptEntry, ...]
    fact_check_queue: tuple[FactCheckItem, ...]
    pending_synthesis: bool
    evaluation: Evaluation | None
    participants: tuple[ParticipantView, ...]
