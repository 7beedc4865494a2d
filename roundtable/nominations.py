"""Heuristics for speaker nominations and synthesis-readiness in participant text."""

import re
from collections.abc import Iterable
from typing import Protocol

from roundtable.claims import split_sentences
from roundtable.personalities import Personality

# A nomination needs one of these in the same sentence as a role name.
NOMINATION_ANCHORS: tuple[str, ...] = (
    "hear from",
    "like to hear",
    "thoughts from",
    "turn to",
)

# Checked in order; the first phrase found wins.
SYNTHESIS_PHRASES: tuple[str, ...] = (
    "ready to synthesize",
    "move to conclusion",
    "ready to conclude",
)


class Nominee(Protocol):
    id: str
    personality: Personality


def _name_pattern(personality: Personality) -> re.Pattern[str]:
    return re.compile(rf"\b{re.escape(personality.spoken_name)}\b", re.IGNORECASE)


def has_anchor(sentence: str) -> bool:
    lowered = sentence.lower()
    return any(anchor in lowered for anchor in NOMINATION_ANCHORS)


def find_nominations(
    text: str,
    candidates: Iterable[Nominee],
    exclude: str | None = None,
) -> list[str]:
    """Return ids of candidates nominated in ``text``, in order of mention.

    Args:
        text: Completed response text.
        candidates: Participants eligible for primary rotation.
        exclude: Id of the participant who wrote ``text``.

    Returns:
        Distinct participant ids. Empty when nobody was nominated.
    """
    pool = [(c.id, _name_pattern(c.personality)) for c in candidates if c.id != exclude]
    nominees: list[str] = []
    for sentence in split_sentences(text):
        if not has_anchor(sentence):
            continue
        found: list[tuple[int, str]] = []
        for participant_id, pattern in pool:
            match = pattern.search(sentence)
            if match:
                found.append((match.start(), participant_id))
        for _, participant_id in sorted(found):
            if participant_id not in nominees:
                nominees.append(participant_id)
    return nominees


def synthesis_requested(text: str) -> str | None:
    """Return the readiness phrase found in ``text``, or None."""
    lowered = text.lower()
    return next((phrase for phrase in SYNTHESIS_PHRASES if phrase in lowered), None)
