"""Tests for roundtable/nominations.py."""

from dataclasses import dataclass

import pytest

from roundtable.nominations import find_nominations, has_anchor, synthesis_requested
from roundtable.personalities import ROTATION, Personality


@dataclass
class Seat:
    id: str
    personality: Personality


SEATS = [Seat(p.value, p) for p in ROTATION]


def test_two_nominees_in_order_of_mention():
    text = "Good point. I'd like to hear from the Historian and the Skeptic."
    assert find_nominations(text, SEATS) == ["historian", "skeptic"]


def test_name_without_anchor_is_not_a_nomination():
    assert find_nominations("The Skeptic raised a fair concern.", SEATS) == []


def test_nominations_across_sentences_are_distinct():
    text = "Let's turn to the Futurist. I'd also like to hear from the Futurist and the Ethicist."
    assert find_nominations(text, SEATS) == ["futurist", "ethicist"]


def test_speaker_excluded():
    text = "I'd like to hear from the Analyst and the Pragmatist."
    assert find_nominations(text, SEATS, exclude="analyst") == ["pragmatist"]


def test_whole_word_match_only():
    assert find_nominations("I'd like to hear from the analysts.", SEATS) == []


def test_fact_checker_spoken_with_space():
    seats = [Seat("fact_checker", Personality.FACT_CHECKER)]
    assert find_nominations("Thoughts from the fact checker?", seats) == ["fact_checker"]


@pytest.mark.parametrize("anchor", ["hear from", "LIKE TO HEAR", "thoughts from", "turn to"])
def test_anchors_case_insensitive(anchor):
    assert has_anchor(f"We should {anchor} someone")


@pytest.mark.parametrize(
    "text,phrase",
    [
        ("I believe we're ready to synthesize our conclusions.", "ready to synthesize"),
        ("Perhaps we can MOVE TO CONCLUSION now.", "move to conclusion"),
        ("We are ready to conclude.", "ready to conclude"),
        ("Let's keep going.", None),
    ],
)
def test_synthesis_requested(text, phrase):
    assert synthesis_requested(text) == phrase
