"""Tests for roundtable/personalities.py."""

import pytest

from roundtable.models import ErrorCategory
from roundtable.personalities import (
    FACT_CHECK_ROLE,
    OPENING_SPEAKER,
    PROFILES,
    ROTATION,
    SYNTHESIS_ROLE,
    InvalidPersonalityError,
    Personality,
    get_profile,
    resolve,
)


def test_every_personality_has_a_profile():
    assert set(PROFILES) == set(Personality)


def test_profiles_table_is_read_only():
    with pytest.raises(TypeError):
        PROFILES[Personality.ANALYST] = PROFILES[Personality.SKEPTIC]  # type: ignore[index]


def test_display_names():
    assert get_profile("analyst").name == "The Analyst"
    assert get_profile(Personality.FACT_CHECKER).name == "The Fact Checker"


def test_rotation_excludes_fact_checker():
    assert FACT_CHECK_ROLE not in ROTATION
    assert len(ROTATION) == 8
    assert ROTATION[0] is OPENING_SPEAKER
    assert SYNTHESIS_ROLE in ROTATION


def test_synthesizer_knows_readiness_phrase():
    assert "ready to synthesize" in get_profile(SYNTHESIS_ROLE).system_prompt


def test_spoken_name():
    assert Personality.FACT_CHECKER.spoken_name == "fact checker"
    assert Personality.ETHICIST.spoken_name == "ethicist"


@pytest.mark.parametrize("value", ["skeptic", " Skeptic ", Personality.SKEPTIC])
def test_resolve_accepts_names(value):
    assert resolve(value) is Personality.SKEPTIC


def test_resolve_unknown_raises():
    with pytest.raises(InvalidPersonalityError) as exc_info:
        resolve("comedian")
    assert exc_info.value.category is ErrorCategory.INVALID_CONSTRUCTION
    assert exc_info.value.value == "comedian"
    assert isinstance(exc_info.value, ValueError)
