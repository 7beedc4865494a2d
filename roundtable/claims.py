"""Heuristic detection of checkable factual claims in a completed response."""

import re

_SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?])\s+")

# Any single match flags the sentence.
CLAIM_PATTERNS: tuple[re.Pattern[str], ...] = (
    # percentages
    re.compile(r"(\d+(?:\.\d+)?)\s*(?:%|percent)", re.IGNORECASE),
    # year references
    re.compile(r"(?:in|since|by|around)\s+(\d{4})", re.IGNORECASE),
    # study / research citations
    re.compile(
        r"(?:studies?\s+(?:show|indicate|suggest|found|reveal)"
        r"|research\s+(?:shows?|indicates?|suggests?|found|reveals?))",
        re.IGNORECASE,
    ),
    # attributions
    re.compile(r"according\s+to\s+(?:a\s+)?(?:recent\s+)?(?:\w+\s+){1,3}", re.IGNORECASE),
    # large magnitudes
    re.compile(
        r"(?:approximately|about|roughly|nearly|over|more than|less than)\s+"
        r"(\d+(?:,\d{3})*(?:\.\d+)?)\s+(?:million|billion|thousand|people|users|companies)",
        re.IGNORECASE,
    ),
    # definitive statements
    re.compile(r"(?:it\s+is\s+(?:a\s+)?fact\s+that|the\s+fact\s+is|factually|in\s+fact)", re.IGNORECASE),
    # historical references
    re.compile(r"(?:historically|in\s+history|throughout\s+history)", re.IGNORECASE),
    # economic metrics
    re.compile(
        r"(?:market\s+(?:share|cap|value)|GDP|revenue|valuation)\s+(?:of|is|was|reached)\s+\$?[\d,.]+",
        re.IGNORECASE,
    ),
)

DEFAULT_CLAIM_LIMIT = 3


def split_sentences(text: str) -> list[str]:
    """Split text into sentence-like units on terminal punctuation."""
    return [s for s in _SENTENCE_BOUNDARY.split(text.strip()) if s]


def is_claim(sentence: str) -> bool:
    return any(pattern.search(sentence) for pattern in CLAIM_PATTERNS)


def detect_claims(text: str, limit: int = DEFAULT_CLAIM_LIMIT) -> list[str]:
    """Return up to ``limit`` sentences from ``text`` that look like checkable claims.

    The result only triggers fact-check work, so volume is capped but no
    claim is filtered for plausibility.
    """
    claims: list[str] = []
    for sentence in split_sentences(text):
        if is_claim(sentence):
            claims.append(sentence.strip())
            if len(claims) >= limit:
                break
    return claims
