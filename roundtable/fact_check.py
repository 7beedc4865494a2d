"""Fact-check verdict parsing, request formatting, and synthesis summary."""

import re
from collections.abc import Iterable
from dataclasses import dataclass

from roundtable.models import FactCheckItem, FactCheckStatus, Verdict


@dataclass(frozen=True)
class VerdictRule:
    verdict: Verdict
    pattern: re.Pattern[str]


# Order is precedence: the first rule that matches anywhere in the text wins,
# regardless of where in the text the match occurs.
VERDICT_RULES: tuple[VerdictRule, ...] = (
    VerdictRule(Verdict.VERIFIED, re.compile(r"\bVERIFIED\b")),
    VerdictRule(Verdict.PARTIAL, re.compile(r"PARTIAL|⚠")),
    VerdictRule(Verdict.DISPUTED, re.compile(r"\bDISPUTED\b")),
    VerdictRule(Verdict.FALSE, re.compile(r"\bFALSE\b")),
    VerdictRule(
        Verdict.UNVERIFIABLE,
        re.compile(r"UNVERIFIABLE|CANNOT BE VERIFIED|UNABLE TO VERIFY|NOT VERIFIABLE"),
    ),
)

VERDICT_LABELS: dict[Verdict, str] = {
    Verdict.VERIFIED: "✓ VERIFIED",
    Verdict.PARTIAL: "⚠ PARTIALLY VERIFIED",
    Verdict.DISPUTED: "✗ DISPUTED",
    Verdict.FALSE: "✗ FALSE",
    Verdict.UNVERIFIABLE: "? UNVERIFIABLE",
    Verdict.UNKNOWN: "? UNKNOWN",
}

NO_CHECKS_SUMMARY = "No claims were fact-checked during this discussion."

_CLAIM_PREVIEW_CHARS = 80


def parse_verdict(response: str) -> Verdict:
    """Classify a fact-check response into a single verdict."""
    upper = response.upper()
    for rule in VERDICT_RULES:
        if rule.pattern.search(upper):
            return rule.verdict
    return Verdict.UNKNOWN


def format_claims(claims: Iterable[str]) -> str:
    """Number claims for the verification prompt: ``1. "claim"``."""
    return "\n".join(f'{idx}. "{claim.strip()}"' for idx, claim in enumerate(claims, start=1))


def pending_count(queue: Iterable[FactCheckItem]) -> int:
    return sum(1 for item in queue if item.status is FactCheckStatus.CHECKING)


def trim_completed(queue: list[FactCheckItem], keep: int) -> list[FactCheckItem]:
    """Drop the oldest completed items beyond ``keep``. Checking items are never dropped."""
    completed = [item for item in queue if item.status is FactCheckStatus.COMPLETE]
    excess = len(completed) - keep
    if excess <= 0:
        return list(queue)
    dropped = {id(item) for item in completed[:excess]}
    return [item for item in queue if id(item) not in dropped]


def summarize(queue: Iterable[FactCheckItem]) -> str:
    """Build the fact-check summary block handed to the synthesizer."""
    completed = [item for item in queue if item.status is FactCheckStatus.COMPLETE]
    if not completed:
        return NO_CHECKS_SUMMARY

    lines = []
    for item in completed:
        label = VERDICT_LABELS[item.verdict or Verdict.UNKNOWN]
        preview = item.claims[0][:_CLAIM_PREVIEW_CHARS] if item.claims else ""
        lines.append(f'- {label}: "{preview}..." (from {item.source_name})')
    return "FACT-CHECK SUMMARY:\n" + "\n".join(lines)
