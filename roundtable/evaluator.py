"""Post-hoc quality evaluation of a finished deliberation."""

import json
import logging
import re
from collections.abc import Iterable

from roundtable.models import SCORE_DIMENSIONS, EntryKind, ErrorCategory, Evaluation, Message, TranscriptEntry
from roundtable.providers.base import GenerationOptions, GenerationProvider, ProviderError

logger = logging.getLogger(__name__)

_FENCE = re.compile(r"```(?:json)?\n?")


def build_transcript(entries: Iterable[TranscriptEntry]) -> str:
    """Format transcript entries into a single string for the evaluator."""
    parts: list[str] = []
    for entry in entries:
        if entry.kind is EntryKind.USER:
            label = "User"
        elif entry.kind is EntryKind.SYSTEM:
            label = "System"
        else:
            label = entry.speaker or entry.participant_id or "Unknown"
        parts.append(f"[{label}]: {entry.content}")
    return "\n\n---\n\n".join(parts)


def calculate_overall(scores: dict | None) -> int:
    """Mean of the numeric scores scaled to 0-100."""
    if not scores:
        return 0
    values = [v for v in scores.values() if isinstance(v, (int, float)) and not isinstance(v, bool)]
    if not values:
        return 0
    return round(sum(values) / len(values) * 10)


def failed(category: ErrorCategory, message: str) -> Evaluation:
    return Evaluation(status="error", error=message, error_category=category, details={"error": message})


def parse_evaluation(response: str) -> Evaluation:
    """Parse the evaluator's JSON reply, tolerating markdown code fences.

    Returns an error Evaluation with category parse_error when the reply is
    not a JSON object; never defaults to a neutral score.
    """
    json_str = _FENCE.sub("", response).strip()
    try:
        data = json.loads(json_str)
    except json.JSONDecodeError as exc:
        logger.error("Evaluation JSON parse failed: %s", exc)
        logger.debug("Raw evaluation response: %s", response[:500])
        return failed(ErrorCategory.PARSE_ERROR, "Failed to parse evaluation response")
    if not isinstance(data, dict):
        return failed(ErrorCategory.PARSE_ERROR, "Evaluation response is not a JSON object")

    raw_scores = data.get("scores")
    if not isinstance(raw_scores, dict):
        raw_scores = {}
    scores = {dim: raw_scores.get(dim) or 0 for dim in SCORE_DIMENSIONS}
    details = data.get("details")
    if not isinstance(details, dict):
        details = {}
    overall = data.get("overall") or calculate_overall(raw_scores)

    logger.info("Evaluation complete: overall score %s/100", overall)
    return Evaluation(
        status="complete",
        scores=scores,
        overall=overall,
        details={str(k): str(v) for k, v in details.items()},
    )


class Evaluator:
    """Scores a transcript across fixed quality dimensions with one model call."""

    def __init__(self, provider: GenerationProvider, prompt: str, model: str | None = None) -> None:
        self._provider = provider
        self._prompt = prompt
        self._model = model

    async def evaluate(
        self,
        transcript: Iterable[TranscriptEntry],
        topic: str,
        user_context: str | None = None,
    ) -> Evaluation:
        logger.info("Starting evaluation for topic: %.50s", topic)
        prompt = self._prompt.format(
            topic=topic,
            user_context=user_context or "Not provided",
            transcript=build_transcript(transcript),
        )
        try:
            response = await self._provider.complete(
                [Message("user", prompt)],
                GenerationOptions(model=self._model),
            )
        except ProviderError as exc:
            logger.error("Evaluation failed: %s", exc)
            return failed(exc.category, str(exc))
        return parse_evaluation(response)
