"""Integration tests: real API calls, no mocks. Requires .env with the roster's API keys."""

import asyncio
import os

import pytest
from dotenv import load_dotenv

load_dotenv()

_REQUIRED_KEYS = ["ANTHROPIC_API_KEY", "OPENAI_API_KEY", "GEMINI_API_KEY", "PERPLEXITY_API_KEY"]
_MISSING = [k for k in _REQUIRED_KEYS if not os.environ.get(k, "").strip()]

pytestmark = pytest.mark.integration

if _MISSING:
    pytestmark = pytest.mark.skip(reason=f"Missing API keys: {', '.join(_MISSING)}")


async def test_provider_health_checks():
    from config.config_loader import load_config
    from roundtable.cli import _build_providers
    from roundtable.healthcheck import run_health_checks

    providers = _build_providers(load_config())
    results = await run_health_checks(providers)

    assert all(ok for ok, _ in results.values()), results


async def test_short_deliberation_end_to_end():
    """Run a real deliberation with tight limits and verify it concludes and is evaluated."""
    from config.config_loader import LimitsConfig, load_config
    from roundtable.cli import _build_providers
    from roundtable.deliberation import SYNTHESIS_STOP_REASON, Deliberation
    from roundtable.evaluator import Evaluator
    from roundtable.models import Phase
    from roundtable.participant import build_participants

    config = load_config()
    providers = _build_providers(config)
    evaluator = Evaluator(providers[config.evaluator.provider], config.prompts.evaluation, config.evaluator.model)
    deliberation = Deliberation(
        build_participants(config.roster, providers),
        config.prompts,
        LimitsConfig(framework_turns=2, discussion_turns=3),
        evaluator=evaluator,
    )

    deliberation.start("Should a small team adopt a four-day work week?")
    await asyncio.wait_for(deliberation.run(), timeout=600)

    session = deliberation.session
    assert session.phase is Phase.STOPPED
    assert session.stop_reason == SYNTHESIS_STOP_REASON
    assert session.evaluation is not None
    assert session.evaluation.status in ("complete", "error")
