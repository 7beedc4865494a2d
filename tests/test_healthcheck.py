"""Unit tests for roundtable/healthcheck.py: no real API calls."""

import asyncio
from unittest.mock import AsyncMock

import roundtable.healthcheck as hc
from roundtable.healthcheck import run_health_checks
from roundtable.models import ErrorCategory
from roundtable.providers.base import ProviderError

from tests.conftest import ScriptedProvider


async def test_all_providers_pass():
    """All providers succeed -> all marked ok, no errors."""
    providers = {"anthropic": ScriptedProvider("anthropic", "OK"), "google": ScriptedProvider("google", "OK")}

    results = await run_health_checks(providers)

    assert results == {"anthropic": (True, ""), "google": (True, "")}


async def test_ping_is_a_short_single_shot_call():
    provider = ScriptedProvider("anthropic", "OK")

    await run_health_checks({"anthropic": provider})

    messages, options = provider.complete.await_args.args
    assert messages[0].content == "Reply with the word OK only."
    assert options.max_tokens == 16


async def test_one_provider_fails():
    """A provider that raises returns ok=False with the error message."""
    providers = {"anthropic": ScriptedProvider("anthropic"), "perplexity": ScriptedProvider("perplexity")}
    providers["perplexity"].complete = AsyncMock(side_effect=ProviderError("perplexity", "403 Forbidden"))

    results = await run_health_checks(providers)

    assert results["anthropic"] == (True, "")
    ok, err = results["perplexity"]
    assert ok is False
    assert "403" in err


async def test_missing_credential_reported():
    provider = ScriptedProvider("openai")
    provider.complete = AsyncMock(
        side_effect=ProviderError(
            "openai", "Missing API key: OPENAI_API_KEY", category=ErrorCategory.MISSING_CREDENTIAL
        )
    )

    results = await run_health_checks({"openai": provider})

    assert results["openai"] == (False, "[openai] Missing API key: OPENAI_API_KEY")


async def test_empty_providers():
    """Empty provider dict returns empty results."""
    assert await run_health_checks({}) == {}


async def test_timeout_counts_as_failure(monkeypatch):
    """A provider that hangs past the timeout is marked as failed."""

    async def hang(*args, **kwargs):
        await asyncio.sleep(9999)

    provider = ScriptedProvider("slow")
    provider.complete = AsyncMock(side_effect=hang)
    monkeypatch.setattr(hc, "_TIMEOUT_SEC", 0.05)

    results = await run_health_checks({"slow": provider})

    ok, err = results["slow"]
    assert ok is False
    assert "No reply" in err
