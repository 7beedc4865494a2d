"""Provider health checks: ping each API before starting a deliberation."""

import asyncio
import logging

from roundtable.models import Message
from roundtable.providers.base import GenerationOptions, GenerationProvider

logger = logging.getLogger(__name__)

_PING_PROMPT = "Reply with the word OK only."
_TIMEOUT_SEC = 15.0


async def _check_one(name: str, provider: GenerationProvider) -> tuple[str, bool, str]:
    """Ping a single provider. Returns (name, ok, error_message)."""
    try:
        await asyncio.wait_for(
            provider.complete([Message("user", _PING_PROMPT)], GenerationOptions(max_tokens=16)),
            timeout=_TIMEOUT_SEC,
        )
        return name, True, ""
    except asyncio.TimeoutError:
        return name, False, f"No reply within {_TIMEOUT_SEC:.0f}s"
    except Exception as exc:
        logger.debug("Health check for %s failed: %s", name, exc)
        return name, False, str(exc)


async def run_health_checks(
    providers: dict[str, GenerationProvider],
) -> dict[str, tuple[bool, str]]:
    """Ping all providers in parallel.

    Returns:
        Dict mapping provider name -> (ok, error_message).
        error_message is "" when ok is True.
    """
    results = await asyncio.gather(*(_check_one(n, p) for n, p in providers.items()))
    return {name: (ok, err) for name, ok, err in results}
