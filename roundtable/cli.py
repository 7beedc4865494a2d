"""Click CLI: loads config, builds the roster, runs one deliberation, renders it."""

import asyncio
import logging
import sys

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler

from config.config_loader import AppConfig, load_config
from roundtable.deliberation import Deliberation
from roundtable.evaluator import Evaluator
from roundtable.healthcheck import run_health_checks
from roundtable.output import ConsoleRenderer
from roundtable.participant import build_participants
from roundtable.personalities import InvalidPersonalityError
from roundtable.providers.anthropic import AnthropicProvider
from roundtable.providers.base import GenerationProvider, ProviderError
from roundtable.providers.gemini import GeminiProvider
from roundtable.providers.openai_provider import OpenAIProvider
from roundtable.providers.perplexity import PerplexityProvider

logger = logging.getLogger(__name__)

console = Console(legacy_windows=False)

PROVIDER_CLASSES: dict[str, type[GenerationProvider]] = {
    "anthropic": AnthropicProvider,
    "openai": OpenAIProvider,
    "google": GeminiProvider,
    "perplexity": PerplexityProvider,
}


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )


def _build_providers(config: AppConfig) -> dict[str, GenerationProvider]:
    """Build one provider per configured model, keyed by name.

    Providers are built even without an API key: the seats bound to them
    report a missing_credential error when asked to speak.
    """
    providers: dict[str, GenerationProvider] = {}
    for name, model_cfg in config.models.items():
        if name not in PROVIDER_CLASSES:
            logger.warning("Provider '%s' unknown, skipping", name)
            continue
        try:
            providers[name] = PROVIDER_CLASSES[name](model_cfg)
        except ProviderError as exc:
            logger.warning("Failed to instantiate provider '%s': %s", name, exc)
    return providers


def _check_providers(providers: dict[str, GenerationProvider], available: set[str]) -> None:
    """Ping providers that have keys, print results, and ask the user on failures.

    Exits if the user declines to continue.
    """
    to_check = {n: p for n, p in providers.items() if n in available}
    missing = sorted(set(providers) - available)
    if missing:
        console.print(f"[yellow]No API key for:[/yellow] {', '.join(missing)}")
    if not to_check:
        console.print("[bold red]Error:[/bold red] No providers have API keys. Check .env.")
        sys.exit(1)

    console.print("\n[bold]Checking providers...[/bold]")
    results = asyncio.run(run_health_checks(to_check))

    failed_names: list[str] = []
    for name in sorted(results):
        ok, err = results[name]
        if ok:
            console.print(f"  [green]OK  [/green] {name}")
        else:
            short_err = err.splitlines()[0][:120] if err else "unknown error"
            console.print(f"  [red]FAIL[/red] {name}: {short_err}")
            failed_names.append(name)

    if failed_names or missing:
        console.print("[yellow]Seats bound to unavailable providers will report errors when they speak.[/yellow]")
        if not click.confirm("Continue anyway?", default=True):
            sys.exit(0)
    console.print()


async def _run_deliberation(
    config: AppConfig,
    providers: dict[str, GenerationProvider],
    topic: str,
    user_context: str | None,
) -> Deliberation:
    participants = build_participants(config.roster, providers)

    evaluator = None
    if config.evaluator is not None and config.prompts.evaluation:
        evaluator = Evaluator(
            providers[config.evaluator.provider],
            config.prompts.evaluation,
            model=config.evaluator.model,
        )

    deliberation = Deliberation(participants, config.prompts, config.limits, evaluator=evaluator)
    deliberation.subscribe(ConsoleRenderer(console))
    deliberation.start(topic, user_context)
    try:
        await deliberation.run()
    except asyncio.CancelledError:
        deliberation.stop()
        raise
    return deliberation


@click.command()
@click.argument("topic")
@click.option("--context", "user_context", default=None, help="Background the evaluator should judge against")
@click.option("--verbose", is_flag=True, help="Enable DEBUG-level logging")
@click.option("--skip-health-check", is_flag=True, default=False,
              help="Skip the API connectivity check at startup")
def main(topic: str, user_context: str | None, verbose: bool, skip_health_check: bool) -> None:
    """Roundtable -- multi-personality AI deliberation.

    \b
    Examples:
      roundtable "Should cities ban cars from downtown cores?"
      roundtable "Adopt a four-day work week?" --context "50-person startup"
    """
    load_dotenv()
    _setup_logging(verbose)

    try:
        config = load_config()
    except (FileNotFoundError, ValueError) as exc:
        console.print(f"[bold red]Config error:[/bold red] {exc}")
        sys.exit(1)

    if not skip_health_check:
        # SDK clients bind to the loop that first uses them, so the ping set is throwaway.
        _check_providers(_build_providers(config), config.available_providers)

    providers = _build_providers(config)

    try:
        deliberation = asyncio.run(_run_deliberation(config, providers, topic, user_context))
    except (InvalidPersonalityError, KeyError, ValueError) as exc:
        console.print(f"[bold red]Roster error:[/bold red] {exc}")
        sys.exit(1)
    except KeyboardInterrupt:
        console.print("\n[yellow]Discussion stopped by user[/yellow]")
        sys.exit(130)

    session = deliberation.session
    console.print(f"\n[dim]Session {session.id}: {session.turn_count} turns, {session.stop_reason}[/dim]")


if __name__ == "__main__":
    main()
