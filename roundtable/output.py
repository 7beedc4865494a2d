"""Rich console rendering of deliberation events."""

import logging

from rich.console import Console
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table
from rich.text import Text

from roundtable.events import (
    Chunk,
    EvaluationComplete,
    FactCheckCompleted,
    FactCheckQueued,
    ParticipantFailed,
    PhaseChanged,
    ResponseComplete,
    SessionEvent,
    SpeakingStarted,
    Stopped,
    TopicSet,
    TurnLimitReached,
    UserMessage,
    WaitingForFactChecks,
)
from roundtable.fact_check import VERDICT_LABELS
from roundtable.models import Evaluation, Verdict

logger = logging.getLogger(__name__)

console = Console(legacy_windows=False)

_VERDICT_STYLES: dict[Verdict, str] = {
    Verdict.VERIFIED: "green",
    Verdict.PARTIAL: "yellow",
    Verdict.DISPUTED: "red",
    Verdict.FALSE: "red",
    Verdict.UNVERIFIABLE: "dim",
    Verdict.UNKNOWN: "dim",
}


def _preview(text: str, words: int = 50) -> str:
    """Return the first N words of a text."""
    all_words = text.split()
    preview = " ".join(all_words[:words])
    if len(all_words) > words:
        preview += "..."
    return preview


class ConsoleRenderer:
    """Session listener that streams the deliberation to a rich console."""

    def __init__(self, target: Console | None = None) -> None:
        self.console = target or console
        self._streaming = False

    def __call__(self, event: SessionEvent) -> None:
        if isinstance(event, Chunk):
            self._streaming = True
            self.console.print(event.text, end="", markup=False, highlight=False)
            return
        if self._streaming and isinstance(event, ResponseComplete):
            self.console.print()
            self._streaming = False
            return
        self._end_stream()

        if isinstance(event, TopicSet):
            self.console.print(f"\n[bold cyan]Roundtable[/bold cyan]: [italic]{event.topic}[/italic]\n")
        elif isinstance(event, PhaseChanged):
            self.console.print(Rule(f"[bold magenta]{event.phase.value.title()}[/bold magenta]"))
        elif isinstance(event, SpeakingStarted):
            self.console.print(Rule(f"[bold]{event.name}[/bold]", style="cyan", align="left"))
        elif isinstance(event, ResponseComplete):
            # Non-streamed response; show it whole.
            self.console.print(event.text, markup=False)
        elif isinstance(event, UserMessage):
            self.console.print(Panel(event.text, title="[bold]You[/bold]", border_style="blue"))
        elif isinstance(event, ParticipantFailed):
            self.console.print(f"[bold red]{event.name} failed[/bold red] ({event.category.value}): {event.detail}")
        elif isinstance(event, FactCheckQueued):
            claims = "\n".join(f"- {claim}" for claim in event.item.claims)
            self.console.print(
                Panel(claims, title=f"Fact check queued: {event.item.source_name}", border_style="dim")
            )
        elif isinstance(event, FactCheckCompleted):
            self._print_fact_check(event)
        elif isinstance(event, WaitingForFactChecks):
            self.console.print(f"[yellow]Waiting for {event.pending} fact check(s) before synthesis...[/yellow]")
        elif isinstance(event, TurnLimitReached):
            self.console.print(Text(f"Turn limit reached after {event.turn_count} turns", style="dim"))
        elif isinstance(event, Stopped):
            self.console.print(Text(event.reason, style="bold green"))
        elif isinstance(event, EvaluationComplete):
            print_evaluation(event.evaluation, self.console)

    def _end_stream(self) -> None:
        if self._streaming:
            self.console.print()
            self._streaming = False

    def _print_fact_check(self, event: FactCheckCompleted) -> None:
        verdict = event.item.verdict or Verdict.UNKNOWN
        self.console.print(
            Panel(
                _preview(event.item.result or ""),
                title=f"{VERDICT_LABELS[verdict]} ({event.item.source_name})",
                border_style=_VERDICT_STYLES[verdict],
            )
        )


def print_evaluation(evaluation: Evaluation, target: Console | None = None) -> None:
    """Print evaluation scores as a table, or the error when evaluation failed."""
    out = target or console
    out.print(Rule("[bold green]Evaluation[/bold green]"))
    if evaluation.status == "error":
        category = evaluation.error_category.value if evaluation.error_category else "unknown"
        out.print(f"[bold red]Evaluation failed[/bold red] ({category}): {evaluation.error}")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Dimension")
    table.add_column("Score", justify="right")
    table.add_column("Notes", style="dim")
    for dimension, score in evaluation.scores.items():
        table.add_row(dimension.replace("_", " ").title(), f"{score}/10", evaluation.details.get(dimension, ""))
    out.print(table)
    out.print(f"[bold]Overall:[/bold] {evaluation.overall}/100")
