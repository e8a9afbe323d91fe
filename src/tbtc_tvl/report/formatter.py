"""Rich console summary of a run."""

from __future__ import annotations

from typing import Sequence

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table

from ..domain import RunReport
from ..pipeline.extraction import ExtractionOutcome, OutcomeStatus
from ..units import format_units

_STATUS_ORDER = {
    OutcomeStatus.SUCCEEDED: 0,
    OutcomeStatus.NOT_IMPLEMENTED: 1,
    OutcomeStatus.SKIPPED: 2,
    OutcomeStatus.FAILED: 3,
    OutcomeStatus.PENDING: 4,
}

_STATUS_LABEL = {
    OutcomeStatus.SUCCEEDED: "[green]✓ ok[/]",
    OutcomeStatus.NOT_IMPLEMENTED: "[dim]not implemented[/]",
    OutcomeStatus.SKIPPED: "[yellow]skipped[/]",
    OutcomeStatus.FAILED: "[red]✗ failed[/]",
    OutcomeStatus.PENDING: "[dim]pending[/]",
}


def sort_outcomes(outcomes: Sequence[ExtractionOutcome]) -> list[ExtractionOutcome]:
    """Successful rows first by amount (largest first), then not implemented, skipped, failed."""

    def key(outcome: ExtractionOutcome) -> tuple[int, int]:
        amount = outcome.measurement.amount if outcome.measurement is not None else 0
        return _STATUS_ORDER[outcome.status], -amount

    return sorted(outcomes, key=key)


def _format_tbtc(amount: int) -> str:
    whole, _, fraction = format_units(amount).partition(".")
    return f"{int(whole):,}.{(fraction + '0000')[:4]}"


def build_summary(
    outcomes: Sequence[ExtractionOutcome], report: RunReport | None = None
) -> Group:
    table = Table(expand=True, show_lines=False)
    table.add_column("Protocol", style="cyan", no_wrap=True)
    table.add_column("Chain")
    table.add_column("Category", style="dim")
    table.add_column("TVL (tBTC)", justify="right", style="green")
    table.add_column("Status")
    table.add_column("Note", style="dim", overflow="fold")

    for outcome in sort_outcomes(outcomes):
        tvl = (
            _format_tbtc(outcome.measurement.amount)
            if outcome.measurement is not None
            else "—"
        )
        table.add_row(
            outcome.entry.protocol,
            outcome.entry.chain,
            outcome.entry.category,
            tvl,
            _STATUS_LABEL[outcome.status],
            outcome.reason or "",
        )

    counts = Table(show_header=False, box=None, padding=(0, 1))
    counts.add_column("Key", style="dim")
    counts.add_column("Value")
    for status in (
        OutcomeStatus.SUCCEEDED,
        OutcomeStatus.FAILED,
        OutcomeStatus.SKIPPED,
        OutcomeStatus.NOT_IMPLEMENTED,
    ):
        counts.add_row(
            status.value.replace("_", " ").title(),
            str(sum(1 for o in outcomes if o.status is status)),
        )

    if report is not None:
        counts.add_row("Total TVL", f"{_format_tbtc(report.summary.total_amount)} tBTC")
        counts.add_row("Success rate", f"{report.summary.success_rate:.1%}")
        if report.validation is not None:
            v = report.validation
            counts.add_row(
                "Validation",
                f"{'[green]passed' if v.passed else '[red]failed'}[/] "
                f"({v.passed_checks}/{v.total_checks}, {v.warning_count} warnings)",
            )

    return Group(
        table,
        Panel(counts, title="[bold]Summary[/]", border_style="green"),
    )


def print_summary(
    outcomes: Sequence[ExtractionOutcome],
    report: RunReport | None = None,
    console: Console | None = None,
) -> None:
    """Print the outcome table and counters to stdout."""
    (console or Console()).print(build_summary(outcomes, report))
