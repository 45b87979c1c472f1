"""Rich-based terminal display of coverage results.

All functions share the module-level ``_console`` so output formatting is
consistent within a session.
"""

from __future__ import annotations

from typing import Iterable

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from src.shared.models.coverage import (
    CoverageStatistics,
    ExcludedRequirement,
    Inconsistency,
    ValidationIssue,
)

# ---------------------------------------------------------------------------
# Module-level Console singleton
# ---------------------------------------------------------------------------

_console = Console()


# ---------------------------------------------------------------------------
# Display functions
# ---------------------------------------------------------------------------


def _percent(ratio: float) -> str:
    return f"{ratio * 100:.2f}%"


def print_statistics(stats: CoverageStatistics) -> None:
    """Print the final and derived coverage counts as two tables."""
    final = Table(title="Requirement Coverage", show_lines=False)
    final.add_column("Measure", style="bold")
    final.add_column("Count", justify="right")
    final.add_column("Percent", justify="right")
    final.add_row("Total requirements", str(stats.total_count), "")
    final.add_row("To verify", str(stats.final_to_verify), "")
    final.add_row(
        "Verified", str(stats.final_verified), _percent(stats.final_verified_ratio()),
        style="green",
    )
    final.add_row(
        "Partially verified", str(stats.final_partial), _percent(stats.final_partial_ratio()),
        style="yellow",
    )
    final.add_row(
        "Unverified", str(stats.final_unverified), _percent(stats.final_unverified_ratio()),
        style="red",
    )
    _console.print(final)

    if stats.derived_total:
        derived = Table(title="Derived Requirements")
        derived.add_column("Measure", style="bold")
        derived.add_column("Count", justify="right")
        derived.add_row("Derived", str(stats.derived_total))
        derived.add_row(
            "Verified", f"{stats.derived_verified} ({_percent(stats.derived_verified_ratio())})"
        )
        derived.add_row("Not verified", str(stats.derived_unverified))
        _console.print(derived)


def print_validation_issues(
    errors: Iterable[ValidationIssue],
    warnings: Iterable[ValidationIssue] = (),
    verbose: bool = False,
) -> None:
    """Print requirement table rule violations; warnings only when *verbose*."""
    rows = [("Error", issue) for issue in errors]
    if verbose:
        rows.extend(("Warning", issue) for issue in warnings)
    if not rows:
        return

    table = Table(title="Requirement Table Validation")
    table.add_column("Severity")
    table.add_column("Requirement", style="cyan")
    table.add_column("Rule")
    table.add_column("Message")
    for severity, issue in rows:
        style = "red" if severity == "Error" else "yellow"
        table.add_row(
            Text(severity, style=style), issue.requirement_id, issue.rule.value, issue.message
        )
    _console.print(table)


def print_inconsistencies(
    errors: Iterable[Inconsistency],
    warnings: Iterable[Inconsistency] = (),
    verbose: bool = False,
) -> None:
    """Print mismatches between the table and the logs."""
    rows = [("Error", item) for item in errors]
    if verbose:
        rows.extend(("Warning", item) for item in warnings)
    if not rows:
        return

    table = Table(title="Inconsistencies")
    table.add_column("Severity")
    table.add_column("Requirement", style="cyan")
    table.add_column("Classification")
    for severity, item in rows:
        style = "red" if severity == "Error" else "yellow"
        table.add_row(Text(severity, style=style), item.requirement_id, item.classification)
    _console.print(table)


def print_excluded(excluded: Iterable[ExcludedRequirement]) -> None:
    """Print checkpoints that were only hit in non-passing test cases."""
    items = list(excluded)
    if not items:
        return
    table = Table(title="Excluded Requirements")
    table.add_column("Requirement", style="cyan")
    table.add_column("Test case")
    table.add_column("Result")
    table.add_column("Timestamp")
    for item in items:
        table.add_row(item.requirement_id, item.test_case, item.test_result, item.timestamp)
    _console.print(table)


def print_error_panel(error: str | Exception) -> None:
    """Print an error message in a red Rich panel."""
    _console.print(
        Panel(
            Text(str(error), style="bold white"),
            title="[bold red]Error[/bold red]",
            border_style="red",
            expand=False,
        )
    )
