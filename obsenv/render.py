"""
Rendering functions for obsenv output.

This module handles all pretty-printing and table formatting.
Services return BatchResults and mappings, this module makes them
human-readable. Log-line rendering is the default; tables are used with
``--pretty``.
"""

import json
import logging
from typing import Dict, Optional

from rich.table import Table
from rich.console import Console
from rich import box
from rich.markup import escape

from .domain import BatchResult, OperationStatus, RepoOutcome

console = Console(stderr=True)
logger = logging.getLogger("obsenv")

STATUS_STYLE = {
    OperationStatus.SUCCESS: "green",
    OperationStatus.SKIPPED: "yellow",
    OperationStatus.FAILED: "red",
}


def describe_outcome(outcome: RepoOutcome) -> str:
    """One-line text for an outcome, without the repository name."""
    if outcome.status == OperationStatus.FAILED:
        detail = f"{type(outcome.error).__name__}: {outcome.error}"
        return f"{outcome.message} ({detail})" if outcome.message else detail
    if outcome.status == OperationStatus.SKIPPED:
        return outcome.message or "skipped"
    value = outcome.value
    text = str(getattr(value, 'path', value)) if value is not None else ""
    if outcome.message and outcome.message != "cloned":
        return f"{text} ({outcome.message})" if text else outcome.message
    return text


def log_outcome(outcome: RepoOutcome) -> None:
    """Log one outcome at a level matching its status."""
    line = f"{outcome.name}: {describe_outcome(outcome)}"
    if outcome.status == OperationStatus.FAILED:
        logger.error(line)
    elif outcome.status == OperationStatus.SKIPPED:
        logger.warning(line)
    else:
        logger.info(line)


def log_batch(result: BatchResult, only_failures: bool = False) -> None:
    """Log every outcome of a batch (or only its failures)."""
    outcomes = result.failures if only_failures else result.outcomes
    for outcome in outcomes:
        log_outcome(outcome)


def render_batch_table(result: BatchResult, title: Optional[str] = None) -> None:
    """
    Render a batch result as a pretty table.

    Args:
        result: Per-repository outcomes
        title: Optional table title
    """
    if not len(result):
        console.print("[yellow]No repositories.[/yellow]")
        return

    table = Table(
        title=title,
        box=box.ROUNDED,
        show_header=True,
        header_style="bold magenta"
    )
    table.add_column("Repository", style="cyan")
    table.add_column("Status")
    table.add_column("Detail")

    for outcome in result:
        style = STATUS_STYLE[outcome.status]
        table.add_row(
            escape(outcome.name),
            f"[{style}]{outcome.status.value}[/{style}]",
            escape(describe_outcome(outcome)),
        )

    console.print(table)
    print_batch_summary(result)


def print_batch_summary(result: BatchResult) -> None:
    """Print counts for a batch result."""
    summary = result.to_dict()
    parts = [f"[green]{summary['successful']} ok[/green]"]
    if summary['skipped']:
        parts.append(f"[yellow]{summary['skipped']} skipped[/yellow]")
    if summary['failed']:
        parts.append(f"[red]{summary['failed']} failed[/red]")
    console.print(f"{summary['operation']}: " + ", ".join(parts))


def render_versions_table(versions: Dict[str, str], title: Optional[str] = None) -> None:
    """Render a name -> version mapping as a table."""
    if not versions:
        console.print("[yellow]No base versions specified.[/yellow]")
        return

    table = Table(
        title=title,
        box=box.ROUNDED,
        show_header=True,
        header_style="bold magenta"
    )
    table.add_column("Repository", style="cyan")
    table.add_column("Version", style="green")
    for name, version in versions.items():
        table.add_row(escape(name), escape(version))
    console.print(table)


def emit_jsonl(result: BatchResult) -> None:
    """Write one JSON record per outcome plus a summary record to stdout."""
    for outcome in result:
        print(json.dumps(outcome.to_dict(), ensure_ascii=False), flush=True)
    print(json.dumps(result.to_dict(), ensure_ascii=False), flush=True)
