"""Rich output formatting helpers for the nestsolve CLI."""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from nestsolve.core.candidates import CandidateRecord

console = Console()


def print_selection(selection: Mapping[str, CandidateRecord], warnings: tuple[str, ...]) -> None:
    """Print a successful resolution as a table, followed by any warnings."""
    console.print(
        Panel("[bold green]Resolution successful[/bold green]", title="Candidate Resolution")
    )
    if selection:
        table = Table(show_header=True, header_style="bold")
        table.add_column("Identity", style="bold")
        table.add_column("Version")
        table.add_column("Depth", justify="right")
        table.add_column("Origin", style="dim")
        for identity in sorted(selection):
            record = selection[identity]
            table.add_row(identity, record.version_key, str(record.depth), str(record.origin))
        console.print(table)
    else:
        console.print("[dim]No candidates selected.[/dim]")

    for line in warnings:
        console.print(f"[yellow]warning:[/yellow] {line.strip()}", highlight=False)


def print_failure(title: str, message: str) -> None:
    """Print a failed resolution with its full message."""
    console.print(Panel(f"[bold red]{title}[/bold red]", title="Candidate Resolution"))
    for line in message.splitlines():
        console.print(f"  {line}", highlight=False, markup=False, style="red")


def selection_to_json(
    selection: Mapping[str, CandidateRecord], warnings: tuple[str, ...]
) -> dict[str, Any]:
    """Convert a selection to a JSON-serializable dict."""
    return {
        "success": True,
        "selection": {
            identity: {
                "version": record.version_key,
                "depth": record.depth,
                "origin": str(record.origin),
            }
            for identity, record in sorted(selection.items())
        },
        "warnings": [line.strip() for line in warnings],
    }


def print_json(data: Any) -> None:
    """Print data as formatted JSON to stdout."""
    console.print_json(json.dumps(data, default=str))
