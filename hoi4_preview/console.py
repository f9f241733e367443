"""Shared Rich console instance and renderers for CLI output."""

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from .loader import LoadWarning
from .loader import ProgressEvent

console = Console()

_PHASE_STYLES = {
    "start": "cyan",
    "reuse": "dim",
    "loaded": "green",
    "failed": "red",
    "cancelled": "yellow",
}


def print_warnings(warnings: list[LoadWarning]) -> None:
    if not warnings:
        return
    console.print(f"\n[bold yellow]Warnings ({len(warnings)}):[/bold yellow]")
    for warning in warnings:
        line = Text("  • ")
        if warning.source:
            line.append(f"{warning.source}: ", style="dim")
        line.append(warning.message)
        console.print(line)


def dependency_table(dependencies: list[str], tokens: dict[str, str] | None = None) -> Table:
    table = Table(title="Dependencies")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Path", style="cyan")
    if tokens is not None:
        table.add_column("Token", style="dim")
    for index, dependency in enumerate(dependencies, 1):
        row = [str(index), dependency]
        if tokens is not None:
            row.append(tokens.get(dependency, ""))
        table.add_row(*row)
    return table


def print_progress(event: ProgressEvent) -> None:
    """Progress handler printing one dim line per event."""
    style = _PHASE_STYLES.get(event.phase, "dim")
    detail = f" ({escape(event.detail)})" if event.detail else ""
    console.print(f"[{style}]{event.phase:>9}[/{style}] [dim]{escape(event.loader)}{detail}[/dim]")


__all__ = ["console", "dependency_table", "print_progress", "print_warnings"]
