"""
Logging and console output for the script archive.

Uses rich for styled terminal output and as the handler for stdlib logging.
"""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

from .config import LOG_LEVEL


console = Console()

_configured = False


def setup_logging(level: Optional[str] = None) -> None:
    """Route stdlib logging through rich. Safe to call more than once."""
    global _configured
    if _configured:
        return

    logging.basicConfig(
        level=(level or LOG_LEVEL).upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
    )
    _configured = True


def create_progress() -> Progress:
    """Create a progress bar for bulk imports."""
    return Progress(
        SpinnerColumn(),
        TextColumn("[bold blue]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
        console=console,
    )


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"  [green]✓[/green] {message}")


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"  [red]✗[/red] {message}")


def print_scripts_table(scripts: list[dict], title: str = "Scripts") -> None:
    """Print serialized snippets as a table."""
    table = Table(title=title)
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Title")
    table.add_column("Characters")
    table.add_column("Lines", justify="right")
    table.add_column("Created", style="dim")

    for script in scripts:
        table.add_row(
            script["id"],
            script["title"] or "[dim]-[/dim]",
            ", ".join(script["characters"]),
            str(len(script["lines"])),
            script["createdAt"],
        )

    console.print(table)


def print_import_summary(total: int, imported: int, failed: int, errors: list[str]) -> None:
    """Print final summary after an import completes."""
    console.print()

    table = Table(title="Import Results", show_header=False)
    table.add_column("Metric", style="dim")
    table.add_column("Value", justify="right")

    table.add_row("Records Read", str(total))
    table.add_row("Inserted", f"[green]{imported}[/green]")
    table.add_row("Failed", f"[red]{failed}[/red]" if failed else "[dim]0[/dim]")

    console.print(table)

    if errors:
        console.print()
        console.print("[bold red]Errors:[/bold red]")
        for error in errors[:10]:
            console.print(f"  [dim]{error}[/dim]")
        if len(errors) > 10:
            console.print(f"  [dim]... and {len(errors) - 10} more[/dim]")

