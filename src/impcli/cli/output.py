"""Rich terminal output for imp commands.

All user-facing status lines go through these helpers so that error,
warning, and info messages share one format. User-supplied text is
escaped before it reaches Rich markup.
"""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape

console = Console(soft_wrap=True, highlight=False, emoji=False)
err_console = Console(stderr=True, soft_wrap=True, highlight=False, emoji=False)


def print_error(message: str) -> None:
    """Print ``ERROR: <message>`` to stdout."""
    console.print(f"[bold red]ERROR:[/bold red] {escape(message)}")


def print_warning(message: str) -> None:
    console.print(f"[yellow]Warning:[/yellow] {escape(message)}")


def print_info(message: str) -> None:
    console.print(f"[cyan]Info:[/cyan] {escape(message)}")


def print_success(headline: str, *details: str) -> None:
    """Print a success headline followed by indented detail lines."""
    console.print(f"[green][bold]{escape(headline)}[/bold][/green]")
    for line in details:
        console.print(f"   {escape(line)}")


def print_debug(message: str) -> None:
    """Print a ``[DEBUG]`` trace line to stderr."""
    err_console.print(f"[dim]\\[DEBUG] {escape(message)}[/dim]")
