"""Console output helpers shared by the CLI commands."""

from rich.console import Console
from rich.markup import escape

console = Console(highlight=False)
err_console = Console(stderr=True, highlight=False)


def plain(message: str = "") -> None:
    console.print(escape(message))


def success(message: str, prefix: str = "✓") -> None:
    console.print(f"[green]{prefix} {escape(message)}[/green]")


def info(message: str) -> None:
    console.print(f"[cyan]{escape(message)}[/cyan]")


def muted(message: str) -> None:
    console.print(f"[dim]{escape(message)}[/dim]")


def warning(message: str, prefix: str = "⚠") -> None:
    console.print(f"[yellow]{prefix} {escape(message)}[/yellow]")


def error(message: str, prefix: str = "✗") -> None:
    err_console.print(f"[red]{prefix} {escape(message)}[/red]")
