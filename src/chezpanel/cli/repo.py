"""Inspection commands: managed, data, cat, git."""

from typing import List

import typer

from ..panels import QUICK_COMMANDS, load_managed, load_template_data, run_git
from ..runner import RunnerError
from .helpers import get_config, get_runner, normalize_path
from .output import error, muted, plain


def register(app: typer.Typer) -> None:
    """Register inspection commands with the app."""
    app.command()(managed)
    app.command()(data)
    app.command()(cat)
    app.command(
        context_settings={
            "allow_extra_args": True,
            "ignore_unknown_options": True,
        }
    )(git)


def managed(
    query: str = typer.Option(
        "", "--filter", "-f", help="Only show paths containing this text"
    ),
):
    """List every path managed by chezmoi."""
    runner = get_runner(get_config())
    try:
        files = load_managed(runner, query)
    except RunnerError as e:
        error(str(e))
        raise typer.Exit(1)

    plain(f"Managed files ({len(files)}):")
    for f in files:
        plain(f"  {f}")


def data():
    """Show chezmoi's template data."""
    runner = get_runner(get_config())
    try:
        plain(load_template_data(runner))
    except RunnerError as e:
        error(str(e))
        raise typer.Exit(1)


def cat(
    path: str = typer.Argument(..., help="Managed file to show"),
):
    """Show the contents chezmoi would write for a managed file."""
    runner = get_runner(get_config())
    try:
        out = runner.cat(normalize_path(path))
    except RunnerError as e:
        error(str(e))
        raise typer.Exit(1)
    if not out.success:
        error(out.stderr.strip() or f"Could not show {path}")
        raise typer.Exit(1)
    typer.echo(out.stdout, nl=False)


def git(
    args: List[str] = typer.Argument(
        None, help="Arguments passed to git in the source directory"
    ),
):
    """Run git in the chezmoi source directory.

    Examples:
        chezpanel git status
        chezpanel git log --oneline -20
    """
    if not args:
        plain("Quick commands:")
        for label, _ in QUICK_COMMANDS:
            muted(f"  chezpanel git {label}")
        return

    out = run_git(get_runner(get_config()), args)
    if out.stdout:
        typer.echo(out.stdout, nl=not out.stdout.endswith("\n"))
    if out.stderr:
        typer.echo(out.stderr, err=True, nl=not out.stderr.endswith("\n"))
    if not out.stdout and not out.stderr:
        muted("(no output)")
    if not out.success:
        raise typer.Exit(1)
