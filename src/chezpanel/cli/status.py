"""Status and diff commands for chezpanel CLI."""

from typing import Optional

import typer

from ..actions import DiffOrigin
from ..panels import staged_diff
from ..render import DiffLayout
from ..runner import RunnerError
from ..view import NO_DIFF, FilterMode
from .helpers import format_row, normalize_path, open_diff, open_view
from .output import error, muted, plain


def register(app: typer.Typer) -> None:
    """Register the status and diff commands with the app."""
    app.command()(status)
    app.command()(diff)


def status(
    filter_mode: Optional[FilterMode] = typer.Option(
        None,
        "--filter",
        "-f",
        help="Which files to list (default from config: modified).",
        case_sensitive=False,
    ),
):
    """Show managed files with their local, git and sync status.

    Examples:
        chezpanel status
        chezpanel status --filter all
    """
    view = open_view()
    if filter_mode is not None:
        view.set_filter(filter_mode)

    counts = view.counts()
    plain(
        f"Files: {counts['all']} managed, {counts['modified']} modified, "
        f"{counts['clean']} clean"
    )

    files = view.visible_files()
    if not view.snapshot:
        muted("No managed files found.")
    elif not files:
        muted("Nothing to show for this filter.")
    for f in files:
        plain(f"  {format_row(f)}")

    actions = view.actions()
    if actions:
        plain("")
        plain("Available: " + ", ".join(a.label for a in actions))


def diff(
    path: str = typer.Argument(..., help="Managed file to diff"),
    git: bool = typer.Option(
        False, "--git", "-g", help="Show the git diff of the source file"
    ),
    unified: bool = typer.Option(
        False, "--unified", "-u", help="Unified instead of side-by-side"
    ),
    staged: bool = typer.Option(
        False, "--staged", "-s", help="Show changes already staged in git"
    ),
):
    """Show what changed in a managed file.

    Examples:
        chezpanel diff .bashrc
        chezpanel diff .bashrc --git --unified
        chezpanel diff .bashrc --staged
    """
    view = open_view()
    if staged:
        _staged(view, normalize_path(path), unified)
        return
    origin = DiffOrigin.VERSION_CONTROL if git else DiffOrigin.LOCAL
    open_diff(view, normalize_path(path), origin)
    if unified:
        view.set_layout(DiffLayout.UNIFIED)

    typer.echo(view.rendered(), nl=False)
    actions = view.actions()
    if actions:
        plain("Available: " + ", ".join(a.label for a in actions))


def _staged(view, path: str, unified: bool) -> None:
    if view.find(path) is None:
        error(f"{path} is not managed by chezmoi")
        raise typer.Exit(1)
    try:
        text = staged_diff(view.runner, path) or NO_DIFF
    except RunnerError as e:
        error(str(e))
        raise typer.Exit(1)
    layout = DiffLayout.UNIFIED if unified else view.layout
    typer.echo(view.renderer.render(text, layout), nl=False)
