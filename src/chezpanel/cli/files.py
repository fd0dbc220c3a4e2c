"""Per-file commands: add, save, restore, stage, untrack."""

import typer

from ..actions import ActionCategory, DiffOrigin
from .helpers import normalize_path, open_diff, open_view, report_notice
from .output import error


def register(app: typer.Typer) -> None:
    """Register file commands with the app."""
    app.command()(add)
    app.command()(save)
    app.command()(restore)
    app.command()(stage)
    app.command()(untrack)


def _act(path: str, origin: DiffOrigin, category: ActionCategory) -> None:
    """Open the diff for path and run one of the actions it offers."""
    view = open_view()
    target = normalize_path(path)
    open_diff(view, target, origin)

    if not view.perform(category):
        offered = ", ".join(a.label for a in view.actions()) or "none"
        error(
            f"Cannot {category.value} {target} in its current state "
            f"(available: {offered})"
        )
        raise typer.Exit(1)
    report_notice(view.notice)


def add(
    path: str = typer.Argument(..., help="File to start managing"),
):
    """Start managing a file with chezmoi.

    Example:
        chezpanel add ~/.bashrc
    """
    view = open_view()
    view.add(path)
    report_notice(view.notice)


def save(
    path: str = typer.Argument(..., help="Managed file to save"),
):
    """Save local changes of a file into the chezmoi source."""
    _act(path, DiffOrigin.LOCAL, ActionCategory.SAVE)


def restore(
    path: str = typer.Argument(..., help="Managed file to restore"),
):
    """Discard local changes by applying the chezmoi source over them."""
    _act(path, DiffOrigin.LOCAL, ActionCategory.RESTORE)


def stage(
    path: str = typer.Argument(..., help="Managed file to stage"),
):
    """Stage the source file's changes in the chezmoi git repository."""
    _act(path, DiffOrigin.VERSION_CONTROL, ActionCategory.STAGE)


def untrack(
    path: str = typer.Argument(..., help="Managed file to forget"),
):
    """Stop managing a file. Only allowed when the file is clean."""
    _act(path, DiffOrigin.LOCAL, ActionCategory.UNTRACK)
