"""Repository-wide commands: commit, push, pull."""

import typer

from ..actions import ActionCategory
from .helpers import open_view, report_notice
from .output import muted


def register(app: typer.Typer) -> None:
    """Register sync commands with the app."""
    app.command()(commit)
    app.command()(push)
    app.command()(pull)


def commit(
    message: str = typer.Option(
        ..., "-m", "--message", help="Commit message"
    ),
):
    """Commit staged changes in the chezmoi source repository.

    Example:
        chezpanel commit -m "update zshrc"
    """
    view = open_view()
    if not view.perform(ActionCategory.COMMIT):
        muted("Nothing staged to commit.")
        return
    if not view.confirm_commit(message):
        view.cancel_commit()
        muted("Empty commit message, nothing committed.")
        raise typer.Exit(1)
    report_notice(view.notice)


def push():
    """Push local commits to the remote."""
    view = open_view()
    if not view.perform(ActionCategory.SYNC_PUSH):
        muted("Nothing to push.")
        return
    report_notice(view.notice)


def pull():
    """Pull remote commits."""
    view = open_view()
    if not view.perform(ActionCategory.SYNC_PULL):
        muted("Already up to date.")
        return
    report_notice(view.notice)
