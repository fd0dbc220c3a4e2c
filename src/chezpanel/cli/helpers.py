"""Shared helper functions for CLI commands."""

import logging
from pathlib import Path
from typing import Optional

import typer

from ..actions import DiffOrigin
from ..config import Config, find_config_path
from ..render import DiffLayout, RichDiffRenderer
from ..runner import ChezmoiRunner, CommandRunner
from ..status import FileStatus, badges
from ..view import FilterMode, Notice, StatusView
from .output import error, success

logger = logging.getLogger(__name__)


def get_config(home: Optional[Path] = None) -> Config:
    """Load config from ~/.chezpanel.yaml or ~/.chezpanel.yml."""
    return Config(find_config_path(home), home=home)


def get_runner(config: Config) -> CommandRunner:
    """Create the chezmoi runner described by config."""
    return ChezmoiRunner(
        binary=config.get("chezmoi.binary", "chezmoi"),
        source_dir=config.get("chezmoi.source_dir"),
        timeout=config.get_timeout(),
    )


def open_view(config: Optional[Config] = None) -> StatusView:
    """Build a StatusView from config and load the first snapshot.

    Raises typer.Exit(1) if the file states cannot be listed.
    """
    config = config or get_config()
    view = StatusView(
        get_runner(config),
        renderer=RichDiffRenderer(width=config.get("view.width")),
        filter_mode=FilterMode(config.get_filter_mode()),
        layout=DiffLayout(config.get_layout()),
    )
    if not view.load():
        error(f"Could not load file states: {view.error}")
        raise typer.Exit(1)
    return view


def open_diff(view: StatusView, path: str, origin: DiffOrigin) -> None:
    """Open the diff view for path, exiting if it isn't managed."""
    if view.find(path) is None:
        error(f"{path} is not managed by chezmoi")
        raise typer.Exit(1)
    view.select_diff(path, origin)


def normalize_path(path: str, home: Optional[Path] = None) -> str:
    """Turn a user-supplied path into a home-relative managed path."""
    home = home or Path.home()
    expanded = Path(path).expanduser()
    if expanded.is_absolute():
        try:
            return str(expanded.relative_to(home))
        except ValueError:
            return str(expanded)
    return path


def report_notice(notice: Optional[Notice]) -> None:
    """Print the result of an action, exiting 1 if it failed."""
    if notice is None:
        return
    if notice.ok:
        success(notice.text)
    else:
        error(notice.text.strip())
        raise typer.Exit(1)


def format_row(status: FileStatus) -> str:
    labels = badges(status)
    if not labels:
        return status.path
    return f"{status.path}  [{', '.join(labels)}]"
