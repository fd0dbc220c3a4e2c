"""Interactive file browser driving the status view from the terminal."""

from typing import List

import typer

from ..actions import ActionCategory, DiffOrigin
from ..render import DiffLayout
from ..status import FileStatus, has_local_change, has_unstaged_change
from ..view import DiffState, FilterMode, StatusView
from .helpers import format_row, open_view
from .output import error, muted, plain, success

FILTER_KEYS = {
    "a": FilterMode.ALL,
    "m": FilterMode.MODIFIED,
    "c": FilterMode.CLEAN,
}


def register(app: typer.Typer) -> None:
    """Register the ui command with the app."""
    app.command()(ui)


def ui():
    """Browse managed files and act on them interactively.

    In the list: a number picks a file, a/m/c switch the filter, r
    reloads, n adds a new file, q quits. Actions are chosen by the
    key shown in brackets next to them.
    """
    view = open_view()
    while True:
        if isinstance(view.state, DiffState):
            if not _diff_screen(view):
                break
        elif not _list_screen(view):
            break


def _show_notice(view: StatusView) -> None:
    notice = view.notice
    if notice is None:
        return
    if notice.ok:
        success(notice.text)
    else:
        error(notice.text.strip())
    view.dismiss_notice()


def _commit_dialog(view: StatusView) -> None:
    message = typer.prompt(
        "Commit message (empty to cancel)", default="", show_default=False
    )
    if not view.confirm_commit(message):
        view.cancel_commit()
        muted("Commit cancelled.")


def _run(view: StatusView, category: ActionCategory) -> None:
    if view.perform(category) and view.commit_dialog_open:
        _commit_dialog(view)


def _list_screen(view: StatusView) -> bool:
    plain("")
    counts = view.counts()
    mode = view.state.filter_mode
    plain(
        f"Files [{mode.value}]  all {counts['all']}  "
        f"modified {counts['modified']}  clean {counts['clean']}"
    )
    _show_notice(view)
    if view.error:
        error(view.error)

    files: List[FileStatus] = view.visible_files()
    for i, f in enumerate(files, 1):
        plain(f"  {i:>3}. {format_row(f)}")
    if not view.snapshot and not view.error:
        muted("No managed files found.")

    offered = view.actions()
    actions = {a.handler_key: a.category for a in offered}
    if offered:
        plain("Actions: " + _describe(offered))

    choice = typer.prompt("Select", default="q").strip()
    key = choice.lower()
    if key == "q":
        return False
    if key == "r":
        view.load()
    elif key in FILTER_KEYS:
        view.set_filter(FILTER_KEYS[key])
    elif key == "n":
        view.add(typer.prompt("Path to add (e.g. ~/.bashrc)"))
    elif key in actions:
        _run(view, actions[key])
    elif choice.isdigit() and 1 <= int(choice) <= len(files):
        _pick_diff(view, files[int(choice) - 1])
    else:
        muted(f"Unknown choice: {choice}")
    return True


def _pick_diff(view: StatusView, status: FileStatus) -> None:
    origins = []
    if has_local_change(status):
        origins.append(DiffOrigin.LOCAL)
    if has_unstaged_change(status):
        origins.append(DiffOrigin.VERSION_CONTROL)
    origin = origins[0] if origins else DiffOrigin.LOCAL
    if len(origins) > 1:
        answer = typer.prompt("Show (l)ocal or (g)it changes?", default="l")
        if answer.strip().lower().startswith("g"):
            origin = DiffOrigin.VERSION_CONTROL
    view.select_diff(status.path, origin)


def _diff_screen(view: StatusView) -> bool:
    state = view.state
    plain("")
    plain(
        f"{state.target} ({state.origin.value} changes, {view.layout.value})"
    )
    typer.echo(view.rendered(), nl=False)
    _show_notice(view)

    offered = view.actions()
    actions = {a.handler_key: a.category for a in offered}
    names = [_describe(offered)] if offered else []
    plain("Actions: " + ", ".join(names + ["layout", "back", "quit"]))

    choice = typer.prompt("Action", default="back").strip().lower()
    if choice in ("q", "quit"):
        return False
    if choice in ("b", "back"):
        view.back()
    elif choice == "layout":
        view.set_layout(
            DiffLayout.UNIFIED
            if view.layout is DiffLayout.SIDE_BY_SIDE
            else DiffLayout.SIDE_BY_SIDE
        )
    elif choice in actions:
        _run(view, actions[choice])
    else:
        muted(f"Unknown action: {choice}")
    return True


def _describe(actions) -> str:
    """Action labels with the key to type for each."""
    return ", ".join(f"{a.label} [{a.handler_key}]" for a in actions)
