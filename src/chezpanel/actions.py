"""Derive the legal actions for a file or for the whole snapshot.

Actions are always returned in the same order: local actions first
(save/restore or stage), then commit, push, pull and finally untrack.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional

from .status import (
    FileStatus,
    has_staged_change,
    has_unstaged_change,
    is_clean,
)


class DiffOrigin(Enum):
    LOCAL = "local"
    VERSION_CONTROL = "git"


class ActionCategory(Enum):
    SAVE = "save"
    RESTORE = "restore"
    STAGE = "stage"
    COMMIT = "commit"
    SYNC_PUSH = "sync_push"
    SYNC_PULL = "sync_pull"
    UNTRACK = "untrack"


@dataclass(frozen=True)
class Action:
    """One button offered to the operator."""

    label: str
    category: ActionCategory

    @property
    def handler_key(self) -> str:
        return self.category.value


SAVE = Action("save", ActionCategory.SAVE)
RESTORE = Action("restore", ActionCategory.RESTORE)
STAGE = Action("stage", ActionCategory.STAGE)
COMMIT = Action("commit", ActionCategory.COMMIT)
SYNC_PUSH = Action("sync →", ActionCategory.SYNC_PUSH)
SYNC_PULL = Action("← sync", ActionCategory.SYNC_PULL)
UNTRACK = Action("untrack", ActionCategory.UNTRACK)

LIST_COMMIT = Action("Commit", ActionCategory.COMMIT)
LIST_SYNC_PUSH = Action("Sync →", ActionCategory.SYNC_PUSH)
LIST_SYNC_PULL = Action("← Sync", ActionCategory.SYNC_PULL)


def derive_diff_actions(
    origin: DiffOrigin, status: Optional[FileStatus]
) -> List[Action]:
    """Actions offered while viewing a diff.

    Args:
        origin: Which diff is being viewed.
        status: The current status for the diff target, looked up from the
            latest snapshot. None if the target has disappeared.
    """
    actions: List[Action] = []

    if origin is DiffOrigin.LOCAL:
        actions.extend([SAVE, RESTORE])
    elif status is not None and has_unstaged_change(status):
        actions.append(STAGE)

    if status is None:
        return actions

    if has_staged_change(status):
        actions.append(COMMIT)
    if status.commits_ahead > 0:
        actions.append(SYNC_PUSH)
    if status.commits_behind > 0:
        actions.append(SYNC_PULL)
    if is_clean(status):
        actions.append(UNTRACK)

    return actions


def derive_list_actions(snapshot: Iterable[FileStatus]) -> List[Action]:
    """Fleet-wide actions: each is offered if any file qualifies."""
    files = list(snapshot)
    actions: List[Action] = []

    if any(has_staged_change(f) for f in files):
        actions.append(LIST_COMMIT)
    if any(f.commits_ahead > 0 for f in files):
        actions.append(LIST_SYNC_PUSH)
    if any(f.commits_behind > 0 for f in files):
        actions.append(LIST_SYNC_PULL)

    return actions
