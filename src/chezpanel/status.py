"""Per-file status model combining chezmoi and git signals.

Every managed file is described by three independent axes:

- local change: drift between the home directory and the chezmoi source
- git index / worktree: staged and unstaged changes in the source repo
- ahead / behind: commits not yet pushed / pulled (fleet-wide)

``classify`` turns a raw status mapping (single-character codes, as printed
by ``chezmoi status`` and ``git status --porcelain``) into a FileStatus.
It never rejects input.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Mapping


class LocalChange(Enum):
    NONE = "none"
    ADDED = "added"
    DELETED = "deleted"
    MODIFIED = "modified"
    RENAMED = "renamed"


class IndexState(Enum):
    NONE = "none"
    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"
    OTHER = "other"


class WorktreeState(Enum):
    NONE = "none"
    MODIFIED = "modified"
    DELETED = "deleted"
    UNTRACKED = "untracked"
    OTHER = "other"


LOCAL_CODES = {
    " ": LocalChange.NONE,
    "A": LocalChange.ADDED,
    "D": LocalChange.DELETED,
    "M": LocalChange.MODIFIED,
    "R": LocalChange.RENAMED,
}

INDEX_CODES = {
    " ": IndexState.NONE,
    "A": IndexState.ADDED,
    "M": IndexState.MODIFIED,
    "D": IndexState.DELETED,
}

WORKTREE_CODES = {
    " ": WorktreeState.NONE,
    "M": WorktreeState.MODIFIED,
    "D": WorktreeState.DELETED,
    "?": WorktreeState.UNTRACKED,
}

LOCAL_LABELS = {
    LocalChange.ADDED: "new",
    LocalChange.DELETED: "deleted",
    LocalChange.MODIFIED: "modified",
    LocalChange.RENAMED: "renamed",
}

INDEX_LABELS = {
    IndexState.ADDED: "staged:new",
    IndexState.MODIFIED: "staged:mod",
    IndexState.DELETED: "staged:del",
}

WORKTREE_LABELS = {
    WorktreeState.MODIFIED: "unstaged",
    WorktreeState.DELETED: "unstaged:del",
}


@dataclass(frozen=True)
class FileStatus:
    """Immutable status snapshot of one managed file.

    The raw codes are kept next to the classified states so labels for
    codes outside the known set can still be shown.
    """

    path: str
    local_change: LocalChange = LocalChange.NONE
    index_state: IndexState = IndexState.NONE
    worktree_state: WorktreeState = WorktreeState.NONE
    commits_ahead: int = 0
    commits_behind: int = 0
    local_code: str = " "
    index_code: str = " "
    worktree_code: str = " "

    @property
    def is_clean(self) -> bool:
        return is_clean(self)


def _code(value: Any) -> str:
    """Normalize a raw axis value to a single-character code."""
    if value is None:
        return " "
    text = str(value)
    if not text.strip():
        return " "
    return text.strip()[0]


def _count(value: Any) -> int:
    """Parse a commit count; anything unusable counts as zero."""
    try:
        count = int(value)
    except (TypeError, ValueError):
        return 0
    return max(count, 0)


def classify(raw: Mapping[str, Any]) -> FileStatus:
    """Classify a raw status mapping into a FileStatus.

    Unknown local codes are treated as modifications; unknown index and
    worktree codes map to OTHER. Missing keys take their identity value.
    """
    local_code = _code(raw.get("local_change"))
    index_code = _code(raw.get("git_index"))
    worktree_code = _code(raw.get("git_worktree"))

    return FileStatus(
        path=str(raw.get("path", "")),
        local_change=LOCAL_CODES.get(local_code, LocalChange.MODIFIED),
        index_state=INDEX_CODES.get(index_code, IndexState.OTHER),
        worktree_state=WORKTREE_CODES.get(
            worktree_code, WorktreeState.OTHER
        ),
        commits_ahead=_count(raw.get("commits_ahead")),
        commits_behind=_count(raw.get("commits_behind")),
        local_code=local_code,
        index_code=index_code,
        worktree_code=worktree_code,
    )


def is_clean(status: FileStatus) -> bool:
    """True iff the file has no drift, no git change and no divergence."""
    return (
        status.local_change is LocalChange.NONE
        and status.index_state is IndexState.NONE
        and status.worktree_state is WorktreeState.NONE
        and status.commits_ahead == 0
        and status.commits_behind == 0
    )


def has_local_change(status: FileStatus) -> bool:
    return status.local_change is not LocalChange.NONE


def has_unstaged_change(status: FileStatus) -> bool:
    """True if the worktree holds a change that can be staged.

    Untracked files don't count.
    """
    return status.worktree_state not in (
        WorktreeState.NONE,
        WorktreeState.UNTRACKED,
    )


def has_staged_change(status: FileStatus) -> bool:
    return status.index_state is not IndexState.NONE


def local_badge(status: FileStatus) -> str:
    if status.local_change is LocalChange.NONE:
        return ""
    label = LOCAL_LABELS[status.local_change]
    if status.local_code not in LOCAL_CODES:
        label = status.local_code
    return label


def git_badges(status: FileStatus) -> List[str]:
    badges = []
    if status.index_state is not IndexState.NONE:
        badges.append(
            INDEX_LABELS.get(
                status.index_state, f"staged:{status.index_code}"
            )
        )
    if has_unstaged_change(status):
        badges.append(
            WORKTREE_LABELS.get(
                status.worktree_state, f"unstaged:{status.worktree_code}"
            )
        )
    return badges


def sync_badges(status: FileStatus) -> List[str]:
    badges = []
    if status.commits_ahead > 0:
        badges.append(f"{status.commits_ahead} ahead")
    if status.commits_behind > 0:
        badges.append(f"{status.commits_behind} behind")
    return badges


def badges(status: FileStatus) -> List[str]:
    """All badges for a file in display order."""
    result = []
    local = local_badge(status)
    if local:
        result.append(local)
    result.extend(git_badges(status))
    result.extend(sync_badges(status))
    return result
