"""The status view: a list of managed files and a diff of one of them.

StatusView owns the current snapshot and exactly one live view state,
either a ListState or a DiffState. Every action that changes something
outside the process follows the same sequence: call the runner, record a
notice from the result, then reload the whole snapshot.

The diff target is stored by path only. The FileStatus behind it is looked
up in the latest snapshot whenever it is needed, so a target that vanished
after a reload sends the view back to the list instead of acting on stale
data.
"""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple, Union

from .actions import (
    Action,
    ActionCategory,
    DiffOrigin,
    derive_diff_actions,
    derive_list_actions,
)
from .render import DiffLayout, DiffRenderer, RichDiffRenderer
from .runner import CommandOutput, CommandRunner, RunnerError
from .status import FileStatus, classify, is_clean

logger = logging.getLogger(__name__)

NO_DIFF = "(no diff)"


class FilterMode(Enum):
    ALL = "all"
    MODIFIED = "modified"
    CLEAN = "clean"


@dataclass(frozen=True)
class Notice:
    text: str
    ok: bool = True


@dataclass(frozen=True)
class ListState:
    filter_mode: FilterMode = FilterMode.MODIFIED
    notice: Optional[Notice] = None
    commit_dialog_open: bool = False


@dataclass(frozen=True)
class DiffState:
    target: str
    origin: DiffOrigin
    content: str
    # The list to go back to; notices raised while in the diff land here.
    previous: ListState = field(default_factory=ListState)
    commit_dialog_open: bool = False


ViewState = Union[ListState, DiffState]


class StatusView:
    """State machine behind the Files panel.

    Operations are serialized: while one runner call sequence is in
    flight, any other action or refresh is refused.
    """

    def __init__(
        self,
        runner: CommandRunner,
        renderer: Optional[DiffRenderer] = None,
        filter_mode: FilterMode = FilterMode.MODIFIED,
        layout: DiffLayout = DiffLayout.SIDE_BY_SIDE,
    ):
        self.runner = runner
        self.renderer = renderer or RichDiffRenderer()
        self.layout = layout
        self.state: ViewState = ListState(filter_mode=filter_mode)
        self.snapshot: Tuple[FileStatus, ...] = ()
        self.error: Optional[str] = None
        self.loading = False
        self._in_flight: Optional[str] = None

    @property
    def busy(self) -> bool:
        return self._in_flight is not None

    def _acquire(self, name: str) -> bool:
        if self._in_flight is not None:
            logger.warning(
                f"Ignoring {name}: {self._in_flight} is still running"
            )
            return False
        self._in_flight = name
        return True

    def _release(self):
        self._in_flight = None

    # -- snapshot ---------------------------------------------------------

    def load(self) -> bool:
        """Rebuild the snapshot from the runner.

        Returns True if the listing succeeded, False if it failed or was
        refused because another operation is in flight.
        """
        if not self._acquire("reload"):
            return False
        try:
            self._reload()
        finally:
            self._release()
        return self.error is None

    def _reload(self):
        self.loading = True
        self.error = None
        try:
            raw = self.runner.list_file_statuses()
            self.snapshot = tuple(classify(item) for item in raw)
        except RunnerError as e:
            logger.warning(f"Could not list file states: {e}")
            self.snapshot = ()
            self.error = str(e)
        finally:
            self.loading = False
        self._drop_stale_target()

    def _drop_stale_target(self):
        state = self.state
        if isinstance(state, DiffState) and self.find(state.target) is None:
            logger.info(
                f"{state.target} is no longer in the snapshot, "
                "returning to the list"
            )
            self.state = state.previous

    def find(self, path: str) -> Optional[FileStatus]:
        """Look up a file in the latest snapshot by path."""
        for status in self.snapshot:
            if status.path == path:
                return status
        return None

    def current_file(self) -> Optional[FileStatus]:
        """The live status of the diff target, or None."""
        if isinstance(self.state, DiffState):
            return self.find(self.state.target)
        return None

    # -- list state -------------------------------------------------------

    def _list_state(self) -> ListState:
        if isinstance(self.state, DiffState):
            return self.state.previous
        return self.state

    def _set_list_state(self, list_state: ListState):
        if isinstance(self.state, DiffState):
            self.state = replace(self.state, previous=list_state)
        else:
            self.state = list_state

    @property
    def notice(self) -> Optional[Notice]:
        return self._list_state().notice

    def notify(self, text: str, ok: bool = True):
        self._set_list_state(
            replace(self._list_state(), notice=Notice(text, ok))
        )

    def dismiss_notice(self):
        self._set_list_state(replace(self._list_state(), notice=None))

    def set_filter(self, mode: FilterMode):
        self._set_list_state(replace(self._list_state(), filter_mode=mode))

    def visible_files(self) -> List[FileStatus]:
        mode = self._list_state().filter_mode
        if mode is FilterMode.ALL:
            return list(self.snapshot)
        if mode is FilterMode.MODIFIED:
            return [f for f in self.snapshot if not is_clean(f)]
        return [f for f in self.snapshot if is_clean(f)]

    def counts(self) -> Dict[str, int]:
        clean = sum(1 for f in self.snapshot if is_clean(f))
        return {
            "all": len(self.snapshot),
            "modified": len(self.snapshot) - clean,
            "clean": clean,
        }

    # -- diff state -------------------------------------------------------

    def select_diff(
        self, path: str, origin: DiffOrigin
    ) -> Optional[DiffState]:
        """Fetch a diff for path and switch to the diff view.

        Returns None, leaving the state alone, if path is not in the
        snapshot or another operation is in flight.
        """
        if self.find(path) is None:
            logger.info(f"{path} is not in the snapshot, no diff to show")
            return None
        if not self._acquire(f"diff of {path}"):
            return None
        try:
            content = self._fetch_diff(path, origin)
        finally:
            self._release()

        previous = replace(self._list_state(), commit_dialog_open=False)
        self.state = DiffState(
            target=path, origin=origin, content=content, previous=previous
        )
        return self.state

    def _fetch_diff(self, path: str, origin: DiffOrigin) -> str:
        try:
            if origin is DiffOrigin.LOCAL:
                out = self.runner.diff(path)
            else:
                source = self.runner.resolve_source_path(path)
                if not source.success:
                    return source.stderr or NO_DIFF
                out = self.runner.diff_version_control(source.stdout.strip())
        except RunnerError as e:
            logger.warning(f"Could not get diff for {path}: {e}")
            return NO_DIFF
        return out.stdout or out.stderr or NO_DIFF

    def back(self) -> ViewState:
        if isinstance(self.state, DiffState):
            self.state = self.state.previous
        return self.state

    def set_layout(self, layout: DiffLayout):
        self.layout = layout

    def rendered(self) -> str:
        """Render the open diff with the current layout."""
        if not isinstance(self.state, DiffState):
            return ""
        return self.renderer.render(self.state.content, self.layout)

    # -- actions ----------------------------------------------------------

    def actions(self) -> List[Action]:
        """Actions available in the current state, in display order."""
        if isinstance(self.state, DiffState):
            return derive_diff_actions(self.state.origin, self.current_file())
        return derive_list_actions(self.snapshot)

    def perform(self, category: ActionCategory) -> bool:
        """Run an action if it is currently offered."""
        if not self._context_ok():
            return False
        if category not in {a.category for a in self.actions()}:
            logger.info(f"Action {category.value} is not available here")
            return False

        handlers: Dict[ActionCategory, Callable[[], bool]] = {
            ActionCategory.SAVE: self.save,
            ActionCategory.RESTORE: self.restore,
            ActionCategory.STAGE: self.stage,
            ActionCategory.COMMIT: self.open_commit_dialog,
            ActionCategory.SYNC_PUSH: self.sync_push,
            ActionCategory.SYNC_PULL: self.sync_pull,
            ActionCategory.UNTRACK: self.untrack,
        }
        return handlers[category]()

    def _run_action(
        self,
        call: Callable[[], CommandOutput],
        success_text: str,
        leave_diff: bool = False,
    ) -> Optional[CommandOutput]:
        """Call the runner, record a notice, then reload.

        Returns the command output, or None if the action was refused.
        """
        if not self._acquire(success_text):
            return None
        try:
            try:
                out = call()
            except RunnerError as e:
                out = CommandOutput(stderr=str(e), success=False)

            if out.success:
                self.notify(success_text, True)
            else:
                self.notify(out.stderr or f"{success_text}: failed", False)

            if leave_diff:
                self.back()
            self._reload()
        finally:
            self._release()
        return out

    def _context_ok(self) -> bool:
        """False if a diff is open whose target has disappeared.

        In that case the view goes back to the list.
        """
        state = self.state
        if isinstance(state, DiffState) and self.find(state.target) is None:
            logger.info(
                f"{state.target} is no longer managed, nothing to do"
            )
            self.state = state.previous
            return False
        return True

    def _diff_target(self) -> Optional[str]:
        if not isinstance(self.state, DiffState):
            logger.info("No diff is open")
            return None
        if not self._context_ok():
            return None
        return self.state.target

    def save(self) -> bool:
        """Copy the home-directory version into the source state."""
        path = self._diff_target()
        if path is None:
            return False
        out = self._run_action(lambda: self.runner.add(path), f"Added {path}")
        return out is not None

    def restore(self) -> bool:
        """Apply the source state over the home-directory version."""
        path = self._diff_target()
        if path is None:
            return False
        out = self._run_action(
            lambda: self.runner.apply(path), "Applied", leave_diff=True
        )
        return out is not None

    def stage(self) -> bool:
        path = self._diff_target()
        if path is None:
            return False

        def call() -> CommandOutput:
            source = self.runner.resolve_source_path(path)
            if not source.success:
                return source
            return self.runner.run_version_control(
                ["add", source.stdout.strip()]
            )

        return self._run_action(call, f"Staged {path}") is not None

    def untrack(self) -> bool:
        path = self._diff_target()
        if path is None:
            return False
        status = self.find(path)
        if not is_clean(status):
            logger.warning(f"Refusing to untrack {path}: it has changes")
            return False
        out = self._run_action(
            lambda: self.runner.forget(path), f"Removed {path} from chezmoi"
        )
        return out is not None

    def sync_push(self) -> bool:
        if not self._context_ok():
            return False
        out = self._run_action(
            lambda: self.runner.run_version_control(["push"]), "Pushed"
        )
        return out is not None

    def sync_pull(self) -> bool:
        if not self._context_ok():
            return False
        out = self._run_action(
            lambda: self.runner.run_version_control(["pull"]), "Pulled"
        )
        return out is not None

    def add(self, path: str) -> bool:
        """Start managing a new file."""
        path = path.strip()
        if not path:
            return False
        out = self._run_action(lambda: self.runner.add(path), f"Added {path}")
        return out is not None

    # -- commit dialog ----------------------------------------------------

    @property
    def commit_dialog_open(self) -> bool:
        return self.state.commit_dialog_open

    def open_commit_dialog(self) -> bool:
        if not self._context_ok():
            return False
        self.state = replace(self.state, commit_dialog_open=True)
        return True

    def cancel_commit(self):
        self.state = replace(self.state, commit_dialog_open=False)

    def confirm_commit(self, message: str) -> bool:
        """Commit staged changes with message.

        A blank message leaves the dialog open and does nothing.
        """
        message = message.strip()
        if not self.commit_dialog_open or not message:
            return False
        self.cancel_commit()
        out = self._run_action(
            lambda: self.runner.run_version_control(
                ["commit", "-m", message]
            ),
            "Committed",
        )
        return out is not None
