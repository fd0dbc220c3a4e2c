"""Tests for the StatusView state machine."""

from unittest.mock import MagicMock

import pytest

from chezpanel.actions import ActionCategory, DiffOrigin
from chezpanel.render import DiffLayout
from chezpanel.runner import CommandOutput, RunnerError
from chezpanel.view import (
    NO_DIFF,
    DiffState,
    FilterMode,
    ListState,
    Notice,
    StatusView,
)
from fakes import FakeRunner, raw_state


@pytest.fixture
def runner():
    return FakeRunner(
        [
            raw_state("a", local="M"),
            raw_state(".bashrc"),
            raw_state(".zshrc", worktree="M"),
        ]
    )


@pytest.fixture
def view(runner):
    v = StatusView(runner, renderer=MagicMock())
    v.load()
    return v


def loads(runner):
    return len(runner.calls_to("list_file_statuses"))


class TestInitialState:
    def test_starts_in_modified_list(self, fake_runner):
        """A new view starts in the modified list."""
        view = StatusView(fake_runner)

        assert view.state == ListState(FilterMode.MODIFIED, None)
        assert view.snapshot == ()
        assert not view.loading
        assert not view.busy


class TestLoad:
    """Tests for loading the snapshot."""

    def test_load_builds_snapshot_in_order(self, view):
        """Load keeps the runner's order."""
        assert [f.path for f in view.snapshot] == ["a", ".bashrc", ".zshrc"]
        assert view.error is None

    def test_reload_of_unchanged_state_is_equal(self, runner):
        """Reloading unchanged state gives an equal snapshot."""
        view = StatusView(runner)
        view.load()
        first = view.snapshot
        view.load()

        assert view.snapshot == first
        assert list(view.snapshot) == list(first)

    def test_load_replaces_snapshot_wholesale(self, view, runner):
        """Load replaces the whole snapshot."""
        runner.states = [raw_state("new", local="A")]

        view.load()

        assert [f.path for f in view.snapshot] == ["new"]

    def test_load_failure_empties_snapshot(self, view, runner):
        """A failed load empties the snapshot and sets error."""
        runner.list_error = "chezmoi: command not found"

        assert view.load() is False
        assert view.snapshot == ()
        assert view.error == "chezmoi: command not found"
        assert not view.loading

    def test_successful_load_clears_error(self, view, runner):
        """A good load clears the previous error."""
        runner.list_error = "boom"
        view.load()
        runner.list_error = None

        assert view.load() is True
        assert view.error is None
        assert len(view.snapshot) == 3

    def test_loading_flag_set_during_listing(self, fake_runner):
        """loading is set only while listing."""
        view = StatusView(fake_runner)
        seen = []
        original = fake_runner.list_file_statuses

        def listing():
            seen.append(view.loading)
            return original()

        fake_runner.list_file_statuses = listing
        view.load()

        assert seen == [True]
        assert view.loading is False


class TestFilter:
    """Tests for list filtering."""

    def test_modified_filter(self, view):
        """Modified shows files that are not clean."""
        assert [f.path for f in view.visible_files()] == ["a", ".zshrc"]

    def test_clean_filter(self, view):
        """Clean shows only clean files."""
        view.set_filter(FilterMode.CLEAN)

        assert [f.path for f in view.visible_files()] == [".bashrc"]

    def test_all_filter(self, view):
        """All shows every file."""
        view.set_filter(FilterMode.ALL)

        assert len(view.visible_files()) == 3

    def test_filter_change_makes_no_calls(self, view, runner):
        """Changing the filter is local."""
        before = list(runner.calls)

        view.set_filter(FilterMode.ALL)

        assert runner.calls == before
        assert view.state.filter_mode is FilterMode.ALL

    def test_counts(self, view):
        """Counts cover all, modified and clean."""
        assert view.counts() == {"all": 3, "modified": 2, "clean": 1}


class TestSelectDiff:
    """Tests for entering the diff view."""

    def test_local_diff(self, view, runner):
        """A local diff opens on the target."""
        runner.outputs["diff"] = CommandOutput(stdout="--- a\n+++ b\n")

        state = view.select_diff("a", DiffOrigin.LOCAL)

        assert isinstance(view.state, DiffState)
        assert state.target == "a"
        assert state.origin is DiffOrigin.LOCAL
        assert state.content == "--- a\n+++ b\n"
        assert runner.calls_to("diff") == [("diff", "a")]

    def test_git_diff_resolves_source_path(self, view, runner):
        """Git diffs run against the source path."""
        runner.outputs["resolve_source_path"] = CommandOutput(
            stdout="/src/dot_zshrc\n"
        )
        runner.outputs["diff_version_control"] = CommandOutput(stdout="d")

        view.select_diff(".zshrc", DiffOrigin.VERSION_CONTROL)

        assert runner.calls_to("diff_version_control") == [
            ("diff_version_control", "/src/dot_zshrc")
        ]
        assert view.state.content == "d"

    def test_git_diff_source_path_failure(self, view, runner):
        """A failed source-path lookup shows its error, not an empty diff."""
        runner.outputs["resolve_source_path"] = CommandOutput(
            stderr="not in source state", success=False
        )

        view.select_diff(".zshrc", DiffOrigin.VERSION_CONTROL)

        assert runner.calls_to("diff_version_control") == []
        assert view.state.content == "not in source state"

    def test_git_diff_source_path_failure_without_stderr(self, view, runner):
        """A silent source-path failure falls back to the placeholder."""
        runner.outputs["resolve_source_path"] = CommandOutput(success=False)

        view.select_diff(".zshrc", DiffOrigin.VERSION_CONTROL)

        assert runner.calls_to("diff_version_control") == []
        assert view.state.content == NO_DIFF

    def test_unknown_path_is_refused(self, view, runner):
        """Paths outside the snapshot never open a diff."""
        before = view.state

        assert view.select_diff(".nope", DiffOrigin.LOCAL) is None

        assert view.state == before
        assert runner.calls_to("diff") == []

    def test_falls_back_to_stderr(self, view, runner):
        """Diff content falls back to stderr."""
        runner.outputs["diff"] = CommandOutput(stderr="oops", success=False)

        view.select_diff("a", DiffOrigin.LOCAL)

        assert view.state.content == "oops"

    def test_placeholder_when_empty(self, view):
        """Empty output shows the placeholder."""
        view.select_diff("a", DiffOrigin.LOCAL)

        assert view.state.content == NO_DIFF

    def test_placeholder_when_runner_fails(self, view, runner):
        """Runner errors show the placeholder."""
        runner.outputs["diff"] = RunnerError("not found")

        view.select_diff("a", DiffOrigin.LOCAL)

        assert isinstance(view.state, DiffState)
        assert view.state.content == NO_DIFF

    def test_select_diff_does_not_reload(self, view, runner):
        """Opening a diff does not reload."""
        view.select_diff("a", DiffOrigin.LOCAL)

        assert loads(runner) == 1

    def test_back_restores_list_with_filter(self, view):
        """Back returns to the list with its filter."""
        view.set_filter(FilterMode.ALL)
        view.select_diff("a", DiffOrigin.LOCAL)

        state = view.back()

        assert state == ListState(FilterMode.ALL, None)

    def test_back_in_list_is_noop(self, view):
        """Back in the list changes nothing."""
        before = view.state

        assert view.back() == before

    def test_rendered_uses_layout(self, view):
        """Rendering passes the current layout."""
        view.select_diff("a", DiffOrigin.LOCAL)
        view.set_layout(DiffLayout.UNIFIED)

        view.rendered()

        view.renderer.render.assert_called_once_with(
            NO_DIFF, DiffLayout.UNIFIED
        )

    def test_rendered_empty_in_list(self, view):
        """Nothing is rendered in the list."""
        assert view.rendered() == ""


class TestActionsPerState:
    def test_local_diff_actions(self, view):
        """A modified file offers save and restore."""
        view.select_diff("a", DiffOrigin.LOCAL)

        assert [a.category for a in view.actions()] == [
            ActionCategory.SAVE,
            ActionCategory.RESTORE,
        ]

    def test_list_actions_are_fleet_wide(self, runner):
        """The list offers fleet-wide actions."""
        runner.states = [raw_state("a", ahead=1), raw_state("b", index="A")]
        view = StatusView(runner)
        view.load()

        assert [a.category for a in view.actions()] == [
            ActionCategory.COMMIT,
            ActionCategory.SYNC_PUSH,
        ]

    def test_actions_use_latest_snapshot(self, view, runner):
        """Diff actions follow the reloaded status, not the one at entry."""
        view.select_diff(".zshrc", DiffOrigin.VERSION_CONTROL)
        assert [a.category for a in view.actions()] == [ActionCategory.STAGE]

        runner.states = [raw_state(".zshrc", index="M")]
        view.load()

        assert [a.category for a in view.actions()] == [ActionCategory.COMMIT]


class TestMutatingActions:
    """Every action calls the runner, sets a notice and reloads once."""

    def test_restore_returns_to_list_and_reloads_once(self, view, runner):
        """Restore returns to the list after one reload."""
        view.select_diff("a", DiffOrigin.LOCAL)

        assert view.perform(ActionCategory.RESTORE) is True

        assert isinstance(view.state, ListState)
        assert runner.calls_to("apply") == [("apply", "a")]
        assert loads(runner) == 2
        assert view.notice == Notice("Applied", True)

    def test_restore_failure_still_returns_to_list(self, view, runner):
        """A failed restore still returns to the list."""
        runner.outputs["apply"] = CommandOutput(
            stderr="permission denied", success=False
        )
        view.select_diff("a", DiffOrigin.LOCAL)

        view.restore()

        assert isinstance(view.state, ListState)
        assert view.notice == Notice("permission denied", False)
        assert loads(runner) == 2

    def test_save_stays_in_diff(self, view, runner):
        """Save keeps the diff open."""
        view.select_diff("a", DiffOrigin.LOCAL)

        view.perform(ActionCategory.SAVE)

        assert isinstance(view.state, DiffState)
        assert runner.calls_to("add") == [("add", "a")]
        assert view.notice == Notice("Added a", True)
        assert loads(runner) == 2

    def test_notice_survives_back(self, view):
        """A notice raised in the diff shows in the list."""
        view.select_diff("a", DiffOrigin.LOCAL)
        view.save()

        view.back()

        assert view.state.notice == Notice("Added a", True)

    def test_stage_adds_source_path(self, view, runner):
        """Stage runs git add on the source path."""
        runner.outputs["resolve_source_path"] = CommandOutput(
            stdout="/src/dot_zshrc\n"
        )
        view.select_diff(".zshrc", DiffOrigin.VERSION_CONTROL)

        assert view.perform(ActionCategory.STAGE)

        assert runner.calls_to("run_version_control") == [
            ("run_version_control", ["add", "/src/dot_zshrc"])
        ]
        assert view.notice == Notice("Staged .zshrc", True)

    def test_stage_reports_source_path_failure(self, view, runner):
        """A failed source lookup becomes the notice."""
        runner.outputs["resolve_source_path"] = CommandOutput(
            stderr="not managed", success=False
        )
        view.select_diff(".zshrc", DiffOrigin.VERSION_CONTROL)

        view.stage()

        assert runner.calls_to("run_version_control") == []
        assert view.notice == Notice("not managed", False)
        assert loads(runner) == 2

    def test_failure_notice_carries_stderr(self, view, runner):
        """Failure notices carry stderr verbatim."""
        runner.outputs["add"] = CommandOutput(
            stderr="chezmoi: .bashrc: not in source state\n", success=False
        )
        view.select_diff("a", DiffOrigin.LOCAL)

        view.save()

        assert view.notice.ok is False
        assert view.notice.text == "chezmoi: .bashrc: not in source state\n"

    def test_runner_error_becomes_notice(self, view, runner):
        """Runner errors become failure notices."""
        runner.outputs["add"] = RunnerError("Failed to run chezmoi")
        view.select_diff("a", DiffOrigin.LOCAL)

        view.save()

        assert view.notice == Notice("Failed to run chezmoi", False)
        assert loads(runner) == 2

    def test_push_and_pull_from_list(self, runner):
        """Push and pull run from the list."""
        runner.states = [raw_state("a", ahead=1, behind=1)]
        view = StatusView(runner)
        view.load()

        view.perform(ActionCategory.SYNC_PUSH)
        assert view.notice == Notice("Pushed", True)
        view.perform(ActionCategory.SYNC_PULL)
        assert view.notice == Notice("Pulled", True)

        assert runner.calls_to("run_version_control") == [
            ("run_version_control", ["push"]),
            ("run_version_control", ["pull"]),
        ]
        assert loads(runner) == 3

    def test_add_new_file(self, view, runner):
        """Adding a file strips the path and reloads."""
        assert view.add("  ~/.vimrc ") is True

        assert runner.calls_to("add") == [("add", "~/.vimrc")]
        assert view.notice == Notice("Added ~/.vimrc", True)
        assert loads(runner) == 2

    def test_add_blank_is_ignored(self, view, runner):
        """Blank paths are not added."""
        assert view.add("   ") is False
        assert runner.calls_to("add") == []

    def test_perform_refuses_unoffered_action(self, view, runner):
        """Actions not offered are refused."""
        view.select_diff("a", DiffOrigin.LOCAL)

        assert view.perform(ActionCategory.UNTRACK) is False
        assert runner.calls_to("forget") == []
        assert loads(runner) == 1

    def test_actions_need_open_diff(self, view, runner):
        """File actions need an open diff."""
        assert view.save() is False
        assert runner.calls_to("add") == []

    def test_dismiss_notice(self, view):
        """Dismissing clears the notice."""
        view.notify("hello")

        view.dismiss_notice()

        assert view.notice is None


class TestUntrack:
    def test_untrack_clean_file_returns_to_list(self, view, runner):
        """Untracking a clean file leaves its diff."""
        view.select_diff(".bashrc", DiffOrigin.LOCAL)
        runner.on_call = lambda name, *args: (
            name == "forget"
            and setattr(runner, "states", runner.states[:1])
        )

        assert view.perform(ActionCategory.UNTRACK) is True

        assert runner.calls_to("forget") == [("forget", ".bashrc")]
        assert isinstance(view.state, ListState)
        assert view.notice == Notice("Removed .bashrc from chezmoi", True)

    def test_untrack_refused_for_dirty_file(self, view, runner):
        """Untrack refuses a file with changes."""
        view.select_diff("a", DiffOrigin.LOCAL)

        assert view.untrack() is False
        assert runner.calls_to("forget") == []


class TestCommitDialog:
    """Tests for the commit dialog sub-state."""

    @pytest.fixture
    def staged(self, runner):
        runner.states = [raw_state("a", index="M"), raw_state("b")]
        view = StatusView(runner)
        view.load()
        return view

    def test_commit_opens_dialog_without_calls(self, staged, runner):
        """Commit opens the dialog without running git."""
        assert staged.perform(ActionCategory.COMMIT) is True

        assert staged.commit_dialog_open
        assert runner.calls_to("run_version_control") == []
        assert loads(runner) == 1

    def test_confirm_commits_and_reloads(self, staged, runner):
        """Confirming commits and reloads."""
        staged.perform(ActionCategory.COMMIT)

        assert staged.confirm_commit("  update a  ") is True

        assert runner.calls_to("run_version_control") == [
            ("run_version_control", ["commit", "-m", "update a"])
        ]
        assert not staged.commit_dialog_open
        assert staged.notice == Notice("Committed", True)
        assert loads(runner) == 2

    def test_cancel_has_no_side_effects(self, staged, runner):
        """Cancel closes the dialog and runs nothing."""
        staged.perform(ActionCategory.COMMIT)

        staged.cancel_commit()

        assert not staged.commit_dialog_open
        assert runner.calls_to("run_version_control") == []
        assert staged.notice is None

    def test_blank_message_keeps_dialog_open(self, staged, runner):
        """A blank message keeps the dialog open."""
        staged.perform(ActionCategory.COMMIT)

        assert staged.confirm_commit("   ") is False
        assert staged.commit_dialog_open
        assert runner.calls_to("run_version_control") == []

    def test_confirm_without_dialog_does_nothing(self, staged, runner):
        """Confirm needs an open dialog."""
        assert staged.confirm_commit("msg") is False
        assert runner.calls_to("run_version_control") == []

    def test_commit_from_diff(self, staged, runner):
        """Commit works from a diff and stays there."""
        staged.select_diff("a", DiffOrigin.LOCAL)

        staged.perform(ActionCategory.COMMIT)
        assert isinstance(staged.state, DiffState)
        assert staged.state.commit_dialog_open
        staged.confirm_commit("msg")

        assert isinstance(staged.state, DiffState)
        assert staged.notice == Notice("Committed", True)

    def test_entering_diff_closes_list_dialog(self, staged):
        """Opening a diff closes the list dialog."""
        staged.perform(ActionCategory.COMMIT)

        staged.select_diff("a", DiffOrigin.LOCAL)

        assert not staged.state.commit_dialog_open
        assert not staged.state.previous.commit_dialog_open


class TestStaleTarget:
    """A diff target that disappears from the snapshot."""

    def test_reload_without_target_returns_to_list(self, view, runner):
        """A reload that drops the target returns to the list."""
        view.set_filter(FilterMode.ALL)
        view.select_diff("a", DiffOrigin.LOCAL)
        runner.states = [raw_state(".bashrc")]

        view.load()

        assert view.state == ListState(FilterMode.ALL, None)
        assert view.current_file() is None

    @pytest.mark.parametrize(
        "path,origin,category",
        [
            ("a", DiffOrigin.LOCAL, ActionCategory.SAVE),
            ("a", DiffOrigin.LOCAL, ActionCategory.RESTORE),
            (".zshrc", DiffOrigin.VERSION_CONTROL, ActionCategory.STAGE),
            (".bashrc", DiffOrigin.LOCAL, ActionCategory.UNTRACK),
            ("a", DiffOrigin.LOCAL, ActionCategory.COMMIT),
            (".zshrc", DiffOrigin.VERSION_CONTROL, ActionCategory.SYNC_PUSH),
        ],
    )
    def test_acting_on_vanished_target_is_noop(
        self, view, runner, path, origin, category
    ):
        """Any action on a vanished target returns to the list untouched."""
        view.set_filter(FilterMode.ALL)
        view.select_diff(path, origin)
        # Snapshot changed underneath the open diff.
        view.snapshot = tuple(f for f in view.snapshot if f.path != path)
        before = list(runner.calls)

        assert view.perform(category) is False

        assert view.state == ListState(FilterMode.ALL, None)
        assert not view.commit_dialog_open
        assert runner.calls == before
        assert loads(runner) == 1

    def test_stage_on_vanished_target_is_noop(self, view, runner):
        """Staging a vanished target returns to the list."""
        view.select_diff(".zshrc", DiffOrigin.VERSION_CONTROL)
        view.snapshot = ()

        assert view.stage() is False
        assert isinstance(view.state, ListState)
        assert runner.calls_to("run_version_control") == []

    def test_push_on_vanished_target_is_noop(self, view, runner):
        """Pushing from a stale diff returns to the list."""
        view.select_diff("a", DiffOrigin.LOCAL)
        view.snapshot = ()

        assert view.sync_push() is False
        assert isinstance(view.state, ListState)
        assert runner.calls_to("run_version_control") == []

    def test_load_failure_leaves_diff(self, view, runner):
        """A failed load leaves the diff."""
        view.select_diff("a", DiffOrigin.LOCAL)
        runner.list_error = "gone"

        view.load()

        assert isinstance(view.state, ListState)
        assert view.error == "gone"


class TestSerialization:
    """Only one runner operation may be in flight."""

    def test_reentrant_action_is_refused(self, view, runner):
        """Actions started mid-action are refused."""
        view.select_diff("a", DiffOrigin.LOCAL)
        results = []

        def reenter(name, *args):
            if name == "add":
                results.append(view.restore())
                results.append(view.load())

        runner.on_call = reenter

        assert view.save() is True

        assert results == [False, False]
        assert runner.calls_to("apply") == []
        assert loads(runner) == 2
        assert not view.busy

    def test_token_released_after_runner_error(self, view, runner):
        """The in-flight token is freed after an error."""
        runner.outputs["add"] = RunnerError("boom")
        view.select_diff("a", DiffOrigin.LOCAL)

        view.save()

        assert not view.busy
        assert view.load() is True
