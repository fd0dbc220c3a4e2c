"""Command runner boundary around the chezmoi binary.

Everything chezpanel knows about the outside world goes through a
CommandRunner. ChezmoiRunner is the real implementation; tests substitute
their own.
"""

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple

logger = logging.getLogger(__name__)


class RunnerError(RuntimeError):
    """The command could not be run at all (missing binary, timeout...)."""


@dataclass(frozen=True)
class CommandOutput:
    stdout: str = ""
    stderr: str = ""
    success: bool = True


class CommandRunner(Protocol):
    """Operations chezpanel needs from chezmoi and its git repository."""

    def list_file_statuses(self) -> List[Dict[str, Any]]: ...

    def diff(self, path: Optional[str] = None) -> CommandOutput: ...

    def diff_version_control(self, source_path: str) -> CommandOutput: ...

    def diff_version_control_cached(
        self, source_path: str
    ) -> CommandOutput: ...

    def apply(self, path: Optional[str] = None) -> CommandOutput: ...

    def add(self, path: str) -> CommandOutput: ...

    def forget(self, path: str) -> CommandOutput: ...

    def run_version_control(self, argv: Sequence[str]) -> CommandOutput: ...

    def list_managed(self) -> CommandOutput: ...

    def get_template_data(self) -> CommandOutput: ...

    def run_diagnostics(self) -> CommandOutput: ...

    def resolve_source_path(
        self, path: Optional[str] = None
    ) -> CommandOutput: ...

    def cat(self, path: str) -> CommandOutput: ...


def expand_home(path: str, home: Path) -> str:
    """Make a home-relative path absolute; leave absolute paths alone."""
    if path.startswith("~/"):
        return str(home / path[2:])
    if path.startswith("/"):
        return path
    return str(home / path)


def path_to_source_name(path: str) -> str:
    """Guess the source-state name of a target path.

    Only the first component is converted, e.g. ".config/nvim/init.lua"
    becomes "dot_config/nvim/init.lua".
    """
    first, sep, rest = path.partition("/")
    if first.startswith("."):
        first = f"dot_{first[1:]}"
    return f"{first}{sep}{rest}"


def parse_chezmoi_status(stdout: str) -> Dict[str, str]:
    """Map target path to its local-change code from `chezmoi status`."""
    changes = {}
    for line in stdout.splitlines():
        if len(line) < 3:
            continue
        changes[line[3:]] = line[0]
    return changes


def parse_git_porcelain(stdout: str) -> Dict[str, Tuple[str, str]]:
    """Map source file to (index, worktree) codes.

    Each entry is stored under its full path and under its basename, the
    latter as a fallback for names the source-name heuristic gets wrong.
    """
    states: Dict[str, Tuple[str, str]] = {}
    for line in stdout.splitlines():
        if len(line) < 3:
            continue
        codes = (line[0], line[1])
        filename = line[3:]
        states[filename.rsplit("/", 1)[-1]] = codes
        states[filename] = codes
    return states


def parse_ahead_behind(stdout: str) -> Tuple[int, int]:
    """Parse `rev-list --left-right --count` output."""
    parts = stdout.split()
    counts = []
    for part in parts[:2]:
        try:
            counts.append(int(part))
        except ValueError:
            counts.append(0)
    while len(counts) < 2:
        counts.append(0)
    return counts[0], counts[1]


class ChezmoiRunner:
    """Runs chezmoi (and git through `chezmoi git`) as subprocesses.

    A non-zero exit is reported through CommandOutput.success; only a
    failure to run the command at all raises RunnerError.
    """

    def __init__(
        self,
        binary: str = "chezmoi",
        home: Optional[Path] = None,
        source_dir: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.binary = binary
        self.home = Path(home) if home else Path.home()
        self.source_dir = source_dir
        self.timeout = timeout

    def _run(self, *args: str) -> CommandOutput:
        """Run chezmoi with the given arguments and capture its output."""
        cmd = [self.binary]
        if self.source_dir:
            cmd += ["--source", str(self.source_dir)]
        cmd += list(args)
        logger.debug(f"Running: {' '.join(cmd)}")

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except FileNotFoundError:
            raise RunnerError(f"Failed to run {self.binary}: not found")
        except subprocess.TimeoutExpired:
            raise RunnerError(
                f"{self.binary} {' '.join(args)} timed out "
                f"after {self.timeout}s"
            )
        except OSError as e:
            raise RunnerError(f"Failed to run {self.binary}: {e}")

        output = CommandOutput(
            stdout=result.stdout or "",
            stderr=result.stderr or "",
            success=result.returncode == 0,
        )
        if not output.success:
            logger.warning(
                f"{self.binary} {' '.join(args)} exited with "
                f"{result.returncode}: {output.stderr.strip()}"
            )
        return output

    def _git(self, *args: str) -> CommandOutput:
        return self._run("git", "--", *args)

    def _target(self, path: str) -> str:
        return expand_home(path, self.home)

    def list_file_statuses(self) -> List[Dict[str, Any]]:
        """Collect raw status mappings for every managed file."""
        managed_out = self._run("managed", "--include=files")
        if not managed_out.success:
            raise RunnerError(
                managed_out.stderr.strip() or "chezmoi managed failed"
            )
        managed = [line for line in managed_out.stdout.splitlines() if line]
        if not managed:
            return []

        local_changes = parse_chezmoi_status(self._run("status").stdout)
        git_states = parse_git_porcelain(
            self._git("status", "--porcelain").stdout
        )

        ahead, behind = 0, 0
        try:
            rev_out = self._git(
                "rev-list", "--left-right", "--count", "HEAD...@{upstream}"
            )
            if rev_out.success:
                ahead, behind = parse_ahead_behind(rev_out.stdout)
        except RunnerError as e:
            logger.debug(f"Could not count commits ahead/behind: {e}")

        states = []
        for path in managed:
            source_name = path_to_source_name(path)
            index, worktree = git_states.get(
                source_name,
                git_states.get(source_name.rsplit("/", 1)[-1], (" ", " ")),
            )
            states.append(
                {
                    "path": path,
                    "local_change": local_changes.get(path, " "),
                    "git_index": index,
                    "git_worktree": worktree,
                    "commits_ahead": ahead,
                    "commits_behind": behind,
                }
            )
        return states

    def diff(self, path: Optional[str] = None) -> CommandOutput:
        args = ["diff"]
        if path:
            args.append(self._target(path))
        return self._run(*args)

    def diff_version_control(self, source_path: str) -> CommandOutput:
        return self._git("diff", source_path)

    def diff_version_control_cached(self, source_path: str) -> CommandOutput:
        return self._git("diff", "--cached", source_path)

    def apply(self, path: Optional[str] = None) -> CommandOutput:
        args = ["apply", "--force"]
        if path:
            args.append(self._target(path))
        return self._run(*args)

    def add(self, path: str) -> CommandOutput:
        return self._run("add", self._target(path))

    def forget(self, path: str) -> CommandOutput:
        return self._run("forget", "--force", self._target(path))

    def run_version_control(self, argv: Sequence[str]) -> CommandOutput:
        return self._git(*argv)

    def list_managed(self) -> CommandOutput:
        return self._run("managed")

    def get_template_data(self) -> CommandOutput:
        return self._run("data", "--format=json")

    def run_diagnostics(self) -> CommandOutput:
        return self._run("doctor")

    def resolve_source_path(self, path: Optional[str] = None) -> CommandOutput:
        args = ["source-path"]
        if path:
            args.append(self._target(path))
        return self._run(*args)

    def cat(self, path: str) -> CommandOutput:
        return self._run("cat", self._target(path))
