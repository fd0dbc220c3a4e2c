"""Read-only panels: managed files, template data, staged diffs and git."""

import json
import logging
from typing import List, Sequence, Tuple

from .runner import CommandOutput, CommandRunner, RunnerError

logger = logging.getLogger(__name__)

QUICK_COMMANDS: List[Tuple[str, List[str]]] = [
    ("status", ["status"]),
    ("log --oneline -20", ["log", "--oneline", "-20"]),
    ("diff", ["diff"]),
    ("diff --cached", ["diff", "--cached"]),
    ("pull", ["pull"]),
    ("push", ["push"]),
    ("add -A", ["add", "-A"]),
]


def load_managed(runner: CommandRunner, query: str = "") -> List[str]:
    """List managed paths, optionally filtered by a case-insensitive query.

    Raises:
        RunnerError: If chezmoi could not be run.
    """
    out = runner.list_managed()
    files = [line for line in out.stdout.strip().split("\n") if line]
    if query:
        needle = query.lower()
        files = [f for f in files if needle in f.lower()]
    return files


def load_template_data(runner: CommandRunner) -> str:
    """Template data pretty-printed as JSON, or the raw output if not JSON."""
    out = runner.get_template_data()
    try:
        return json.dumps(json.loads(out.stdout), indent=2)
    except ValueError:
        logger.debug("Template data is not valid JSON, showing raw output")
        return out.stdout or out.stderr


def run_git(runner: CommandRunner, argv: Sequence[str]) -> CommandOutput:
    """Run a git command in the source repository.

    A single string is split on whitespace. Failures to run at all come
    back as an unsuccessful CommandOutput.
    """
    if isinstance(argv, str):
        argv = argv.split()
    args = [a for a in argv if a]
    if not args:
        return CommandOutput(stderr="No git command given", success=False)
    try:
        return runner.run_version_control(args)
    except RunnerError as e:
        return CommandOutput(stderr=str(e), success=False)


def staged_diff(runner: CommandRunner, path: str) -> str:
    """The staged git diff of the source file behind path."""
    source = runner.resolve_source_path(path)
    if not source.success:
        return source.stderr
    out = runner.diff_version_control_cached(source.stdout.strip())
    return out.stdout or out.stderr
