"""chezpanel - See and act on the state of your chezmoi dotfiles."""

from .actions import Action, ActionCategory, DiffOrigin
from .cli import main
from .config import Config
from .doctor import DoctorReport, DoctorRow, parse_doctor_output
from .runner import ChezmoiRunner, CommandOutput, CommandRunner, RunnerError
from .status import FileStatus, classify, is_clean
from .utils import get_version
from .view import DiffState, FilterMode, ListState, Notice, StatusView

__all__ = [
    "Action",
    "ActionCategory",
    "ChezmoiRunner",
    "CommandOutput",
    "CommandRunner",
    "Config",
    "DiffOrigin",
    "DiffState",
    "DoctorReport",
    "DoctorRow",
    "FileStatus",
    "FilterMode",
    "ListState",
    "Notice",
    "RunnerError",
    "StatusView",
    "classify",
    "get_version",
    "is_clean",
    "main",
    "parse_doctor_output",
]
