"""Shared utilities for chezpanel."""

import logging
import sys
from importlib.metadata import PackageNotFoundError, version

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(verbose: bool = False) -> None:
    """Configure the root logger for command-line use.

    Safe to call more than once; the level is updated on repeat calls.
    """
    level = logging.DEBUG if verbose else logging.INFO
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(
            level=level,
            format=LOG_FORMAT,
            handlers=[logging.StreamHandler(sys.stderr)],
        )
    root.setLevel(level)


def get_version() -> str:
    """Get the installed chezpanel version."""
    try:
        return version("chezpanel")
    except PackageNotFoundError:
        return "(development)"
