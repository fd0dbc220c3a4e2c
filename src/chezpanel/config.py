from __future__ import annotations

import copy
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

logger = logging.getLogger(__name__)

# Checked in this order
CONFIG_FILENAMES: List[str] = [".chezpanel.yaml", ".chezpanel.yml"]

FILTER_MODES = ("all", "modified", "clean")
DIFF_LAYOUTS = ("side-by-side", "unified")


def find_config_path(home: Optional[Path] = None) -> Path:
    """Return the first existing config file in home, or .chezpanel.yaml."""
    home_dir = home or Path.home()
    for filename in CONFIG_FILENAMES:
        path = home_dir / filename
        if path.exists():
            return path
    return home_dir / CONFIG_FILENAMES[0]


class Config:
    """Configuration manager for chezpanel.

    Values from the user's YAML file are deep-merged over DEFAULT_CONFIG.
    String values may use {home} and {user} placeholders.
    """

    DEFAULT_CONFIG = {
        "chezmoi": {
            "binary": "chezmoi",
            "timeout": None,
            "source_dir": None,
        },
        "view": {
            "filter": "modified",
            "layout": "side-by-side",
            "width": None,
        },
    }

    def __init__(
        self,
        config_path: Optional[Path] = None,
        home: Optional[Path] = None,
    ):
        self.data = copy.deepcopy(self.DEFAULT_CONFIG)
        self.path = config_path
        self.home = home or Path.home()

        if config_path and config_path.exists():
            with open(config_path, "r") as f:
                user_config = yaml.safe_load(f)
            if isinstance(user_config, dict):
                self._deep_update(self.data, user_config)
            elif user_config is not None:
                logger.warning(
                    f"Ignoring {config_path}: top level must be a mapping"
                )

        self._apply_replacements(self.data)

    def _deep_update(self, base: Dict, update: Dict):
        for k, v in update.items():
            if isinstance(v, dict) and k in base and isinstance(base[k], dict):
                self._deep_update(base[k], v)
            else:
                base[k] = v

    def _apply_replacements(self, data: Any):
        """Replace {home} and {user} in string values."""
        replacements = {
            "home": str(self.home),
            "user": os.environ.get("USER")
            or os.environ.get("LOGNAME")
            or self.home.name,
        }
        self._walk_and_format(data, replacements)

    def _walk_and_format(self, data: Any, replacements: Dict[str, str]):
        if isinstance(data, dict):
            items = list(data.items())
        elif isinstance(data, list):
            items = list(enumerate(data))
        else:
            return

        for k, v in items:
            if isinstance(v, (dict, list)):
                self._walk_and_format(v, replacements)
            elif isinstance(v, str):
                try:
                    data[k] = v.format(**replacements)
                except (KeyError, IndexError, ValueError):
                    pass

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get a config value by dot-separated path."""
        keys = key_path.split(".")
        value = self.data
        try:
            for key in keys:
                value = value[key]
            return value
        except (KeyError, TypeError):
            return default

    def get_filter_mode(self) -> str:
        """Get the initial list filter, falling back to 'modified'."""
        mode = self.get("view.filter", "modified")
        if mode not in FILTER_MODES:
            logger.warning(
                f"Unknown view.filter '{mode}', using 'modified'"
            )
            return "modified"
        return mode

    def get_layout(self) -> str:
        """Get the diff layout, falling back to 'side-by-side'."""
        layout = self.get("view.layout", "side-by-side")
        if layout not in DIFF_LAYOUTS:
            logger.warning(
                f"Unknown view.layout '{layout}', using 'side-by-side'"
            )
            return "side-by-side"
        return layout

    def get_timeout(self) -> Optional[float]:
        """Get the command timeout in seconds, or None for no timeout."""
        timeout = self.get("chezmoi.timeout")
        if timeout is None:
            return None
        try:
            value = float(timeout)
        except (TypeError, ValueError):
            logger.warning(f"Invalid chezmoi.timeout '{timeout}', ignoring")
            return None
        return value if value > 0 else None
