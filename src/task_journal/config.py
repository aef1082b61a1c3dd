"""Configuration loading for the task journal.

Settings come from an optional TOML or JSON file; everything has a default,
so a journal works with no config file at all.
"""

from __future__ import annotations

import json
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from .models import TASK_TYPES


def default_data_dir() -> Path:
    return Path.home() / ".journal-mcp"


@dataclass
class JournalConfig:
    """Configuration for a journal data directory."""

    data_dir: Path = field(default_factory=default_data_dir)

    # Directory structure (relative to data_dir)
    tasks_dir: str = "tasks"
    daily_dir: str = "daily"
    one_on_ones_dir: str = "one-on-ones"

    # Defaults applied to tool arguments
    default_task_type: str = "work"
    default_import_prefix: str = "IMPORT"
    list_default_limit: int = 50
    list_max_limit: int = 200
    history_default_limit: int = 10

    # Seconds to wait for a per-task lock
    lock_timeout: float = 10.0

    def get_tasks_path(self) -> Path:
        return self.data_dir / self.tasks_dir

    def get_daily_path(self) -> Path:
        return self.data_dir / self.daily_dir

    def get_one_on_ones_path(self) -> Path:
        return self.data_dir / self.one_on_ones_dir


def load_toml_config(path: Path) -> dict[str, Any]:
    """Load configuration from TOML file."""
    with open(path, "rb") as f:
        return tomllib.load(f)


def load_json_config(path: Path) -> dict[str, Any]:
    """Load configuration from JSON file."""
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def dict_to_config(data: dict[str, Any], data_dir: Path) -> JournalConfig:
    """Convert dictionary to JournalConfig.

    Raises:
        ValueError: If a setting has an unusable value
    """
    config = JournalConfig(data_dir=data_dir)

    if "directories" in data:
        dirs = data["directories"]
        if "tasks" in dirs:
            config.tasks_dir = dirs["tasks"]
        if "daily" in dirs:
            config.daily_dir = dirs["daily"]
        if "one_on_ones" in dirs:
            config.one_on_ones_dir = dirs["one_on_ones"]

    if "general" in data:
        general = data["general"]
        if "default_task_type" in general:
            if general["default_task_type"] not in TASK_TYPES:
                raise ValueError(
                    f"default_task_type must be one of: {', '.join(TASK_TYPES)}"
                )
            config.default_task_type = general["default_task_type"]
        if "import_prefix" in general:
            config.default_import_prefix = general["import_prefix"]

    if "listing" in data:
        listing = data["listing"]
        if "default_limit" in listing:
            config.list_default_limit = int(listing["default_limit"])
        if "max_limit" in listing:
            config.list_max_limit = int(listing["max_limit"])
        if "history_limit" in listing:
            config.history_default_limit = int(listing["history_limit"])
        if config.list_default_limit < 1 or config.list_max_limit < config.list_default_limit:
            raise ValueError("listing limits must satisfy 1 <= default_limit <= max_limit")

    if "storage" in data:
        storage = data["storage"]
        if "lock_timeout" in storage:
            config.lock_timeout = float(storage["lock_timeout"])

    return config


def find_config_file(data_dir: Path) -> Optional[Path]:
    """Find configuration file in the data directory.

    Search order:
    1. journal_config.toml
    2. journal_config.json
    3. .journal.toml
    4. .journal.json
    """
    candidates = [
        "journal_config.toml",
        "journal_config.json",
        ".journal.toml",
        ".journal.json",
    ]

    for name in candidates:
        path = data_dir / name
        if path.exists():
            return path

    return None


def load_config(data_dir: Optional[Path] = None, config_path: Optional[Path] = None) -> JournalConfig:
    """Load journal configuration.

    Args:
        data_dir: Root data directory (default: ~/.journal-mcp)
        config_path: Optional explicit path to config file

    Returns:
        JournalConfig instance
    """
    if data_dir is None:
        data_dir = default_data_dir()

    if config_path is None:
        config_path = find_config_file(data_dir)

    if config_path is None:
        return JournalConfig(data_dir=data_dir)

    suffix = config_path.suffix.lower()

    if suffix == ".toml":
        return dict_to_config(load_toml_config(config_path), data_dir)
    elif suffix == ".json":
        return dict_to_config(load_json_config(config_path), data_dir)
    else:
        raise ValueError(f"Unsupported config file type: {suffix}")
