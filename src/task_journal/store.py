"""File-backed record store: one JSON file per task, meeting and day."""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional

import portalocker

from .config import JournalConfig
from .errors import StorageError, TaskNotFoundError, ValidationError
from .locking import atomic_write, file_lock
from .models import DailyActivity, Entry, OneOnOne, Task, day_key

logger = logging.getLogger(__name__)


def validate_task_id(task_id: str) -> str:
    """Reject IDs that cannot safely be used as a filename."""
    if not isinstance(task_id, str) or not task_id.strip():
        raise ValidationError("id is required")
    if "/" in task_id or "\\" in task_id or task_id.startswith(".") or "\x00" in task_id:
        raise ValidationError(f"Invalid task id: {task_id!r}")
    return task_id


class TaskStore:
    """Loads and saves journal records under a single data directory.

    The store is the only component that touches the filesystem; everything
    else works on the in-memory records it returns.
    """

    def __init__(self, config: JournalConfig):
        self.config = config
        self._ensure_directories()

    def _ensure_directories(self) -> None:
        self.config.get_tasks_path().mkdir(parents=True, exist_ok=True)
        self.config.get_daily_path().mkdir(parents=True, exist_ok=True)
        self.config.get_one_on_ones_path().mkdir(parents=True, exist_ok=True)

    def _task_file(self, task_id: str) -> Path:
        return self.config.get_tasks_path() / f"{validate_task_id(task_id)}.json"

    def _write_json(self, path: Path, data: dict) -> None:
        try:
            with atomic_write(path) as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
                f.write("\n")
        except OSError as e:
            raise StorageError(f"Failed to write {path.name}: {e.strerror or e}") from e

    def _read_json(self, path: Path) -> dict:
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except OSError as e:
            raise StorageError(f"Failed to read {path.name}: {e.strerror or e}") from e

    # ========== Tasks ==========

    def task_exists(self, task_id: str) -> bool:
        return self._task_file(task_id).exists()

    def save_task(self, task: Task) -> None:
        """Write a task, replacing any stored record with the same ID."""
        self._write_json(self._task_file(task.task_id), task.to_dict())

    def load_task(self, task_id: str) -> Task:
        """Load one task.

        Raises:
            TaskNotFoundError: If no record exists for the ID
            StorageError: If the record cannot be read or decoded
        """
        path = self._task_file(task_id)
        if not path.exists():
            raise TaskNotFoundError(f"Task not found: {task_id}")
        data = self._read_json_record(path)
        try:
            return Task.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise StorageError(f"Corrupt task record {path.name}: {e}") from e

    def _read_json_record(self, path: Path) -> dict:
        try:
            return self._read_json(path)
        except json.JSONDecodeError as e:
            raise StorageError(f"Corrupt task record {path.name}: {e}") from e

    def load_all_tasks(self, skipped: Optional[list[str]] = None) -> list[Task]:
        """Load every stored task, ordered by ID.

        Unreadable or corrupt records are skipped rather than failing the
        whole call.

        Args:
            skipped: If given, names of skipped files are appended to it
        """
        tasks = []
        for path in sorted(self.config.get_tasks_path().glob("*.json")):
            try:
                tasks.append(Task.from_dict(self._read_json(path)))
            except (StorageError, json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping unreadable task record %s: %s", path.name, e)
                if skipped is not None:
                    skipped.append(path.name)
        return tasks

    @contextmanager
    def locked_task(self, task_id: str) -> Generator[None, None, None]:
        """Hold the per-task lock around a read-modify-write."""
        try:
            with file_lock(self._task_file(task_id), timeout=self.config.lock_timeout):
                yield
        except portalocker.LockException as e:
            raise StorageError(f"Timed out waiting for lock on task {task_id}") from e

    # ========== One-on-ones ==========

    def save_one_on_one(self, meeting: OneOnOne) -> None:
        path = self.config.get_one_on_ones_path() / f"{meeting.date}.json"
        self._write_json(path, meeting.to_dict())

    def load_one_on_ones(self, skipped: Optional[list[str]] = None) -> list[OneOnOne]:
        """Load all meeting records, ordered by date."""
        meetings = []
        for path in sorted(self.config.get_one_on_ones_path().glob("*.json")):
            try:
                meetings.append(OneOnOne.from_dict(self._read_json(path)))
            except (StorageError, json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping unreadable one-on-one record %s: %s", path.name, e)
                if skipped is not None:
                    skipped.append(path.name)
        return meetings

    # ========== Daily rollups ==========

    def _daily_file(self, date: str) -> Path:
        return self.config.get_daily_path() / f"{date}.json"

    def load_daily_activity(self, date: str) -> Optional[DailyActivity]:
        """Load the stored rollup for a date, or None if absent or unreadable."""
        path = self._daily_file(date)
        if not path.exists():
            return None
        try:
            return DailyActivity.from_dict(self._read_json(path))
        except (StorageError, json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            logger.warning("Ignoring unreadable daily log %s: %s", path.name, e)
            return None

    def save_daily_activity(self, activity: DailyActivity) -> None:
        self._write_json(self._daily_file(activity.date), activity.to_dict())

    def append_to_daily_log(self, task_id: str, entry: Entry) -> None:
        """Record an entry in the rollup for the entry's date."""
        date = day_key(entry.timestamp)
        try:
            with file_lock(self._daily_file(date), timeout=self.config.lock_timeout):
                activity = self.load_daily_activity(date) or DailyActivity(date=date)
                activity.add(task_id, entry)
                self.save_daily_activity(activity)
        except portalocker.LockException as e:
            raise StorageError(f"Timed out waiting for lock on daily log {date}") from e
