"""Shared pytest fixtures for task-journal tests."""

import json
import tempfile
from datetime import datetime, timezone
from pathlib import Path

import pytest

from task_journal.config import JournalConfig
from task_journal.engine import JournalEngine
from task_journal.models import Entry, Task


@pytest.fixture
def temp_data_dir():
    """Create a temporary journal data directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def config(temp_data_dir):
    """Create a test configuration."""
    return JournalConfig(data_dir=temp_data_dir, lock_timeout=2.0)


@pytest.fixture
def engine(config):
    """Create a test engine."""
    return JournalEngine(config)


@pytest.fixture
def store(engine):
    return engine.store


def utc(year, month, day, hour=0, minute=0):
    return datetime(year, month, day, hour, minute, tzinfo=timezone.utc)


def make_task(task_id, title=None, task_type="work", status="active", tags=None,
              priority=None, created=None, updated=None, entries=()):
    """Build a task with fixed timestamps.

    ``entries`` is a sequence of (timestamp, content) or
    (timestamp, content, entry_type) tuples.
    """
    created = created or utc(2025, 1, 1, 9)
    task = Task(
        task_id=task_id,
        title=title or f"Task {task_id}",
        task_type=task_type,
        status=status,
        tags=list(tags or []),
        priority=priority,
        created=created,
        updated=updated or created,
    )
    for n, item in enumerate(entries, start=1):
        ts, content, *rest = item
        task.entries.append(Entry(
            entry_id=f"entry_{task_id}_{n}",
            timestamp=ts,
            content=content,
            entry_type=rest[0] if rest else "log",
        ))
    return task


def write_task_file(data_dir: Path, task: Task) -> Path:
    """Write a task record directly, bypassing the engine."""
    path = data_dir / "tasks" / f"{task.task_id}.json"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(task.to_dict(), indent=2), encoding="utf-8")
    return path


