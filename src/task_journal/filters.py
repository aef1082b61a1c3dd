"""In-memory task filtering, recency sorting and pagination."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, Optional

from .models import Task, parse_date


def parse_date_safely(value: Optional[str]) -> Optional[datetime]:
    """Parse a YYYY-MM-DD filter date as UTC midnight.

    Filter dates are lenient: an empty or malformed value means "no filter",
    never an error.
    """
    if not value:
        return None
    try:
        d = parse_date(value)
    except ValueError:
        return None
    return datetime(d.year, d.month, d.day, tzinfo=timezone.utc)


def date_window(date_from: Optional[str], date_to: Optional[str]) -> tuple[Optional[datetime], Optional[datetime]]:
    """Resolve filter bounds; the upper bound is the end of ``date_to``."""
    start = parse_date_safely(date_from)
    end = parse_date_safely(date_to)
    if end is not None:
        end = end + timedelta(days=1)
    return start, end


def in_window(ts: datetime, start: Optional[datetime], end: Optional[datetime]) -> bool:
    if start is not None and ts < start:
        return False
    if end is not None and ts > end:
        return False
    return True


@dataclass
class TaskFilter:
    """Predicates for task listings. Unset fields do not filter."""
    status: Optional[str] = None
    task_type: Optional[str] = None
    tags: list[str] = field(default_factory=list)
    date_from: Optional[str] = None
    date_to: Optional[str] = None

    def matches(self, task: Task) -> bool:
        if self.status and task.status != self.status:
            return False
        if self.task_type and task.task_type != self.task_type:
            return False
        if self.tags and not any(tag in task.tags for tag in self.tags):
            return False
        start, end = date_window(self.date_from, self.date_to)
        return in_window(task.updated, start, end)


def filter_tasks(tasks: Iterable[Task], task_filter: TaskFilter) -> list[Task]:
    return [t for t in tasks if task_filter.matches(t)]


def sort_by_recency(tasks: Iterable[Task]) -> list[Task]:
    """Most recently updated first."""
    return sorted(tasks, key=lambda t: t.updated, reverse=True)


def resolve_limit(value: Any, default: int = 50, maximum: int = 200) -> int:
    """Parse a page size; non-positive or unparseable values give the default."""
    try:
        limit = int(value)
    except (TypeError, ValueError):
        return default
    if limit <= 0:
        return default
    return min(limit, maximum)


def resolve_offset(value: Any) -> int:
    try:
        offset = int(value)
    except (TypeError, ValueError):
        return 0
    return max(offset, 0)


@dataclass
class Page:
    """A slice of a sorted task collection."""
    tasks: list[Task]
    total: int
    offset: int
    limit: int

    @property
    def showing_from(self) -> int:
        return min(self.offset, self.total) + 1 if self.tasks else 0

    @property
    def showing_to(self) -> int:
        return min(self.offset, self.total) + len(self.tasks) if self.tasks else 0


def paginate(tasks: list[Task], offset: int, limit: int) -> Page:
    """Slice a page; offsets past the end yield an empty page."""
    total = len(tasks)
    start = min(offset, total)
    return Page(tasks=tasks[start:start + limit], total=total, offset=offset, limit=limit)
