"""Data models for tasks, entries, meetings and daily rollups."""

from __future__ import annotations

import re
import threading
import time
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Optional


class TaskType(Enum):
    """Kind of work a task represents."""
    WORK = "work"
    LEARNING = "learning"
    PERSONAL = "personal"
    INVESTIGATION = "investigation"


class TaskStatus(Enum):
    """Lifecycle status of a task."""
    ACTIVE = "active"
    COMPLETED = "completed"
    PAUSED = "paused"
    BLOCKED = "blocked"


TASK_TYPES = [t.value for t in TaskType]
TASK_STATUSES = [s.value for s in TaskStatus]

# Entry types written by the journal itself
ENTRY_CREATION = "creation"
ENTRY_LOG = "log"
ENTRY_STATUS_CHANGE = "status_change"
ENTRY_IMPORTED = "imported"
ENTRY_ONE_ON_ONE = "one-on-one"

DATE_FORMAT = "%Y-%m-%d"

_RFC3339 = re.compile(
    r"^\d{4}-\d{2}-\d{2}[Tt]\d{2}:\d{2}:\d{2}(\.\d+)?([Zz]|[+-]\d{2}:\d{2})$"
)

_entry_id_lock = threading.Lock()
_last_entry_ns = 0


def utc_now() -> datetime:
    """Get current UTC time with timezone info."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def generate_entry_id() -> str:
    """Generate a time-derived entry ID, unique within this process."""
    global _last_entry_ns
    with _entry_id_lock:
        ns = max(time.time_ns(), _last_entry_ns + 1)
        _last_entry_ns = ns
    return f"entry_{ns}"


def format_timestamp(dt: datetime) -> str:
    """Format datetime as ISO 8601 with timezone."""
    return ensure_utc(dt).isoformat()


def parse_timestamp(s: str) -> datetime:
    """Parse a stored ISO 8601 timestamp string."""
    return ensure_utc(datetime.fromisoformat(s))


def parse_rfc3339(s: Any) -> Optional[datetime]:
    """Parse a strict RFC 3339 timestamp, or return None."""
    if not isinstance(s, str) or not s or not _RFC3339.match(s.strip()):
        return None
    try:
        return ensure_utc(datetime.fromisoformat(s.strip().upper()))
    except ValueError:
        return None


def parse_date(s: str) -> date:
    """Parse a YYYY-MM-DD date.

    Raises:
        ValueError: If the string is not a valid date in that form
    """
    if not isinstance(s, str) or not re.fullmatch(r"\d{4}-\d{2}-\d{2}", s):
        raise ValueError(f"not a YYYY-MM-DD date: {s!r}")
    return datetime.strptime(s, DATE_FORMAT).date()


def day_key(dt: datetime) -> str:
    """Date-keyed filename stem for a timestamp."""
    return ensure_utc(dt).strftime(DATE_FORMAT)


def derive_issue_id(issue_url: str) -> Optional[str]:
    """Extract an issue identifier from a GitHub or Jira URL."""
    parts = issue_url.split("/")
    if "github.com" in issue_url:
        if len(parts) >= 2:
            return parts[-1] or None
    elif "jira" in issue_url or "atlassian" in issue_url:
        for part in parts:
            if "-" in part and len(part) > 3:
                return part
    return None


@dataclass
class Entry:
    """A single timestamped note inside a task."""
    entry_id: str
    timestamp: datetime
    content: str
    entry_type: str = ENTRY_LOG

    def to_dict(self) -> dict:
        """Convert entry to dictionary for JSON serialization."""
        return {
            "id": self.entry_id,
            "timestamp": format_timestamp(self.timestamp),
            "content": self.content,
            "type": self.entry_type,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Entry":
        return cls(
            entry_id=data["id"],
            timestamp=parse_timestamp(data["timestamp"]),
            content=data.get("content", ""),
            entry_type=data.get("type") or ENTRY_LOG,
        )


@dataclass
class Task:
    """A unit of work with an append-only entry log."""
    task_id: str
    title: str
    task_type: str
    status: str = TaskStatus.ACTIVE.value
    tags: list[str] = field(default_factory=list)
    priority: Optional[str] = None
    issue_url: Optional[str] = None
    issue_id: Optional[str] = None
    created: datetime = field(default_factory=utc_now)
    updated: datetime = field(default_factory=utc_now)
    entries: list[Entry] = field(default_factory=list)

    def add_entry(self, content: str, entry_type: str = ENTRY_LOG,
                  timestamp: Optional[datetime] = None,
                  touch: bool = True) -> Entry:
        """Append an entry and bump the updated time."""
        entry = Entry(
            entry_id=generate_entry_id(),
            timestamp=timestamp or utc_now(),
            content=content,
            entry_type=entry_type,
        )
        self.entries.append(entry)
        if touch:
            self.updated = utc_now()
        return entry

    def to_dict(self) -> dict:
        """Convert task to dictionary for JSON serialization."""
        data = {
            "id": self.task_id,
            "title": self.title,
            "type": self.task_type,
            "tags": list(self.tags),
            "status": self.status,
        }
        # Optional fields are omitted when empty, as on disk
        if self.priority:
            data["priority"] = self.priority
        if self.issue_url:
            data["issue_url"] = self.issue_url
        if self.issue_id:
            data["issue_id"] = self.issue_id
        data["created"] = format_timestamp(self.created)
        data["updated"] = format_timestamp(self.updated)
        data["entries"] = [e.to_dict() for e in self.entries]
        return data

    def to_summary(self) -> dict:
        """Short form used in listings."""
        return {
            "id": self.task_id,
            "title": self.title,
            "type": self.task_type,
            "status": self.status,
            "priority": self.priority,
            "tags": list(self.tags),
            "issue_url": self.issue_url,
            "issue_id": self.issue_id,
            "created": format_timestamp(self.created),
            "updated": format_timestamp(self.updated),
            "entry_count": len(self.entries),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Task":
        status = data.get("status") or TaskStatus.ACTIVE.value
        if status not in TASK_STATUSES:
            raise ValueError(f"invalid status: {status}")
        return cls(
            task_id=data["id"],
            title=data.get("title", ""),
            task_type=data.get("type", ""),
            status=status,
            tags=list(data.get("tags") or []),
            priority=data.get("priority") or None,
            issue_url=data.get("issue_url") or None,
            issue_id=data.get("issue_id") or None,
            created=parse_timestamp(data["created"]),
            updated=parse_timestamp(data["updated"]),
            entries=[Entry.from_dict(e) for e in data.get("entries") or []],
        )


@dataclass
class OneOnOne:
    """Structured notes for a one-on-one meeting, keyed by date."""
    date: str
    insights: list[str] = field(default_factory=list)
    todos: list[str] = field(default_factory=list)
    feedback: list[str] = field(default_factory=list)
    notes: str = ""
    created: datetime = field(default_factory=utc_now)

    def searchable_text(self) -> str:
        return " ".join([self.notes, *self.insights, *self.todos, *self.feedback])

    def to_dict(self) -> dict:
        data: dict[str, Any] = {"date": self.date}
        if self.insights:
            data["insights"] = list(self.insights)
        if self.todos:
            data["todos"] = list(self.todos)
        if self.feedback:
            data["feedback"] = list(self.feedback)
        if self.notes:
            data["notes"] = self.notes
        data["created"] = format_timestamp(self.created)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "OneOnOne":
        parse_date(data["date"])
        return cls(
            date=data["date"],
            insights=list(data.get("insights") or []),
            todos=list(data.get("todos") or []),
            feedback=list(data.get("feedback") or []),
            notes=data.get("notes") or "",
            created=parse_timestamp(data["created"]) if data.get("created") else utc_now(),
        )


@dataclass
class DailyActivity:
    """Entries logged on one calendar date, grouped by task ID."""
    date: str
    tasks: dict[str, list[Entry]] = field(default_factory=dict)

    def add(self, task_id: str, entry: Entry) -> None:
        self.tasks.setdefault(task_id, []).append(entry)

    def entry_count(self) -> int:
        return sum(len(entries) for entries in self.tasks.values())

    def to_dict(self) -> dict:
        return {
            "date": self.date,
            "tasks": {
                task_id: [e.to_dict() for e in entries]
                for task_id, entries in self.tasks.items()
            },
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DailyActivity":
        return cls(
            date=data["date"],
            tasks={
                task_id: [Entry.from_dict(e) for e in entries or []]
                for task_id, entries in (data.get("tasks") or {}).items()
            },
        )


@dataclass
class ImportResult:
    """Outcome of a bulk import."""
    tasks_created: int = 0
    entries_added: int = 0
    duplicates_skipped: int = 0
    warnings: list[str] = field(default_factory=list)
    summary: str = ""

    def to_dict(self) -> dict:
        return {
            "tasks_created": self.tasks_created,
            "entries_added": self.entries_added,
            "duplicates_skipped": self.duplicates_skipped,
            "warnings": list(self.warnings),
            "summary": self.summary,
        }


@dataclass
class SearchHit:
    """One search match."""
    task_id: str
    task_title: str
    entry_id: Optional[str]
    timestamp: datetime
    content: str
    entry_type: str
    match: str  # task, entry, both or one-on-one
    excerpt: str = ""

    def to_dict(self) -> dict:
        return {
            "task_id": self.task_id,
            "task_title": self.task_title,
            "entry_id": self.entry_id,
            "timestamp": format_timestamp(self.timestamp),
            "content": self.content,
            "entry_type": self.entry_type,
            "match": self.match,
            "excerpt": self.excerpt,
        }


@dataclass
class Recommendation:
    """A heuristic suggestion about what to do next."""
    rec_type: str
    title: str
    description: str
    rationale: str
    priority: str
    confidence: float
    suggested_tags: list[str] = field(default_factory=list)
    task_id: Optional[str] = None

    def to_dict(self) -> dict:
        data = {
            "type": self.rec_type,
            "title": self.title,
            "description": self.description,
            "rationale": self.rationale,
            "priority": self.priority,
            "confidence": self.confidence,
            "suggested_tags": list(self.suggested_tags),
        }
        if self.task_id:
            data["task_id"] = self.task_id
        return data


@dataclass
class Trend:
    """Period-over-period change of one metric."""
    metric: str
    direction: str  # up, down, stable
    change: float
    period: str

    def to_dict(self) -> dict:
        return {
            "metric": self.metric,
            "direction": self.direction,
            "change": self.change,
            "period": self.period,
        }
