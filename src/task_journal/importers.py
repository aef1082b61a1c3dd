"""Bulk import of journal data from plain text, markdown, JSON and CSV.

Each format adapter turns raw text into a list of unsaved tasks plus
warnings. Problems with a single line, row or task become warnings; only
conditions that make the whole payload unusable raise ValidationError.
"""

from __future__ import annotations

import csv
import io
import json
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from .errors import ValidationError
from .models import (
    ENTRY_CREATION,
    ENTRY_IMPORTED,
    TASK_STATUSES,
    TASK_TYPES,
    ImportResult,
    Task,
    derive_issue_id,
    parse_rfc3339,
    utc_now,
)
from .store import TaskStore

logger = logging.getLogger(__name__)

IMPORT_FORMATS = ["txt", "markdown", "json", "csv"]
FORMAT_ALIASES = {"md": "markdown", "text": "txt"}


# ========== Date extraction ==========

@dataclass(frozen=True)
class DateMatcher:
    """One embedded-date pattern and the strptime format that reads it."""
    pattern: re.Pattern
    fmt: str

    def parse(self, text: str) -> Optional[tuple[datetime, str]]:
        """Return (timestamp, text without the token) or None."""
        m = self.pattern.search(text)
        if not m:
            return None
        try:
            token = m.group(0).replace("T", " ")
            ts = datetime.strptime(token, self.fmt).replace(tzinfo=timezone.utc)
        except ValueError:
            return None
        remainder = (text[:m.start()] + " " + text[m.end():]).strip()
        return ts, re.sub(r"\s{2,}", " ", remainder)


# First success wins, so longer forms come before their prefixes
DATE_MATCHERS = [
    DateMatcher(re.compile(r"\b\d{4}-\d{2}-\d{2}[ T]\d{2}:\d{2}\b"), "%Y-%m-%d %H:%M"),
    DateMatcher(re.compile(r"\b\d{4}-\d{2}-\d{2}\b"), "%Y-%m-%d"),
    DateMatcher(re.compile(r"\b\d{2}/\d{2}/\d{4} \d{2}:\d{2}\b"), "%m/%d/%Y %H:%M"),
    DateMatcher(re.compile(r"\b\d{2}/\d{2}/\d{4}\b"), "%m/%d/%Y"),
]


def extract_timestamp(line: str) -> tuple[Optional[datetime], str]:
    """Find a date token in a line.

    Returns:
        (timestamp or None, content with the token removed)
    """
    for matcher in DATE_MATCHERS:
        result = matcher.parse(line)
        if result is not None:
            return result
    return None, line.strip()


def parse_date_value(value: str) -> Optional[datetime]:
    """Parse a whole CSV cell as a timestamp."""
    value = value.strip()
    if not value:
        return None
    ts = parse_rfc3339(value)
    if ts is not None:
        return ts
    for matcher in DATE_MATCHERS:
        m = matcher.pattern.fullmatch(value)
        if m:
            try:
                return datetime.strptime(value.replace("T", " "), matcher.fmt).replace(tzinfo=timezone.utc)
            except ValueError:
                return None
    return None


def slugify(text: str) -> str:
    """Turn a title into a filename-safe ID fragment."""
    slug = re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")
    return slug[:60].rstrip("-") or "untitled"


# ========== Adapters ==========

@dataclass
class ParsedImport:
    """Tasks built from an import payload, before saving."""
    tasks: list[Task] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    imported_entries: int = 0
    # IDs made up from the clock rather than the payload; renamed on collision
    fresh_ids: set[str] = field(default_factory=set)

    def new_task(self, task_id: str, title: str, task_type: str) -> Task:
        task = Task(task_id=task_id, title=title, task_type=task_type)
        self.tasks.append(task)
        return task

    def add_entry(self, task: Task, content: str, timestamp: Optional[datetime]) -> None:
        task.add_entry(content, entry_type=ENTRY_IMPORTED, timestamp=timestamp, touch=False)
        self.imported_entries += 1


class _IdAllocator:
    """Hands out task IDs that are unique within one import."""

    def __init__(self, prefix: str):
        self.prefix = prefix
        self._seen: dict[str, int] = {}

    def __call__(self, fragment: str) -> str:
        base = f"{self.prefix}-{fragment}"
        n = self._seen.get(base, 0) + 1
        self._seen[base] = n
        return base if n == 1 else f"{base}-{n}"


def parse_txt(content: str, prefix: str, default_type: str) -> ParsedImport:
    """Every non-blank line becomes an entry of one task."""
    parsed = ParsedImport()
    stamp = utc_now().strftime("%Y%m%d-%H%M%S")
    task = parsed.new_task(f"{prefix}-{stamp}", "Imported text", default_type)
    parsed.fresh_ids.add(task.task_id)

    for lineno, raw in enumerate(content.splitlines(), start=1):
        line = raw.strip()
        if not line:
            continue
        ts, text = extract_timestamp(line)
        if not text:
            parsed.warnings.append(f"line {lineno}: date without content, skipped")
            continue
        parsed.add_entry(task, text, ts)

    return parsed


_LIST_MARKER = re.compile(r"^[-*+]\s+")


def parse_markdown(content: str, prefix: str, default_type: str) -> ParsedImport:
    """Headers start tasks; other lines are entries of the latest task."""
    parsed = ParsedImport()
    allocate = _IdAllocator(prefix)
    current: Optional[Task] = None

    for lineno, raw in enumerate(content.splitlines(), start=1):
        line = raw.strip()
        if not line:
            continue

        if line.startswith("#"):
            title = line.lstrip("#").strip()
            if not title:
                parsed.warnings.append(f"line {lineno}: empty header, skipped")
                continue
            current = parsed.new_task(allocate(slugify(title)), title, default_type)
            continue

        if current is None:
            current = parsed.new_task(allocate("notes"), "Imported notes", default_type)

        ts, text = extract_timestamp(_LIST_MARKER.sub("", line))
        if not text:
            parsed.warnings.append(f"line {lineno}: date without content, skipped")
            continue
        parsed.add_entry(current, text, ts)

    return parsed


def _task_from_export(item: Any, index: int, allocate: _IdAllocator,
                      default_type: str, parsed: ParsedImport) -> None:
    if not isinstance(item, dict):
        parsed.warnings.append(f"task {index}: not an object, skipped")
        return

    title = item.get("title") or item.get("id")
    if not isinstance(title, str) or not title.strip():
        parsed.warnings.append(f"task {index}: missing title, skipped")
        return

    task_type = item.get("type") if item.get("type") in TASK_TYPES else default_type
    task = parsed.new_task(allocate(slugify(str(item.get("id") or title))), title, task_type)

    if item.get("status") in TASK_STATUSES:
        task.status = item["status"]
    tags = item.get("tags")
    if isinstance(tags, list):
        task.tags = [str(t) for t in tags]
    if isinstance(item.get("priority"), str) and item["priority"]:
        task.priority = item["priority"]
    if isinstance(item.get("issue_url"), str) and item["issue_url"]:
        task.issue_url = item["issue_url"]
        task.issue_id = item.get("issue_id") or derive_issue_id(item["issue_url"])
    for attr in ("created", "updated"):
        ts = parse_rfc3339(item.get(attr))
        if ts is not None:
            setattr(task, attr, ts)
        elif item.get(attr) not in (None, ""):
            parsed.warnings.append(f"task {index}: invalid {attr} timestamp, using now")

    entries = item.get("entries") or []
    if not isinstance(entries, list):
        parsed.warnings.append(f"task {index}: entries is not a list, ignored")
        entries = []
    for n, raw in enumerate(entries, start=1):
        if not isinstance(raw, dict) or not isinstance(raw.get("content"), str):
            parsed.warnings.append(f"task {index} entry {n}: missing content, skipped")
            continue
        ts = parse_rfc3339(raw.get("timestamp"))
        if ts is None and raw.get("timestamp") not in (None, ""):
            parsed.warnings.append(f"task {index} entry {n}: invalid timestamp, using now")
        parsed.add_entry(task, raw["content"], ts)


def parse_json(content: str, prefix: str, default_type: str) -> ParsedImport:
    """Read the export shape, or wrap any other JSON as a single entry."""
    try:
        payload = json.loads(content)
    except json.JSONDecodeError as e:
        raise ValidationError(f"Invalid JSON content: {e}") from e

    parsed = ParsedImport()
    allocate = _IdAllocator(prefix)

    if isinstance(payload, dict) and isinstance(payload.get("tasks"), list):
        for index, item in enumerate(payload["tasks"], start=1):
            _task_from_export(item, index, allocate, default_type, parsed)
        return parsed

    task = parsed.new_task(allocate("json"), "Imported JSON data", default_type)
    parsed.add_entry(task, json.dumps(payload, indent=2, ensure_ascii=False), None)
    return parsed


CSV_ROLES = {
    "title": ["title", "task", "name"],
    "date": ["date", "timestamp", "time"],
    "content": ["content", "description", "notes", "entry"],
}


def _find_column(names: list[str], keywords: list[str], taken: set[int]) -> Optional[int]:
    for exact in (True, False):
        for keyword in keywords:
            for i, name in enumerate(names):
                if i in taken:
                    continue
                if (name == keyword) if exact else (keyword in name):
                    return i
    return None


def detect_columns(header: list[str]) -> dict[str, int]:
    """Map column roles to indexes; exact names win over substrings."""
    names = [h.strip().lower() for h in header]
    roles: dict[str, int] = {}
    for role, keywords in CSV_ROLES.items():
        index = _find_column(names, keywords, set(roles.values()))
        if index is not None:
            roles[role] = index
    return roles


def parse_csv(content: str, prefix: str, default_type: str) -> ParsedImport:
    """Group rows by title into tasks; one row is one entry."""
    rows = list(csv.reader(io.StringIO(content, newline="")))
    if not rows:
        raise ValidationError("CSV content has no header row")

    columns = detect_columns(rows[0])
    if "content" not in columns:
        raise ValidationError("CSV must have a content column (content, description, notes or entry)")

    parsed = ParsedImport()
    by_title: dict[str, Task] = {}
    allocate = _IdAllocator(prefix)
    width = len(rows[0])

    for lineno, row in enumerate(rows[1:], start=2):
        if not any(cell.strip() for cell in row):
            continue
        if len(row) > width:
            parsed.warnings.append(f"row {lineno}: {len(row)} columns, expected {width}; skipped")
            continue
        row = row + [""] * (width - len(row))

        text = row[columns["content"]].strip()
        if not text:
            parsed.warnings.append(f"row {lineno}: empty content, skipped")
            continue

        title = row[columns["title"]].strip() if "title" in columns else ""
        title = title or "CSV import"
        task = by_title.get(title)
        if task is None:
            task = parsed.new_task(allocate(slugify(title)), title, default_type)
            by_title[title] = task

        ts = None
        if "date" in columns and row[columns["date"]].strip():
            ts = parse_date_value(row[columns["date"]])
            if ts is None:
                parsed.warnings.append(f"row {lineno}: unrecognized date, using now")
        parsed.add_entry(task, text, ts)

    return parsed


ADAPTERS: dict[str, Callable[[str, str, str], ParsedImport]] = {
    "txt": parse_txt,
    "markdown": parse_markdown,
    "json": parse_json,
    "csv": parse_csv,
}


# ========== Pipeline ==========

def _free_id(store: TaskStore, task_id: str) -> str:
    candidate, n = task_id, 1
    while store.task_exists(candidate):
        n += 1
        candidate = f"{task_id}-{n}"
    return candidate


def normalize_format(fmt: Optional[str]) -> str:
    if not fmt:
        raise ValidationError("format is required")
    fmt = FORMAT_ALIASES.get(fmt.lower(), fmt.lower())
    if fmt not in ADAPTERS:
        raise ValidationError(f"format must be one of: {', '.join(IMPORT_FORMATS)}")
    return fmt


def import_data(store: TaskStore, content: str, fmt: str, prefix: str,
                default_type: str) -> ImportResult:
    """Parse a payload and save the resulting tasks.

    Tasks whose ID is already stored are skipped and counted as duplicates.

    Raises:
        ValidationError: On fatal problems with the payload or arguments
    """
    if not content or not content.strip():
        raise ValidationError("content is required")
    fmt = normalize_format(fmt)
    if default_type not in TASK_TYPES:
        raise ValidationError(f"default_type must be one of: {', '.join(TASK_TYPES)}")

    parsed = ADAPTERS[fmt](content, prefix, default_type)
    result = ImportResult(warnings=list(parsed.warnings))

    for task in parsed.tasks:
        if task.task_id in parsed.fresh_ids:
            task.task_id = _free_id(store, task.task_id)
        if store.task_exists(task.task_id):
            result.duplicates_skipped += 1
            result.warnings.append(f"task {task.task_id} already exists, skipped")
            continue

        imported = [e for e in task.entries if e.entry_type == ENTRY_IMPORTED]
        if not task.entries:
            task.add_entry(f"Task imported: {task.title}", entry_type=ENTRY_CREATION, touch=False)
        else:
            timestamps = [e.timestamp for e in task.entries]
            task.created = min([task.created, *timestamps])
            task.updated = max([task.updated, *timestamps])

        store.save_task(task)
        for entry in task.entries:
            store.append_to_daily_log(task.task_id, entry)
        result.tasks_created += 1
        result.entries_added += len(imported)

    for warning in result.warnings:
        logger.debug("import warning: %s", warning)

    result.summary = (
        f"Imported {result.tasks_created} task(s) with {result.entries_added} "
        f"entr{'y' if result.entries_added == 1 else 'ies'} from {fmt}"
    )
    if result.duplicates_skipped:
        result.summary += f"; {result.duplicates_skipped} duplicate(s) skipped"
    if result.warnings:
        result.summary += f"; {len(result.warnings)} warning(s)"
    return result
