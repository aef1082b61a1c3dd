"""Case-insensitive substring search over tasks, entries and meetings."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, Optional

from .filters import date_window, in_window
from .models import ENTRY_ONE_ON_ONE, OneOnOne, SearchHit, Task, parse_date

EXCERPT_THRESHOLD = 200
EXCERPT_BEFORE = 50
EXCERPT_AFTER = 100


def make_excerpt(content: str, query: str) -> str:
    """Cut long content to a window around the first match."""
    if len(content) <= EXCERPT_THRESHOLD:
        return content
    pos = content.lower().find(query)
    if pos < 0:
        return content[:EXCERPT_THRESHOLD] + "..."
    start = max(0, pos - EXCERPT_BEFORE)
    end = min(len(content), pos + len(query) + EXCERPT_AFTER)
    return "..." + content[start:end] + "..."


def search_entries(
    tasks: Iterable[Task],
    query: str,
    task_type: Optional[str] = None,
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
    one_on_ones: Iterable[OneOnOne] = (),
) -> list[SearchHit]:
    """Search task titles, entry contents and meeting notes.

    A task whose title matches contributes every entry in the date window;
    otherwise only matching entries are returned. Results are ordered newest
    first.

    Args:
        tasks: Tasks to search
        query: Substring to look for, compared case-insensitively
        task_type: Only search tasks of this type
        date_from: Lenient YYYY-MM-DD lower bound on entry timestamps
        date_to: Lenient YYYY-MM-DD upper bound, inclusive of the whole day
        one_on_ones: Meeting records to search as well

    Returns:
        List of SearchHit
    """
    needle = query.lower()
    start, end = date_window(date_from, date_to)
    hits: list[SearchHit] = []

    for task in tasks:
        if task_type and task.task_type != task_type:
            continue

        title_matches = needle in task.title.lower()

        for entry in task.entries:
            if not in_window(entry.timestamp, start, end):
                continue

            entry_matches = needle in entry.content.lower()
            if not (title_matches or entry_matches):
                continue

            if title_matches and entry_matches:
                match = "both"
            elif entry_matches:
                match = "entry"
            else:
                match = "task"

            hits.append(SearchHit(
                task_id=task.task_id,
                task_title=task.title,
                entry_id=entry.entry_id,
                timestamp=entry.timestamp,
                content=entry.content,
                entry_type=entry.entry_type,
                match=match,
                excerpt=make_excerpt(entry.content, needle),
            ))

    for meeting in one_on_ones:
        try:
            d = parse_date(meeting.date)
        except ValueError:
            continue
        meeting_ts = datetime(d.year, d.month, d.day, tzinfo=timezone.utc)
        if not in_window(meeting_ts, start, end):
            continue
        if needle not in meeting.searchable_text().lower():
            continue
        content = meeting.notes or meeting.searchable_text().strip()
        hits.append(SearchHit(
            task_id=ENTRY_ONE_ON_ONE,
            task_title=f"One-on-One: {meeting.date}",
            entry_id=None,
            timestamp=meeting_ts,
            content=content,
            entry_type=ENTRY_ONE_ON_ONE,
            match=ENTRY_ONE_ON_ONE,
            excerpt=make_excerpt(content, needle),
        ))

    hits.sort(key=lambda h: h.timestamp, reverse=True)
    return hits
