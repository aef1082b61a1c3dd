"""Export tasks and meetings as JSON, markdown or CSV."""

from __future__ import annotations

import csv
import io
import json
from dataclasses import replace
from typing import Iterable, Optional

from .filters import date_window, in_window, parse_date_safely
from .formatting import format_one_on_one, format_task
from .models import OneOnOne, Task, format_timestamp, utc_now

EXPORT_FORMATS = ["json", "markdown", "csv"]

CSV_HEADER = ["Type", "Date", "Time", "Task_ID", "Task_Title", "Content", "Entry_Type"]


def select_for_export(
    tasks: Iterable[Task],
    one_on_ones: Iterable[OneOnOne],
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
    task_filter: Optional[str] = None,
) -> tuple[list[Task], list[OneOnOne]]:
    """Apply export filters.

    With a date range, tasks keep only their in-range entries and tasks left
    with none are dropped. Malformed dates are ignored.
    """
    start, end = date_window(date_from, date_to)
    ranged = start is not None or end is not None

    selected = []
    for task in tasks:
        if task_filter and task.task_type != task_filter:
            continue
        if not ranged:
            selected.append(task)
            continue
        entries = [e for e in task.entries if in_window(e.timestamp, start, end)]
        if entries:
            selected.append(replace(task, entries=entries))

    meetings = []
    for meeting in one_on_ones:
        meeting_ts = parse_date_safely(meeting.date)
        if meeting_ts is not None and not in_window(meeting_ts, start, end):
            continue
        meetings.append(meeting)

    return selected, meetings


def export_json(tasks: list[Task], one_on_ones: list[OneOnOne]) -> str:
    payload = {
        "tasks": [t.to_dict() for t in tasks],
        "one_on_ones": [m.to_dict() for m in one_on_ones],
        "exported_at": format_timestamp(utc_now()),
    }
    return json.dumps(payload, indent=2, ensure_ascii=False)


def export_markdown(tasks: list[Task], one_on_ones: list[OneOnOne]) -> str:
    lines = [
        "# Journal Export",
        "",
        f"Exported on: {utc_now().strftime('%Y-%m-%d %H:%M')}",
        "",
    ]
    if tasks:
        lines.extend(["## Tasks", ""])
        for task in tasks:
            lines.append(format_task(task, heading_level=3))
            lines.extend(["---", ""])
    if one_on_ones:
        lines.extend(["## One-on-One Meetings", ""])
        for meeting in one_on_ones:
            lines.append(format_one_on_one(meeting, heading_level=3))
    return "\n".join(lines)


def export_csv(tasks: list[Task], one_on_ones: list[OneOnOne]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(CSV_HEADER)

    for task in tasks:
        for entry in task.entries:
            writer.writerow([
                "task",
                entry.timestamp.strftime("%Y-%m-%d"),
                entry.timestamp.strftime("%H:%M"),
                task.task_id,
                task.title,
                entry.content,
                entry.entry_type,
            ])

    for meeting in one_on_ones:
        content = meeting.notes
        if meeting.insights:
            content += " | Insights: " + "; ".join(meeting.insights)
        if meeting.todos:
            content += " | Todos: " + "; ".join(meeting.todos)
        writer.writerow([
            "one-on-one", meeting.date, "00:00", "one-on-one",
            "One-on-One Meeting", content, "meeting",
        ])

    return buf.getvalue()


EXPORTERS = {
    "json": export_json,
    "markdown": export_markdown,
    "csv": export_csv,
}
