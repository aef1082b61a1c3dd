"""Markdown views of tasks, listings, logs, meetings and search results."""

from __future__ import annotations

from datetime import date, timedelta

from .filters import Page
from .models import DailyActivity, Entry, OneOnOne, SearchHit, Task


def _ts(entry: Entry) -> str:
    return entry.timestamp.strftime("%H:%M")


def _task_meta(task: Task) -> list[str]:
    meta = f"**Type:** {task.task_type} | **Status:** {task.status}"
    if task.priority:
        meta += f" | **Priority:** {task.priority}"
    lines = [meta]
    if task.tags:
        lines.append(f"**Tags:** {', '.join(task.tags)}")
    if task.issue_url:
        lines.append(f"**Issue:** [{task.issue_id or task.issue_url}]({task.issue_url})")
    return lines


def format_task(task: Task, heading_level: int = 1) -> str:
    """Render a task with its entries grouped by date, oldest first."""
    h = "#" * heading_level
    lines = [f"{h} {task.task_id}: {task.title}", *_task_meta(task)]
    lines.append(
        f"**Created:** {task.created.strftime('%Y-%m-%d %H:%M')} | "
        f"**Updated:** {task.updated.strftime('%Y-%m-%d %H:%M')}"
    )
    lines.append("")

    by_date: dict[str, list[Entry]] = {}
    for entry in task.entries:
        by_date.setdefault(entry.timestamp.strftime("%Y-%m-%d"), []).append(entry)

    for day in sorted(by_date):
        lines.append(f"{h}# {day}")
        for entry in sorted(by_date[day], key=lambda e: e.timestamp):
            lines.append(f"{h}## {_ts(entry)}")
            lines.append(entry.content)
            lines.append("")

    return "\n".join(lines)


def format_task_list(page: Page) -> str:
    lines = [
        f"# Task List (showing {page.showing_from}-{page.showing_to} of {page.total} total)",
        "",
    ]
    if not page.tasks:
        lines.append("No tasks found matching the criteria.")
        return "\n".join(lines)

    for task in page.tasks:
        lines.append(f"## {task.task_id}: {task.title}")
        lines.extend(_task_meta(task))
        lines.append(f"**Updated:** {task.updated.strftime('%Y-%m-%d %H:%M')}")
        lines.append("")
    return "\n".join(lines)


def format_daily_log(activity: DailyActivity, titles: dict[str, str]) -> str:
    lines = [f"# Daily Log: {activity.date}", ""]
    if not activity.tasks:
        lines.append("No activity recorded for this date.")
        return "\n".join(lines)

    for task_id in sorted(activity.tasks):
        title = titles.get(task_id)
        lines.append(f"## {task_id}: {title}" if title else f"## {task_id}")
        for entry in sorted(activity.tasks[task_id], key=lambda e: e.timestamp):
            lines.append(f"### {_ts(entry)}")
            lines.append(entry.content)
            lines.append("")
    return "\n".join(lines)


def format_weekly_log(start: date, days: list[DailyActivity], titles: dict[str, str]) -> str:
    end = start + timedelta(days=6)
    lines = [f"# Weekly Log: {start.isoformat()} to {end.isoformat()}", ""]
    tasks_worked: set[str] = set()
    total = 0

    for offset, activity in enumerate(days):
        current = start + timedelta(days=offset)
        lines.append(f"## {activity.date} ({current.strftime('%A')})")
        if not activity.tasks:
            lines.extend(["_No activity_", ""])
            continue
        for task_id in sorted(activity.tasks):
            entries = activity.tasks[task_id]
            tasks_worked.add(task_id)
            total += len(entries)
            title = titles.get(task_id)
            lines.append(f"### {task_id}: {title}" if title else f"### {task_id}")
            for entry in sorted(entries, key=lambda e: e.timestamp):
                lines.append(f"- {_ts(entry)}: {entry.content}")
            lines.append("")

    lines.append("## Weekly Summary")
    lines.append(f"- **Total entries:** {total}")
    lines.append(f"- **Tasks worked on:** {len(tasks_worked)}")
    if tasks_worked:
        lines.append(f"- **Tasks:** {', '.join(sorted(tasks_worked))}")
    return "\n".join(lines)


def format_one_on_one(meeting: OneOnOne, heading_level: int = 2) -> str:
    lines = [f"{'#' * heading_level} {meeting.date}"]
    if meeting.insights:
        lines.append("**Insights:**")
        lines.extend(f"- {item}" for item in meeting.insights)
        lines.append("")
    if meeting.todos:
        lines.append("**Action Items:**")
        lines.extend(f"- [ ] {item}" for item in meeting.todos)
        lines.append("")
    if meeting.feedback:
        lines.append("**Feedback:**")
        lines.extend(f"- {item}" for item in meeting.feedback)
        lines.append("")
    if meeting.notes:
        lines.extend(["**Notes:**", meeting.notes, ""])
    return "\n".join(lines)


def format_one_on_one_history(meetings: list[OneOnOne]) -> str:
    lines = ["# One-on-One History", ""]
    if not meetings:
        lines.append("No one-on-one meetings recorded yet.")
        return "\n".join(lines)
    for meeting in meetings:
        lines.append(format_one_on_one(meeting))
        lines.extend(["---", ""])
    return "\n".join(lines)


def format_search_results(query: str, hits: list[SearchHit]) -> str:
    lines = [f'# Search Results for "{query}"', ""]
    if not hits:
        lines.append("No matching entries found.")
        return "\n".join(lines)

    lines.extend([f"Found {len(hits)} matching entries:", ""])
    for hit in hits:
        lines.append(f"## {hit.task_id}: {hit.task_title}")
        lines.append(f"**Date:** {hit.timestamp.strftime('%Y-%m-%d %H:%M')} | **Context:** {hit.match}")
        lines.append("")
        lines.append(hit.excerpt)
        lines.extend(["", "---", ""])
    return "\n".join(lines)
