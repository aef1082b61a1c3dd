"""Tests for export formats and markdown views."""

import csv
import io
import json
from datetime import date

from task_journal.exporters import (
    CSV_HEADER,
    export_csv,
    export_json,
    export_markdown,
    select_for_export,
)
from task_journal.filters import paginate
from task_journal.formatting import (
    format_daily_log,
    format_one_on_one_history,
    format_task,
    format_task_list,
    format_weekly_log,
)
from task_journal.models import DailyActivity, OneOnOne

from conftest import make_task, utc


def _tasks():
    return [
        make_task("W-1", title="Work item", task_type="work", tags=["api"], entries=[
            (utc(2025, 1, 10, 9), "first"),
            (utc(2025, 1, 20, 9), "later"),
        ]),
        make_task("L-1", title="Study", task_type="learning", entries=[
            (utc(2025, 1, 5, 9), "early study"),
        ]),
    ]


def _meetings():
    return [
        OneOnOne(date="2025-01-08", insights=["ship smaller"], todos=["write RFC"],
                 notes="Good sync", created=utc(2025, 1, 8)),
        OneOnOne(date="2025-01-22", notes="Later sync", created=utc(2025, 1, 22)),
    ]


class TestSelection:
    """Tests for select_for_export."""

    def test_no_filters(self):
        tasks, meetings = select_for_export(_tasks(), _meetings())
        assert len(tasks) == 2
        assert len(meetings) == 2

    def test_task_filter(self):
        tasks, _ = select_for_export(_tasks(), _meetings(), task_filter="learning")
        assert [t.task_id for t in tasks] == ["L-1"]

    def test_date_range_trims_entries(self):
        """Tasks keep only in-range entries and vanish when none remain."""
        tasks, meetings = select_for_export(
            _tasks(), _meetings(), date_from="2025-01-08", date_to="2025-01-15",
        )
        assert [t.task_id for t in tasks] == ["W-1"]
        assert [e.content for e in tasks[0].entries] == ["first"]
        assert [m.date for m in meetings] == ["2025-01-08"]

    def test_trimming_does_not_mutate_input(self):
        source = _tasks()
        select_for_export(source, [], date_from="2025-01-15")
        assert len(source[0].entries) == 2


class TestJsonExport:
    def test_shape(self):
        payload = json.loads(export_json(_tasks(), _meetings()))
        assert set(payload) == {"tasks", "one_on_ones", "exported_at"}
        assert payload["tasks"][0]["id"] == "W-1"
        assert payload["one_on_ones"][0]["todos"] == ["write RFC"]


class TestCsvExport:
    """Tests for export_csv."""

    def test_header_and_rows(self):
        rows = list(csv.reader(io.StringIO(export_csv(_tasks(), _meetings()))))
        assert rows[0] == CSV_HEADER
        assert rows[1] == ["task", "2025-01-10", "09:00", "W-1", "Work item", "first", "log"]
        assert len(rows) == 1 + 3 + 2

    def test_meeting_row(self):
        rows = list(csv.reader(io.StringIO(export_csv([], _meetings()[:1]))))
        assert rows[1][0] == "one-on-one"
        assert rows[1][5] == "Good sync | Insights: ship smaller | Todos: write RFC"

    def test_commas_and_quotes_escaped(self):
        task = make_task("Q-1", title='Say "hi", please',
                         entries=[(utc(2025, 1, 1), "a, b")])
        rows = list(csv.reader(io.StringIO(export_csv([task], []))))
        assert rows[1][4] == 'Say "hi", please'
        assert rows[1][5] == "a, b"


class TestMarkdown:
    """Tests for markdown rendering."""

    def test_export_sections(self):
        text = export_markdown(_tasks(), _meetings())
        assert text.startswith("# Journal Export")
        assert "## Tasks" in text
        assert "### W-1: Work item" in text
        assert "## One-on-One Meetings" in text
        assert "- [ ] write RFC" in text

    def test_task_grouped_by_date(self):
        text = format_task(_tasks()[0])
        assert "# W-1: Work item" in text
        assert "**Tags:** api" in text
        assert text.index("## 2025-01-10") < text.index("## 2025-01-20")
        assert "### 09:00" in text

    def test_issue_link(self):
        task = make_task("I-1")
        task.issue_url = "https://github.com/org/repo/issues/5"
        task.issue_id = "5"
        assert "[5](https://github.com/org/repo/issues/5)" in format_task(task)

    def test_task_list_header(self):
        text = format_task_list(paginate(_tasks(), 0, 1))
        assert text.startswith("# Task List (showing 1-1 of 2 total)")

    def test_task_list_empty(self):
        assert "No tasks found" in format_task_list(paginate([], 0, 50))

    def test_daily_log(self):
        activity = DailyActivity(date="2025-01-10")
        activity.add("W-1", _tasks()[0].entries[0])
        text = format_daily_log(activity, {"W-1": "Work item"})
        assert "# Daily Log: 2025-01-10" in text
        assert "## W-1: Work item" in text

    def test_weekly_log_summary(self):
        days = [DailyActivity(date=f"2025-01-{13 + i:02d}") for i in range(7)]
        days[1].add("W-1", _tasks()[0].entries[0])
        text = format_weekly_log(date(2025, 1, 13), days, {})
        assert "# Weekly Log: 2025-01-13 to 2025-01-19" in text
        assert "## 2025-01-14 (Tuesday)" in text
        assert "- **Total entries:** 1" in text
        assert text.count("_No activity_") == 6

    def test_history_empty(self):
        assert "No one-on-one meetings" in format_one_on_one_history([])
