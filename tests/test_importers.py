"""Tests for the import pipeline and its format adapters."""

import json

import pytest

from task_journal.errors import ValidationError
from task_journal.importers import (
    detect_columns,
    extract_timestamp,
    import_data,
    normalize_format,
    parse_csv,
    parse_date_value,
    parse_json,
    parse_markdown,
    parse_txt,
    slugify,
)

from conftest import make_task, utc


class TestDateExtraction:
    """Tests for embedded date detection."""

    @pytest.mark.parametrize("line,expected,rest", [
        ("2025-01-15 09:30 Fixed the bug", utc(2025, 1, 15, 9, 30), "Fixed the bug"),
        ("2025-01-15T09:30 Fixed the bug", utc(2025, 1, 15, 9, 30), "Fixed the bug"),
        ("2025-01-15 Fixed the bug", utc(2025, 1, 15), "Fixed the bug"),
        ("01/15/2025 14:05 Standup", utc(2025, 1, 15, 14, 5), "Standup"),
        ("Standup notes 01/15/2025", utc(2025, 1, 15), "Standup notes"),
    ])
    def test_formats(self, line, expected, rest):
        ts, text = extract_timestamp(line)
        assert ts == expected
        assert text == rest

    def test_no_date(self):
        assert extract_timestamp("  just text  ") == (None, "just text")

    def test_invalid_calendar_date_is_not_a_date(self):
        ts, text = extract_timestamp("2025-13-45 weird")
        assert ts is None

    def test_content_t_preserved(self):
        """Only the date token is rewritten, never the rest of the line."""
        _, text = extract_timestamp("2025-01-15T09:30 Tested Twice")
        assert text == "Tested Twice"

    @pytest.mark.parametrize("value,expected", [
        ("2025-01-15T09:30:00Z", utc(2025, 1, 15, 9, 30)),
        ("2025-01-15 09:30", utc(2025, 1, 15, 9, 30)),
        ("2025-01-15", utc(2025, 1, 15)),
        ("01/15/2025", utc(2025, 1, 15)),
        ("next tuesday", None),
        ("", None),
    ])
    def test_parse_date_value(self, value, expected):
        assert parse_date_value(value) == expected


class TestFormatNames:
    @pytest.mark.parametrize("fmt,expected", [
        ("txt", "txt"), ("text", "txt"), ("md", "markdown"), ("Markdown", "markdown"),
        ("JSON", "json"), ("csv", "csv"),
    ])
    def test_aliases(self, fmt, expected):
        assert normalize_format(fmt) == expected

    def test_unknown(self):
        with pytest.raises(ValidationError, match="format must be one of: txt, markdown, json, csv"):
            normalize_format("xml")

    def test_missing(self):
        with pytest.raises(ValidationError, match="format is required"):
            normalize_format("")


class TestTextAdapter:
    """Tests for parse_txt."""

    def test_one_task_many_entries(self):
        parsed = parse_txt("2025-01-15 first\n\nsecond line\n", "IMPORT", "work")
        assert len(parsed.tasks) == 1
        task = parsed.tasks[0]
        assert task.task_id.startswith("IMPORT-")
        assert [e.content for e in task.entries] == ["first", "second line"]
        assert task.entries[0].timestamp == utc(2025, 1, 15)
        assert all(e.entry_type == "imported" for e in task.entries)
        assert parsed.imported_entries == 2

    def test_date_only_line_warns(self):
        parsed = parse_txt("2025-01-15\nreal entry", "IMPORT", "work")
        assert len(parsed.tasks[0].entries) == 1
        assert parsed.warnings == ["line 1: date without content, skipped"]


class TestMarkdownAdapter:
    """Tests for parse_markdown."""

    def test_headers_start_tasks(self):
        content = (
            "# API Refactor\n"
            "- 2025-01-10 Split the handlers\n"
            "* Added tests\n"
            "## Learning Go\n"
            "+ 01/12/2025 Read the tour\n"
        )
        parsed = parse_markdown(content, "NOTES", "learning")
        assert [t.title for t in parsed.tasks] == ["API Refactor", "Learning Go"]
        assert [t.task_id for t in parsed.tasks] == ["NOTES-api-refactor", "NOTES-learning-go"]
        assert [e.content for e in parsed.tasks[0].entries] == ["Split the handlers", "Added tests"]
        assert parsed.tasks[1].entries[0].timestamp == utc(2025, 1, 12)
        assert all(t.task_type == "learning" for t in parsed.tasks)

    def test_lines_before_header(self):
        parsed = parse_markdown("loose note\n# Real\nx", "IMPORT", "work")
        assert parsed.tasks[0].task_id == "IMPORT-notes"
        assert parsed.tasks[0].title == "Imported notes"

    def test_repeated_header_gets_suffix(self):
        parsed = parse_markdown("# Notes\na\n# Notes\nb", "IMPORT", "work")
        assert [t.task_id for t in parsed.tasks] == ["IMPORT-notes", "IMPORT-notes-2"]

    def test_empty_header_warns(self):
        parsed = parse_markdown("#\nx", "IMPORT", "work")
        assert "line 1: empty header, skipped" in parsed.warnings


class TestJsonAdapter:
    """Tests for parse_json."""

    def test_export_shape(self):
        exported = {
            "tasks": [make_task(
                "MDU-1", title="Fix login", task_type="investigation", status="completed",
                tags=["auth"], priority="high",
                entries=[(utc(2025, 1, 2, 10), "root cause found")],
            ).to_dict()],
            "one_on_ones": [],
        }
        parsed = parse_json(json.dumps(exported), "IMPORT", "work")
        task = parsed.tasks[0]
        assert task.task_id == "IMPORT-mdu-1"
        assert task.title == "Fix login"
        assert task.task_type == "investigation"
        assert task.status == "completed"
        assert task.tags == ["auth"]
        assert task.entries[0].timestamp == utc(2025, 1, 2, 10)

    def test_bad_items_warn(self):
        payload = {"tasks": ["oops", {"entries": []}, {"title": "ok", "entries": [{"x": 1}]}]}
        parsed = parse_json(json.dumps(payload), "IMPORT", "work")
        assert [t.title for t in parsed.tasks] == ["ok"]
        assert len(parsed.warnings) == 3

    def test_unknown_type_uses_default(self):
        parsed = parse_json(json.dumps({"tasks": [{"title": "x", "type": "chores"}]}), "P", "personal")
        assert parsed.tasks[0].task_type == "personal"

    def test_other_json_wrapped(self):
        parsed = parse_json('{"anything": [1, 2]}', "IMPORT", "work")
        assert parsed.tasks[0].title == "Imported JSON data"
        assert '"anything"' in parsed.tasks[0].entries[0].content

    @pytest.mark.parametrize("value", [1700000000, ["2025-01-02"], 5.5])
    def test_non_string_timestamps_warn(self, value):
        payload = {"tasks": [
            {"title": "good", "entries": [{"content": "a", "timestamp": "2025-01-02T10:00:00Z"}]},
            {"title": "odd", "created": value, "updated": value,
             "entries": [{"content": "b", "timestamp": value}]},
        ]}
        parsed = parse_json(json.dumps(payload), "IMPORT", "work")
        assert [t.title for t in parsed.tasks] == ["good", "odd"]
        assert parsed.tasks[1].entries[0].content == "b"
        assert parsed.warnings == [
            "task 2: invalid created timestamp, using now",
            "task 2: invalid updated timestamp, using now",
            "task 2 entry 1: invalid timestamp, using now",
        ]

    def test_invalid_json_is_fatal(self):
        with pytest.raises(ValidationError, match="Invalid JSON"):
            parse_json("{nope", "IMPORT", "work")


class TestCsvAdapter:
    """Tests for parse_csv."""

    def test_detect_columns(self):
        assert detect_columns(["Date", "Task Name", "Notes"]) == {"title": 1, "date": 0, "content": 2}

    def test_exact_name_beats_substring(self):
        # "timestamp" contains "time" but the exact "date" column wins
        assert detect_columns(["timestamp", "date", "content"])["date"] == 1

    def test_rows_grouped_by_title(self):
        content = (
            "title,date,content\n"
            "API work,2025-01-10,Designed endpoints\n"
            '"API work",2025-01-11,"Wrote handlers, tests"\n'
            "Docs,,Updated README\n"
        )
        parsed = parse_csv(content, "CSV", "work")
        assert [t.title for t in parsed.tasks] == ["API work", "Docs"]
        assert [e.content for e in parsed.tasks[0].entries] == [
            "Designed endpoints", "Wrote handlers, tests",
        ]
        assert parsed.tasks[0].entries[1].timestamp == utc(2025, 1, 11)
        assert parsed.warnings == []

    def test_quoted_field_keeps_newlines(self):
        parsed = parse_csv('title,content\n"A","line1\nline2"\nB,"x\u2028y"\n', "CSV", "work")
        assert parsed.tasks[0].entries[0].content == "line1\nline2"
        assert parsed.tasks[1].entries[0].content == "x\u2028y"
        assert parsed.warnings == []

    def test_missing_title_column(self):
        parsed = parse_csv("notes\nfirst\nsecond", "CSV", "work")
        assert parsed.tasks[0].title == "CSV import"
        assert len(parsed.tasks[0].entries) == 2

    def test_row_problems_warn(self):
        content = "title,date,content\nA,someday,text\nA,2025-01-01,\nA,1,2,3\n"
        parsed = parse_csv(content, "CSV", "work")
        assert len(parsed.tasks[0].entries) == 1
        assert len(parsed.warnings) == 3

    def test_missing_content_column_is_fatal(self):
        with pytest.raises(ValidationError):
            parse_csv("title,date\nA,2025-01-01", "CSV", "work")


class TestImportPipeline:
    """Tests for import_data against a real store."""

    def test_validation(self, store):
        with pytest.raises(ValidationError, match="content is required"):
            import_data(store, "  ", "txt", "IMPORT", "work")
        with pytest.raises(ValidationError, match="default_type must be one of"):
            import_data(store, "x", "txt", "IMPORT", "chores")

    def test_saves_tasks_and_counts(self, store):
        result = import_data(store, "# One\na\nb\n# Two\nc\n", "md", "IMPORT", "work")
        assert result.tasks_created == 2
        assert result.entries_added == 3
        assert result.duplicates_skipped == 0
        assert store.load_task("IMPORT-one").entries[1].content == "b"
        assert "Imported 2 task(s) with 3 entries from markdown" in result.summary

    def test_duplicates_skipped(self, store):
        import_data(store, "# One\na\n", "markdown", "IMPORT", "work")
        result = import_data(store, "# One\nchanged\n", "markdown", "IMPORT", "work")
        assert result.tasks_created == 0
        assert result.duplicates_skipped == 1
        assert store.load_task("IMPORT-one").entries[0].content == "a"

    def test_txt_imports_in_same_second_both_kept(self, store, monkeypatch):
        monkeypatch.setattr("task_journal.importers.utc_now", lambda: utc(2025, 6, 1, 10))
        first = import_data(store, "first batch", "txt", "IMPORT", "work")
        second = import_data(store, "second batch", "txt", "IMPORT", "work")
        assert first.tasks_created == second.tasks_created == 1
        assert second.duplicates_skipped == 0
        assert store.load_task("IMPORT-20250601-100000").entries[0].content == "first batch"
        assert store.load_task("IMPORT-20250601-100000-2").entries[0].content == "second batch"

    def test_created_follows_entry_dates(self, store):
        import_data(store, "# Old\n2024-03-01 09:00 early\n", "markdown", "IMPORT", "work")
        task = store.load_task("IMPORT-old")
        assert task.created == utc(2024, 3, 1, 9)

    def test_empty_task_gets_creation_entry(self, store):
        result = import_data(store, json.dumps({"tasks": [{"title": "Bare"}]}), "json", "IMPORT", "work")
        task = store.load_task("IMPORT-bare")
        assert [e.entry_type for e in task.entries] == ["creation"]
        assert result.entries_added == 0

    def test_entries_reach_daily_log(self, store):
        import_data(store, "# Old\n2024-03-01 09:00 early\n", "markdown", "IMPORT", "work")
        activity = store.load_daily_activity("2024-03-01")
        assert activity.tasks["IMPORT-old"][0].content == "early"


def test_slugify():
    assert slugify("  Hello, World! ") == "hello-world"
    assert slugify("!!!") == "untitled"
