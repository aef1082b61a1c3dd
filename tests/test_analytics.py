"""Tests for analytics reports."""

import pytest

from task_journal.analytics import (
    compute_trends,
    generate_report,
    pattern_analysis,
    percent_change,
    period_cutoff,
    productivity_metrics,
    task_metrics,
)

from conftest import make_task, utc

NOW = utc(2025, 3, 1)


@pytest.fixture
def tasks():
    return [
        make_task("A", task_type="work", status="completed", tags=["api"],
                  created=utc(2025, 2, 1), updated=utc(2025, 2, 11), entries=[
                      (utc(2025, 2, 1), "start"),
                      (utc(2025, 2, 5), "middle"),
                      (utc(2025, 2, 11), "done"),
                  ]),
        make_task("B", task_type="learning", status="active", tags=["api"],
                  created=utc(2025, 2, 20), updated=utc(2025, 2, 25, 10),
                  entries=[(utc(2025, 2, day, 10), f"day {day}") for day in range(20, 26)]),
        make_task("C", task_type="work", status="active", priority="high",
                  created=utc(2025, 1, 1), updated=utc(2025, 1, 5),
                  entries=[(utc(2025, 1, 1, 9), "created")]),
    ]


class TestTaskMetrics:
    def test_counts(self, tasks):
        metrics = task_metrics(tasks)
        assert metrics.total_tasks == 3
        assert metrics.by_status == {"completed": 1, "active": 2}
        assert metrics.by_type == {"work": 2, "learning": 1}
        assert metrics.by_priority == {"none": 2, "high": 1}
        assert metrics.total_entries == 10
        assert metrics.completion_rate == pytest.approx(1 / 3)
        assert metrics.to_dict()["average_entries_per_task"] == 3.33

    def test_empty(self):
        metrics = task_metrics([])
        assert metrics.completion_rate == 0.0
        assert metrics.average_entries_per_task == 0.0


class TestProductivity:
    """Tests for productivity_metrics."""

    def test_month(self, tasks):
        metrics = productivity_metrics(tasks, period_cutoff("month", NOW))
        assert metrics.tasks_completed_period == 1
        assert metrics.entries_added_period == 9
        assert metrics.most_productive_type == "learning"
        assert metrics.average_task_duration_days == pytest.approx(10.0)
        assert metrics.to_dict()["productivity_score"] == 0.97

    def test_week(self, tasks):
        metrics = productivity_metrics(tasks, period_cutoff("week", NOW))
        assert metrics.tasks_completed_period == 0
        assert metrics.entries_added_period == 4

    def test_all_time(self, tasks):
        assert period_cutoff("all", NOW) is None
        metrics = productivity_metrics(tasks, None)
        assert metrics.entries_added_period == 10


class TestPatterns:
    def test_patterns(self, tasks):
        analysis = pattern_analysis(tasks)
        assert analysis.most_frequent_type == "work"
        assert analysis.common_tags == ["api"]
        assert analysis.work_patterns == {"intensive": 1, "light": 2}
        assert analysis.time_to_completion_by_type == {"work": pytest.approx(10.0)}


class TestTrends:
    """Tests for period-over-period trends."""

    @pytest.mark.parametrize("current,previous,expected", [
        (2, 1, 100.0),
        (1, 2, -50.0),
        (3, 0, 100.0),
        (0, 0, 0.0),
    ])
    def test_percent_change(self, current, previous, expected):
        assert percent_change(current, previous) == expected

    def test_month_trends(self, tasks):
        trends = {t.metric: t for t in compute_trends(tasks, "month", NOW)}
        assert trends["task_creation"].direction == "up"
        assert trends["task_creation"].change == 100.0
        assert trends["activity"].change == 800.0

    def test_stable_within_threshold(self):
        tasks = [
            make_task("X", created=utc(2025, 2, 20), entries=[(utc(2025, 2, 20), "a")]),
            make_task("Y", created=utc(2025, 1, 20), entries=[(utc(2025, 1, 20), "b")]),
        ]
        trends = compute_trends(tasks, "month", NOW)
        assert {t.direction for t in trends} == {"stable"}

    def test_decrease_is_down(self):
        tasks = [
            make_task("NOW", created=utc(2025, 2, 20), entries=[(utc(2025, 2, 20), "a")]),
            make_task("OLD1", created=utc(2025, 1, 10), entries=[(utc(2025, 1, 10), "b")]),
            make_task("OLD2", created=utc(2025, 1, 12), entries=[(utc(2025, 1, 12), "c")]),
        ]
        trends = {t.metric: t for t in compute_trends(tasks, "month", NOW)}
        assert trends["task_creation"].direction == "down"
        assert trends["activity"].direction == "down"
        assert trends["activity"].change == -50.0

    def test_creation_and_activity_thresholds_differ(self):
        # 15 vs 14 is about +7%: past the creation threshold, inside the activity one
        current = [make_task(f"C{n}", created=utc(2025, 2, 10), entries=[(utc(2025, 2, 10), "x")])
                   for n in range(15)]
        previous = [make_task(f"P{n}", created=utc(2025, 1, 10), entries=[(utc(2025, 1, 10), "x")])
                    for n in range(14)]
        trends = {t.metric: t for t in compute_trends(current + previous, "month", NOW)}
        assert trends["task_creation"].change == pytest.approx(7.14)
        assert trends["task_creation"].direction == "up"
        assert trends["activity"].direction == "stable"

    def test_no_trends_for_all(self, tasks):
        assert compute_trends(tasks, "all", NOW) == []


class TestReport:
    """Tests for generate_report."""

    def test_overview(self, tasks):
        report = generate_report(tasks, now=NOW)
        data = report.to_dict()
        assert data["report_type"] == "overview"
        assert data["time_period"] == "month"
        assert "3 task(s), 10 entries" in data["summary"]
        assert any("have not been updated" in i for i in data["insights"])
        assert len(data["trends"]) == 2

    def test_productivity_summary(self, tasks):
        report = generate_report(tasks, report_type="productivity", time_period="week", now=NOW)
        assert report.summary.startswith("Productivity for the last week")

    def test_trends_summary_all_time(self, tasks):
        report = generate_report(tasks, report_type="trends", time_period="all", now=NOW)
        assert "not available" in report.summary

    def test_empty(self):
        report = generate_report([], now=NOW)
        assert report.task_metrics.total_tasks == 0
        assert report.insights[0].startswith("No tasks found")
