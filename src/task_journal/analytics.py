"""Task analytics: metrics, productivity, patterns, trends and insights."""

from __future__ import annotations

from collections import Counter, defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional

from .models import Task, TaskStatus, Trend, format_timestamp, utc_now

REPORT_TYPES = ["overview", "productivity", "patterns", "trends"]
TIME_PERIODS = ["week", "month", "quarter", "year", "all"]

PERIOD_DAYS = {
    "week": 7,
    "month": 30,
    "quarter": 90,
    "year": 365,
}

INTENSIVE_ENTRY_COUNT = 5
STALE_DAYS = 7
TASK_TREND_THRESHOLD = 5.0
ACTIVITY_TREND_THRESHOLD = 10.0


def period_cutoff(time_period: str, now: datetime) -> Optional[datetime]:
    """Start of the reporting window, or None for all time."""
    days = PERIOD_DAYS.get(time_period)
    if days is None:
        return None
    return now - timedelta(days=days)


def _days(delta: timedelta) -> float:
    return delta.total_seconds() / 86400


def _mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def _top(counter: Counter) -> str:
    """Most common key; ties go to the alphabetically first."""
    if not counter:
        return ""
    return min(counter.items(), key=lambda kv: (-kv[1], kv[0]))[0]


@dataclass
class TaskMetrics:
    total_tasks: int = 0
    by_status: dict[str, int] = field(default_factory=dict)
    by_type: dict[str, int] = field(default_factory=dict)
    by_priority: dict[str, int] = field(default_factory=dict)
    completion_rate: float = 0.0
    average_entries_per_task: float = 0.0
    total_entries: int = 0

    def to_dict(self) -> dict:
        return {
            "total_tasks": self.total_tasks,
            "by_status": dict(self.by_status),
            "by_type": dict(self.by_type),
            "by_priority": dict(self.by_priority),
            "completion_rate": round(self.completion_rate, 4),
            "average_entries_per_task": round(self.average_entries_per_task, 2),
            "total_entries": self.total_entries,
        }


@dataclass
class ProductivityMetrics:
    tasks_completed_period: int = 0
    entries_added_period: int = 0
    average_task_duration_days: float = 0.0
    most_productive_type: str = ""
    productivity_score: float = 0.0

    def to_dict(self) -> dict:
        return {
            "tasks_completed_period": self.tasks_completed_period,
            "entries_added_period": self.entries_added_period,
            "average_task_duration_days": round(self.average_task_duration_days, 2),
            "most_productive_type": self.most_productive_type,
            "productivity_score": round(self.productivity_score, 2),
        }


@dataclass
class PatternAnalysis:
    most_frequent_type: str = ""
    common_tags: list[str] = field(default_factory=list)
    work_patterns: dict[str, int] = field(default_factory=dict)
    time_to_completion_by_type: dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "most_frequent_type": self.most_frequent_type,
            "common_tags": list(self.common_tags),
            "work_patterns": dict(self.work_patterns),
            "time_to_completion_by_type": {
                k: round(v, 2) for k, v in self.time_to_completion_by_type.items()
            },
        }


@dataclass
class AnalyticsReport:
    report_type: str
    time_period: str
    generated_at: datetime
    summary: str
    task_metrics: TaskMetrics
    productivity_metrics: ProductivityMetrics
    pattern_analysis: PatternAnalysis
    trends: list[Trend] = field(default_factory=list)
    insights: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "report_type": self.report_type,
            "time_period": self.time_period,
            "generated_at": format_timestamp(self.generated_at),
            "summary": self.summary,
            "task_metrics": self.task_metrics.to_dict(),
            "productivity_metrics": self.productivity_metrics.to_dict(),
            "pattern_analysis": self.pattern_analysis.to_dict(),
            "trends": [t.to_dict() for t in self.trends],
            "insights": list(self.insights),
        }


def _is_completed(task: Task) -> bool:
    return task.status == TaskStatus.COMPLETED.value


def task_metrics(tasks: list[Task]) -> TaskMetrics:
    metrics = TaskMetrics(total_tasks=len(tasks))
    metrics.by_status = dict(Counter(t.status for t in tasks))
    metrics.by_type = dict(Counter(t.task_type for t in tasks))
    metrics.by_priority = dict(Counter(t.priority or "none" for t in tasks))
    metrics.total_entries = sum(len(t.entries) for t in tasks)
    if tasks:
        metrics.completion_rate = metrics.by_status.get(TaskStatus.COMPLETED.value, 0) / len(tasks)
        metrics.average_entries_per_task = metrics.total_entries / len(tasks)
    return metrics


def productivity_metrics(tasks: list[Task], cutoff: Optional[datetime]) -> ProductivityMetrics:
    metrics = ProductivityMetrics()
    entries_by_type: Counter = Counter()

    for task in tasks:
        if _is_completed(task) and (cutoff is None or task.updated >= cutoff):
            metrics.tasks_completed_period += 1
        in_period = sum(1 for e in task.entries if cutoff is None or e.timestamp >= cutoff)
        metrics.entries_added_period += in_period
        if in_period:
            entries_by_type[task.task_type] += in_period

    metrics.average_task_duration_days = _mean(
        [_days(t.updated - t.created) for t in tasks if _is_completed(t)]
    )
    metrics.most_productive_type = _top(entries_by_type)
    if tasks:
        metrics.productivity_score = (
            2 * metrics.tasks_completed_period + 0.1 * metrics.entries_added_period
        ) / len(tasks)
    return metrics


def pattern_analysis(tasks: list[Task]) -> PatternAnalysis:
    analysis = PatternAnalysis()
    analysis.most_frequent_type = _top(Counter(t.task_type for t in tasks))

    tag_counts = Counter(tag for t in tasks for tag in t.tags)
    analysis.common_tags = [
        tag for tag, n in sorted(tag_counts.items(), key=lambda kv: (-kv[1], kv[0])) if n > 1
    ]

    intensive = sum(1 for t in tasks if len(t.entries) >= INTENSIVE_ENTRY_COUNT)
    analysis.work_patterns = {"intensive": intensive, "light": len(tasks) - intensive}

    durations: dict[str, list[float]] = defaultdict(list)
    for task in tasks:
        if _is_completed(task):
            durations[task.task_type].append(_days(task.updated - task.created))
    analysis.time_to_completion_by_type = {k: _mean(v) for k, v in sorted(durations.items())}
    return analysis


def percent_change(current: int, previous: int) -> float:
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return (current - previous) / previous * 100


def _direction(change: float, threshold: float) -> str:
    if change > threshold:
        return "up"
    if change < -threshold:
        return "down"
    return "stable"


def compute_trends(tasks: list[Task], time_period: str, now: datetime) -> list[Trend]:
    """Compare the current window with the preceding one of equal length."""
    days = PERIOD_DAYS.get(time_period)
    if days is None:
        return []
    current_start = now - timedelta(days=days)
    previous_start = current_start - timedelta(days=days)

    def window(ts: datetime) -> Optional[str]:
        if current_start <= ts <= now:
            return "current"
        if previous_start <= ts < current_start:
            return "previous"
        return None

    created = Counter(window(t.created) for t in tasks)
    activity = Counter(window(e.timestamp) for t in tasks for e in t.entries)

    creation_change = percent_change(created["current"], created["previous"])
    activity_change = percent_change(activity["current"], activity["previous"])
    return [
        Trend("task_creation", _direction(creation_change, TASK_TREND_THRESHOLD),
              round(creation_change, 2), time_period),
        Trend("activity", _direction(activity_change, ACTIVITY_TREND_THRESHOLD),
              round(activity_change, 2), time_period),
    ]


def generate_insights(tasks: list[Task], metrics: TaskMetrics, patterns: PatternAnalysis,
                      now: datetime) -> list[str]:
    if not tasks:
        return ["No tasks found for this period. Create a task to start tracking your work."]

    insights = []
    dominant = metrics.by_type.get(patterns.most_frequent_type, 0)
    insights.append(
        f"Most of your tasks are {patterns.most_frequent_type} tasks "
        f"({dominant} of {metrics.total_tasks})."
    )

    stale_cutoff = now - timedelta(days=STALE_DAYS)
    stale = [t for t in tasks if t.status == TaskStatus.ACTIVE.value and t.updated < stale_cutoff]
    if stale:
        insights.append(
            f"{len(stale)} active task(s) have not been updated in over {STALE_DAYS} days."
        )

    avg = metrics.average_entries_per_task
    if avg >= INTENSIVE_ENTRY_COUNT:
        insights.append(f"Tasks are well documented, averaging {avg:.1f} entries each.")
    elif avg < 2:
        insights.append(
            f"Tasks average only {avg:.1f} entries; logging progress more often "
            "would make reviews easier."
        )
    return insights


def _summary(report_type: str, time_period: str, metrics: TaskMetrics,
             productivity: ProductivityMetrics, trends: list[Trend]) -> str:
    window = "all time" if time_period == "all" else f"the last {time_period}"
    if report_type == "productivity":
        return (
            f"Productivity for {window}: {productivity.tasks_completed_period} task(s) completed, "
            f"{productivity.entries_added_period} entries added, "
            f"score {productivity.productivity_score:.2f}."
        )
    if report_type == "patterns":
        return f"Work patterns across {metrics.total_tasks} task(s)."
    if report_type == "trends":
        if not trends:
            return "Trends are not available for the 'all' time period."
        return "; ".join(f"{t.metric} {t.direction} ({t.change:+.1f}%)" for t in trends) + "."
    return (
        f"{metrics.total_tasks} task(s), {metrics.total_entries} entries, "
        f"{metrics.completion_rate:.0%} completed."
    )


def generate_report(tasks: list[Task], report_type: str = "overview",
                    time_period: str = "month",
                    now: Optional[datetime] = None) -> AnalyticsReport:
    """Build an analytics report over a task collection.

    Args:
        tasks: Tasks to analyze (already filtered by the caller)
        report_type: overview, productivity, patterns or trends
        time_period: week, month, quarter, year or all
        now: Reference time for period cutoffs (default: current UTC time)
    """
    now = now or utc_now()
    metrics = task_metrics(tasks)
    productivity = productivity_metrics(tasks, period_cutoff(time_period, now))
    patterns = pattern_analysis(tasks)
    trends = compute_trends(tasks, time_period, now)

    return AnalyticsReport(
        report_type=report_type,
        time_period=time_period,
        generated_at=now,
        summary=_summary(report_type, time_period, metrics, productivity, trends),
        task_metrics=metrics,
        productivity_metrics=productivity,
        pattern_analysis=patterns,
        trends=trends,
        insights=generate_insights(tasks, metrics, patterns, now),
    )
