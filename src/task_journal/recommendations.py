"""Rule-based task recommendations.

Each focus area runs its own heuristics over the task collection. Rules
are evaluated in order and the combined list is cut at the requested limit;
there is no deduplication across rules.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Optional

from .models import Recommendation, Task, TaskStatus, TaskType, utc_now

FOCUS_AREAS = ["productivity", "learning", "completion", "priority"]

DEFAULT_LIMIT = 5
MAX_LIMIT = 20

BREAKDOWN_ENTRY_COUNT = 10
STALE_DAYS = 7
REPEAT_ACTIVE_COUNT = 3
LEARNING_REVIEW_DAYS = 30
PRACTICE_ENTRY_COUNT = 5
NEAR_COMPLETION_ENTRY_COUNT = 3
NEAR_COMPLETION_DAYS = 3
OLD_TASK_DAYS = 30


def _active(tasks: list[Task]) -> list[Task]:
    return [t for t in tasks if t.status == TaskStatus.ACTIVE.value]


def productivity_rules(tasks: list[Task], now: datetime) -> list[Recommendation]:
    recs = []
    active = _active(tasks)

    for task in active:
        if len(task.entries) > BREAKDOWN_ENTRY_COUNT:
            recs.append(Recommendation(
                rec_type="breakdown",
                title=f"Break down {task.task_id}",
                description=f"'{task.title}' has {len(task.entries)} entries. "
                            "Split it into smaller tasks with clear outcomes.",
                rationale=f"Active tasks with more than {BREAKDOWN_ENTRY_COUNT} entries "
                          "tend to hide several pieces of work.",
                priority="medium",
                confidence=0.8,
                suggested_tags=["breakdown", task.task_type],
                task_id=task.task_id,
            ))

    for task in active:
        idle = now - task.updated
        if idle >= timedelta(days=STALE_DAYS):
            recs.append(Recommendation(
                rec_type="review",
                title=f"Review {task.task_id}",
                description=f"'{task.title}' has not been touched for {idle.days} days. "
                            "Decide whether to resume, pause or complete it.",
                rationale=f"Active tasks idle for {STALE_DAYS}+ days are often stalled.",
                priority="medium",
                confidence=0.7,
                suggested_tags=["review"],
                task_id=task.task_id,
            ))

    type_counts = Counter(t.task_type for t in active)
    for task_type, count in sorted(type_counts.items()):
        if count >= REPEAT_ACTIVE_COUNT:
            recs.append(Recommendation(
                rec_type="pattern",
                title=f"Standardize {task_type} tasks",
                description=f"You have {count} active {task_type} tasks. "
                            "A shared checklist or template would speed them up.",
                rationale=f"{REPEAT_ACTIVE_COUNT} or more concurrent tasks of one type "
                          "suggest a repeatable workflow.",
                priority="low",
                confidence=0.6,
                suggested_tags=[task_type, "template"],
            ))

    return recs


def learning_rules(tasks: list[Task], now: datetime) -> list[Recommendation]:
    recs = []
    learning = [t for t in tasks if t.task_type == TaskType.LEARNING.value]

    for task in learning:
        if task.status != TaskStatus.COMPLETED.value:
            continue
        idle = now - task.updated
        if idle >= timedelta(days=LEARNING_REVIEW_DAYS):
            recs.append(Recommendation(
                rec_type="review",
                title=f"Revisit {task.title}",
                description=f"You finished '{task.title}' {idle.days} days ago. "
                            "A short review will help it stick.",
                rationale=f"Material not revisited for {LEARNING_REVIEW_DAYS}+ days fades quickly.",
                priority="low",
                confidence=0.7,
                suggested_tags=["learning", "review"],
                task_id=task.task_id,
            ))

    for task in _active(learning):
        if len(task.entries) >= PRACTICE_ENTRY_COUNT:
            recs.append(Recommendation(
                rec_type="practice",
                title=f"Practice project for {task.title}",
                description=f"'{task.title}' has {len(task.entries)} entries. "
                            "Apply it in a small hands-on task.",
                rationale="Well-documented learning is ready to be put into practice.",
                priority="medium",
                confidence=0.75,
                suggested_tags=["learning", "practice"],
                task_id=task.task_id,
            ))

    recs.append(Recommendation(
        rec_type="explore",
        title="Explore a new area",
        description="Start a learning task on a topic adjacent to your current work.",
        rationale="Regular exploration keeps skills broad.",
        priority="low",
        confidence=0.4,
        suggested_tags=["learning", "exploration"],
    ))
    return recs


def completion_rules(tasks: list[Task], now: datetime) -> list[Recommendation]:
    recs = []
    recent = now - timedelta(days=NEAR_COMPLETION_DAYS)

    for task in _active(tasks):
        if len(task.entries) >= NEAR_COMPLETION_ENTRY_COUNT and task.updated >= recent:
            recs.append(Recommendation(
                rec_type="completion",
                title=f"Finish {task.task_id}",
                description=f"'{task.title}' has steady recent progress "
                            f"({len(task.entries)} entries). It may be close to done.",
                rationale=f"Tasks with {NEAR_COMPLETION_ENTRY_COUNT}+ entries updated in the "
                          f"last {NEAR_COMPLETION_DAYS} days are often near completion.",
                priority="high",
                confidence=0.65,
                suggested_tags=["completion"],
                task_id=task.task_id,
            ))

    for task in tasks:
        if task.status == TaskStatus.PAUSED.value:
            recs.append(Recommendation(
                rec_type="resume",
                title=f"Resume {task.task_id}",
                description=f"'{task.title}' is paused. Resume it or close it out.",
                rationale="Paused tasks accumulate and blur what is actually in progress.",
                priority="medium",
                confidence=0.5,
                suggested_tags=["resume"],
                task_id=task.task_id,
            ))
    return recs


def priority_rules(tasks: list[Task], now: datetime) -> list[Recommendation]:
    recs = []
    active = _active(tasks)

    for task in active:
        if (task.priority or "").lower() == "urgent":
            recs.append(Recommendation(
                rec_type="urgent",
                title=f"Focus on {task.task_id}",
                description=f"'{task.title}' is marked urgent and still active.",
                rationale="Urgent work should be handled before anything else.",
                priority="urgent",
                confidence=0.9,
                suggested_tags=["urgent"],
                task_id=task.task_id,
            ))

    for task in active:
        age = now - task.created
        if age >= timedelta(days=OLD_TASK_DAYS):
            recs.append(Recommendation(
                rec_type="reprioritize",
                title=f"Re-evaluate priority of {task.task_id}",
                description=f"'{task.title}' was created {age.days} days ago and is still active.",
                rationale=f"Priorities set {OLD_TASK_DAYS}+ days ago are often out of date.",
                priority="medium",
                confidence=0.55,
                suggested_tags=["priority-review"],
                task_id=task.task_id,
            ))
    return recs


RULES: dict[str, Callable[[list[Task], datetime], list[Recommendation]]] = {
    "productivity": productivity_rules,
    "learning": learning_rules,
    "completion": completion_rules,
    "priority": priority_rules,
}


def clamp_limit(value) -> int:
    """Parse a recommendation limit into 1..20; unparseable gives the default."""
    try:
        limit = int(value)
    except (TypeError, ValueError):
        return DEFAULT_LIMIT
    return max(1, min(limit, MAX_LIMIT))


@dataclass
class RecommendationsResult:
    recommendations: list[Recommendation]
    analysis_metrics: dict = field(default_factory=dict)
    summary: str = ""

    def to_dict(self) -> dict:
        return {
            "recommendations": [r.to_dict() for r in self.recommendations],
            "analysis_metrics": dict(self.analysis_metrics),
            "summary": self.summary,
        }


def recommend(tasks: list[Task], focus_area: str = "productivity",
              limit: int = DEFAULT_LIMIT,
              now: Optional[datetime] = None) -> RecommendationsResult:
    """Run the heuristics for one focus area.

    Args:
        tasks: Tasks to analyze (already filtered by type if requested)
        focus_area: productivity, learning, completion or priority
        limit: Maximum number of recommendations
        now: Reference time (default: current UTC time)
    """
    now = now or utc_now()
    recs = RULES[focus_area](tasks, now)[:limit]

    status_counts = Counter(t.status for t in tasks)
    metrics = {
        "total_tasks": len(tasks),
        "active_tasks": status_counts.get(TaskStatus.ACTIVE.value, 0),
        "completed_tasks": status_counts.get(TaskStatus.COMPLETED.value, 0),
        "paused_tasks": status_counts.get(TaskStatus.PAUSED.value, 0),
        "focus_area": focus_area,
    }
    if recs:
        summary = f"Generated {len(recs)} {focus_area} recommendation(s) from {len(tasks)} task(s)."
    else:
        summary = f"No {focus_area} recommendations for the current tasks."
    return RecommendationsResult(recommendations=recs, analysis_metrics=metrics, summary=summary)
