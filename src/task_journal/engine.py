"""Core journal engine: one method per journal operation."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Optional

from .analytics import AnalyticsReport, generate_report
from .config import JournalConfig
from .errors import (
    DuplicateTaskError,
    JournalError,
    StorageError,
    TaskNotFoundError,
    ValidationError,
)
from .exporters import EXPORTERS, select_for_export
from .filters import (
    Page,
    TaskFilter,
    filter_tasks,
    paginate,
    resolve_limit,
    resolve_offset,
    sort_by_recency,
)
from .formatting import (
    format_daily_log,
    format_one_on_one_history,
    format_search_results,
    format_task,
    format_task_list,
    format_weekly_log,
)
from .importers import import_data
from .models import (
    DATE_FORMAT,
    ENTRY_CREATION,
    ENTRY_LOG,
    ENTRY_STATUS_CHANGE,
    TASK_STATUSES,
    DailyActivity,
    Entry,
    ImportResult,
    OneOnOne,
    Task,
    day_key,
    derive_issue_id,
    utc_now,
)
from .recommendations import RecommendationsResult, recommend
from .search import search_entries
from .store import TaskStore, validate_task_id
from .tool_requests import (
    AddTaskEntryRequest,
    AnalyticsRequest,
    CreateOneOnOneRequest,
    CreateTaskRequest,
    DailyLogRequest,
    ExportRequest,
    GetTaskRequest,
    ImportRequest,
    ListTasksRequest,
    OneOnOneHistoryRequest,
    RecommendationsRequest,
    SearchRequest,
    UpdateTaskStatusRequest,
    WeeklyLogRequest,
)

__all__ = [
    "DuplicateTaskError",
    "JournalEngine",
    "JournalError",
    "StorageError",
    "TaskNotFoundError",
    "ValidationError",
]

logger = logging.getLogger(__name__)


class JournalEngine:
    """Task journal operations over a file-backed store.

    The engine keeps no state between calls beyond its configuration; every
    operation re-reads what it needs from the store.
    """

    def __init__(self, config: JournalConfig, store: Optional[TaskStore] = None):
        self.config = config
        self.store = store or TaskStore(config)

    def _task_type_filtered(self, task_type: Optional[str]) -> list[Task]:
        tasks = self.store.load_all_tasks()
        if task_type:
            tasks = [t for t in tasks if t.task_type == task_type]
        return tasks

    def _titles(self, task_ids) -> dict[str, str]:
        titles = {}
        for task_id in task_ids:
            try:
                titles[task_id] = self.store.load_task(task_id).title
            except JournalError:
                continue
        return titles

    # ========== Task Operations ==========

    def create_task(self, request: CreateTaskRequest) -> Task:
        """Create a task with its synthesized creation entry.

        Raises:
            DuplicateTaskError: If the ID is already stored
        """
        validate_task_id(request.task_id)
        if self.store.task_exists(request.task_id):
            raise DuplicateTaskError(f"Task already exists: {request.task_id}")

        now = utc_now()
        task = Task(
            task_id=request.task_id,
            title=request.title,
            task_type=request.task_type,
            tags=list(request.tags),
            priority=request.priority,
            created=now,
            updated=now,
        )
        if request.issue_url:
            task.issue_url = request.issue_url
            task.issue_id = derive_issue_id(request.issue_url)

        entry = task.add_entry(
            f"Task created: {request.title}", entry_type=ENTRY_CREATION,
            timestamp=now, touch=False,
        )
        self.store.save_task(task)
        self.store.append_to_daily_log(task.task_id, entry)
        logger.info("Created task %s", task.task_id)
        return task

    def add_task_entry(self, request: AddTaskEntryRequest) -> Entry:
        with self.store.locked_task(request.task_id):
            task = self.store.load_task(request.task_id)
            entry = task.add_entry(request.content, entry_type=ENTRY_LOG,
                                   timestamp=request.timestamp)
            self.store.save_task(task)
        self.store.append_to_daily_log(task.task_id, entry)
        logger.info("Added entry %s to task %s", entry.entry_id, task.task_id)
        return entry

    def update_task_status(self, request: UpdateTaskStatusRequest) -> tuple[Task, str]:
        """Change a task's status and log the change as an entry.

        Returns:
            (updated task, previous status)
        """
        if request.status not in TASK_STATUSES:
            raise ValidationError(f"Invalid status. Must be: {', '.join(TASK_STATUSES)}")

        with self.store.locked_task(request.task_id):
            task = self.store.load_task(request.task_id)
            old_status = task.status
            task.status = request.status

            content = f"Status changed from {old_status} to {request.status}"
            if request.reason:
                content += f": {request.reason}"
            entry = task.add_entry(content, entry_type=ENTRY_STATUS_CHANGE)
            self.store.save_task(task)

        self.store.append_to_daily_log(task.task_id, entry)
        logger.info("Task %s status %s -> %s", task.task_id, old_status, request.status)
        return task, old_status

    def get_task(self, request: GetTaskRequest) -> dict:
        task = self.store.load_task(request.task_id)
        return {
            "task": task.to_dict(),
            "markdown": format_task(task),
        }

    def list_tasks(self, request: ListTasksRequest) -> dict:
        task_filter = TaskFilter(
            status=request.status,
            task_type=request.task_type,
            tags=request.tags,
            date_from=request.date_from,
            date_to=request.date_to,
        )
        tasks = sort_by_recency(filter_tasks(self.store.load_all_tasks(), task_filter))
        limit = resolve_limit(request.limit, self.config.list_default_limit,
                              self.config.list_max_limit)
        offset = resolve_offset(request.offset)
        page: Page = paginate(tasks, offset, limit)
        return {
            "total": page.total,
            "offset": page.offset,
            "limit": page.limit,
            "showing_from": page.showing_from,
            "showing_to": page.showing_to,
            "tasks": [t.to_summary() for t in page.tasks],
            "markdown": format_task_list(page),
        }

    # ========== Daily and Weekly Logs ==========

    def _daily_activity(self, date: str, tasks: Optional[list[Task]] = None) -> DailyActivity:
        """Stored rollup for a date, rebuilt from tasks when missing."""
        activity = self.store.load_daily_activity(date)
        if activity is not None:
            return activity

        activity = DailyActivity(date=date)
        for task in tasks if tasks is not None else self.store.load_all_tasks():
            for entry in task.entries:
                if day_key(entry.timestamp) == date:
                    activity.add(task.task_id, entry)
        if activity.tasks:
            self.store.save_daily_activity(activity)
        return activity

    def get_daily_log(self, request: DailyLogRequest) -> dict:
        date = request.date.strftime(DATE_FORMAT)
        activity = self._daily_activity(date)
        return {
            "date": date,
            "entry_count": activity.entry_count(),
            "tasks": {k: [e.to_dict() for e in v] for k, v in activity.tasks.items()},
            "markdown": format_daily_log(activity, self._titles(activity.tasks)),
        }

    def get_weekly_log(self, request: WeeklyLogRequest) -> dict:
        start = request.week_start
        tasks: Optional[list[Task]] = None
        days = []
        for offset in range(7):
            date = (start + timedelta(days=offset)).strftime(DATE_FORMAT)
            if tasks is None and self.store.load_daily_activity(date) is None:
                tasks = self.store.load_all_tasks()
            days.append(self._daily_activity(date, tasks))

        task_ids = sorted({task_id for day in days for task_id in day.tasks})
        return {
            "week_start": start.strftime(DATE_FORMAT),
            "week_end": (start + timedelta(days=6)).strftime(DATE_FORMAT),
            "total_entries": sum(day.entry_count() for day in days),
            "tasks_worked": task_ids,
            "markdown": format_weekly_log(start, days, self._titles(task_ids)),
        }

    # ========== One-on-Ones ==========

    def create_one_on_one(self, request: CreateOneOnOneRequest) -> OneOnOne:
        meeting = OneOnOne(
            date=request.date.strftime(DATE_FORMAT),
            insights=list(request.insights),
            todos=list(request.todos),
            feedback=list(request.feedback),
            notes=request.notes,
        )
        self.store.save_one_on_one(meeting)
        logger.info("Saved one-on-one for %s", meeting.date)
        return meeting

    def get_one_on_one_history(self, request: OneOnOneHistoryRequest) -> dict:
        limit = resolve_limit(request.limit, self.config.history_default_limit,
                              self.config.list_max_limit)
        meetings = sorted(self.store.load_one_on_ones(), key=lambda m: m.date, reverse=True)
        meetings = meetings[:limit]
        return {
            "count": len(meetings),
            "meetings": [m.to_dict() for m in meetings],
            "markdown": format_one_on_one_history(meetings),
        }

    # ========== Search, Export, Import ==========

    def search(self, request: SearchRequest) -> dict:
        hits = search_entries(
            self.store.load_all_tasks(),
            request.query,
            task_type=request.task_type,
            date_from=request.date_from,
            date_to=request.date_to,
            one_on_ones=self.store.load_one_on_ones(),
        )
        return {
            "query": request.query,
            "count": len(hits),
            "results": [h.to_dict() for h in hits],
            "markdown": format_search_results(request.query, hits),
        }

    def export_data(self, request: ExportRequest) -> dict:
        tasks, meetings = select_for_export(
            self.store.load_all_tasks(),
            self.store.load_one_on_ones(),
            date_from=request.date_from,
            date_to=request.date_to,
            task_filter=request.task_filter,
        )
        return {
            "format": request.format,
            "task_count": len(tasks),
            "one_on_one_count": len(meetings),
            "content": EXPORTERS[request.format](tasks, meetings),
        }

    def import_data(self, request: ImportRequest) -> ImportResult:
        result = import_data(
            self.store,
            request.content,
            request.format,
            prefix=request.task_prefix or self.config.default_import_prefix,
            default_type=request.default_type or self.config.default_task_type,
        )
        logger.info("Import finished: %s", result.summary)
        return result

    # ========== Analysis ==========

    def get_task_recommendations(self, request: RecommendationsRequest) -> RecommendationsResult:
        return recommend(
            self._task_type_filtered(request.task_type),
            focus_area=request.focus_area,
            limit=request.limit,
        )

    def get_analytics_report(self, request: AnalyticsRequest) -> AnalyticsReport:
        return generate_report(
            self._task_type_filtered(request.task_type),
            report_type=request.report_type,
            time_period=request.time_period,
        )
