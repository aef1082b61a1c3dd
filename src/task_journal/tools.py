"""MCP tool definitions wrapping the journal engine."""

from __future__ import annotations

import logging
from typing import Any

from .analytics import REPORT_TYPES, TIME_PERIODS
from .engine import (
    DuplicateTaskError,
    JournalEngine,
    JournalError,
    StorageError,
    TaskNotFoundError,
    ValidationError,
)
from .exporters import EXPORT_FORMATS
from .importers import IMPORT_FORMATS
from .models import TASK_STATUSES, TASK_TYPES, format_timestamp
from .recommendations import FOCUS_AREAS
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

logger = logging.getLogger(__name__)

_STRING_LIST = {"type": "array", "items": {"type": "string"}}


def _str(description: str, enum: list[str] | None = None) -> dict:
    prop: dict[str, Any] = {"type": "string", "description": description}
    if enum:
        prop["enum"] = enum
    return prop


def _int(description: str) -> dict:
    # Strings are accepted too; the request parsers coerce both
    return {"type": ["integer", "string"], "description": description}


def _list(description: str) -> dict:
    return {**_STRING_LIST, "description": description}


def _tool(name: str, description: str, properties: dict, required: list[str] | None = None) -> dict:
    schema: dict[str, Any] = {"type": "object", "properties": properties}
    if required:
        schema["required"] = required
    return {"name": name, "description": description, "inputSchema": schema}


def make_tools(engine: JournalEngine) -> dict[str, dict]:
    """Create MCP tool definitions for the journal engine.

    Returns:
        Dict mapping tool names to their definitions.
    """
    tools = [
        # ========== Task management ==========
        _tool("create_task", "Create a new task with optional issue linking", {
            "id": _str("Unique task identifier (e.g., MDU-1450, learning-graphql)"),
            "title": _str("Task title or description"),
            "type": _str("Task type", TASK_TYPES),
            "tags": _list("Flat tags for categorization"),
            "issue_url": _str("Full URL to GitHub issue or Jira ticket"),
            "priority": _str("Priority level: low, medium, high, urgent"),
        }, ["id", "title", "type"]),
        _tool("add_task_entry", "Add a timestamped entry to an existing task", {
            "task_id": _str("Task identifier"),
            "content": _str("Entry content"),
            "timestamp": _str("RFC 3339 timestamp (defaults to now)"),
        }, ["task_id", "content"]),
        _tool("get_task", "Retrieve complete task history", {
            "task_id": _str("Task identifier"),
        }, ["task_id"]),
        _tool("list_tasks", "List tasks with optional filtering and pagination", {
            "status": _str("Filter by status", TASK_STATUSES),
            "type": _str("Filter by type", TASK_TYPES),
            "tags": _list("Only tasks carrying at least one of these tags"),
            "date_from": _str("Filter tasks updated from this date (YYYY-MM-DD)"),
            "date_to": _str("Filter tasks updated until this date (YYYY-MM-DD)"),
            "limit": _int("Maximum number of tasks to return (default: 50, max: 200)"),
            "offset": _int("Number of tasks to skip for pagination (default: 0)"),
        }),
        _tool("update_task_status", "Change task status (active/completed/paused/blocked)", {
            "task_id": _str("Task identifier"),
            "status": _str("New status", TASK_STATUSES),
            "reason": _str("Optional reason for status change"),
        }, ["task_id", "status"]),

        # ========== Daily and weekly logs ==========
        _tool("get_daily_log", "View all activity for a specific date", {
            "date": _str("Date in YYYY-MM-DD format"),
        }, ["date"]),
        _tool("get_weekly_log", "View activity for a week (aggregate daily logs)", {
            "week_start": _str("Week start date in YYYY-MM-DD format"),
        }, ["week_start"]),

        # ========== One-on-ones ==========
        _tool("create_one_on_one", "Record structured meeting notes", {
            "date": _str("Meeting date in YYYY-MM-DD format"),
            "insights": _list("Key insights from the meeting"),
            "todos": _list("Action items and todos"),
            "feedback": _list("Feedback points"),
            "notes": _str("Additional meeting notes"),
        }, ["date"]),
        _tool("get_one_on_one_history", "Retrieve meeting history", {
            "limit": _int("Number of meetings to retrieve (default: 10)"),
        }),

        # ========== Search, export, import ==========
        _tool("search_entries", "Search through all journal content", {
            "query": _str("Search query text"),
            "task_type": _str("Filter by task type", TASK_TYPES),
            "date_from": _str("Start date filter (YYYY-MM-DD)"),
            "date_to": _str("End date filter (YYYY-MM-DD)"),
        }, ["query"]),
        _tool("export_data", "Export journal data to various formats", {
            "format": _str("Export format", EXPORT_FORMATS),
            "date_from": _str("Start date filter (YYYY-MM-DD)"),
            "date_to": _str("End date filter (YYYY-MM-DD)"),
            "task_filter": _str("Filter by task type", TASK_TYPES),
        }, ["format"]),
        _tool("import_data", "Bulk import entries from text, markdown, JSON or CSV", {
            "content": _str("Raw content to import"),
            "format": _str("Content format", IMPORT_FORMATS),
            "task_prefix": _str("Prefix for generated task IDs (default: IMPORT)"),
            "default_type": _str("Type for imported tasks (default: work)", TASK_TYPES),
        }, ["content", "format"]),

        # ========== Analysis ==========
        _tool("get_task_recommendations", "Suggest next steps based on task history", {
            "task_type": _str("Only consider tasks of this type", TASK_TYPES),
            "focus_area": _str("Kind of recommendations (default: productivity)", FOCUS_AREAS),
            "limit": _int("Maximum recommendations, 1-20 (default: 5)"),
        }),
        _tool("get_analytics_report", "Metrics, patterns and trends over your tasks", {
            "report_type": _str("Report flavour (default: overview)", REPORT_TYPES),
            "time_period": _str("Reporting window (default: month)", TIME_PERIODS),
            "task_type": _str("Only consider tasks of this type", TASK_TYPES),
        }),
    ]
    return {t["name"]: t for t in tools}


def _dispatch(engine: JournalEngine, name: str, arguments: dict[str, Any]) -> dict[str, Any]:
    if name == "create_task":
        task = engine.create_task(CreateTaskRequest.from_arguments(arguments))
        return {
            "task_id": task.task_id,
            "issue_id": task.issue_id,
            "created": format_timestamp(task.created),
            "message": f"Created task {task.task_id}: {task.title}",
        }

    elif name == "add_task_entry":
        request = AddTaskEntryRequest.from_arguments(arguments)
        entry = engine.add_task_entry(request)
        return {
            "task_id": request.task_id,
            "entry_id": entry.entry_id,
            "timestamp": format_timestamp(entry.timestamp),
            "message": f"Added entry to task {request.task_id} at {entry.timestamp.strftime('%H:%M')}",
        }

    elif name == "update_task_status":
        task, old_status = engine.update_task_status(UpdateTaskStatusRequest.from_arguments(arguments))
        return {
            "task_id": task.task_id,
            "old_status": old_status,
            "status": task.status,
            "message": f"Updated task {task.task_id} status to {task.status}",
        }

    elif name == "get_task":
        return engine.get_task(GetTaskRequest.from_arguments(arguments))

    elif name == "list_tasks":
        return engine.list_tasks(ListTasksRequest.from_arguments(arguments))

    elif name == "get_daily_log":
        return engine.get_daily_log(DailyLogRequest.from_arguments(arguments))

    elif name == "get_weekly_log":
        return engine.get_weekly_log(WeeklyLogRequest.from_arguments(arguments))

    elif name == "create_one_on_one":
        meeting = engine.create_one_on_one(CreateOneOnOneRequest.from_arguments(arguments))
        return {
            "date": meeting.date,
            "message": f"Created one-on-one meeting notes for {meeting.date}",
        }

    elif name == "get_one_on_one_history":
        return engine.get_one_on_one_history(OneOnOneHistoryRequest.from_arguments(arguments))

    elif name == "search_entries":
        return engine.search(SearchRequest.from_arguments(arguments))

    elif name == "export_data":
        return engine.export_data(ExportRequest.from_arguments(arguments))

    elif name == "import_data":
        return engine.import_data(ImportRequest.from_arguments(arguments)).to_dict()

    elif name == "get_task_recommendations":
        request = RecommendationsRequest.from_arguments(arguments)
        return engine.get_task_recommendations(request).to_dict()

    elif name == "get_analytics_report":
        return engine.get_analytics_report(AnalyticsRequest.from_arguments(arguments)).to_dict()

    raise KeyError(name)


async def execute_tool(engine: JournalEngine, name: str, arguments: dict[str, Any]) -> dict[str, Any]:
    """Execute a journal tool and return the result.

    Args:
        engine: JournalEngine instance
        name: Tool name
        arguments: Tool arguments

    Returns:
        Result dict with success status and data or error
    """
    if name not in make_tools(engine):
        return {
            "success": False,
            "error": f"Unknown tool: {name}",
        }

    try:
        return {"success": True, **_dispatch(engine, name, arguments or {})}

    except ValidationError as e:
        return {
            "success": False,
            "error": str(e),
            "error_type": "validation_error",
        }

    except TaskNotFoundError as e:
        return {
            "success": False,
            "error": str(e),
            "error_type": "not_found",
            "suggestion": "Use list_tasks to see existing task IDs",
        }

    except DuplicateTaskError as e:
        return {
            "success": False,
            "error": str(e),
            "error_type": "duplicate_task",
            "suggestion": "Choose a different id or add entries to the existing task",
        }

    except StorageError as e:
        logger.error("Storage failure in %s: %s", name, e)
        return {
            "success": False,
            "error": str(e),
            "error_type": "storage_error",
        }

    except JournalError as e:
        return {
            "success": False,
            "error": str(e),
            "error_type": "journal_error",
        }

    except Exception as e:
        logger.exception("Unexpected error in %s", name)
        return {
            "success": False,
            "error": str(e),
            "error_type": "unexpected_error",
        }
