"""Typed request objects for each journal operation.

Tool arguments arrive as loosely typed maps. Each request class validates
its own fields in ``from_arguments`` so the engine only ever sees clean
values. Filter-only dates are kept as given; the filters ignore bad ones.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Optional

from .analytics import REPORT_TYPES, TIME_PERIODS
from .errors import ValidationError
from .exporters import EXPORT_FORMATS
from .models import TASK_STATUSES, TASK_TYPES, parse_date, parse_rfc3339
from .recommendations import DEFAULT_LIMIT, FOCUS_AREAS, clamp_limit


def _require_str(args: dict[str, Any], name: str, hint: str = "") -> str:
    value = args.get(name)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{name} is required{hint}")
    return value


def _optional_str(args: dict[str, Any], name: str) -> Optional[str]:
    value = args.get(name)
    if value is None or value == "":
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    if not isinstance(value, str):
        raise ValidationError(f"{name} must be a string")
    return value


def _optional_list(args: dict[str, Any], name: str) -> list[str]:
    value = args.get(name)
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValidationError(f"{name} must be a list of strings")
    return list(value)


def _choice(value: Optional[str], name: str, choices: list[str]) -> Optional[str]:
    if value is not None and value not in choices:
        raise ValidationError(f"{name} must be one of: {', '.join(choices)}")
    return value


def _primary_date(args: dict[str, Any], name: str) -> date:
    value = _require_str(args, name, " (YYYY-MM-DD format)")
    try:
        return parse_date(value)
    except ValueError:
        raise ValidationError(
            f"Invalid {name} format. Expected YYYY-MM-DD (e.g., 2025-01-15), got: {value}"
        )


@dataclass
class CreateTaskRequest:
    task_id: str
    title: str
    task_type: str
    tags: list[str] = field(default_factory=list)
    issue_url: Optional[str] = None
    priority: Optional[str] = None

    @classmethod
    def from_arguments(cls, args: dict[str, Any]) -> "CreateTaskRequest":
        task_id = _require_str(args, "id")
        title = _require_str(args, "title")
        task_type = _require_str(args, "type")
        _choice(task_type, "type", TASK_TYPES)
        return cls(
            task_id=task_id,
            title=title,
            task_type=task_type,
            tags=_optional_list(args, "tags"),
            issue_url=_optional_str(args, "issue_url"),
            priority=_optional_str(args, "priority"),
        )


@dataclass
class AddTaskEntryRequest:
    task_id: str
    content: str
    timestamp: Optional[datetime] = None

    @classmethod
    def from_arguments(cls, args: dict[str, Any]) -> "AddTaskEntryRequest":
        task_id = _require_str(args, "task_id")
        content = _require_str(args, "content")
        raw = _optional_str(args, "timestamp")
        timestamp = None
        if raw is not None:
            timestamp = parse_rfc3339(raw)
            if timestamp is None:
                raise ValidationError(
                    f"Invalid timestamp format. Expected RFC 3339 (e.g., 2025-01-15T09:30:00Z), got: {raw}"
                )
        return cls(task_id=task_id, content=content, timestamp=timestamp)


@dataclass
class UpdateTaskStatusRequest:
    task_id: str
    status: str
    reason: Optional[str] = None

    @classmethod
    def from_arguments(cls, args: dict[str, Any]) -> "UpdateTaskStatusRequest":
        task_id = _require_str(args, "task_id")
        status = _require_str(args, "status")
        if status not in TASK_STATUSES:
            raise ValidationError(f"Invalid status. Must be: {', '.join(TASK_STATUSES)}")
        return cls(task_id=task_id, status=status, reason=_optional_str(args, "reason"))


@dataclass
class GetTaskRequest:
    task_id: str

    @classmethod
    def from_arguments(cls, args: dict[str, Any]) -> "GetTaskRequest":
        return cls(task_id=_require_str(args, "task_id"))


@dataclass
class ListTasksRequest:
    status: Optional[str] = None
    task_type: Optional[str] = None
    tags: list[str] = field(default_factory=list)
    date_from: Optional[str] = None
    date_to: Optional[str] = None
    limit: Optional[str] = None
    offset: Optional[str] = None

    @classmethod
    def from_arguments(cls, args: dict[str, Any]) -> "ListTasksRequest":
        return cls(
            status=_choice(_optional_str(args, "status"), "status", TASK_STATUSES),
            task_type=_choice(_optional_str(args, "type"), "type", TASK_TYPES),
            tags=_optional_list(args, "tags"),
            date_from=_optional_str(args, "date_from"),
            date_to=_optional_str(args, "date_to"),
            limit=_optional_str(args, "limit"),
            offset=_optional_str(args, "offset"),
        )


@dataclass
class DailyLogRequest:
    date: date

    @classmethod
    def from_arguments(cls, args: dict[str, Any]) -> "DailyLogRequest":
        return cls(date=_primary_date(args, "date"))


@dataclass
class WeeklyLogRequest:
    week_start: date

    @classmethod
    def from_arguments(cls, args: dict[str, Any]) -> "WeeklyLogRequest":
        return cls(week_start=_primary_date(args, "week_start"))


@dataclass
class CreateOneOnOneRequest:
    date: date
    insights: list[str] = field(default_factory=list)
    todos: list[str] = field(default_factory=list)
    feedback: list[str] = field(default_factory=list)
    notes: str = ""

    @classmethod
    def from_arguments(cls, args: dict[str, Any]) -> "CreateOneOnOneRequest":
        return cls(
            date=_primary_date(args, "date"),
            insights=_optional_list(args, "insights"),
            todos=_optional_list(args, "todos"),
            feedback=_optional_list(args, "feedback"),
            notes=_optional_str(args, "notes") or "",
        )


@dataclass
class OneOnOneHistoryRequest:
    limit: Optional[str] = None

    @classmethod
    def from_arguments(cls, args: dict[str, Any]) -> "OneOnOneHistoryRequest":
        return cls(limit=_optional_str(args, "limit"))


@dataclass
class SearchRequest:
    query: str
    task_type: Optional[str] = None
    date_from: Optional[str] = None
    date_to: Optional[str] = None

    @classmethod
    def from_arguments(cls, args: dict[str, Any]) -> "SearchRequest":
        return cls(
            query=_require_str(args, "query"),
            task_type=_choice(_optional_str(args, "task_type"), "task_type", TASK_TYPES),
            date_from=_optional_str(args, "date_from"),
            date_to=_optional_str(args, "date_to"),
        )


@dataclass
class ExportRequest:
    format: str
    date_from: Optional[str] = None
    date_to: Optional[str] = None
    task_filter: Optional[str] = None

    @classmethod
    def from_arguments(cls, args: dict[str, Any]) -> "ExportRequest":
        fmt = _require_str(args, "format", " (json|markdown|csv)")
        if fmt not in EXPORT_FORMATS:
            raise ValidationError(f"Invalid format. Must be: {', '.join(EXPORT_FORMATS)}")
        return cls(
            format=fmt,
            date_from=_optional_str(args, "date_from"),
            date_to=_optional_str(args, "date_to"),
            task_filter=_choice(_optional_str(args, "task_filter"), "task_filter", TASK_TYPES),
        )


@dataclass
class ImportRequest:
    content: str
    format: str
    task_prefix: Optional[str] = None
    default_type: Optional[str] = None

    @classmethod
    def from_arguments(cls, args: dict[str, Any]) -> "ImportRequest":
        # Format and type are checked by the import pipeline itself
        return cls(
            content=_require_str(args, "content"),
            format=_require_str(args, "format"),
            task_prefix=_optional_str(args, "task_prefix"),
            default_type=_optional_str(args, "default_type"),
        )


@dataclass
class RecommendationsRequest:
    task_type: Optional[str] = None
    focus_area: str = "productivity"
    limit: int = DEFAULT_LIMIT

    @classmethod
    def from_arguments(cls, args: dict[str, Any]) -> "RecommendationsRequest":
        return cls(
            task_type=_choice(_optional_str(args, "task_type"), "task_type", TASK_TYPES),
            focus_area=_choice(_optional_str(args, "focus_area"), "focus_area", FOCUS_AREAS)
            or "productivity",
            limit=clamp_limit(args.get("limit", DEFAULT_LIMIT)),
        )


@dataclass
class AnalyticsRequest:
    report_type: str = "overview"
    time_period: str = "month"
    task_type: Optional[str] = None

    @classmethod
    def from_arguments(cls, args: dict[str, Any]) -> "AnalyticsRequest":
        return cls(
            report_type=_choice(_optional_str(args, "report_type"), "report_type", REPORT_TYPES)
            or "overview",
            time_period=_choice(_optional_str(args, "time_period"), "time_period", TIME_PERIODS)
            or "month",
            task_type=_choice(_optional_str(args, "task_type"), "task_type", TASK_TYPES),
        )
