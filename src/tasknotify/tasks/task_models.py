# src/tasknotify/tasks/task_models.py

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import StrEnum
from typing import Any


class TaskParseError(ValueError):
    """A persisted task record could not be turned into a Task."""


class TaskStatus(StrEnum):
    """
    Task lifecycle status.

    Persisted by display name. Completed only affects "overdue" semantics;
    it does not touch scheduled notifications by itself.
    """

    ASSIGNED = "Assigned"
    STARTED = "Started"
    COMPLETED = "Completed"

    @classmethod
    def parse(cls, raw: Any) -> TaskStatus | None:
        if not isinstance(raw, str):
            return None
        needle = raw.strip().lower()
        for status in cls:
            if status.value.lower() == needle:
                return status
        return None

    @classmethod
    def from_legacy_completed(cls, is_completed: Any) -> TaskStatus:
        # Older records carried a boolean isCompleted instead of status.
        return cls.COMPLETED if is_completed is True else cls.ASSIGNED

    def next(self) -> TaskStatus:
        """Assigned -> Started -> Completed -> Assigned."""
        order = list(TaskStatus)
        return order[(order.index(self) + 1) % len(order)]


class TaskCategory(StrEnum):
    TRANSPORTATION = "Transportation"
    FOOD = "Food"
    BILLS = "Bills"
    BIG_EXPENDITURE = "Big expenditure"
    MEDICINES = "Medicines"

    @classmethod
    def parse(cls, raw: Any) -> TaskCategory:
        if isinstance(raw, str):
            needle = raw.strip().lower()
            for category in cls:
                if category.value.lower() == needle:
                    return category
        return cls.TRANSPORTATION


def local_now() -> datetime:
    """Current time as an aware datetime in the device's local timezone."""
    return datetime.now().astimezone()


def to_local(value: datetime) -> datetime:
    """Naive datetimes are taken as local wall-clock time."""
    return value.astimezone()


def _parse_timestamp(raw: Any, field_name: str) -> datetime:
    if not isinstance(raw, str) or not raw.strip():
        raise TaskParseError(f"{field_name} must be an ISO-8601 string")
    try:
        return to_local(datetime.fromisoformat(raw.strip()))
    except ValueError as e:
        raise TaskParseError(f"{field_name} is not ISO-8601: {raw!r}") from e


def new_task_id() -> str:
    return uuid.uuid4().hex


@dataclass(slots=True)
class Task:
    id: str
    title: str
    created_at: datetime = field(default_factory=local_now)
    description: str = ""
    status: TaskStatus = TaskStatus.ASSIGNED
    due_date: datetime | None = None
    category: TaskCategory = TaskCategory.TRANSPORTATION

    @property
    def is_completed(self) -> bool:
        return self.status == TaskStatus.COMPLETED

    def is_overdue(self, now: datetime | None = None) -> bool:
        if self.due_date is None or self.is_completed:
            return False
        now = local_now() if now is None else to_local(now)
        return now > to_local(self.due_date)

    def due_date_display(self, now: datetime | None = None) -> str:
        if self.due_date is None:
            return "No due date"

        now = local_now() if now is None else to_local(now)
        due = to_local(self.due_date)
        today = now.date()
        time_str = f"{due.hour}:{due.minute:02d}"

        if due.date() == today:
            return f"Today at {time_str}"
        if due.date() == today + timedelta(days=1):
            return f"Tomorrow at {time_str}"
        return f"{due.day}/{due.month}/{due.year} at {time_str}"

    # ---- persisted representation ----

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "status": self.status.value,
            "createdAt": self.created_at.isoformat(),
            "dueDate": self.due_date.isoformat() if self.due_date is not None else None,
            "category": self.category.value,
        }

    @classmethod
    def from_json(cls, record: Any) -> Task:
        """
        Parse one persisted record.

        Unknown or missing status falls back to the legacy isCompleted flag;
        unknown category falls back to Transportation.
        """
        if not isinstance(record, dict):
            raise TaskParseError("task record must be an object")

        task_id = record.get("id")
        title = record.get("title")
        if not isinstance(task_id, str) or not task_id:
            raise TaskParseError("id is required")
        if not isinstance(title, str):
            raise TaskParseError("title is required")

        status = TaskStatus.parse(record.get("status"))
        if status is None:
            status = TaskStatus.from_legacy_completed(record.get("isCompleted"))

        raw_due = record.get("dueDate")
        due_date = _parse_timestamp(raw_due, "dueDate") if raw_due is not None else None

        description = record.get("description")

        return cls(
            id=task_id,
            title=title,
            description=description if isinstance(description, str) else "",
            status=status,
            created_at=_parse_timestamp(record.get("createdAt"), "createdAt"),
            due_date=due_date,
            category=TaskCategory.parse(record.get("category")),
        )
