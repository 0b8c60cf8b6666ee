# src/tasknotify/tasks/task_api.py

"""
Task mutations as the UI performs them.

Every helper changes state.tasks, persists the list, then runs the matching
notification step, in the same order the user actions happen:
- add / edit / new due date  -> schedule_task_notifications
- clear due date / delete    -> cancel_task_notifications
"""

from __future__ import annotations

import logging
from datetime import datetime

from ..core.state import AppState
from .task_models import Task, TaskCategory, TaskStatus, local_now, new_task_id, to_local

logger = logging.getLogger(__name__)

TITLE_MIN_LENGTH = 3
TITLE_MAX_LENGTH = 100


class TaskNotFoundError(LookupError):
    pass


def validate_title(title: str | None) -> str:
    """Stripped title; ValueError carries the message shown to the user."""
    title = (title or "").strip()
    if not title:
        raise ValueError("Task title is required")
    if len(title) < TITLE_MIN_LENGTH:
        raise ValueError(f"Task title must be at least {TITLE_MIN_LENGTH} characters")
    if len(title) > TITLE_MAX_LENGTH:
        raise ValueError(f"Task title must be less than {TITLE_MAX_LENGTH} characters")
    return title


def _persist(state: AppState) -> None:
    try:
        state.task_store.save(state.tasks)
    except Exception:
        logger.exception("Failed to save tasks")


def load_tasks(state: AppState) -> list[Task]:
    state.tasks = state.task_store.load()
    logger.info("Loaded %d tasks", len(state.tasks))
    return state.tasks


def find_task(state: AppState, ref: str) -> Task:
    """
    Resolve a task by 1-based position in state.tasks, exact id, or unique id prefix.
    """
    ref = (ref or "").strip()
    if not ref:
        raise TaskNotFoundError("empty task reference")

    if ref.isdigit():
        idx = int(ref)
        if 1 <= idx <= len(state.tasks):
            return state.tasks[idx - 1]

    for task in state.tasks:
        if task.id == ref:
            return task

    matches = [t for t in state.tasks if t.id.startswith(ref)]
    if len(matches) == 1:
        return matches[0]

    raise TaskNotFoundError(f"no task matches {ref!r}")


async def create_task(
    state: AppState,
    *,
    title: str,
    description: str = "",
    due_date: datetime | None = None,
    category: TaskCategory = TaskCategory.TRANSPORTATION,
) -> Task:
    title = validate_title(title)
    # New tasks only; edits may keep a due date that has since passed.
    if due_date is not None and to_local(due_date) < state.scheduler.now():
        raise ValueError("Due date must be in the future")

    task = Task(
        id=new_task_id(),
        title=title,
        description=description,
        created_at=local_now(),
        due_date=due_date,
        category=category,
    )
    state.tasks.insert(0, task)
    _persist(state)
    logger.info("Task created id=%s due=%s", task.id, due_date)

    if task.due_date is not None:
        await state.scheduler.schedule_task_notifications(task)
    return task


async def update_task(
    state: AppState,
    task_id: str,
    *,
    title: str | None = None,
    description: str | None = None,
    category: TaskCategory | None = None,
) -> Task:
    task = find_task(state, task_id)

    if title is not None:
        task.title = validate_title(title)
    if description is not None:
        task.description = description
    if category is not None:
        task.category = category

    _persist(state)

    # Scheduled text is a copy; reschedule so new alerts carry the new title.
    if task.due_date is not None:
        await state.scheduler.schedule_task_notifications(task)
    return task


async def set_due_date(state: AppState, task_id: str, due_date: datetime) -> Task:
    task = find_task(state, task_id)
    task.due_date = due_date
    _persist(state)
    await state.scheduler.schedule_task_notifications(task)
    return task


async def clear_due_date(state: AppState, task_id: str) -> Task:
    task = find_task(state, task_id)
    # Cancel first: schedule_task_notifications ignores tasks without a due date.
    await state.scheduler.cancel_task_notifications(task)
    task.due_date = None
    _persist(state)
    return task


async def cycle_status(state: AppState, task_id: str) -> Task:
    """
    Assigned -> Started -> Completed -> Assigned.

    Notifications stay as they are unless settings.cancel_on_complete is set.
    """
    task = find_task(state, task_id)
    previous = task.status
    task.status = previous.next()
    _persist(state)
    logger.info("Task %s status %s -> %s", task.id, previous.value, task.status.value)

    if getattr(state.settings, "cancel_on_complete", False):
        if task.status == TaskStatus.COMPLETED:
            await state.scheduler.cancel_task_notifications(task)
        elif previous == TaskStatus.COMPLETED and task.due_date is not None:
            await state.scheduler.schedule_task_notifications(task)
    return task


async def delete_task(state: AppState, task_id: str) -> Task:
    task = find_task(state, task_id)
    await state.scheduler.cancel_task_notifications(task)
    state.tasks = [t for t in state.tasks if t.id != task.id]
    _persist(state)
    logger.info("Task deleted id=%s", task.id)
    return task


async def reschedule_all(state: AppState) -> int:
    """
    Reconcile every task with a due date. Returns how many alerts were scheduled.

    Completed tasks are skipped when cancel_on_complete is set.
    """
    skip_completed = bool(getattr(state.settings, "cancel_on_complete", False))
    total = 0
    for task in list(state.tasks):
        if task.due_date is None:
            continue
        if skip_completed and task.is_completed:
            continue
        total += len(await state.scheduler.schedule_task_notifications(task))
    logger.info("Rescheduled notifications for %d tasks (%d pending alerts)", len(state.tasks), total)
    return total
