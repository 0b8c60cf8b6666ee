# tests/conftest.py

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path
from types import SimpleNamespace

import pytest

from tasknotify.core.state import AppState
from tasknotify.notifications.notification_scheduler import NotificationScheduler
from tasknotify.tasks.task_models import Task
from tasknotify.tasks.task_store import TaskStore

from .fakes import FakeDeliveryBackend

# Fixed "now" for everything that goes through the scheduler clock.
NOW = datetime(2030, 1, 15, 12, 0, tzinfo=timezone.utc)


def make_task(task_id: str = "abc123", title: str = "Pay rent", due_in: timedelta | None = None) -> Task:
    return Task(
        id=task_id,
        title=title,
        created_at=NOW - timedelta(days=1),
        due_date=(NOW + due_in) if due_in is not None else None,
    )


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and bootstrap.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated from the environment.
    """
    return SimpleNamespace(
        app_name="tasknotify-test",
        log_level="DEBUG",
        data_dir=tmp_path,
        tasks_path=tmp_path / "tasks.json",
        backend_timeout_seconds=0.2,
        cancel_on_complete=False,
        reschedule_on_start=True,
        show_alert=True,
        show_badge=False,
        play_sound=True,
    )


@pytest.fixture()
def backend() -> FakeDeliveryBackend:
    return FakeDeliveryBackend()


@pytest.fixture()
def scheduler(backend: FakeDeliveryBackend) -> NotificationScheduler:
    return NotificationScheduler(backend, timeout_seconds=0.2, clock=lambda: NOW)


@pytest.fixture()
def state(settings: SimpleNamespace, scheduler: NotificationScheduler) -> AppState:
    """
    AppState wired with the fake backend and a fixed clock.

    The JSON TaskStore is real: persisting after each mutation is part of
    what we want to test.
    """
    return AppState(
        settings=settings,
        task_store=TaskStore(settings.tasks_path),
        scheduler=scheduler,
    )
