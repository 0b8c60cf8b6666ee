# src/tasknotify/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires the task store, delivery backend and scheduler into AppState,
- brings the backend in line with the stored tasks.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.ports import DeliveryBackend, DeliveryConfig
from ..core.state import AppState
from ..notifications.local_backend import DeliverCallback, LocalDeliveryBackend
from ..notifications.notification_scheduler import NotificationScheduler
from ..tasks import task_api
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_path.parent.mkdir(parents=True, exist_ok=True)


def delivery_config_from(settings) -> DeliveryConfig:
    return DeliveryConfig(
        show_alert=bool(getattr(settings, "show_alert", True)),
        show_badge=bool(getattr(settings, "show_badge", True)),
        play_sound=bool(getattr(settings, "play_sound", True)),
    )


def create_initial_state(
    *,
    settings=None,
    backend: DeliveryBackend | None = None,
    on_deliver: DeliverCallback | None = None,
) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings and backend injectable makes the app easier to test.
    If settings is None, falls back to get_settings(); if backend is None,
    a LocalDeliveryBackend delivering to on_deliver is used.
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    if backend is None:
        backend = LocalDeliveryBackend(on_deliver=on_deliver)

    scheduler = NotificationScheduler(
        backend,
        timeout_seconds=float(getattr(settings, "backend_timeout_seconds", 5.0)),
    )

    return AppState(
        settings=settings,
        task_store=TaskStore(settings.tasks_path),
        scheduler=scheduler,
    )


async def start(state: AppState) -> None:
    """
    Load tasks and prepare the backend. Must run inside the event loop.

    Permission is only reported, scheduling goes ahead either way.
    """
    task_api.load_tasks(state)
    await state.scheduler.initialize(delivery_config_from(state.settings))
    await state.scheduler.check_permissions()

    if getattr(state.settings, "reschedule_on_start", True):
        await task_api.reschedule_all(state)
