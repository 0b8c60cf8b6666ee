# src/tasknotify/core/state.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..notifications.notification_scheduler import NotificationScheduler
from ..tasks.task_models import Task
from .ports import TaskRepo


@dataclass
class AppState:
    # Settings object (or any compatible namespace in tests).
    settings: Any

    task_store: TaskRepo
    scheduler: NotificationScheduler

    tasks: list[Task] = field(default_factory=list)
