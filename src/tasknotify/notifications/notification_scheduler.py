# src/tasknotify/notifications/notification_scheduler.py

from __future__ import annotations

"""
Notification scheduler.

Maps a task's due date onto at most two local alerts and keeps them in
line with the task:
- plan_notifications() decides what should fire and when (pure),
- NotificationScheduler reconciles the delivery backend with that plan
  (cancel both kinds, then schedule whatever is still in the future).

The scheduler keeps no state of its own between calls. Notification ids are
derived from task ids on demand, everything pending lives in the backend.
"""

import asyncio
import logging
import weakref
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import TypeVar

from ..core.ports import DeliveryBackend, DeliveryConfig, PendingNotification
from ..tasks.task_models import Task, local_now, to_local
from .notification_ids import (
    TEST_NOTIFICATION_ID,
    NotificationKind,
    derive_id,
    derive_ids,
    payload_for,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

REMINDER_LEAD = timedelta(hours=1)

_TITLES: dict[NotificationKind, str] = {
    NotificationKind.DUE_NOW: "Task Due Now! ⏰",
    NotificationKind.REMINDER_ONE_HOUR_BEFORE: "Task Reminder! 📝",
}

_BODIES: dict[NotificationKind, str] = {
    NotificationKind.DUE_NOW: "{title} is due now",
    NotificationKind.REMINDER_ONE_HOUR_BEFORE: "{title} is due in 1 hour",
}


@dataclass(slots=True, frozen=True)
class NotificationRequest:
    """
    One alert the scheduler wants delivered.

    title/body are copied from the task when the request is built; later
    edits to the task do not reach an already scheduled alert.
    """

    notification_id: int
    kind: NotificationKind
    task_id: str
    fire_time: datetime
    title: str
    body: str
    payload: str


def fire_time_for(due_date: datetime, kind: NotificationKind) -> datetime:
    """Absolute fire moment in the local timezone."""
    due = to_local(due_date)
    if kind == NotificationKind.REMINDER_ONE_HOUR_BEFORE:
        return due - REMINDER_LEAD
    return due


def build_request(task: Task, kind: NotificationKind) -> NotificationRequest | None:
    """Request for one kind, ignoring eligibility. None without a due date."""
    if task.due_date is None:
        return None
    return NotificationRequest(
        notification_id=derive_id(task.id, kind),
        kind=kind,
        task_id=task.id,
        fire_time=fire_time_for(task.due_date, kind),
        title=_TITLES[kind],
        body=_BODIES[kind].format(title=task.title),
        payload=payload_for(task.id, kind),
    )


def plan_notifications(task: Task, now: datetime | None = None) -> list[NotificationRequest]:
    """
    Requests that should be pending for the task right now.

    Each kind is eligible only if its fire time is strictly after now:
    - due in 2h      -> reminder + due now
    - due in 30 min  -> due now only
    - due in the past -> nothing
    """
    if task.due_date is None:
        return []

    now = local_now() if now is None else to_local(now)
    out: list[NotificationRequest] = []
    for kind in NotificationKind:
        req = build_request(task, kind)
        if req is not None and req.fire_time > now:
            out.append(req)
    return out


class NotificationScheduler:
    """
    Reconciles a task's alerts against an injected delivery backend.

    Backend calls are fire-and-forget: each one is bounded by a timeout and
    any failure is logged and swallowed. Calls touching the same task id are
    serialized; different tasks do not wait for each other.
    """

    def __init__(
        self,
        backend: DeliveryBackend,
        *,
        timeout_seconds: float = 5.0,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._backend = backend
        self._timeout = max(0.1, float(timeout_seconds))
        self._clock = clock or local_now
        # Entries vanish once no call holds or waits on the lock.
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

    @property
    def backend(self) -> DeliveryBackend:
        return self._backend

    def now(self) -> datetime:
        """The clock eligibility is judged against."""
        return to_local(self._clock())

    def _lock_for(self, task_id: str) -> asyncio.Lock:
        lock = self._locks.get(task_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[task_id] = lock
        return lock

    async def _call(self, what: str, call: Awaitable[object]) -> bool:
        try:
            await asyncio.wait_for(call, timeout=self._timeout)
            return True
        except TimeoutError:
            logger.warning("%s timed out after %.1fs", what, self._timeout)
        except Exception:
            logger.exception("%s failed", what)
        return False

    async def _query(self, what: str, call: Awaitable[T], default: T) -> T:
        try:
            return await asyncio.wait_for(call, timeout=self._timeout)
        except TimeoutError:
            logger.warning("%s timed out after %.1fs", what, self._timeout)
        except Exception:
            logger.exception("%s failed", what)
        return default

    async def _cancel_ids(self, task_id: str) -> None:
        for kind, notification_id in derive_ids(task_id).items():
            await self._call(
                f"cancel id={notification_id} task_id={task_id} kind={kind.value}",
                self._backend.cancel(notification_id),
            )

    # ---- public API ----

    async def initialize(self, config: DeliveryConfig) -> bool:
        ok = await self._call("backend initialize", self._backend.initialize(config))
        if ok:
            logger.info(
                "Delivery backend initialized (alert=%s badge=%s sound=%s)",
                config.show_alert,
                config.show_badge,
                config.play_sound,
            )
        return ok

    async def schedule_task_notifications(self, task: Task) -> list[NotificationRequest]:
        """
        Replace the task's alerts with the ones its current due date calls for.

        Without a due date nothing happens at all, not even a cancel: a caller
        clearing a due date must call cancel_task_notifications() itself.

        Returns the requests that were sent to the backend.
        """
        if task.due_date is None:
            return []

        async with self._lock_for(task.id):
            requests = plan_notifications(task, self._clock())

            await self._cancel_ids(task.id)

            for req in requests:
                await self._call(
                    f"schedule id={req.notification_id} task_id={req.task_id} kind={req.kind.value}",
                    self._backend.schedule(
                        notification_id=req.notification_id,
                        fire_time=req.fire_time,
                        title=req.title,
                        body=req.body,
                        payload=req.payload,
                    ),
                )

        logger.info(
            "Notifications for task %s: %s",
            task.id,
            ", ".join(f"{r.kind.value}@{r.fire_time.isoformat()}" for r in requests) or "none eligible",
        )
        return requests

    async def cancel_task_notifications(self, task: Task) -> None:
        async with self._lock_for(task.id):
            await self._cancel_ids(task.id)
        logger.info("Notifications for task %s cancelled", task.id)

    async def cancel_all_notifications(self) -> None:
        await self._call("cancel_all", self._backend.cancel_all())
        logger.info("All notifications cancelled")

    async def list_pending(self) -> list[PendingNotification]:
        return await self._query("list_pending", self._backend.list_pending(), [])

    async def check_permissions(self) -> bool:
        """Diagnostic only: scheduling is attempted regardless of the answer."""
        granted = await self._query(
            "permissions_granted", self._backend.permissions_granted(), False
        )
        if not granted:
            logger.warning("Notification permission not granted; alerts may not be shown")
        return granted

    async def send_test_notification(self, delay_seconds: float = 5.0) -> bool:
        fire_time = self._clock() + timedelta(seconds=max(0.0, float(delay_seconds)))
        return await self._call(
            "schedule test notification",
            self._backend.schedule(
                notification_id=TEST_NOTIFICATION_ID,
                fire_time=fire_time,
                title="Test Notification 🔔",
                body="If you can see this, notifications are working.",
                payload="test",
            ),
        )
