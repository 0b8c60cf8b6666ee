# src/tasknotify/notifications/local_backend.py

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from ..core.ports import DeliveryConfig, PendingNotification

logger = logging.getLogger(__name__)

DeliverCallback = Callable[[PendingNotification], None]


@dataclass(slots=True)
class _Scheduled:
    notification: PendingNotification
    handle: asyncio.TimerHandle


class LocalDeliveryBackend:
    """
    In-process delivery backend driven by the running asyncio loop.

    Each pending notification is one loop timer keyed by id. Scheduling an id
    that is already pending replaces it. The entry is removed before the
    callback runs, so a notification is delivered at most once.

    Timers do not survive the process; callers re-run scheduling on start-up.
    """

    def __init__(self, on_deliver: DeliverCallback | None = None) -> None:
        self._on_deliver = on_deliver
        self._pending: dict[int, _Scheduled] = {}
        self._config = DeliveryConfig()
        self._initialized = False

    @property
    def config(self) -> DeliveryConfig:
        return self._config

    async def initialize(self, config: DeliveryConfig) -> None:
        self._config = config
        self._initialized = True

    async def schedule(
        self,
        *,
        notification_id: int,
        fire_time: datetime,
        title: str,
        body: str,
        payload: str | None = None,
    ) -> None:
        if fire_time.tzinfo is None:
            fire_time = fire_time.astimezone()

        self._drop(notification_id)

        loop = asyncio.get_running_loop()
        delay = (fire_time - datetime.now(fire_time.tzinfo)).total_seconds()
        notification = PendingNotification(
            id=notification_id,
            title=title,
            body=body,
            fire_time=fire_time,
            payload=payload,
        )
        handle = loop.call_later(max(0.0, delay), self._deliver, notification_id)
        self._pending[notification_id] = _Scheduled(notification=notification, handle=handle)
        logger.debug("Scheduled id=%s at %s (in %.1fs)", notification_id, fire_time.isoformat(), delay)

    async def cancel(self, notification_id: int) -> None:
        if self._drop(notification_id):
            logger.debug("Cancelled id=%s", notification_id)

    async def cancel_all(self) -> None:
        for notification_id in list(self._pending):
            self._drop(notification_id)

    async def list_pending(self) -> list[PendingNotification]:
        items = [s.notification for s in self._pending.values()]
        items.sort(key=lambda n: (n.fire_time is None, n.fire_time))
        return items

    async def permissions_granted(self) -> bool:
        return True

    def _drop(self, notification_id: int) -> bool:
        scheduled = self._pending.pop(notification_id, None)
        if scheduled is None:
            return False
        scheduled.handle.cancel()
        return True

    def _deliver(self, notification_id: int) -> None:
        scheduled = self._pending.pop(notification_id, None)
        if scheduled is None:
            return

        notification = scheduled.notification
        logger.info("Delivering id=%s title=%r", notification.id, notification.title)
        if self._on_deliver is None:
            return
        try:
            self._on_deliver(notification)
        except Exception:
            logger.exception("on_deliver callback failed id=%s", notification.id)
