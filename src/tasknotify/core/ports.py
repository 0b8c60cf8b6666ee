# src/tasknotify/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The core depends on Protocols instead of concrete implementations.
This keeps the delivery backend and the task storage swappable and makes testing easier.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol


@dataclass(slots=True, frozen=True)
class DeliveryConfig:
    """Alert presentation options. Nothing about scheduling depends on them."""

    show_alert: bool = True
    show_badge: bool = True
    play_sound: bool = True


@dataclass(slots=True, frozen=True)
class PendingNotification:
    id: int
    title: str
    body: str
    fire_time: datetime | None = None
    payload: str | None = None


class DeliveryBackend(Protocol):
    """
    Platform side: actually presents alerts at the requested time.

    Contract:
    - schedule() registers exactly one future delivery for the id,
      replacing any pending one with the same id
    - cancel() on an unknown id is a no-op
    - delivery happens at most once, near fire_time
    """

    async def initialize(self, config: DeliveryConfig) -> None: ...

    async def schedule(
            self,
            *,
            notification_id: int,
            fire_time: datetime,
            title: str,
            body: str,
            payload: str | None = None,
    ) -> None: ...

    async def cancel(self, notification_id: int) -> None: ...

    async def cancel_all(self) -> None: ...

    async def list_pending(self) -> list[PendingNotification]: ...

    async def permissions_granted(self) -> bool: ...


class TaskRepo(Protocol):
    def load(self) -> list: ...
    def save(self, tasks: Iterable) -> None: ...
    def clear(self) -> None: ...
