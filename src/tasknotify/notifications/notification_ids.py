# src/tasknotify/notifications/notification_ids.py

"""
Notification identifiers derived from task ids.

No task -> notification id table is stored anywhere: the id for
(task_id, kind) is recomputed whenever it is needed, so a task can be
cancelled after a restart without any extra state. Two different tasks
may collide; that risk is accepted.
"""

from __future__ import annotations

import hashlib
from enum import StrEnum


class NotificationKind(StrEnum):
    DUE_NOW = "due"
    REMINDER_ONE_HOUR_BEFORE = "reminder"


# Offsets keep the two kinds of one task apart: base*2+1 is odd, base*2+2 is even.
_KIND_OFFSET: dict[NotificationKind, int] = {
    NotificationKind.DUE_NOW: 0,
    NotificationKind.REMINDER_ONE_HOUR_BEFORE: 1,
}

# Largest id is (_BASE_SPACE - 1) * 2 + 2 == 2**31 - 2, inside a signed 32-bit int.
_BASE_SPACE = 2**30 - 1

MIN_NOTIFICATION_ID = 1
MAX_NOTIFICATION_ID = 2**31 - 2

# Never produced by derive_id.
TEST_NOTIFICATION_ID = 0


def _stable_hash(task_id: str) -> int:
    # hash() is salted per process; ids must survive restarts.
    digest = hashlib.sha256(task_id.encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "big")


def derive_id(task_id: str, kind: NotificationKind) -> int:
    base = _stable_hash(task_id) % _BASE_SPACE
    return base * 2 + 1 + _KIND_OFFSET[kind]


def derive_ids(task_id: str) -> dict[NotificationKind, int]:
    return {kind: derive_id(task_id, kind) for kind in NotificationKind}


def payload_for(task_id: str, kind: NotificationKind) -> str:
    """Opaque tap-through payload, e.g. "due_<task id>"."""
    return f"{kind.value}_{task_id}"
