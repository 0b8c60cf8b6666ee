# tests/test_notification_scheduler.py

from __future__ import annotations

import asyncio
import logging
from datetime import timedelta

import pytest

from tasknotify.core.ports import DeliveryConfig
from tasknotify.notifications.notification_ids import (
    TEST_NOTIFICATION_ID,
    NotificationKind,
    derive_id,
)
from tasknotify.notifications.notification_scheduler import (
    NotificationScheduler,
    plan_notifications,
)

from .conftest import NOW, make_task
from .fakes import FakeDeliveryBackend

DUE = NotificationKind.DUE_NOW
REMINDER = NotificationKind.REMINDER_ONE_HOUR_BEFORE


# ---- plan_notifications (pure) ----


def test_plan_eligibility_boundary() -> None:
    one_second = make_task(due_in=timedelta(seconds=1))
    assert [r.kind for r in plan_notifications(one_second, NOW)] == [DUE]

    exactly_now = make_task(due_in=timedelta(0))
    assert plan_notifications(exactly_now, NOW) == []

    reminder_exactly_now = make_task(due_in=timedelta(hours=1))
    assert [r.kind for r in plan_notifications(reminder_exactly_now, NOW)] == [DUE]


def test_plan_without_due_date_is_empty() -> None:
    assert plan_notifications(make_task(due_in=None), NOW) == []


def test_plan_due_in_two_hours_gets_both() -> None:
    plan = plan_notifications(make_task(due_in=timedelta(hours=2)), NOW)
    assert {r.kind for r in plan} == {DUE, REMINDER}


def test_plan_fire_times_are_local_and_absolute() -> None:
    task = make_task(due_in=timedelta(minutes=90))
    by_kind = {r.kind: r for r in plan_notifications(task, NOW)}

    assert by_kind[DUE].fire_time == NOW + timedelta(minutes=90)
    assert by_kind[REMINDER].fire_time == NOW + timedelta(minutes=30)
    for req in by_kind.values():
        assert req.fire_time.tzinfo is not None
        assert req.fire_time.utcoffset() == req.fire_time.astimezone().utcoffset()


# ---- reconciliation ----


@pytest.mark.asyncio
async def test_scenario_pay_rent_in_90_minutes(scheduler, backend: FakeDeliveryBackend) -> None:
    task = make_task("abc123", "Pay rent", timedelta(minutes=90))

    issued = await scheduler.schedule_task_notifications(task)

    assert len(issued) == 2
    due_id = derive_id("abc123", DUE)
    reminder_id = derive_id("abc123", REMINDER)
    assert due_id != reminder_id
    assert set(backend.pending) == {due_id, reminder_id}

    due = backend.pending[due_id]
    assert due.title == "Task Due Now! ⏰"
    assert due.body == "Pay rent is due now"
    assert due.fire_time == NOW + timedelta(minutes=90)
    assert due.payload == "due_abc123"

    reminder = backend.pending[reminder_id]
    assert reminder.title == "Task Reminder! 📝"
    assert reminder.body == "Pay rent is due in 1 hour"
    assert reminder.fire_time == NOW + timedelta(minutes=30)
    assert reminder.payload == "reminder_abc123"


@pytest.mark.asyncio
async def test_due_in_ten_minutes_only_due_now(scheduler, backend: FakeDeliveryBackend) -> None:
    task = make_task(due_in=timedelta(minutes=10))
    await scheduler.schedule_task_notifications(task)
    assert list(backend.pending) == [derive_id(task.id, DUE)]


@pytest.mark.asyncio
async def test_overdue_task_schedules_nothing(scheduler, backend: FakeDeliveryBackend) -> None:
    task = make_task(due_in=-timedelta(days=1))
    issued = await scheduler.schedule_task_notifications(task)
    assert issued == []
    assert backend.pending == {}
    # Stale alerts are still cancelled.
    assert backend.ops() == ["cancel", "cancel"]


@pytest.mark.asyncio
async def test_no_due_date_makes_no_backend_calls(scheduler, backend: FakeDeliveryBackend) -> None:
    assert await scheduler.schedule_task_notifications(make_task(due_in=None)) == []
    assert backend.calls == []


@pytest.mark.asyncio
async def test_scheduling_twice_is_idempotent(scheduler, backend: FakeDeliveryBackend) -> None:
    task = make_task(due_in=timedelta(hours=3))

    await scheduler.schedule_task_notifications(task)
    await scheduler.schedule_task_notifications(task)

    assert len(backend.pending) == 2
    assert backend.ops() == ["cancel", "cancel", "schedule", "schedule"] * 2


@pytest.mark.asyncio
async def test_moving_due_date_replaces_alerts(scheduler, backend: FakeDeliveryBackend) -> None:
    task = make_task(due_in=timedelta(hours=3))
    await scheduler.schedule_task_notifications(task)

    task.due_date = NOW + timedelta(minutes=20)
    task.title = "Pay rent today"
    await scheduler.schedule_task_notifications(task)

    assert list(backend.pending) == [derive_id(task.id, DUE)]
    assert backend.pending[derive_id(task.id, DUE)].body == "Pay rent today is due now"


@pytest.mark.asyncio
async def test_scheduled_text_is_frozen(scheduler, backend: FakeDeliveryBackend) -> None:
    task = make_task(due_in=timedelta(hours=3))
    await scheduler.schedule_task_notifications(task)

    task.title = "Something else"
    assert backend.pending[derive_id(task.id, DUE)].body == "Pay rent is due now"


@pytest.mark.asyncio
async def test_cancel_task_notifications(scheduler, backend: FakeDeliveryBackend) -> None:
    task = make_task(due_in=timedelta(hours=3))
    other = make_task("other", "Buy milk", timedelta(hours=3))
    await scheduler.schedule_task_notifications(task)
    await scheduler.schedule_task_notifications(other)

    await scheduler.cancel_task_notifications(task)

    pending_ids = {n.id for n in await scheduler.list_pending()}
    assert derive_id(task.id, DUE) not in pending_ids
    assert derive_id(task.id, REMINDER) not in pending_ids
    assert len(pending_ids) == 2


@pytest.mark.asyncio
async def test_cancel_unknown_task_is_harmless(scheduler, backend: FakeDeliveryBackend) -> None:
    await scheduler.cancel_task_notifications(make_task("never-scheduled"))
    assert backend.ops() == ["cancel", "cancel"]


@pytest.mark.asyncio
async def test_cancel_all(scheduler, backend: FakeDeliveryBackend) -> None:
    await scheduler.schedule_task_notifications(make_task("a", due_in=timedelta(hours=2)))
    await scheduler.schedule_task_notifications(make_task("b", due_in=timedelta(hours=2)))

    await scheduler.cancel_all_notifications()

    assert await scheduler.list_pending() == []


@pytest.mark.asyncio
async def test_same_task_calls_are_serialized(scheduler, backend: FakeDeliveryBackend) -> None:
    task = make_task(due_in=timedelta(hours=3))

    await asyncio.gather(
        scheduler.schedule_task_notifications(task),
        scheduler.schedule_task_notifications(task),
    )

    assert backend.ops() == ["cancel", "cancel", "schedule", "schedule"] * 2
    assert len(backend.pending) == 2


# ---- failures are logged, never raised ----


@pytest.mark.asyncio
async def test_schedule_failure_is_not_fatal(caplog) -> None:
    backend = FakeDeliveryBackend(fail_on={"schedule"})
    scheduler = NotificationScheduler(backend, clock=lambda: NOW)

    with caplog.at_level(logging.ERROR):
        issued = await scheduler.schedule_task_notifications(make_task(due_in=timedelta(hours=2)))

    assert len(issued) == 2
    assert backend.ops() == ["cancel", "cancel", "schedule", "schedule"]
    assert backend.pending == {}
    assert "failed" in caplog.text


@pytest.mark.asyncio
async def test_hanging_cancel_times_out_and_scheduling_continues(caplog) -> None:
    backend = FakeDeliveryBackend(hang_on={"cancel"})
    scheduler = NotificationScheduler(backend, timeout_seconds=0.1, clock=lambda: NOW)
    task = make_task(due_in=timedelta(hours=2))

    with caplog.at_level(logging.WARNING):
        await scheduler.schedule_task_notifications(task)

    assert len(backend.pending) == 2
    assert "timed out" in caplog.text


@pytest.mark.asyncio
async def test_list_pending_failure_returns_empty() -> None:
    backend = FakeDeliveryBackend(fail_on={"list_pending"})
    scheduler = NotificationScheduler(backend, clock=lambda: NOW)
    assert await scheduler.list_pending() == []


# ---- diagnostics ----


@pytest.mark.asyncio
async def test_permission_is_diagnostic_only(backend: FakeDeliveryBackend) -> None:
    backend.granted = False
    scheduler = NotificationScheduler(backend, clock=lambda: NOW)

    assert await scheduler.check_permissions() is False
    await scheduler.schedule_task_notifications(make_task(due_in=timedelta(hours=2)))
    assert len(backend.pending) == 2


@pytest.mark.asyncio
async def test_initialize_passes_config(scheduler, backend: FakeDeliveryBackend) -> None:
    config = DeliveryConfig(show_alert=True, show_badge=False, play_sound=True)
    assert await scheduler.initialize(config) is True
    assert backend.config == config


@pytest.mark.asyncio
async def test_send_test_notification(scheduler, backend: FakeDeliveryBackend) -> None:
    assert await scheduler.send_test_notification(delay_seconds=5) is True
    pending = backend.pending[TEST_NOTIFICATION_ID]
    assert pending.fire_time == NOW + timedelta(seconds=5)


@pytest.mark.asyncio
async def test_locks_are_released_for_finished_tasks(scheduler, backend: FakeDeliveryBackend) -> None:
    for i in range(50):
        task = make_task(f"task-{i}", due_in=timedelta(hours=2))
        await scheduler.schedule_task_notifications(task)
        await scheduler.cancel_task_notifications(task)

    assert backend.pending == {}
    assert len(scheduler._locks) == 0
