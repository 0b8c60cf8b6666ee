# src/tasknotify/cli/commands.py

from __future__ import annotations

import logging
import math
import re
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta

from ..core.state import AppState
from ..notifications.notification_ids import derive_ids
from ..tasks import task_api
from ..tasks.task_api import TaskNotFoundError
from ..tasks.task_models import local_now

CommandHandler = Callable[[AppState, list[str]], Awaitable[str]]

logger = logging.getLogger(__name__)

_RELATIVE_RE = re.compile(r"^\+(\d+)([mhd])$")
_UNITS = {"m": "minutes", "h": "hours", "d": "days"}
MAX_TEST_DELAY_SECONDS = 3600


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    async def handle(self, state: AppState, line: str) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            return await handler(state, args)
        except TaskNotFoundError as e:
            return f"Task not found: {e}"
        except ValueError as e:
            return f"Invalid input: {e}"

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def parse_when(text: str, now: datetime | None = None) -> datetime:
    """
    Parse a due date:
      +90m / +2h / +1d          relative to now
      HH:MM                     today
      YYYY-MM-DD HH:MM          absolute, local time
    """
    now = local_now() if now is None else now
    text = " ".join(text.split())
    if not text:
        raise ValueError("missing due date")

    m = _RELATIVE_RE.match(text)
    if m:
        try:
            return now + timedelta(**{_UNITS[m.group(2)]: int(m.group(1))})
        except OverflowError as e:
            raise ValueError(f"due date out of range: {text!r}") from e

    if re.fullmatch(r"\d{1,2}:\d{2}", text):
        hour, minute = (int(p) for p in text.split(":"))
        try:
            return now.replace(hour=hour, minute=minute, second=0, microsecond=0)
        except ValueError as e:
            raise ValueError(f"bad time {text!r}") from e

    try:
        return datetime.fromisoformat(text.replace(" ", "T")).astimezone()
    except (ValueError, OverflowError) as e:
        raise ValueError(f"cannot parse due date {text!r}") from e


def _format_task_line(index: int, task) -> str:
    flags = " OVERDUE" if task.is_overdue() else ""
    return (
        f"{index}. [{task.status.value}] {task.title} ({task.category.value}) - "
        f"{task.due_date_display()}{flags}  id={task.id[:8]}"
    )


async def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


async def cmd_list(state: AppState, args: list[str]) -> str:
    if not state.tasks:
        return "No tasks yet. Add one with /add <title> [@ <when>]."
    return "\n".join(_format_task_line(i, t) for i, t in enumerate(state.tasks, start=1))


async def cmd_add(state: AppState, args: list[str]) -> str:
    """
    /add Pay rent             -> no due date
    /add Pay rent @ +90m      -> due in 90 minutes
    """
    raw = " ".join(args)
    title, sep, when = raw.partition("@")
    due = parse_when(when) if sep else None
    task = await task_api.create_task(state, title=title, due_date=due)

    if due is None:
        return f"Added: {task.title}"
    return f"Added: {task.title} ({task.due_date_display()})"


async def cmd_due(state: AppState, args: list[str]) -> str:
    if len(args) < 2:
        return "Usage: /due <task> <when>  (e.g. /due 1 +2h, /due 1 2030-01-01 09:00)"
    due = parse_when(" ".join(args[1:]))
    task = await task_api.set_due_date(state, args[0], due)
    return f"Due date set: {task.title} ({task.due_date_display()})"


async def cmd_nodue(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /nodue <task>"
    task = await task_api.clear_due_date(state, args[0])
    return f"Due date cleared: {task.title}"


async def cmd_rename(state: AppState, args: list[str]) -> str:
    if len(args) < 2:
        return "Usage: /rename <task> <new title>"
    task = await task_api.update_task(state, args[0], title=" ".join(args[1:]))
    return f"Renamed: {task.title}"


async def cmd_status(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /status <task>"
    task = await task_api.cycle_status(state, args[0])
    return f"{task.title}: {task.status.value}"


async def cmd_delete(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /delete <task>"
    task = await task_api.delete_task(state, args[0])
    return f"Deleted: {task.title}"


async def cmd_pending(state: AppState, args: list[str]) -> str:
    pending = await state.scheduler.list_pending()
    if not pending:
        return "Pending notifications: 0"

    owners: dict[int, str] = {}
    for task in state.tasks:
        for notification_id in derive_ids(task.id).values():
            owners[notification_id] = task.title

    lines = [f"Pending notifications: {len(pending)}"]
    for n in pending:
        when = n.fire_time.strftime("%Y-%m-%d %H:%M") if n.fire_time else "?"
        owner = owners.get(n.id)
        suffix = f" [{owner}]" if owner else ""
        lines.append(f"  #{n.id} {when} {n.title} {n.body}{suffix}")
    return "\n".join(lines)


async def cmd_perm(state: AppState, args: list[str]) -> str:
    granted = await state.scheduler.check_permissions()
    if granted:
        return "Notifications enabled ✅"
    return "Notifications disabled ❌ (alerts are still scheduled, but may not be shown)"


async def cmd_test(state: AppState, args: list[str]) -> str:
    delay = float(args[0]) if args else 5.0
    if not math.isfinite(delay) or not 0 <= delay <= MAX_TEST_DELAY_SECONDS:
        raise ValueError(f"delay must be between 0 and {MAX_TEST_DELAY_SECONDS} seconds")
    ok = await state.scheduler.send_test_notification(delay_seconds=delay)
    if not ok:
        return "Failed to schedule test notification (see log)."
    return f"Test notification scheduled in {delay:g}s."


async def cmd_clearall(state: AppState, args: list[str]) -> str:
    await state.scheduler.cancel_all_notifications()
    return "All pending notifications cancelled."


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("list", cmd_list, help_text="List tasks.", aliases=["ls"])
registry.register("add", cmd_add, help_text="Add a task: /add <title> [@ <when>].")
registry.register("due", cmd_due, help_text="Set due date: /due <task> <+90m | HH:MM | YYYY-MM-DD HH:MM>.")
registry.register("nodue", cmd_nodue, help_text="Clear due date and its notifications: /nodue <task>.")
registry.register("rename", cmd_rename, help_text="Change title: /rename <task> <title>.")
registry.register("status", cmd_status, help_text="Cycle status Assigned -> Started -> Completed.")
registry.register("delete", cmd_delete, help_text="Delete a task: /delete <task>.", aliases=["rm"])
registry.register("pending", cmd_pending, help_text="Show pending notifications.")
registry.register("perm", cmd_perm, help_text="Check notification permission.")
registry.register("test", cmd_test, help_text="Schedule a test notification: /test [seconds].")
registry.register("clearall", cmd_clearall, help_text="Cancel every pending notification.")
