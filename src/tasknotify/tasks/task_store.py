# src/tasknotify/tasks/task_store.py

from __future__ import annotations

import contextlib
import json
import logging
import os
from collections.abc import Iterable
from pathlib import Path

from .task_models import Task

logger = logging.getLogger(__name__)


class TaskStore:
    """
    JSON file task store.

    The file holds a flat list of task records (see Task.to_json).
    Anything unreadable is logged and loaded as an empty list: the app
    prefers starting empty over refusing to start.
    """

    def __init__(self, path: str | Path = "tasks.json") -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        logger.info("TaskStore ready path=%s", self._path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> list[Task]:
        if not self._path.exists():
            return []

        try:
            raw = self._path.read_text("utf-8")
        except OSError:
            logger.exception("Failed to read tasks from %s", self._path)
            return []

        if not raw.strip():
            return []

        try:
            data = json.loads(raw)
            if not isinstance(data, list):
                raise ValueError(f"expected a list of tasks, got {type(data).__name__}")
            tasks = [Task.from_json(record) for record in data]
        except ValueError:
            # json.JSONDecodeError and TaskParseError are both ValueErrors.
            logger.exception("Malformed tasks file %s; starting with no tasks", self._path)
            return []

        logger.debug("Loaded %d tasks from %s", len(tasks), self._path)
        return tasks

    def save(self, tasks: Iterable[Task]) -> None:
        records = [t.to_json() for t in tasks]
        tmp = self._path.with_suffix(".tmp")
        tmp.write_text(json.dumps(records, ensure_ascii=False, indent=2), "utf-8")
        os.replace(tmp, self._path)
        logger.debug("Saved %d tasks to %s", len(records), self._path)

    def clear(self) -> None:
        with contextlib.suppress(FileNotFoundError):
            self._path.unlink()
        logger.info("Cleared tasks at %s", self._path)
