# src/taskdeck/tasks/task_store.py

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping
from dataclasses import replace
from typing import Any

from ..core.ports import TaskBackend
from .task_models import TaskRecord, normalize, record_from_stored

logger = logging.getLogger(__name__)


class IdGenerator:
    """
    Time-derived, strictly increasing task ids.

    Ids are wall-clock milliseconds, bumped past the last issued id so two
    creations in the same millisecond still get distinct ids.
    """

    def __init__(self, *, start_after: int = 0, clock: Callable[[], float] = time.time) -> None:
        self._last = int(start_after)
        self._clock = clock

    def next_id(self) -> int:
        now_ms = int(self._clock() * 1000)
        self._last = max(now_ms, self._last + 1)
        return self._last

    def observe(self, task_id: int) -> None:
        if task_id > self._last:
            self._last = task_id


class TaskStore:
    """
    Owner of the ordered task collection (newest first).

    Every mutator commits the new collection to the backend before it
    replaces the in-memory snapshot; a failed write leaves both untouched.
    Missing ids are no-ops, never errors.
    """

    def __init__(self, backend: TaskBackend, *, id_generator: IdGenerator | None = None) -> None:
        self._backend = backend
        self._tasks: tuple[TaskRecord, ...] = self._load()

        max_id = max((t.id for t in self._tasks), default=0)
        self._ids = id_generator or IdGenerator()
        self._ids.observe(max_id)

        logger.info("TaskStore ready backend=%r total=%s", backend, len(self._tasks))

    def _load(self) -> tuple[TaskRecord, ...]:
        raw_items = self._backend.load()
        out: list[TaskRecord] = []
        for pos, raw in enumerate(raw_items):
            record = record_from_stored(raw, ordinal=len(raw_items) - pos)
            if record is None:
                logger.warning("Skipping stored task without a usable id at position %s", pos)
                continue
            out.append(record)
        return tuple(out)

    def _commit(self, tasks: tuple[TaskRecord, ...]) -> None:
        self._backend.save([t.to_dict() for t in tasks])
        self._tasks = tasks

    def _index_of(self, task_id: int) -> int | None:
        for i, t in enumerate(self._tasks):
            if t.id == task_id:
                return i
        return None

    # ---- identity helpers ----

    def next_id(self) -> int:
        return self._ids.next_id()

    def next_ordinal(self) -> int:
        """Position-based number for the default "Task N" title."""
        return len(self._tasks) + 1

    # ---- public API ----

    def __len__(self) -> int:
        return len(self._tasks)

    def list(self) -> tuple[TaskRecord, ...]:
        return self._tasks

    def get(self, task_id: int) -> TaskRecord | None:
        idx = self._index_of(task_id)
        return None if idx is None else self._tasks[idx]

    def create(self, record: TaskRecord) -> TaskRecord:
        """Prepend a record. No uniqueness check on text; a clashing id is reissued."""
        if self._index_of(record.id) is not None:
            new_id = self.next_id()
            logger.warning("Task id %s already present; reassigned to %s", record.id, new_id)
            record = replace(record, id=new_id)
        else:
            self._ids.observe(record.id)

        self._commit((record, *self._tasks))
        logger.debug("Task created id=%s title=%r", record.id, record.title)
        return record

    def add(self, fields: Mapping[str, Any]) -> TaskRecord:
        """Structured create: explicit fields, fresh id, positional default title."""
        record = normalize(fields, task_id=self.next_id(), ordinal=self.next_ordinal())
        return self.create(record)

    def toggle(self, task_id: int) -> TaskRecord | None:
        idx = self._index_of(task_id)
        if idx is None:
            logger.debug("toggle: no task id=%s", task_id)
            return None

        current = self._tasks[idx]
        toggled = replace(current, completed=not current.completed)
        self._commit((*self._tasks[:idx], toggled, *self._tasks[idx + 1 :]))
        logger.debug("Task toggled id=%s completed=%s", task_id, toggled.completed)
        return toggled

    def update(self, record: TaskRecord) -> TaskRecord | None:
        """Replace the record with the same id in place; position is preserved."""
        idx = self._index_of(record.id)
        if idx is None:
            logger.debug("update: no task id=%s", record.id)
            return None

        self._commit((*self._tasks[:idx], record, *self._tasks[idx + 1 :]))
        logger.debug("Task updated id=%s", record.id)
        return record

    def edit(self, task_id: int, changes: Mapping[str, Any]) -> TaskRecord | None:
        """Merge field changes over the current record, normalize, then update."""
        idx = self._index_of(task_id)
        if idx is None:
            logger.debug("edit: no task id=%s", task_id)
            return None

        merged = {**self._tasks[idx].to_dict(), **dict(changes)}
        record = normalize(merged, task_id=task_id, ordinal=len(self._tasks) - idx)
        return self.update(record)

    def delete(self, task_id: int) -> bool:
        idx = self._index_of(task_id)
        if idx is None:
            logger.debug("delete: no task id=%s", task_id)
            return False

        self._commit((*self._tasks[:idx], *self._tasks[idx + 1 :]))
        logger.debug("Task deleted id=%s", task_id)
        return True
