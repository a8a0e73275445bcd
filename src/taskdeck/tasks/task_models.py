# src/taskdeck/tasks/task_models.py

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

UNTITLED_TEXT = "Untitled Task"


class Priority(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @classmethod
    def from_raw(cls, raw: Any) -> Priority:
        if isinstance(raw, Priority):
            return raw
        if not isinstance(raw, str):
            return cls.MEDIUM
        try:
            return cls(raw.strip().lower())
        except ValueError:
            return cls.MEDIUM


@dataclass(frozen=True, slots=True)
class TaskRecord:
    """
    One task.

    Records are immutable snapshots: the store replaces them instead of
    mutating, so a record handed to a caller never changes underneath it.
    """

    id: int
    title: str
    text: str
    description: str = ""
    completed: bool = False
    tags: tuple[str, ...] = field(default_factory=tuple)
    priority: Priority = Priority.MEDIUM
    points: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "text": self.text,
            "description": self.description,
            "completed": self.completed,
            "tags": list(self.tags),
            "priority": self.priority.value,
            "points": self.points,
        }


def default_title(ordinal: int) -> str:
    return f"Task {ordinal}"


def parse_tags(raw: Any) -> tuple[str, ...]:
    """
    Accept a list of tags or one comma-separated string.

    Elements are trimmed; empty elements are kept and duplicates are not removed.
    """
    if raw is None:
        return ()
    if isinstance(raw, str):
        if not raw.strip():
            return ()
        return tuple(part.strip() for part in raw.split(","))
    if isinstance(raw, (list, tuple)):
        return tuple(str(t).strip() for t in raw if t is not None)
    return ()


def coerce_points(raw: Any) -> int:
    if isinstance(raw, bool) or raw is None:
        return 0
    if isinstance(raw, int):
        return max(0, raw)
    if isinstance(raw, str):
        raw = raw.strip()
        if not raw:
            return 0
        try:
            return max(0, int(raw))
        except ValueError:
            pass
    try:
        value = float(raw)
    except (TypeError, ValueError, OverflowError):
        return 0
    if not math.isfinite(value):
        return 0
    return max(0, int(value))



def _str_field(raw: Any) -> str:
    if raw is None:
        return ""
    return raw if isinstance(raw, str) else str(raw)


def normalize(partial: Mapping[str, Any] | None, *, task_id: int, ordinal: int = 1) -> TaskRecord:
    """
    Build a complete TaskRecord from partial or untrusted fields.

    Never raises. `task_id` always comes from the caller; any "id" key in
    `partial` is ignored. `ordinal` feeds the default "Task N" title.
    """
    data: Mapping[str, Any] = partial if isinstance(partial, Mapping) else {}

    title = _str_field(data.get("title")).strip() or default_title(ordinal)
    text = _str_field(data.get("text")).strip() or UNTITLED_TEXT

    return TaskRecord(
        id=int(task_id),
        title=title,
        text=text,
        description=_str_field(data.get("description")),
        completed=data.get("completed") is True,
        tags=parse_tags(data.get("tags")),
        priority=Priority.from_raw(data.get("priority")),
        points=coerce_points(data.get("points")),
    )


def record_from_stored(raw: Any, *, ordinal: int = 1) -> TaskRecord | None:
    """Rebuild a record from a persisted dict; None if it has no usable id."""
    if not isinstance(raw, Mapping):
        return None
    raw_id = raw.get("id")
    if isinstance(raw_id, bool):
        return None
    try:
        task_id = int(raw_id)
    except (TypeError, ValueError, OverflowError):
        return None
    return normalize(raw, task_id=task_id, ordinal=ordinal)
