# src/taskdeck/tasks/views.py

"""
Derived views over a task snapshot.

Pure functions: they take the sequence returned by TaskStore.list() and
never touch the store.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum

from .task_models import TaskRecord


def completed_list(tasks: Sequence[TaskRecord]) -> tuple[TaskRecord, ...]:
    return tuple(t for t in tasks if t.completed)


def total_points(tasks: Sequence[TaskRecord]) -> int:
    return sum(t.points for t in tasks if t.completed)


@dataclass(frozen=True, slots=True)
class Achievements:
    total_points: int
    completed: tuple[TaskRecord, ...]


def summarize_achievements(tasks: Sequence[TaskRecord]) -> Achievements:
    done = completed_list(tasks)
    return Achievements(total_points=total_points(done), completed=done)


class ViewMode(StrEnum):
    HOME = "home"  # all tasks, no actions
    NAVIGATOR = "tasks"  # all tasks, edit + delete


@dataclass(frozen=True, slots=True)
class TaskView:
    mode: ViewMode
    tasks: tuple[TaskRecord, ...]
    editable: bool
    deletable: bool
    achievements: Achievements | None = None


def select_view(tasks: Sequence[TaskRecord], mode: ViewMode | str) -> TaskView:
    """
    Pick the presentation policy for a view mode.

    Every mode shows the whole collection in store order; only the
    exposed actions differ. The navigator also carries the achievements panel.
    """
    mode = ViewMode(mode)
    snapshot = tuple(tasks)

    if mode is ViewMode.NAVIGATOR:
        return TaskView(
            mode=mode,
            tasks=snapshot,
            editable=True,
            deletable=True,
            achievements=summarize_achievements(snapshot),
        )

    return TaskView(mode=mode, tasks=snapshot, editable=False, deletable=False)
