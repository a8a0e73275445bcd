# src/taskdeck/cli/commands.py

from __future__ import annotations

import contextlib
import logging
import shlex
from collections.abc import Callable

from ..core.state import AppState
from ..llm.client import friendly_llm_error_message
from ..tasks.extraction import SubmitOutcome, submit_free_text
from ..tasks.task_models import TaskRecord
from ..tasks.views import Achievements, TaskView, ViewMode, select_view, summarize_achievements

CommandEmitter = Callable[[str], None]
CommandHandler = Callable[[AppState, str, CommandEmitter | None], str]

EDITABLE_FIELDS = ("title", "text", "description", "tags", "priority", "points")

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /done, ...)."""

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

    def handle(self, state: AppState, line: str, emit: CommandEmitter | None = None) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        name, _, arg_text = line[1:].strip().partition(" ")
        if not name:
            return "Empty command. Use /help to list available commands."

        handler = self._handlers.get(name.lower())
        if not handler:
            return f"Unknown command: /{name.lower()}. Use /help to list available commands."

        return handler(state, arg_text.strip(), emit)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        lines.append("Any other text is turned into a new task.")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- rendering ----


def format_task(task: TaskRecord) -> str:
    mark = "x" if task.completed else " "
    lines = [f"[{mark}] #{task.id} {task.title}: {task.text} ({task.priority.value} priority, {task.points} pts)"]
    if task.description:
        lines.append(f"      {task.description}")
    if task.tags:
        lines.append(f"      tags: {', '.join(task.tags)}")
    return "\n".join(lines)


def format_achievements(ach: Achievements) -> str:
    lines = ["Current achievements:", f"  Total points earned: {ach.total_points}"]
    if not ach.completed:
        lines.append("  No achievements yet. Complete tasks to see them here!")
    for t in ach.completed:
        lines.append(f"  - {t.title}: {t.text} ({t.points} pts)")
    return "\n".join(lines)


def render_view(view: TaskView) -> str:
    header = "Your tasks:" if view.mode is ViewMode.HOME else "Task navigator:"
    if not view.tasks:
        return f"{header}\n  No tasks added yet."

    lines = [header, *(format_task(t) for t in view.tasks)]
    if view.editable or view.deletable:
        lines.append("Use /edit <id> field=value ... or /delete <id>.")
    if view.achievements is not None:
        lines.append("")
        lines.append(format_achievements(view.achievements))
    return "\n".join(lines)


# ---- helpers ----


def _parse_id(arg_text: str) -> int | None:
    token = arg_text.split()[0] if arg_text.split() else ""
    token = token.lstrip("#")
    try:
        return int(token)
    except ValueError:
        return None


def _parse_fields(tokens: list[str]) -> dict[str, str] | str:
    """key=value tokens -> dict; returns an error message on bad input."""
    fields: dict[str, str] = {}
    for tok in tokens:
        key, sep, value = tok.partition("=")
        key = key.strip().lower()
        if not sep or key not in EDITABLE_FIELDS:
            return f"Bad field '{tok}'. Fields: {', '.join(EDITABLE_FIELDS)}."
        fields[key] = value
    return fields


def submit_text(state: AppState, text: str, emit: CommandEmitter | None = None) -> str:
    """Free-text entry point shared by the console and /retry."""
    if emit:
        with contextlib.suppress(Exception):
            emit("Extracting task...")

    outcome: SubmitOutcome | None = submit_free_text(state.task_store, state.extractor, text)
    if outcome is None:
        return "Nothing to add."

    if outcome.record is None:
        state.pending_input = outcome.retained_text
        failure = outcome.failure
        if failure is not None and failure.reason == "llm_error":
            reason = friendly_llm_error_message(RuntimeError(failure.raw))
            return (
                f"LLM unavailable: {reason}\n"
                f"Your text was kept: {outcome.retained_text!r}. Use /retry to try again."
            )
        return (
            "Could not understand that task; nothing was added.\n"
            f"Your text was kept: {outcome.retained_text!r}. Use /retry to try again."
        )

    state.pending_input = ""
    return f"Task added:\n{format_task(outcome.record)}"


# ---- commands ----


def cmd_help(state: AppState, arg_text: str, emit: CommandEmitter | None = None) -> str:
    return registry.build_help()


def cmd_status(state: AppState, arg_text: str, emit: CommandEmitter | None = None) -> str:
    models = ", ".join(list(getattr(state.settings, "llm_models", []) or []))
    return (
        "Status:\n"
        f"  LLM client: {state.llm.__class__.__name__}\n"
        f"  Models (priority -> fallback): {models}\n"
        f"  Tasks: {len(state.task_store)}\n"
        f"  View: {state.view_mode.value}"
    )


def cmd_home(state: AppState, arg_text: str, emit: CommandEmitter | None = None) -> str:
    state.view_mode = ViewMode.HOME
    return render_view(select_view(state.task_store.list(), ViewMode.HOME))


def cmd_tasks(state: AppState, arg_text: str, emit: CommandEmitter | None = None) -> str:
    state.view_mode = ViewMode.NAVIGATOR
    return render_view(select_view(state.task_store.list(), ViewMode.NAVIGATOR))


def cmd_achievements(state: AppState, arg_text: str, emit: CommandEmitter | None = None) -> str:
    return format_achievements(summarize_achievements(state.task_store.list()))


def cmd_new(state: AppState, arg_text: str, emit: CommandEmitter | None = None) -> str:
    """
    /new text="Buy milk" priority=high tags="home, food" points=5
    """
    try:
        tokens = shlex.split(arg_text)
    except ValueError as e:
        return f"Could not parse fields: {e}."
    if not tokens:
        return 'Usage: /new text="..." [title=...] [description=...] [tags="a, b"] [priority=high|medium|low] [points=N]'

    fields = _parse_fields(tokens)
    if isinstance(fields, str):
        return fields
    if not fields.get("text", "").strip():
        return "A task needs text=... ."

    task = state.task_store.add(fields)
    return f"Task added:\n{format_task(task)}"


def cmd_edit(state: AppState, arg_text: str, emit: CommandEmitter | None = None) -> str:
    """
    /edit <id> field=value ...
    """
    task_id = _parse_id(arg_text)
    if task_id is None:
        return "Usage: /edit <id> field=value ..."

    try:
        tokens = shlex.split(arg_text)[1:]
    except ValueError as e:
        return f"Could not parse fields: {e}."
    if not tokens:
        return "Nothing to change. Usage: /edit <id> field=value ..."

    fields = _parse_fields(tokens)
    if isinstance(fields, str):
        return fields

    task = state.task_store.edit(task_id, fields)
    if task is None:
        return f"No task #{task_id}."
    return f"Task updated:\n{format_task(task)}"


def cmd_done(state: AppState, arg_text: str, emit: CommandEmitter | None = None) -> str:
    task_id = _parse_id(arg_text)
    if task_id is None:
        return "Usage: /done <id>"
    task = state.task_store.toggle(task_id)
    if task is None:
        return f"No task #{task_id}."
    return f"Task #{task.id} marked {'done' if task.completed else 'not done'}."


def cmd_delete(state: AppState, arg_text: str, emit: CommandEmitter | None = None) -> str:
    task_id = _parse_id(arg_text)
    if task_id is None:
        return "Usage: /delete <id>"
    if not state.task_store.delete(task_id):
        return f"No task #{task_id}."
    return f"Task #{task_id} deleted."


def cmd_retry(state: AppState, arg_text: str, emit: CommandEmitter | None = None) -> str:
    if not state.pending_input:
        return "Nothing to retry."
    return submit_text(state, state.pending_input, emit)


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show LLM client, models and task count.")
registry.register("home", cmd_home, help_text="Show all tasks.")
registry.register("tasks", cmd_tasks, help_text="Task navigator: all tasks with edit/delete and achievements.")
registry.register("achievements", cmd_achievements, help_text="Show completed tasks and total points.", aliases=["points"])
registry.register("new", cmd_new, help_text='Add a task from fields: /new text="..." priority=high points=5.', aliases=["add"])
registry.register("edit", cmd_edit, help_text="Edit a task: /edit <id> field=value ...")
registry.register("done", cmd_done, help_text="Toggle a task complete/incomplete: /done <id>.", aliases=["toggle"])
registry.register("delete", cmd_delete, help_text="Delete a task: /delete <id>.", aliases=["del", "rm"])
registry.register("retry", cmd_retry, help_text="Resubmit text whose extraction failed.")
