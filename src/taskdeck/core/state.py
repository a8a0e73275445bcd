# src/taskdeck/core/state.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..tasks.extraction import TaskExtractor
from ..tasks.task_store import TaskStore
from ..tasks.views import ViewMode
from .ports import LLMClient


@dataclass
class AppState:
    # Settings are kept on the state so commands can report them.
    settings: Any

    llm: LLMClient
    task_store: TaskStore
    extractor: TaskExtractor

    view_mode: ViewMode = ViewMode.HOME
    # Free text whose extraction failed, kept for /retry.
    pending_input: str = ""
