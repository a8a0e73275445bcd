# src/taskdeck/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete implementations into AppState (LLM, task backend, store, extractor).
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.ports import LLMClient, TaskBackend
from ..core.state import AppState
from ..llm.client import OpenRouterLLMClient
from ..llm.offline import OfflineLLMClient
from ..tasks.backends import SqliteKVBackend
from ..tasks.extraction import TaskExtractor
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_db_path.parent.mkdir(parents=True, exist_ok=True)


def build_llm_client(settings) -> LLMClient:
    if getattr(settings, "llm_offline", False):
        logger.info("LLM offline mode forced by settings.")
        return OfflineLLMClient()
    try:
        return OpenRouterLLMClient(settings)
    except RuntimeError as e:
        # Fallback for local runs without external services.
        logger.warning("LLM not configured (%s); using offline extraction.", e)
        return OfflineLLMClient()


def create_initial_state(
    *,
    settings=None,
    backend: TaskBackend | None = None,
    llm: LLMClient | None = None,
) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings, backend and LLM injectable makes the app easier to test.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    if backend is None:
        _ensure_local_dirs(settings)
        backend = SqliteKVBackend(settings.tasks_db_path, key=settings.tasks_kv_key)

    llm_client = llm if llm is not None else build_llm_client(settings)

    return AppState(
        settings=settings,
        llm=llm_client,
        task_store=TaskStore(backend),
        extractor=TaskExtractor(llm_client),
    )
