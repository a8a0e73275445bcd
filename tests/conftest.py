# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from taskdeck.cli.bootstrap import create_initial_state
from taskdeck.core.state import AppState
from taskdeck.tasks.task_store import IdGenerator, TaskStore

from .fakes import CountingBackend, FakeLLMClient


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and bootstrap.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="taskdeck-test",
        log_level="DEBUG",
        openrouter_api_key=None,
        openrouter_base_url="https://openrouter.example/api/v1",
        llm_models=["test/model-a", "test/model-b"],
        extra_headers={},
        llm_offline=False,
        data_dir=tmp_path / "data",
        tasks_db_path=tmp_path / "data" / "tasks.sqlite3",
        tasks_kv_key="todo-tasks",
    )


@pytest.fixture()
def backend() -> CountingBackend:
    return CountingBackend()


@pytest.fixture()
def fixed_ids() -> IdGenerator:
    """Ids from a frozen clock: 1_000_000, 1_000_001, ..."""
    return IdGenerator(clock=lambda: 1000.0)


@pytest.fixture()
def store(backend: CountingBackend, fixed_ids: IdGenerator) -> TaskStore:
    return TaskStore(backend, id_generator=fixed_ids)


@pytest.fixture()
def llm() -> FakeLLMClient:
    return FakeLLMClient()


@pytest.fixture()
def state(settings: SimpleNamespace, backend: CountingBackend, llm: FakeLLMClient) -> AppState:
    """AppState wired with an in-memory backend and a fake LLM."""
    return create_initial_state(settings=settings, backend=backend, llm=llm)

