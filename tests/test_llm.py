# tests/test_llm.py

from __future__ import annotations

import json
from types import SimpleNamespace

import httpx
import openai
import pytest

from taskdeck.cli.bootstrap import build_llm_client
from taskdeck.llm.client import OpenRouterLLMClient, friendly_llm_error_message
from taskdeck.llm.offline import OfflineLLMClient
from taskdeck.tasks.extraction import ExtractedFields, TaskExtractor, build_extraction_prompt


def _chunk(content: str | None) -> SimpleNamespace:
    return SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=content))])


class FakeCompletions:
    """Stands in for client.chat.completions; per-model scripted behavior."""

    def __init__(self, script: dict[str, object]) -> None:
        self.script = script
        self.models: list[str] = []

    def create(self, *, model: str, **_kwargs):
        self.models.append(model)
        action = self.script[model]
        if isinstance(action, Exception):
            raise action
        return iter([_chunk(c) for c in action])  # type: ignore[union-attr]


def _fake_openai(script: dict[str, object]) -> tuple[SimpleNamespace, FakeCompletions]:
    completions = FakeCompletions(script)
    return SimpleNamespace(chat=SimpleNamespace(completions=completions)), completions


def _request() -> httpx.Request:
    return httpx.Request("POST", "https://openrouter.example/api/v1/chat/completions")


def _status_error(cls, status: int):
    return cls("boom", response=httpx.Response(status, request=_request()), body=None)


def test_client_requires_api_key(settings) -> None:
    with pytest.raises(RuntimeError, match="API key"):
        OpenRouterLLMClient(settings)


def test_client_streams_first_model(settings) -> None:
    fake, completions = _fake_openai({"test/model-a": ["{", '"text": "a"', "}"], "test/model-b": ["unused"]})
    client = OpenRouterLLMClient(settings, client=fake)  # type: ignore[arg-type]

    out = "".join(client.stream_chat([{"role": "user", "content": "hi"}], "sys"))

    assert out == '{"text": "a"}'
    assert completions.models == ["test/model-a"]


def test_client_falls_back_on_missing_model(settings) -> None:
    fake, completions = _fake_openai(
        {
            "test/model-a": _status_error(openai.NotFoundError, 404),
            "test/model-b": ["ok"],
        }
    )
    client = OpenRouterLLMClient(settings, client=fake)  # type: ignore[arg-type]

    assert "".join(client.stream_chat([], "sys")) == "ok"
    # model-a is cooled down after a 404 and not retried.
    assert "".join(client.stream_chat([], "sys")) == "ok"
    assert completions.models == ["test/model-a", "test/model-b", "test/model-b"]


def test_client_fails_fast_on_auth_error(settings) -> None:
    fake, completions = _fake_openai(
        {
            "test/model-a": _status_error(openai.AuthenticationError, 401),
            "test/model-b": ["never"],
        }
    )
    client = OpenRouterLLMClient(settings, client=fake)  # type: ignore[arg-type]

    with pytest.raises(RuntimeError, match="authentication failed"):
        list(client.stream_chat([], "sys"))
    assert completions.models == ["test/model-a"]


def test_client_reports_rate_limit_after_all_models(settings) -> None:
    fake, _ = _fake_openai(
        {
            "test/model-a": _status_error(openai.RateLimitError, 429),
            "test/model-b": _status_error(openai.RateLimitError, 429),
        }
    )
    client = OpenRouterLLMClient(settings, client=fake)  # type: ignore[arg-type]

    with pytest.raises(RuntimeError, match="rate-limited"):
        list(client.stream_chat([], "sys"))


def test_client_empty_content_counts_as_failure(settings) -> None:
    fake, _ = _fake_openai({"test/model-a": [None, ""], "test/model-b": []})
    client = OpenRouterLLMClient(settings, client=fake)  # type: ignore[arg-type]

    with pytest.raises(RuntimeError, match="All LLM models failed"):
        list(client.stream_chat([], "sys"))


def test_client_rejects_empty_model_list(settings) -> None:
    settings.llm_models = []
    fake, _ = _fake_openai({})
    client = OpenRouterLLMClient(settings, client=fake)  # type: ignore[arg-type]

    with pytest.raises(RuntimeError, match="model list is empty"):
        list(client.stream_chat([], "sys"))


def test_friendly_error_messages() -> None:
    assert "missing API key" in friendly_llm_error_message(RuntimeError("LLM API key is not set."))
    assert friendly_llm_error_message(RuntimeError("")) == "LLM error."
    assert friendly_llm_error_message(RuntimeError("other")) == "other"


def test_offline_client_extracts_keywords() -> None:
    llm = OfflineLLMClient()
    result = TaskExtractor(llm).extract("Buy groceries, high priority, tags: shopping, food, 10 points")

    assert isinstance(result, ExtractedFields)
    assert result.fields == {
        "text": "Buy groceries",
        "description": "",
        "priority": "high",
        "tags": ["shopping", "food"],
        "points": 10,
    }


def test_offline_client_plain_text() -> None:
    raw = "".join(
        OfflineLLMClient().stream_chat(
            [{"role": "user", "content": build_extraction_prompt("Call mom")}],
            "You are a task extraction module.",
        )
    )
    assert json.loads(raw) == {"description": "", "text": "Call mom"}


def test_offline_client_other_prompts() -> None:
    assert "".join(OfflineLLMClient().stream_chat([{"role": "user", "content": "hi"}], "chat")) == "{}"


def test_bootstrap_falls_back_to_offline_without_key(settings) -> None:
    assert isinstance(build_llm_client(settings), OfflineLLMClient)


def test_bootstrap_uses_openrouter_with_key(settings) -> None:
    settings.openrouter_api_key = "sk-test"
    assert isinstance(build_llm_client(settings), OpenRouterLLMClient)

    settings.llm_offline = True
    assert isinstance(build_llm_client(settings), OfflineLLMClient)
