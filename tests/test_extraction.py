# tests/test_extraction.py

from __future__ import annotations

import asyncio
import json

import pytest

from taskdeck.tasks.backends import InMemoryBackend
from taskdeck.tasks.extraction import (
    TASK_EXTRACTION_SYSTEM_PROMPT,
    ExtractedFields,
    ParseFailure,
    TaskExtractor,
    parse_extraction_response,
    submit_free_text,
    submit_free_text_async,
)
from taskdeck.tasks.task_models import Priority
from taskdeck.tasks.task_store import TaskStore

from .fakes import CountingBackend, FakeLLMClient, GatedLLMClient

GOOD_RESPONSE = json.dumps(
    {
        "text": "Buy groceries",
        "description": "Milk, eggs, bread",
        "priority": "high",
        "tags": ["shopping", " food "],
        "points": 10,
    }
)


def test_parse_accepts_plain_json_object() -> None:
    result = parse_extraction_response(GOOD_RESPONSE)
    assert isinstance(result, ExtractedFields)
    assert result.fields["text"] == "Buy groceries"


def test_parse_accepts_fenced_json() -> None:
    raw = "Here you go:\n```json\n" + GOOD_RESPONSE + "\n```"
    result = parse_extraction_response(raw)
    assert isinstance(result, ExtractedFields)
    assert result.fields["points"] == 10


def test_parse_drops_unknown_keys() -> None:
    result = parse_extraction_response('{"text": "a", "id": 5, "completed": true}')
    assert isinstance(result, ExtractedFields)
    assert result.fields == {"text": "a"}


@pytest.mark.parametrize(
    "raw, reason",
    [
        ("", "empty_response"),
        ("sure, I can help with that", "invalid_json"),
        ("[1, 2, 3]", "not_an_object"),
        ('{"foo": 1}', "no_known_fields"),
        ('{"text": "a",', "invalid_json"),
        ('{"text": "a", "points": ' + "9" * 5000 + "}", "invalid_json"),
        ("[" * 100_000 + "]" * 100_000, "invalid_json"),
    ],
)
def test_parse_rejects_bad_responses(raw: str, reason: str) -> None:
    result = parse_extraction_response(raw)
    assert isinstance(result, ParseFailure)
    assert result.reason == reason


def test_extractor_sends_prompt_with_raw_text() -> None:
    llm = FakeLLMClient(GOOD_RESPONSE)
    TaskExtractor(llm).extract("  Buy groceries, high priority  ")

    (messages, system_prompt), = llm.calls
    assert system_prompt == TASK_EXTRACTION_SYSTEM_PROMPT
    assert messages[0]["role"] == "user"
    assert '"Buy groceries, high priority"' in messages[0]["content"]
    for key in ("text", "description", "priority", "tags", "points"):
        assert f'"{key}"' in messages[0]["content"]


def test_extractor_turns_llm_exception_into_failure() -> None:
    llm = FakeLLMClient(error=RuntimeError("All LLM models failed."))
    result = TaskExtractor(llm).extract("anything")
    assert isinstance(result, ParseFailure)
    assert result.reason == "llm_error"


def test_extractor_skips_llm_on_blank_input() -> None:
    llm = FakeLLMClient(GOOD_RESPONSE)
    result = TaskExtractor(llm).extract("   ")
    assert isinstance(result, ParseFailure)
    assert llm.calls == []


def test_submit_creates_normalized_task(store: TaskStore) -> None:
    store.add({"text": "existing"})
    outcome = submit_free_text(store, TaskExtractor(FakeLLMClient(GOOD_RESPONSE)), "Buy groceries")

    assert outcome is not None and outcome.ok
    rec = outcome.record
    assert rec is not None
    assert store.list()[0] == rec
    assert rec.title == "Task 2"
    assert rec.text == "Buy groceries"
    assert rec.description == "Milk, eggs, bread"
    assert rec.priority is Priority.HIGH
    assert rec.tags == ("shopping", "food")
    assert rec.points == 10
    assert rec.completed is False


def test_submit_applies_fallbacks_for_sparse_response(store: TaskStore) -> None:
    llm = FakeLLMClient('{"text": "", "priority": "whenever", "points": "many", "tags": null}')
    outcome = submit_free_text(store, TaskExtractor(llm), "do the thing")

    assert outcome is not None
    rec = outcome.record
    assert rec is not None
    assert rec.text == "Untitled Task"
    assert rec.priority is Priority.MEDIUM
    assert rec.points == 0
    assert rec.tags == ()


def test_model_cannot_set_identity_or_completion(store: TaskStore) -> None:
    llm = FakeLLMClient('{"text": "a", "title": "Hijack", "completed": true, "id": 1}')
    outcome = submit_free_text(store, TaskExtractor(llm), "a")

    assert outcome is not None and outcome.record is not None
    assert outcome.record.title == "Task 1"
    assert outcome.record.completed is False
    assert outcome.record.id != 1


def test_unparseable_response_creates_nothing_and_keeps_text(store: TaskStore, backend: CountingBackend) -> None:
    store.add({"text": "existing"})
    before = store.list()
    saves = backend.save_count

    outcome = submit_free_text(store, TaskExtractor(FakeLLMClient("I am not JSON")), "vague mumbling")

    assert outcome is not None
    assert outcome.ok is False
    assert outcome.record is None
    assert outcome.retained_text == "vague mumbling"
    assert outcome.failure is not None and outcome.failure.reason == "invalid_json"
    assert store.list() == before
    assert backend.save_count == saves


def test_submit_keeps_oversized_integer_points_exact(store: TaskStore) -> None:
    big = 10**400
    llm = FakeLLMClient('{"text": "a", "points": ' + str(big) + "}")
    outcome = submit_free_text(store, TaskExtractor(llm), "a")

    assert outcome is not None and outcome.record is not None
    assert outcome.record.points == big


def test_submit_rejects_integer_past_digit_limit(store: TaskStore, backend: CountingBackend) -> None:
    llm = FakeLLMClient('{"text": "a", "points": ' + "9" * 5000 + "}")
    outcome = submit_free_text(store, TaskExtractor(llm), "huge reward")

    assert outcome is not None
    assert outcome.record is None
    assert outcome.retained_text == "huge reward"
    assert outcome.failure is not None and outcome.failure.reason == "invalid_json"
    assert store.list() == ()
    assert backend.save_count == 0


def test_blank_submission_is_noop(store: TaskStore) -> None:
    llm = FakeLLMClient(GOOD_RESPONSE)
    assert submit_free_text(store, TaskExtractor(llm), "  ") is None
    assert llm.calls == []
    assert store.list() == ()


@pytest.mark.asyncio
async def test_async_submit_creates_after_call_resolves() -> None:
    store = TaskStore(InMemoryBackend())
    doomed = store.add({"text": "to delete"})
    keeper = store.add({"text": "keeper"})
    llm = GatedLLMClient(GOOD_RESPONSE)

    pending = asyncio.create_task(submit_free_text_async(store, TaskExtractor(llm), "Buy groceries"))
    assert await asyncio.to_thread(llm.entered.wait, 5.0)

    # The user keeps working while the call is in flight.
    store.delete(doomed.id)
    store.toggle(keeper.id)
    assert [t.id for t in store.list()] == [keeper.id]

    llm.release.set()
    outcome = await pending

    assert outcome is not None and outcome.record is not None
    assert [t.id for t in store.list()] == [outcome.record.id, keeper.id]
    assert store.get(keeper.id).completed is True  # type: ignore[union-attr]
    assert outcome.record.id > keeper.id


@pytest.mark.asyncio
async def test_async_submit_failure_keeps_store() -> None:
    store = TaskStore(InMemoryBackend())
    outcome = await submit_free_text_async(store, TaskExtractor(FakeLLMClient("nope")), "vague mumbling")

    assert outcome is not None
    assert outcome.record is None
    assert outcome.retained_text == "vague mumbling"
    assert store.list() == ()
