# src/taskdeck/tasks/extraction.py

"""
Free-text task extraction.

Turns a sentence like "Buy groceries, high priority, tags: shopping, 10 points"
into a TaskRecord by asking the LLM for a JSON object and normalizing it.

Parse-or-reject: a response that is not one JSON object with at least one
known field produces a ParseFailure and no task is created.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any

from ..core.ports import LLMClient
from .task_models import TaskRecord, normalize
from .task_store import TaskStore

logger = logging.getLogger(__name__)

EXTRACTION_FIELDS = ("text", "description", "priority", "tags", "points")

TASK_EXTRACTION_SYSTEM_PROMPT = """
You are a task extraction module for a to-do list.

You do NOT chat with the user.

Read the user's description of a task and return a JSON object with exactly these keys:
- "text": short task summary (string)
- "description": longer detail, or "" (string)
- "priority": one of "high", "medium", "low"
- "tags": list of short strings
- "points": non-negative integer reward for completing the task

Output format:
Return STRICT JSON only. No extra text. No Markdown.
""".strip()


def build_extraction_prompt(raw_text: str) -> str:
    return (
        f'Extract task details from the following input: "{raw_text}". '
        'Return a JSON object with "text", "description", "priority", "tags", and "points".'
    )


@dataclass(frozen=True, slots=True)
class ExtractedFields:
    fields: dict[str, Any]


@dataclass(frozen=True, slots=True)
class ParseFailure:
    reason: str
    raw: str = ""


ExtractionResult = ExtractedFields | ParseFailure


def _extract_json_object(raw: str) -> str:
    raw = raw.strip()
    if raw.startswith("{") and raw.endswith("}"):
        return raw
    first = raw.find("{")
    last = raw.rfind("}")
    if first != -1 and last != -1 and last > first:
        return raw[first : last + 1]
    return raw


def parse_extraction_response(raw: str) -> ExtractionResult:
    raw = (raw or "").strip()
    if not raw:
        return ParseFailure(reason="empty_response")

    try:
        data = json.loads(_extract_json_object(raw))
    except (ValueError, RecursionError):
        return ParseFailure(reason="invalid_json", raw=raw)

    if not isinstance(data, dict):
        return ParseFailure(reason="not_an_object", raw=raw)

    fields = {k: data[k] for k in EXTRACTION_FIELDS if k in data}
    if not fields:
        return ParseFailure(reason="no_known_fields", raw=raw)

    return ExtractedFields(fields=fields)


class TaskExtractor:
    """Extraction adapter: raw text -> LLM -> ExtractedFields | ParseFailure."""

    def __init__(self, llm: LLMClient, *, system_prompt: str = TASK_EXTRACTION_SYSTEM_PROMPT) -> None:
        self._llm = llm
        self._system_prompt = system_prompt

    def extract(self, raw_text: str) -> ExtractionResult:
        text = (raw_text or "").strip()
        if not text:
            return ParseFailure(reason="empty_input")

        raw = ""
        try:
            for piece in self._llm.stream_chat(
                [{"role": "user", "content": build_extraction_prompt(text)}],
                self._system_prompt,
            ):
                raw += piece
        except Exception as e:
            logger.exception("Task extraction LLM call failed.")
            return ParseFailure(reason="llm_error", raw=str(e))

        result = parse_extraction_response(raw)
        if isinstance(result, ParseFailure):
            logger.warning("Task extraction rejected reason=%s raw=%r", result.reason, result.raw[:2000])
        return result


def build_task(store: TaskStore, extracted: ExtractedFields) -> TaskRecord:
    """Normalize extracted fields into a record with a fresh id and positional title."""
    fields = dict(extracted.fields)
    # The model only proposes content; identity and state belong to the store.
    fields.pop("title", None)
    fields.pop("completed", None)
    return normalize(fields, task_id=store.next_id(), ordinal=store.next_ordinal())


@dataclass(frozen=True, slots=True)
class SubmitOutcome:
    """
    Result of a free-text submission.

    On failure `record` is None and `retained_text` holds the user's input
    so it can be resubmitted unchanged.
    """

    record: TaskRecord | None
    retained_text: str = ""
    failure: ParseFailure | None = None

    @property
    def ok(self) -> bool:
        return self.record is not None


def _finish(store: TaskStore, raw_text: str, result: ExtractionResult) -> SubmitOutcome:
    if isinstance(result, ParseFailure):
        return SubmitOutcome(record=None, retained_text=raw_text, failure=result)
    record = store.create(build_task(store, result))
    logger.info("Task extracted id=%s text=%r", record.id, record.text)
    return SubmitOutcome(record=record)


def submit_free_text(store: TaskStore, extractor: TaskExtractor, raw_text: str) -> SubmitOutcome | None:
    """
    Extract a task from free text and add it to the store.

    Blank input is a no-op and returns None.
    """
    if not (raw_text or "").strip():
        return None
    return _finish(store, raw_text, extractor.extract(raw_text))


async def submit_free_text_async(
    store: TaskStore,
    extractor: TaskExtractor,
    raw_text: str,
) -> SubmitOutcome | None:
    """
    Async variant: the LLM call runs in a worker thread, the create runs on the loop.

    Store mutations made while the call is in flight are applied first;
    the new task is prepended only after the call resolves.
    """
    if not (raw_text or "").strip():
        return None
    result = await asyncio.to_thread(extractor.extract, raw_text)
    return _finish(store, raw_text, result)
