# src/taskdeck/llm/offline.py

from __future__ import annotations

import json
import re
from collections.abc import Iterable

from ..core.ports import ChatMessage

_QUOTED_INPUT = re.compile(r'input:\s*"(?P<text>.*)"\.\s*Return', re.DOTALL)
_PRIORITY = re.compile(r"\b(high|medium|low)\s+priority\b|\bpriority\s*[:=]?\s*(high|medium|low)\b", re.IGNORECASE)
_POINTS = re.compile(r"\b(\d+)\s*(?:points?|pts)\b", re.IGNORECASE)
_TAGS = re.compile(r"\btags?\s*:\s*(?P<tags>[^.;]*?)(?=,\s*\d+\s*(?:points?|pts)\b|[.;]|$)", re.IGNORECASE)


def _offline_extract(raw_text: str) -> dict[str, object]:
    """Keyword heuristics standing in for the model when no API is configured."""
    text = raw_text
    fields: dict[str, object] = {"description": ""}

    m = _PRIORITY.search(raw_text)
    if m:
        fields["priority"] = (m.group(1) or m.group(2)).lower()
    m = _POINTS.search(raw_text)
    if m:
        fields["points"] = int(m.group(1))
    m = _TAGS.search(raw_text)
    if m:
        fields["tags"] = [t.strip() for t in m.group("tags").split(",") if t.strip()]

    cut = min((x.start() for x in (_PRIORITY.search(text), _TAGS.search(text), _POINTS.search(text)) if x), default=None)
    if cut is not None:
        text = text[:cut]
    fields["text"] = text.strip(" ,;.") or raw_text.strip()
    return fields


class OfflineLLMClient:
    """
    Offline deterministic LLM client used when no external API is configured.

    Behavior:
    - Task extraction prompts -> returns a JSON object built from keyword heuristics
    - Anything else -> returns an empty JSON object
    """

    def stream_chat(self, messages: list[ChatMessage], system_prompt: str) -> Iterable[str]:
        user_text = ""
        for m in reversed(messages):
            if m["role"] == "user":
                user_text = m["content"]
                break

        if "task extraction" not in (system_prompt or "").lower():
            yield "{}"
            return

        m = _QUOTED_INPUT.search(user_text)
        raw = m.group("text") if m else user_text
        yield json.dumps(_offline_extract(raw), ensure_ascii=False)
