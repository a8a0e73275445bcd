# src/taskdeck/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The core depends on Protocols instead of concrete implementations.
This keeps the LLM provider and the persistence backend swappable and makes testing easier.
"""

from typing import Any, Iterable, Protocol

ChatMessage = dict[str, str]
# OpenAI-style chat messages: {"role": "...", "content": "..."}.


class LLMClient(Protocol):
    """Streaming chat completion client (OpenAI/OpenRouter-compatible)."""
    def stream_chat(self, messages: list[ChatMessage], system_prompt: str) -> Iterable[str]: ...


class TaskBackend(Protocol):
    """
    Durable map slot holding the whole task collection.

    load() returns the stored sequence of task dicts (empty when nothing is stored).
    save() replaces it and must be durable before returning.
    """

    def load(self) -> list[dict[str, Any]]: ...
    def save(self, tasks: list[dict[str, Any]]) -> None: ...
