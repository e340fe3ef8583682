# src/dailyflow/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The core depends on Protocols instead of concrete implementations.
This keeps storage and the LLM provider swappable and makes testing easier.
"""

from typing import Any, Protocol

from ..tasks.task_models import TaskSuggestion


class DocumentStorage(Protocol):
    """One persisted JSON document (tasks list or devices list)."""

    def load(self) -> Any | None: ...
    def save(self, value: Any) -> bool: ...


class SuggestionClient(Protocol):
    """Turns a rough task name into a full TaskSuggestion. Raises SuggestionError on any failure."""

    def suggest(self, text: str) -> TaskSuggestion: ...
