# src/dailyflow/llm/offline.py

from __future__ import annotations

from ..core.errors import SuggestionError
from ..tasks.task_models import TaskSuggestion


class OfflineSuggestionClient:
    """
    Stand-in used when no LLM API is configured.

    Every call fails with the same SuggestionError the real client raises for a
    missing key, so the console shows the usual "not configured" hint.
    """

    def __init__(self, reason: str = "LLM API key is not set.") -> None:
        self.reason = reason

    def suggest(self, text: str) -> TaskSuggestion:
        raise SuggestionError(self.reason)
