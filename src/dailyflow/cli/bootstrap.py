# src/dailyflow/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete implementations into AppState (storage/stores/LLM).
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.ports import SuggestionClient
from ..core.state import AppState
from ..devices.registry import DeviceRegistry
from ..llm.client import OpenRouterSuggestionClient
from ..llm.offline import OfflineSuggestionClient
from ..storage.kv import JsonDocument, KeyValueStore
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)

TASKS_KEY = "dailyflow_tasks"
DEVICES_KEY = "dailyflow_devices"


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.db_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    kv = KeyValueStore(settings.db_path)
    tasks = TaskStore(JsonDocument(kv, TASKS_KEY))
    devices = DeviceRegistry(JsonDocument(kv, DEVICES_KEY), defaults=settings.default_devices)

    suggestions: SuggestionClient
    try:
        suggestions = OpenRouterSuggestionClient(settings, devices=devices)
    except RuntimeError as e:
        logger.info("AI autofill disabled: %s", e)
        suggestions = OfflineSuggestionClient(str(e))

    return AppState(settings=settings, tasks=tasks, devices=devices, suggestions=suggestions)
