# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from dailyflow.core.state import AppState
from dailyflow.devices.registry import DeviceRegistry
from dailyflow.storage.kv import JsonDocument, KeyValueStore
from dailyflow.tasks.task_store import TaskStore

from .fakes import FakeSuggestionClient

DEFAULT_DEVICES = ["手机", "电脑", "平板", "其他"]


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and core modules.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="DailyFlow",
        data_dir=tmp_path,
        db_path=tmp_path / "dailyflow.sqlite3",
        backup_dir=tmp_path / "backups",
        default_devices=list(DEFAULT_DEVICES),
        language="English",
        openrouter_api_key=None,
        openrouter_base_url="https://openrouter.ai/api/v1",
        llm_models=["test/model-a", "test/model-b"],
        llm_temperature=0.3,
        llm_connect_timeout=1.0,
        llm_read_timeout=1.0,
        extra_headers={},
    )


@pytest.fixture()
def kv(settings: SimpleNamespace) -> KeyValueStore:
    return KeyValueStore(settings.db_path)


@pytest.fixture()
def state(settings: SimpleNamespace, kv: KeyValueStore) -> AppState:
    """
    AppState wired with a fake suggestion client.

    NOTE: storage is the real SQLite key-value store because write-through
    persistence is part of what we want to test.
    """
    return AppState(
        settings=settings,
        tasks=TaskStore(JsonDocument(kv, "dailyflow_tasks")),
        devices=DeviceRegistry(JsonDocument(kv, "dailyflow_devices"), defaults=settings.default_devices),
        suggestions=FakeSuggestionClient(),
    )
