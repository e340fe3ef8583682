# tests/test_storage_and_bootstrap.py

from __future__ import annotations

from pathlib import Path

from dailyflow.cli.bootstrap import DEVICES_KEY, TASKS_KEY, create_initial_state
from dailyflow.config import Settings
from dailyflow.llm.offline import OfflineSuggestionClient
from dailyflow.storage.kv import JsonDocument, KeyValueStore
from dailyflow.tasks.task_models import TaskDraft


def test_json_document_round_trip(tmp_path: Path) -> None:
    kv = KeyValueStore(tmp_path / "kv.sqlite3")
    doc = JsonDocument(kv, "k")

    assert doc.load() is None
    assert doc.save([{"name": "背单词"}]) is True
    assert JsonDocument(kv, "k").load() == [{"name": "背单词"}]


def test_unreadable_document_loads_as_absent(tmp_path: Path) -> None:
    kv = KeyValueStore(tmp_path / "kv.sqlite3")
    kv.put("k", "{broken")

    assert JsonDocument(kv, "k").load() is None


def test_unserializable_value_reports_failure(tmp_path: Path) -> None:
    doc = JsonDocument(KeyValueStore(tmp_path / "kv.sqlite3"), "k")
    assert doc.save({"bad": object()}) is False


def test_bootstrap_wires_offline_client_and_persists(settings) -> None:
    state = create_initial_state(settings=settings)

    assert isinstance(state.suggestions, OfflineSuggestionClient)
    assert state.devices.labels() == settings.default_devices

    state.tasks.create(TaskDraft(name="Gym"))
    state.devices.add("Watch")

    again = create_initial_state(settings=settings)
    assert [t.name for t in again.tasks.list_tasks()] == ["Gym"]
    assert again.devices.labels()[-1] == "Watch"

    kv = KeyValueStore(settings.db_path)
    assert JsonDocument(kv, TASKS_KEY).load()[0]["name"] == "Gym"
    assert "Watch" in JsonDocument(kv, DEVICES_KEY).load()


def test_settings_from_env(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("DAILYFLOW_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("DAILYFLOW_DEFAULT_DEVICES", "Phone, Laptop")
    monkeypatch.setenv("DAILYFLOW_LLM_TEMPERATURE", "not-a-number")
    monkeypatch.delenv("DAILYFLOW_DB_PATH", raising=False)
    monkeypatch.delenv("DAILYFLOW_OPENROUTER_API_KEY", raising=False)
    monkeypatch.delenv("OPENROUTER_API_KEY", raising=False)

    s = Settings.from_env()

    assert s.db_path == tmp_path / "dailyflow.sqlite3"
    assert s.default_devices == ["Phone", "Laptop"]
    assert s.llm_temperature == 0.3
    assert s.openrouter_api_key is None


def test_default_devices_split_on_commas_only(monkeypatch) -> None:
    monkeypatch.setenv("DAILYFLOW_DEFAULT_DEVICES", "Smart TV, 手机 ,,")
    monkeypatch.setenv("DAILYFLOW_LLM_MODELS", "a/model-1 b/model-2,c/model-3")

    s = Settings.from_env()

    assert s.default_devices == ["Smart TV", "手机"]
    assert s.llm_models == ["a/model-1", "b/model-2", "c/model-3"]
