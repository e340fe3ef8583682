# tests/test_backup_codec.py

from __future__ import annotations

import json
from datetime import date

import pytest

from dailyflow.backup.codec import (
    LegacyArray,
    Unrecognized,
    VersionedDocument,
    apply_import,
    backup_filename,
    classify,
    dump_backup,
    export_backup,
    parse_backup,
    write_backup_file,
)
from dailyflow.core.errors import InvalidTaskDataError, ParseError, UnrecognizedFormatError
from dailyflow.devices.registry import DeviceRegistry
from dailyflow.tasks.task_models import TaskDraft, TaskStatus
from dailyflow.tasks.task_store import TaskStore

from .fakes import MemoryDocument


def _seeded() -> tuple[TaskStore, DeviceRegistry]:
    store = TaskStore(MemoryDocument())
    a = store.create(TaskDraft(name="背单词", description="30 个", check_in_time="07:30", device="手机", app_or_url="Duolingo"))
    store.create(TaskDraft(name="Gym", check_in_time="18:00", device="其他"))
    store.set_status(a.id, TaskStatus.COMPLETED)
    devices = DeviceRegistry(MemoryDocument(), defaults=["手机", "电脑", "其他"])
    return store, devices


def test_export_shape() -> None:
    store, devices = _seeded()
    doc = export_backup(store.list_tasks(), devices.labels())

    assert doc["version"] == 1
    assert doc["devices"] == ["手机", "电脑", "其他"]
    first = doc["tasks"][0]
    assert set(first) == {"id", "name", "description", "checkInTime", "device", "appOrUrl", "status", "createdAt"}
    assert first["status"] == "COMPLETED"


def test_round_trip_restores_tasks_and_devices() -> None:
    store, devices = _seeded()
    text = dump_backup(export_backup(store.list_tasks(), devices.labels()))

    plan = parse_backup(text)

    assert [t.to_dict() for t in plan.tasks] == [t.to_dict() for t in store.list_tasks()]
    assert plan.devices == devices.labels()
    # non-ASCII is kept readable in the file
    assert "背单词" in text


def test_parse_error() -> None:
    with pytest.raises(ParseError):
        parse_backup("{not json")


def test_deeply_nested_text_is_a_parse_error() -> None:
    with pytest.raises(ParseError):
        parse_backup("[" * 200000)


@pytest.mark.parametrize("raw", ['{"foo": 1}', '"text"', "42", '{"tasks": {"a": 1}}', "null"])
def test_unrecognized_format(raw: str) -> None:
    with pytest.raises(UnrecognizedFormatError):
        parse_backup(raw)


def test_empty_array_means_zero_tasks() -> None:
    plan = parse_backup("[]")
    assert plan.tasks == []
    assert plan.devices is None


def test_explicit_empty_tasks_field_is_accepted() -> None:
    plan = parse_backup('{"tasks": [], "devices": ["手机"], "version": 1}')
    assert plan.tasks == []
    assert plan.devices == ["手机"]


def test_legacy_array_is_accepted() -> None:
    plan = parse_backup('[{"id":"1","name":"x","checkInTime":"09:00","device":"手机","appOrUrl":"","status":"PENDING"}]')

    assert len(plan.tasks) == 1
    task = plan.tasks[0]
    assert (task.id, task.name, task.check_in_time) == ("1", "x", "09:00")
    assert task.description == ""
    assert task.created_at == 0
    assert plan.devices is None


def test_versioned_without_devices_keeps_registry() -> None:
    plan = parse_backup('{"tasks": [{"id": "1", "name": "x", "checkInTime": "09:00"}], "version": 1}')
    assert plan.devices is None


@pytest.mark.parametrize(
    "task",
    [
        {"name": "x", "checkInTime": "09:00"},
        {"id": "", "name": "x", "checkInTime": "09:00"},
        {"id": "1", "name": "", "checkInTime": "09:00"},
        {"id": "1", "name": "x"},
        "not an object",
    ],
)
def test_invalid_task_rejected(task) -> None:
    with pytest.raises(InvalidTaskDataError):
        parse_backup(json.dumps([{"id": "ok", "name": "fine", "checkInTime": "08:00"}, task]))


def test_duplicate_ids_rejected() -> None:
    raw = json.dumps([{"id": "1", "name": "a", "checkInTime": "08:00"}, {"id": "1", "name": "b", "checkInTime": "09:00"}])
    with pytest.raises(InvalidTaskDataError):
        parse_backup(raw)


def test_devices_are_cleaned_and_must_be_strings() -> None:
    plan = parse_backup('{"tasks": [], "devices": [" 手机 ", "手机", "", "电脑"]}')
    assert plan.devices == ["手机", "电脑"]

    with pytest.raises(InvalidTaskDataError):
        parse_backup('{"tasks": [], "devices": ["手机", 3]}')


def test_classify_variants() -> None:
    assert classify([]) == LegacyArray(tasks=[])
    assert classify({"tasks": [], "devices": "nope"}) == VersionedDocument(tasks=[], devices=None)
    assert classify({"devices": []}) == Unrecognized()


def test_failed_import_changes_nothing() -> None:
    store, devices = _seeded()
    before = [t.to_dict() for t in store.list_tasks()]

    with pytest.raises(InvalidTaskDataError):
        plan = parse_backup('{"tasks": [{"id": "1", "name": "x"}], "devices": []}')
        apply_import(plan, store, devices)

    assert [t.to_dict() for t in store.list_tasks()] == before
    assert devices.labels() == ["手机", "电脑", "其他"]


def test_apply_import_replaces_state() -> None:
    store, devices = _seeded()
    plan = parse_backup('{"tasks": [{"id": "n1", "name": "New", "checkInTime": "06:00"}], "devices": ["Kindle"]}')

    apply_import(plan, store, devices)

    assert [t.id for t in store.list_tasks()] == ["n1"]
    assert devices.labels() == ["Kindle"]


def test_write_backup_file(tmp_path) -> None:
    store, devices = _seeded()

    path = write_backup_file(tmp_path / "out", store.list_tasks(), devices.labels(), today=date(2024, 3, 9))

    assert path.name == "dailyflow_backup_2024-03-09.json"
    assert backup_filename(date(2024, 3, 9)) == path.name
    plan = parse_backup(path.read_text("utf-8"))
    assert len(plan.tasks) == 2
    assert not path.with_suffix(".tmp").exists()
