# src/dailyflow/backup/codec.py

"""
Backup import/export.

Export format (version 1):

    {"tasks": [<task>, ...], "devices": ["...", ...], "version": 1}

Import also accepts the legacy format: a bare JSON array of tasks (no devices).

Import is validate-then-commit: parse_backup() only builds an ImportPlan;
nothing is written until apply_import() is called (after user confirmation).
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import TYPE_CHECKING, Any

from ..core.errors import InvalidTaskDataError, ParseError, UnrecognizedFormatError
from ..tasks.task_models import Task

if TYPE_CHECKING:
    from ..devices.registry import DeviceRegistry
    from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)

BACKUP_VERSION = 1


@dataclass(frozen=True, slots=True)
class LegacyArray:
    tasks: list[Any]


@dataclass(frozen=True, slots=True)
class VersionedDocument:
    tasks: list[Any]
    devices: list[Any] | None


@dataclass(frozen=True, slots=True)
class Unrecognized:
    pass


BackupShape = LegacyArray | VersionedDocument | Unrecognized


@dataclass(frozen=True, slots=True)
class ImportPlan:
    tasks: list[Task]
    devices: list[str] | None  # None -> keep current devices


# ---- export ----


def export_backup(tasks: list[Task], devices: list[str]) -> dict[str, Any]:
    return {
        "tasks": [t.to_dict() for t in tasks],
        "devices": list(devices),
        "version": BACKUP_VERSION,
    }


def dump_backup(doc: dict[str, Any]) -> str:
    return json.dumps(doc, ensure_ascii=False, indent=2)


def backup_filename(today: date | None = None) -> str:
    today = today or date.today()
    return f"dailyflow_backup_{today.isoformat()}.json"


def write_backup_file(
    directory: str | Path,
    tasks: list[Task],
    devices: list[str],
    today: date | None = None,
) -> Path:
    """Write the backup JSON atomically and return its path."""
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / backup_filename(today)
    tmp = path.with_suffix(".tmp")
    tmp.write_text(dump_backup(export_backup(tasks, devices)), "utf-8")
    os.replace(tmp, path)
    logger.info("Backup written: %s (tasks=%d devices=%d)", path, len(tasks), len(devices))
    return path


# ---- import ----


def classify(data: Any) -> BackupShape:
    if isinstance(data, list):
        return LegacyArray(tasks=data)
    if isinstance(data, dict) and isinstance(data.get("tasks"), list):
        devices = data.get("devices")
        return VersionedDocument(tasks=data["tasks"], devices=devices if isinstance(devices, list) else None)
    return Unrecognized()


def _non_empty(value: Any) -> bool:
    if isinstance(value, bool) or value is None:
        return False
    if isinstance(value, (str, int)):
        return str(value).strip() != ""
    return False


def _validate_tasks(items: list[Any]) -> list[Task]:
    out: list[Task] = []
    seen: set[str] = set()
    for pos, item in enumerate(items):
        if not isinstance(item, dict):
            raise InvalidTaskDataError(f"Task #{pos + 1} is not an object.")
        for field in ("id", "name", "checkInTime"):
            if not _non_empty(item.get(field)):
                raise InvalidTaskDataError(f"Task #{pos + 1} is missing '{field}'.")
        task = Task.from_dict(item)
        if task.id in seen:
            raise InvalidTaskDataError(f"Duplicate task id: {task.id}")
        seen.add(task.id)
        out.append(task)
    return out


def _validate_devices(items: list[Any]) -> list[str]:
    out: list[str] = []
    for item in items:
        if not isinstance(item, str):
            raise InvalidTaskDataError(f"Device label is not a string: {item!r}")
        label = item.strip()
        if label and label not in out:
            out.append(label)
    return out


def parse_backup(raw_text: str) -> ImportPlan:
    """
    Parse and validate backup text.

    Raises:
    - ParseError: not JSON
    - UnrecognizedFormatError: neither a task array nor {"tasks": [...]}
    - InvalidTaskDataError: a task lacks id/name/checkInTime, ids repeat, or devices are not strings
    """
    try:
        data = json.loads(raw_text)
    except (json.JSONDecodeError, TypeError, RecursionError) as e:
        raise ParseError(f"Invalid JSON: {e}") from e

    match classify(data):
        case LegacyArray(tasks=items):
            plan = ImportPlan(tasks=_validate_tasks(items), devices=None)
        case VersionedDocument(tasks=items, devices=devices):
            plan = ImportPlan(
                tasks=_validate_tasks(items),
                devices=_validate_devices(devices) if devices is not None else None,
            )
        case _:
            raise UnrecognizedFormatError("Unrecognized backup format.")

    logger.debug(
        "Backup parsed tasks=%d devices=%s",
        len(plan.tasks),
        "keep" if plan.devices is None else len(plan.devices),
    )
    return plan


def apply_import(plan: ImportPlan, store: TaskStore, registry: DeviceRegistry) -> None:
    store.replace_all(plan.tasks)
    if plan.devices is not None:
        registry.replace_all(plan.devices)
    logger.info("Backup imported tasks=%d devices_replaced=%s", len(plan.tasks), plan.devices is not None)
