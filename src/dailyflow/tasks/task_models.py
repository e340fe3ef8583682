# src/dailyflow/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any


class TaskStatus(StrEnum):
    """
    Task lifecycle status.

    Transitions used by the UI: PENDING -> COMPLETED | SKIPPED, and back to PENDING (undo).
    The store does not enforce them.
    """

    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    SKIPPED = "SKIPPED"

    @classmethod
    def from_raw(cls, raw: Any) -> TaskStatus:
        if not raw:
            return cls.PENDING
        try:
            return cls(str(raw).upper())
        except ValueError:
            return cls.PENDING


def _text(value: Any) -> str:
    return "" if value is None else str(value)


@dataclass(slots=True)
class Task:
    id: str
    name: str
    description: str
    check_in_time: str  # "HH:mm"
    device: str
    app_or_url: str
    status: TaskStatus
    created_at: int  # epoch milliseconds

    def to_dict(self) -> dict[str, Any]:
        """Persisted / backup shape (camelCase keys)."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "checkInTime": self.check_in_time,
            "device": self.device,
            "appOrUrl": self.app_or_url,
            "status": self.status.value,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Task:
        created_raw = data.get("createdAt")
        try:
            created_at = int(created_raw) if created_raw is not None else 0
        except (TypeError, ValueError):
            created_at = 0
        return cls(
            id=_text(data.get("id")),
            name=_text(data.get("name")),
            description=_text(data.get("description")),
            check_in_time=_text(data.get("checkInTime")),
            device=_text(data.get("device")),
            app_or_url=_text(data.get("appOrUrl")),
            status=TaskStatus.from_raw(data.get("status")),
            created_at=created_at,
        )


@dataclass(slots=True)
class TaskDraft:
    """Editable task fields (everything except id and created_at)."""

    name: str
    description: str = ""
    check_in_time: str = "09:00"
    device: str = ""
    app_or_url: str = ""
    status: TaskStatus = TaskStatus.PENDING

    @classmethod
    def from_task(cls, task: Task) -> TaskDraft:
        return cls(
            name=task.name,
            description=task.description,
            check_in_time=task.check_in_time,
            device=task.device,
            app_or_url=task.app_or_url,
            status=task.status,
        )


@dataclass(frozen=True, slots=True)
class TaskSuggestion:
    """LLM autofill output. Never persisted."""

    name: str
    description: str
    check_in_time: str
    device: str
    app_or_url: str
