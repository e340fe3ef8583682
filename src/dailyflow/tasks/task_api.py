# src/dailyflow/tasks/task_api.py

"""
Caller-facing helpers around TaskStore.

The store stores whatever it is given; this module is where form rules live
(non-empty name, HH:mm time, device defaults) and where an LLM suggestion is
merged into a draft.
"""

from __future__ import annotations

import re
from collections import Counter
from collections.abc import Sequence

from ..core.errors import TaskValidationError
from .reorder import VIEW_ALL, VIEW_PENDING
from .task_models import Task, TaskDraft, TaskStatus, TaskSuggestion

DEFAULT_CHECK_IN_TIME = "09:00"

_TIME_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*$")


def normalize_check_in_time(raw: str) -> str:
    """'9:05' -> '09:05'. Raises TaskValidationError for anything that is not a 24h time."""
    m = _TIME_RE.match(raw or "")
    if not m:
        raise TaskValidationError(f"Time must be HH:mm (24h), got: {raw!r}")
    hours, minutes = int(m.group(1)), int(m.group(2))
    if hours > 23 or minutes > 59:
        raise TaskValidationError(f"Time out of range: {raw!r}")
    return f"{hours:02d}:{minutes:02d}"


def build_draft(
    *,
    name: str,
    description: str = "",
    check_in_time: str = DEFAULT_CHECK_IN_TIME,
    device: str = "",
    app_or_url: str = "",
    devices: Sequence[str] = (),
    status: TaskStatus = TaskStatus.PENDING,
) -> TaskDraft:
    """Validate form input and return a draft. An empty device falls back to the first registered one."""
    clean_name = (name or "").strip()
    if not clean_name:
        raise TaskValidationError("Task name must not be empty.")

    return TaskDraft(
        name=clean_name,
        description=(description or "").strip(),
        check_in_time=normalize_check_in_time(check_in_time),
        device=(device or "").strip() or (devices[0] if devices else "Unknown"),
        app_or_url=(app_or_url or "").strip(),
        status=status,
    )


def apply_suggestion(draft: TaskDraft, suggestion: TaskSuggestion, devices: Sequence[str]) -> TaskDraft:
    """
    Fill a draft from a suggestion.

    The suggested device is kept only if it is registered; otherwise the first
    registered device is used (or the draft's device when the registry is empty).
    The merged draft goes through the same form rules as typed input, so a
    blank name or bad time raises TaskValidationError.
    """
    if suggestion.device in devices:
        device = suggestion.device
    elif devices:
        device = devices[0]
    else:
        device = draft.device

    return build_draft(
        name=suggestion.name,
        description=suggestion.description,
        check_in_time=suggestion.check_in_time,
        device=device,
        app_or_url=suggestion.app_or_url,
        devices=devices,
        status=draft.status,
    )


def filter_tasks(tasks: Sequence[Task], view: str) -> list[Task]:
    if view == VIEW_PENDING:
        return [t for t in tasks if t.status is TaskStatus.PENDING]
    if view == VIEW_ALL:
        return list(tasks)
    raise ValueError(f"unknown view: {view}")


def status_counts(tasks: Sequence[Task]) -> dict[TaskStatus, int]:
    """Per-status totals (every status present, zero included)."""
    counts = Counter(t.status for t in tasks)
    return {s: counts.get(s, 0) for s in TaskStatus}
