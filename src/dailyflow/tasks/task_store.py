# src/dailyflow/tasks/task_store.py

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Iterable
from dataclasses import replace

from ..core.ports import DocumentStorage
from .reorder import move_before
from .task_models import Task, TaskDraft, TaskStatus

logger = logging.getLogger(__name__)


class TaskStore:
    """
    Ordered in-memory task list, mirrored to a persisted JSON document.

    - List order is explicit (insertion position), independent of created_at.
    - Every mutation re-serializes the whole list before returning.
    - Operations on unknown ids are silent no-ops.
    """

    def __init__(self, storage: DocumentStorage) -> None:
        self._storage = storage
        self._tasks: list[Task] = self._load()
        logger.info("TaskStore ready total=%s", len(self._tasks))

    def _load(self) -> list[Task]:
        raw = self._storage.load()
        if raw is None:
            return []
        if not isinstance(raw, list):
            logger.warning("Persisted tasks document is not a list; starting empty.")
            return []

        out: list[Task] = []
        seen: set[str] = set()
        for item in raw:
            if not isinstance(item, dict):
                logger.warning("Skipping malformed persisted task: %r", item)
                continue
            task = Task.from_dict(item)
            if not task.id or task.id in seen:
                logger.warning("Skipping persisted task with missing/duplicate id=%r", task.id)
                continue
            seen.add(task.id)
            out.append(task)
        return out

    def _persist(self) -> None:
        if not self._storage.save([t.to_dict() for t in self._tasks]):
            logger.warning("Tasks were not persisted; in-memory state kept.")

    def _index(self, task_id: str) -> int:
        for i, t in enumerate(self._tasks):
            if t.id == task_id:
                return i
        return -1

    # ---- queries ----

    def list_tasks(self) -> list[Task]:
        return list(self._tasks)

    def get(self, task_id: str) -> Task | None:
        i = self._index(task_id)
        return self._tasks[i] if i >= 0 else None

    def count(self) -> int:
        return len(self._tasks)

    # ---- mutations ----

    def create(self, draft: TaskDraft) -> Task:
        task_id = str(uuid.uuid4())
        while self._index(task_id) >= 0:
            task_id = str(uuid.uuid4())

        task = Task(
            id=task_id,
            name=draft.name,
            description=draft.description,
            check_in_time=draft.check_in_time,
            device=draft.device,
            app_or_url=draft.app_or_url,
            status=TaskStatus.PENDING,
            created_at=int(time.time() * 1000),
        )
        self._tasks.append(task)
        self._persist()
        logger.debug("Task created id=%s name=%s time=%s", task.id, task.name, task.check_in_time)
        return task

    def update(self, task_id: str, draft: TaskDraft) -> None:
        i = self._index(task_id)
        if i < 0:
            logger.debug("update: unknown task id=%s", task_id)
            return
        old = self._tasks[i]
        self._tasks[i] = Task(
            id=old.id,
            name=draft.name,
            description=draft.description,
            check_in_time=draft.check_in_time,
            device=draft.device,
            app_or_url=draft.app_or_url,
            status=draft.status,
            created_at=old.created_at,
        )
        self._persist()
        logger.debug("Task updated id=%s", task_id)

    def set_status(self, task_id: str, status: TaskStatus) -> None:
        i = self._index(task_id)
        if i < 0:
            logger.debug("set_status: unknown task id=%s", task_id)
            return
        self._tasks[i] = replace(self._tasks[i], status=status)
        self._persist()
        logger.debug("Task status id=%s -> %s", task_id, status.value)

    def delete(self, task_id: str) -> None:
        i = self._index(task_id)
        if i < 0:
            logger.debug("delete: unknown task id=%s", task_id)
            return
        del self._tasks[i]
        self._persist()
        logger.debug("Task deleted id=%s", task_id)

    def replace_all(self, tasks: Iterable[Task]) -> None:
        self._tasks = list(tasks)
        self._persist()
        logger.info("Task list replaced total=%s", len(self._tasks))

    def reorder(self, from_id: str, to_id: str) -> bool:
        """Move `from_id` to the slot of `to_id` (see move_before). Returns True if the order changed."""
        if from_id == to_id or self._index(from_id) < 0 or self._index(to_id) < 0:
            return False
        self._tasks = move_before(self._tasks, lambda t: t.id, from_id, to_id)
        self._persist()
        logger.debug("Task reordered %s -> before %s", from_id, to_id)
        return True
