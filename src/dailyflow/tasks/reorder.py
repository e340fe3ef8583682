# src/dailyflow/tasks/reorder.py

"""
Manual reordering of the task list.

The gesture is modelled as a small state machine so it does not depend on any
input/event system:

    Idle --start(src)--> Dragging(src) --hover(dst)--> DraggingOver(src, dst)
      ^                        |                             |
      +------ commit()/cancel() -----------------------------+

Only PENDING tasks can be dragged or dropped onto, and only while the
"all tasks" view is shown.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeVar

from .task_models import TaskStatus

if TYPE_CHECKING:
    from .task_store import TaskStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

VIEW_ALL = "all"
VIEW_PENDING = "pending"


def move_before(items: Sequence[T], key: Callable[[T], str], from_id: str, to_id: str) -> list[T]:
    """
    Return a new list with `from_id` moved to the target's slot.

    The target index is taken BEFORE the source is removed, then the source is
    inserted at that index of the shortened list. When the source was above the
    target it therefore lands just after it:

        [A, B, C, D], C -> B  =>  [A, C, B, D]
        [A, B, C, D], A -> C  =>  [B, C, A, D]

    Unknown ids or from_id == to_id return an unchanged copy.
    """
    out = list(items)
    if from_id == to_id:
        return out

    ids = [key(x) for x in out]
    try:
        from_index = ids.index(from_id)
        to_index = ids.index(to_id)
    except ValueError:
        return out

    moved = out.pop(from_index)
    out.insert(to_index, moved)
    return out


@dataclass(frozen=True, slots=True)
class Idle:
    pass


@dataclass(frozen=True, slots=True)
class Dragging:
    source: str


@dataclass(frozen=True, slots=True)
class DraggingOver:
    source: str
    target: str


DragPhase = Idle | Dragging | DraggingOver


class ReorderController:
    """Tracks one reorder gesture at a time against a TaskStore."""

    def __init__(self, store: TaskStore, view: Callable[[], str] | None = None) -> None:
        self._store = store
        self._view = view or (lambda: VIEW_ALL)
        self.phase: DragPhase = Idle()

    def _is_pending(self, task_id: str) -> bool:
        task = self._store.get(task_id)
        return task is not None and task.status is TaskStatus.PENDING

    def start(self, source_id: str) -> bool:
        if self._view() != VIEW_ALL:
            logger.debug("Reorder disabled in view=%s", self._view())
            return False
        if not self._is_pending(source_id):
            return False
        self.phase = Dragging(source=source_id)
        return True

    def hover(self, target_id: str) -> bool:
        phase = self.phase
        if isinstance(phase, Idle):
            return False
        if target_id == phase.source or not self._is_pending(target_id):
            return False
        self.phase = DraggingOver(source=phase.source, target=target_id)
        return True

    def commit(self) -> bool:
        """Drop: apply the move if source and target still exist. Always ends the gesture."""
        phase = self.phase
        self.phase = Idle()
        if not isinstance(phase, DraggingOver):
            return False
        if self._store.get(phase.source) is None or self._store.get(phase.target) is None:
            logger.debug("Reorder dropped: source or target vanished (%s -> %s)", phase.source, phase.target)
            return False
        return self._store.reorder(phase.source, phase.target)

    def cancel(self) -> None:
        self.phase = Idle()
