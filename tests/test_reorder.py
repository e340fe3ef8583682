# tests/test_reorder.py

from __future__ import annotations

import pytest

from dailyflow.tasks.reorder import (
    VIEW_ALL,
    VIEW_PENDING,
    Dragging,
    DraggingOver,
    Idle,
    ReorderController,
    move_before,
)
from dailyflow.tasks.task_models import TaskDraft, TaskStatus
from dailyflow.tasks.task_store import TaskStore

from .fakes import MemoryDocument


def _ident(x: str) -> str:
    return x


@pytest.mark.parametrize(
    ("src", "dst", "expected"),
    [
        ("C", "B", ["A", "C", "B", "D"]),
        ("D", "A", ["D", "A", "B", "C"]),
        # source above target: lands one slot past the target's old index
        ("A", "C", ["B", "C", "A", "D"]),
        ("A", "A", ["A", "B", "C", "D"]),
        ("A", "Z", ["A", "B", "C", "D"]),
    ],
)
def test_move_before(src: str, dst: str, expected: list[str]) -> None:
    items = ["A", "B", "C", "D"]
    assert move_before(items, _ident, src, dst) == expected
    assert items == ["A", "B", "C", "D"]


@pytest.fixture()
def store() -> TaskStore:
    s = TaskStore(MemoryDocument())
    for name in "ABCD":
        s.create(TaskDraft(name=name))
    return s


def _ids(store: TaskStore) -> dict[str, str]:
    return {t.name: t.id for t in store.list_tasks()}


def _names(store: TaskStore) -> list[str]:
    return [t.name for t in store.list_tasks()]


def test_gesture_start_hover_commit(store: TaskStore) -> None:
    ids = _ids(store)
    ctl = ReorderController(store)

    assert ctl.start(ids["C"])
    assert ctl.phase == Dragging(source=ids["C"])
    assert ctl.hover(ids["B"])
    assert ctl.phase == DraggingOver(source=ids["C"], target=ids["B"])

    assert ctl.commit() is True
    assert ctl.phase == Idle()
    assert _names(store) == ["A", "C", "B", "D"]


def test_hover_on_source_sets_no_target(store: TaskStore) -> None:
    ids = _ids(store)
    ctl = ReorderController(store)

    ctl.start(ids["A"])
    assert ctl.hover(ids["A"]) is False
    assert ctl.phase == Dragging(source=ids["A"])

    assert ctl.commit() is False
    assert ctl.phase == Idle()
    assert _names(store) == ["A", "B", "C", "D"]


def test_cancel_leaves_order(store: TaskStore) -> None:
    ids = _ids(store)
    ctl = ReorderController(store)

    ctl.start(ids["D"])
    ctl.hover(ids["A"])
    ctl.cancel()

    assert ctl.phase == Idle()
    assert _names(store) == ["A", "B", "C", "D"]


def test_target_removed_before_commit(store: TaskStore) -> None:
    ids = _ids(store)
    ctl = ReorderController(store)

    ctl.start(ids["C"])
    ctl.hover(ids["B"])
    store.delete(ids["B"])

    assert ctl.commit() is False
    assert ctl.phase == Idle()
    assert _names(store) == ["A", "C", "D"]


def test_only_pending_tasks_take_part(store: TaskStore) -> None:
    ids = _ids(store)
    store.set_status(ids["B"], TaskStatus.COMPLETED)
    ctl = ReorderController(store)

    assert ctl.start(ids["B"]) is False
    assert ctl.phase == Idle()

    assert ctl.start(ids["D"])
    assert ctl.hover(ids["B"]) is False
    assert ctl.phase == Dragging(source=ids["D"])


def test_disabled_in_filtered_view(store: TaskStore) -> None:
    view = {"current": VIEW_PENDING}
    ctl = ReorderController(store, view=lambda: view["current"])
    ids = _ids(store)

    assert ctl.start(ids["A"]) is False

    view["current"] = VIEW_ALL
    assert ctl.start(ids["A"]) is True


def test_hover_without_start_is_ignored(store: TaskStore) -> None:
    ctl = ReorderController(store)
    assert ctl.hover(_ids(store)["A"]) is False
    assert ctl.phase == Idle()
