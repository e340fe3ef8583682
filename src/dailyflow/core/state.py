# src/dailyflow/core/state.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..devices.registry import DeviceRegistry
from ..tasks.reorder import VIEW_ALL, ReorderController
from ..tasks.task_store import TaskStore
from .ports import SuggestionClient


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules.
    settings: Any

    tasks: TaskStore
    devices: DeviceRegistry
    suggestions: SuggestionClient

    # Current list view: "all" or "pending". Reordering only works in "all".
    view: str = VIEW_ALL
    reorder: ReorderController = field(init=False)

    def __post_init__(self) -> None:
        self.reorder = ReorderController(self.tasks, view=lambda: self.view)
