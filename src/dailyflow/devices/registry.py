# src/dailyflow/devices/registry.py

from __future__ import annotations

import logging
from collections.abc import Iterable

from ..core.errors import DeviceValidationError
from ..core.ports import DocumentStorage

logger = logging.getLogger(__name__)


class DeviceRegistry:
    """
    Ordered list of unique (case-sensitive) device labels.

    Labels are trimmed before validation. Removing a device never touches the
    `device` text already stored on tasks.
    """

    def __init__(self, storage: DocumentStorage, defaults: Iterable[str]) -> None:
        self._storage = storage
        self._labels = self._load(list(defaults))
        logger.info("DeviceRegistry ready devices=%s", len(self._labels))

    def _load(self, defaults: list[str]) -> list[str]:
        raw = self._storage.load()
        if raw is None:
            return defaults
        if not isinstance(raw, list) or not all(isinstance(x, str) for x in raw):
            logger.warning("Persisted devices document is malformed; using defaults.")
            return defaults
        return list(raw)

    def _persist(self) -> None:
        if not self._storage.save(list(self._labels)):
            logger.warning("Devices were not persisted; in-memory state kept.")

    def labels(self) -> list[str]:
        return list(self._labels)

    def default_label(self) -> str:
        return self._labels[0] if self._labels else ""

    def __len__(self) -> int:
        return len(self._labels)

    def add(self, label: str) -> str:
        clean = (label or "").strip()
        if not clean:
            raise DeviceValidationError("Device name must not be empty.")
        if clean in self._labels:
            raise DeviceValidationError(f"Device already exists: {clean}")
        self._labels.append(clean)
        self._persist()
        logger.debug("Device added: %s", clean)
        return clean

    def rename(self, index: int, new_label: str) -> None:
        if not 0 <= index < len(self._labels):
            logger.debug("rename: index out of range %s", index)
            return
        clean = (new_label or "").strip()
        if clean == self._labels[index]:
            return
        if not clean:
            raise DeviceValidationError("Device name must not be empty.")
        if any(i != index and d == clean for i, d in enumerate(self._labels)):
            raise DeviceValidationError(f"Device already exists: {clean}")
        old = self._labels[index]
        self._labels[index] = clean
        self._persist()
        logger.debug("Device renamed: %s -> %s", old, clean)

    def remove(self, index: int) -> None:
        if not 0 <= index < len(self._labels):
            logger.debug("remove: index out of range %s", index)
            return
        removed = self._labels.pop(index)
        self._persist()
        logger.debug("Device removed: %s", removed)

    def replace_all(self, labels: Iterable[str]) -> None:
        self._labels = list(labels)
        self._persist()
        logger.info("Device list replaced total=%s", len(self._labels))
