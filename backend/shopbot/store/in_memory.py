from __future__ import annotations

from copy import deepcopy
from threading import RLock
from typing import Any, Protocol


class Store(Protocol):
    """Key-value collaborator holding tenant and conversation records."""

    def get(self, key: str) -> dict[str, Any] | None: ...

    def set(self, key: str, value: dict[str, Any]) -> None: ...

    def delete(self, key: str) -> None: ...

    def keys(self, prefix: str) -> list[str]: ...

    @property
    def status(self) -> str: ...


class InMemoryStore:
    def __init__(self) -> None:
        self.lock = RLock()
        self._records: dict[str, dict[str, Any]] = {}

    def get(self, key: str) -> dict[str, Any] | None:
        with self.lock:
            record = self._records.get(key)
            return deepcopy(record) if record is not None else None

    def set(self, key: str, value: dict[str, Any]) -> None:
        with self.lock:
            self._records[key] = deepcopy(value)

    def delete(self, key: str) -> None:
        with self.lock:
            self._records.pop(key, None)

    def keys(self, prefix: str) -> list[str]:
        with self.lock:
            return sorted(key for key in self._records if key.startswith(prefix))

    @property
    def status(self) -> str:
        return "memory"
