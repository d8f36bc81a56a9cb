"""
In-memory storage backend.

Used by tests and by the `memory` backend setting. Nothing survives the
process.
"""

from typing import Optional

from worktracker.services.storage.interface import StorageBackend


class InMemoryBackend(StorageBackend):
    """Dictionary-backed implementation of StorageBackend."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    def read(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def write(self, key: str, payload: str) -> None:
        self._data[key] = payload

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._data)
