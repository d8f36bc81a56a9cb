"""
Abstract Storage Interface

DESIGN DECISION: The engine only ever needs a handful of named JSON
documents ("saved_jobs", "saved_shifts", ...). Backends therefore expose a
tiny key-value surface instead of per-entity CRUD. This allows us to:
1. Keep JSON files on disk for everyday use
2. Use in-memory storage for testing
3. Mirror the same documents into Google Sheets

Typed encoding and decoding lives one level up, in DataStore.
"""

from abc import ABC, abstractmethod
from typing import Optional


class StorageBackend(ABC):
    """
    Abstract key-value backend.

    Payloads are opaque UTF-8 strings; the backend never parses them.
    """

    @abstractmethod
    def read(self, key: str) -> Optional[str]:
        """
        Read the payload stored under a key.

        Args:
            key: Document name

        Returns:
            The payload, or None if nothing is stored under the key

        Raises:
            StorageDecodeError: If the stored bytes are not valid text
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    def write(self, key: str, payload: str) -> None:
        """
        Replace the payload stored under a key.

        Args:
            key: Document name
            payload: Full document text

        Raises:
            StorageError: If the write fails. The previous payload must
                still be readable afterwards.
        """
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        """
        Remove a key. Removing a missing key is not an error.

        Raises:
            StorageError: If the backend cannot be modified
        """
        pass

    @abstractmethod
    def keys(self) -> list[str]:
        """
        List the stored keys, sorted.
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class StorageConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass


class StorageDecodeError(StorageError):
    """A stored document could not be decoded."""
    pass
