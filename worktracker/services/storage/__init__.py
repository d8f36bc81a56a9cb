"""
Storage Services Package

Provides the key-value backend interface, its implementations, and the
typed DataStore the engine persists through.
"""

from worktracker.services.storage.interface import (
    StorageBackend,
    StorageConnectionError,
    StorageDecodeError,
    StorageError,
)
from worktracker.services.storage.memory import InMemoryBackend
from worktracker.services.storage.json_file import JsonFileBackend
from worktracker.services.storage.google_sheets import (
    GoogleSheetsBackend,
    GoogleSheetsClient,
)
from worktracker.services.storage.store import DataStore

__all__ = [
    # Interface
    "StorageBackend",
    # Exceptions
    "StorageConnectionError",
    "StorageDecodeError",
    "StorageError",
    # Backends
    "GoogleSheetsBackend",
    "GoogleSheetsClient",
    "InMemoryBackend",
    "JsonFileBackend",
    # Typed store
    "DataStore",
]
