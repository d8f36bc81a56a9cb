"""Services package."""

from worktracker.services.storage import (
    DataStore,
    GoogleSheetsBackend,
    GoogleSheetsClient,
    InMemoryBackend,
    JsonFileBackend,
    StorageBackend,
    StorageConnectionError,
    StorageDecodeError,
    StorageError,
)
from worktracker.services.transfer import (
    ExportData,
    decode_import,
    export_data,
    parse_import,
)

__all__ = [
    # Storage services
    "DataStore",
    "GoogleSheetsBackend",
    "GoogleSheetsClient",
    "InMemoryBackend",
    "JsonFileBackend",
    "StorageBackend",
    "StorageConnectionError",
    "StorageDecodeError",
    "StorageError",
    # Export / import
    "ExportData",
    "decode_import",
    "export_data",
    "parse_import",
]
