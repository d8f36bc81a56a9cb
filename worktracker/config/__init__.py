"""Configuration package."""

from worktracker.config.settings import (
    GoogleSheetsSettings,
    PayDatePolicy,
    Settings,
    StorageBackendType,
    StorageSettings,
    TrackerSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "GoogleSheetsSettings",
    "PayDatePolicy",
    "Settings",
    "StorageBackendType",
    "StorageSettings",
    "TrackerSettings",
    "get_settings",
    "validate_all_settings",
]
