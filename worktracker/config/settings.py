"""
Configuration Management for WorkTracker

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here and read once at the
composition root (create_tracker). The engine itself receives settings as
an explicit argument and never reaches for process-wide state.
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageBackendType(str, Enum):
    """Which persistence backend the tracker writes through to."""
    JSON = "json"
    MEMORY = "memory"
    GOOGLE_SHEETS = "google_sheets"


class PayDatePolicy(str, Enum):
    """
    How a pay period's pay date is derived from its end date.

    PERIOD_END is a placeholder default, not a confirmed business rule.
    """
    PERIOD_END = "period_end"
    DAY_AFTER_PERIOD_END = "day_after_period_end"


class StorageSettings(BaseSettings):
    """Local persistence configuration."""

    model_config = SettingsConfigDict(
        env_prefix="WORKTRACKER_STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    backend: StorageBackendType = Field(
        default=StorageBackendType.JSON,
        description="Persistence backend to use"
    )
    data_dir: Path = Field(
        default=Path.home() / ".worktracker",
        description="Directory holding one JSON document per collection"
    )


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: str = Field(
        ...,
        description="ID of the Google Sheets spreadsheet to use"
    )
    store_sheet_name: str = Field(
        default="WorkTrackerStore",
        description="Name of the worksheet holding the key-value rows"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v


class TrackerSettings(BaseSettings):
    """
    Engine settings.

    Thresholds used by recurrence, pay periods and reconciliation.
    """

    model_config = SettingsConfigDict(
        env_prefix="WORKTRACKER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # Recurrence
    max_recurrence_occurrences: int = Field(
        default=51,
        ge=1,
        le=1000,
        description="Occurrences generated for a series without an end date"
    )

    # Pay periods
    pay_date_policy: PayDatePolicy = Field(
        default=PayDatePolicy.PERIOD_END,
        description="How pay dates are derived from period end dates"
    )

    # Reconciliation
    net_pay_tolerance: float = Field(
        default=0.01,
        ge=0.0,
        description="Allowed gap between net pay and gross minus deductions"
    )
    hours_insight_threshold: float = Field(
        default=0.1,
        ge=0.0,
        description="Hours difference above which an insight is reported"
    )
    pay_insight_threshold: float = Field(
        default=0.01,
        ge=0.0,
        description="Pay difference above which an insight is reported"
    )
    accuracy_good_threshold: float = Field(
        default=95.0,
        ge=0.0,
        le=100.0,
        description="Accuracy at or above which a comparison is 'good'"
    )
    accuracy_fair_threshold: float = Field(
        default=85.0,
        ge=0.0,
        le=100.0,
        description="Accuracy at or above which a comparison is 'fair'"
    )

    # Audit
    audit_log_limit: int = Field(
        default=500,
        ge=0,
        description="Most recent audit events kept in the store (0 disables)"
    )

    # Presentation defaults
    default_theme_color: str = Field(
        default="Blue",
        description="Theme color used when none has been saved"
    )

    @model_validator(mode='after')
    def validate_accuracy_thresholds(self) -> 'TrackerSettings':
        """The fair band must sit below the good band."""
        if self.accuracy_fair_threshold > self.accuracy_good_threshold:
            raise ValueError(
                "accuracy_fair_threshold cannot exceed accuracy_good_threshold"
            )
        return self


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Note: These are loaded lazily so a missing Google Sheets
    # configuration doesn't block local use

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def tracker(self) -> TrackerSettings:
        return TrackerSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    for name in ("storage", "google_sheets", "tracker"):
        try:
            _ = getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
