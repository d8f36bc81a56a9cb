"""
Data export and import.

An export is a single JSON document holding every job and shift plus the
theme color. Importing one replaces the current jobs, shifts and theme
wholesale; payroll data is not part of the document.
"""

from datetime import datetime
from typing import Optional

import structlog
from pydantic import BaseModel, Field, ValidationError

from worktracker.models import Job, WorkShift
from worktracker.services.storage import StorageDecodeError


logger = structlog.get_logger(__name__)


class ExportData(BaseModel):
    """The exported document."""

    jobs: list[Job] = Field(default_factory=list)
    shifts: list[WorkShift] = Field(default_factory=list)
    theme_color: str = "Blue"
    export_date: datetime = Field(default_factory=datetime.now)


def export_data(
    jobs: list[Job],
    shifts: list[WorkShift],
    theme_color: str,
    now: Optional[datetime] = None,
) -> str:
    """Pretty-printed JSON export."""
    document = ExportData(
        jobs=jobs,
        shifts=shifts,
        theme_color=theme_color,
        export_date=now or datetime.now(),
    )
    return document.model_dump_json(indent=2)


def decode_import(text: str) -> ExportData:
    """
    Decode an export document.

    Raises:
        StorageDecodeError: If the text is not a valid export
    """
    try:
        return ExportData.model_validate_json(text)
    except ValidationError as e:
        raise StorageDecodeError(f"Not a valid export: {e.error_count()} error(s)") from e


def parse_import(text: str) -> Optional[ExportData]:
    """Decode an export document, or None if it is not one."""
    try:
        return decode_import(text)
    except StorageDecodeError as e:
        logger.warning("import_decode_failed", error=str(e))
        return None
