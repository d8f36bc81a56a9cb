"""
Typed document store.

DataStore sits between the orchestrator and a StorageBackend. It owns the
persisted key names and the encoding of each collection.

DESIGN DECISION: Collections are written wholesale. Every save replaces the
full JSON document for its key, and every load reads it back in one go.
This matches how the data is used (small personal datasets, always held in
memory) and keeps backends trivial.

A document that fails to decode is logged and treated as absent. It is never
silently replaced until the next successful save of that collection.

Operations spanning several documents (import, reset) go through a batch
that restores the documents it already changed when a later step fails.
"""

from typing import Optional, TypeVar

import structlog
from pydantic import BaseModel, TypeAdapter, ValidationError

from worktracker.models import AuditEvent, Job, PaySchedule, Payslip, WorkShift
from worktracker.services.storage.interface import (
    StorageBackend,
    StorageDecodeError,
    StorageError,
)


logger = structlog.get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


# =============================================================================
# PERSISTED KEYS
# =============================================================================

JOBS_KEY = "saved_jobs"
SHIFTS_KEY = "saved_shifts"
PAY_SCHEDULES_KEY = "saved_pay_schedules"
PAYSLIPS_KEY = "saved_payslips"
AUDIT_LOG_KEY = "audit_log"
THEME_COLOR_KEY = "theme_color"

ALL_KEYS = (
    JOBS_KEY,
    SHIFTS_KEY,
    PAY_SCHEDULES_KEY,
    PAYSLIPS_KEY,
    AUDIT_LOG_KEY,
    THEME_COLOR_KEY,
)


class DataStore:
    """
    Typed load/save over a key-value backend.

    Load methods return None when a collection is absent or undecodable,
    and an empty list when an empty collection was saved.
    Save methods propagate StorageError to the caller.
    """

    def __init__(self, backend: StorageBackend):
        self._backend = backend
        self._adapters: dict[type, TypeAdapter] = {}
        self._decode_failures: list[tuple[str, str]] = []

    @property
    def backend(self) -> StorageBackend:
        return self._backend

    def _adapter(self, model: type[ModelT]) -> TypeAdapter:
        if model not in self._adapters:
            self._adapters[model] = TypeAdapter(list[model])
        return self._adapters[model]

    def _decode_failed(self, key: str, error: str, **details) -> None:
        logger.error("collection_decode_failed", key=key, error=error, **details)
        self._decode_failures.append((key, error))

    def take_decode_failures(self) -> list[tuple[str, str]]:
        """(key, error) for each document that failed to decode since the last call."""
        failures, self._decode_failures = self._decode_failures, []
        return failures

    def _read(self, key: str) -> Optional[str]:
        try:
            return self._backend.read(key)
        except StorageDecodeError as e:
            self._decode_failed(key, str(e))
            return None

    def _load_list(self, key: str, model: type[ModelT]) -> Optional[list[ModelT]]:
        payload = self._read(key)
        if payload is None:
            return None
        try:
            return self._adapter(model).validate_json(payload)
        except ValidationError as e:
            self._decode_failed(key, str(e), error_count=e.error_count())
            return None

    def _encode(self, model: type[ModelT], items: list[ModelT]) -> str:
        return self._adapter(model).dump_json(items).decode("utf-8")

    def _save_list(self, key: str, model: type[ModelT], items: list[ModelT]) -> None:
        self._backend.write(key, self._encode(model, items))
        logger.debug("collection_saved", key=key, count=len(items))

    def _put(self, key: str, payload: Optional[str]) -> None:
        if payload is None:
            self._backend.remove(key)
        else:
            self._backend.write(key, payload)

    def _apply_batch(self, changes: dict[str, Optional[str]]) -> None:
        """
        Write several documents as one unit. A None payload removes the key.

        When a step fails, documents already changed are put back to their
        previous payloads and the StorageError is re-raised. A previous
        payload that could not be decoded counts as absent.
        """
        previous = {key: self._read(key) for key in changes}
        applied: list[str] = []
        for key, payload in changes.items():
            try:
                self._put(key, payload)
            except StorageError as e:
                logger.error("batch_write_failed", key=key, error=str(e), rolling_back=applied)
                for done in reversed(applied):
                    try:
                        self._put(done, previous[done])
                    except StorageError as restore_error:
                        logger.error("batch_rollback_failed", key=done, error=str(restore_error))
                raise
            applied.append(key)

    # -------------------------------------------------------------------------
    # Collections
    # -------------------------------------------------------------------------

    def load_jobs(self) -> Optional[list[Job]]:
        return self._load_list(JOBS_KEY, Job)

    def save_jobs(self, jobs: list[Job]) -> None:
        self._save_list(JOBS_KEY, Job, jobs)

    def load_shifts(self) -> Optional[list[WorkShift]]:
        return self._load_list(SHIFTS_KEY, WorkShift)

    def save_shifts(self, shifts: list[WorkShift]) -> None:
        self._save_list(SHIFTS_KEY, WorkShift, shifts)

    def load_pay_schedules(self) -> Optional[list[PaySchedule]]:
        return self._load_list(PAY_SCHEDULES_KEY, PaySchedule)

    def save_pay_schedules(self, schedules: list[PaySchedule]) -> None:
        self._save_list(PAY_SCHEDULES_KEY, PaySchedule, schedules)

    def load_payslips(self) -> Optional[list[Payslip]]:
        return self._load_list(PAYSLIPS_KEY, Payslip)

    def save_payslips(self, payslips: list[Payslip]) -> None:
        self._save_list(PAYSLIPS_KEY, Payslip, payslips)

    # -------------------------------------------------------------------------
    # Audit log
    # -------------------------------------------------------------------------

    def load_audit_log(self) -> list[AuditEvent]:
        return self._load_list(AUDIT_LOG_KEY, AuditEvent) or []

    def append_audit_event(self, event: AuditEvent, limit: int) -> None:
        """Append one event, keeping only the most recent `limit` events."""
        events = self.load_audit_log()
        events.append(event)
        if limit > 0:
            events = events[-limit:]
        self._save_list(AUDIT_LOG_KEY, AuditEvent, events)

    # -------------------------------------------------------------------------
    # Settings
    # -------------------------------------------------------------------------

    def load_theme_color(self) -> Optional[str]:
        value = self._read(THEME_COLOR_KEY)
        return value or None

    def save_theme_color(self, color: str) -> None:
        self._backend.write(THEME_COLOR_KEY, color)

    # -------------------------------------------------------------------------
    # Whole-store operations
    # -------------------------------------------------------------------------

    def replace_all(self, jobs: list[Job], shifts: list[WorkShift], theme_color: str) -> None:
        """Replace jobs, shifts and theme color together, or not at all."""
        self._apply_batch({
            JOBS_KEY: self._encode(Job, jobs),
            SHIFTS_KEY: self._encode(WorkShift, shifts),
            THEME_COLOR_KEY: theme_color,
        })
        logger.info("store_replaced", jobs=len(jobs), shifts=len(shifts))

    def reset_all_data(self) -> None:
        """Remove jobs and shifts together. Theme color and payroll data are kept."""
        self._apply_batch({JOBS_KEY: None, SHIFTS_KEY: None})
        logger.info("store_reset", removed=[JOBS_KEY, SHIFTS_KEY])
