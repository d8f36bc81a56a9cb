"""
Shared fixtures for the WorkTracker test suite.

Everything runs against the in-memory backend; nothing touches disk or
the network unless a test asks for tmp_path explicitly.
"""

from datetime import date, datetime, time
from typing import Callable, Optional
from uuid import UUID

import pytest

from worktracker.audit import AuditLogger
from worktracker.config import TrackerSettings
from worktracker.models import Job, ShiftType, WorkShift
from worktracker.orchestrator import WorkTracker
from worktracker.services.storage import DataStore, InMemoryBackend


@pytest.fixture
def job() -> Job:
    return Job(name="Cafe", hourly_rate=12.5)


@pytest.fixture
def make_shift() -> Callable[..., WorkShift]:
    """Build a shift from a day and whole/fractional hours."""

    def _make(
        job_id: UUID,
        day: date,
        start: float = 9,
        end: float = 17,
        break_duration: float = 0.0,
        shift_type: ShiftType = ShiftType.REGULAR,
        hourly_rate_override: Optional[float] = None,
        **extra,
    ) -> WorkShift:
        def at(hours: float) -> datetime:
            whole = int(hours)
            minutes = int(round((hours - whole) * 60))
            return datetime.combine(day, time(whole % 24, minutes))

        return WorkShift(
            job_id=job_id,
            date=day,
            start_time=at(start),
            end_time=at(end),
            break_duration=break_duration,
            shift_type=shift_type,
            hourly_rate_override=hourly_rate_override,
            **extra,
        )

    return _make


@pytest.fixture
def backend() -> InMemoryBackend:
    return InMemoryBackend()


@pytest.fixture
def store(backend: InMemoryBackend) -> DataStore:
    return DataStore(backend)


@pytest.fixture
def settings() -> TrackerSettings:
    return TrackerSettings()


@pytest.fixture
def tracker(store: DataStore, settings: TrackerSettings, job: Job) -> WorkTracker:
    """A tracker holding exactly one job: the `job` fixture."""
    store.save_jobs([job])
    return WorkTracker(store, audit_logger=AuditLogger(store), settings=settings)
