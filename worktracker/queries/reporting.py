"""
Read-only Reporting Snapshot

DESIGN DECISION: Reporting is READ-ONLY and works on its own copy of the
data. A snapshot loads jobs and shifts straight from the store, so a
second process (a widget, a status bar item) can answer "how much have I
earned this week" without sharing memory with a running tracker.

Queries never mutate and never raise on missing data: an empty or absent
store simply reports zeros.

Period totals are to-date: shifts in the current day/week/month whose date
is not after today.
"""

from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from worktracker.earnings import (
    TimeFilter,
    index_jobs,
    resolve_window,
    shift_earnings,
    shifts_between,
)
from worktracker.models import Job, WorkShift
from worktracker.services.storage import DataStore


DEFAULT_THEME_COLOR = "Blue"


class SnapshotSummary(BaseModel):
    """Everything a compact status view needs, computed at one instant."""

    generated_at: datetime
    today_earnings: float
    today_hours: float
    week_earnings: float
    week_hours: float
    month_earnings: float
    month_hours: float
    todays_shift: Optional[WorkShift] = None
    next_upcoming_shift: Optional[WorkShift] = None
    theme_color: str = Field(default=DEFAULT_THEME_COLOR)


class ReportingSnapshot:
    """
    Read-only queries over an independently loaded copy of the data.

    GUARANTEES:
    - Never writes to the store
    - Returns zeros / None when there is nothing to report
    """

    def __init__(
        self,
        jobs: list[Job],
        shifts: list[WorkShift],
        theme_color: Optional[str] = None,
    ):
        self._jobs = index_jobs(jobs)
        self._shifts = list(shifts)
        self._theme_color = theme_color

    @classmethod
    def from_store(cls, store: DataStore) -> 'ReportingSnapshot':
        """Load a fresh, unshared copy of jobs and shifts."""
        return cls(
            jobs=store.load_jobs() or [],
            shifts=store.load_shifts() or [],
            theme_color=store.load_theme_color(),
        )

    @property
    def jobs(self) -> dict[UUID, Job]:
        return dict(self._jobs)

    def theme_color(self, default: str = DEFAULT_THEME_COLOR) -> str:
        return self._theme_color or default

    # -------------------------------------------------------------------------
    # Period totals
    # -------------------------------------------------------------------------

    def _to_date(self, time_filter: TimeFilter, now: Optional[datetime]) -> list[WorkShift]:
        now = now or datetime.now()
        window = resolve_window(time_filter, 0, now)
        return shifts_between(self._shifts, window.first_day, min(window.last_day, now.date()))

    def _earnings(self, shifts: list[WorkShift]) -> float:
        return sum((shift_earnings(s, self._jobs) for s in shifts), 0.0)

    @staticmethod
    def _hours(shifts: list[WorkShift]) -> float:
        return sum((s.duration for s in shifts), 0.0)

    def today_earnings(self, now: Optional[datetime] = None) -> float:
        return self._earnings(self._to_date(TimeFilter.DAY, now))

    def today_hours(self, now: Optional[datetime] = None) -> float:
        return self._hours(self._to_date(TimeFilter.DAY, now))

    def week_earnings(self, now: Optional[datetime] = None) -> float:
        return self._earnings(self._to_date(TimeFilter.WEEK, now))

    def week_hours(self, now: Optional[datetime] = None) -> float:
        return self._hours(self._to_date(TimeFilter.WEEK, now))

    def month_earnings(self, now: Optional[datetime] = None) -> float:
        return self._earnings(self._to_date(TimeFilter.MONTH, now))

    def month_hours(self, now: Optional[datetime] = None) -> float:
        return self._hours(self._to_date(TimeFilter.MONTH, now))

    # -------------------------------------------------------------------------
    # Shift lookups
    # -------------------------------------------------------------------------

    def todays_shift(self, now: Optional[datetime] = None) -> Optional[WorkShift]:
        """Earliest shift dated today."""
        today: date = (now or datetime.now()).date()
        todays = [s for s in self._shifts if s.date == today]
        return min(todays, key=lambda s: s.start_time, default=None)

    def next_upcoming_shift(self, now: Optional[datetime] = None) -> Optional[WorkShift]:
        """First shift that has not started yet."""
        now = now or datetime.now()
        upcoming = [s for s in self._shifts if s.start_time > now]
        return min(upcoming, key=lambda s: s.start_time, default=None)

    def summary(self, now: Optional[datetime] = None) -> SnapshotSummary:
        now = now or datetime.now()
        return SnapshotSummary(
            generated_at=now,
            today_earnings=self.today_earnings(now),
            today_hours=self.today_hours(now),
            week_earnings=self.week_earnings(now),
            week_hours=self.week_hours(now),
            month_earnings=self.month_earnings(now),
            month_hours=self.month_hours(now),
            todays_shift=self.todays_shift(now),
            next_upcoming_shift=self.next_upcoming_shift(now),
            theme_color=self.theme_color(),
        )
