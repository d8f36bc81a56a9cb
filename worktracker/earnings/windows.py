"""
Semantic time windows and chart series.

A window is a half-open [start, end) interval of naive host-local
datetimes, resolved from a filter ("this week", "last month") and an
offset relative to now.

Weeks start on Monday.
"""

from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from worktracker.earnings.calculator import (
    JobEarnings,
    JobLookup,
    earnings_by_job,
    proportional_earnings,
    proportional_hours,
    shift_earnings,
    shifts_between,
)
from worktracker.models import WorkShift
from worktracker.recurrence import add_months


class TimeFilter(str, Enum):
    """Granularity of a reporting window."""
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"
    YEAR_TO_DATE = "year_to_date"


class ChartMetric(str, Enum):
    EARNINGS = "earnings"
    HOURS = "hours"


class TimeWindow(BaseModel):
    """Half-open interval [start, end)."""
    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime

    @model_validator(mode='after')
    def validate_order(self) -> 'TimeWindow':
        if self.end <= self.start:
            raise ValueError("Window end must be after its start")
        return self

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment < self.end

    @property
    def first_day(self) -> date:
        return self.start.date()

    @property
    def last_day(self) -> date:
        """Last calendar day touched by the window."""
        return (self.end - timedelta(microseconds=1)).date()

    def contains_date(self, day: date) -> bool:
        return self.first_day <= day <= self.last_day

    @property
    def days(self) -> list[date]:
        count = (self.last_day - self.first_day).days + 1
        return [self.first_day + timedelta(days=i) for i in range(count)]


class ChartPoint(BaseModel):
    """One bar of a chart."""

    label: str
    start: datetime
    end: datetime
    value: float = Field(..., description="Earnings or hours attributed to the bucket")


class WindowTotals(BaseModel):
    """Totals for every shift dated inside a window."""

    window: TimeWindow
    earnings: float
    hours: float
    shift_count: int
    by_job: list[JobEarnings] = Field(default_factory=list)


# =============================================================================
# WINDOW RESOLUTION
# =============================================================================

def _midnight(day: date) -> datetime:
    return datetime.combine(day, time.min)


def _same_day_in_year(day: date, year: int) -> date:
    """`day` moved to `year`, with Feb 29 clamped to Feb 28."""
    if day.month == 2 and day.day == 29:
        try:
            return date(year, 2, 29)
        except ValueError:
            return date(year, 2, 28)
    return day.replace(year=year)


def resolve_window(
    time_filter: TimeFilter,
    offset: int = 0,
    now: Optional[datetime] = None,
) -> TimeWindow:
    """
    Window for a filter, `offset` units away from the one containing now.

    offset=0 is the current day/week/month/year, -1 the previous one.
    YEAR_TO_DATE runs from Jan 1 to the end of today's calendar day in the
    offset year.
    """
    now = now or datetime.now()
    today = now.date()

    if time_filter == TimeFilter.DAY:
        day = today + timedelta(days=offset)
        return TimeWindow(start=_midnight(day), end=_midnight(day + timedelta(days=1)))

    if time_filter == TimeFilter.WEEK:
        monday = today - timedelta(days=today.weekday()) + timedelta(weeks=offset)
        return TimeWindow(start=_midnight(monday), end=_midnight(monday + timedelta(days=7)))

    if time_filter == TimeFilter.MONTH:
        first = add_months(today.replace(day=1), offset)
        return TimeWindow(start=_midnight(first), end=_midnight(add_months(first, 1)))

    year = today.year + offset
    start = _midnight(date(year, 1, 1))
    if time_filter == TimeFilter.YEAR:
        return TimeWindow(start=start, end=_midnight(date(year + 1, 1, 1)))

    last = _same_day_in_year(today, year)
    return TimeWindow(start=start, end=_midnight(last + timedelta(days=1)))


# =============================================================================
# CHARTS
# =============================================================================

def chart_buckets(window: TimeWindow, time_filter: TimeFilter) -> list[TimeWindow]:
    """
    Split a window into chart bars.

    DAY -> hours, WEEK/MONTH -> days, YEAR/YEAR_TO_DATE -> months.
    The last bucket is cut at the window end.
    """
    buckets = []
    cursor = window.start
    while cursor < window.end:
        if time_filter == TimeFilter.DAY:
            step = cursor + timedelta(hours=1)
        elif time_filter in (TimeFilter.WEEK, TimeFilter.MONTH):
            step = cursor + timedelta(days=1)
        else:
            step = _midnight(add_months(cursor.date().replace(day=1), 1))
        step = min(step, window.end)
        buckets.append(TimeWindow(start=cursor, end=step))
        cursor = step
    return buckets


def _label(bucket: TimeWindow) -> str:
    length = bucket.end - bucket.start
    if length <= timedelta(hours=1):
        return bucket.start.strftime("%H:00")
    if length <= timedelta(days=1):
        return bucket.start.strftime("%a %d")
    return bucket.start.strftime("%b")


def bucket_series(
    shifts: list[WorkShift],
    jobs: JobLookup,
    buckets: list[TimeWindow],
    metric: ChartMetric = ChartMetric.EARNINGS,
) -> list[ChartPoint]:
    """
    One ChartPoint per bucket.

    A shift spanning several buckets is split in proportion to how much of
    its gross span falls in each one, so the bars always add up to the
    shift's full value.
    """
    points = []
    for bucket in buckets:
        value = 0.0
        for shift in shifts:
            if shift.end_time <= bucket.start or shift.start_time >= bucket.end:
                continue
            if metric == ChartMetric.EARNINGS:
                value += proportional_earnings(shift, jobs, bucket.start, bucket.end)
            else:
                value += proportional_hours(shift, bucket.start, bucket.end)
        points.append(ChartPoint(
            label=_label(bucket),
            start=bucket.start,
            end=bucket.end,
            value=value,
        ))
    return points


def window_totals(
    shifts: list[WorkShift],
    jobs: JobLookup,
    window: TimeWindow,
) -> WindowTotals:
    """Totals for shifts whose date falls in the window."""
    in_window = shifts_between(shifts, window.first_day, window.last_day)
    return WindowTotals(
        window=window,
        earnings=sum((shift_earnings(s, jobs) for s in in_window), 0.0),
        hours=sum((s.duration for s in in_window), 0.0),
        shift_count=len(in_window),
        by_job=earnings_by_job(shifts, jobs, window.first_day, window.last_day),
    )
