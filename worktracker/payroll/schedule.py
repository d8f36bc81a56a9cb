"""
Pay Schedule & Period Generator

Turns a PaySchedule into concrete PayPeriods on demand.

Period i covers [start_i, start_{i+1} - 1 day], where start_0 is the
schedule's start_date and later starts step by the schedule frequency:
- weekly: 7 days
- biweekly: 14 days
- monthly: one calendar month, anchored on start_date (day clamped)
- custom: custom_day_interval days

DESIGN DECISION: Periods are never stored. Regenerating them from the
schedule is cheap, and it means editing a schedule can never leave stale
periods behind.
"""

from datetime import date, timedelta
from typing import Optional
from uuid import UUID

from worktracker.config import PayDatePolicy
from worktracker.models import PayFrequency, PayPeriod, PaySchedule
from worktracker.recurrence import add_months


_FIXED_LENGTHS = {
    PayFrequency.WEEKLY: 7,
    PayFrequency.BIWEEKLY: 14,
}


def _fixed_length(schedule: PaySchedule) -> Optional[int]:
    """Period length in days, or None for calendar-month schedules."""
    if schedule.frequency == PayFrequency.MONTHLY:
        return None
    if schedule.frequency == PayFrequency.CUSTOM:
        return schedule.custom_day_interval
    return _FIXED_LENGTHS[schedule.frequency]


def period_start(schedule: PaySchedule, index: int) -> date:
    """Start date of the index-th period (index 0 starts on start_date)."""
    length = _fixed_length(schedule)
    if length is None:
        return add_months(schedule.start_date, index)
    return schedule.start_date + timedelta(days=length * index)


def pay_date_for(end_date: date, policy: PayDatePolicy = PayDatePolicy.PERIOD_END) -> date:
    if policy == PayDatePolicy.DAY_AFTER_PERIOD_END:
        return end_date + timedelta(days=1)
    return end_date


def period_at(
    schedule: PaySchedule,
    index: int,
    pay_date_policy: PayDatePolicy = PayDatePolicy.PERIOD_END,
) -> PayPeriod:
    start = period_start(schedule, index)
    end = period_start(schedule, index + 1) - timedelta(days=1)
    return PayPeriod(
        pay_schedule_id=schedule.id,
        start_date=start,
        end_date=end,
        pay_date=pay_date_for(end, pay_date_policy),
    )


def _index_near(schedule: PaySchedule, day: date) -> int:
    """
    An index whose period starts on or before `day` (0 when day is earlier).

    Never overshoots, so callers can scan forward from it.
    """
    if day <= schedule.start_date:
        return 0
    length = _fixed_length(schedule)
    if length is None:
        months = (day.year - schedule.start_date.year) * 12 + day.month - schedule.start_date.month
        return max(months - 1, 0)
    return (day - schedule.start_date).days // length


# =============================================================================
# PUBLIC QUERIES
# =============================================================================

def periods_in_range(
    schedule: PaySchedule,
    range_start: date,
    range_end: date,
    include_partial: bool = False,
    pay_date_policy: PayDatePolicy = PayDatePolicy.PERIOD_END,
) -> list[PayPeriod]:
    """
    Periods of a schedule for a date range, in order.

    By default a period belongs to the range when its start date falls in
    [range_start, range_end]. This is deliberately narrower than "overlaps
    the range": a biweekly schedule from 2025-01-01 gives February two
    periods, and the one starting 2025-01-29 belongs to January. Pass
    include_partial=True to get every period that overlaps the range.
    Inverted ranges yield [].
    """
    if range_end < range_start:
        return []

    periods = []
    index = max(_index_near(schedule, range_start) - 1, 0)
    while period_start(schedule, index) <= range_end:
        period = period_at(schedule, index, pay_date_policy)
        if include_partial:
            selected = period.overlaps(range_start, range_end)
        else:
            selected = range_start <= period.start_date
        if selected:
            periods.append(period)
        index += 1
    return periods


def period_containing(
    schedule: PaySchedule,
    day: date,
    pay_date_policy: PayDatePolicy = PayDatePolicy.PERIOD_END,
) -> Optional[PayPeriod]:
    """The period a day falls in, or None before the schedule starts."""
    if day < schedule.start_date:
        return None
    index = _index_near(schedule, day)
    while True:
        period = period_at(schedule, index, pay_date_policy)
        if period.contains(day):
            return period
        index += 1


def upcoming_pay_dates(
    schedule: PaySchedule,
    today: date,
    count: int = 5,
    pay_date_policy: PayDatePolicy = PayDatePolicy.PERIOD_END,
) -> list[date]:
    """The next `count` pay dates on or after today."""
    dates = []
    index = max(_index_near(schedule, today) - 1, 0)
    while len(dates) < count:
        pay_date = period_at(schedule, index, pay_date_policy).pay_date
        if pay_date >= today:
            dates.append(pay_date)
        index += 1
    return dates


def active_schedule_for(schedules: list[PaySchedule], job_id: UUID) -> Optional[PaySchedule]:
    """First active schedule for a job."""
    for schedule in schedules:
        if schedule.job_id == job_id and schedule.is_active:
            return schedule
    return None
