"""
Earnings Calculator

Pure functions that turn shifts into money and hours.

DESIGN DECISION: Nothing here caches. Totals are recomputed from the shift
list on every call, so there is no derived state that can go stale after an
edit. The datasets are small enough that this never shows up in profiles.

Rate resolution for a shift:
1. Its own hourly_rate_override, if set
2. Otherwise its job's hourly_rate
3. Otherwise (job no longer exists) 0.0
"""

from datetime import date, datetime
from typing import Mapping, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from worktracker.models import Job, ShiftType, WorkShift


MULTIPLIERS: dict[ShiftType, float] = {
    ShiftType.REGULAR: 1.0,
    ShiftType.OVERTIME: 1.5,
    ShiftType.HOLIDAY: 2.0,
}

JobLookup = Mapping[UUID, Job]


class JobEarnings(BaseModel):
    """Earnings and hours of one job over a date range."""

    job: Job
    earnings: float = Field(..., description="Sum of shift earnings")
    hours: float = Field(..., description="Sum of net shift durations")


# =============================================================================
# PER-SHIFT
# =============================================================================

def multiplier_for(shift_type: ShiftType) -> float:
    return MULTIPLIERS[shift_type]


def index_jobs(jobs: list[Job]) -> dict[UUID, Job]:
    """Id -> Job lookup for the rate functions below."""
    return {job.id: job for job in jobs}


def effective_rate(shift: WorkShift, jobs: JobLookup) -> float:
    """Hourly rate before the shift-type multiplier."""
    if shift.hourly_rate_override is not None:
        return shift.hourly_rate_override
    job = jobs.get(shift.job_id)
    if job is None:
        return 0.0
    return job.hourly_rate


def shift_earnings(shift: WorkShift, jobs: JobLookup) -> float:
    """duration x rate x multiplier."""
    return shift.duration * effective_rate(shift, jobs) * multiplier_for(shift.shift_type)


# =============================================================================
# DATE-RANGE AGGREGATES
# =============================================================================

def shifts_between(
    shifts: list[WorkShift],
    start: date,
    end: date,
    job_id: Optional[UUID] = None,
) -> list[WorkShift]:
    """Shifts dated within [start, end], inclusive, optionally for one job."""
    return [
        shift for shift in shifts
        if start <= shift.date <= end
        and (job_id is None or shift.job_id == job_id)
    ]


def total_earnings(
    shifts: list[WorkShift],
    jobs: JobLookup,
    start: date,
    end: date,
    job_id: Optional[UUID] = None,
) -> float:
    return sum(
        (shift_earnings(s, jobs) for s in shifts_between(shifts, start, end, job_id)),
        0.0,
    )


def total_hours(
    shifts: list[WorkShift],
    start: date,
    end: date,
    job_id: Optional[UUID] = None,
) -> float:
    return sum((s.duration for s in shifts_between(shifts, start, end, job_id)), 0.0)


def earnings_by_job(
    shifts: list[WorkShift],
    jobs: JobLookup,
    start: date,
    end: date,
) -> list[JobEarnings]:
    """
    Per-job breakdown over [start, end].

    Jobs without hours in the range are left out. Shifts whose job no longer
    exists are not attributed to anything. Sorted by earnings, highest first.
    """
    in_range = shifts_between(shifts, start, end)
    breakdown = []
    for job in jobs.values():
        job_shifts = [s for s in in_range if s.job_id == job.id]
        hours = sum((s.duration for s in job_shifts), 0.0)
        if hours == 0:
            continue
        breakdown.append(JobEarnings(
            job=job,
            earnings=sum((shift_earnings(s, jobs) for s in job_shifts), 0.0),
            hours=hours,
        ))
    breakdown.sort(key=lambda item: item.earnings, reverse=True)
    return breakdown


# =============================================================================
# PROPORTIONAL ATTRIBUTION
# =============================================================================

def overlap_hours(shift: WorkShift, bucket_start: datetime, bucket_end: datetime) -> float:
    """Hours of [start_time, end_time) that fall inside the bucket."""
    start = max(shift.start_time, bucket_start)
    end = min(shift.end_time, bucket_end)
    if end <= start:
        return 0.0
    return (end - start).total_seconds() / 3600


def overlap_proportion(shift: WorkShift, bucket_start: datetime, bucket_end: datetime) -> float:
    """Share of the shift's gross span inside the bucket; 0 for zero-length shifts."""
    span = shift.span_hours
    if span <= 0:
        return 0.0
    return overlap_hours(shift, bucket_start, bucket_end) / span


def proportional_earnings(
    shift: WorkShift,
    jobs: JobLookup,
    bucket_start: datetime,
    bucket_end: datetime,
) -> float:
    return shift_earnings(shift, jobs) * overlap_proportion(shift, bucket_start, bucket_end)


def proportional_hours(shift: WorkShift, bucket_start: datetime, bucket_end: datetime) -> float:
    """Net hours attributed to the bucket (break spread evenly over the span)."""
    return shift.duration * overlap_proportion(shift, bucket_start, bucket_end)
