"""
Shift Models

These models define the schemas for logged work and the input used to
create or edit it.

DESIGN DECISION: Shift type and recurrence interval are closed enums.
Multipliers and step sizes are plain lookups keyed by these values, so
there is nothing to dispatch on at runtime.

Recurring series are stored flat: every occurrence is a WorkShift in the
same collection, and children point at their root through parent_shift_id.
"""

import datetime as dt
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator

from worktracker.models.job import Job, PresetShift


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class ShiftType(str, Enum):
    """Shift type; each one maps to a fixed pay multiplier."""
    REGULAR = "regular"
    OVERTIME = "overtime"
    HOLIDAY = "holiday"


class RecurrenceInterval(str, Enum):
    """How often a recurring shift repeats."""
    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"


class RecurringUpdateOption(str, Enum):
    """
    Which members of a series an edit applies to.

    THIS_ONLY:        the targeted shift only
    THIS_AND_FUTURE:  the target and every member on or after its date
    ALL:              every member, limited to the series-wide fields
    """
    THIS_ONLY = "this_only"
    THIS_AND_FUTURE = "this_and_future"
    ALL = "all"


def _hours_between(start: dt.datetime, end: dt.datetime) -> float:
    return (end - start).total_seconds() / 3600


# =============================================================================
# CORE SHIFT MODEL
# =============================================================================

class WorkShift(BaseModel):
    """
    One worked interval tied to a job.

    All datetimes are naive and follow the host calendar.
    An end time earlier than the start time means the shift ran past
    midnight, so the end is moved to the following day.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    # Identity
    id: UUID = Field(default_factory=uuid4)
    job_id: UUID = Field(
        ...,
        description="Job this shift was worked for (weak reference)"
    )

    # When
    date: dt.date = Field(..., description="Calendar day the shift belongs to")
    start_time: dt.datetime
    end_time: dt.datetime
    break_duration: float = Field(
        default=0.0,
        ge=0,
        description="Unpaid break in hours"
    )

    # Pay
    shift_type: ShiftType = ShiftType.REGULAR
    notes: str = Field(default="", max_length=1000)
    is_paid: bool = False
    hourly_rate_override: Optional[float] = Field(
        default=None,
        gt=0,
        description="Rate that supersedes the job's hourly rate"
    )

    # Recurrence
    is_recurring: bool = False
    recurrence_interval: RecurrenceInterval = RecurrenceInterval.NONE
    recurrence_end_date: Optional[dt.date] = None
    parent_shift_id: Optional[UUID] = Field(
        default=None,
        description="Root of the series this occurrence was generated from"
    )

    @model_validator(mode='after')
    def normalize_overnight_end(self) -> 'WorkShift':
        """Shifts that end before they start finish on the next day."""
        if self.end_time < self.start_time:
            self.end_time = self.end_time + dt.timedelta(days=1)
        return self

    @property
    def span_hours(self) -> float:
        """Hours between start and end, break included."""
        return _hours_between(self.start_time, self.end_time)

    @property
    def duration(self) -> float:
        """Paid hours: (end - start) - break."""
        return self.span_hours - self.break_duration

    @property
    def is_series_root(self) -> bool:
        """Only a root drives series-wide edits and deletes."""
        return self.parent_shift_id is None and self.is_recurring

    @property
    def series_id(self) -> Optional[UUID]:
        """Id shared by every member of this shift's series."""
        if self.parent_shift_id is not None:
            return self.parent_shift_id
        if self.is_recurring:
            return self.id
        return None


class ShiftDraft(BaseModel):
    """
    Caller input for creating or editing a shift.

    Unlike WorkShift, nothing here is guaranteed to be valid yet:
    the job may be missing and the duration may be zero. ShiftValidator
    decides whether a draft may become a WorkShift.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    job_id: Optional[UUID] = None
    date: dt.date
    start_time: dt.datetime
    end_time: dt.datetime
    break_duration: float = Field(default=0.0, ge=0)
    shift_type: ShiftType = ShiftType.REGULAR
    notes: str = Field(default="", max_length=1000)
    is_paid: bool = False

    # Custom rate
    use_custom_rate: bool = False
    hourly_rate_override: Optional[float] = None

    # Recurrence
    is_recurring: bool = False
    recurrence_interval: RecurrenceInterval = RecurrenceInterval.NONE
    recurrence_end_date: Optional[dt.date] = None

    @property
    def resolved_end_time(self) -> dt.datetime:
        if self.end_time < self.start_time:
            return self.end_time + dt.timedelta(days=1)
        return self.end_time

    @property
    def duration(self) -> float:
        return _hours_between(self.start_time, self.resolved_end_time) - self.break_duration

    @property
    def effective_override(self) -> Optional[float]:
        return self.hourly_rate_override if self.use_custom_rate else None

    def to_shift(
        self,
        shift_id: Optional[UUID] = None,
        parent_shift_id: Optional[UUID] = None,
    ) -> WorkShift:
        """Build the WorkShift this draft describes. Call only after validation."""
        recurring = self.is_recurring and self.recurrence_interval != RecurrenceInterval.NONE
        return WorkShift(
            id=shift_id or uuid4(),
            job_id=self.job_id,
            date=self.date,
            start_time=self.start_time,
            end_time=self.resolved_end_time,
            break_duration=self.break_duration,
            shift_type=self.shift_type,
            notes=self.notes,
            is_paid=self.is_paid,
            hourly_rate_override=self.effective_override,
            is_recurring=recurring or parent_shift_id is not None,
            recurrence_interval=self.recurrence_interval if recurring else RecurrenceInterval.NONE,
            recurrence_end_date=self.recurrence_end_date if recurring else None,
            parent_shift_id=parent_shift_id,
        )

    @classmethod
    def from_shift(cls, shift: WorkShift) -> 'ShiftDraft':
        """Draft pre-filled from an existing shift, for editing."""
        return cls(
            job_id=shift.job_id,
            date=shift.date,
            start_time=shift.start_time,
            end_time=shift.end_time,
            break_duration=shift.break_duration,
            shift_type=shift.shift_type,
            notes=shift.notes,
            is_paid=shift.is_paid,
            use_custom_rate=shift.hourly_rate_override is not None,
            hourly_rate_override=shift.hourly_rate_override,
            is_recurring=shift.is_recurring,
            recurrence_interval=shift.recurrence_interval,
            recurrence_end_date=shift.recurrence_end_date,
        )

    @classmethod
    def from_preset(cls, job: Job, preset: PresetShift, day: dt.date) -> 'ShiftDraft':
        """Draft for a job on a given day using one of its templates."""
        start, end = preset.apply_to(day)
        return cls(
            job_id=job.id,
            date=day,
            start_time=start,
            end_time=end,
            break_duration=preset.break_duration,
        )
