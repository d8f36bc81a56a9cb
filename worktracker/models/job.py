"""
Job Models

A Job is the employer-side context a shift is logged against: it carries
the default hourly rate and a list of preset shift templates.

Shifts reference jobs by id only. A job that is still referenced is never
removed, it is deactivated instead.
"""

from datetime import date, datetime, time, timedelta
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field


class PresetShift(BaseModel):
    """
    A reusable shift template ("Early", "Late", "Night").

    Only times of day are stored. Templates are never persisted as
    occurrences; they are applied to a concrete day when a shift is drafted.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Template name"
    )
    start_time: time = Field(..., description="Start time of day")
    end_time: time = Field(..., description="End time of day")
    break_duration: float = Field(
        default=0.0,
        ge=0,
        description="Unpaid break in hours"
    )

    def apply_to(self, day: date) -> tuple[datetime, datetime]:
        """Concrete start/end for a day; overnight templates end the next day."""
        start = datetime.combine(day, self.start_time)
        end = datetime.combine(day, self.end_time)
        if end < start:
            end += timedelta(days=1)
        return start, end

    @property
    def duration(self) -> float:
        """Paid hours of the template."""
        start, end = self.apply_to(date(2000, 1, 1))
        return (end - start).total_seconds() / 3600 - self.break_duration


class Job(BaseModel):
    """
    A job with its default hourly rate.

    The rate is the fallback for shifts without their own override.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Job name"
    )
    hourly_rate: float = Field(
        ...,
        gt=0,
        description="Default hourly rate"
    )
    color: str = Field(
        default="Blue",
        max_length=50,
        description="Color tag for visual identification"
    )
    is_active: bool = True
    preset_shifts: list[PresetShift] = Field(
        default_factory=list,
        description="Ordered preset shift templates"
    )

    def preset(self, preset_id: UUID) -> Optional[PresetShift]:
        for preset in self.preset_shifts:
            if preset.id == preset_id:
                return preset
        return None
