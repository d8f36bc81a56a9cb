"""
Payroll Models

Pay schedules describe when a job pays; pay periods are derived from them
on demand; payslips are what the employer actually paid.

DESIGN DECISION: PayPeriod is a value, never stored on its own.
It is regenerated from the schedule whenever it is needed, so changing a
schedule can never leave stale periods behind.
"""

from datetime import date
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator


class PayFrequency(str, Enum):
    """How often a job pays."""
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    CUSTOM = "custom"


class PaySchedule(BaseModel):
    """
    When a job pays.

    start_date anchors the first period; every later period follows on
    from the previous one without gaps.
    """

    id: UUID = Field(default_factory=uuid4)
    job_id: UUID
    frequency: PayFrequency
    start_date: date = Field(
        ...,
        description="First day of the first pay period"
    )
    custom_day_interval: Optional[int] = Field(
        default=None,
        ge=1,
        description="Period length in days for custom schedules"
    )
    is_active: bool = True

    @model_validator(mode='after')
    def validate_custom_interval(self) -> 'PaySchedule':
        """Custom schedules need their own period length."""
        if self.frequency == PayFrequency.CUSTOM and self.custom_day_interval is None:
            raise ValueError("Custom pay schedules require custom_day_interval")
        return self


class PayPeriod(BaseModel):
    """A contiguous date range associated with one expected payslip."""
    model_config = ConfigDict(frozen=True)

    pay_schedule_id: UUID
    start_date: date
    end_date: date
    pay_date: date

    @property
    def id(self) -> str:
        """Stable identity derived from the schedule and start date."""
        return f"{self.pay_schedule_id}:{self.start_date.isoformat()}"

    @property
    def length_days(self) -> int:
        return (self.end_date - self.start_date).days + 1

    def contains(self, day: date) -> bool:
        """Inclusive on both ends."""
        return self.start_date <= day <= self.end_date

    def overlaps(self, start: date, end: date) -> bool:
        return self.start_date <= end and start <= self.end_date


class Payslip(BaseModel):
    """
    A real payslip, as entered by the user.

    The net pay is taken as given. Whether it agrees with
    gross pay minus deductions is flagged by validation, never enforced.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    job_id: UUID
    pay_period_id: Optional[str] = Field(
        default=None,
        description="Id of the generated pay period this payslip was matched to"
    )
    pay_date: date
    period_start_date: date
    period_end_date: date

    # Hours by type
    regular_hours: float = Field(default=0.0, ge=0)
    overtime_hours: float = Field(default=0.0, ge=0)
    holiday_hours: float = Field(default=0.0, ge=0)

    # Gross pay breakdown
    regular_pay: float = Field(default=0.0, ge=0)
    overtime_pay: float = Field(default=0.0, ge=0)
    holiday_pay: float = Field(default=0.0, ge=0)
    bonuses: float = Field(default=0.0, ge=0)
    other_earnings: float = Field(default=0.0, ge=0)

    # Deductions
    tax_deductions: float = Field(default=0.0, ge=0)
    insurance_deductions: float = Field(default=0.0, ge=0)
    retirement_deductions: float = Field(default=0.0, ge=0)
    other_deductions: float = Field(default=0.0, ge=0)

    net_pay: float = 0.0
    notes: str = Field(default="", max_length=1000)

    @model_validator(mode='after')
    def validate_period(self) -> 'Payslip':
        if self.period_end_date < self.period_start_date:
            raise ValueError("Pay period end cannot be before start")
        return self

    @property
    def total_hours(self) -> float:
        return self.regular_hours + self.overtime_hours + self.holiday_hours

    @property
    def gross_pay(self) -> float:
        return (
            self.regular_pay
            + self.overtime_pay
            + self.holiday_pay
            + self.bonuses
            + self.other_earnings
        )

    @property
    def total_deductions(self) -> float:
        return (
            self.tax_deductions
            + self.insurance_deductions
            + self.retirement_deductions
            + self.other_deductions
        )

    @property
    def expected_net_pay(self) -> float:
        return self.gross_pay - self.total_deductions

    def is_consistent(self, tolerance: float = 0.01) -> bool:
        """Does net pay agree with gross pay minus deductions?"""
        return abs(self.net_pay - self.expected_net_pay) < tolerance

    def covers(self, day: date) -> bool:
        return self.period_start_date <= day <= self.period_end_date
