"""
Pay Reconciliation

Compares a payslip against the shifts logged for its period.

DESIGN DECISION: The comparison is ephemeral. It holds the payslip, the
shifts it was matched against and the job rate, and derives everything
else on access. Nothing about a comparison is ever persisted, so it always
reflects the current shifts.

Expected pay follows the same rule as the earnings calculator: a shift's
own override wins, otherwise the job rate, times the shift-type multiplier.
"""

from enum import Enum

from pydantic import BaseModel, Field

from worktracker.earnings import multiplier_for
from worktracker.models import Job, PayPeriod, Payslip, ShiftType, WorkShift


# Guards the accuracy ratio when nothing was expected
ACCURACY_EPSILON = 1e-6


class AccuracyGrade(str, Enum):
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


class ComparisonInsight(BaseModel):
    """One notable difference between a payslip and the logged shifts."""

    kind: str = Field(..., description="'hours' or 'pay'")
    title: str
    difference: float = Field(..., description="Signed actual - expected")
    message: str


def accuracy(actual: float, expected: float) -> float:
    """100 x (1 - |actual - expected| / max(expected, eps)), clamped to [0, 100]."""
    ratio = abs(actual - expected) / max(expected, ACCURACY_EPSILON)
    return min(max(100.0 * (1.0 - ratio), 0.0), 100.0)


def accuracy_grade(value: float, good: float = 95.0, fair: float = 85.0) -> AccuracyGrade:
    if value >= good:
        return AccuracyGrade.GOOD
    if value >= fair:
        return AccuracyGrade.FAIR
    return AccuracyGrade.POOR


def _shift_pay(shift: WorkShift, job_rate: float) -> float:
    rate = shift.hourly_rate_override if shift.hourly_rate_override is not None else job_rate
    return shift.duration * rate * multiplier_for(shift.shift_type)


class PayComparison(BaseModel):
    """
    A payslip set against the shifts it should pay for.

    Differences are always actual (payslip) minus expected (shifts):
    positive means the payslip shows more than was logged.
    """

    payslip: Payslip
    shifts: list[WorkShift] = Field(default_factory=list)
    job_rate: float = Field(..., ge=0)

    # -------------------------------------------------------------------------
    # Expected values
    # -------------------------------------------------------------------------

    def _hours_of(self, shift_type: ShiftType) -> float:
        return sum((s.duration for s in self.shifts if s.shift_type == shift_type), 0.0)

    def _pay_of(self, shift_type: ShiftType) -> float:
        return sum(
            (_shift_pay(s, self.job_rate) for s in self.shifts if s.shift_type == shift_type),
            0.0,
        )

    @property
    def expected_regular_hours(self) -> float:
        return self._hours_of(ShiftType.REGULAR)

    @property
    def expected_overtime_hours(self) -> float:
        return self._hours_of(ShiftType.OVERTIME)

    @property
    def expected_holiday_hours(self) -> float:
        return self._hours_of(ShiftType.HOLIDAY)

    @property
    def expected_total_hours(self) -> float:
        return self.expected_regular_hours + self.expected_overtime_hours + self.expected_holiday_hours

    @property
    def expected_regular_pay(self) -> float:
        return self._pay_of(ShiftType.REGULAR)

    @property
    def expected_overtime_pay(self) -> float:
        return self._pay_of(ShiftType.OVERTIME)

    @property
    def expected_holiday_pay(self) -> float:
        return self._pay_of(ShiftType.HOLIDAY)

    @property
    def expected_gross_pay(self) -> float:
        return self.expected_regular_pay + self.expected_overtime_pay + self.expected_holiday_pay

    # -------------------------------------------------------------------------
    # Differences
    # -------------------------------------------------------------------------

    @property
    def hours_difference(self) -> float:
        return self.payslip.total_hours - self.expected_total_hours

    @property
    def regular_hours_difference(self) -> float:
        return self.payslip.regular_hours - self.expected_regular_hours

    @property
    def overtime_hours_difference(self) -> float:
        return self.payslip.overtime_hours - self.expected_overtime_hours

    @property
    def holiday_hours_difference(self) -> float:
        return self.payslip.holiday_hours - self.expected_holiday_hours

    @property
    def gross_pay_difference(self) -> float:
        return self.payslip.gross_pay - self.expected_gross_pay

    @property
    def regular_pay_difference(self) -> float:
        return self.payslip.regular_pay - self.expected_regular_pay

    @property
    def overtime_pay_difference(self) -> float:
        return self.payslip.overtime_pay - self.expected_overtime_pay

    @property
    def holiday_pay_difference(self) -> float:
        return self.payslip.holiday_pay - self.expected_holiday_pay

    # -------------------------------------------------------------------------
    # Accuracy
    # -------------------------------------------------------------------------

    @property
    def hours_accuracy(self) -> float:
        return accuracy(self.payslip.total_hours, self.expected_total_hours)

    @property
    def pay_accuracy(self) -> float:
        return accuracy(self.payslip.gross_pay, self.expected_gross_pay)

    @property
    def overall_accuracy(self) -> float:
        return (self.hours_accuracy + self.pay_accuracy) / 2

    def grade(self, good: float = 95.0, fair: float = 85.0) -> AccuracyGrade:
        return accuracy_grade(self.overall_accuracy, good, fair)

    def insights(
        self,
        hours_threshold: float = 0.1,
        pay_threshold: float = 0.01,
    ) -> list[ComparisonInsight]:
        """Differences large enough to point out to the user."""
        found = []

        hours = self.hours_difference
        if abs(hours) > hours_threshold:
            found.append(ComparisonInsight(
                kind="hours",
                title="Hours Difference",
                difference=hours,
                message=(
                    f"Your payslip shows {abs(hours):.1f} "
                    f"{'more' if hours > 0 else 'fewer'} hours than logged"
                ),
            ))

        pay = self.gross_pay_difference
        if abs(pay) > pay_threshold:
            found.append(ComparisonInsight(
                kind="pay",
                title="Pay Difference",
                difference=pay,
                message=(
                    f"Your payslip shows {'more' if pay > 0 else 'less'} "
                    f"gross pay than expected ({pay:+.2f})"
                ),
            ))

        return found


# =============================================================================
# OPERATIONS
# =============================================================================

def shifts_for_payslip(shifts: list[WorkShift], payslip: Payslip) -> list[WorkShift]:
    """Shifts of the payslip's job dated within its period, inclusive."""
    return [
        shift for shift in shifts
        if shift.job_id == payslip.job_id and payslip.covers(shift.date)
    ]


def compare(payslip: Payslip, relevant_shifts: list[WorkShift], job_rate: float) -> PayComparison:
    """
    Build the comparison for a payslip.

    relevant_shifts is used as given; pre-filter with shifts_for_payslip.
    """
    return PayComparison(payslip=payslip, shifts=list(relevant_shifts), job_rate=job_rate)


def draft_payslip(period: PayPeriod, job: Job, shifts: list[WorkShift]) -> Payslip:
    """
    A payslip pre-filled with what the logged shifts say should be paid.

    Net pay starts out equal to the expected gross; the user adjusts it
    and the deductions from the real payslip.
    """
    draft = Payslip(
        job_id=job.id,
        pay_period_id=period.id,
        pay_date=period.pay_date,
        period_start_date=period.start_date,
        period_end_date=period.end_date,
    )
    expected = compare(draft, shifts_for_payslip(shifts, draft), job.hourly_rate)
    return draft.model_copy(update={
        "regular_hours": expected.expected_regular_hours,
        "overtime_hours": expected.expected_overtime_hours,
        "holiday_hours": expected.expected_holiday_hours,
        "regular_pay": expected.expected_regular_pay,
        "overtime_pay": expected.expected_overtime_pay,
        "holiday_pay": expected.expected_holiday_pay,
        "net_pay": expected.expected_gross_pay,
    })
