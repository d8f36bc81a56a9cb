"""Pay periods and payslip reconciliation."""

from worktracker.payroll.schedule import (
    active_schedule_for,
    pay_date_for,
    period_at,
    period_containing,
    period_start,
    periods_in_range,
    upcoming_pay_dates,
)
from worktracker.payroll.reconciliation import (
    ACCURACY_EPSILON,
    AccuracyGrade,
    ComparisonInsight,
    PayComparison,
    accuracy,
    accuracy_grade,
    compare,
    draft_payslip,
    shifts_for_payslip,
)

__all__ = [
    # Schedule
    "active_schedule_for",
    "pay_date_for",
    "period_at",
    "period_containing",
    "period_start",
    "periods_in_range",
    "upcoming_pay_dates",
    # Reconciliation
    "ACCURACY_EPSILON",
    "AccuracyGrade",
    "ComparisonInsight",
    "PayComparison",
    "accuracy",
    "accuracy_grade",
    "compare",
    "draft_payslip",
    "shifts_for_payslip",
]
