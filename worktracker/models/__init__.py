"""
Data Models Package

This package contains all Pydantic models used by the WorkTracker engine.
All data flowing through the system must conform to these schemas.
"""

from worktracker.models.job import Job, PresetShift
from worktracker.models.shift import (
    RecurrenceInterval,
    RecurringUpdateOption,
    ShiftDraft,
    ShiftType,
    WorkShift,
)
from worktracker.models.payroll import (
    PayFrequency,
    PayPeriod,
    PaySchedule,
    Payslip,
)
from worktracker.models.results import (
    MutationResult,
    ValidationIssue,
    ValidationResult,
)
from worktracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Job models
    "Job",
    "PresetShift",
    # Shift models
    "RecurrenceInterval",
    "RecurringUpdateOption",
    "ShiftDraft",
    "ShiftType",
    "WorkShift",
    # Payroll models
    "PayFrequency",
    "PayPeriod",
    "PaySchedule",
    "Payslip",
    # Results
    "MutationResult",
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
