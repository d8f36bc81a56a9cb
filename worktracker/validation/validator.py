"""
Two-Stage Validation Pipeline

DESIGN DECISION: Validation happens in two distinct stages:

STAGE 1 - INPUT VALIDATION:
- A job is selected
- Duration is positive
- A custom rate, when enabled, is present and positive
- This catches incomplete or impossible form input

STAGE 2 - CONTEXT VALIDATION:
- The selected job exists
- Inactive jobs and odd recurrence settings are flagged
- This needs the current job collection

IMPORTANT: Validation NEVER silently fixes issues.
It reports them, and the orchestrator refuses to mutate on any error.
"""

from typing import Mapping, Optional
from uuid import UUID

from worktracker.models import (
    Job,
    Payslip,
    RecurrenceInterval,
    ShiftDraft,
    ValidationIssue,
    ValidationResult,
)


# Shifts longer than this are almost always a wrong AM/PM or date
LONG_SHIFT_HOURS = 16.0


class ShiftValidator:
    """
    Validates a ShiftDraft before it becomes a WorkShift.

    Stage 1: Input validation (needs nothing but the draft)
    Stage 2: Context validation (needs the job collection)
    """

    def __init__(self, jobs: Optional[Mapping[UUID, Job]] = None):
        """
        Initialize validator.

        Args:
            jobs: Current jobs by id. If None, context checks are skipped.
        """
        self._jobs = jobs

    def _validate_input(self, draft: ShiftDraft) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 1: Input validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        if draft.job_id is None:
            issues.append(ValidationIssue(
                field="job_id",
                issue_type="missing",
                message="No job selected",
                severity="error",
                suggested_fix="Pick the job this shift was worked for",
            ))

        if draft.duration <= 0:
            issues.append(ValidationIssue(
                field="duration",
                issue_type="non_positive",
                message=f"Shift duration must be positive (got {draft.duration:.2f} hours)",
                severity="error",
                suggested_fix="Check the start and end times and the break length",
            ))
        elif draft.duration > LONG_SHIFT_HOURS:
            issues.append(ValidationIssue(
                field="duration",
                issue_type="unusually_long",
                message=f"Shift is {draft.duration:.1f} hours long",
                severity="warning",
                suggested_fix="Make sure the end time is on the right day",
            ))

        if draft.use_custom_rate:
            if draft.hourly_rate_override is None:
                issues.append(ValidationIssue(
                    field="hourly_rate_override",
                    issue_type="missing",
                    message="Custom rate is enabled but no rate was entered",
                    severity="error",
                    suggested_fix="Enter a rate or turn off the custom rate",
                ))
            elif draft.hourly_rate_override <= 0:
                issues.append(ValidationIssue(
                    field="hourly_rate_override",
                    issue_type="non_positive",
                    message="Custom rate must be greater than zero",
                    severity="error",
                ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def _validate_context(self, draft: ShiftDraft) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 2: Context validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        if self._jobs is not None and draft.job_id is not None:
            job = self._jobs.get(draft.job_id)
            if job is None:
                issues.append(ValidationIssue(
                    field="job_id",
                    issue_type="unknown_job",
                    message="Selected job does not exist",
                    severity="error",
                ))
            elif not job.is_active:
                issues.append(ValidationIssue(
                    field="job_id",
                    issue_type="inactive_job",
                    message=f"Job '{job.name}' is inactive",
                    severity="warning",
                ))

        if draft.is_recurring and draft.recurrence_interval == RecurrenceInterval.NONE:
            issues.append(ValidationIssue(
                field="recurrence_interval",
                issue_type="missing",
                message="Recurring shift has no interval; only this shift will be created",
                severity="warning",
            ))

        if (
            draft.is_recurring
            and draft.recurrence_end_date is not None
            and draft.recurrence_end_date < draft.date
        ):
            issues.append(ValidationIssue(
                field="recurrence_end_date",
                issue_type="before_start",
                message="Repeat end date is before the shift date; no repeats will be created",
                severity="warning",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def validate(self, draft: ShiftDraft) -> ValidationResult:
        """
        Run the full two-stage pipeline.

        Stage 2 only runs when stage 1 passes.
        """
        input_valid, issues = self._validate_input(draft)
        if input_valid:
            _, context_issues = self._validate_context(draft)
            issues.extend(context_issues)
        return ValidationResult(issues=issues)


def validate_payslip(payslip: Payslip, tolerance: float = 0.01) -> ValidationResult:
    """
    Soft checks for an entered payslip.

    Nothing here blocks saving; the user may be copying a payslip that is
    itself inconsistent.
    """
    issues = []

    if not payslip.is_consistent(tolerance):
        issues.append(ValidationIssue(
            field="net_pay",
            issue_type="inconsistent",
            message=(
                f"Net pay {payslip.net_pay:.2f} does not match gross pay minus "
                f"deductions ({payslip.expected_net_pay:.2f})"
            ),
            severity="warning",
            suggested_fix="Double-check the deductions against the payslip",
        ))

    if payslip.pay_date < payslip.period_start_date:
        issues.append(ValidationIssue(
            field="pay_date",
            issue_type="before_period",
            message="Pay date is before the pay period starts",
            severity="warning",
        ))

    return ValidationResult(issues=issues)


def get_user_friendly_summary(result: ValidationResult) -> str:
    """
    One-paragraph summary of a validation result, for showing to the user.
    """
    if result.is_valid and not result.warnings:
        return "All checks passed."

    lines = []

    if result.has_errors:
        lines.append("Please fix the following:")
        for issue in result.issues:
            if issue.severity == "error":
                lines.append(f"  - {issue.message}")
                if issue.suggested_fix:
                    lines.append(f"    ({issue.suggested_fix})")

    if result.warnings:
        lines.append("Please verify the following:")
        for warning in result.warnings:
            lines.append(f"  - {warning}")

    return "\n".join(lines)
