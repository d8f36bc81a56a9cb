"""Validation package."""

from worktracker.validation.validator import (
    ShiftValidator,
    get_user_friendly_summary,
    validate_payslip,
)

__all__ = [
    "ShiftValidator",
    "get_user_friendly_summary",
    "validate_payslip",
]
