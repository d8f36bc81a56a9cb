"""
Result Models

Structured outcomes returned to the caller instead of exceptions.

DESIGN DECISION: A rejected mutation is data, not a crash.
The caller always gets back a MutationResult that says what happened,
which records were touched, and why anything was refused.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'non_positive', 'inconsistent')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """
    Result of validating a draft before any mutation.

    Errors block the mutation; warnings are reported alongside a success.
    """

    validated_at: datetime = Field(
        default_factory=datetime.now
    )
    issues: list[ValidationIssue] = Field(
        default_factory=list,
        description="All validation issues found"
    )

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def warnings(self) -> list[str]:
        return [issue.message for issue in self.issues if issue.severity == "warning"]


class MutationResult(BaseModel):
    """Outcome of one add/update/delete through the orchestrator."""

    success: bool
    message: str = ""
    issues: list[ValidationIssue] = Field(default_factory=list)
    affected_ids: list[UUID] = Field(
        default_factory=list,
        description="Ids of records created, changed or removed"
    )

    @classmethod
    def rejected(
        cls,
        message: str,
        issues: Optional[list[ValidationIssue]] = None,
    ) -> 'MutationResult':
        return cls(success=False, message=message, issues=issues or [])

    @classmethod
    def ok(
        cls,
        message: str,
        affected_ids: Optional[list[UUID]] = None,
        issues: Optional[list[ValidationIssue]] = None,
    ) -> 'MutationResult':
        return cls(
            success=True,
            message=message,
            affected_ids=affected_ids or [],
            issues=issues or [],
        )
