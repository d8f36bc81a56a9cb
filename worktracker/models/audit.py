"""
Audit Models for WorkTracker

Every mutation and payroll workflow is logged for audit purposes.
This provides:
1. Traceability of every change to jobs, shifts and payslips
2. Debugging information when a number looks wrong
3. Ability to reconstruct what a recurring edit touched

DESIGN DECISION: Audit logs are append-only. We never modify them.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Jobs
    JOB_ADDED = "job_added"
    JOB_UPDATED = "job_updated"
    JOB_DELETED = "job_deleted"
    JOB_DEACTIVATED = "job_deactivated"

    # Shifts
    SHIFT_ADDED = "shift_added"
    SERIES_GENERATED = "series_generated"
    SHIFT_UPDATED = "shift_updated"
    SHIFT_DELETED = "shift_deleted"
    SHIFT_REJECTED = "shift_rejected"

    # Payroll
    PAY_SCHEDULE_SAVED = "pay_schedule_saved"
    PAY_SCHEDULE_DELETED = "pay_schedule_deleted"
    PAYSLIP_SAVED = "payslip_saved"
    PAYSLIP_DELETED = "payslip_deleted"
    PAY_COMPARISON_RUN = "pay_comparison_run"

    # Data management
    DATA_EXPORTED = "data_exported"
    DATA_IMPORTED = "data_imported"
    DATA_RESET = "data_reset"

    # System events
    STORAGE_WRITE_FAILED = "storage_write_failed"
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Every mutation creates at least one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.now,
        description="When the event occurred (host-local)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'job', 'shift', 'payslip')"
    )
    entity_id: Optional[UUID] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., a root and its generated series)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.shift_added(shift_id, job_id, correlation_id)
        event = AuditEventBuilder.series_generated(root_id, "weekly", 12, correlation_id)
    """

    @staticmethod
    def job_added(job_id: UUID, name: str, hourly_rate: float) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.JOB_ADDED,
            entity_type="job",
            entity_id=job_id,
            description=f"Job added: {name}",
            details={"name": name, "hourly_rate": hourly_rate},
        )

    @staticmethod
    def job_updated(job_id: UUID, name: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.JOB_UPDATED,
            entity_type="job",
            entity_id=job_id,
            description=f"Job updated: {name}",
        )

    @staticmethod
    def job_removed(job_id: UUID, name: str, deactivated: bool) -> AuditEvent:
        if deactivated:
            return AuditEvent(
                event_type=AuditEventType.JOB_DEACTIVATED,
                entity_type="job",
                entity_id=job_id,
                description=f"Job deactivated (still referenced by shifts): {name}",
            )
        return AuditEvent(
            event_type=AuditEventType.JOB_DELETED,
            entity_type="job",
            entity_id=job_id,
            description=f"Job deleted: {name}",
        )

    @staticmethod
    def shift_added(
        shift_id: UUID,
        job_id: UUID,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SHIFT_ADDED,
            entity_type="shift",
            entity_id=shift_id,
            correlation_id=correlation_id,
            description="Shift added",
            details={"job_id": str(job_id)},
        )

    @staticmethod
    def series_generated(
        root_id: UUID,
        interval: str,
        occurrences: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SERIES_GENERATED,
            entity_type="shift",
            entity_id=root_id,
            correlation_id=correlation_id,
            description=f"Generated {occurrences} {interval} occurrences",
            details={"interval": interval, "occurrences": occurrences},
        )

    @staticmethod
    def shift_updated(
        shift_id: UUID,
        mode: str,
        changed: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SHIFT_UPDATED,
            entity_type="shift",
            entity_id=shift_id,
            correlation_id=correlation_id,
            description=f"Shift updated ({mode}), {changed} shift(s) changed",
            details={"mode": mode, "changed": changed},
        )

    @staticmethod
    def shift_deleted(
        shift_id: UUID,
        removed: int,
        whole_series: bool,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SHIFT_DELETED,
            entity_type="shift",
            entity_id=shift_id,
            correlation_id=correlation_id,
            description=f"Deleted {removed} shift(s)",
            details={"removed": removed, "whole_series": whole_series},
        )

    @staticmethod
    def shift_rejected(
        issues: list[dict],
        correlation_id: UUID,
        shift_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SHIFT_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="shift",
            entity_id=shift_id,
            correlation_id=correlation_id,
            description=f"Shift rejected with {len(issues)} issue(s)",
            details={"issues": issues},
        )

    @staticmethod
    def pay_schedule_saved(schedule_id: UUID, job_id: UUID, frequency: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PAY_SCHEDULE_SAVED,
            entity_type="pay_schedule",
            entity_id=schedule_id,
            description=f"Pay schedule saved: {frequency}",
            details={"job_id": str(job_id), "frequency": frequency},
        )

    @staticmethod
    def pay_schedule_deleted(schedule_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PAY_SCHEDULE_DELETED,
            entity_type="pay_schedule",
            entity_id=schedule_id,
            description="Pay schedule deleted",
        )

    @staticmethod
    def payslip_saved(payslip_id: UUID, net_pay: float, warnings: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PAYSLIP_SAVED,
            severity=AuditSeverity.WARNING if warnings else AuditSeverity.INFO,
            entity_type="payslip",
            entity_id=payslip_id,
            description=f"Payslip saved: net {net_pay:.2f}",
            details={"net_pay": net_pay, "warnings": warnings},
        )

    @staticmethod
    def payslip_deleted(payslip_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PAYSLIP_DELETED,
            entity_type="payslip",
            entity_id=payslip_id,
            description="Payslip deleted",
        )

    @staticmethod
    def pay_comparison_run(
        payslip_id: UUID,
        shift_count: int,
        hours_accuracy: float,
        pay_accuracy: float,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PAY_COMPARISON_RUN,
            entity_type="payslip",
            entity_id=payslip_id,
            description=(
                f"Payslip compared against {shift_count} shift(s): "
                f"hours {hours_accuracy:.1f}%, pay {pay_accuracy:.1f}%"
            ),
            details={
                "shift_count": shift_count,
                "hours_accuracy": hours_accuracy,
                "pay_accuracy": pay_accuracy,
            },
        )

    @staticmethod
    def data_exported(jobs: int, shifts: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATA_EXPORTED,
            description=f"Exported {jobs} job(s) and {shifts} shift(s)",
            details={"jobs": jobs, "shifts": shifts},
        )

    @staticmethod
    def data_imported(jobs: int, shifts: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATA_IMPORTED,
            severity=AuditSeverity.WARNING,
            description=f"Imported {jobs} job(s) and {shifts} shift(s), replacing existing data",
            details={"jobs": jobs, "shifts": shifts},
        )

    @staticmethod
    def data_reset() -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATA_RESET,
            severity=AuditSeverity.WARNING,
            description="All jobs and shifts removed",
        )

    @staticmethod
    def storage_write_failed(key: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_WRITE_FAILED,
            severity=AuditSeverity.ERROR,
            description=f"Write-through failed for {key}",
            error_message=error_message,
            details={"key": key},
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
