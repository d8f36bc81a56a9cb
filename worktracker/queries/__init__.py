"""Read-only reporting queries."""

from worktracker.queries.reporting import ReportingSnapshot, SnapshotSummary

__all__ = ["ReportingSnapshot", "SnapshotSummary"]
