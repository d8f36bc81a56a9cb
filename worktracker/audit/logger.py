"""
Audit Logger

DESIGN DECISION: Every mutation and payroll workflow is logged.
This provides:
1. Complete traceability of what changed and why
2. Debugging capability when totals look wrong
3. User can see history of their edits

The audit logger:
- Always writes a structured local log line
- Optionally persists the event into the store's audit_log collection
- Gracefully handles failures (an audit problem never fails a mutation)
- Supports correlation IDs to trace related events
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from worktracker.models.audit import AuditEvent, AuditEventBuilder
from worktracker.services.storage import DataStore, StorageError


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. The DataStore audit_log collection (for persistence)
    """

    def __init__(
        self,
        store: Optional[DataStore] = None,
        limit: int = 500,
    ):
        """
        Initialize audit logger.

        Args:
            store: Store to persist events into.
                   If None, only logs locally.
            limit: Most recent events kept in the store.
        """
        self._store = store
        self._limit = limit
        self._logger = structlog.get_logger("worktracker.audit")

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        # Always log locally
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        # Persist to storage if available
        if self._store is not None and self._limit > 0:
            try:
                self._store.append_audit_event(event, self._limit)
            except StorageError as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        event = AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        )
        self.log(event)

    def recent_events(self, limit: int = 100) -> list[AuditEvent]:
        """Most recent persisted events, newest first."""
        if self._store is None or limit <= 0:
            return []
        events = self._store.load_audit_log()
        return list(reversed(events[-limit:]))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., adding a recurring
    shift). Pass it through all subsequent events.
    """
    return uuid4()
