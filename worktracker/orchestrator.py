"""
Main Orchestrator for WorkTracker

This module ties together all the components and is the single mutation
path for:
1. Jobs (add, edit, delete-or-deactivate)
2. Shifts (validate, create, expand into a series, cascade edits/deletes)
3. Payroll (schedules, payslips, comparisons)
4. Data management (export, import, reset)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Nothing is mutated if validation finds an error
- Every mutation is written through to the store immediately
- In-memory state only changes after the write succeeded
- Every step is audited

Rejections are returned as MutationResult, never raised.
"""

from datetime import date, datetime
from typing import Callable, Optional
from uuid import UUID

import structlog
from pydantic import ValidationError

from worktracker.audit import AuditLogger, create_correlation_id
from worktracker.config import Settings, StorageBackendType, TrackerSettings, get_settings
from worktracker.earnings import (
    ChartMetric,
    ChartPoint,
    JobEarnings,
    TimeFilter,
    WindowTotals,
    bucket_series,
    chart_buckets,
    earnings_by_job,
    index_jobs,
    resolve_window,
    total_earnings,
    total_hours,
    window_totals,
)
from worktracker.models import (
    AuditEventBuilder,
    Job,
    MutationResult,
    PayPeriod,
    PaySchedule,
    Payslip,
    RecurringUpdateOption,
    ShiftDraft,
    ValidationIssue,
    WorkShift,
)
from worktracker.payroll import (
    ComparisonInsight,
    PayComparison,
    active_schedule_for,
    compare,
    draft_payslip,
    period_containing,
    periods_in_range,
    shifts_for_payslip,
    upcoming_pay_dates,
)
from worktracker.queries import ReportingSnapshot, SnapshotSummary
from worktracker.recurrence import (
    RecurrenceError,
    SeriesIndex,
    apply_edit,
    delete_shift,
    generate_occurrences,
    has_recurring_children,
)
from worktracker.services.storage import (
    DataStore,
    GoogleSheetsBackend,
    GoogleSheetsClient,
    InMemoryBackend,
    JsonFileBackend,
    StorageBackend,
    StorageError,
)
from worktracker.services.transfer import export_data, parse_import
from worktracker.validation import (
    ShiftValidator,
    get_user_friendly_summary,
    validate_payslip,
)


logger = structlog.get_logger(__name__)

DEFAULT_JOB_NAME = "Main Job"
DEFAULT_JOB_RATE = 10.0


def _warnings_only(issues: list[ValidationIssue]) -> list[ValidationIssue]:
    return [issue for issue in issues if issue.severity != "error"]


class WorkTracker:
    """
    Holds the session's jobs, shifts and payroll data and mutates them.

    Flow for every mutation:
    1. Validate → reject with issues on any error
    2. Compute the new collection (pure engine functions)
    3. Write through → reject on StorageError, memory untouched
    4. Swap the new collection into memory
    5. Audit
    """

    def __init__(
        self,
        store: DataStore,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[TrackerSettings] = None,
    ):
        self._store = store
        self._audit_logger = audit_logger or AuditLogger()
        self._settings = settings or TrackerSettings()

        self._jobs: list[Job] = []
        self._shifts: list[WorkShift] = []
        self._pay_schedules: list[PaySchedule] = []
        self._payslips: list[Payslip] = []
        self._theme_color = self._settings.default_theme_color

        self.load()

    # =========================================================================
    # LOADING AND WRITE-THROUGH
    # =========================================================================

    def load(self) -> None:
        """
        Read every collection from the store, replacing what is in memory.

        A missing job collection yields a single default job, so there is
        always something to log shifts against. Documents that could not be
        decoded load as absent and are recorded as system errors.
        """
        jobs = self._store.load_jobs()
        if jobs is None:
            jobs = [Job(name=DEFAULT_JOB_NAME, hourly_rate=DEFAULT_JOB_RATE)]

        self._jobs = jobs
        self._shifts = self._store.load_shifts() or []
        self._pay_schedules = self._store.load_pay_schedules() or []
        self._payslips = self._store.load_payslips() or []
        self._theme_color = self._store.load_theme_color() or self._settings.default_theme_color

        for key, error in self._store.take_decode_failures():
            self._audit_logger.log_error(
                "collection_decode_failed", error, details={"key": key}
            )

        logger.info(
            "tracker_loaded",
            jobs=len(self._jobs),
            shifts=len(self._shifts),
            pay_schedules=len(self._pay_schedules),
            payslips=len(self._payslips),
        )

    def _write_through(
        self,
        collection: str,
        save: Callable[[list], None],
        items: list,
    ) -> Optional[str]:
        """
        Persist a collection, then swap it into memory.

        Returns an error message when the write failed; memory is untouched.
        """
        try:
            save(items)
        except StorageError as e:
            self._audit_logger.log(AuditEventBuilder.storage_write_failed(collection, str(e)))
            return str(e)
        setattr(self, f"_{collection}", items)
        return None

    def _save_jobs(self, jobs: list[Job]) -> Optional[str]:
        return self._write_through("jobs", self._store.save_jobs, jobs)

    def _save_shifts(self, shifts: list[WorkShift]) -> Optional[str]:
        return self._write_through("shifts", self._store.save_shifts, shifts)

    def _save_pay_schedules(self, schedules: list[PaySchedule]) -> Optional[str]:
        return self._write_through("pay_schedules", self._store.save_pay_schedules, schedules)

    def _save_payslips(self, payslips: list[Payslip]) -> Optional[str]:
        return self._write_through("payslips", self._store.save_payslips, payslips)

    # =========================================================================
    # READ ACCESS
    # =========================================================================

    @property
    def settings(self) -> TrackerSettings:
        return self._settings

    @property
    def jobs(self) -> list[Job]:
        return list(self._jobs)

    @property
    def shifts(self) -> list[WorkShift]:
        return list(self._shifts)

    @property
    def pay_schedules(self) -> list[PaySchedule]:
        return list(self._pay_schedules)

    @property
    def payslips(self) -> list[Payslip]:
        return list(self._payslips)

    @property
    def theme_color(self) -> str:
        return self._theme_color

    def _job_lookup(self) -> dict[UUID, Job]:
        return index_jobs(self._jobs)

    # =========================================================================
    # JOBS
    # =========================================================================

    def get_job(self, job_id: UUID) -> Optional[Job]:
        return next((job for job in self._jobs if job.id == job_id), None)

    def active_jobs(self) -> list[Job]:
        return [job for job in self._jobs if job.is_active]

    def add_job(self, job: Job) -> MutationResult:
        if self.get_job(job.id) is not None:
            return MutationResult.rejected(f"Job already exists: {job.id}")

        error = self._save_jobs(self._jobs + [job])
        if error:
            return MutationResult.rejected(f"Could not save job: {error}")

        self._audit_logger.log(AuditEventBuilder.job_added(job.id, job.name, job.hourly_rate))
        return MutationResult.ok(f"Added job {job.name}", affected_ids=[job.id])

    def update_job(self, job: Job) -> MutationResult:
        if self.get_job(job.id) is None:
            return MutationResult.rejected(f"Job not found: {job.id}")

        jobs = [job if existing.id == job.id else existing for existing in self._jobs]
        error = self._save_jobs(jobs)
        if error:
            return MutationResult.rejected(f"Could not save job: {error}")

        self._audit_logger.log(AuditEventBuilder.job_updated(job.id, job.name))
        return MutationResult.ok(f"Updated job {job.name}", affected_ids=[job.id])

    def delete_job(self, job_id: UUID) -> MutationResult:
        """
        Delete a job, or deactivate it while shifts still reference it.
        """
        job = self.get_job(job_id)
        if job is None:
            return MutationResult.rejected(f"Job not found: {job_id}")

        referenced = any(shift.job_id == job_id for shift in self._shifts)
        if referenced:
            deactivated = job.model_copy(update={"is_active": False})
            jobs = [deactivated if j.id == job_id else j for j in self._jobs]
            message = f"Deactivated job {job.name}; it still has shifts"
        else:
            jobs = [j for j in self._jobs if j.id != job_id]
            message = f"Deleted job {job.name}"

        error = self._save_jobs(jobs)
        if error:
            return MutationResult.rejected(f"Could not save jobs: {error}")

        self._audit_logger.log(AuditEventBuilder.job_removed(job_id, job.name, deactivated=referenced))
        return MutationResult.ok(message, affected_ids=[job_id])

    def apply_preset(self, job_id: UUID, preset_id: UUID, day: date) -> Optional[ShiftDraft]:
        """Draft a shift on `day` from one of a job's preset templates."""
        job = self.get_job(job_id)
        if job is None:
            return None
        preset = job.preset(preset_id)
        if preset is None:
            return None
        return ShiftDraft.from_preset(job, preset, day)

    # =========================================================================
    # SHIFTS
    # =========================================================================

    def get_shift(self, shift_id: UUID) -> Optional[WorkShift]:
        return next((shift for shift in self._shifts if shift.id == shift_id), None)

    def _reject_draft(
        self,
        issues: list[ValidationIssue],
        message: str,
        correlation_id: UUID,
        shift_id: Optional[UUID] = None,
    ) -> MutationResult:
        self._audit_logger.log(AuditEventBuilder.shift_rejected(
            issues=[issue.model_dump() for issue in issues],
            correlation_id=correlation_id,
            shift_id=shift_id,
        ))
        return MutationResult.rejected(message, issues=issues)

    def add_shift(
        self,
        draft: ShiftDraft,
        correlation_id: Optional[UUID] = None,
    ) -> MutationResult:
        """
        Validate a draft and create its shift.

        A recurring draft creates the root and all of its occurrences in
        one write.
        """
        correlation_id = correlation_id or create_correlation_id()

        result = ShiftValidator(self._job_lookup()).validate(draft)
        if result.has_errors:
            return self._reject_draft(
                result.issues, get_user_friendly_summary(result), correlation_id
            )

        base = draft.to_shift()
        occurrences = []
        if base.is_series_root:
            occurrences = generate_occurrences(
                base,
                base.recurrence_interval,
                base.recurrence_end_date,
                self._settings.max_recurrence_occurrences,
            )

        error = self._save_shifts(self._shifts + [base] + occurrences)
        if error:
            return MutationResult.rejected(f"Could not save shift: {error}", issues=result.issues)

        self._audit_logger.log(AuditEventBuilder.shift_added(base.id, base.job_id, correlation_id))
        if occurrences:
            self._audit_logger.log(AuditEventBuilder.series_generated(
                base.id, base.recurrence_interval.value, len(occurrences), correlation_id
            ))

        created = [base.id] + [shift.id for shift in occurrences]
        return MutationResult.ok(
            f"Added {len(created)} shift(s)",
            affected_ids=created,
            issues=_warnings_only(result.issues),
        )

    def update_shift(
        self,
        shift_id: UUID,
        draft: ShiftDraft,
        mode: RecurringUpdateOption = RecurringUpdateOption.THIS_ONLY,
        correlation_id: Optional[UUID] = None,
    ) -> MutationResult:
        """Edit a shift and, per mode, the rest of its series."""
        correlation_id = correlation_id or create_correlation_id()

        target = self.get_shift(shift_id)
        if target is None:
            return MutationResult.rejected(f"Shift not found: {shift_id}")

        result = ShiftValidator(self._job_lookup()).validate(draft)
        if result.has_errors:
            return self._reject_draft(
                result.issues, get_user_friendly_summary(result), correlation_id, shift_id
            )

        updated = draft.to_shift(shift_id=target.id, parent_shift_id=target.parent_shift_id)
        try:
            shifts = apply_edit(self._shifts, target.id, updated, mode)
        except RecurrenceError as e:
            issue = ValidationIssue(
                field="date",
                issue_type="cascade_date_change",
                message=str(e),
                severity="error",
                suggested_fix="Change the date with 'this shift only', then edit the series",
            )
            return self._reject_draft([issue], str(e), correlation_id, shift_id)

        changed = [new.id for new, old in zip(shifts, self._shifts) if new != old]
        error = self._save_shifts(shifts)
        if error:
            return MutationResult.rejected(f"Could not save shifts: {error}", issues=result.issues)

        self._audit_logger.log(AuditEventBuilder.shift_updated(
            shift_id, mode.value, len(changed), correlation_id
        ))
        return MutationResult.ok(
            f"Updated {len(changed)} shift(s)",
            affected_ids=changed,
            issues=_warnings_only(result.issues),
        )

    def delete_shift(
        self,
        shift_id: UUID,
        delete_future_series: bool = False,
        correlation_id: Optional[UUID] = None,
    ) -> MutationResult:
        correlation_id = correlation_id or create_correlation_id()

        if self.get_shift(shift_id) is None:
            return MutationResult.rejected(f"Shift not found: {shift_id}")

        remaining = delete_shift(self._shifts, shift_id, delete_future_series)
        kept = {shift.id for shift in remaining}
        removed = [shift.id for shift in self._shifts if shift.id not in kept]

        error = self._save_shifts(remaining)
        if error:
            return MutationResult.rejected(f"Could not save shifts: {error}")

        self._audit_logger.log(AuditEventBuilder.shift_deleted(
            shift_id, len(removed), len(removed) > 1, correlation_id
        ))
        return MutationResult.ok(f"Deleted {len(removed)} shift(s)", affected_ids=removed)

    def has_recurring_children(self, shift_id: UUID) -> bool:
        shift = self.get_shift(shift_id)
        if shift is None:
            return False
        return has_recurring_children(self._shifts, shift)

    def series_for(self, shift_id: UUID) -> list[WorkShift]:
        shift = self.get_shift(shift_id)
        if shift is None:
            return []
        return SeriesIndex(self._shifts).series_for(shift)

    # =========================================================================
    # REPORTS
    # =========================================================================

    def total_earnings(self, start: date, end: date, job_id: Optional[UUID] = None) -> float:
        return total_earnings(self._shifts, self._job_lookup(), start, end, job_id)

    def total_hours(self, start: date, end: date, job_id: Optional[UUID] = None) -> float:
        return total_hours(self._shifts, start, end, job_id)

    def earnings_by_job(self, start: date, end: date) -> list[JobEarnings]:
        return earnings_by_job(self._shifts, self._job_lookup(), start, end)

    def window_report(
        self,
        time_filter: TimeFilter,
        offset: int = 0,
        now: Optional[datetime] = None,
    ) -> WindowTotals:
        window = resolve_window(time_filter, offset, now)
        return window_totals(self._shifts, self._job_lookup(), window)

    def chart(
        self,
        time_filter: TimeFilter,
        offset: int = 0,
        now: Optional[datetime] = None,
        metric: ChartMetric = ChartMetric.EARNINGS,
    ) -> list[ChartPoint]:
        window = resolve_window(time_filter, offset, now)
        return bucket_series(
            self._shifts, self._job_lookup(), chart_buckets(window, time_filter), metric
        )

    def summary(self, now: Optional[datetime] = None) -> SnapshotSummary:
        """Today/week/month totals over the current in-memory data."""
        return ReportingSnapshot(self._jobs, self._shifts, self._theme_color).summary(now)

    # =========================================================================
    # PAYROLL
    # =========================================================================

    def save_pay_schedule(self, schedule: PaySchedule) -> MutationResult:
        """
        Insert or replace a schedule.

        Saving an active schedule deactivates every other active schedule
        of the same job.
        """
        schedules = []
        deactivated = []
        for existing in self._pay_schedules:
            if existing.id == schedule.id:
                continue
            if schedule.is_active and existing.is_active and existing.job_id == schedule.job_id:
                existing = existing.model_copy(update={"is_active": False})
                deactivated.append(existing.id)
            schedules.append(existing)
        schedules.append(schedule)

        error = self._save_pay_schedules(schedules)
        if error:
            return MutationResult.rejected(f"Could not save pay schedule: {error}")

        self._audit_logger.log(AuditEventBuilder.pay_schedule_saved(
            schedule.id, schedule.job_id, schedule.frequency.value
        ))
        return MutationResult.ok(
            "Saved pay schedule",
            affected_ids=[schedule.id] + deactivated,
        )

    def delete_pay_schedule(self, schedule_id: UUID) -> MutationResult:
        if not any(s.id == schedule_id for s in self._pay_schedules):
            return MutationResult.rejected(f"Pay schedule not found: {schedule_id}")

        error = self._save_pay_schedules([s for s in self._pay_schedules if s.id != schedule_id])
        if error:
            return MutationResult.rejected(f"Could not save pay schedules: {error}")

        self._audit_logger.log(AuditEventBuilder.pay_schedule_deleted(schedule_id))
        return MutationResult.ok("Deleted pay schedule", affected_ids=[schedule_id])

    def active_schedule(self, job_id: UUID) -> Optional[PaySchedule]:
        return active_schedule_for(self._pay_schedules, job_id)

    def pay_periods(
        self,
        job_id: UUID,
        start: date,
        end: date,
        include_partial: bool = False,
    ) -> list[PayPeriod]:
        schedule = self.active_schedule(job_id)
        if schedule is None:
            return []
        return periods_in_range(
            schedule, start, end, include_partial, self._settings.pay_date_policy
        )

    def current_pay_period(self, job_id: UUID, day: Optional[date] = None) -> Optional[PayPeriod]:
        schedule = self.active_schedule(job_id)
        if schedule is None:
            return None
        return period_containing(schedule, day or date.today(), self._settings.pay_date_policy)

    def upcoming_pay_dates(
        self,
        job_id: UUID,
        today: Optional[date] = None,
        count: int = 5,
    ) -> list[date]:
        schedule = self.active_schedule(job_id)
        if schedule is None:
            return []
        return upcoming_pay_dates(
            schedule, today or date.today(), count, self._settings.pay_date_policy
        )

    def get_payslip(self, payslip_id: UUID) -> Optional[Payslip]:
        return next((p for p in self._payslips if p.id == payslip_id), None)

    def _store_payslip(self, payslip: Payslip, payslips: list[Payslip]) -> MutationResult:
        if self.get_job(payslip.job_id) is None:
            return MutationResult.rejected(
                "Payslip job does not exist",
                issues=[ValidationIssue(
                    field="job_id",
                    issue_type="unknown_job",
                    message="Payslip job does not exist",
                    severity="error",
                )],
            )

        result = validate_payslip(payslip, self._settings.net_pay_tolerance)
        error = self._save_payslips(payslips)
        if error:
            return MutationResult.rejected(f"Could not save payslip: {error}")

        self._audit_logger.log(AuditEventBuilder.payslip_saved(
            payslip.id, payslip.net_pay, len(result.warnings)
        ))
        return MutationResult.ok("Saved payslip", affected_ids=[payslip.id], issues=result.issues)

    def add_payslip(self, payslip: Payslip) -> MutationResult:
        if self.get_payslip(payslip.id) is not None:
            return MutationResult.rejected(f"Payslip already exists: {payslip.id}")
        return self._store_payslip(payslip, self._payslips + [payslip])

    def update_payslip(self, payslip: Payslip) -> MutationResult:
        if self.get_payslip(payslip.id) is None:
            return MutationResult.rejected(f"Payslip not found: {payslip.id}")
        payslips = [payslip if p.id == payslip.id else p for p in self._payslips]
        return self._store_payslip(payslip, payslips)

    def delete_payslip(self, payslip_id: UUID) -> MutationResult:
        if self.get_payslip(payslip_id) is None:
            return MutationResult.rejected(f"Payslip not found: {payslip_id}")

        error = self._save_payslips([p for p in self._payslips if p.id != payslip_id])
        if error:
            return MutationResult.rejected(f"Could not save payslips: {error}")

        self._audit_logger.log(AuditEventBuilder.payslip_deleted(payslip_id))
        return MutationResult.ok("Deleted payslip", affected_ids=[payslip_id])

    def compare_payslip(self, payslip_id: UUID) -> Optional[PayComparison]:
        """Compare a stored payslip against the shifts logged for its period."""
        payslip = self.get_payslip(payslip_id)
        if payslip is None:
            return None

        job = self.get_job(payslip.job_id)
        comparison = compare(
            payslip,
            shifts_for_payslip(self._shifts, payslip),
            job.hourly_rate if job is not None else 0.0,
        )
        self._audit_logger.log(AuditEventBuilder.pay_comparison_run(
            payslip_id,
            len(comparison.shifts),
            comparison.hours_accuracy,
            comparison.pay_accuracy,
        ))
        return comparison

    def payslip_insights(self, payslip_id: UUID) -> list[ComparisonInsight]:
        comparison = self.compare_payslip(payslip_id)
        if comparison is None:
            return []
        return comparison.insights(
            self._settings.hours_insight_threshold,
            self._settings.pay_insight_threshold,
        )

    def draft_payslip(self, job_id: UUID, period: PayPeriod) -> Optional[Payslip]:
        job = self.get_job(job_id)
        if job is None:
            return None
        return draft_payslip(period, job, self._shifts)

    # =========================================================================
    # DATA MANAGEMENT
    # =========================================================================

    def export_data(self, now: Optional[datetime] = None) -> str:
        text = export_data(self._jobs, self._shifts, self._theme_color, now)
        self._audit_logger.log(AuditEventBuilder.data_exported(len(self._jobs), len(self._shifts)))
        return text

    def import_data(self, text: str) -> MutationResult:
        """
        Replace jobs, shifts and theme color with an exported document,
        then reload everything from the store.

        A failed write leaves both the store and memory as they were.
        """
        document = parse_import(text)
        if document is None:
            return MutationResult.rejected("The file is not a valid WorkTracker export")

        try:
            self._store.replace_all(document.jobs, document.shifts, document.theme_color)
        except StorageError as e:
            self._audit_logger.log(AuditEventBuilder.storage_write_failed("import", str(e)))
            return MutationResult.rejected(f"Import failed: {e}")

        self.load()
        self._audit_logger.log(AuditEventBuilder.data_imported(
            len(document.jobs), len(document.shifts)
        ))
        return MutationResult.ok(
            f"Imported {len(document.jobs)} job(s) and {len(document.shifts)} shift(s)",
            affected_ids=[job.id for job in document.jobs] + [s.id for s in document.shifts],
        )

    def reset_all_data(self) -> MutationResult:
        """Remove all jobs and shifts; the default job is recreated on reload."""
        try:
            self._store.reset_all_data()
        except StorageError as e:
            self._audit_logger.log(AuditEventBuilder.storage_write_failed("reset", str(e)))
            return MutationResult.rejected(f"Reset failed: {e}")

        self.load()
        self._audit_logger.log(AuditEventBuilder.data_reset())
        return MutationResult.ok("All jobs and shifts removed")

    def set_theme_color(self, color: str) -> MutationResult:
        try:
            self._store.save_theme_color(color)
        except StorageError as e:
            self._audit_logger.log(AuditEventBuilder.storage_write_failed("theme_color", str(e)))
            return MutationResult.rejected(f"Could not save theme color: {e}")
        self._theme_color = color
        return MutationResult.ok(f"Theme color set to {color}")


def create_backend(settings: Settings) -> StorageBackend:
    """
    Build the configured storage backend.

    A Google Sheets backend that is not configured falls back to JSON
    files, with a warning.
    """
    storage_settings = settings.storage

    if storage_settings.backend == StorageBackendType.MEMORY:
        return InMemoryBackend()

    if storage_settings.backend == StorageBackendType.GOOGLE_SHEETS:
        try:
            return GoogleSheetsBackend(GoogleSheetsClient(settings.google_sheets))
        except ValidationError as e:
            # Storage not configured - continue with local files
            logger.warning(
                "google_sheets_not_configured",
                error_count=e.error_count(),
                fallback=StorageBackendType.JSON.value,
            )

    return JsonFileBackend(storage_settings.data_dir)


def create_tracker(settings: Optional[Settings] = None) -> WorkTracker:
    """
    Factory function to create a fully wired tracker.

    Args:
        settings: Root settings. Defaults to get_settings().

    Returns:
        A loaded WorkTracker
    """
    settings = settings or get_settings()
    tracker_settings = settings.tracker

    store = DataStore(create_backend(settings))
    audit_logger = AuditLogger(store, limit=tracker_settings.audit_log_limit)

    return WorkTracker(store, audit_logger=audit_logger, settings=tracker_settings)
