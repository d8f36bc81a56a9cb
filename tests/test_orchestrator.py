"""
Integration tests for the WorkTracker orchestrator.

Every test runs against the in-memory backend.
"""

import pytest
from datetime import date, datetime, time
from uuid import uuid4

from worktracker.audit import AuditLogger
from worktracker.config import Settings, TrackerSettings
from worktracker.earnings import TimeFilter
from worktracker.models import (
    AuditEventType,
    Job,
    PayFrequency,
    PaySchedule,
    Payslip,
    PresetShift,
    RecurrenceInterval,
    RecurringUpdateOption,
    ShiftDraft,
    ShiftType,
)
from worktracker.orchestrator import (
    DEFAULT_JOB_NAME,
    WorkTracker,
    create_backend,
    create_tracker,
)
from worktracker.services.storage import (
    DataStore,
    InMemoryBackend,
    JsonFileBackend,
    StorageError,
)
from worktracker.services.transfer import export_data


class FlakyBackend(InMemoryBackend):
    """In-memory backend whose writes can be switched to fail, for all keys or one."""

    def __init__(self):
        super().__init__()
        self.fail = False
        self.failing_key = None

    def _check(self, key: str) -> None:
        if self.fail or key == self.failing_key:
            raise StorageError("disk full")

    def write(self, key: str, payload: str) -> None:
        self._check(key)
        super().write(key, payload)

    def remove(self, key: str) -> None:
        self._check(key)
        super().remove(key)


def _draft(job_id, day=date(2025, 1, 6), start=9, end=17, **extra) -> ShiftDraft:
    return ShiftDraft(
        job_id=job_id,
        date=day,
        start_time=datetime.combine(day, time(start)),
        end_time=datetime.combine(day, time(end)),
        **extra,
    )


def _weekly_draft(job_id) -> ShiftDraft:
    return _draft(
        job_id,
        break_duration=0.5,
        is_recurring=True,
        recurrence_interval=RecurrenceInterval.WEEKLY,
        recurrence_end_date=date(2025, 1, 27),
    )


def _audit_types(store):
    return [event.event_type for event in store.load_audit_log()]


class TestLoading:
    """Tests for loading state from the store."""

    def test_empty_store_gets_default_job(self, store):
        """Test that a fresh install has one job to log against."""
        tracker = WorkTracker(store)
        assert len(tracker.jobs) == 1
        assert tracker.jobs[0].name == DEFAULT_JOB_NAME
        assert tracker.jobs[0].hourly_rate == 10.0
        assert tracker.shifts == []
        assert tracker.theme_color == "Blue"

    def test_saved_empty_job_list_is_respected(self, store):
        store.save_jobs([])
        assert WorkTracker(store).jobs == []

    def test_loads_saved_data(self, tracker, job):
        assert tracker.jobs == [job]

    def test_corrupt_shifts_load_as_empty(self, store, backend, job):
        """Test that a bad document does not stop the tracker starting."""
        store.save_jobs([job])
        backend.write("saved_shifts", "garbage")
        assert WorkTracker(store).shifts == []

    def test_invalid_utf8_document_loads_as_empty(self, tmp_path, job):
        """Test that undecodable bytes on disk are recorded, not raised."""
        store = DataStore(JsonFileBackend(tmp_path))
        store.save_jobs([job])
        (tmp_path / "saved_shifts.json").write_bytes(b"\xff\xfe\x00garbage")

        tracker = WorkTracker(store, audit_logger=AuditLogger(store))

        assert tracker.shifts == []
        assert tracker.jobs == [job]
        errors = [e for e in store.load_audit_log() if e.event_type == AuditEventType.SYSTEM_ERROR]
        assert len(errors) == 1
        assert errors[0].details == {"key": "saved_shifts"}
        assert (tmp_path / "saved_shifts.json").read_bytes() == b"\xff\xfe\x00garbage"


class TestJobs:
    """Tests for job management."""

    def test_add_job(self, tracker, store):
        bar = Job(name="Bar", hourly_rate=15.0)
        result = tracker.add_job(bar)
        assert result.success
        assert result.affected_ids == [bar.id]
        assert store.load_jobs()[-1] == bar
        assert AuditEventType.JOB_ADDED in _audit_types(store)

    def test_add_duplicate_job_rejected(self, tracker, job):
        assert not tracker.add_job(job).success

    def test_update_job(self, tracker, job):
        result = tracker.update_job(job.model_copy(update={"hourly_rate": 14.0}))
        assert result.success
        assert tracker.get_job(job.id).hourly_rate == 14.0

    def test_update_unknown_job(self, tracker):
        assert not tracker.update_job(Job(name="Ghost", hourly_rate=1.0)).success

    def test_delete_unreferenced_job(self, tracker, job, store):
        result = tracker.delete_job(job.id)
        assert result.success
        assert tracker.jobs == []
        assert store.load_jobs() == []

    def test_delete_referenced_job_deactivates(self, tracker, job, store):
        """Test that a job with shifts is kept but made inactive."""
        tracker.add_shift(_draft(job.id))
        result = tracker.delete_job(job.id)

        assert result.success
        assert not tracker.get_job(job.id).is_active
        assert tracker.active_jobs() == []
        assert AuditEventType.JOB_DEACTIVATED in _audit_types(store)

    def test_apply_preset(self, store):
        preset = PresetShift(name="Night", start_time=time(22), end_time=time(6), break_duration=0.5)
        job = Job(name="Bar", hourly_rate=15.0, preset_shifts=[preset])
        store.save_jobs([job])
        tracker = WorkTracker(store)

        draft = tracker.apply_preset(job.id, preset.id, date(2025, 1, 6))
        assert draft.end_time == datetime(2025, 1, 7, 6, 0)
        assert tracker.add_shift(draft).success
        assert tracker.shifts[0].duration == 7.5

        assert tracker.apply_preset(job.id, uuid4(), date(2025, 1, 6)) is None


class TestShiftCreation:
    """Tests for add_shift."""

    def test_add_single_shift(self, tracker, job, store):
        result = tracker.add_shift(_draft(job.id))
        assert result.success
        assert len(result.affected_ids) == 1
        assert store.load_shifts() == tracker.shifts

    @pytest.mark.parametrize("changes", [
        {"job_id": None},
        {"end_time": datetime(2025, 1, 6, 9, 0)},
        {"use_custom_rate": True},
        {"use_custom_rate": True, "hourly_rate_override": 0.0},
        {"job_id": uuid4()},
    ])
    def test_invalid_drafts_are_rejected(self, tracker, job, store, changes):
        """Test that nothing is stored when validation fails."""
        draft = _draft(job.id).model_copy(update=changes)
        result = tracker.add_shift(draft)

        assert not result.success
        assert result.issues
        assert tracker.shifts == []
        assert store.load_shifts() is None
        assert AuditEventType.SHIFT_REJECTED in _audit_types(store)

    def test_recurring_shift_creates_series(self, tracker, job, store):
        """Test a weekly shift to the end date creates the base and three repeats."""
        result = tracker.add_shift(_weekly_draft(job.id))

        assert result.success
        assert len(result.affected_ids) == 4
        assert [s.date.day for s in tracker.shifts] == [6, 13, 20, 27]
        root = tracker.shifts[0]
        assert all(s.parent_shift_id == root.id for s in tracker.shifts[1:])
        assert AuditEventType.SERIES_GENERATED in _audit_types(store)

    def test_recurring_without_end_uses_configured_cap(self, store, job):
        store.save_jobs([job])
        tracker = WorkTracker(store, settings=TrackerSettings(max_recurrence_occurrences=3))
        draft = _weekly_draft(job.id).model_copy(update={"recurrence_end_date": None})
        assert len(tracker.add_shift(draft).affected_ids) == 4

    def test_warnings_do_not_block(self, tracker, job):
        """Test a long shift is saved with its warning attached."""
        result = tracker.add_shift(_draft(job.id, start=6, end=23))
        assert result.success
        assert [issue.issue_type for issue in result.issues] == ["unusually_long"]

    def test_correlation_id_is_shared(self, tracker, job, store):
        correlation_id = uuid4()
        tracker.add_shift(_weekly_draft(job.id), correlation_id=correlation_id)
        events = [e for e in store.load_audit_log() if e.correlation_id == correlation_id]
        assert {e.event_type for e in events} == {
            AuditEventType.SHIFT_ADDED,
            AuditEventType.SERIES_GENERATED,
        }


class TestShiftEditing:
    """Tests for update_shift and delete_shift."""

    @pytest.fixture
    def series(self, tracker, job):
        tracker.add_shift(_weekly_draft(job.id))
        return tracker.shifts

    def test_update_this_only(self, tracker, series):
        draft = ShiftDraft.from_shift(series[1])
        draft.notes = "Covered for Sam"
        result = tracker.update_shift(series[1].id, draft)

        assert result.affected_ids == [series[1].id]
        assert tracker.shifts[1].notes == "Covered for Sam"
        assert tracker.shifts[2].notes == ""

    def test_update_this_and_future(self, tracker, series):
        """Test later members move to the new times; earlier ones stay."""
        draft = ShiftDraft.from_shift(series[2])
        draft.start_time = datetime(2025, 1, 20, 10, 0)
        draft.end_time = datetime(2025, 1, 20, 19, 0)
        draft.shift_type = ShiftType.OVERTIME
        result = tracker.update_shift(series[2].id, draft, RecurringUpdateOption.THIS_AND_FUTURE)

        assert result.success
        assert result.affected_ids == [series[2].id, series[3].id]
        assert tracker.shifts[3].start_time == datetime(2025, 1, 27, 10, 0)
        assert tracker.shifts[3].shift_type == ShiftType.OVERTIME
        assert tracker.shifts[1].start_time == datetime(2025, 1, 13, 9, 0)

    def test_update_all(self, tracker, series):
        draft = ShiftDraft.from_shift(series[3])
        draft.use_custom_rate = True
        draft.hourly_rate_override = 20.0
        result = tracker.update_shift(series[3].id, draft, RecurringUpdateOption.ALL)

        assert len(result.affected_ids) == 4
        assert all(s.hourly_rate_override == 20.0 for s in tracker.shifts)

    def test_cascading_date_change_rejected(self, tracker, series, store):
        """Test that moving a shift while editing its series is refused."""
        draft = ShiftDraft.from_shift(series[1])
        draft.date = date(2025, 1, 14)
        draft.start_time = datetime(2025, 1, 14, 9, 0)
        draft.end_time = datetime(2025, 1, 14, 17, 0)
        result = tracker.update_shift(series[1].id, draft, RecurringUpdateOption.ALL)

        assert not result.success
        assert result.issues[0].issue_type == "cascade_date_change"
        assert tracker.shifts == series
        assert store.load_shifts() == series

    def test_update_invalid_draft_rejected(self, tracker, series):
        draft = ShiftDraft.from_shift(series[0])
        draft.break_duration = 12
        assert not tracker.update_shift(series[0].id, draft).success
        assert tracker.shifts == series

    def test_update_missing_shift(self, tracker, job):
        assert not tracker.update_shift(uuid4(), _draft(job.id)).success

    def test_delete_whole_series(self, tracker, series):
        """Test deleting the root with the flag removes every occurrence."""
        assert tracker.has_recurring_children(series[0].id)
        result = tracker.delete_shift(series[0].id, delete_future_series=True)
        assert len(result.affected_ids) == 4
        assert tracker.shifts == []

    def test_delete_single_occurrence(self, tracker, series):
        result = tracker.delete_shift(series[2].id, delete_future_series=True)
        assert result.affected_ids == [series[2].id]
        assert len(tracker.series_for(series[0].id)) == 3

    def test_delete_missing_shift(self, tracker):
        assert not tracker.delete_shift(uuid4()).success


class TestWriteThrough:
    """Tests that memory only changes after a successful write."""

    @pytest.fixture
    def flaky(self):
        return FlakyBackend()

    @pytest.fixture
    def flaky_tracker(self, flaky, job):
        store = DataStore(flaky)
        store.save_jobs([job])
        return WorkTracker(store, audit_logger=AuditLogger(store))

    def test_failed_shift_write_leaves_memory_untouched(self, flaky, flaky_tracker, job):
        flaky.fail = True
        result = flaky_tracker.add_shift(_draft(job.id))
        assert not result.success
        assert "disk full" in result.message
        assert flaky_tracker.shifts == []

    def test_failed_job_write(self, flaky, flaky_tracker, job):
        flaky.fail = True
        assert not flaky_tracker.delete_job(job.id).success
        assert flaky_tracker.jobs == [job]

    def test_failed_import_keeps_data(self, flaky, flaky_tracker, job):
        """Test an import that cannot be written changes nothing."""
        text = flaky_tracker.export_data()
        flaky.fail = True
        assert not flaky_tracker.import_data(text).success
        assert flaky_tracker.jobs == [job]

    def test_import_failing_on_shifts_restores_jobs(self, flaky, flaky_tracker, job, make_shift):
        """Test that jobs written before a failed shift write are put back."""
        shift = make_shift(job.id, date(2025, 1, 6))
        flaky_tracker.add_shift(_draft(job.id))
        stored_shifts = list(flaky_tracker.shifts)
        text = export_data([Job(name="Imported", hourly_rate=20.0)], [shift], "Red")

        flaky.failing_key = "saved_shifts"
        result = flaky_tracker.import_data(text)

        assert not result.success
        assert flaky_tracker.jobs == [job]
        assert flaky_tracker.shifts == stored_shifts
        assert flaky_tracker.theme_color == "Blue"
        reloaded = WorkTracker(DataStore(flaky))
        assert reloaded.jobs == [job]
        assert reloaded.shifts == stored_shifts
        assert reloaded.theme_color == "Blue"

    def test_reset_failing_on_shifts_restores_jobs(self, flaky, flaky_tracker, job):
        """Test that a reset never leaves shifts without their job."""
        flaky_tracker.add_shift(_draft(job.id))
        stored_shifts = list(flaky_tracker.shifts)

        flaky.failing_key = "saved_shifts"
        result = flaky_tracker.reset_all_data()

        assert not result.success
        assert flaky_tracker.jobs == [job]
        reloaded = WorkTracker(DataStore(flaky))
        assert reloaded.jobs == [job]
        assert reloaded.shifts == stored_shifts

    def test_recovers_after_failure(self, flaky, flaky_tracker, job):
        flaky.fail = True
        flaky_tracker.add_shift(_draft(job.id))
        flaky.fail = False
        assert flaky_tracker.add_shift(_draft(job.id)).success
        assert len(flaky_tracker.shifts) == 1


class TestReports:
    """Tests for report queries through the tracker."""

    def test_totals(self, tracker, job):
        tracker.add_shift(_draft(job.id, break_duration=0.5))
        tracker.add_shift(_draft(job.id, day=date(2025, 1, 7), shift_type=ShiftType.OVERTIME, break_duration=0.5))
        assert tracker.total_earnings(date(2025, 1, 1), date(2025, 1, 31)) == 93.75 + 140.625
        assert tracker.total_hours(date(2025, 1, 7), date(2025, 1, 7)) == 7.5
        assert tracker.earnings_by_job(date(2025, 1, 1), date(2025, 1, 31))[0].hours == 15.0

    def test_window_report_and_chart(self, tracker, job):
        tracker.add_shift(_draft(job.id))
        now = datetime(2025, 1, 8, 12, 0)
        report = tracker.window_report(TimeFilter.WEEK, now=now)
        assert report.earnings == 100.0
        chart = tracker.chart(TimeFilter.WEEK, now=now)
        assert len(chart) == 7
        assert chart[0].value == 100.0

    def test_summary(self, tracker, job):
        tracker.add_shift(_draft(job.id, start=18, end=22))
        summary = tracker.summary(datetime(2025, 1, 6, 12, 0))
        assert summary.today_hours == 4.0
        assert summary.next_upcoming_shift == tracker.shifts[0]


class TestPayroll:
    """Tests for pay schedules, payslips and comparisons."""

    @pytest.fixture
    def schedule(self, job):
        return PaySchedule(job_id=job.id, frequency=PayFrequency.BIWEEKLY, start_date=date(2025, 1, 1))

    @pytest.fixture
    def payslip(self, job):
        return Payslip(
            job_id=job.id,
            pay_date=date(2025, 1, 14),
            period_start_date=date(2025, 1, 1),
            period_end_date=date(2025, 1, 14),
            regular_hours=16,
            regular_pay=200.0,
            tax_deductions=20.0,
            net_pay=180.0,
        )

    def test_new_active_schedule_replaces_old(self, tracker, schedule, job):
        """Test only one schedule per job stays active."""
        tracker.save_pay_schedule(schedule)
        replacement = PaySchedule(job_id=job.id, frequency=PayFrequency.MONTHLY, start_date=date(2025, 2, 1))
        result = tracker.save_pay_schedule(replacement)

        assert result.affected_ids == [replacement.id, schedule.id]
        assert tracker.active_schedule(job.id) == replacement
        assert len(tracker.pay_schedules) == 2

    def test_saving_same_schedule_replaces_it(self, tracker, schedule):
        tracker.save_pay_schedule(schedule)
        tracker.save_pay_schedule(schedule.model_copy(update={"start_date": date(2025, 1, 6)}))
        assert len(tracker.pay_schedules) == 1
        assert tracker.pay_schedules[0].start_date == date(2025, 1, 6)

    def test_periods_through_tracker(self, tracker, schedule, job):
        tracker.save_pay_schedule(schedule)
        assert len(tracker.pay_periods(job.id, date(2025, 2, 1), date(2025, 2, 28))) == 2
        assert tracker.current_pay_period(job.id, date(2025, 1, 20)).start_date == date(2025, 1, 15)
        assert tracker.upcoming_pay_dates(job.id, date(2025, 1, 20), count=2) == [
            date(2025, 1, 28),
            date(2025, 2, 11),
        ]

    def test_no_schedule(self, tracker, job):
        assert tracker.pay_periods(job.id, date(2025, 1, 1), date(2025, 12, 31)) == []
        assert tracker.current_pay_period(job.id, date(2025, 1, 1)) is None

    def test_delete_schedule(self, tracker, schedule):
        tracker.save_pay_schedule(schedule)
        assert tracker.delete_pay_schedule(schedule.id).success
        assert not tracker.delete_pay_schedule(schedule.id).success

    def test_payslip_for_unknown_job_rejected(self, tracker, payslip):
        result = tracker.add_payslip(payslip.model_copy(update={"job_id": uuid4()}))
        assert not result.success
        assert tracker.payslips == []

    def test_inconsistent_payslip_saved_with_warning(self, tracker, payslip):
        result = tracker.add_payslip(payslip.model_copy(update={"net_pay": 150.0}))
        assert result.success
        assert result.issues[0].issue_type == "inconsistent"
        assert len(tracker.payslips) == 1

    def test_compare_payslip(self, tracker, payslip, job, store):
        """Test a matching payslip compares at 100% accuracy."""
        tracker.add_shift(_draft(job.id, day=date(2025, 1, 6)))
        tracker.add_shift(_draft(job.id, day=date(2025, 1, 7)))
        tracker.add_shift(_draft(job.id, day=date(2025, 1, 20)))
        tracker.add_payslip(payslip)

        comparison = tracker.compare_payslip(payslip.id)
        assert len(comparison.shifts) == 2
        assert comparison.overall_accuracy == 100.0
        assert tracker.payslip_insights(payslip.id) == []
        assert AuditEventType.PAY_COMPARISON_RUN in _audit_types(store)

    def test_payslip_insights(self, tracker, payslip, job):
        tracker.add_shift(_draft(job.id, day=date(2025, 1, 6)))
        tracker.add_payslip(payslip)
        insights = tracker.payslip_insights(payslip.id)
        assert [i.kind for i in insights] == ["hours", "pay"]

    def test_compare_missing_payslip(self, tracker):
        assert tracker.compare_payslip(uuid4()) is None
        assert tracker.payslip_insights(uuid4()) == []

    def test_update_and_delete_payslip(self, tracker, payslip):
        tracker.add_payslip(payslip)
        assert not tracker.add_payslip(payslip).success
        assert tracker.update_payslip(payslip.model_copy(update={"notes": "Checked"})).success
        assert tracker.get_payslip(payslip.id).notes == "Checked"
        assert tracker.delete_payslip(payslip.id).success
        assert tracker.payslips == []

    def test_draft_payslip(self, tracker, schedule, job):
        tracker.add_shift(_draft(job.id, day=date(2025, 1, 6)))
        tracker.save_pay_schedule(schedule)
        period = tracker.current_pay_period(job.id, date(2025, 1, 6))
        draft = tracker.draft_payslip(job.id, period)
        assert draft.regular_hours == 8.0
        assert draft.net_pay == 100.0
        assert tracker.draft_payslip(uuid4(), period) is None


class TestDataManagement:
    """Tests for export, import, reset and theme."""

    def test_export_import_into_fresh_tracker(self, tracker, job):
        tracker.add_shift(_weekly_draft(job.id))
        tracker.set_theme_color("Green")
        text = tracker.export_data()

        other = WorkTracker(DataStore(InMemoryBackend()))
        result = other.import_data(text)

        assert result.success
        assert other.jobs == tracker.jobs
        assert other.shifts == tracker.shifts
        assert other.theme_color == "Green"

    def test_import_invalid_document(self, tracker, job):
        result = tracker.import_data("{}{}")
        assert not result.success
        assert tracker.jobs == [job]

    def test_reset_restores_default_job(self, tracker, job, store):
        """Test reset removes jobs and shifts but keeps the theme."""
        tracker.add_shift(_draft(job.id))
        tracker.set_theme_color("Red")
        assert tracker.reset_all_data().success

        assert tracker.shifts == []
        assert [j.name for j in tracker.jobs] == [DEFAULT_JOB_NAME]
        assert tracker.theme_color == "Red"
        assert AuditEventType.DATA_RESET in _audit_types(store)

    def test_theme_color_persists(self, tracker, store):
        tracker.set_theme_color("Purple")
        assert WorkTracker(store).theme_color == "Purple"


class TestFactories:
    """Tests for create_backend and create_tracker."""

    def test_memory_backend(self, monkeypatch):
        monkeypatch.setenv("WORKTRACKER_STORAGE_BACKEND", "memory")
        assert isinstance(create_backend(Settings()), InMemoryBackend)

    def test_json_backend(self, monkeypatch, tmp_path):
        monkeypatch.setenv("WORKTRACKER_STORAGE_BACKEND", "json")
        monkeypatch.setenv("WORKTRACKER_STORAGE_DATA_DIR", str(tmp_path))
        backend = create_backend(Settings())
        assert isinstance(backend, JsonFileBackend)
        assert backend.data_dir == tmp_path

    def test_unconfigured_sheets_falls_back_to_json(self, monkeypatch, tmp_path):
        """Test that missing Google Sheets settings do not stop the app."""
        monkeypatch.setenv("WORKTRACKER_STORAGE_BACKEND", "google_sheets")
        monkeypatch.setenv("WORKTRACKER_STORAGE_DATA_DIR", str(tmp_path))
        monkeypatch.delenv("GOOGLE_SHEETS_CREDENTIALS_PATH", raising=False)
        monkeypatch.delenv("GOOGLE_SHEETS_SPREADSHEET_ID", raising=False)
        assert isinstance(create_backend(Settings()), JsonFileBackend)

    def test_create_tracker(self, monkeypatch):
        monkeypatch.setenv("WORKTRACKER_STORAGE_BACKEND", "memory")
        monkeypatch.setenv("WORKTRACKER_MAX_RECURRENCE_OCCURRENCES", "10")
        tracker = create_tracker(Settings())
        assert tracker.settings.max_recurrence_occurrences == 10
        assert [j.name for j in tracker.jobs] == [DEFAULT_JOB_NAME]
