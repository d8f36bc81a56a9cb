"""
Tests for the shift recurrence engine.
"""

import pytest
from datetime import date, datetime, timedelta
from uuid import uuid4

from worktracker.models import RecurrenceInterval, RecurringUpdateOption, ShiftType
from worktracker.recurrence import (
    HARD_OCCURRENCE_LIMIT,
    RecurrenceError,
    SeriesIndex,
    add_months,
    apply_edit,
    delete_shift,
    expand,
    generate_occurrences,
    has_recurring_children,
    occurrence_date,
)


@pytest.fixture
def weekly_root(make_shift, job):
    return make_shift(
        job.id,
        date(2025, 1, 6),
        start=9,
        end=17,
        break_duration=0.5,
        is_recurring=True,
        recurrence_interval=RecurrenceInterval.WEEKLY,
        recurrence_end_date=date(2025, 1, 27),
        notes="Weekly",
    )


class TestDateStepping:
    """Tests for calendar stepping."""

    def test_add_months_clamps_day(self):
        """Test that Jan 31 plus one month lands on the last day of February."""
        assert add_months(date(2025, 1, 31), 1) == date(2025, 2, 28)
        assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)

    def test_add_months_crosses_year(self):
        """Test stepping past December."""
        assert add_months(date(2025, 11, 15), 3) == date(2026, 2, 15)
        assert add_months(date(2025, 3, 15), -3) == date(2024, 12, 15)

    def test_monthly_steps_anchor_on_base(self):
        """Test that a series from the 31st returns to the 31st."""
        base = date(2025, 1, 31)
        dates = [occurrence_date(base, RecurrenceInterval.MONTHLY, k) for k in range(1, 4)]
        assert dates == [date(2025, 2, 28), date(2025, 3, 31), date(2025, 4, 30)]

    def test_fixed_steps(self):
        """Test daily, weekly and biweekly steps."""
        base = date(2025, 1, 6)
        assert occurrence_date(base, RecurrenceInterval.DAILY, 3) == date(2025, 1, 9)
        assert occurrence_date(base, RecurrenceInterval.WEEKLY, 2) == date(2025, 1, 20)
        assert occurrence_date(base, RecurrenceInterval.BIWEEKLY, 1) == date(2025, 1, 20)

    def test_none_interval_does_not_step(self):
        """Test that NONE cannot be stepped."""
        with pytest.raises(RecurrenceError):
            occurrence_date(date(2025, 1, 6), RecurrenceInterval.NONE, 1)


class TestExpansion:
    """Tests for expand and generate_occurrences."""

    def test_weekly_example(self, weekly_root):
        """Test 2025-01-06 weekly to 2025-01-27 yields 3 children plus the base."""
        series = expand(weekly_root, RecurrenceInterval.WEEKLY, date(2025, 1, 27))
        assert len(series) == 4
        assert series[0] is weekly_root
        assert [s.date for s in series[1:]] == [
            date(2025, 1, 13),
            date(2025, 1, 20),
            date(2025, 1, 27),
        ]

    def test_occurrences_preserve_time_of_day(self, weekly_root):
        """Test that children are exactly 7 days apart at the same time."""
        children = generate_occurrences(weekly_root, RecurrenceInterval.WEEKLY, date(2025, 1, 27))
        previous = weekly_root
        for child in children:
            assert child.start_time - previous.start_time == timedelta(days=7)
            assert child.start_time.time() == weekly_root.start_time.time()
            assert child.end_time.time() == weekly_root.end_time.time()
            previous = child

    def test_occurrences_copy_series_fields(self, weekly_root):
        """Test that each child is a new shift pointing at the base."""
        children = generate_occurrences(weekly_root, RecurrenceInterval.WEEKLY, date(2025, 1, 27))
        ids = {child.id for child in children}
        assert len(ids) == 3
        assert weekly_root.id not in ids
        for child in children:
            assert child.parent_shift_id == weekly_root.id
            assert child.job_id == weekly_root.job_id
            assert child.break_duration == weekly_root.break_duration
            assert child.notes == "Weekly"
            assert child.is_recurring
            assert not child.is_series_root

    def test_end_date_before_base_yields_nothing(self, weekly_root):
        """Test that an end date before the base is not an error."""
        assert generate_occurrences(weekly_root, RecurrenceInterval.WEEKLY, date(2025, 1, 1)) == []
        assert expand(weekly_root, RecurrenceInterval.WEEKLY, date(2025, 1, 1)) == [weekly_root]

    def test_none_interval_returns_only_base(self, weekly_root):
        """Test that NONE is a no-op."""
        assert expand(weekly_root, RecurrenceInterval.NONE, None) == [weekly_root]

    def test_no_end_date_caps_occurrences(self, weekly_root):
        """Test the default cap of 51 generated occurrences."""
        children = generate_occurrences(weekly_root, RecurrenceInterval.WEEKLY, None)
        assert len(children) == 51

    def test_custom_cap(self, weekly_root):
        """Test a configured cap."""
        children = generate_occurrences(weekly_root, RecurrenceInterval.DAILY, None, max_occurrences=5)
        assert len(children) == 5

    def test_hard_limit_bounds_end_dated_series(self, weekly_root):
        """Test that a far end date cannot produce an unbounded series."""
        children = generate_occurrences(weekly_root, RecurrenceInterval.DAILY, date(2100, 1, 1))
        assert len(children) == HARD_OCCURRENCE_LIMIT

    def test_overnight_occurrence_keeps_span(self, make_shift, job):
        """Test that an overnight base produces overnight occurrences."""
        base = make_shift(job.id, date(2025, 1, 6), start=22, end=6)
        children = generate_occurrences(base, RecurrenceInterval.DAILY, date(2025, 1, 8))
        assert len(children) == 2
        assert all(child.duration == 8.0 for child in children)
        assert children[0].end_time == datetime(2025, 1, 8, 6, 0)


class TestSeriesIndex:
    """Tests for series lookup over the flat collection."""

    def test_series_for_member_returns_whole_series(self, weekly_root):
        """Test that any member finds the root and every sibling in order."""
        series = expand(weekly_root, RecurrenceInterval.WEEKLY, date(2025, 1, 27))
        shuffled = list(reversed(series))
        index = SeriesIndex(shuffled)
        assert [s.id for s in index.series_for(series[2])] == [s.id for s in series]

    def test_series_for_single_shift(self, make_shift, job):
        """Test that a standalone shift is its own series."""
        shift = make_shift(job.id, date(2025, 1, 6))
        assert SeriesIndex([shift]).series_for(shift) == [shift]

    def test_series_without_root(self, weekly_root):
        """Test that orphaned children still form a series."""
        series = expand(weekly_root, RecurrenceInterval.WEEKLY, date(2025, 1, 27))
        index = SeriesIndex(series[1:])
        assert len(index.series_for(series[1])) == 3

    def test_has_recurring_children(self, weekly_root):
        series = expand(weekly_root, RecurrenceInterval.WEEKLY, date(2025, 1, 27))
        assert has_recurring_children(series, weekly_root)
        assert not has_recurring_children(series, series[1])


class TestEdits:
    """Tests for apply_edit in each mode."""

    @pytest.fixture
    def series(self, weekly_root):
        return expand(weekly_root, RecurrenceInterval.WEEKLY, date(2025, 1, 27))

    def test_this_only_changes_one_shift(self, series):
        """Test that THIS_ONLY leaves siblings untouched."""
        target = series[1]
        updated = target.model_copy(update={"notes": "Swapped", "break_duration": 1.0})
        result = apply_edit(series, target.id, updated, RecurringUpdateOption.THIS_ONLY)

        assert result[1].notes == "Swapped"
        assert [s.notes for i, s in enumerate(result) if i != 1] == ["Weekly"] * 3

    def test_this_only_may_move_date(self, series):
        """Test that a single occurrence can be moved to another day."""
        target = series[1]
        moved = target.model_copy(update={
            "date": date(2025, 1, 14),
            "start_time": datetime(2025, 1, 14, 9, 0),
            "end_time": datetime(2025, 1, 14, 17, 0),
        })
        result = apply_edit(series, target.id, moved, RecurringUpdateOption.THIS_ONLY)
        assert result[1].date == date(2025, 1, 14)

    def test_this_and_future(self, series):
        """Test that later members take series fields and new times of day."""
        target = series[2]
        updated = target.model_copy(update={
            "start_time": datetime(2025, 1, 20, 10, 0),
            "end_time": datetime(2025, 1, 20, 19, 0),
            "shift_type": ShiftType.OVERTIME,
            "is_paid": True,
            "notes": "New hours",
        })
        result = apply_edit(series, target.id, updated, RecurringUpdateOption.THIS_AND_FUTURE)

        earlier = result[:2]
        later = result[2:]
        assert all(s.shift_type == ShiftType.REGULAR for s in earlier)
        assert all(s.start_time.hour == 9 for s in earlier)

        for shift in later:
            assert shift.shift_type == ShiftType.OVERTIME
            assert shift.is_paid
            assert shift.notes == "New hours"
            assert shift.start_time == datetime.combine(shift.date, datetime.min.time()).replace(hour=10)
            assert shift.end_time.hour == 19
        assert later[1].date == date(2025, 1, 27)

    def test_all_preserves_dates_and_times(self, series):
        """Test that ALL only changes the series-wide fields of siblings."""
        target = series[1]
        updated = target.model_copy(update={
            "start_time": datetime(2025, 1, 13, 12, 0),
            "end_time": datetime(2025, 1, 13, 20, 0),
            "hourly_rate_override": 15.0,
            "is_paid": True,
        })
        result = apply_edit(series, target.id, updated, RecurringUpdateOption.ALL)

        assert result[1].start_time.hour == 12
        for index in (0, 2, 3):
            assert result[index].hourly_rate_override == 15.0
            assert result[index].start_time.hour == 9
            assert result[index].date == series[index].date
            assert not result[index].is_paid

    def test_cascading_date_change_is_rejected(self, series):
        """Test that moving the target while cascading raises."""
        target = series[1]
        moved = target.model_copy(update={
            "date": date(2025, 1, 14),
            "start_time": datetime(2025, 1, 14, 9, 0),
            "end_time": datetime(2025, 1, 14, 17, 0),
        })
        with pytest.raises(RecurrenceError):
            apply_edit(series, target.id, moved, RecurringUpdateOption.ALL)

    def test_missing_target(self, series):
        """Test that editing a missing shift raises."""
        with pytest.raises(RecurrenceError):
            apply_edit(series, uuid4(), series[0], RecurringUpdateOption.THIS_ONLY)

    def test_edit_keeps_collection_order(self, series, make_shift, job):
        """Test that unrelated shifts stay where they were."""
        other = make_shift(job.id, date(2025, 1, 7))
        shifts = [other] + series
        result = apply_edit(shifts, series[0].id, series[0], RecurringUpdateOption.ALL)
        assert result[0] == other
        assert len(result) == len(shifts)


class TestDeletes:
    """Tests for delete_shift."""

    @pytest.fixture
    def series(self, weekly_root):
        return expand(weekly_root, RecurrenceInterval.WEEKLY, date(2025, 1, 27))

    def test_delete_root_with_flag_removes_series(self, series, make_shift, job):
        """Test that deleting a root with the flag removes everything."""
        other = make_shift(job.id, date(2025, 1, 7))
        result = delete_shift(series + [other], series[0].id, delete_future_series=True)
        assert result == [other]

    def test_delete_root_without_flag_removes_root_only(self, series):
        """Test that children survive when the flag is off."""
        result = delete_shift(series, series[0].id, delete_future_series=False)
        assert len(result) == 3

    def test_delete_child_with_flag_removes_only_child(self, series):
        """Test that the flag only matters on a root."""
        result = delete_shift(series, series[2].id, delete_future_series=True)
        assert [s.id for s in result] == [series[0].id, series[1].id, series[3].id]

    def test_delete_missing_is_noop(self, series):
        assert delete_shift(series, uuid4()) == series
