"""
Shift Recurrence Engine

Expands a base shift into a series of occurrences and applies edits and
deletes across an existing series.

DESIGN DECISION: Series are stored flat and generated eagerly. Every
occurrence is a real WorkShift in the collection, pointing at its root via
parent_shift_id. There is no "rule" object that materializes shifts on the
fly, so earnings and reconciliation never need to know about recurrence.

All functions here are pure: they take a list of shifts and return a new
list. Persisting the result is the orchestrator's job.
"""

import calendar
from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Optional
from uuid import UUID, uuid4

from worktracker.models import (
    RecurrenceInterval,
    RecurringUpdateOption,
    WorkShift,
)


DEFAULT_MAX_OCCURRENCES = 51
HARD_OCCURRENCE_LIMIT = 1000

_DAY_STEPS = {
    RecurrenceInterval.DAILY: 1,
    RecurrenceInterval.WEEKLY: 7,
    RecurrenceInterval.BIWEEKLY: 14,
}

# Fields every member of a series takes from an edit in ALL mode
SERIES_FIELDS = (
    "job_id",
    "break_duration",
    "shift_type",
    "hourly_rate_override",
    "notes",
)

# THIS_AND_FUTURE also carries the paid flag forward
FUTURE_FIELDS = SERIES_FIELDS + ("is_paid",)


class RecurrenceError(ValueError):
    """An edit or delete that cannot be applied to a series."""
    pass


# =============================================================================
# DATE STEPPING
# =============================================================================

def add_months(day: date, months: int) -> date:
    """Same day-of-month `months` later, clamped to the month's length."""
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def occurrence_date(base_date: date, interval: RecurrenceInterval, k: int) -> date:
    """
    Date of the k-th occurrence after base_date.

    Monthly steps are always computed from the base date, so a series
    starting on the 31st returns to the 31st whenever the month allows it.
    """
    if interval == RecurrenceInterval.MONTHLY:
        return add_months(base_date, k)
    if interval in _DAY_STEPS:
        return base_date + timedelta(days=_DAY_STEPS[interval] * k)
    raise RecurrenceError(f"Interval {interval.value!r} does not repeat")


# =============================================================================
# EXPANSION
# =============================================================================

def _occurrence(base: WorkShift, day: date) -> WorkShift:
    delta = day - base.date
    return base.model_copy(update={
        "id": uuid4(),
        "date": day,
        "start_time": base.start_time + delta,
        "end_time": base.end_time + delta,
        "parent_shift_id": base.id,
    })


def generate_occurrences(
    base: WorkShift,
    interval: RecurrenceInterval,
    end_date: Optional[date] = None,
    max_occurrences: int = DEFAULT_MAX_OCCURRENCES,
) -> list[WorkShift]:
    """
    Occurrences following the base shift, base excluded.

    Generation stops at the first date past end_date. Without an end date,
    at most max_occurrences are produced. HARD_OCCURRENCE_LIMIT bounds
    end-dated series.
    """
    if interval == RecurrenceInterval.NONE:
        return []
    if end_date is not None and end_date < base.date:
        return []

    limit = max_occurrences if end_date is None else HARD_OCCURRENCE_LIMIT
    limit = min(limit, HARD_OCCURRENCE_LIMIT)

    occurrences = []
    k = 1
    while len(occurrences) < limit:
        day = occurrence_date(base.date, interval, k)
        if end_date is not None and day > end_date:
            break
        occurrences.append(_occurrence(base, day))
        k += 1
    return occurrences


def expand(
    base: WorkShift,
    interval: RecurrenceInterval,
    end_date: Optional[date] = None,
    max_occurrences: int = DEFAULT_MAX_OCCURRENCES,
) -> list[WorkShift]:
    """The base shift followed by its generated occurrences."""
    return [base] + generate_occurrences(base, interval, end_date, max_occurrences)


# =============================================================================
# SERIES LOOKUP
# =============================================================================

class SeriesIndex:
    """
    Lookup over a flat shift collection.

    Built once per query; cheap enough to rebuild after every mutation.
    """

    def __init__(self, shifts: list[WorkShift]):
        self._by_id: dict[UUID, WorkShift] = {}
        self._children: dict[UUID, list[WorkShift]] = defaultdict(list)
        for shift in shifts:
            self._by_id[shift.id] = shift
            if shift.parent_shift_id is not None:
                self._children[shift.parent_shift_id].append(shift)

    def get(self, shift_id: UUID) -> Optional[WorkShift]:
        return self._by_id.get(shift_id)

    def children_of(self, root_id: UUID) -> list[WorkShift]:
        return sorted(self._children.get(root_id, []), key=_chronological)

    def series_for(self, shift: WorkShift) -> list[WorkShift]:
        """
        Root (when it still exists) plus every occurrence, in date order.

        A shift outside any series is its own one-member series.
        """
        series_id = shift.series_id
        if series_id is None:
            return [shift]
        members = list(self._children.get(series_id, []))
        root = self._by_id.get(series_id)
        if root is not None:
            members.append(root)
        return sorted(members, key=_chronological)


def _chronological(shift: WorkShift) -> tuple[date, datetime]:
    return shift.date, shift.start_time


def series_for(shifts: list[WorkShift], shift: WorkShift) -> list[WorkShift]:
    return SeriesIndex(shifts).series_for(shift)


def has_recurring_children(shifts: list[WorkShift], shift: WorkShift) -> bool:
    return any(s.parent_shift_id == shift.id for s in shifts)


# =============================================================================
# EDIT AND DELETE
# =============================================================================

def _cascade(
    member: WorkShift,
    updated: WorkShift,
    fields: tuple[str, ...],
    move_times: bool,
) -> WorkShift:
    changes = {name: getattr(updated, name) for name in fields}
    if move_times:
        start = datetime.combine(member.date, updated.start_time.time())
        changes["start_time"] = start
        changes["end_time"] = start + (updated.end_time - updated.start_time)
    return member.model_copy(update=changes)


def apply_edit(
    shifts: list[WorkShift],
    target_id: UUID,
    updated: WorkShift,
    mode: RecurringUpdateOption,
) -> list[WorkShift]:
    """
    Apply an edit to a shift and, depending on mode, to its series.

    THIS_ONLY:       the target is replaced by `updated`.
    THIS_AND_FUTURE: the target is replaced; later members (date on or after
                     the target's) take FUTURE_FIELDS and the new times of
                     day on their own dates.
    ALL:             the target is replaced; every other member takes
                     SERIES_FIELDS and keeps its own date and times.

    Raises:
        RecurrenceError: If the target does not exist, or a cascading edit
            also moves the target to another date.
    """
    index = SeriesIndex(shifts)
    target = index.get(target_id)
    if target is None:
        raise RecurrenceError(f"Shift not found: {target_id}")

    updated = updated.model_copy(update={"id": target.id})
    replacements: dict[UUID, WorkShift] = {target.id: updated}

    cascading = mode != RecurringUpdateOption.THIS_ONLY and target.series_id is not None
    if cascading:
        if updated.date != target.date:
            raise RecurrenceError(
                "Changing the date is only supported for a single occurrence"
            )
        for member in index.series_for(target):
            if member.id == target.id:
                continue
            if mode == RecurringUpdateOption.THIS_AND_FUTURE:
                if member.date >= target.date:
                    replacements[member.id] = _cascade(
                        member, updated, FUTURE_FIELDS, move_times=True
                    )
            else:
                replacements[member.id] = _cascade(
                    member, updated, SERIES_FIELDS, move_times=False
                )

    return [replacements.get(shift.id, shift) for shift in shifts]


def delete_shift(
    shifts: list[WorkShift],
    target_id: UUID,
    delete_future_series: bool = False,
) -> list[WorkShift]:
    """
    Remove a shift, or a whole series when the target is its root.

    Deleting a non-root member (or a root without the flag) removes only
    that shift; remaining occurrences keep their parent reference.
    """
    target = next((s for s in shifts if s.id == target_id), None)
    if target is None:
        return list(shifts)

    if delete_future_series and target.is_series_root:
        return [
            s for s in shifts
            if s.id != target.id and s.parent_shift_id != target.id
        ]
    return [s for s in shifts if s.id != target.id]
