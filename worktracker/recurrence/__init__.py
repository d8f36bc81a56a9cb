"""Recurring shift series: expansion, lookup, edit and delete."""

from worktracker.recurrence.engine import (
    DEFAULT_MAX_OCCURRENCES,
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
    series_for,
)

__all__ = [
    "DEFAULT_MAX_OCCURRENCES",
    "HARD_OCCURRENCE_LIMIT",
    "RecurrenceError",
    "SeriesIndex",
    "add_months",
    "apply_edit",
    "delete_shift",
    "expand",
    "generate_occurrences",
    "has_recurring_children",
    "occurrence_date",
    "series_for",
]
