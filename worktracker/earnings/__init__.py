"""Earnings, hours and chart series computed from shifts."""

from worktracker.earnings.calculator import (
    MULTIPLIERS,
    JobEarnings,
    JobLookup,
    earnings_by_job,
    effective_rate,
    index_jobs,
    multiplier_for,
    overlap_hours,
    overlap_proportion,
    proportional_earnings,
    proportional_hours,
    shift_earnings,
    shifts_between,
    total_earnings,
    total_hours,
)
from worktracker.earnings.windows import (
    ChartMetric,
    ChartPoint,
    TimeFilter,
    TimeWindow,
    WindowTotals,
    bucket_series,
    chart_buckets,
    resolve_window,
    window_totals,
)

__all__ = [
    # Rates
    "MULTIPLIERS",
    "JobLookup",
    "effective_rate",
    "index_jobs",
    "multiplier_for",
    "shift_earnings",
    # Aggregates
    "JobEarnings",
    "earnings_by_job",
    "shifts_between",
    "total_earnings",
    "total_hours",
    # Proportional attribution
    "overlap_hours",
    "overlap_proportion",
    "proportional_earnings",
    "proportional_hours",
    # Windows and charts
    "ChartMetric",
    "ChartPoint",
    "TimeFilter",
    "TimeWindow",
    "WindowTotals",
    "bucket_series",
    "chart_buckets",
    "resolve_window",
    "window_totals",
]
