"""Calendar-bucket statistics for the weight log.

Entries are grouped into weeks, fortnights, months or bimonths. Each bucket
gets a mean, sample SD and confidence interval, and every bucket after the
first gets the change from the previous bucket's mean with its own interval
built from pooled standard errors. Empty buckets are never produced.
"""

from __future__ import annotations

import calendar
from datetime import date, timedelta
from typing import Iterable

from kcalfit.tracking.log import normalize_entries
from kcalfit.tracking.models import (
    ConfidenceLevel,
    Grouping,
    PeriodGroup,
    WeeklyStats,
    WeightEntry,
)
from kcalfit.tracking.stats import (
    confidence_interval,
    mean,
    pooled_standard_error,
    sample_sd,
)

# First Monday on or after the Unix epoch; fortnight pairs count from here
EPOCH_MONDAY = date(1970, 1, 5)


def start_of_week(day: date) -> date:
    """Monday of the week containing ``day`` (Sunday belongs to the prior week)."""
    return day - timedelta(days=day.weekday())


def _month_end(year: int, month: int) -> date:
    return date(year, month, calendar.monthrange(year, month)[1])


def group_info(day: date, grouping: Grouping) -> tuple[str, str, date, date]:
    """
    Locate the bucket a date falls into.

    Args:
        day: Date to bucket
        grouping: Bucket size

    Returns:
        Tuple of (key, label, start, end) with start/end inclusive
    """
    if grouping is Grouping.WEEK:
        start = start_of_week(day)
        end = start + timedelta(days=6)
        return start.isoformat(), start.isoformat(), start, end

    if grouping is Grouping.TWO_WEEKS:
        weeks_since_epoch = (start_of_week(day) - EPOCH_MONDAY).days // 7
        bucket_week = (weeks_since_epoch // 2) * 2
        start = EPOCH_MONDAY + timedelta(weeks=bucket_week)
        end = start + timedelta(days=13)
        return f"{start.isoformat()}_2w", f"{start.isoformat()} to {end.isoformat()}", start, end

    if grouping is Grouping.MONTH:
        start = date(day.year, day.month, 1)
        end = _month_end(day.year, day.month)
        return f"{day.year}-{day.month}", f"{day.year}-{day.month:02d}", start, end

    # Bimonths: Jan-Feb, Mar-Apr, ...
    first_month = ((day.month - 1) // 2) * 2 + 1
    start = date(day.year, first_month, 1)
    end = _month_end(day.year, first_month + 1)
    label = f"{day.year}-{first_month:02d} to {end.year}-{end.month:02d}"
    return f"{day.year}-{first_month - 1}", label, start, end


def group_entries(entries: Iterable[WeightEntry], grouping: Grouping) -> list[PeriodGroup]:
    """Bucket entries by calendar period, ordered by bucket start."""
    groups: dict[str, PeriodGroup] = {}

    for entry in normalize_entries(entries):
        key, label, start, end = group_info(entry.date, grouping)
        if key not in groups:
            groups[key] = PeriodGroup(key=key, label=label, start=start, end=end)
        groups[key].entries.append(entry)

    ordered = sorted(groups.values(), key=lambda g: g.start)
    for group in ordered:
        group.entries.sort(key=lambda e: e.date)
    return ordered


def summarize_periods(
    entries: Iterable[WeightEntry],
    grouping: Grouping = Grouping.WEEK,
    level: ConfidenceLevel = ConfidenceLevel.P95,
) -> list[WeeklyStats]:
    """
    Compute per-bucket weight statistics and bucket-over-bucket changes.

    Args:
        entries: Weight log (any order)
        grouping: Bucket size
        level: Confidence level for every interval

    Returns:
        One WeeklyStats per non-empty bucket, in start order
    """
    results: list[WeeklyStats] = []

    for group in group_entries(entries, grouping):
        weights = [e.weight for e in group.entries]
        n = len(weights)
        group_mean = mean(weights)
        sd = sample_sd(weights, group_mean) if n > 1 else 0.0
        stats = WeeklyStats(
            label=group.label,
            start=group.start,
            end=group.end,
            mean=group_mean,
            sd=sd,
            ci=confidence_interval(group_mean, sd, n, level),
            count=n,
        )

        if results:
            prev = results[-1]
            change = group_mean - prev.mean
            margin = level.z * pooled_standard_error(sd, n, prev.sd, prev.count)
            stats.change = change
            stats.change_ci = (change - margin, change + margin)

        results.append(stats)

    return results
