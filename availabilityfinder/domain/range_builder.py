"""
Builds a participant's date ranges from their full availability rule set.
"""

import logging
from typing import Dict, Iterable, List, Optional, Sequence

from pendulum import DateTime

from .models import (
    AvailabilityRule,
    DateOverrideRule,
    DateRange,
    WorkingHoursRule,
    ensure_window,
)
from .rule_expander import expand_date_override, expand_working_hours

logger = logging.getLogger(__name__)

DATE_KEY_FORMAT = "YYYY-MM-DD"

# Overrides are stored as UTC-anchored dates; a local date near the window
# edge can sit one UTC day outside it.
OVERRIDE_PADDING_DAYS = 1


def group_by_date(
    ranges: Iterable[DateRange],
    timezone: Optional[str] = None,
) -> Dict[str, List[DateRange]]:
    """
    Group ranges by the calendar date of their start.

    Args:
        ranges: Ranges to group, in the order they should appear per day
        timezone: Zone whose calendar decides the date; defaults to the
            zone each range's start is expressed in

    Returns:
        Mapping of ``YYYY-MM-DD`` to the ranges starting on that date
    """
    grouped: Dict[str, List[DateRange]] = {}
    for date_range in ranges:
        start = date_range.start.in_timezone(timezone) if timezone else date_range.start
        grouped.setdefault(start.format(DATE_KEY_FORMAT), []).append(date_range)
    return grouped


def _clip(date_range: DateRange, date_from: DateTime, date_to: DateTime) -> Optional[DateRange]:
    start = max(date_range.start, date_from)
    end = min(date_range.end, date_to)
    if start >= end:
        return None
    if start == date_range.start and end == date_range.end:
        return date_range
    return DateRange(start=start, end=end, meta=date_range.meta)


def build_date_ranges(
    rules: Sequence[AvailabilityRule],
    timezone: str,
    date_from: DateTime,
    date_to: DateTime,
) -> List[DateRange]:
    """
    Expand a rule set into the non-empty ranges inside the query window.

    Algorithm:
    1. Split the rules into working hours and date overrides
    2. Expand working hours over the window, seen from ``timezone``
    3. Expand overrides whose date lies within the window padded by a day
    4. Group both by local date; an override date replaces the working
       hours of that date entirely
    5. Flatten by ascending date, dropping cancelled (zero-length) days

    Raises:
        InvalidWindowError: If date_from is after date_to
    """
    ensure_window(date_from, date_to)

    working_hours = [rule for rule in rules if isinstance(rule, WorkingHoursRule)]
    overrides = [rule for rule in rules if isinstance(rule, DateOverrideRule)]

    date_from_local = date_from.in_timezone(timezone)
    date_to_local = date_to.in_timezone(timezone)

    working_ranges: List[DateRange] = []
    for rule in working_hours:
        working_ranges.extend(expand_working_hours(rule, timezone, date_from_local, date_to))

    first_override_date = date_from.in_timezone("UTC").subtract(days=OVERRIDE_PADDING_DAYS).date()
    last_override_date = date_to.in_timezone("UTC").add(days=OVERRIDE_PADDING_DAYS).date()
    override_ranges = [
        expand_date_override(rule, timezone)
        for rule in overrides
        if first_override_date <= rule.date <= last_override_date
    ]

    merged = group_by_date(working_ranges, timezone)
    # Replace, never append: an override owns its whole date.
    merged.update(group_by_date(override_ranges, timezone))

    results: List[DateRange] = []
    for date_key in sorted(merged):
        for date_range in merged[date_key]:
            if date_range.is_degenerate:
                continue
            clipped = _clip(date_range, date_from_local, date_to_local)
            if clipped is not None:
                results.append(clipped)

    logger.debug(
        "Built %d range(s) from %d working-hours rule(s) and %d override(s) in %s",
        len(results),
        len(working_hours),
        len(override_ranges),
        timezone,
    )
    return results
