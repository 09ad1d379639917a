"""
Interval-set algebra over date range lists.

This is the heart of combining availability - pure functions without any
external dependencies (no API calls, no database, no I/O).
"""

from dataclasses import replace
from typing import List, Optional, Sequence

from .models import DateRange


def _intersection(first: DateRange, second: DateRange) -> Optional[DateRange]:
    start = max(first.start, second.start)
    end = min(first.end, second.end)
    if start < end:
        return DateRange(start=start, end=end)
    return None


def intersect(range_lists: Sequence[Sequence[DateRange]]) -> List[DateRange]:
    """
    Calculate the time covered by every list simultaneously.

    Starts with the first list and intersects the running result with each
    subsequent list pairwise. Touching ranges do not produce a zero-length
    intersection.

    Example:
    A: [09:00-12:00]
    B: [10:00-13:00]
    Result: [10:00-12:00]
    """
    if not range_lists:
        return []

    common = list(range_lists[0])

    for ranges in range_lists[1:]:
        # Early exit if no common time
        if not common:
            return []

        intersections: List[DateRange] = []
        for common_range in common:
            for candidate in ranges:
                intersection = _intersection(common_range, candidate)
                if intersection is not None:
                    intersections.append(intersection)
        common = intersections

    return common


def subtract(source: Sequence[DateRange], excluded: Sequence[DateRange]) -> List[DateRange]:
    """
    Remove every excluded instant from the source ranges.

    Excluded ranges may arrive unsorted and overlapping. Each surviving
    fragment keeps its source range's metadata.

    Example:
    Source: 09:00 - 17:00
    Excluded: [10:00-11:00, 14:00-15:00]
    Result: [09:00-10:00, 11:00-14:00, 15:00-17:00]
    """
    fragments: List[DateRange] = []

    for source_range in source:
        overlapping = sorted(
            (busy for busy in excluded if busy.overlaps(source_range)),
            key=lambda busy: busy.start,
        )

        if not overlapping:
            fragments.append(source_range)
            continue

        current_start = source_range.start

        for busy in overlapping:
            if busy.start > current_start:
                fragments.append(replace(source_range, start=current_start, end=busy.start))
            current_start = max(current_start, busy.end)

        if source_range.end > current_start:
            fragments.append(replace(source_range, start=current_start, end=source_range.end))

    return fragments
