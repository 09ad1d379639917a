"""
Domain layer - Pure date-range logic without I/O.
"""

from .models import (
    AvailabilityRule,
    DateOverrideRule,
    DateRange,
    ParticipantAvailability,
    TimeOfDay,
    WorkingHoursRule,
)
from .range_builder import build_date_ranges, group_by_date
from .rule_expander import expand_date_override, expand_working_hours
from .set_operations import intersect, subtract

__all__ = [
    "AvailabilityRule",
    "DateOverrideRule",
    "DateRange",
    "ParticipantAvailability",
    "TimeOfDay",
    "WorkingHoursRule",
    "build_date_ranges",
    "expand_date_override",
    "expand_working_hours",
    "group_by_date",
    "intersect",
    "subtract",
]
