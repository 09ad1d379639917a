"""
Domain-specific exception hierarchy for the availability finder.
"""


class AvailabilityError(Exception):
    """Base class for all application-level errors."""


class InvalidTimeOfDayError(AvailabilityError, ValueError):
    """Raised when an hour or minute component is out of range."""


class InvalidRangeError(AvailabilityError, ValueError):
    """Raised when a date range would end before it starts."""


class InvalidWindowError(AvailabilityError, ValueError):
    """Raised when a query window starts after it ends."""


class InvalidRuleError(AvailabilityError, ValueError):
    """Raised when an availability rule is malformed."""


class CalendarDataError(AvailabilityError):
    """Raised when busy-time data cannot be loaded or parsed."""
