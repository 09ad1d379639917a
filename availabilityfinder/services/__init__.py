"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .availability import AvailabilityService, BusyCalendarProtocol, NoBusyCalendar

__all__ = ["AvailabilityService", "BusyCalendarProtocol", "NoBusyCalendar"]
