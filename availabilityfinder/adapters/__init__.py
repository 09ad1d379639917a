"""
Adapters layer - External data sources for busy time.
"""

from .busy_calendar import JsonBusyCalendar

__all__ = ["JsonBusyCalendar"]
