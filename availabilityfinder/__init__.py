"""
availabilityfinder - bookable time from working hours, date overrides and busy calendars.
"""

__version__ = "0.1.0"
