"""
Busy-time calendar backed by a local JSON file.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List

import pendulum
from pendulum import DateTime

from ..domain.exceptions import CalendarDataError, InvalidRangeError
from ..domain.models import DateRange

logger = logging.getLogger(__name__)


class JsonBusyCalendar:
    """
    Calendar client that reads already-booked or blocked time from JSON.

    Expected file format: a list of events such as
    ``{"calendarId": "alice", "start": "2024-11-25T10:00:00", "end": "2024-11-25T11:00:00"}``.
    Times without an explicit offset are read in the requested timezone.
    """

    def __init__(self, data_file: Path, config=None):
        """
        Initialize the calendar.

        Args:
            data_file: Path to the JSON event list
            config: Optional AppConfig for calendar_id mapping

        Raises:
            CalendarDataError: If the file cannot be read or is not a list
        """
        self.data_file = data_file
        self.config = config
        self.calendar_events = self._load_calendar_data()

    def _load_calendar_data(self) -> List[Dict[str, Any]]:
        """Load calendar events from the JSON file."""
        try:
            with open(self.data_file, "r", encoding="utf-8") as f:
                events = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            raise CalendarDataError(f"Could not read busy calendar {self.data_file}: {exc}") from exc

        if not isinstance(events, list):
            raise CalendarDataError(f"Busy calendar {self.data_file} must contain a list of events.")

        logger.debug("Loaded %d busy event(s) from %s", len(events), self.data_file)
        return events

    def _get_calendar_id_for_email(self, email: str) -> str:
        """Map email to calendar_id using config."""
        if self.config:
            participant = self.config.find_participant_by_email(email)
            if participant and participant.calendar_id:
                return participant.calendar_id

        # Fallback: use email as calendar_id
        return email

    async def get_schedule(
        self,
        emails: List[str],
        start_time: DateTime,
        end_time: DateTime,
        timezone: str = "Europe/Berlin",
    ) -> Dict[str, List[DateRange]]:
        """
        Load busy times overlapping the window for each participant.

        Args:
            emails: List of participant email addresses
            start_time: Start of the time window
            end_time: End of the time window
            timezone: IANA timezone for times without an offset

        Returns:
            Dictionary mapping email -> list of busy DateRange objects
        """
        busy_times: Dict[str, List[DateRange]] = {}

        for email in emails:
            calendar_id = self._get_calendar_id_for_email(email)
            user_busy_times: List[DateRange] = []

            for event in self.calendar_events:
                if not isinstance(event, dict) or event.get("calendarId") != calendar_id:
                    continue

                try:
                    event_start = pendulum.parse(event["start"], tz=timezone)
                    event_end = pendulum.parse(event["end"], tz=timezone)
                    busy = DateRange(start=event_start, end=event_end, meta={"calendar_id": calendar_id})
                except (KeyError, ValueError, TypeError, InvalidRangeError) as exc:
                    logger.warning("Skipping invalid busy event %r: %s", event, exc)
                    continue

                # Check if event overlaps with requested time window
                if busy.start < end_time and busy.end > start_time:
                    user_busy_times.append(busy)

            busy_times[email] = user_busy_times

        return busy_times
