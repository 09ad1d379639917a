"""
Application services for finding shared bookable time.

Every participant's rules are expanded into date ranges, the ranges are
intersected across participants, and the busy ranges reported by a
calendar client are subtracted from the result. Any object that matches
`BusyCalendarProtocol` can serve as the calendar client.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Protocol, Sequence

from pendulum import DateTime

from ..domain.models import DateRange, ParticipantAvailability, ensure_window
from ..domain.range_builder import build_date_ranges
from ..domain.set_operations import intersect, subtract

logger = logging.getLogger(__name__)


class BusyCalendarProtocol(Protocol):
    """Protocol describing the calendar client behaviour needed by the service."""

    async def get_schedule(
        self,
        emails: List[str],
        start_time: DateTime,
        end_time: DateTime,
        timezone: str,
    ) -> Dict[str, List[DateRange]]:
        """Return busy time ranges per participant."""


class AvailabilityService:
    """
    Orchestrates range building, busy-time retrieval and set combination.

    Steps:
    1. Build every participant's ranges from their rules (concurrently)
    2. Intersect them into the time everyone is available
    3. Subtract everyone's busy time
    4. Drop fragments shorter than the minimum duration
    """

    def __init__(self, calendar_client: BusyCalendarProtocol) -> None:
        self._calendar_client = calendar_client

    async def find_bookable_ranges(
        self,
        *,
        participants: Sequence[ParticipantAvailability],
        date_from: DateTime,
        date_to: DateTime,
        timezone: str,
        min_duration_minutes: int = 0,
    ) -> List[DateRange]:
        """
        Compute the ranges in which every participant can be booked.

        Args:
            participants: Rule sets of everyone who has to attend
            date_from: Start of the query window
            date_to: End of the query window
            timezone: Zone used to read busy times without an offset
            min_duration_minutes: Shortest range worth returning

        Raises:
            InvalidWindowError: If date_from is after date_to
        """
        ensure_window(date_from, date_to)

        if not participants:
            return []

        available = await self.build_participant_ranges(
            participants=participants,
            date_from=date_from,
            date_to=date_to,
        )
        common = intersect(list(available.values()))
        if not common:
            logger.info("No common availability for %d participant(s)", len(participants))
            return []

        emails = tuple(available)
        common = [date_range.with_meta(participants=emails) for date_range in common]

        busy_times = await self.fetch_busy_times(
            participants=emails,
            date_from=date_from,
            date_to=date_to,
            timezone=timezone,
        )
        busy = [busy_range for ranges in busy_times.values() for busy_range in ranges]

        bookable = [
            date_range
            for date_range in subtract(common, busy)
            if date_range.duration_minutes() >= min_duration_minutes
        ]
        logger.debug(
            "%d common range(s), %d busy range(s), %d bookable range(s)",
            len(common),
            len(busy),
            len(bookable),
        )
        return bookable

    async def build_participant_ranges(
        self,
        *,
        participants: Sequence[ParticipantAvailability],
        date_from: DateTime,
        date_to: DateTime,
    ) -> Dict[str, List[DateRange]]:
        """
        Build every participant's ranges, each in its own worker thread.

        Ranges are tagged with the participant's email.
        """
        results = await asyncio.gather(
            *(
                asyncio.to_thread(
                    build_date_ranges,
                    participant.rules,
                    participant.timezone,
                    date_from,
                    date_to,
                )
                for participant in participants
            )
        )

        return {
            participant.email: [date_range.with_meta(participant=participant.email) for date_range in ranges]
            for participant, ranges in zip(participants, results)
        }

    async def fetch_busy_times(
        self,
        *,
        participants: Sequence[str],
        date_from: DateTime,
        date_to: DateTime,
        timezone: str,
    ) -> Dict[str, List[DateRange]]:
        """
        Ask the calendar client for busy ranges inside the query window.

        The result holds an entry for every requested email, followed by any
        extra entries the client reported.
        """
        emails = list(participants)
        reported = await self._calendar_client.get_schedule(
            emails=emails,
            start_time=date_from,
            end_time=date_to,
            timezone=timezone,
        )
        return self._ensure_busy_time_entries(emails, reported)

    @staticmethod
    def _ensure_busy_time_entries(
        emails: Sequence[str],
        reported: Dict[str, List[DateRange]],
    ) -> Dict[str, List[DateRange]]:
        # A participant without busy events may be missing from the client's map
        busy_times = {email: list(reported.get(email, [])) for email in emails}
        for email, ranges in reported.items():
            busy_times.setdefault(email, ranges)
        return busy_times


class NoBusyCalendar:
    """Calendar client for runs without busy-time data."""

    async def get_schedule(self, emails, start_time, end_time, timezone):
        return {email: [] for email in emails}
