"""
Expansion of single availability rules into concrete date ranges.

Both expanders are pure functions of their arguments: the timezone and the
window are always passed in explicitly.
"""

from datetime import date, timedelta
from typing import Iterator

import pendulum
from pendulum import DateTime

from .models import DateOverrideRule, DateRange, TimeOfDay, WorkingHoursRule, weekday_of


def _at_wall_clock(day: date, time_of_day: TimeOfDay, timezone: str) -> DateTime:
    """
    Return the instant at which ``timezone`` reads ``time_of_day`` on ``day``.

    Each instant is built from the calendar date itself, so a DST change at
    local midnight does not carry over into the following days. A wall-clock
    time skipped by a spring-forward transition resolves to the instant just
    after the gap.
    """
    return pendulum.datetime(
        day.year, day.month, day.day,
        time_of_day.hour, time_of_day.minute,
        tz=timezone,
    )


def expand_working_hours(
    rule: WorkingHoursRule,
    timezone: str,
    date_from: DateTime,
    date_to: DateTime,
) -> Iterator[DateRange]:
    """
    Yield one range per matching local day between date_from and date_to.

    Days are stepped as calendar dates in ``timezone``, starting with the
    local date of date_from and stopping once a day's local midnight is no
    longer before date_to. Each range is clipped to the window; days whose
    range falls entirely before date_from are skipped.

    Calling the function again restarts the expansion.
    """
    window_start = date_from.in_timezone(timezone)
    window_end = date_to.in_timezone(timezone)

    day = window_start.date()
    while _at_wall_clock(day, TimeOfDay(0), timezone) < window_end:
        if weekday_of(day) in rule.days:
            start = max(_at_wall_clock(day, rule.start_time, timezone), window_start)
            end = min(_at_wall_clock(day, rule.end_time, timezone), window_end)
            if end >= start:
                yield DateRange(start=start, end=end)
        day += timedelta(days=1)


def expand_date_override(rule: DateOverrideRule, timezone: str) -> DateRange:
    """
    Turn a date override into its single range in ``timezone``.

    The override date is a plain calendar date; start and end are read as
    wall-clock times on that date. An end of 23:59 runs to local midnight
    of the following day. Equal start and end produce a degenerate range
    that cancels the date.
    """
    day = rule.date
    start = _at_wall_clock(day, rule.start_time, timezone)

    if rule.end_time.is_end_of_day:
        end = _at_wall_clock(day + timedelta(days=1), TimeOfDay(0), timezone)
    else:
        end = _at_wall_clock(day, rule.end_time, timezone)

    return DateRange(start=start, end=end)
