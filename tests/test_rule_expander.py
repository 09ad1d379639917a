"""
Tests for expanding single rules into date ranges.
"""

from datetime import date

import pendulum

from availabilityfinder.domain.models import DateOverrideRule, DateRange, TimeOfDay, WorkingHoursRule
from availabilityfinder.domain.rule_expander import expand_date_override, expand_working_hours

BERLIN = "Europe/Berlin"
SANTIAGO = "America/Santiago"
EVERY_DAY = frozenset(range(7))
WEEKDAYS = frozenset({1, 2, 3, 4, 5})


def nine_to_five(days=WEEKDAYS) -> WorkingHoursRule:
    return WorkingHoursRule(days=days, start_time=TimeOfDay(9, 0), end_time=TimeOfDay(17, 0))


class TestExpandWorkingHours:
    """Tests for expand_working_hours."""

    def test_one_range_per_working_day(self):
        start = pendulum.parse("2024-11-25 00:00", tz=BERLIN)  # Monday
        end = pendulum.parse("2024-11-29 23:59", tz=BERLIN)    # Friday

        ranges = list(expand_working_hours(nine_to_five(), BERLIN, start, end))

        assert len(ranges) == 5
        assert ranges[0] == DateRange(
            start=pendulum.parse("2024-11-25 09:00", tz=BERLIN),
            end=pendulum.parse("2024-11-25 17:00", tz=BERLIN),
        )
        assert ranges[-1].start == pendulum.parse("2024-11-29 09:00", tz=BERLIN)
        assert [r.start for r in ranges] == sorted(r.start for r in ranges)

    def test_skips_days_not_in_rule(self):
        start = pendulum.parse("2024-11-22 00:00", tz=BERLIN)  # Friday
        end = pendulum.parse("2024-11-25 23:59", tz=BERLIN)    # Monday

        ranges = list(expand_working_hours(nine_to_five(), BERLIN, start, end))

        assert [r.start.format("YYYY-MM-DD") for r in ranges] == ["2024-11-22", "2024-11-25"]

    def test_weekday_is_observed_in_rule_timezone(self):
        """Monday in Auckland is still Sunday in UTC."""
        start = pendulum.parse("2024-11-24T12:00:00Z")  # Mon 01:00 in Auckland
        end = pendulum.parse("2024-11-25T12:00:00Z")    # Tue 01:00 in Auckland

        ranges = list(expand_working_hours(nine_to_five(days={1}), "Pacific/Auckland", start, end))

        assert len(ranges) == 1
        assert ranges[0].start == pendulum.parse("2024-11-24T20:00:00Z")
        assert ranges[0].start.timezone_name == "Pacific/Auckland"
        assert ranges[0].start.hour == 9

    def test_clipped_to_window(self):
        start = pendulum.parse("2024-11-25 10:30", tz=BERLIN)
        end = pendulum.parse("2024-11-25 12:00", tz=BERLIN)

        ranges = list(expand_working_hours(nine_to_five(), BERLIN, start, end))

        assert ranges == [DateRange(start=start, end=end)]

    def test_days_outside_window_are_discarded(self):
        start = pendulum.parse("2024-11-25 18:00", tz=BERLIN)
        end = pendulum.parse("2024-11-26 08:00", tz=BERLIN)

        assert list(expand_working_hours(nine_to_five(), BERLIN, start, end)) == []

    def test_spring_forward_keeps_wall_clock(self):
        """2024-03-31 02:00 jumps to 03:00 in Berlin."""
        start = pendulum.parse("2024-03-30 00:00", tz=BERLIN)
        end = pendulum.parse("2024-04-01 00:00", tz=BERLIN)

        ranges = list(expand_working_hours(nine_to_five(EVERY_DAY), BERLIN, start, end))

        assert len(ranges) == 2
        transition_day = ranges[1]
        assert transition_day.start == pendulum.datetime(2024, 3, 31, 9, tz=BERLIN)
        assert transition_day.end == pendulum.datetime(2024, 3, 31, 17, tz=BERLIN)
        assert (transition_day.start.hour, transition_day.end.hour) == (9, 17)
        assert transition_day.duration_minutes() == 480

    def test_fall_back_keeps_wall_clock(self):
        """2024-10-27 03:00 falls back to 02:00 in Berlin."""
        start = pendulum.parse("2024-10-26 00:00", tz=BERLIN)
        end = pendulum.parse("2024-10-28 00:00", tz=BERLIN)

        ranges = list(expand_working_hours(nine_to_five(EVERY_DAY), BERLIN, start, end))

        assert len(ranges) == 2
        for date_range in ranges:
            assert (date_range.start.hour, date_range.start.minute) == (9, 0)
            assert (date_range.end.hour, date_range.end.minute) == (17, 0)
        assert ranges[1].start == pendulum.datetime(2024, 10, 27, 9, tz=BERLIN)

    def test_spring_forward_in_new_york(self):
        tz = "America/New_York"
        start = pendulum.datetime(2024, 3, 10, tz=tz)
        end = pendulum.datetime(2024, 3, 11, tz=tz)

        ranges = list(expand_working_hours(nine_to_five(EVERY_DAY), tz, start, end))

        assert ranges == [
            DateRange(start=pendulum.parse("2024-03-10T13:00:00Z"), end=pendulum.parse("2024-03-10T21:00:00Z"))
        ]

    def test_range_spanning_the_transition(self):
        """Start before and end after the jump are each corrected on their own."""
        rule = WorkingHoursRule(days=EVERY_DAY, start_time=TimeOfDay(1, 0), end_time=TimeOfDay(5, 0))
        start = pendulum.datetime(2024, 3, 31, tz=BERLIN)
        end = pendulum.datetime(2024, 4, 1, tz=BERLIN)

        ranges = list(expand_working_hours(rule, BERLIN, start, end))

        assert len(ranges) == 1
        assert (ranges[0].start.hour, ranges[0].end.hour) == (1, 5)
        assert ranges[0].duration_minutes() == 180

    def test_window_given_in_other_timezone(self):
        start = pendulum.parse("2024-11-25T00:00:00Z")
        end = pendulum.parse("2024-11-26T00:00:00Z")

        ranges = list(expand_working_hours(nine_to_five(), BERLIN, start, end))

        assert len(ranges) == 1
        assert ranges[0].start == pendulum.parse("2024-11-25T08:00:00Z")
        assert ranges[0].end.timezone_name == BERLIN

    def test_midnight_spring_forward_keeps_wall_clock(self):
        """Santiago skips 2024-09-08 00:00; the day starts at 01:00."""
        start = pendulum.datetime(2024, 9, 6, tz=SANTIAGO)
        end = pendulum.datetime(2024, 9, 11, tz=SANTIAGO)

        ranges = list(expand_working_hours(nine_to_five(EVERY_DAY), SANTIAGO, start, end))

        assert [r.start.format("YYYY-MM-DD") for r in ranges] == [
            "2024-09-06", "2024-09-07", "2024-09-08", "2024-09-09", "2024-09-10",
        ]
        for date_range in ranges:
            assert (date_range.start.hour, date_range.start.minute) == (9, 0)
            assert (date_range.end.hour, date_range.end.minute) == (17, 0)
        assert ranges[1].start == pendulum.parse("2024-09-07T13:00:00Z")
        assert ranges[2].start == pendulum.parse("2024-09-08T12:00:00Z")
        assert ranges[4].end == pendulum.parse("2024-09-10T20:00:00Z")

    def test_midnight_fall_back_keeps_wall_clock(self):
        """Santiago falls back from 2024-04-07 00:00 to 2024-04-06 23:00."""
        start = pendulum.datetime(2024, 4, 5, tz=SANTIAGO)
        end = pendulum.datetime(2024, 4, 10, tz=SANTIAGO)

        ranges = list(expand_working_hours(nine_to_five(EVERY_DAY), SANTIAGO, start, end))

        assert len(ranges) == 5
        for date_range in ranges:
            assert (date_range.start.hour, date_range.start.minute) == (9, 0)
            assert (date_range.end.hour, date_range.end.minute) == (17, 0)
            assert date_range.duration_minutes() == 480
        assert ranges[1].start == pendulum.parse("2024-04-06T12:00:00Z")
        assert ranges[2].start == pendulum.parse("2024-04-07T13:00:00Z")
        assert ranges[3].start == pendulum.parse("2024-04-08T13:00:00Z")

    def test_expansion_is_lazy_and_restartable(self):
        start = pendulum.parse("2024-11-25 00:00", tz=BERLIN)
        end = pendulum.parse("2024-11-29 23:59", tz=BERLIN)

        expansion = expand_working_hours(nine_to_five(), BERLIN, start, end)

        assert next(expansion).start == pendulum.parse("2024-11-25 09:00", tz=BERLIN)
        assert len(list(expand_working_hours(nine_to_five(), BERLIN, start, end))) == 5


class TestExpandDateOverride:
    """Tests for expand_date_override."""

    def test_regular_override(self):
        rule = DateOverrideRule(date=date(2024, 11, 27), start_time=TimeOfDay(10), end_time=TimeOfDay(12))

        date_range = expand_date_override(rule, BERLIN)

        assert date_range.start == pendulum.datetime(2024, 11, 27, 10, tz=BERLIN)
        assert date_range.end == pendulum.datetime(2024, 11, 27, 12, tz=BERLIN)

    def test_end_of_day_sentinel_runs_to_next_midnight(self):
        rule = DateOverrideRule(date=date(2024, 6, 15), start_time=TimeOfDay(0), end_time=TimeOfDay(23, 59))

        date_range = expand_date_override(rule, BERLIN)

        assert date_range == DateRange(
            start=pendulum.datetime(2024, 6, 15, tz=BERLIN),
            end=pendulum.datetime(2024, 6, 16, tz=BERLIN),
        )

    def test_end_of_day_sentinel_on_dst_day(self):
        rule = DateOverrideRule(date=date(2024, 3, 31), start_time=TimeOfDay(0), end_time=TimeOfDay(23, 59))

        date_range = expand_date_override(rule, BERLIN)

        assert date_range.end == pendulum.datetime(2024, 4, 1, tz=BERLIN)
        assert date_range.duration_minutes() == 23 * 60

    def test_cancelled_day_is_degenerate(self):
        rule = DateOverrideRule(date=date(2024, 11, 27), start_time=TimeOfDay(0), end_time=TimeOfDay(0))

        date_range = expand_date_override(rule, BERLIN)

        assert date_range.is_degenerate
        assert date_range.start == pendulum.datetime(2024, 11, 27, tz=BERLIN)

    def test_wall_clock_in_override_timezone(self):
        rule = DateOverrideRule(date=date(2024, 11, 27), start_time=TimeOfDay(9, 30), end_time=TimeOfDay(11))

        date_range = expand_date_override(rule, "America/Los_Angeles")

        assert date_range.start == pendulum.parse("2024-11-27T17:30:00Z")
        assert date_range.end == pendulum.parse("2024-11-27T19:00:00Z")

    def test_override_on_midnight_spring_forward(self):
        rule = DateOverrideRule(date=date(2024, 9, 8), start_time=TimeOfDay(9), end_time=TimeOfDay(23, 59))

        date_range = expand_date_override(rule, SANTIAGO)

        assert date_range.start == pendulum.parse("2024-09-08T12:00:00Z")
        assert date_range.end == pendulum.parse("2024-09-09T03:00:00Z")
