"""Tests for kill-time parsing in the operational timezone."""

import datetime

import pytest

from fieldboss.errors import InvalidTimeFormat
from fieldboss.timeutils import (
    FixedClock, current_kill_time, discord_timestamp, infer_meridiem, parse_kill_time, to_24_hour,
)

from conftest import MANILA, UTC, manila


def local(instant):
    return instant.astimezone(MANILA)


@pytest.mark.parametrize("text, hour, minute", [
    ("12:00 AM", 0, 0),
    ("12:00 PM", 12, 0),
    ("2:30 PM", 14, 30),
    ("10:15 AM", 10, 15),
    ("6:00 pm", 18, 0),
    ("11:59PM", 23, 59),
    ("1 AM", 1, 0),
    ("  7:05 am  ", 7, 5),
])
@pytest.mark.parametrize("now", [manila(2026, 3, 10, 3, 0), manila(2026, 3, 10, 15, 0), manila(2026, 3, 10, 23, 30)])
def test_explicit_marker_converts_regardless_of_current_time(text, hour, minute, now):
    result = local(parse_kill_time(text, FixedClock(now)))
    assert (result.hour, result.minute) == (hour, minute)


@pytest.mark.parametrize("text", ["", "   ", "13:00", "0:30", "12:60", "abc", "2:30 XM", "2:30:00", "123:00", "-1:00"])
def test_malformed_input_is_rejected(text, clock):
    with pytest.raises(InvalidTimeFormat):
        parse_kill_time(text, clock)


def test_result_is_stored_as_utc(clock):
    result = parse_kill_time("2:30 PM", clock)
    assert result.tzinfo == UTC
    assert result == datetime.datetime(2026, 3, 10, 6, 30, tzinfo=UTC)


def test_to_24_hour():
    assert to_24_hour(12, "AM") == 0
    assert to_24_hour(12, "PM") == 12
    assert to_24_hour(3, "PM") == 15
    assert to_24_hour(3, "AM") == 3


@pytest.mark.parametrize("hour, current_hour, expected", [
    (2, 15, "PM"),    # close to 3 PM
    (10, 15, "PM"),   # afternoon, evening hour
    (4, 15, "PM"),    # close to 3 PM
    (5, 20, "AM"),    # afternoon, early hour
    (8, 9, "AM"),     # close to 9 AM
    (3, 9, "AM"),     # morning, earlier hour
    (12, 9, "PM"),    # morning, beyond the close window
    (11, 1, "PM"),    # just past midnight, last evening
    (11, 0, "AM"),    # midnight counts as 12
])
def test_infer_meridiem(hour, current_hour, expected):
    assert infer_meridiem(hour, current_hour) == expected


def test_bare_time_close_to_now_stays_today(clock):
    # now is 3 PM
    assert local(parse_kill_time("2:30", clock)) == manila(2026, 3, 10, 14, 30)
    assert local(parse_kill_time("1", clock)) == manila(2026, 3, 10, 13, 0)


def test_exactly_two_hours_ahead_is_not_rolled_back(clock):
    assert local(parse_kill_time("5:00", clock)) == manila(2026, 3, 10, 17, 0)


def test_future_time_rolls_back_a_day(clock):
    # 10 PM and 11 PM are well ahead of 3 PM, so they were yesterday
    assert local(parse_kill_time("10", clock)) == manila(2026, 3, 9, 22, 0)
    assert local(parse_kill_time("11:45", clock)) == manila(2026, 3, 9, 23, 45)


def test_morning_report_of_last_evening():
    clock = FixedClock(manila(2026, 3, 10, 1, 0))
    assert local(parse_kill_time("11:00", clock)) == manila(2026, 3, 9, 23, 0)


def test_morning_report_of_noon_goes_to_yesterday():
    clock = FixedClock(manila(2026, 3, 10, 9, 0))
    assert local(parse_kill_time("12", clock)) == manila(2026, 3, 9, 12, 0)
    assert local(parse_kill_time("3", clock)) == manila(2026, 3, 10, 3, 0)


def test_explicit_future_time_rolls_back_across_month():
    clock = FixedClock(manila(2026, 3, 1, 8, 0))
    assert local(parse_kill_time("11:00 PM", clock)) == manila(2026, 2, 28, 23, 0)


def test_current_kill_time_is_now_in_whole_seconds():
    clock = FixedClock(datetime.datetime(2026, 3, 10, 7, 0, 12, 345678, tzinfo=UTC))
    assert current_kill_time(clock) == datetime.datetime(2026, 3, 10, 7, 0, 12, tzinfo=UTC)
    assert current_kill_time(clock).tzinfo == UTC


def test_discord_timestamp():
    instant = datetime.datetime(2026, 3, 10, 7, 0, tzinfo=UTC)
    assert discord_timestamp(instant) == f"<t:{int(instant.timestamp())}:F>"
    assert discord_timestamp(instant, "R").endswith(":R>")
