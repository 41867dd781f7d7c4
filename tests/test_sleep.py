from __future__ import annotations

from datetime import datetime, time, timedelta
from zoneinfo import ZoneInfo

import pytest

from yaosleep.services import sleep
from yaosleep.services.sleep import InvalidWallClockTime, WallClockTime


def test_resolve_wake_up_next_day():
    now = datetime(2024, 5, 1, 22, 0)
    wake_up = sleep.resolve_wake_up(WallClockTime(7, 0), now)
    assert wake_up == datetime(2024, 5, 2, 7, 0)


def test_resolve_wake_up_same_day():
    now = datetime(2024, 5, 1, 6, 59)
    wake_up = sleep.resolve_wake_up(WallClockTime(7, 0), now)
    assert wake_up == datetime(2024, 5, 1, 7, 0)


def test_resolve_wake_up_equal_time_rolls_forward():
    """Если сейчас ровно время подъёма, берём следующий день"""
    now = datetime(2024, 5, 1, 7, 0)
    wake_up = sleep.resolve_wake_up(WallClockTime(7, 0), now)
    assert wake_up == datetime(2024, 5, 2, 7, 0)
    assert sleep.calculate_sleep_duration(wake_up, now) == sleep.SleepDuration(hours=24, minutes=0)


def test_resolve_wake_up_zeroes_seconds():
    now = datetime(2024, 5, 1, 5, 10, 42, 123456)
    wake_up = sleep.resolve_wake_up(WallClockTime(6, 30), now)
    assert wake_up == datetime(2024, 5, 1, 6, 30)


def test_resolve_wake_up_is_always_in_next_24_hours():
    nows = [
        datetime(2024, 12, 31, 23, 59, 59),
        datetime(2024, 2, 28, 12, 0),
        datetime(2024, 5, 1, 0, 0),
        datetime(2024, 5, 1, 7, 0, 0, 1),
    ]
    for now in nows:
        for hour in range(24):
            for minute in (0, 1, 30, 59):
                wake_up = sleep.resolve_wake_up(WallClockTime(hour, minute), now)
                assert now < wake_up <= now + timedelta(hours=24)
                assert (wake_up.hour, wake_up.minute, wake_up.second) == (hour, minute, 0)


def test_resolve_wake_up_keeps_timezone():
    tz = ZoneInfo("Europe/Moscow")
    now = datetime(2024, 5, 1, 23, 30, tzinfo=tz)
    wake_up = sleep.resolve_wake_up(WallClockTime(7, 15), now)
    assert wake_up.tzinfo is tz
    assert wake_up == datetime(2024, 5, 2, 7, 15, tzinfo=tz)


def test_sleep_duration_is_floored():
    now = datetime(2024, 5, 1, 22, 0, 30)
    duration = sleep.calculate_sleep_duration(datetime(2024, 5, 2, 7, 0), now)
    assert duration == sleep.SleepDuration(hours=8, minutes=59)
    assert duration.total_minutes == 539


def test_sleep_duration_never_negative():
    now = datetime(2024, 5, 1, 8, 0)
    duration = sleep.calculate_sleep_duration(datetime(2024, 5, 1, 7, 30), now)
    assert duration == sleep.SleepDuration(hours=0, minutes=0)


def test_sleep_duration_across_dst_uses_elapsed_time():
    tz = ZoneInfo("Europe/Berlin")
    now = datetime(2024, 3, 30, 23, 0, tzinfo=tz)
    wake_up = sleep.resolve_wake_up(WallClockTime(7, 0), now)
    # В ночь на 31 марта часы переводятся вперёд, поэтому спать на час меньше
    assert sleep.calculate_sleep_duration(wake_up, now) == sleep.SleepDuration(hours=7, minutes=0)


def test_recommendations_evening_example():
    now = datetime(2024, 5, 1, 22, 0)
    wake_up = sleep.resolve_wake_up(WallClockTime(7, 0), now)
    result = list(sleep.recommend_bedtimes(wake_up, now))
    assert [(item.cycles, item.bedtime) for item in result] == [
        (5, datetime(2024, 5, 1, 23, 15)),
        (4, datetime(2024, 5, 2, 0, 45)),
    ]
    assert [item.is_optimal for item in result] == [True, False]


def test_recommendations_all_candidates_in_future():
    now = datetime(2024, 5, 1, 20, 0)
    result = list(sleep.recommend_bedtimes(datetime(2024, 5, 2, 7, 0), now))
    assert [item.cycles for item in result] == [6, 5, 4]
    assert result[0].bedtime == datetime(2024, 5, 1, 21, 45)
    assert result[0].sleep_hours == 9.0


def test_recommendations_empty_when_everything_passed():
    now = datetime(2024, 5, 1, 6, 59)
    wake_up = sleep.resolve_wake_up(WallClockTime(7, 0), now)
    assert list(sleep.recommend_bedtimes(wake_up, now)) == []


def test_recommendation_bedtime_equal_to_now_is_excluded():
    now = datetime(2024, 5, 1, 23, 15)
    result = list(sleep.recommend_bedtimes(datetime(2024, 5, 2, 7, 0), now))
    assert [item.cycles for item in result] == [4]


def test_recommendations_are_restartable_and_pure():
    now = datetime(2024, 5, 1, 21, 0)
    recommendations = sleep.recommend_bedtimes(datetime(2024, 5, 2, 6, 30), now)
    first = list(recommendations)
    second = list(recommendations)
    assert first == second
    assert list(sleep.recommend_bedtimes(datetime(2024, 5, 2, 6, 30), now)) == first


def test_recommendations_sorted_descending():
    start = datetime(2024, 5, 1, 0, 0)
    for step in range(0, 24 * 60, 37):
        now = start + timedelta(minutes=step)
        wake_up = sleep.resolve_wake_up(WallClockTime(6, 45), now)
        cycles = [item.cycles for item in sleep.recommend_bedtimes(wake_up, now)]
        assert len(cycles) <= 3
        assert cycles == sorted(cycles, reverse=True)
        assert len(set(cycles)) == len(cycles)


def test_recommendations_across_dst_subtract_elapsed_time():
    tz = ZoneInfo("Europe/Berlin")
    now = datetime(2024, 3, 30, 23, 0, tzinfo=tz)
    wake_up = sleep.resolve_wake_up(WallClockTime(7, 0), now)
    result = list(sleep.recommend_bedtimes(wake_up, now))
    assert [item.cycles for item in result] == [4]
    assert result[0].bedtime.strftime("%H:%M") == "23:45"
    assert result[0].bedtime.tzinfo is tz


def test_recommendations_custom_cycle_length():
    now = datetime(2024, 5, 1, 20, 0)
    result = list(
        sleep.recommend_bedtimes(
            datetime(2024, 5, 2, 7, 0),
            now,
            cycle_length=timedelta(minutes=100),
            fall_asleep_buffer=timedelta(minutes=20),
        )
    )
    assert [item.bedtime.time() for item in result] == [time(20, 40), time(22, 20), time(0, 0)]
    assert result[-1].sleep_hours == pytest.approx(400 / 60)


@pytest.mark.parametrize(
    "hours, expected",
    [
        (0, sleep.COMMENT_CRITICAL),
        (3, sleep.COMMENT_CRITICAL),
        (4, sleep.COMMENT_SHORT),
        (5, sleep.COMMENT_SHORT),
        (6, sleep.COMMENT_MARGINAL),
        (7, sleep.COMMENT_GOOD),
        (8, sleep.COMMENT_EXCELLENT),
        (9, sleep.COMMENT_EXCESSIVE),
        (23, sleep.COMMENT_EXCESSIVE),
    ],
)
def test_sleep_comment_buckets(hours, expected):
    assert sleep.sleep_comment(hours) == expected


@pytest.mark.parametrize("hour, minute", [(24, 0), (-1, 0), (0, 60), (12, -5)])
def test_wall_clock_time_rejects_out_of_range(hour, minute):
    with pytest.raises(InvalidWallClockTime):
        WallClockTime(hour, minute)


def test_invalid_wall_clock_time_is_value_error():
    with pytest.raises(ValueError):
        WallClockTime(7, 75)


def test_wall_clock_time_shifted_wraps_midnight():
    assert WallClockTime(23, 50).shifted(15) == WallClockTime(0, 5)
    assert WallClockTime(0, 0).shifted(-60) == WallClockTime(23, 0)
    assert str(WallClockTime(7, 5)) == "07:05"
    assert WallClockTime.from_time(time(6, 30, 59)).to_time() == time(6, 30)


def test_minutes_to_time_wraps():
    assert sleep.minutes_to_time(25 * 60 + 10) == time(1, 10)
    assert sleep.minutes_to_time(-30) == time(23, 30)


def test_build_sleep_schedule_evening():
    now = datetime(2024, 5, 1, 22, 0)
    schedule = sleep.build_sleep_schedule(WallClockTime(7, 0), now)
    assert schedule.wake_up == datetime(2024, 5, 2, 7, 0)
    assert schedule.duration == sleep.SleepDuration(hours=9, minutes=0)
    assert schedule.comment == sleep.COMMENT_EXCESSIVE
    assert [item.cycles for item in schedule.recommendations] == [5, 4]


def test_build_sleep_schedule_just_before_wake_up():
    now = datetime(2024, 5, 1, 6, 59)
    schedule = sleep.build_sleep_schedule(WallClockTime(7, 0), now)
    assert schedule.duration == sleep.SleepDuration(hours=0, minutes=1)
    assert schedule.comment == sleep.COMMENT_CRITICAL
    assert schedule.recommendations == ()


def test_resolve_wake_up_on_fall_back_night_keeps_calendar_day():
    """Ночью перевода часов назад до того же времени на часах проходит больше суток"""
    tz = ZoneInfo("Europe/Berlin")
    now = datetime(2024, 10, 26, 7, 0, 30, tzinfo=tz)
    wake_up = sleep.resolve_wake_up(WallClockTime(7, 0), now)
    assert (wake_up.date(), wake_up.hour, wake_up.minute) == (datetime(2024, 10, 27).date(), 7, 0)
    assert sleep.calculate_sleep_duration(wake_up, now) == sleep.SleepDuration(hours=24, minutes=59)
