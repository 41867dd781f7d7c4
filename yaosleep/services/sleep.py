from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone
from typing import Iterator

MINUTES_PER_DAY = 24 * 60

CYCLE_LENGTH = timedelta(minutes=90)
FALL_ASLEEP_BUFFER = timedelta(minutes=15)
CYCLE_COUNTS = (6, 5, 4)
OPTIMAL_CYCLES = frozenset({5, 6})

COMMENT_CRITICAL = "Ох... так совсем мало! Бегом спать! 😭"
COMMENT_SHORT = "Маловато, но вы справитесь! 💪"
COMMENT_MARGINAL = "Впритык. Только не клюйте носом завтра~"
COMMENT_GOOD = "Неплохо, здоровый сон! ✨"
COMMENT_EXCELLENT = "Идеально! Держите сердечко 💕"
COMMENT_EXCESSIVE = "Ого, сколько сна! Не проспите 😂"

# Полуоткрытые интервалы [нижняя граница, следующая граница)
_COMMENT_BUCKETS = (
    (4, COMMENT_CRITICAL),
    (6, COMMENT_SHORT),
    (7, COMMENT_MARGINAL),
    (8, COMMENT_GOOD),
    (9, COMMENT_EXCELLENT),
)


class InvalidWallClockTime(ValueError):
    """Час или минута вне допустимого диапазона."""


@dataclass(frozen=True, slots=True)
class WallClockTime:
    hour: int
    minute: int

    def __post_init__(self) -> None:
        for name, value, upper in (("hour", self.hour, 23), ("minute", self.minute, 59)):
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidWallClockTime(f"{name} must be an integer, got {value!r}")
            if not 0 <= value <= upper:
                raise InvalidWallClockTime(f"{name} must be in 0..{upper}, got {value}")

    @classmethod
    def from_time(cls, value: time) -> WallClockTime:
        return cls(hour=value.hour, minute=value.minute)

    def to_time(self) -> time:
        return time(hour=self.hour, minute=self.minute)

    def shifted(self, minutes: int) -> WallClockTime:
        return WallClockTime.from_time(minutes_to_time(self.hour * 60 + self.minute + minutes))

    def __str__(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"


@dataclass(frozen=True, slots=True)
class SleepDuration:
    hours: int
    minutes: int

    @property
    def total_minutes(self) -> int:
        return self.hours * 60 + self.minutes


@dataclass(frozen=True, slots=True)
class Recommendation:
    bedtime: datetime
    cycles: int
    cycle_length: timedelta = CYCLE_LENGTH

    @property
    def is_optimal(self) -> bool:
        return self.cycles in OPTIMAL_CYCLES

    @property
    def sleep_hours(self) -> float:
        return self.cycles * self.cycle_length / timedelta(hours=1)


@dataclass(frozen=True, slots=True)
class BedtimeRecommendations:
    """
    Ленивая последовательность рекомендаций: 6, 5 и 4 цикла.

    Каждый обход заново вычисляет кандидатов, поэтому последовательность
    можно перебирать сколько угодно раз с одинаковым результатом.
    """

    wake_up: datetime
    now: datetime
    cycle_length: timedelta = CYCLE_LENGTH
    fall_asleep_buffer: timedelta = FALL_ASLEEP_BUFFER

    def __iter__(self) -> Iterator[Recommendation]:
        now = _absolute(self.now)
        for cycles in CYCLE_COUNTS:
            bedtime = _shift(self.wake_up, -(cycles * self.cycle_length + self.fall_asleep_buffer))
            if _absolute(bedtime) > now:
                yield Recommendation(bedtime=bedtime, cycles=cycles, cycle_length=self.cycle_length)


@dataclass(frozen=True, slots=True)
class SleepSchedule:
    now: datetime
    wake_up: datetime
    duration: SleepDuration
    comment: str
    recommendations: tuple[Recommendation, ...]
    cycle_length: timedelta = CYCLE_LENGTH
    fall_asleep_buffer: timedelta = FALL_ASLEEP_BUFFER


def minutes_to_time(total_minutes: int) -> time:
    total_minutes %= MINUTES_PER_DAY
    hours, minutes = divmod(total_minutes, 60)
    return time(hour=hours, minute=minutes)


def _absolute(value: datetime) -> datetime:
    # Датам с одинаковым tzinfo Python сравнивает настенное время, поэтому переводим в UTC
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc)


def _shift(value: datetime, delta: timedelta) -> datetime:
    if value.tzinfo is None:
        return value + delta
    return (_absolute(value) + delta).astimezone(value.tzinfo)


def resolve_wake_up(wall_clock: WallClockTime, now: datetime) -> datetime:
    """Ближайший момент в будущем, когда часы покажут wall_clock."""
    wake_time = wall_clock.to_time()
    wake_up = datetime.combine(now.date(), wake_time, tzinfo=now.tzinfo)
    if _absolute(wake_up) <= _absolute(now):
        # Равенство тоже считается прошедшим временем
        wake_up = datetime.combine(now.date() + timedelta(days=1), wake_time, tzinfo=now.tzinfo)
    return wake_up


def calculate_sleep_duration(wake_up: datetime, now: datetime) -> SleepDuration:
    total_minutes = (_absolute(wake_up) - _absolute(now)) // timedelta(minutes=1)
    hours, minutes = divmod(max(0, total_minutes), 60)
    return SleepDuration(hours=hours, minutes=minutes)


def recommend_bedtimes(
    wake_up: datetime,
    now: datetime,
    cycle_length: timedelta = CYCLE_LENGTH,
    fall_asleep_buffer: timedelta = FALL_ASLEEP_BUFFER,
) -> BedtimeRecommendations:
    return BedtimeRecommendations(
        wake_up=wake_up,
        now=now,
        cycle_length=cycle_length,
        fall_asleep_buffer=fall_asleep_buffer,
    )


def sleep_comment(hours: int) -> str:
    for upper, comment in _COMMENT_BUCKETS:
        if hours < upper:
            return comment
    return COMMENT_EXCESSIVE


def build_sleep_schedule(
    wall_clock: WallClockTime,
    now: datetime,
    cycle_length: timedelta = CYCLE_LENGTH,
    fall_asleep_buffer: timedelta = FALL_ASLEEP_BUFFER,
) -> SleepSchedule:
    wake_up = resolve_wake_up(wall_clock, now)
    duration = calculate_sleep_duration(wake_up, now)
    recommendations = recommend_bedtimes(wake_up, now, cycle_length, fall_asleep_buffer)
    return SleepSchedule(
        now=now,
        wake_up=wake_up,
        duration=duration,
        comment=sleep_comment(duration.hours),
        recommendations=tuple(recommendations),
        cycle_length=cycle_length,
        fall_asleep_buffer=fall_asleep_buffer,
    )
