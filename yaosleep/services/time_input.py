from __future__ import annotations

import re
from datetime import datetime

from dateutil import parser as date_parser

from yaosleep.services.sleep import InvalidWallClockTime, WallClockTime

TIME_REGEX = re.compile(r"^\s*(?P<hour>\d{1,2})\s*[:.\-ч ]\s*(?P<minute>\d{2})\s*(?:мин)?\s*$")
COMPACT_REGEX = re.compile(r"^\s*(?P<hour>\d{1,2})(?P<minute>\d{2})\s*$")
HOUR_ONLY_REGEX = re.compile(r"^\s*(?P<hour>\d{1,2})\s*(?:ч|час|часа|часов)?\s*$")


def parse_wake_up_text(text: str) -> WallClockTime:
    """
    Разбирает время подъёма, введённое пользователем вручную.

    Понимает «07:30», «7.30», «7 30», «0730», «7» и варианты вроде «7am»
    (через dateutil). Если ничего не подошло, выбрасывает InvalidWallClockTime.
    """
    if not text or not text.strip():
        raise InvalidWallClockTime("empty wake-up time")

    for regex in (TIME_REGEX, COMPACT_REGEX):
        match = regex.match(text)
        if match:
            return WallClockTime(hour=int(match.group("hour")), minute=int(match.group("minute")))

    match = HOUR_ONLY_REGEX.match(text)
    if match:
        return WallClockTime(hour=int(match.group("hour")), minute=0)

    try:
        parsed = date_parser.parse(text, default=datetime(2000, 1, 1, 0, 0), fuzzy=False)
        hour_check = date_parser.parse(text, default=datetime(2000, 1, 1, 1, 0), fuzzy=False)
    except (ValueError, TypeError, OverflowError) as e:
        raise InvalidWallClockTime(f"cannot parse wake-up time {text!r}") from e
    # Час взят из default, значит в тексте была только дата
    if parsed.hour != hour_check.hour:
        raise InvalidWallClockTime(f"no time of day in {text!r}")
    return WallClockTime(hour=parsed.hour, minute=parsed.minute)
