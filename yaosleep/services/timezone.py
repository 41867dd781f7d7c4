from __future__ import annotations

import logging
from datetime import datetime
from functools import lru_cache
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from yaosleep.config import settings


logger = logging.getLogger(__name__)


@lru_cache
def resolve_zone(name: Optional[str] = None) -> ZoneInfo:
    """
    Возвращает часовой пояс по имени IANA.
    Если имя не указано, берётся TIMEZONE из настроек; неизвестное имя заменяется на UTC.
    """
    tz_name = name or settings.timezone
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Invalid timezone {tz_name}, using UTC")
        return ZoneInfo("UTC")


def local_now(zone: Optional[ZoneInfo] = None) -> datetime:
    return datetime.now(zone or resolve_zone())
