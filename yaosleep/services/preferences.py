from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlmodel import delete, select
from sqlmodel.ext.asyncio.session import AsyncSession

from yaosleep.config import settings
from yaosleep.models import WAKE_UP_HOUR_KEY, WAKE_UP_MINUTE_KEY, Preference
from yaosleep.services.sleep import InvalidWallClockTime, WallClockTime


logger = logging.getLogger(__name__)


def default_wake_up_time() -> WallClockTime:
    return WallClockTime(hour=settings.default_wake_up_hour, minute=settings.default_wake_up_minute)


async def _load_values(session: AsyncSession, chat_id: int) -> dict[str, int]:
    result = await session.exec(
        select(Preference).where(
            Preference.chat_id == chat_id,
            Preference.name.in_((WAKE_UP_HOUR_KEY, WAKE_UP_MINUTE_KEY)),
        )
    )
    return {pref.name: pref.value for pref in result.all()}


async def get_wake_up_time(session: AsyncSession, chat_id: int) -> WallClockTime:
    """
    Читает сохранённое время подъёма.
    Отсутствующие значения берутся из настроек по умолчанию.
    """
    default = default_wake_up_time()
    values = await _load_values(session, chat_id)
    try:
        return WallClockTime(
            hour=values.get(WAKE_UP_HOUR_KEY, default.hour),
            minute=values.get(WAKE_UP_MINUTE_KEY, default.minute),
        )
    except InvalidWallClockTime as e:
        logger.warning(f"Stored wake-up time for chat {chat_id} is invalid ({e}), using default {default}")
        return default


async def set_wake_up_time(session: AsyncSession, chat_id: int, wall_clock: WallClockTime) -> None:
    result = await session.exec(
        select(Preference).where(
            Preference.chat_id == chat_id,
            Preference.name.in_((WAKE_UP_HOUR_KEY, WAKE_UP_MINUTE_KEY)),
        )
    )
    existing = {pref.name: pref for pref in result.all()}
    now = datetime.now(timezone.utc)
    for name, value in ((WAKE_UP_HOUR_KEY, wall_clock.hour), (WAKE_UP_MINUTE_KEY, wall_clock.minute)):
        pref = existing.get(name)
        if pref is None:
            pref = Preference(chat_id=chat_id, name=name, value=value)
        else:
            pref.value = value
            pref.updated_at = now
        session.add(pref)
    await session.commit()
    logger.info(f"Saved wake-up time {wall_clock} for chat {chat_id}")


async def reset_wake_up_time(session: AsyncSession, chat_id: int) -> WallClockTime:
    await session.exec(
        delete(Preference).where(
            Preference.chat_id == chat_id,
            Preference.name.in_((WAKE_UP_HOUR_KEY, WAKE_UP_MINUTE_KEY)),
        )
    )
    await session.commit()
    logger.info(f"Reset wake-up time for chat {chat_id}")
    return default_wake_up_time()
