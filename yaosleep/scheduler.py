from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional
from zoneinfo import ZoneInfo

from aiogram import Bot
from aiogram.exceptions import TelegramAPIError, TelegramBadRequest, TelegramForbiddenError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from yaosleep.bot.keyboards.common import wake_picker_keyboard
from yaosleep.config import settings
from yaosleep.services.screen import render_screen, schedule_for
from yaosleep.services.sleep import WallClockTime
from yaosleep.services.timezone import local_now, resolve_zone


logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ActiveScreen:
    chat_id: int
    message_id: int
    wake_up_time: WallClockTime
    zone: ZoneInfo
    opened_at: datetime = field(default_factory=datetime.utcnow)
    last_text: str = ""


class ScreenTicker:
    """
    Периодически обновляет открытые экраны.

    На каждом тике «сейчас» берётся один раз для каждого часового пояса,
    после чего для каждого экрана пересчитывается расписание. Сообщение
    редактируется только если текст изменился.
    """

    def __init__(self, bot: Bot) -> None:
        self.bot = bot
        self.scheduler = AsyncIOScheduler(timezone=resolve_zone())
        self.screens: dict[int, ActiveScreen] = {}

    def start(self) -> None:
        if not self.scheduler.running:
            self.scheduler.add_job(
                self._tick,
                trigger=IntervalTrigger(seconds=settings.screen_tick_seconds),
                id="screen_tick",
                max_instances=1,
                coalesce=True,
                misfire_grace_time=settings.screen_tick_seconds,
            )
            self.scheduler.start()
            logger.info(f"Screen ticker started, interval={settings.screen_tick_seconds}s")

    def attach(
        self,
        chat_id: int,
        message_id: int,
        wake_up_time: WallClockTime,
        text: str = "",
        zone: Optional[ZoneInfo] = None,
    ) -> ActiveScreen:
        previous = self.screens.get(chat_id)
        screen = ActiveScreen(
            chat_id=chat_id,
            message_id=message_id,
            wake_up_time=wake_up_time,
            zone=zone or resolve_zone(),
            last_text=text,
        )
        # Время жизни экрана продлевается, только если это то же самое сообщение
        if previous and previous.message_id == message_id:
            screen.opened_at = previous.opened_at
        self.screens[chat_id] = screen
        logger.info(f"Screen attached: chat={chat_id}, message={message_id}, wake_up={wake_up_time}")
        return screen

    def detach(self, chat_id: int) -> Optional[ActiveScreen]:
        screen = self.screens.pop(chat_id, None)
        if screen:
            logger.info(f"Screen detached: chat={chat_id}, message={screen.message_id}")
        return screen

    def _detach_if_current(self, screen: ActiveScreen) -> None:
        # Пока шло редактирование, в чате мог появиться новый экран
        if self.screens.get(screen.chat_id) is screen:
            self.detach(screen.chat_id)

    def is_expired(self, screen: ActiveScreen, now_utc: datetime) -> bool:
        return now_utc - screen.opened_at > timedelta(minutes=settings.screen_ttl_minutes)

    async def refresh(self, screen: ActiveScreen, now: datetime) -> bool:
        """Перерисовывает экран. Возвращает True, если сообщение было отредактировано."""
        text = render_screen(schedule_for(screen.wake_up_time, now))
        if text == screen.last_text:
            return False
        try:
            await self.bot.edit_message_text(
                text=text,
                chat_id=screen.chat_id,
                message_id=screen.message_id,
                parse_mode="HTML",
                reply_markup=wake_picker_keyboard().as_markup(),
            )
        except TelegramBadRequest as e:
            if "message is not modified" in str(e):
                screen.last_text = text
                return False
            # Сообщение удалено или устарело: экран больше не активен
            logger.warning(f"Cannot refresh screen in chat {screen.chat_id}: {e}")
            self._detach_if_current(screen)
            return False
        except TelegramForbiddenError as e:
            logger.warning(f"Bot is blocked in chat {screen.chat_id}: {e}")
            self._detach_if_current(screen)
            return False
        screen.last_text = text
        return True

    async def _expire(self, screen: ActiveScreen) -> None:
        self._detach_if_current(screen)
        try:
            await self.bot.edit_message_reply_markup(
                chat_id=screen.chat_id,
                message_id=screen.message_id,
                reply_markup=None,
            )
        except TelegramAPIError as e:
            logger.warning(f"Failed to remove keyboard from expired screen in chat {screen.chat_id}: {e}")

    async def _tick(self) -> None:
        if not self.screens:
            return
        now_utc = datetime.utcnow()
        now_by_zone: dict[str, datetime] = {}
        refreshed = 0
        for screen in list(self.screens.values()):
            if self.screens.get(screen.chat_id) is not screen:
                continue
            if self.is_expired(screen, now_utc):
                logger.info(f"Screen in chat {screen.chat_id} expired after {settings.screen_ttl_minutes} min")
                await self._expire(screen)
                continue
            zone_key = str(screen.zone)
            if zone_key not in now_by_zone:
                now_by_zone[zone_key] = local_now(screen.zone)
            try:
                if await self.refresh(screen, now_by_zone[zone_key]):
                    refreshed += 1
            except TelegramAPIError as e:
                # Сетевые ошибки и лимиты: пробуем снова на следующем тике
                logger.error(f"Failed to refresh screen in chat {screen.chat_id}: {e}", exc_info=True)
        logger.debug(f"_tick: {len(self.screens)} active screens, {refreshed} refreshed")

    def shutdown(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        self.screens.clear()
