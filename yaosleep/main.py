from __future__ import annotations

import asyncio
import logging

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.types import BotCommand

from yaosleep.bot.routers import screen
from yaosleep.config import settings
from yaosleep.database import init_db
from yaosleep.scheduler import ScreenTicker


logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)


async def setup_bot_commands(bot: Bot) -> None:
    """Устанавливает меню команд для бота"""
    commands_list = [
        BotCommand(command="sleep", description="Когда лечь спать"),
        BotCommand(command="stop", description="Остановить обновление экрана"),
        BotCommand(command="help", description="Показать справку"),
    ]
    await bot.set_my_commands(commands_list)


async def main() -> None:
    await init_db()
    bot = Bot(
        token=settings.telegram_token.get_secret_value(),
        default=DefaultBotProperties(parse_mode="HTML"),
    )
    await setup_bot_commands(bot)
    dp = Dispatcher()
    dp.include_router(screen.router)
    ticker = ScreenTicker(bot)
    ticker.start()
    try:
        # ticker попадает в обработчики как зависимость
        await dp.start_polling(bot, ticker=ticker)
    finally:
        ticker.shutdown()


if __name__ == "__main__":
    asyncio.run(main())
