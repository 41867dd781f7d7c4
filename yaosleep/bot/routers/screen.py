from __future__ import annotations

import logging
from typing import Optional

from aiogram import F, Router
from aiogram.exceptions import TelegramBadRequest
from aiogram.filters import Command, CommandStart
from aiogram.fsm.context import FSMContext
from aiogram.fsm.state import State, StatesGroup
from aiogram.types import CallbackQuery, Message

from yaosleep.bot.keyboards.common import input_cancel_keyboard, wake_picker_keyboard
from yaosleep.database import get_session
from yaosleep.scheduler import ScreenTicker
from yaosleep.services.preferences import get_wake_up_time, reset_wake_up_time, set_wake_up_time
from yaosleep.services.screen import render_screen, schedule_for
from yaosleep.services.sleep import InvalidWallClockTime, WallClockTime
from yaosleep.services.time_input import parse_wake_up_text
from yaosleep.services.timezone import local_now, resolve_zone


logger = logging.getLogger(__name__)

router = Router(name="screen")


class WakeUpInputState(StatesGroup):
    waiting = State()


def _render(wall_clock: WallClockTime) -> str:
    return render_screen(schedule_for(wall_clock, local_now(resolve_zone())))


async def _send_screen(message: Message, chat_id: int, wall_clock: WallClockTime, ticker: ScreenTicker) -> None:
    text = _render(wall_clock)
    sent = await message.answer(text, reply_markup=wake_picker_keyboard().as_markup())
    ticker.attach(chat_id, sent.message_id, wall_clock, text=text)


async def _screen_message(callback: CallbackQuery) -> Optional[Message]:
    # Слишком старые сообщения приходят как InaccessibleMessage и не редактируются
    if isinstance(callback.message, Message):
        return callback.message
    await callback.answer("Этот экран устарел. Откройте новый через /sleep.", show_alert=True)
    return None


async def _redraw(message: Message, wall_clock: WallClockTime, ticker: ScreenTicker) -> None:
    text = _render(wall_clock)
    try:
        await message.edit_text(text, reply_markup=wake_picker_keyboard().as_markup())
    except TelegramBadRequest as e:
        if "message is not modified" not in str(e):
            raise
    ticker.attach(message.chat.id, message.message_id, wall_clock, text=text)


@router.message(CommandStart())
@router.message(Command("sleep"))
async def cmd_sleep(message: Message, state: FSMContext, ticker: ScreenTicker) -> None:
    await state.clear()
    async with get_session() as session:
        wall_clock = await get_wake_up_time(session, message.chat.id)
    await _send_screen(message, message.chat.id, wall_clock, ticker)


@router.message(Command("stop"))
async def cmd_stop(message: Message, state: FSMContext, ticker: ScreenTicker) -> None:
    await state.clear()
    screen = ticker.detach(message.chat.id)
    if screen:
        try:
            await message.bot.edit_message_reply_markup(
                chat_id=screen.chat_id,
                message_id=screen.message_id,
                reply_markup=None,
            )
        except TelegramBadRequest as e:
            logger.warning(f"Failed to remove keyboard in chat {screen.chat_id}: {e}")
    await message.answer("Экран больше не обновляется. Откройте его снова через /sleep.")


@router.message(Command("help"))
async def cmd_help(message: Message) -> None:
    await message.answer(
        "Я подскажу, когда лечь спать, чтобы проснуться между циклами сна.\n"
        "Один цикл длится около 90 минут, ещё 15 минут уходит на засыпание.\n\n"
        "/sleep — открыть экран с расчётом\n"
        "/stop — остановить обновление экрана\n"
        "/help — показать справку\n\n"
        "Время подъёма меняется кнопками под экраном или вручную в формате ЧЧ:ММ."
    )


@router.callback_query(F.data.startswith("wake:shift:"))
async def handle_wake_shift(callback: CallbackQuery, ticker: ScreenTicker) -> None:
    message = await _screen_message(callback)
    if message is None:
        return
    try:
        minutes = int(callback.data.split(":")[-1])
    except ValueError:
        await callback.answer("Неизвестная команда", show_alert=True)
        return
    chat_id = message.chat.id
    async with get_session() as session:
        wall_clock = (await get_wake_up_time(session, chat_id)).shifted(minutes)
        await set_wake_up_time(session, chat_id, wall_clock)
    await _redraw(message, wall_clock, ticker)
    await callback.answer(f"Подъём в {wall_clock}")


@router.callback_query(F.data == "wake:reset")
async def handle_wake_reset(callback: CallbackQuery, ticker: ScreenTicker) -> None:
    message = await _screen_message(callback)
    if message is None:
        return
    async with get_session() as session:
        wall_clock = await reset_wake_up_time(session, message.chat.id)
    await _redraw(message, wall_clock, ticker)
    await callback.answer(f"Подъём в {wall_clock}")


@router.callback_query(F.data == "wake:input")
async def handle_wake_input(callback: CallbackQuery, state: FSMContext) -> None:
    message = await _screen_message(callback)
    if message is None:
        return
    await state.set_state(WakeUpInputState.waiting)
    await message.answer(
        "Во сколько нужно встать? Отправьте время в формате ЧЧ:ММ, например 07:30.",
        reply_markup=input_cancel_keyboard().as_markup(),
    )
    await callback.answer()


@router.callback_query(F.data == "wake:input:cancel")
async def handle_wake_input_cancel(callback: CallbackQuery, state: FSMContext) -> None:
    await state.clear()
    message = await _screen_message(callback)
    if message is None:
        return
    await message.delete()
    await callback.answer("Отменено")


@router.message(WakeUpInputState.waiting, F.text)
async def set_wake_up_from_text(message: Message, state: FSMContext, ticker: ScreenTicker) -> None:
    try:
        wall_clock = parse_wake_up_text(message.text)
    except InvalidWallClockTime:
        await message.answer("Введите время в формате ЧЧ:ММ, например 07:30.")
        return
    await state.clear()
    async with get_session() as session:
        await set_wake_up_time(session, message.chat.id, wall_clock)
    # Старый экран перестаёт обновляться, новый отправляем ниже по переписке
    ticker.detach(message.chat.id)
    await _send_screen(message, message.chat.id, wall_clock, ticker)


@router.callback_query(F.data == "screen:close")
async def handle_screen_close(callback: CallbackQuery, ticker: ScreenTicker) -> None:
    message = await _screen_message(callback)
    if message is None:
        return
    ticker.detach(message.chat.id)
    await message.edit_reply_markup(reply_markup=None)
    await callback.answer("Спокойной ночи!")
