from __future__ import annotations

from aiogram.utils.keyboard import InlineKeyboardBuilder


WAKE_SHIFT_BUTTONS = (
    ("−1 ч", -60),
    ("+1 ч", 60),
    ("−15 мин", -15),
    ("−5 мин", -5),
    ("+5 мин", 5),
    ("+15 мин", 15),
)


def wake_picker_keyboard() -> InlineKeyboardBuilder:
    builder = InlineKeyboardBuilder()
    for text, minutes in WAKE_SHIFT_BUTTONS:
        builder.button(text=text, callback_data=f"wake:shift:{minutes}")
    builder.button(text="⌨️ Ввести вручную", callback_data="wake:input")
    builder.button(text="↩️ Сбросить", callback_data="wake:reset")
    builder.button(text="Закрыть", callback_data="screen:close")
    # Часы / минуты / ручной ввод / сброс и закрытие
    builder.adjust(2, 4, 1, 2)
    return builder


def input_cancel_keyboard() -> InlineKeyboardBuilder:
    builder = InlineKeyboardBuilder()
    builder.button(text="Отмена", callback_data="wake:input:cancel")
    builder.adjust(1)
    return builder
