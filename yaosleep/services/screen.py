from __future__ import annotations

from datetime import datetime, timedelta
from html import escape

from yaosleep.config import settings
from yaosleep.services.sleep import (
    Recommendation,
    SleepDuration,
    SleepSchedule,
    WallClockTime,
    build_sleep_schedule,
)


CYCLE_EMOJI = {6: "😴", 5: "😊", 4: "😅"}
OPTIMAL_BADGES = {6: "супер", 5: "в самый раз"}

HEADER = "🌙 <b>Помощник «Пора спать»</b>\n<i>Секретное оружие против поздних отбоев 💤</i>"
FOOTER = "Будьте умницей, ложитесь пораньше~ 💕"
NO_RECOMMENDATIONS = "Все подходящие варианты уже прошли. Ложитесь как можно скорее!"


def schedule_for(wall_clock: WallClockTime, now: datetime) -> SleepSchedule:
    return build_sleep_schedule(
        wall_clock,
        now,
        cycle_length=timedelta(minutes=settings.sleep_cycle_minutes),
        fall_asleep_buffer=timedelta(minutes=settings.fall_asleep_minutes),
    )


def format_duration(duration: SleepDuration) -> str:
    return f"{duration.hours} ч {duration.minutes} мин"


def _cycles_label(cycles: int) -> str:
    if cycles % 10 == 1 and cycles % 100 != 11:
        return f"{cycles} цикл"
    if cycles % 10 in (2, 3, 4) and cycles % 100 not in (12, 13, 14):
        return f"{cycles} цикла"
    return f"{cycles} циклов"


def _day_label(wake_up: datetime, now: datetime) -> str:
    return "сегодня" if wake_up.date() == now.date() else "завтра"


def format_recommendation(recommendation: Recommendation) -> str:
    emoji = CYCLE_EMOJI.get(recommendation.cycles, "💤")
    line = (
        f"{emoji} <b>{recommendation.bedtime.strftime('%H:%M')}</b> · "
        f"{_cycles_label(recommendation.cycles)} · ≈{recommendation.sleep_hours:.1f} ч"
    )
    if recommendation.is_optimal:
        line += f" · ✅ {OPTIMAL_BADGES.get(recommendation.cycles, 'оптимально')}"
    return line


def render_screen(schedule: SleepSchedule) -> str:
    """Собирает текст экрана. Для одного и того же расписания результат всегда одинаковый."""
    cycle_minutes = int(schedule.cycle_length / timedelta(minutes=1))
    buffer_minutes = int(schedule.fall_asleep_buffer / timedelta(minutes=1))
    lines = [
        HEADER,
        "",
        f"⏰ Подъём: <b>{schedule.wake_up.strftime('%H:%M')}</b> ({_day_label(schedule.wake_up, schedule.now)})",
        "",
        "🛏 <b>Если лечь прямо сейчас...</b>",
        f"Можно поспать <b>{format_duration(schedule.duration)}</b>",
        f"<i>{escape(schedule.comment)}</i>",
        "",
        "✨ <b>Лучше всего лечь в:</b>",
        f"<i>(каждый цикл — {cycle_minutes} минут + {buffer_minutes} минут, чтобы уснуть)</i>",
    ]
    if schedule.recommendations:
        lines.extend(format_recommendation(item) for item in schedule.recommendations)
    else:
        lines.append(NO_RECOMMENDATIONS)
    lines.extend(["", FOOTER])
    return "\n".join(lines)
