from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, UniqueConstraint
from sqlmodel import Field, SQLModel


WAKE_UP_HOUR_KEY = "wakeUpHour"
WAKE_UP_MINUTE_KEY = "wakeUpMinute"


class Preference(SQLModel, table=True):
    __table_args__ = (UniqueConstraint("chat_id", "name"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    chat_id: int = Field(index=True, description="Telegram chat id")
    name: str = Field(description="Ключ настройки, например wakeUpHour")
    value: int
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_type=DateTime(timezone=True),
        nullable=False,
    )
