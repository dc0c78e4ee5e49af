"""Реферальные события (приглашения и их конверсии)."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime
from sqlmodel import Field

from .base import TimeStampedModel


class ReferralEventStatus(str):
    PENDING = "pending"
    CONVERTED = "converted"


class ReferralEvent(TimeStampedModel, table=True):
    """Запись о приглашённом пользователе.

    Таблицу наполняют внешние трекеры; ядро только считает строки
    по ``referrer_id``.
    """

    __tablename__ = "referral_events"

    id: Optional[int] = Field(default=None, primary_key=True)
    referrer_id: str = Field(max_length=64, index=True)
    referral_code: Optional[str] = Field(default=None, max_length=32)
    referee_email: Optional[str] = Field(default=None, max_length=255)
    referee_id: Optional[str] = Field(default=None, max_length=64)
    status: str = Field(default=ReferralEventStatus.PENDING, max_length=16, index=True)
    converted_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))


__all__ = ["ReferralEvent", "ReferralEventStatus"]
