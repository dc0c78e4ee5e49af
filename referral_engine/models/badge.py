"""Каталог бейджей и их выдача пользователям."""

from __future__ import annotations

from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field

from .base import TimeStampedModel


class Badge(TimeStampedModel, table=True):
    __tablename__ = "badges"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=64, unique=True, index=True)
    description: str = Field(default="", max_length=255)


class UserBadge(TimeStampedModel, table=True):
    """Принадлежность пользователя к держателям бейджа (без дублей)."""

    __tablename__ = "user_badges"
    __table_args__ = (UniqueConstraint("user_id", "badge_id", name="uq_user_badges_user_badge"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(max_length=64, index=True)
    badge_id: int = Field(foreign_key="badges.id", index=True)


__all__ = ["Badge", "UserBadge"]
