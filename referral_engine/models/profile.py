"""Реферальный профиль пользователя."""

from __future__ import annotations

from typing import Optional

from sqlalchemy import Index, text
from sqlmodel import Field

from .base import TimeStampedModel


class ReferralStatus(str):
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"

    ALL = (ACTIVE, INACTIVE, SUSPENDED)


class ChampionStatus(str):
    NONE = "none"
    CHAMPION = "champion"


class ReferralProfile(TimeStampedModel, table=True):
    """Один профиль на пользователя: код, статус, счётчики, Champion."""

    __tablename__ = "referral_profiles"
    # Код уникален только среди активных профилей: коды неактивных
    # и заблокированных профилей можно выдать повторно.
    __table_args__ = (
        Index(
            "uq_referral_profiles_active_code",
            "referral_code",
            unique=True,
            sqlite_where=text("status = 'active'"),
            postgresql_where=text("status = 'active'"),
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(max_length=64, unique=True, index=True)
    referral_code: str = Field(max_length=32, index=True)
    status: str = Field(default=ReferralStatus.ACTIVE, max_length=16, index=True)
    total_referrals: int = Field(default=0, ge=0)
    successful_referrals: int = Field(default=0, ge=0)
    total_rewards_earned: float = Field(default=0.0, ge=0)
    champion_status: str = Field(default=ChampionStatus.NONE, max_length=16)
    leaderboard_opt_in: bool = Field(default=False)

    @property
    def is_active(self) -> bool:
        return self.status == ReferralStatus.ACTIVE

    @property
    def is_champion(self) -> bool:
        return self.champion_status == ChampionStatus.CHAMPION


__all__ = ["ChampionStatus", "ReferralProfile", "ReferralStatus"]
