"""Начисленные награды."""

from __future__ import annotations

from typing import Optional

from sqlmodel import Field

from .base import TimeStampedModel


class RewardStatus(str):
    AVAILABLE = "available"
    EARNED = "earned"
    REDEEMED = "redeemed"
    EXPIRED = "expired"


class Reward(TimeStampedModel, table=True):
    __tablename__ = "rewards"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(max_length=64, index=True)
    referral_event_id: Optional[int] = Field(default=None, foreign_key="referral_events.id")
    reward_type: str = Field(default="credit", max_length=32)
    reward_value: float = Field(default=0.0)
    description: str = Field(default="", max_length=255)
    status: str = Field(default=RewardStatus.AVAILABLE, max_length=16, index=True)


__all__ = ["Reward", "RewardStatus"]
