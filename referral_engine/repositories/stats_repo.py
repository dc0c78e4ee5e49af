"""Агрегаты по реферальным событиям и наградам."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import func, select

from referral_engine.models import ReferralEvent, ReferralEventStatus, Reward, RewardStatus


async def count_referral_events(
    session: AsyncSession,
    user_id: str,
    *,
    only_converted: bool = False,
) -> int:
    stmt = select(func.count(ReferralEvent.id)).where(ReferralEvent.referrer_id == user_id)
    if only_converted:
        stmt = stmt.where(ReferralEvent.status == ReferralEventStatus.CONVERTED)
    count = (await session.exec(stmt)).one()
    return int(count or 0)


async def sum_earned_rewards(session: AsyncSession, user_id: str) -> float:
    stmt = select(func.coalesce(func.sum(Reward.reward_value), 0.0)).where(
        Reward.user_id == user_id,
        Reward.status == RewardStatus.EARNED,
    )
    total = (await session.exec(stmt)).one()
    return float(total or 0.0)


__all__ = ["count_referral_events", "sum_earned_rewards"]
