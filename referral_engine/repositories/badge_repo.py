"""Каталог бейджей и их выдача."""

from __future__ import annotations

from typing import Optional

from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from referral_engine.models import Badge, UserBadge


async def find_badge_id_by_name(session: AsyncSession, name: str) -> Optional[int]:
    stmt = select(Badge.id).where(Badge.name == name)
    return (await session.exec(stmt)).one_or_none()


async def ensure_badge(session: AsyncSession, *, name: str, description: str = "") -> Badge:
    stmt = select(Badge).where(Badge.name == name)
    badge = (await session.exec(stmt)).one_or_none()
    if badge is not None:
        return badge
    badge = Badge(name=name, description=description)
    session.add(badge)
    await session.commit()
    await session.refresh(badge)
    return badge


async def award_badge(session: AsyncSession, *, user_id: str, badge_id: int) -> bool:
    """Выдаёт бейдж, если его ещё нет. Повторная выдача — no-op (False)."""

    stmt = select(UserBadge.id).where(
        UserBadge.user_id == user_id,
        UserBadge.badge_id == badge_id,
    )
    if (await session.exec(stmt)).first() is not None:
        return False
    session.add(UserBadge(user_id=user_id, badge_id=badge_id))
    try:
        await session.commit()
    except IntegrityError:
        # параллельный запрос успел выдать тот же бейдж
        await session.rollback()
        logger.debug("Бейдж {badge} уже выдан {user}", badge=badge_id, user=user_id)
        return False
    return True


async def list_user_badges(session: AsyncSession, user_id: str) -> list[Badge]:
    stmt = (
        select(Badge)
        .join(UserBadge, UserBadge.badge_id == Badge.id)
        .where(UserBadge.user_id == user_id)
        .order_by(UserBadge.created_at)
    )
    result = await session.exec(stmt)
    return list(result.all())


__all__ = ["award_badge", "ensure_badge", "find_badge_id_by_name", "list_user_badges"]
