"""Функции для работы с таблицей реферальных профилей."""

from __future__ import annotations

from typing import Optional

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from referral_engine.models import ReferralProfile, ReferralStatus
from referral_engine.models.base import utcnow


class CounterKind(str):
    TOTAL = "total"
    SUCCESSFUL = "successful"

    COLUMNS = {
        TOTAL: "total_referrals",
        SUCCESSFUL: "successful_referrals",
    }


async def exists_active_code(session: AsyncSession, code: str) -> bool:
    stmt = select(ReferralProfile.id).where(
        ReferralProfile.referral_code == code,
        ReferralProfile.status == ReferralStatus.ACTIVE,
    )
    result = await session.exec(stmt)
    return result.first() is not None


async def get_profile(session: AsyncSession, user_id: str) -> Optional[ReferralProfile]:
    stmt = select(ReferralProfile).where(ReferralProfile.user_id == user_id)
    result = await session.exec(stmt)
    return result.one_or_none()


async def get_profile_by_active_code(session: AsyncSession, code: str) -> Optional[ReferralProfile]:
    stmt = select(ReferralProfile).where(
        ReferralProfile.referral_code == code,
        ReferralProfile.status == ReferralStatus.ACTIVE,
    )
    result = await session.exec(stmt)
    return result.one_or_none()


async def upsert_profile(session: AsyncSession, *, user_id: str, code: str) -> ReferralProfile:
    """Создаёт профиль или заменяет код существующего (ключ — user_id).

    Конфликт по индексу активных кодов всплывает как ``IntegrityError``
    на commit, откат делает вызывающая сторона.
    """

    profile = await get_profile(session, user_id)
    if profile is None:
        profile = ReferralProfile(user_id=user_id, referral_code=code)
    else:
        profile.referral_code = code
        profile.touch()
    session.add(profile)
    await session.commit()
    await session.refresh(profile)
    return profile


async def update_status(session: AsyncSession, *, user_id: str, status: str) -> Optional[ReferralProfile]:
    profile = await get_profile(session, user_id)
    if profile is None:
        return None
    profile.status = status
    profile.touch()
    session.add(profile)
    await session.commit()
    await session.refresh(profile)
    return profile


async def update_opt_in(session: AsyncSession, *, user_id: str, opt_in: bool) -> Optional[ReferralProfile]:
    profile = await get_profile(session, user_id)
    if profile is None:
        return None
    profile.leaderboard_opt_in = opt_in
    profile.touch()
    session.add(profile)
    await session.commit()
    await session.refresh(profile)
    return profile


async def increment_counter(session: AsyncSession, *, user_id: str, kind: str) -> Optional[ReferralProfile]:
    """Атомарно увеличивает счётчик одним UPDATE (col = col + 1).

    Успешный счётчик растёт только пока он строго меньше общего.
    Возвращает ``None``, если ни одна строка не изменилась.
    """

    column_name = CounterKind.COLUMNS[kind]
    column = getattr(ReferralProfile, column_name)
    stmt = (
        update(ReferralProfile)
        .where(ReferralProfile.user_id == user_id)
        .values({column_name: column + 1, "updated_at": utcnow()})
        .execution_options(synchronize_session=False)
    )
    if kind == CounterKind.SUCCESSFUL:
        stmt = stmt.where(ReferralProfile.successful_referrals < ReferralProfile.total_referrals)
    result = await session.exec(stmt)  # type: ignore[call-overload]
    await session.commit()
    if result.rowcount == 0:
        return None
    return await _reload(session, user_id)


async def mark_champion(session: AsyncSession, *, user_id: str, champion_status: str) -> bool:
    """Условный перевод в Champion: True только у того, кто изменил строку."""

    stmt = (
        update(ReferralProfile)
        .where(
            ReferralProfile.user_id == user_id,
            ReferralProfile.champion_status != champion_status,
        )
        .values(champion_status=champion_status, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    result = await session.exec(stmt)  # type: ignore[call-overload]
    await session.commit()
    return result.rowcount > 0


async def _reload(session: AsyncSession, user_id: str) -> Optional[ReferralProfile]:
    stmt = (
        select(ReferralProfile)
        .where(ReferralProfile.user_id == user_id)
        .execution_options(populate_existing=True)
    )
    result = await session.exec(stmt)
    return result.one_or_none()


__all__ = [
    "CounterKind",
    "exists_active_code",
    "get_profile",
    "get_profile_by_active_code",
    "increment_counter",
    "mark_champion",
    "update_opt_in",
    "update_status",
    "upsert_profile",
]
