"""
Tests for Champion evaluation and badge awarding.
"""
import asyncio
from unittest.mock import AsyncMock, patch

import pytest
from loguru import logger
from sqlalchemy.exc import OperationalError
from sqlmodel import func, select

from config.settings import ReferralSettings
from referral_engine.models import ChampionStatus, ReferralEventStatus, UserBadge
from referral_engine.services.core import ProfileNotFound, ReferralService


async def _user_badge_count(session, user_id: str) -> int:
    stmt = select(func.count(UserBadge.id)).where(UserBadge.user_id == user_id)
    return (await session.exec(stmt)).one()


@pytest.fixture
def captured_logs():
    records: list[str] = []
    handler_id = logger.add(lambda message: records.append(message.record["message"]), level="WARNING")
    yield records
    logger.remove(handler_id)


async def test_below_threshold_is_not_upgraded(session, service, champion_badge, add_events):
    await service.create_referral_code(session, "user-1")
    await add_events("user-1", 4)

    result = await service.evaluate_champion_status(session, "user-1")

    assert result.upgraded is False
    assert result.profile.profile.champion_status == ChampionStatus.NONE
    assert await _user_badge_count(session, "user-1") == 0


async def test_pending_events_do_not_count(session, service, champion_badge, add_events):
    await service.create_referral_code(session, "user-1")
    await add_events("user-1", 4)
    await add_events("user-1", 10, ReferralEventStatus.PENDING)

    result = await service.evaluate_champion_status(session, "user-1")

    assert result.upgraded is False


async def test_threshold_reached_upgrades_once(session, service, champion_badge, add_events):
    await service.create_referral_code(session, "user-1")
    await add_events("user-1", 5)

    first = await service.evaluate_champion_status(session, "user-1")
    second = await service.evaluate_champion_status(session, "user-1")

    assert first.upgraded is True
    assert first.profile.profile.champion_status == ChampionStatus.CHAMPION
    assert first.profile.metrics.successful_referrals == 5
    assert second.upgraded is False
    assert second.profile.profile.is_champion
    assert await _user_badge_count(session, "user-1") == 1
    badges = await service.list_badges(session, "user-1")
    assert [badge.name for badge in badges] == ["DataSense Champion"]


async def test_concurrent_evaluations_award_badge_once(session, session_maker, service, champion_badge, add_events):
    await service.create_referral_code(session, "user-1")
    await add_events("user-1", 6)

    async def evaluate():
        async with session_maker() as own_session:
            return await service.evaluate_champion_status(own_session, "user-1")

    results = await asyncio.gather(*(evaluate() for _ in range(5)))

    assert sum(result.upgraded for result in results) == 1
    assert await _user_badge_count(session, "user-1") == 1


async def test_missing_badge_logs_warning_but_upgrades(session, service, add_events, captured_logs):
    await service.create_referral_code(session, "user-1")
    await add_events("user-1", 5)

    result = await service.evaluate_champion_status(session, "user-1")

    assert result.upgraded is True
    assert await _user_badge_count(session, "user-1") == 0
    assert any("DataSense Champion" in message for message in captured_logs)


async def test_threshold_follows_settings(session, add_events):
    service = ReferralService(ReferralSettings(champion_threshold=2))
    await service.ensure_champion_badge(session)
    await service.create_referral_code(session, "user-1")
    await add_events("user-1", 2)

    assert (await service.evaluate_champion_status(session, "user-1")).upgraded is True


async def test_missing_profile_raises(session, service):
    with pytest.raises(ProfileNotFound):
        await service.evaluate_champion_status(session, "ghost")


async def test_ensure_champion_badge_is_idempotent(session, service):
    first = await service.ensure_champion_badge(session)
    second = await service.ensure_champion_badge(session)
    assert first.id == second.id
    assert first.description == "5+ успешных рефералов"


async def test_referral_lifecycle(session, service, champion_badge, add_events):
    """Код, приглашения, конверсии и переход в Champion."""

    profile = await service.create_referral_code(session, "alice", "Alice-2024")
    assert profile.referral_code == "ALICE2024"

    owner = await service.get_by_code(session, "alice2024")
    assert owner.user_id == "alice"

    for _ in range(5):
        await service.increment_count(session, "alice", "total")
    for _ in range(5):
        await service.increment_count(session, "alice", "successful")
    await add_events("alice", 5)

    result = await service.evaluate_champion_status(session, "alice")

    assert result.upgraded is True
    snapshot = await service.get_profile(session, "alice")
    assert snapshot.profile.total_referrals == 5
    assert snapshot.profile.successful_referrals == 5
    assert snapshot.metrics.successful_referrals == 5
    assert snapshot.profile.champion_status == ChampionStatus.CHAMPION
    assert await _user_badge_count(session, "alice") == 1


async def test_failed_badge_award_is_repaired_on_next_evaluation(session, service, champion_badge, add_events):
    await service.create_referral_code(session, "user-1")
    await add_events("user-1", 5)
    boom = OperationalError("INSERT INTO user_badges", {}, Exception("db is down"))

    with patch("referral_engine.services.core.referral_service.award_badge", AsyncMock(side_effect=boom)):
        with pytest.raises(OperationalError):
            await service.evaluate_champion_status(session, "user-1")

    assert (await service.get_profile(session, "user-1")).profile.is_champion
    assert await _user_badge_count(session, "user-1") == 0

    result = await service.evaluate_champion_status(session, "user-1")

    assert result.upgraded is False
    assert await _user_badge_count(session, "user-1") == 1


async def test_repeated_evaluation_of_champion_keeps_single_badge(session, service, champion_badge, add_events):
    await service.create_referral_code(session, "user-1")
    await add_events("user-1", 5)

    for _ in range(3):
        await service.evaluate_champion_status(session, "user-1")

    assert await _user_badge_count(session, "user-1") == 1
