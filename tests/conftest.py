"""
Фикстуры тестов: SQLite-файл на тест (aiosqlite), сервис с тестовыми настройками.
"""
import os

os.environ.setdefault("SECURITY__JWT_SECRET", "test-secret")
os.environ.setdefault("DATABASE__DSN", "sqlite+aiosqlite:///:memory:")

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool
from sqlmodel.ext.asyncio.session import AsyncSession

from config.settings import ReferralSettings
from referral_engine.db import init_db
from referral_engine.models import ReferralEvent, ReferralEventStatus
from referral_engine.services.core import ReferralService


@pytest.fixture
async def engine(tmp_path):
    """Файловая БД: параллельным сессиям нужна общая база."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'referrals.db'}", poolclass=NullPool)
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
def referral_settings():
    return ReferralSettings(base_url="https://example.com")


@pytest.fixture
def service(referral_settings):
    return ReferralService(referral_settings)


@pytest.fixture
async def champion_badge(session, service):
    return await service.ensure_champion_badge(session)


@pytest.fixture
def add_events(session):
    """Записывает реферальные события так, как это делает внешний трекер."""

    async def _add(referrer_id: str, count: int, status: str = ReferralEventStatus.CONVERTED) -> None:
        session.add_all(
            [
                ReferralEvent(referrer_id=referrer_id, referee_email=f"friend{i}@example.com", status=status)
                for i in range(count)
            ]
        )
        await session.commit()

    return _add
