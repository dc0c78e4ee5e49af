"""Утилита для первичной инициализации базы данных и каталога бейджей."""

from __future__ import annotations

import asyncio

from loguru import logger

from referral_engine.context import referral_service, session_maker
from referral_engine.db import init_db


async def bootstrap() -> None:
    await init_db()
    async with session_maker() as session:
        badge = await referral_service.ensure_champion_badge(session)
    logger.info("Схема создана, бейдж {badge} в каталоге (id={id})", badge=badge.name, id=badge.id)


def main() -> None:
    asyncio.run(bootstrap())


if __name__ == "__main__":
    main()
