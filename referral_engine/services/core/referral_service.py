"""Реферальная система DataSense: коды, профили, агрегаты и статус Champion."""

from __future__ import annotations

import re
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator
from urllib.parse import urlencode

from loguru import logger
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import ReferralSettings, get_settings
from referral_engine.models import Badge, ChampionStatus, ReferralProfile, ReferralStatus
from referral_engine.repositories import (
    CounterKind,
    award_badge,
    count_referral_events,
    ensure_badge,
    exists_active_code,
    find_badge_id_by_name,
    get_profile,
    get_profile_by_active_code,
    increment_counter,
    list_user_badges,
    mark_champion,
    sum_earned_rewards,
    update_opt_in,
    update_status,
    upsert_profile,
)

from .codes import generate_code, normalize_code, sanitize_code
from .exceptions import (
    CodeGenerationExhausted,
    CounterInvariantViolation,
    DuplicateCustomCode,
    InvalidCustomCode,
    InvalidReferralStatus,
    ProfileNotFound,
)

_WHITESPACE = re.compile(r"\s+")


@dataclass(slots=True)
class ReferralMetrics:
    """Счётчики, посчитанные по событиям и наградам на момент запроса."""

    total_referrals: int = 0
    successful_referrals: int = 0
    total_rewards_earned: float = 0.0


@dataclass(slots=True)
class ProfileSnapshot:
    profile: ReferralProfile
    metrics: ReferralMetrics = field(default_factory=ReferralMetrics)

    def as_dict(self) -> dict[str, Any]:
        profile = self.profile
        return {
            "user_id": profile.user_id,
            "referral_code": profile.referral_code,
            "status": profile.status,
            "total_referrals": profile.total_referrals,
            "successful_referrals": profile.successful_referrals,
            "total_rewards_earned": profile.total_rewards_earned,
            "champion_status": profile.champion_status,
            "leaderboard_opt_in": profile.leaderboard_opt_in,
            "created_at": profile.created_at,
            "updated_at": profile.updated_at,
            "metrics": {
                "total_referrals": self.metrics.total_referrals,
                "successful_referrals": self.metrics.successful_referrals,
                "total_rewards_earned": self.metrics.total_rewards_earned,
            },
        }


@dataclass(slots=True)
class ChampionEvaluation:
    """Результат проверки порога Champion (читают уведомления и аналитика)."""

    upgraded: bool
    profile: ProfileSnapshot


class ReferralService:
    """Реферальная программа поверх БД.

    Уникальность кодов и атомарность счётчиков гарантирует хранилище
    (частичный уникальный индекс и UPDATE col = col + 1); сервис лишь
    превращает нарушения ограничений в повторную попытку или ошибку.
    """

    def __init__(self, config: ReferralSettings | None = None) -> None:
        cfg = config or get_settings().referral
        self._prefix = cfg.code_prefix
        self._random_bytes = cfg.code_random_bytes
        self._max_attempts = cfg.max_generation_attempts
        self._custom_max_length = cfg.custom_code_max_length
        self._champion_threshold = cfg.champion_threshold
        self._champion_badge = cfg.champion_badge
        self._base_url = str(cfg.base_url).rstrip("/")
        self._campaign = cfg.campaign

    @property
    def champion_badge(self) -> str:
        return self._champion_badge

    # ------------------------------------------------------------------
    # Коды
    # ------------------------------------------------------------------

    async def create_referral_code(
        self,
        session: AsyncSession,
        user_id: str,
        custom_code: str | None = None,
    ) -> ReferralProfile:
        """Выдаёт пользователю уникальный код (случайный или выбранный им)."""

        async with self._storage_guard(session, "create_referral_code", user_id):
            if custom_code:
                return await self._create_custom(session, user_id, custom_code)
            return await self._create_random(session, user_id)

    async def _create_random(self, session: AsyncSession, user_id: str) -> ReferralProfile:
        for attempt in range(1, self._max_attempts + 1):
            candidate = generate_code(self._prefix, self._random_bytes)
            if await exists_active_code(session, candidate):
                logger.debug(
                    "Код {code} занят (попытка {attempt}/{limit})",
                    code=candidate,
                    attempt=attempt,
                    limit=self._max_attempts,
                )
                continue
            try:
                profile = await upsert_profile(session, user_id=user_id, code=candidate)
            except IntegrityError:
                await session.rollback()
                logger.warning(
                    "Код {code} перехвачен параллельным запросом (попытка {attempt}/{limit})",
                    code=candidate,
                    attempt=attempt,
                    limit=self._max_attempts,
                )
                continue
            logger.info("Пользователь {user} получил код {code}", user=user_id, code=profile.referral_code)
            return profile

        logger.error(
            "Не удалось подобрать код для {user} за {limit} попыток",
            user=user_id,
            limit=self._max_attempts,
        )
        raise CodeGenerationExhausted(self._max_attempts)

    async def _create_custom(self, session: AsyncSession, user_id: str, custom_code: str) -> ReferralProfile:
        code = sanitize_code(custom_code, self._custom_max_length)
        if not code:
            raise InvalidCustomCode(f"Код {custom_code!r} не содержит допустимых символов")
        if await exists_active_code(session, code):
            raise DuplicateCustomCode(code)
        try:
            profile = await upsert_profile(session, user_id=user_id, code=code)
        except IntegrityError as exc:
            await session.rollback()
            raise DuplicateCustomCode(code) from exc
        logger.info("Пользователь {user} выбрал код {code}", user=user_id, code=code)
        return profile

    # ------------------------------------------------------------------
    # Профиль
    # ------------------------------------------------------------------

    async def get_profile(self, session: AsyncSession, user_id: str) -> ProfileSnapshot | None:
        """Профиль вместе со свежими агрегатами; ``None`` — профиля нет."""

        profile = await get_profile(session, user_id)
        if profile is None:
            return None
        metrics = await self.aggregate(session, user_id)
        return ProfileSnapshot(profile=profile, metrics=metrics)

    async def get_by_code(self, session: AsyncSession, code: str) -> ReferralProfile | None:
        """Владелец активного кода; коды неактивных профилей не резолвятся."""

        normalized = normalize_code(code)
        if not normalized:
            return None
        return await get_profile_by_active_code(session, normalized)

    async def set_status(self, session: AsyncSession, user_id: str, status: str) -> ReferralProfile:
        if status not in ReferralStatus.ALL:
            raise InvalidReferralStatus(status)
        async with self._storage_guard(session, "set_status", user_id):
            profile = await update_status(session, user_id=user_id, status=status)
        if profile is None:
            raise ProfileNotFound(user_id)
        logger.info("Статус профиля {user}: {status}", user=user_id, status=status)
        return profile

    async def set_leaderboard_opt_in(self, session: AsyncSession, user_id: str, opt_in: bool) -> ReferralProfile:
        async with self._storage_guard(session, "set_leaderboard_opt_in", user_id):
            profile = await update_opt_in(session, user_id=user_id, opt_in=opt_in)
        if profile is None:
            raise ProfileNotFound(user_id)
        return profile

    async def increment_count(self, session: AsyncSession, user_id: str, kind: str) -> ReferralProfile:
        """Атомарный инкремент ``total`` или ``successful``."""

        if kind not in CounterKind.COLUMNS:
            raise ValueError(f"Неизвестный счётчик: {kind}")
        async with self._storage_guard(session, "increment_count", user_id):
            profile = await increment_counter(session, user_id=user_id, kind=kind)
            if profile is not None:
                return profile
            if await get_profile(session, user_id) is None:
                raise ProfileNotFound(user_id)
        raise CounterInvariantViolation(user_id)

    # ------------------------------------------------------------------
    # Агрегаты и Champion
    # ------------------------------------------------------------------

    async def aggregate(self, session: AsyncSession, user_id: str) -> ReferralMetrics:
        return ReferralMetrics(
            total_referrals=await count_referral_events(session, user_id),
            successful_referrals=await count_referral_events(session, user_id, only_converted=True),
            total_rewards_earned=await sum_earned_rewards(session, user_id),
        )

    async def evaluate_champion_status(self, session: AsyncSession, user_id: str) -> ChampionEvaluation:
        """Переводит в Champion при достижении порога и выдаёт бейдж.

        Повторный вызов без новых конверсий ничего не меняет: переход
        выполняется условным UPDATE, ``upgraded`` получает только тот вызов,
        который реально изменил строку. Для уже Champion бейдж довыдаётся,
        если прошлая выдача сорвалась (выдача идемпотентна).
        """

        snapshot = await self.get_profile(session, user_id)
        if snapshot is None:
            raise ProfileNotFound(user_id)
        if snapshot.profile.is_champion:
            async with self._storage_guard(session, "evaluate_champion_status", user_id):
                await self._award_champion_badge(session, user_id)
            return ChampionEvaluation(upgraded=False, profile=snapshot)
        if snapshot.metrics.successful_referrals < self._champion_threshold:
            return ChampionEvaluation(upgraded=False, profile=snapshot)

        async with self._storage_guard(session, "evaluate_champion_status", user_id):
            upgraded = await mark_champion(session, user_id=user_id, champion_status=ChampionStatus.CHAMPION)
            await session.refresh(snapshot.profile)
            if upgraded:
                logger.info(
                    "Пользователь {user} стал Champion ({count} успешных рефералов)",
                    user=user_id,
                    count=snapshot.metrics.successful_referrals,
                )
                await self._award_champion_badge(session, user_id)
        return ChampionEvaluation(upgraded=upgraded, profile=snapshot)

    async def _award_champion_badge(self, session: AsyncSession, user_id: str) -> bool:
        badge_id = await find_badge_id_by_name(session, self._champion_badge)
        if badge_id is None:
            logger.warning("Бейдж {badge} отсутствует в каталоге", badge=self._champion_badge)
            return False
        awarded = await award_badge(session, user_id=user_id, badge_id=badge_id)
        if awarded:
            logger.info("Бейдж {badge} выдан {user}", badge=self._champion_badge, user=user_id)
        return awarded

    async def ensure_champion_badge(self, session: AsyncSession) -> Badge:
        return await ensure_badge(
            session,
            name=self._champion_badge,
            description=f"{self._champion_threshold}+ успешных рефералов",
        )

    async def list_badges(self, session: AsyncSession, user_id: str) -> list[Badge]:
        return await list_user_badges(session, user_id)

    # ------------------------------------------------------------------
    # Ссылки
    # ------------------------------------------------------------------

    def build_link(self, code: str, source: str = "direct", medium: str = "referral") -> str:
        """Ссылка на регистрацию; порядок параметров: ref, utm_source, utm_medium, utm_campaign."""

        params = {
            "ref": code,
            "utm_source": source,
            "utm_medium": medium,
            "utm_campaign": self._campaign,
        }
        return f"{self._base_url}/signup?{urlencode(params)}"

    def build_personalized_links(self, code: str, user_name: str | None = None) -> dict[str, str]:
        direct_source = _WHITESPACE.sub("_", (user_name or "user").strip().lower()) or "user"
        return {
            "email": self.build_link(code, "email", "referral"),
            "linkedin": self.build_link(code, "linkedin", "social"),
            "twitter": self.build_link(code, "twitter", "social"),
            "facebook": self.build_link(code, "facebook", "social"),
            "whatsapp": self.build_link(code, "whatsapp", "instant_message"),
            "direct": self.build_link(code, direct_source, "direct"),
        }

    # ------------------------------------------------------------------

    @staticmethod
    @asynccontextmanager
    async def _storage_guard(session: AsyncSession, operation: str, user_id: str) -> AsyncIterator[None]:
        """Логирует ошибку хранилища, откатывает сессию и пробрасывает дальше."""

        try:
            yield
        except SQLAlchemyError as exc:
            await session.rollback()
            logger.exception(
                "Ошибка хранилища в {operation} (пользователь {user}): {error}",
                operation=operation,
                user=user_id,
                error=exc,
            )
            raise


__all__ = ["ChampionEvaluation", "ProfileSnapshot", "ReferralMetrics", "ReferralService"]
