"""Глобальные сервисы и зависимости реферального движка."""

from __future__ import annotations

from config.settings import get_settings

from .db import get_session_maker
from .services.core.referral_service import ReferralService

settings = get_settings()
session_maker = get_session_maker()
referral_service = ReferralService(settings.referral)

__all__ = ["referral_service", "session_maker", "settings"]
