"""Репозитории для работы с БД."""

from .badge_repo import (
    award_badge,
    ensure_badge,
    find_badge_id_by_name,
    list_user_badges,
)
from .profile_repo import (
    CounterKind,
    exists_active_code,
    get_profile,
    get_profile_by_active_code,
    increment_counter,
    mark_champion,
    update_opt_in,
    update_status,
    upsert_profile,
)
from .stats_repo import count_referral_events, sum_earned_rewards

__all__ = [
    "CounterKind",
    "award_badge",
    "count_referral_events",
    "ensure_badge",
    "exists_active_code",
    "find_badge_id_by_name",
    "get_profile",
    "get_profile_by_active_code",
    "increment_counter",
    "list_user_badges",
    "mark_champion",
    "sum_earned_rewards",
    "update_opt_in",
    "update_status",
    "upsert_profile",
]
