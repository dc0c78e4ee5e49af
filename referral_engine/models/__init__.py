"""SQLModel сущности реферального движка."""

from .badge import Badge, UserBadge  # noqa: F401
from .profile import ChampionStatus, ReferralProfile, ReferralStatus  # noqa: F401
from .referral import ReferralEvent, ReferralEventStatus  # noqa: F401
from .reward import Reward, RewardStatus  # noqa: F401

__all__ = [
    "Badge",
    "ChampionStatus",
    "ReferralEvent",
    "ReferralEventStatus",
    "ReferralProfile",
    "ReferralStatus",
    "Reward",
    "RewardStatus",
    "UserBadge",
]
