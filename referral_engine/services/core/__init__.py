"""Ядро реферальной программы."""

from .codes import generate_code, normalize_code, sanitize_code
from .exceptions import (
    CodeGenerationExhausted,
    CounterInvariantViolation,
    DuplicateCustomCode,
    InvalidCustomCode,
    InvalidReferralStatus,
    ProfileNotFound,
    ReferralError,
)
from .referral_service import (
    ChampionEvaluation,
    ProfileSnapshot,
    ReferralMetrics,
    ReferralService,
)

__all__ = [
    "ChampionEvaluation",
    "CodeGenerationExhausted",
    "CounterInvariantViolation",
    "DuplicateCustomCode",
    "InvalidCustomCode",
    "InvalidReferralStatus",
    "ProfileNotFound",
    "ProfileSnapshot",
    "ReferralError",
    "ReferralMetrics",
    "ReferralService",
    "generate_code",
    "normalize_code",
    "sanitize_code",
]
