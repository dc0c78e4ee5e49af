"""FastAPI backend реферального кабинета DataSense."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from loguru import logger
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from referral_engine.context import referral_service, settings
from referral_engine.db import get_db_session
from referral_engine.models import ReferralProfile
from referral_engine.services.core import (
    CodeGenerationExhausted,
    CounterInvariantViolation,
    DuplicateCustomCode,
    InvalidCustomCode,
    InvalidReferralStatus,
    ProfileNotFound,
    ProfileSnapshot,
    ReferralError,
)
from referral_engine.utils.security import decode_session_token

bearer_scheme = HTTPBearer(auto_error=True)

_ERROR_STATUS: dict[type[ReferralError], int] = {
    DuplicateCustomCode: status.HTTP_409_CONFLICT,
    CounterInvariantViolation: status.HTTP_409_CONFLICT,
    CodeGenerationExhausted: status.HTTP_503_SERVICE_UNAVAILABLE,
    InvalidCustomCode: status.HTTP_422_UNPROCESSABLE_ENTITY,
    InvalidReferralStatus: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ProfileNotFound: status.HTTP_404_NOT_FOUND,
}


class ProfileResponse(BaseModel):
    user_id: str
    referral_code: str
    status: str
    total_referrals: int
    successful_referrals: int
    total_rewards_earned: float
    champion_status: str
    leaderboard_opt_in: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_profile(cls, profile: ReferralProfile) -> "ProfileResponse":
        return cls.model_validate(profile, from_attributes=True)


class MetricsResponse(BaseModel):
    total_referrals: int = 0
    successful_referrals: int = 0
    total_rewards_earned: float = 0.0


class ProfileDetailsResponse(ProfileResponse):
    metrics: MetricsResponse
    badges: list[str] = Field(default_factory=list)

    @classmethod
    def from_snapshot(cls, snapshot: ProfileSnapshot, badges: list[str] | None = None) -> "ProfileDetailsResponse":
        return cls(**snapshot.as_dict(), badges=badges or [])


class CreateCodeRequest(BaseModel):
    custom_code: str | None = Field(None, max_length=64)
    user_name: str | None = Field(None, max_length=128)


class CreateCodeResponse(BaseModel):
    profile: ProfileResponse
    links: dict[str, str]


class ValidateCodeResponse(BaseModel):
    valid: bool = True
    referral_code: str
    user_id: str


class SettingsRequest(BaseModel):
    leaderboard_opt_in: bool


class StatusRequest(BaseModel):
    status: str


class LinkResponse(BaseModel):
    url: str


class ChampionEvaluationResponse(BaseModel):
    upgraded: bool
    profile: ProfileDetailsResponse


def get_user_id(credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme)) -> str:
    try:
        payload = decode_session_token(credentials.credentials)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc
    return str(payload["sub"])


app = FastAPI(title=f"{settings.app_name} API")


@app.exception_handler(ReferralError)
async def referral_error_handler(request: Request, exc: ReferralError) -> JSONResponse:
    code = next(
        (_ERROR_STATUS[klass] for klass in type(exc).__mro__ if klass in _ERROR_STATUS),
        status.HTTP_400_BAD_REQUEST,
    )
    logger.warning(
        "{method} {path}: {error} ({kind})",
        method=request.method,
        path=request.url.path,
        error=exc,
        kind=type(exc).__name__,
    )
    return JSONResponse(status_code=code, content={"detail": str(exc), "error": type(exc).__name__})


@app.post("/api/referral/code", response_model=CreateCodeResponse, status_code=201)
async def create_code(
    payload: CreateCodeRequest,
    user_id: str = Depends(get_user_id),
    session: AsyncSession = Depends(get_db_session),
) -> CreateCodeResponse:
    profile = await referral_service.create_referral_code(session, user_id, payload.custom_code)
    links = referral_service.build_personalized_links(profile.referral_code, payload.user_name)
    return CreateCodeResponse(profile=ProfileResponse.from_profile(profile), links=links)


@app.get("/api/referral/profile", response_model=ProfileDetailsResponse)
async def get_my_profile(
    user_id: str = Depends(get_user_id),
    session: AsyncSession = Depends(get_db_session),
) -> ProfileDetailsResponse:
    snapshot = await referral_service.get_profile(session, user_id)
    if snapshot is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Реферальный профиль не найден")
    badges = await referral_service.list_badges(session, user_id)
    return ProfileDetailsResponse.from_snapshot(snapshot, [badge.name for badge in badges])


@app.get("/api/referral/link", response_model=LinkResponse)
async def get_my_link(
    source: str = "direct",
    medium: str = "referral",
    user_id: str = Depends(get_user_id),
    session: AsyncSession = Depends(get_db_session),
) -> LinkResponse:
    snapshot = await referral_service.get_profile(session, user_id)
    if snapshot is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Реферальный профиль не найден")
    return LinkResponse(url=referral_service.build_link(snapshot.profile.referral_code, source, medium))


@app.get("/api/referral/validate/{code}", response_model=ValidateCodeResponse)
async def validate_code(code: str, session: AsyncSession = Depends(get_db_session)) -> ValidateCodeResponse:
    profile = await referral_service.get_by_code(session, code)
    if profile is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Недействительный реферальный код")
    return ValidateCodeResponse(referral_code=profile.referral_code, user_id=profile.user_id)


@app.put("/api/referral/settings", response_model=ProfileResponse)
async def update_settings(
    payload: SettingsRequest,
    user_id: str = Depends(get_user_id),
    session: AsyncSession = Depends(get_db_session),
) -> ProfileResponse:
    profile = await referral_service.set_leaderboard_opt_in(session, user_id, payload.leaderboard_opt_in)
    return ProfileResponse.from_profile(profile)


@app.put("/api/referral/status", response_model=ProfileResponse)
async def update_status(
    payload: StatusRequest,
    user_id: str = Depends(get_user_id),
    session: AsyncSession = Depends(get_db_session),
) -> ProfileResponse:
    profile = await referral_service.set_status(session, user_id, payload.status)
    return ProfileResponse.from_profile(profile)


@app.post("/api/referral/champion/evaluate", response_model=ChampionEvaluationResponse)
async def evaluate_champion(
    user_id: str = Depends(get_user_id),
    session: AsyncSession = Depends(get_db_session),
) -> ChampionEvaluationResponse:
    result = await referral_service.evaluate_champion_status(session, user_id)
    badges = await referral_service.list_badges(session, user_id)
    return ChampionEvaluationResponse(
        upgraded=result.upgraded,
        profile=ProfileDetailsResponse.from_snapshot(result.profile, [badge.name for badge in badges]),
    )


@app.get("/health")
async def health() -> dict:
    return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}
