"""Глобальные настройки реферального движка DataSense.

Настройки разделены по доменам (база данных, реферальная программа,
безопасность API, логирование). Вся конфигурация загружается из переменных
окружения через Pydantic Settings, вложенные секции задаются через ``__``
(например ``REFERRAL__CHAMPION_THRESHOLD=5``).
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import (
    AnyHttpUrl,
    BaseModel,
    Field,
    PositiveInt,
    SecretStr,
    field_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parent.parent
ACCESSIBLE_ENV_FILE = BASE_DIR / "config" / "runtime.env"
DEFAULT_ENV_FILE = BASE_DIR / ".env"
ENV_FILE = ACCESSIBLE_ENV_FILE if ACCESSIBLE_ENV_FILE.exists() else DEFAULT_ENV_FILE


class DatabaseSettings(BaseModel):
    """SQLModel + aiosqlite (по умолчанию) и готовность к Postgres."""

    dsn: str = Field(
        "sqlite+aiosqlite:///./referrals.db",
        description="Строка подключения SQLAlchemy/SQLModel",
    )
    echo: bool = False


class ReferralSettings(BaseModel):
    """Параметры реферальной программы: формат кодов, пороги, ссылки."""

    code_prefix: str = Field("DS", min_length=1, max_length=4)
    code_random_bytes: PositiveInt = 4
    max_generation_attempts: PositiveInt = 10
    custom_code_max_length: PositiveInt = 12
    champion_threshold: PositiveInt = 5
    champion_badge: str = "DataSense Champion"
    base_url: AnyHttpUrl = Field(
        "https://datasense.ai",
        description="Базовый URL, к которому добавляется /signup?ref=...",
    )
    campaign: str = "referral_program"

    @field_validator("code_prefix")
    @classmethod
    def _prefix_upper(cls, value: str) -> str:
        if not value.isalpha():
            raise ValueError("Префикс кода должен состоять только из букв")
        return value.upper()


class SecuritySettings(BaseModel):
    """JWT-настройки для API реферального кабинета."""

    jwt_secret: SecretStr = Field(..., description="Секрет для подписания JWT")
    jwt_algorithm: str = "HS256"
    jwt_ttl_minutes: int = 60


class LoggingSettings(BaseModel):
    level: Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    json_output: bool = False


class AppSettings(BaseSettings):
    """Главный контейнер настроек."""

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    environment: Literal["dev", "prod"] = "dev"
    app_name: str = "DataSense Referrals"
    host: str = "0.0.0.0"
    port: int = 8000
    database: DatabaseSettings = DatabaseSettings()
    referral: ReferralSettings = ReferralSettings()
    logging: LoggingSettings = LoggingSettings()
    security: SecuritySettings

    @property
    def is_production(self) -> bool:
        """True, если сервис запущен в продовой среде."""

        return self.environment == "prod"


# Ленивый синглтон (избегаем глобальных переменных в модулях).
_settings: AppSettings | None = None


def get_settings() -> AppSettings:
    """Возвращает единый экземпляр настроек.

    Значения кэшируются, поэтому .env читается ровно один раз за процесс.
    """

    global _settings
    if _settings is None:
        _settings = AppSettings()  # type: ignore[call-arg]
    return _settings


__all__ = [
    "AppSettings",
    "DatabaseSettings",
    "LoggingSettings",
    "ReferralSettings",
    "SecuritySettings",
    "get_settings",
]
