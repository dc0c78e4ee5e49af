"""
Tests for config/settings.py.
"""
import pytest
from pydantic import ValidationError

from config.settings import AppSettings, ReferralSettings


def test_referral_defaults():
    cfg = ReferralSettings()
    assert cfg.code_prefix == "DS"
    assert cfg.code_random_bytes == 4
    assert cfg.max_generation_attempts == 10
    assert cfg.custom_code_max_length == 12
    assert cfg.champion_threshold == 5
    assert cfg.champion_badge == "DataSense Champion"
    assert cfg.campaign == "referral_program"


def test_prefix_is_uppercased():
    assert ReferralSettings(code_prefix="ab").code_prefix == "AB"


@pytest.mark.parametrize("prefix", ["D1", "", "TOOLONG"])
def test_invalid_prefix(prefix):
    with pytest.raises(ValidationError):
        ReferralSettings(code_prefix=prefix)


def test_nested_env_overrides(monkeypatch):
    monkeypatch.setenv("REFERRAL__CHAMPION_THRESHOLD", "3")
    monkeypatch.setenv("REFERRAL__CODE_PREFIX", "dx")
    monkeypatch.setenv("ENVIRONMENT", "prod")

    settings = AppSettings()

    assert settings.referral.champion_threshold == 3
    assert settings.referral.code_prefix == "DX"
    assert settings.is_production
    assert settings.security.jwt_secret.get_secret_value() == "test-secret"


def test_jwt_secret_is_required(monkeypatch):
    monkeypatch.delenv("SECURITY__JWT_SECRET", raising=False)
    with pytest.raises(ValidationError):
        AppSettings(_env_file=None)
