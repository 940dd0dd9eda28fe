"""
tests/test_config.py -- Settings defaults and fallbacks.

Every Settings() here passes _env_file=None and explicit values so results
do not depend on the developer's .env or shell environment.
"""

from __future__ import annotations

import pytest

from core.config import DEFAULT_ISSUER, Settings

KEY = "config-test-signing-key-0123456789"


def test_token_defaults():
    s = Settings(_env_file=None, jwt_key=KEY)
    assert s.jwt_issuer == DEFAULT_ISSUER == "TiendaApi"
    assert s.jwt_audience == DEFAULT_ISSUER
    assert s.jwt_expire_minutes == 60
    assert s.cache_ttl_seconds == 300


@pytest.mark.parametrize("raw, expected", [("15", 15), ("0", 0), ("abc", 60), ("", 60), ("-5", 60)])
def test_expire_minutes_fallback(raw, expected):
    assert Settings(_env_file=None, jwt_key=KEY, jwt_expire_minutes=raw).jwt_expire_minutes == expected


def test_blank_issuer_and_audience_fall_back_to_default():
    s = Settings(_env_file=None, jwt_key=KEY, jwt_issuer="  ", jwt_audience="")
    assert s.jwt_issuer == DEFAULT_ISSUER
    assert s.jwt_audience == DEFAULT_ISSUER


def test_dev_mode_generates_key():
    s = Settings(_env_file=None, debug=True, jwt_key="")
    assert len(s.jwt_key) == 64


def test_production_mode_leaves_key_empty():
    assert Settings(_env_file=None, debug=False, jwt_key="").jwt_key == ""


def test_env_vars_are_read(monkeypatch):
    monkeypatch.setenv("JWT_KEY", KEY)
    monkeypatch.setenv("JWT_ISSUER", "FunkoIssuer")
    monkeypatch.setenv("REDIS_URL", "redis://cache:6379/0")
    s = Settings(_env_file=None)
    assert s.jwt_key == KEY
    assert s.jwt_issuer == "FunkoIssuer"
    assert s.redis_url == "redis://cache:6379/0"
