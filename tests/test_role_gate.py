"""
tests/test_role_gate.py -- RoleGate allow/deny over the USER < ADMIN hierarchy.
"""

from __future__ import annotations

from datetime import timedelta

import pytest
from jose import jwt

from auth.gate import Decision, RoleGate
from auth.models import Role, User
from auth.tokens import TokenExtractor, TokenService
from core.config import DEFAULT_ISSUER


@pytest.fixture
def tokens(settings) -> TokenService:
    return TokenService(settings)


@pytest.fixture
def gate(tokens) -> RoleGate:
    return RoleGate(TokenExtractor(tokens))


def _token(tokens: TokenService, role: Role, ttl: timedelta | None = None) -> str:
    return tokens.issue(User(username="bob", email="bob@example.com", hashed_password="x", role=role, id=1), ttl=ttl)


def test_admin_satisfies_both_roles(tokens, gate):
    token = _token(tokens, Role.ADMIN)
    assert gate.authorize(token, Role.ADMIN) is Decision.ALLOW
    assert gate.authorize(token, Role.USER) is Decision.ALLOW


def test_user_satisfies_user_only(tokens, gate):
    token = _token(tokens, Role.USER)
    assert gate.authorize(token, Role.USER) is Decision.ALLOW
    assert gate.authorize(token, Role.ADMIN) is Decision.DENY


@pytest.mark.parametrize("token", ["", "not-a-token", "a.b.c"])
def test_invalid_tokens_are_denied(gate, token):
    assert gate.authorize(token, Role.USER) is Decision.DENY


def test_expired_token_is_denied(tokens, gate):
    token = _token(tokens, Role.ADMIN, ttl=timedelta(seconds=-10))
    assert not gate.allows(token, Role.USER)


def test_unknown_role_is_denied(settings, gate):
    # Correctly signed, but the role is outside the hierarchy.
    claims = {
        "sub": "mallory",
        "email": "m@example.com",
        "role": "SUPERUSER",
        "nameid": "9",
        "iss": DEFAULT_ISSUER,
        "aud": DEFAULT_ISSUER,
    }
    token = jwt.encode(claims, settings.jwt_key, algorithm="HS256")
    assert gate.authorize(token, Role.USER) is Decision.DENY
