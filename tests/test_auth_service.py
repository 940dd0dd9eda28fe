"""
tests/test_auth_service.py -- AuthService sign-up and sign-in workflow.

Runs against a real UserStore on a shared-memory SQLite DB. Store calls that
must not happen (a save after a duplicate is detected) are observed with a
MagicMock wrapping the real method.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import IntegrityError

from auth.models import Role
from auth.service import INVALID_CREDENTIALS, AuthService
from auth.tokens import TokenService
from core.errors import ErrorKind


@pytest.fixture
def tokens(settings) -> TokenService:
    return TokenService(settings)


@pytest.fixture
def service(user_store, tokens) -> AuthService:
    return AuthService(user_store, tokens, rounds=4)


class TestSignUp:
    def test_creates_user_with_hashed_password_and_user_role(self, service, user_store, tokens):
        result = service.sign_up("alice", "alice@example.com", "password1")

        assert result.is_ok
        assert result.value.user.username == "alice"
        assert result.value.user.role is Role.USER
        assert tokens.validate(result.value.token) == "alice"

        stored = user_store.find_by_username("alice")
        assert stored is not None
        assert stored.hashed_password != "password1"
        assert stored.hashed_password.startswith("$2")

    def test_duplicate_username_is_conflict_and_nothing_is_saved(self, service, user_store):
        service.sign_up("alice", "alice@example.com", "password1")
        user_store.save = MagicMock(wraps=user_store.save)

        result = service.sign_up("alice", "other@example.com", "password2")

        assert result.is_failure
        assert result.error.kind is ErrorKind.CONFLICT
        assert "alice" in result.error.message
        assert user_store.save.call_count == 0

    def test_duplicate_email_is_conflict(self, service):
        service.sign_up("alice", "alice@example.com", "password1")
        result = service.sign_up("alice2", "alice@example.com", "password2")

        assert result.error.kind is ErrorKind.CONFLICT
        assert "alice@example.com" in result.error.message

    def test_racing_insert_maps_integrity_error_to_conflict(self, user_store, tokens):
        user_store.save = MagicMock(side_effect=IntegrityError("INSERT", {}, Exception("UNIQUE")))
        service = AuthService(user_store, tokens, rounds=4)

        result = service.sign_up("carol", "carol@example.com", "password1")

        assert result.error.kind is ErrorKind.CONFLICT

    def test_response_never_exposes_password_hash(self, service):
        result = service.sign_up("dave", "dave@example.com", "password1")
        assert not hasattr(result.value.user, "hashed_password")


class TestSignIn:
    def test_valid_credentials_return_token(self, service, tokens):
        service.sign_up("alice", "alice@example.com", "password1")
        result = service.sign_in("alice", "password1")

        assert result.is_ok
        assert tokens.validate(result.value.token) == "alice"
        assert result.value.user.email == "alice@example.com"

    def test_wrong_password_and_unknown_user_fail_identically(self, service):
        service.sign_up("alice", "alice@example.com", "password1")

        wrong_password = service.sign_in("alice", "nope")
        unknown_user = service.sign_in("nobody", "password1")

        for result in (wrong_password, unknown_user):
            assert result.error.kind is ErrorKind.UNAUTHORIZED
            assert result.error.message == INVALID_CREDENTIALS
        assert wrong_password.error == unknown_user.error

    def test_unknown_user_still_runs_password_verification(self, service, monkeypatch):
        calls = []

        def fake_verify(plain, hashed):
            calls.append(hashed)
            return False

        monkeypatch.setattr("auth.service.verify_password", fake_verify)
        service.sign_in("nobody", "password1")
        assert len(calls) == 1
