"""
auth/service.py -- Sign-up and sign-in workflow.

AuthService returns Result values for every expected outcome:
  sign_up: Conflict (username or email in use), success with token + public user.
  sign_in: Unauthorized("invalid credentials"), success with token + public user.

The wrong-username and wrong-password sign-in failures share one message and
one code path cost (a bcrypt verification runs against DUMMY_HASH when the
username does not exist), so neither the response text nor its timing
reveals whether an account exists.

Concurrency: the duplicate check and the insert are not one transaction. The
users table carries UNIQUE constraints, so a racing duplicate insert raises
IntegrityError, which is mapped to the same Conflict outcome.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from auth.models import AuthResponse, PublicUser, Role, User
from auth.passwords import DEFAULT_ROUNDS, DUMMY_HASH, hash_password, verify_password
from auth.store import UserStore
from auth.tokens import TokenService
from core.errors import ErrorKind, Result

INVALID_CREDENTIALS = "invalid credentials"


def _sanitize(value: str | None) -> str:
    """Strip CR/LF so user input cannot forge log lines."""
    return (value or "").replace("\n", "").replace("\r", "")


class AuthService:
    def __init__(
        self,
        store: UserStore,
        tokens: TokenService,
        logger: logging.Logger | None = None,
        rounds: int = DEFAULT_ROUNDS,
    ) -> None:
        self._store = store
        self._tokens = tokens
        self._log = logger or logging.getLogger("funkostore.auth.service")
        self._rounds = rounds

    def sign_up(self, username: str, email: str, password: str) -> Result[AuthResponse]:
        safe_name = _sanitize(username)
        self._log.info("SignUp request for username: %s", safe_name)

        existing = self._store.find_by_username(username)
        if existing is not None:
            self._log.warning("SignUp rejected, username in use: %s", safe_name)
            return Result.fail(ErrorKind.CONFLICT, f"username already in use: {existing.username}")

        existing = self._store.find_by_email(email)
        if existing is not None:
            self._log.warning("SignUp rejected, email in use for username: %s", safe_name)
            return Result.fail(ErrorKind.CONFLICT, f"email already in use: {existing.email}")

        hashed = hash_password(password, self._rounds)
        try:
            saved = self._store.save(User(username=username, email=email, hashed_password=hashed, role=Role.USER))
        except IntegrityError:
            self._log.warning("SignUp lost a race on unique username/email: %s", safe_name)
            return Result.fail(ErrorKind.CONFLICT, "username or email already in use")

        self._log.info("User registered successfully: %s", safe_name)
        return Result.ok(self._respond(saved))

    def sign_in(self, username: str, password: str) -> Result[AuthResponse]:
        safe_name = _sanitize(username)
        self._log.info("SignIn request for username: %s", safe_name)

        user = self._store.find_by_username(username)
        if user is None:
            # Equalize timing -- do NOT return before running bcrypt.
            verify_password(password, DUMMY_HASH)
            self._log.warning("SignIn failed, unknown username: %s", safe_name)
            return Result.fail(ErrorKind.UNAUTHORIZED, INVALID_CREDENTIALS)

        if not verify_password(password, user.hashed_password):
            self._log.warning("SignIn failed, bad password for username: %s", safe_name)
            return Result.fail(ErrorKind.UNAUTHORIZED, INVALID_CREDENTIALS)

        self._log.info("User signed in: %s", safe_name)
        return Result.ok(self._respond(user))

    def _respond(self, user: User) -> AuthResponse:
        return AuthResponse(token=self._tokens.issue(user), user=PublicUser.from_user(user))
