"""
auth/tokens.py -- JWT issuance, validation, and claims extraction.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with JWT_KEY and carry
       username (sub), email, role, user id (nameid), a unique token id (jti),
       issued-at, expiry, issuer and audience. Verification returns None on
       any failure -- route layer turns that into a 401.

  Signing key: sourced from core.config.Settings. TokenService refuses to be
       constructed without one (ConfigurationError). This is a startup-class
       failure, never a per-request one.

  Lifetime: fixed at issue time (JWT_EXPIRE_MINUTES, default 60). There is no
       refresh and no revocation list -- an expired token means sign in again.
       Clock skew is zero: a token is rejected the second its exp passes.

  jti: fresh uuid4 per token so two tokens issued in the same second for the
       same user are distinguishable in logs. It is not used for revocation.

Layer rule: no imports from api/, cache/, catalog/, or notifications/.
Import from core/ is allowed.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

from jose import JWTError, jwt

from auth.models import Role
from core.config import Settings
from core.errors import ConfigurationError

if TYPE_CHECKING:
    from auth.models import User

ALGORITHM = "HS256"

# Claim names
CLAIM_SUBJECT = "sub"
CLAIM_EMAIL = "email"
CLAIM_ROLE = "role"
CLAIM_USER_ID = "nameid"
CLAIM_TOKEN_ID = "jti"

_REQUIRED_CLAIMS = (CLAIM_SUBJECT, CLAIM_EMAIL, CLAIM_ROLE, CLAIM_USER_ID)


class TokenService:
    """Issues and validates signed access tokens.

    Usage:
        tokens = TokenService(get_settings())
        token = tokens.issue(user)
        username = tokens.validate(token)   # None if invalid for any reason
    """

    def __init__(self, settings: Settings, logger: logging.Logger | None = None) -> None:
        if not settings.jwt_key:
            raise ConfigurationError(
                "JWT_KEY is required. Set JWT_KEY in your environment or .env file. "
                "To run in development mode with a generated key, set DEBUG=true."
            )
        self._key = settings.jwt_key
        self._issuer = settings.jwt_issuer
        self._audience = settings.jwt_audience
        self._ttl = timedelta(minutes=settings.jwt_expire_minutes)
        self._log = logger or logging.getLogger("funkostore.auth.tokens")

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    def issue(self, user: User, ttl: timedelta | None = None) -> str:
        """Encode a signed JWT carrying the user's identity claims.

        Args:
            user: A persisted user (id assigned). username and email must be
                  non-empty.
            ttl:  Overrides the configured lifetime. timedelta(0) yields a
                  token that is already expired one second later.
        """
        if user.id is None:
            raise ValueError("Cannot issue a token for a user without an id")
        if not user.username or not user.email:
            raise ValueError("username and email are required to issue a token")

        now = datetime.now(timezone.utc)
        lifetime = self._ttl if ttl is None else ttl
        role = user.role.value if isinstance(user.role, Role) else str(user.role)
        claims = {
            CLAIM_SUBJECT: user.username,
            CLAIM_EMAIL: user.email,
            CLAIM_ROLE: role,
            CLAIM_USER_ID: str(user.id),
            CLAIM_TOKEN_ID: uuid.uuid4().hex,
            "iat": now,
            "exp": now + lifetime,
            "iss": self._issuer,
            "aud": self._audience,
        }
        self._log.debug("Issued token for user_id=%s", user.id)
        return jwt.encode(claims, self._key, algorithm=ALGORITHM)

    def decode(self, token: str) -> dict | None:
        """Verify signature, expiry, issuer and audience. Returns the claims or None.

        Returning None (rather than raising) keeps callers simple: any invalid
        token is treated as unauthenticated.
        """
        if not token or not isinstance(token, str):
            return None
        try:
            payload = jwt.decode(
                token,
                self._key,
                algorithms=[ALGORITHM],
                audience=self._audience,
                issuer=self._issuer,
            )
        except (JWTError, ValueError, TypeError) as exc:
            self._log.debug("Token rejected: %s", exc)
            return None
        if any(not payload.get(claim) for claim in _REQUIRED_CLAIMS):
            return None
        return payload

    def validate(self, token: str) -> str | None:
        """Return the username (sub claim) of a valid token, else None."""
        payload = self.decode(token)
        return payload[CLAIM_SUBJECT] if payload else None


class TokenExtractor:
    """Claim accessors over validated tokens.

    Every method validates the token first and returns an empty result
    (None / False) on any failure. Nothing raises.
    """

    def __init__(self, tokens: TokenService, logger: logging.Logger | None = None) -> None:
        self._tokens = tokens
        self._log = logger or logging.getLogger("funkostore.auth.extractor")

    def extract_claims(self, token: str) -> dict | None:
        return self._tokens.decode(token)

    def extract_user_id(self, token: str) -> int | None:
        claims = self._tokens.decode(token)
        if not claims:
            return None
        try:
            return int(claims[CLAIM_USER_ID])
        except (TypeError, ValueError):
            self._log.warning("Token carries a non-numeric user id")
            return None

    def extract_role(self, token: str) -> str | None:
        claims = self._tokens.decode(token)
        return claims[CLAIM_ROLE] if claims else None

    def extract_email(self, token: str) -> str | None:
        claims = self._tokens.decode(token)
        return claims[CLAIM_EMAIL] if claims else None

    def is_admin(self, token: str) -> bool:
        role = self.extract_role(token)
        return role is not None and role.upper() == Role.ADMIN.value

    def extract_user_info(self, token: str) -> tuple[int | None, bool, str | None]:
        """Return (user_id, is_admin, role) from a single validation pass."""
        claims = self._tokens.decode(token)
        if not claims:
            return None, False, None
        try:
            user_id = int(claims[CLAIM_USER_ID])
        except (TypeError, ValueError):
            user_id = None
        role = claims[CLAIM_ROLE]
        return user_id, role.upper() == Role.ADMIN.value, role

    @staticmethod
    def is_valid_token_format(token: str) -> bool:
        """Syntactic check only: three non-empty dot-separated segments."""
        if not token or not isinstance(token, str):
            return False
        parts = token.split(".")
        return len(parts) == 3 and all(parts)
