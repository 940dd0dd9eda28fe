"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

Tokens arrive as "Authorization: Bearer <jwt>". The token is validated by the
TokenExtractor on app.state; the user id claim is then resolved against the
UserStore so deleted accounts lose access immediately. The stored username
must match the token subject as well, so a token never resolves to a
different account that happens to hold the same id.

try_get_current_user() is the soft variant (returns None on failure).
get_current_user() wraps it and raises HTTP 401 if unauthenticated.
require_admin() wraps get_current_user() and raises HTTP 403 unless the
RoleGate allows the token for Role.ADMIN.

Layer rule: no imports from api/, cache/, catalog/, or notifications/.
  auth/dependencies.py may import from fastapi (for Request/HTTPException)
  because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import HTTPException, Request

from auth.models import Role, User
from auth.tokens import CLAIM_SUBJECT


def bearer_token(request: Request) -> str:
    """Return the raw token from the Authorization header, or ""."""
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:].strip()
    return ""


def try_get_current_user(request: Request) -> User | None:
    """Authenticate the request. Returns the User on success, None on any failure."""
    token = bearer_token(request)
    if not token:
        return None
    extractor = request.app.state.token_extractor
    claims = extractor.extract_claims(token)
    if claims is None:
        return None
    user_id = extractor.extract_user_id(token)
    if user_id is None:
        return None
    user = request.app.state.user_store.get_by_id(user_id)
    # The id must still belong to the account the token was issued for.
    if user is None or user.username != claims[CLAIM_SUBJECT]:
        return None
    return user


def get_current_user(request: Request) -> User:
    """Require authentication. Raises HTTP 401 if the request is not authenticated.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(user: User = Depends(get_current_user)): ...
    """
    user = try_get_current_user(request)
    if user is None:
        raise HTTPException(
            status_code=401,
            detail={"code": "unauthorized", "message": "Authentication required."},
        )
    return user


def require_admin(request: Request) -> User:
    """Require admin role. Raises HTTP 401 if unauthenticated, HTTP 403 if not admin."""
    user = get_current_user(request)
    if not request.app.state.role_gate.allows(bearer_token(request), Role.ADMIN):
        raise HTTPException(
            status_code=403,
            detail={"code": "forbidden", "message": "Admin access required."},
        )
    return user
