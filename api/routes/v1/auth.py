"""
api/routes/v1/auth.py -- Sign-up, sign-in and user management REST endpoints.

Routes:
  POST /api/v1/auth/signup   -- create account (role USER); 201 with token
  POST /api/v1/auth/signin   -- password login; 200 with token
  GET  /api/v1/auth/me       -- current user info (requires auth)
  GET  /api/v1/auth/users    -- list all users (admin only)

Security:
  POST /signin and /signup are rate-limited per IP (SIGNIN_RATE_LIMIT,
  SIGNUP_RATE_LIMIT).
  Wrong username and wrong password share one 401 body so responses do not
  reveal which accounts exist.
  Cache-Control: no-store on every response carrying a token.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.errors import to_http
from api.limiter import limiter
from api.models import AuthResponseModel, SignInRequest, SignUpRequest, UserResponse
from auth.dependencies import get_current_user, require_admin
from auth.models import AuthResponse, User
from auth.service import AuthService
from auth.store import UserStore
from core.config import get_settings

# Auth policy:
# - POST /api/v1/auth/signup:  public
# - POST /api/v1/auth/signin:  public
# - GET  /api/v1/auth/me:      requires auth (get_current_user)
# - GET  /api/v1/auth/users:   requires admin (require_admin)
router = APIRouter()

_settings = get_settings()


def _token_response(request: Request, auth: AuthResponse, status_code: int) -> JSONResponse:
    expires_in = int(request.app.state.token_service.ttl.total_seconds())
    resp = JSONResponse(
        status_code=status_code,
        content=AuthResponseModel.from_auth(auth, expires_in).model_dump(),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


@limiter.limit(_settings.signup_rate_limit)
@router.post("/auth/signup", response_model=AuthResponseModel, status_code=201)
def signup(request: Request, body: SignUpRequest) -> JSONResponse:
    """Register a new USER account and return a token for it."""
    auth_service: AuthService = request.app.state.auth_service
    result = auth_service.sign_up(body.username, body.email, body.password)
    if result.is_failure:
        raise to_http(result.error)
    return _token_response(request, result.value, 201)


@limiter.limit(_settings.signin_rate_limit)
@router.post("/auth/signin", response_model=AuthResponseModel)
def signin(request: Request, body: SignInRequest) -> JSONResponse:
    """Authenticate with username and password."""
    auth_service: AuthService = request.app.state.auth_service
    result = auth_service.sign_in(body.username, body.password)
    if result.is_failure:
        resp = JSONResponse(
            status_code=401,
            content={"error": {"code": result.error.kind.value, "message": result.error.message}},
        )
        resp.headers["Cache-Control"] = "no-store"
        return resp
    return _token_response(request, result.value, 200)


@router.get("/auth/me", response_model=UserResponse)
def me(current_user: User = Depends(get_current_user)) -> UserResponse:
    """Return identity information for the currently authenticated user."""
    return UserResponse.from_user(current_user)


@router.get("/auth/users", response_model=list[UserResponse])
def list_users(request: Request, current_user: User = Depends(require_admin)) -> list[UserResponse]:
    """List all user accounts. Admin only."""
    user_store: UserStore = request.app.state.user_store
    return [UserResponse.from_user(u) for u in user_store.list_all()]
