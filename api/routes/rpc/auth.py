"""
api/routes/rpc/auth.py -- auth.* remote procedures.

Routes:
  POST /rpc/auth.register   -- create account; sets session cookie
  POST /rpc/auth.login      -- password login; sets session cookie
  GET  /rpc/auth.me         -- current user (requires auth)
  POST /rpc/auth.logout     -- delete session, clear cookie (requires auth)

Security:
  register and login are rate-limited per IP with Settings.login_rate_limit
  on top of the global fixed window.
  login returns the same "Invalid credentials" error for an unknown email and
  a wrong password; AuthService runs bcrypt in both cases.
  Cache-Control: no-store on every response that may carry a session cookie.

Handlers are thin: parse the body, call AuthService, serialize the public view.
Cookies are written by SessionManager onto the injected Response, which
FastAPI merges into the final response. If the service raises, that temporary
response is discarded, so a failed login never sets a cookie.

No `from __future__ import annotations` here: slowapi wraps the endpoint, and
FastAPI resolves string annotations against the wrapper's module globals.
"""

from fastapi import APIRouter, Depends, Request, Response

from api.limiter import limiter
from api.models import AuthResponse, LoginRequest, MeResponse, PublicUser, RegisterRequest, SuccessResponse
from auth.dependencies import RequestContext, require_user
from auth.service import AuthService
from core.config import get_settings

# Auth policy:
# - POST /rpc/auth.register: public
# - POST /rpc/auth.login:    public
# - GET  /rpc/auth.me:       requires auth (require_user)
# - POST /rpc/auth.logout:   requires auth (require_user)
router = APIRouter()

_settings = get_settings()


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


@router.post("/auth.register", response_model=AuthResponse)
@limiter.limit(_settings.login_rate_limit)
def register(
    request: Request,
    response: Response,
    body: RegisterRequest,
    auth: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    """Register a new account and start a session for it."""
    user = auth.register(body.email, body.password, body.name, response)
    response.headers["Cache-Control"] = "no-store"
    return AuthResponse(user=PublicUser.from_user(user))


@router.post("/auth.login", response_model=AuthResponse)
@limiter.limit(_settings.login_rate_limit)
def login(
    request: Request,
    response: Response,
    body: LoginRequest,
    auth: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    user = auth.login(body.email, body.password, response)
    response.headers["Cache-Control"] = "no-store"
    return AuthResponse(user=PublicUser.from_user(user))


@router.get("/auth.me", response_model=MeResponse)
def me(
    context: RequestContext = Depends(require_user),
    auth: AuthService = Depends(get_auth_service),
) -> MeResponse:
    """Return the public projection of the already-resolved caller."""
    return MeResponse(user=PublicUser.from_user(auth.me(context)))


@router.post("/auth.logout", response_model=SuccessResponse)
def logout(
    response: Response,
    context: RequestContext = Depends(require_user),
    auth: AuthService = Depends(get_auth_service),
) -> SuccessResponse:
    auth.logout(context, response)
    response.headers["Cache-Control"] = "no-store"
    return SuccessResponse()
