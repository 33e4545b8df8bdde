"""
api/routes/v1/passport.py -- Admin login, token refresh and logout endpoints.

Routes:
  GET  /api/v1/passport/captcha   -- issue a login captcha for a 32-char key
  POST /api/v1/passport/login     -- name + password digest + captcha; returns token pair
  POST /api/v1/passport/refresh   -- refresh token -> new access token
  POST /api/v1/passport/logout    -- revoke access + refresh token (requires auth)
  GET  /api/v1/passport/me        -- current admin profile (requires auth)

Security:
  [H2] login and captcha are rate-limited per client IP (limits from Settings).
  [M5] Cache-Control: no-store on every response that carries a token.
  Handlers never catch SessionError themselves: the exception handler in
  api/main.py renders the error envelope for every rejection.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from api.limiter import captcha_limit, limiter, login_limit
from api.models import (
    CaptchaData,
    CaptchaResponse,
    LoginData,
    LoginRequest,
    LoginResponse,
    MeData,
    MeResponse,
    MessageResponse,
    RefreshData,
    RefreshResponse,
    RefreshTokenRequest,
)
from auth.captcha import CaptchaService
from auth.dependencies import get_current_admin
from auth.models import AdminContext
from auth.session import SessionManager

# Auth policy:
# - GET  /passport/captcha:  public -- needed before login
# - POST /passport/login:    public
# - POST /passport/refresh:  public -- the refresh token is the credential
# - POST /passport/logout:   requires access token (get_current_admin)
# - GET  /passport/me:       requires access token (get_current_admin)
router = APIRouter()


def _no_store(content: dict) -> JSONResponse:
    resp = JSONResponse(status_code=200, content=content)
    resp.headers["Cache-Control"] = "no-store"  # [M5]
    return resp


def _client_ip(request: Request) -> str | None:
    return request.client.host if request.client else None


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@limiter.limit(captcha_limit)  # must be ABOVE @router to preserve FastAPI introspection
@router.get("/passport/captcha", response_model=CaptchaResponse)
def captcha(
    request: Request,
    challenge_id: str = Query(alias="id", pattern=r"^[A-Za-z0-9]{32}$"),
) -> JSONResponse:
    """Issue a captcha for challenge_id and return it as an image.

    The login form asks for id=md5(name); login checks the submitted code
    against that same key. A new request replaces any outstanding code.
    """
    captcha_service: CaptchaService = request.app.state.captcha
    code = captcha_service.issue(challenge_id)
    return _no_store(
        CaptchaResponse(
            message="Captcha issued.",
            data=CaptchaData(captcha=captcha_service.render(code), expired_in=captcha_service.ttl),
        ).model_dump()
    )


@limiter.limit(login_limit)  # [H2]
@router.post("/passport/login", response_model=LoginResponse)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate an admin; return an access token and a refresh token."""
    sessions: SessionManager = request.app.state.sessions
    result = sessions.login(
        body.name,
        body.password,
        body.captcha,
        origin=_client_ip(request),
        captcha_id=body.captcha_id,
    )
    return _no_store(
        LoginResponse(
            message="Login successful.",
            data=LoginData(
                access_token=result.access_token,
                expired_in=result.expired_in,
                refresh_token=result.refresh_token,
            ),
        ).model_dump()
    )


@router.post("/passport/refresh", response_model=RefreshResponse)
def refresh(request: Request, body: RefreshTokenRequest) -> JSONResponse:
    """Exchange a refresh token for a new access token.

    The refresh token itself is not rotated and stays valid until it expires
    or is revoked by logout.
    """
    sessions: SessionManager = request.app.state.sessions
    result = sessions.refresh(body.refresh_token)
    return _no_store(
        RefreshResponse(
            message="Token refreshed.",
            data=RefreshData(access_token=result.access_token, expired_in=result.expired_in),
        ).model_dump()
    )


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.post("/passport/logout", response_model=MessageResponse)
def logout(
    request: Request,
    body: RefreshTokenRequest,
    ctx: AdminContext = Depends(get_current_admin),
) -> MessageResponse:
    """Revoke the caller's access token and the submitted refresh token."""
    sessions: SessionManager = request.app.state.sessions
    sessions.logout(body.refresh_token, ctx)
    return MessageResponse(message="Logged out.")


@router.get("/passport/me", response_model=MeResponse)
def me(ctx: AdminContext = Depends(get_current_admin)) -> MeResponse:
    """Return the profile of the admin behind the access token."""
    admin = ctx.admin
    return MeResponse(
        message="OK",
        data=MeData(
            id=admin.id,
            name=admin.name,
            nickname=admin.nickname,
            last_active=admin.last_active,
            last_ip=admin.last_ip,
        ),
    )
