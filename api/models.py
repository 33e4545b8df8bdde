"""
API request and response models for the passport REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.

Request models only bound sizes. Presence and format rules (password is a
32-char digest, captcha is 4 chars) live in SessionManager so every caller
gets the same messages.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class LoginRequest(BaseModel):
    """Request body for POST /api/v1/passport/login."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(default="", max_length=255)
    password: str = Field(default="", max_length=64, description="md5 hex digest of the password.")
    captcha: str = Field(default="", max_length=16)
    captcha_id: Optional[str] = Field(default=None, max_length=64)


class RefreshTokenRequest(BaseModel):
    """Request body for POST /api/v1/passport/refresh and /logout."""

    model_config = ConfigDict(str_strip_whitespace=True)

    refresh_token: str = Field(default="", max_length=4096)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class LoginData(BaseModel):
    model_config = ConfigDict(frozen=True)

    access_token: str
    expired_in: int
    refresh_token: str


class LoginResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str
    data: LoginData


class RefreshData(BaseModel):
    model_config = ConfigDict(frozen=True)

    access_token: str
    expired_in: int


class RefreshResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str
    data: RefreshData


class CaptchaData(BaseModel):
    model_config = ConfigDict(frozen=True)

    captcha: str = Field(description="SVG image as a data URI.")
    expired_in: int


class CaptchaResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str
    data: CaptchaData


class MeData(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    nickname: str
    last_active: Optional[int] = None
    last_ip: Optional[str] = None


class MeResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str
    data: MeData


class MessageResponse(BaseModel):
    """Success envelope for operations that return no data (logout)."""

    model_config = ConfigDict(frozen=True)

    message: str


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    version: str
