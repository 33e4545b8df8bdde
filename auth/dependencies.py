"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

Protected routes take the caller's access token from the
"Authorization: Bearer <token>" header and resolve it through
SessionManager.authenticate(), which checks the denylist, the signature,
expiry and kind, and that the admin still exists and is enabled.

get_current_admin() raises the SessionError from authenticate(); the
exception handler in api/main.py turns it into the error envelope.

Layer rule: auth/dependencies.py may import from fastapi (for Request)
because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Request

from auth.models import AdminContext
from auth.session import SessionManager


def bearer_token(request: Request) -> str | None:
    """Return the token from an Authorization: Bearer header, or None."""
    auth_header = request.headers.get("Authorization", "")
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_current_admin(request: Request) -> AdminContext:
    """Require a live access token.

    Use as a FastAPI dependency:
        @router.post("/protected")
        def route(ctx: AdminContext = Depends(get_current_admin)): ...
    """
    sessions: SessionManager = request.app.state.sessions
    return sessions.authenticate(bearer_token(request))
