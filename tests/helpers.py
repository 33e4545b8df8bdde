"""
tests/helpers.py -- Plain helpers shared by test modules and conftest.

Kept out of conftest.py so test modules can import them directly
(conftest is loaded by pytest, not meant to be imported).
"""

from __future__ import annotations

from auth.captcha import CaptchaService
from auth.credentials import challenge_key, client_digest
from auth.models import LoginResult
from auth.session import SessionManager

START = 1_700_000_000


class FakeClock:
    """Callable clock whose time only moves when a test says so."""

    def __init__(self, now: float = START) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def login_with(
    sessions: SessionManager,
    captcha: CaptchaService,
    name: str = "admin",
    password: str = "secret123",
    origin: str = "10.0.0.1",
) -> LoginResult:
    """Issue a captcha for name and log in with it."""
    code = captcha.issue(challenge_key(name))
    return sessions.login(name, client_digest(password), code, origin=origin)
