"""
auth/captcha.py -- One-time login challenges.

A challenge is a short code stored in the expiring cache under a caller-chosen
key. The login form asks for a challenge keyed by md5(name), shows the image,
and submits the code with the password. check() consumes the stored code on
the first attempt whether or not it matched, so a 4-character code cannot be
brute-forced against a single issuance.

Codes are compared case-insensitively. The alphabet leaves out characters that
are easy to confuse in an image (0/o, 1/l/i).

The image is an SVG with jittered glyphs and noise lines, returned as a data
URI. It needs no image library.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import base64
import hmac
import secrets
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from cache.store import TokenCache

_ALPHABET = "23456789abcdefghjkmnpqrstuvwxyz"
_KEY_PREFIX = "captcha:"

_WIDTH = 120
_HEIGHT = 40


def random_code(length: int) -> str:
    return "".join(secrets.choice(_ALPHABET) for _ in range(length))


class CaptchaService:
    """Issue and check single-use captcha codes.

    Usage:
        captcha = CaptchaService(cache, ttl=300)
        code = captcha.issue(key)
        captcha.check(submitted, key)   # True once, then False
    """

    def __init__(
        self,
        cache: TokenCache,
        ttl: int = 300,
        length: int = 4,
        generator: Callable[[int], str] = random_code,
    ) -> None:
        self._cache = cache
        self.ttl = ttl
        self.length = length
        self._generator = generator

    def issue(self, key: str) -> str:
        """Create a new code for key, replacing any outstanding one."""
        code = self._generator(self.length)
        self._cache.put(_KEY_PREFIX + key, code.lower(), self.ttl)
        return code

    def check(self, submitted: str, key: str) -> bool:
        """Consume the code stored for key and compare it to submitted."""
        stored = self._cache.pull(_KEY_PREFIX + key)
        if not stored or not submitted:
            return False
        return hmac.compare_digest(str(stored).encode("utf-8"), submitted.lower().encode("utf-8"))

    def render(self, code: str) -> str:
        """Return code drawn as an SVG data URI."""
        return "data:image/svg+xml;base64," + base64.b64encode(render_svg(code).encode("utf-8")).decode("ascii")


def render_svg(code: str) -> str:
    step = _WIDTH // (len(code) + 1)
    parts = [
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{_WIDTH}" height="{_HEIGHT}" '
        f'viewBox="0 0 {_WIDTH} {_HEIGHT}">',
        f'<rect width="{_WIDTH}" height="{_HEIGHT}" fill="#f4f4f4"/>',
    ]
    for _ in range(4):
        x1, x2 = secrets.randbelow(_WIDTH), secrets.randbelow(_WIDTH)
        y1, y2 = secrets.randbelow(_HEIGHT), secrets.randbelow(_HEIGHT)
        parts.append(f'<line x1="{x1}" y1="{y1}" x2="{x2}" y2="{y2}" stroke="#{_color()}" stroke-width="1"/>')
    for i, char in enumerate(code):
        x = step * (i + 1) - 6 + secrets.randbelow(5)
        y = 26 + secrets.randbelow(8)
        angle = secrets.randbelow(41) - 20
        parts.append(
            f'<text x="{x}" y="{y}" font-family="monospace" font-size="22" fill="#{_color()}" '
            f'transform="rotate({angle} {x} {y})">{char}</text>'
        )
    parts.append("</svg>")
    return "".join(parts)


def _color() -> str:
    # Dark tones only, so glyphs stay readable on the light background.
    return "".join(f"{secrets.randbelow(128):02x}" for _ in range(3))
