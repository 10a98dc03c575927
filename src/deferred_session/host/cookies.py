"""Session cookie models.

Classes
-------
- CookieParams    — attributes applied to the session cookie
- ResponseCookie  — a cookie the host asks the client to store or discard
"""
from __future__ import annotations

from pydantic import BaseModel, Field


class CookieParams(BaseModel):
    """Attributes of the session-identifying cookie.

    Parameters
    ----------
    path:
        Cookie path.  Default ``"/"``.
    domain:
        Cookie domain.  Empty means host-only.
    secure:
        Send only over HTTPS.
    http_only:
        Hide the cookie from client-side scripts.
    lifetime:
        Lifetime in seconds; 0 means a browser-session cookie.
    """

    path: str = "/"
    domain: str = ""
    secure: bool = False
    http_only: bool = True
    lifetime: int = Field(default=0, ge=0)

    model_config = {"frozen": True}


class ResponseCookie(BaseModel):
    """A cookie emitted by the host for the response.

    ``expires`` is a Unix timestamp, or ``None`` for a browser-session
    cookie.  An ``expires`` in the past tells the client to discard it.
    """

    name: str
    value: str
    expires: int | None = None
    params: CookieParams = Field(default_factory=CookieParams)

    model_config = {"frozen": True}

    def is_expired(self, now: int) -> bool:
        return self.expires is not None and self.expires <= now
