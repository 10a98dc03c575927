"""Reference host session over a payload storage backend.

``StoredHostSession`` plays the role a web server's native session layer
plays in production: it resolves the session id from the request cookies,
loads and saves the raw data mapping through a ``StorageBackend``, and
records the cookies the response must carry.

Classes
-------
- StoredHostSession  — cookie + backend implementation of ``HostSession``
"""
from __future__ import annotations

import logging
from typing import Any, Callable
from uuid import uuid4

from deferred_session.clock import Clock, system_clock
from deferred_session.host.base import HostSession, HostSessionError
from deferred_session.host.cookies import CookieParams, ResponseCookie
from deferred_session.host.serializer import PayloadSerializer
from deferred_session.storage.base import StorageBackend

logger = logging.getLogger(__name__)

DEFAULT_SESSION_NAME = "DSESSID"
_EXPIRED_COOKIE_AGE_SECONDS = 3600


def _new_session_id() -> str:
    return uuid4().hex


class StoredHostSession(HostSession):
    """Host session persisting raw data as serialized payloads.

    One instance serves one request.  Cookies the response must set or
    clear accumulate in ``response_cookies``.

    Parameters
    ----------
    backend:
        Where payloads are stored, keyed by session id.
    serializer:
        Payload encoder.  Defaults to JSON with checksum validation.
    cookies:
        Cookies sent with the request.  Copied.
    session_name:
        Name of the session cookie.
    cookie_params:
        Attributes for emitted session cookies.
    clock:
        Source of the current Unix time, used for cookie expiry.
    id_factory:
        Produces new session ids.
    max_idle:
        Seconds a stored session may go unsaved before it is treated as
        expired.  An expired session is deleted and starts empty.  None
        (default) disables expiry.
    """

    def __init__(
        self,
        backend: StorageBackend,
        serializer: PayloadSerializer | None = None,
        cookies: dict[str, str] | None = None,
        session_name: str = DEFAULT_SESSION_NAME,
        cookie_params: CookieParams | None = None,
        clock: Clock = system_clock,
        id_factory: Callable[[], str] = _new_session_id,
        max_idle: int | None = None,
    ) -> None:
        self._backend = backend
        self._serializer = serializer or PayloadSerializer()
        self._cookies: dict[str, str] = dict(cookies or {})
        self._session_name = session_name
        self._cookie_params = cookie_params or CookieParams()
        self._clock = clock
        self._id_factory = id_factory
        self._max_idle = max_idle
        self._session_id: str | None = self._cookies.get(session_name) or None
        self._data: dict[str, Any] | None = None
        self.response_cookies: list[ResponseCookie] = []

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def session_name(self) -> str:
        return self._session_name

    @property
    def session_id(self) -> str | None:
        return self._session_id

    @property
    def active(self) -> bool:
        return self._data is not None

    @property
    def data(self) -> dict[str, Any]:
        return self._require_active("data")

    @property
    def backend(self) -> StorageBackend:
        return self._backend

    def session_exists(self) -> bool:
        return self.active or self._session_name in self._cookies

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        if self._data is not None:
            return
        if self._session_id is None:
            self._session_id = self._id_factory()
            self._cookies[self._session_name] = self._session_id
            self._emit_session_cookie()
            self._data = {}
            logger.debug("StoredHostSession: started new session %r", self._session_id)
            return
        if self._backend.exists(self._session_id) and not self._expire_if_idle(self._session_id):
            self._data = self._serializer.loads(self._backend.load(self._session_id))
        else:
            self._data = {}
        logger.debug("StoredHostSession: resumed session %r", self._session_id)

    def abort(self) -> None:
        """Close without saving.  Does nothing if the session is not open."""
        if self._data is None:
            return
        self._data = None
        logger.debug("StoredHostSession: aborted session %r", self._session_id)

    def write_close(self) -> None:
        data = self._require_active("write_close")
        assert self._session_id is not None
        try:
            payload = self._serializer.dumps(data)
            self._backend.save(self._session_id, payload, saved_at=self._clock())
        finally:
            self._data = None
        logger.debug("StoredHostSession: saved session %r", self._session_id)

    def destroy(self) -> None:
        self._require_active("destroy")
        if self._session_id is not None and self._backend.exists(self._session_id):
            self._backend.delete(self._session_id)
        logger.debug("StoredHostSession: destroyed session %r", self._session_id)
        self._data = None
        self._session_id = None

    def regenerate_id(self, delete_old: bool) -> None:
        data = self._require_active("regenerate_id")
        old_id = self._session_id
        if delete_old and old_id is not None and self._backend.exists(old_id):
            self._backend.delete(old_id)
        self._session_id = self._id_factory()
        self._backend.save(self._session_id, self._serializer.dumps(data), saved_at=self._clock())
        self._cookies[self._session_name] = self._session_id
        self._emit_session_cookie()
        logger.debug(
            "StoredHostSession: regenerated session %r -> %r (delete_old=%s)",
            old_id,
            self._session_id,
            delete_old,
        )

    # ------------------------------------------------------------------
    # Cookies
    # ------------------------------------------------------------------

    def get_cookie_params(self) -> CookieParams:
        return self._cookie_params

    def expire_cookie(self, name: str, params: CookieParams) -> None:
        self.response_cookies.append(
            ResponseCookie(
                name=name,
                value="",
                expires=self._clock() - _EXPIRED_COOKIE_AGE_SECONDS,
                params=params,
            )
        )
        self._cookies.pop(name, None)

    def _emit_session_cookie(self) -> None:
        assert self._session_id is not None
        lifetime = self._cookie_params.lifetime
        self.response_cookies.append(
            ResponseCookie(
                name=self._session_name,
                value=self._session_id,
                expires=self._clock() + lifetime if lifetime else None,
                params=self._cookie_params,
            )
        )

    def _expire_if_idle(self, session_id: str) -> bool:
        """Delete ``session_id`` if it has been idle too long; return True if so."""
        if self._max_idle is None:
            return False
        idle_before = self._clock() - self._max_idle
        if self._backend.saved_at(session_id) >= idle_before:
            return False
        self._backend.delete(session_id)
        logger.debug("StoredHostSession: discarded idle session %r", session_id)
        return True

    def _require_active(self, operation: str) -> dict[str, Any]:
        if self._data is None:
            raise HostSessionError(f"Cannot {operation}: session is not active.")
        return self._data

    def __repr__(self) -> str:
        return (
            f"StoredHostSession(session_name={self._session_name!r}, "
            f"session_id={self._session_id!r}, active={self.active})"
        )
