"""Per-request session store hooks.

Gives each request its own ``SessionStore`` on the way in and commits it on
the way out, so handlers never share mutable session state.

Classes
-------
- SessionCycleMiddleware  — before/after request hooks owning the stores
"""
from __future__ import annotations

import logging
from typing import Callable

from deferred_session.clock import Clock, system_clock
from deferred_session.host.base import HostSession
from deferred_session.host.cookies import ResponseCookie
from deferred_session.store.session_store import DEFAULT_STORAGE_KEY, SessionStore

logger = logging.getLogger(__name__)

HostFactory = Callable[[dict[str, str]], HostSession]


class SessionCycleMiddleware:
    """Create, hand out, and commit one ``SessionStore`` per request.

    Framework-agnostic: callers invoke the hooks at the right points of
    their own request pipeline.

    Parameters
    ----------
    host_factory:
        Builds a host for a request from that request's cookies.
    storage_key:
        Storage key given to every store.
    clock:
        Clock given to every store.
    auto_commit:
        When True (default), ``after_request`` commits queued updates.
    """

    def __init__(
        self,
        host_factory: HostFactory,
        storage_key: str = DEFAULT_STORAGE_KEY,
        clock: Clock = system_clock,
        auto_commit: bool = True,
    ) -> None:
        self._host_factory = host_factory
        self._storage_key = storage_key
        self._clock = clock
        self.auto_commit = auto_commit
        self._active: dict[str, SessionStore] = {}

    def before_request(self, request_id: str, cookies: dict[str, str] | None = None) -> SessionStore:
        """Build the store for ``request_id``.

        The host is not opened here; the store opens it lazily.
        """
        host = self._host_factory(dict(cookies or {}))
        store = SessionStore(host, storage_key=self._storage_key, clock=self._clock)
        self._active[request_id] = store
        logger.debug("SessionCycleMiddleware: opened store for request %r", request_id)
        return store

    def after_request(self, request_id: str) -> list[ResponseCookie]:
        """Commit the request's store and return the cookies to send.

        Returns
        -------
        list[ResponseCookie]
            Cookies emitted by the host during the request.  Empty for hosts
            that do not expose ``response_cookies``.

        Raises
        ------
        KeyError
            If ``before_request`` was not called for ``request_id``.
        """
        store = self._active.get(request_id)
        if store is None:
            raise KeyError(
                f"No active store for request {request_id!r}. "
                "Call before_request() before after_request()."
            )
        try:
            if self.auto_commit:
                store.commit()
        finally:
            del self._active[request_id]
        logger.debug("SessionCycleMiddleware: closed store for request %r", request_id)
        return list(getattr(store.host, "response_cookies", []))

    def get_active(self, request_id: str) -> SessionStore | None:
        return self._active.get(request_id)

    def discard(self, request_id: str) -> None:
        """Drop the request's store without committing its queued updates."""
        self._active.pop(request_id, None)
        logger.debug("SessionCycleMiddleware: discarded store for request %r", request_id)
