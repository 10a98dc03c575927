"""Abstract contract for the host session mechanism.

``SessionStore`` never talks to cookies or storage directly.  It drives a
``HostSession``, which owns the session id, the cookie, and the raw data
mapping persisted for that id.

Classes
-------
- HostSessionError  — raised when the host is used out of order
- HostSession       — abstract base for host session mechanisms
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from deferred_session.host.cookies import CookieParams


class HostSessionError(RuntimeError):
    """Raised when a host operation requires an open session and none is open."""


class HostSession(ABC):
    """Open/close lifecycle over one client's server-side session data.

    A host is scoped to a single request.  ``data`` is only meaningful
    between ``start()`` and one of ``abort()``, ``write_close()`` or
    ``destroy()``.
    """

    @property
    @abstractmethod
    def session_name(self) -> str:
        """Name of the cookie carrying the session id."""

    @property
    @abstractmethod
    def session_id(self) -> str | None:
        """The current session id, or None if the client has none yet."""

    @property
    @abstractmethod
    def active(self) -> bool:
        """True between ``start()`` and the matching close."""

    @property
    @abstractmethod
    def data(self) -> dict[str, Any]:
        """The raw persisted mapping of the open session.

        Raises
        ------
        HostSessionError
            If the session is not active.
        """

    @abstractmethod
    def session_exists(self) -> bool:
        """True if a session is active or the request carries a session cookie."""

    @abstractmethod
    def start(self) -> None:
        """Open or resume the session, issuing a new id if there is none.

        Calling ``start()`` on an active session does nothing.
        """

    @abstractmethod
    def abort(self) -> None:
        """Close the session, discarding changes made to ``data``."""

    @abstractmethod
    def write_close(self) -> None:
        """Persist ``data`` and close the session.

        The session is closed even when persisting fails.
        """

    @abstractmethod
    def destroy(self) -> None:
        """Erase all server-side data for the current id and close."""

    @abstractmethod
    def regenerate_id(self, delete_old: bool) -> None:
        """Move the open session to a fresh id.

        The current data is persisted under the new id.  The old id's
        stored data is deleted when ``delete_old`` is True.
        """

    @abstractmethod
    def get_cookie_params(self) -> CookieParams:
        """Return the attributes used for the session cookie."""

    @abstractmethod
    def expire_cookie(self, name: str, params: CookieParams) -> None:
        """Tell the client to discard cookie ``name``."""
