"""Abstract base class for session payload storage.

The reference host session keeps each session's raw data as one serialized
payload string keyed by session id, stamped with the Unix time it was last
saved.  The stamp is what idle-session expiry works from: a session nobody
has written for longer than the configured idle limit is garbage.

Classes
-------
- StorageBackend  — abstract base for all backends
"""
from __future__ import annotations

from abc import ABC, abstractmethod


class StorageBackend(ABC):
    """Read and write session payloads and their last-write times.

    Backends are used sequentially within one request.  Serializing access
    across requests that share a session id is left to the deployment.
    """

    @abstractmethod
    def save(self, session_id: str, payload: str, saved_at: int) -> None:
        """Persist ``payload`` under ``session_id``, replacing any entry.

        Parameters
        ----------
        session_id:
            Session identifier used as the storage key.
        payload:
            Serialized session data.
        saved_at:
            Unix time of this write.
        """

    @abstractmethod
    def load(self, session_id: str) -> str:
        """Return the payload stored under ``session_id``.

        Raises
        ------
        KeyError
            If no entry exists for ``session_id``.
        """

    @abstractmethod
    def saved_at(self, session_id: str) -> int:
        """Return the Unix time ``session_id`` was last saved.

        Raises
        ------
        KeyError
            If no entry exists for ``session_id``.
        """

    @abstractmethod
    def list(self) -> list[str]:
        """Return every stored session id.  Order is backend-defined."""

    @abstractmethod
    def delete(self, session_id: str) -> None:
        """Remove the entry for ``session_id``.

        Raises
        ------
        KeyError
            If no entry exists for ``session_id``.
        """

    @abstractmethod
    def exists(self, session_id: str) -> bool:
        """Return True if an entry for ``session_id`` exists."""

    def purge(self, idle_before: int) -> list[str]:
        """Delete every session last saved strictly before ``idle_before``.

        Parameters
        ----------
        idle_before:
            Unix time cutoff, usually ``now - max_idle``.

        Returns
        -------
        list[str]
            The ids that were deleted.
        """
        expired = [
            session_id
            for session_id in self.list()
            if self.saved_at(session_id) < idle_before
        ]
        for session_id in expired:
            self.delete(session_id)
        return expired
