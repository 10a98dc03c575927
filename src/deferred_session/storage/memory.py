"""In-memory payload storage.

Entries live in a plain dict and vanish with the process.  Intended for
tests and single-process prototypes.

Classes
-------
- InMemoryBackend  — dict-backed ephemeral storage
"""
from __future__ import annotations

from typing import NamedTuple

from deferred_session.storage.base import StorageBackend


class _Entry(NamedTuple):
    payload: str
    saved_at: int


class InMemoryBackend(StorageBackend):
    """Ephemeral storage backed by a dict of ``(payload, saved_at)`` entries."""

    def __init__(self) -> None:
        self._entries: dict[str, _Entry] = {}

    def _entry(self, session_id: str) -> _Entry:
        entry = self._entries.get(session_id)
        if entry is None:
            raise KeyError(f"No stored session {session_id!r}.")
        return entry

    # ------------------------------------------------------------------
    # StorageBackend interface
    # ------------------------------------------------------------------

    def save(self, session_id: str, payload: str, saved_at: int) -> None:
        self._entries[session_id] = _Entry(payload, saved_at)

    def load(self, session_id: str) -> str:
        return self._entry(session_id).payload

    def saved_at(self, session_id: str) -> int:
        return self._entry(session_id).saved_at

    def list(self) -> list[str]:
        """Return stored session ids in order of first save."""
        return list(self._entries)

    def delete(self, session_id: str) -> None:
        self._entry(session_id)
        del self._entries[session_id]

    def exists(self, session_id: str) -> bool:
        return session_id in self._entries

    # ------------------------------------------------------------------
    # Extras
    # ------------------------------------------------------------------

    def clear(self) -> None:
        """Drop every stored session."""
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"InMemoryBackend(sessions={len(self._entries)})"
