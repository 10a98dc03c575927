"""Payload storage subpackage.

All backends implement the ``StorageBackend`` ABC and are used by the
reference ``StoredHostSession``.  Each entry carries its last-write time,
which ``purge`` uses to drop idle sessions.

Public surface
--------------
- StorageBackend    — abstract base class
- InMemoryBackend   — in-process dict (useful for testing)
- FilesystemBackend — one file per session, mtime as last-write time
- SQLiteBackend     — one row per session, indexed by last-write time
"""
from __future__ import annotations

from deferred_session.storage.base import StorageBackend
from deferred_session.storage.filesystem import FilesystemBackend
from deferred_session.storage.memory import InMemoryBackend
from deferred_session.storage.sqlite import SQLiteBackend

__all__ = [
    "FilesystemBackend",
    "InMemoryBackend",
    "SQLiteBackend",
    "StorageBackend",
]
