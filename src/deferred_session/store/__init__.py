"""Session value store subpackage.

Public surface
--------------
- SessionStore              — lazy-loading, deferred-write value store
- StorageTypeConflictError  — storage-key slot is not a mapping
- DEFAULT_STORAGE_KEY       — default slot name in the host data
"""
from __future__ import annotations

from deferred_session.store.session_store import (
    DEFAULT_STORAGE_KEY,
    SessionStore,
    StorageTypeConflictError,
)

__all__ = [
    "DEFAULT_STORAGE_KEY",
    "SessionStore",
    "StorageTypeConflictError",
]
