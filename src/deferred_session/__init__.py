"""deferred-session — lazy-loading, deferred-write session values.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
>>> from deferred_session import InMemoryBackend, SessionStore, StoredHostSession
>>> store = SessionStore(StoredHostSession(InMemoryBackend()))
>>> store.increment("visits")
>>> store.get("visits")
1
"""
from __future__ import annotations

# Store core
from deferred_session.store.session_store import (
    DEFAULT_STORAGE_KEY,
    SessionStore,
    StorageTypeConflictError,
)

# Update operations
from deferred_session.updates.base import SessionUpdate
from deferred_session.updates.values import (
    CustomUpdate,
    IncrementValue,
    SetIfAbsentValue,
    SetValue,
    ToggleValue,
    TouchValue,
    UnsetValue,
)

# Host session
from deferred_session.host.base import HostSession, HostSessionError
from deferred_session.host.cookies import CookieParams, ResponseCookie
from deferred_session.host.serializer import PayloadFormatError, PayloadSerializer
from deferred_session.host.stored import StoredHostSession

# Storage backends
from deferred_session.storage.base import StorageBackend
from deferred_session.storage.filesystem import FilesystemBackend
from deferred_session.storage.memory import InMemoryBackend
from deferred_session.storage.sqlite import SQLiteBackend

# Wiring
from deferred_session.clock import Clock, system_clock
from deferred_session.config import SessionConfig
from deferred_session.middleware.request_cycle import SessionCycleMiddleware

__version__: str = "0.1.0"

__all__ = [
    "__version__",
    # Store
    "DEFAULT_STORAGE_KEY",
    "SessionStore",
    "StorageTypeConflictError",
    # Updates
    "CustomUpdate",
    "IncrementValue",
    "SessionUpdate",
    "SetIfAbsentValue",
    "SetValue",
    "ToggleValue",
    "TouchValue",
    "UnsetValue",
    # Host
    "CookieParams",
    "HostSession",
    "HostSessionError",
    "PayloadFormatError",
    "PayloadSerializer",
    "ResponseCookie",
    "StoredHostSession",
    # Storage
    "FilesystemBackend",
    "InMemoryBackend",
    "SQLiteBackend",
    "StorageBackend",
    # Wiring
    "Clock",
    "SessionConfig",
    "SessionCycleMiddleware",
    "system_clock",
]
