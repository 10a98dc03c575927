"""Configuration for wiring a backend, host and store together.

Classes
-------
- SessionConfig  — validated settings, loadable from YAML
"""
from __future__ import annotations

from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field

from deferred_session.clock import Clock, system_clock
from deferred_session.host.base import HostSession
from deferred_session.host.cookies import CookieParams
from deferred_session.host.serializer import PayloadSerializer
from deferred_session.host.stored import DEFAULT_SESSION_NAME, StoredHostSession
from deferred_session.storage.base import StorageBackend
from deferred_session.storage.filesystem import FilesystemBackend
from deferred_session.storage.memory import InMemoryBackend
from deferred_session.storage.sqlite import SQLiteBackend
from deferred_session.store.session_store import DEFAULT_STORAGE_KEY, SessionStore


class SessionConfig(BaseModel):
    """Settings for a ``StoredHostSession`` and its ``SessionStore``.

    Parameters
    ----------
    storage_key:
        Slot in the host data holding the managed mapping.
    session_name:
        Name of the session cookie.
    backend:
        ``"memory"``, ``"filesystem"`` or ``"sqlite"``.
    storage_dir:
        Directory for the filesystem backend.  Backend default when unset.
    db_path:
        Database file for the sqlite backend.  Backend default when unset.
    format:
        Payload encoding, ``"json"`` or ``"yaml"``.
    cookie:
        Session cookie attributes.
    max_idle:
        Seconds a session may go unsaved before it expires.  None disables
        expiry on start and leaves ``purge`` to an explicit limit.
    """

    storage_key: str = Field(default=DEFAULT_STORAGE_KEY, min_length=1)
    session_name: str = Field(default=DEFAULT_SESSION_NAME, min_length=1)
    backend: Literal["memory", "filesystem", "sqlite"] = "filesystem"
    storage_dir: Path | None = None
    db_path: Path | None = None
    format: Literal["json", "yaml"] = "json"
    cookie: CookieParams = Field(default_factory=CookieParams)
    max_idle: int | None = Field(default=None, ge=1)

    @classmethod
    def from_yaml(cls, path: str | Path) -> SessionConfig:
        """Load settings from a YAML file.  An empty file yields defaults."""
        raw = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
        return cls.model_validate(raw)

    def build_backend(self) -> StorageBackend:
        if self.backend == "memory":
            return InMemoryBackend()
        if self.backend == "sqlite":
            return SQLiteBackend(db_path=self.db_path)
        return FilesystemBackend(storage_dir=self.storage_dir)

    def build_host(
        self,
        cookies: dict[str, str] | None = None,
        backend: StorageBackend | None = None,
        clock: Clock = system_clock,
    ) -> StoredHostSession:
        """Build a host for one request carrying ``cookies``."""
        return StoredHostSession(
            backend=backend if backend is not None else self.build_backend(),
            serializer=PayloadSerializer(fmt=self.format),
            cookies=cookies,
            session_name=self.session_name,
            cookie_params=self.cookie,
            clock=clock,
            max_idle=self.max_idle,
        )

    def build_store(self, host: HostSession, clock: Clock = system_clock) -> SessionStore:
        return SessionStore(host, storage_key=self.storage_key, clock=clock)
