"""Shared fixtures for deferred-session tests."""
from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

import pytest

_SRC = Path(__file__).parent.parent / "src"
if str(_SRC) not in sys.path:
    sys.path.insert(0, str(_SRC))

from deferred_session.host.cookies import CookieParams
from deferred_session.host.serializer import PayloadSerializer
from deferred_session.host.stored import StoredHostSession
from deferred_session.storage.memory import InMemoryBackend
from deferred_session.store.session_store import DEFAULT_STORAGE_KEY, SessionStore

FIXED_NOW = 1_700_000_000


class FixedClock:
    """A clock that returns ``now`` until told otherwise."""

    def __init__(self, now: int = FIXED_NOW) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds


class RecordingHost(StoredHostSession):
    """StoredHostSession that records which lifecycle calls were made."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.calls: list[str] = []

    def start(self) -> None:
        self.calls.append("start")
        super().start()

    def abort(self) -> None:
        self.calls.append("abort")
        super().abort()

    def write_close(self) -> None:
        self.calls.append("write_close")
        super().write_close()

    def destroy(self) -> None:
        self.calls.append("destroy")
        super().destroy()

    def regenerate_id(self, delete_old: bool) -> None:
        self.calls.append("regenerate_id")
        super().regenerate_id(delete_old)

    def expire_cookie(self, name: str, params: CookieParams) -> None:
        self.calls.append("expire_cookie")
        super().expire_cookie(name, params)


def seed_session(
    backend: InMemoryBackend,
    session_id: str,
    values: dict[str, Any] | None = None,
    storage_key: str = DEFAULT_STORAGE_KEY,
    raw: dict[str, Any] | None = None,
    saved_at: int = FIXED_NOW,
) -> None:
    """Store a session payload with ``values`` under ``storage_key``."""
    data = dict(raw or {})
    if values is not None:
        data[storage_key] = values
    backend.save(session_id, PayloadSerializer().dumps(data), saved_at=saved_at)


def stored_data(backend: InMemoryBackend, session_id: str) -> dict[str, Any]:
    return PayloadSerializer().loads(backend.load(session_id))


@pytest.fixture()
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture()
def backend() -> InMemoryBackend:
    return InMemoryBackend()


@pytest.fixture()
def make_host(backend: InMemoryBackend, clock: FixedClock):
    """Build a RecordingHost for a request carrying an optional session id."""
    counter = iter(range(1, 10_000))

    def _make(session_id: str | None = None) -> RecordingHost:
        cookies = {"DSESSID": session_id} if session_id else {}
        return RecordingHost(
            backend,
            cookies=cookies,
            clock=clock,
            id_factory=lambda: f"sid-{next(counter)}",
        )

    return _make


@pytest.fixture()
def make_store(make_host, clock: FixedClock):
    """Build a SessionStore over a fresh RecordingHost."""

    def _make(session_id: str | None = None, storage_key: str = DEFAULT_STORAGE_KEY) -> SessionStore:
        return SessionStore(make_host(session_id), storage_key=storage_key, clock=clock)

    return _make
