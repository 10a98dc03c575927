#!/usr/bin/env python3
"""Example: Quickstart — deferred-session

Minimal working example: queue updates against a session, read them back
before anything is written, commit, and resume the session from an
in-memory backend.

Usage:
    python examples/01_quickstart.py

Requirements:
    pip install deferred-session
"""
from __future__ import annotations

import deferred_session
from deferred_session import InMemoryBackend, SessionStore, StoredHostSession


def main() -> None:
    print(f"deferred-session version: {deferred_session.__version__}")

    # Step 1: First request. The client has no session cookie yet.
    backend = InMemoryBackend()
    host = StoredHostSession(backend)
    store = SessionStore(host)
    store.set("user", "ada")
    store.increment("visits")
    store.touch("last_seen")
    print(f"Pending visits: {store.get('visits')} (stored sessions: {len(backend)})")

    # Step 2: Commit writes everything in one pass and issues a cookie.
    store.commit()
    cookie = host.response_cookies[0]
    print(f"Committed session {cookie.value!r}")

    # Step 3: Second request carries the cookie back.
    store = SessionStore(StoredHostSession(backend, cookies={cookie.name: cookie.value}))
    store.increment("visits", by=2)
    store.toggle("dark_mode")
    store.commit()

    # Step 4: Third request reads the result.
    store = SessionStore(StoredHostSession(backend, cookies={cookie.name: cookie.value}))
    print(f"  user:      {store.get('user')}")
    print(f"  visits:    {store.get('visits')}")
    print(f"  dark_mode: {store.get('dark_mode')}")
    print(f"  keys:      {sorted(store.keys())}")


if __name__ == "__main__":
    main()
