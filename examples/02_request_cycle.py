#!/usr/bin/env python3
"""Example: Request cycle — deferred-session

Shows SessionCycleMiddleware handing each request its own store, a
SQLite-backed host built from SessionConfig, and session id rotation
after login.

Usage:
    python examples/02_request_cycle.py

Requirements:
    pip install deferred-session
"""
from __future__ import annotations

import tempfile
from pathlib import Path

from deferred_session import SessionConfig, SessionCycleMiddleware


def main() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        config = SessionConfig(backend="sqlite", db_path=Path(tmp) / "sessions.db")
        backend = config.build_backend()
        middleware = SessionCycleMiddleware(
            host_factory=lambda cookies: config.build_host(cookies=cookies, backend=backend),
            storage_key=config.storage_key,
        )

        # Request 1: anonymous visitor adds to a cart.
        store = middleware.before_request("req-1")
        store.set("cart", ["book"])
        cookies = middleware.after_request("req-1")
        jar = {cookie.name: cookie.value for cookie in cookies}
        print(f"Request 1 issued cookie: {jar}")

        # Request 2: visitor logs in; rotate the id, keep the cart.
        store = middleware.before_request("req-2", jar)
        store.set("user", "ada")
        store.rotate()
        cookies = middleware.after_request("req-2")
        jar.update({cookie.name: cookie.value for cookie in cookies})
        print(f"Request 2 rotated to:    {jar}")

        # Request 3: the new id still sees the cart and the user.
        store = middleware.before_request("req-3", jar)
        print(f"Request 3 cart={store.get('cart')} user={store.get('user')}")
        middleware.after_request("req-3")

        print(f"Stored sessions: {backend.list()}")


if __name__ == "__main__":
    main()
