"""Middleware subpackage.

Public surface
--------------
- SessionCycleMiddleware  — one ``SessionStore`` per request, committed on exit
"""
from __future__ import annotations

from deferred_session.middleware.request_cycle import SessionCycleMiddleware

__all__ = ["SessionCycleMiddleware"]
