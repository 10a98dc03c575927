"""Host session subpackage.

Public surface
--------------
- HostSession        — abstract contract driven by ``SessionStore``
- HostSessionError   — host used while no session is open
- StoredHostSession  — reference host over a ``StorageBackend``
- CookieParams       — session cookie attributes
- ResponseCookie     — cookie emitted for the response
- PayloadSerializer  — JSON/YAML payload envelope
- PayloadFormatError — undecodable stored payload
"""
from __future__ import annotations

from deferred_session.host.base import HostSession, HostSessionError
from deferred_session.host.cookies import CookieParams, ResponseCookie
from deferred_session.host.serializer import PayloadFormatError, PayloadSerializer
from deferred_session.host.stored import DEFAULT_SESSION_NAME, StoredHostSession

__all__ = [
    "DEFAULT_SESSION_NAME",
    "CookieParams",
    "HostSession",
    "HostSessionError",
    "PayloadFormatError",
    "PayloadSerializer",
    "ResponseCookie",
    "StoredHostSession",
]
