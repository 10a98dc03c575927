"""Session update operations.

Public surface
--------------
- SessionUpdate     — abstract base, the extension point for custom types
- SetValue          — absolute set
- SetIfAbsentValue  — set when the key holds ``None``
- UnsetValue        — absolute removal
- IncrementValue    — integer increment
- ToggleValue       — boolean negation
- TouchValue        — monotonic timestamp bump
- CustomUpdate      — wrap a pure function
"""
from __future__ import annotations

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

__all__ = [
    "CustomUpdate",
    "IncrementValue",
    "SessionUpdate",
    "SetIfAbsentValue",
    "SetValue",
    "ToggleValue",
    "TouchValue",
    "UnsetValue",
]
