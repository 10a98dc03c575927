"""Built-in session update operations.

Every operation is a frozen value object.  None of the built-ins raise for
any input: values that cannot be interpreted fall back to a documented
default instead.

Classes
-------
- SetValue          — replace the value (absolute)
- SetIfAbsentValue  — set only when the key holds ``None``
- UnsetValue        — remove the key (absolute)
- IncrementValue    — integer increment, non-numeric values restart at ``by``
- ToggleValue       — boolean negation using Python truthiness
- TouchValue        — bump to the current timestamp, never backwards
- CustomUpdate      — wrap an arbitrary pure function
"""
from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Any, Callable

from deferred_session.clock import Clock, system_clock
from deferred_session.updates.base import SessionUpdate

_INT_PATTERN = re.compile(r"\s*[+-]?\d+\s*")
_NUMBER_PATTERN = re.compile(r"\s*[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?\s*")


def to_number(value: Any) -> int | float | None:
    """Interpret ``value`` as a finite number, or return ``None``.

    Accepts ``int``, finite ``float`` and decimal numeral strings such as
    ``"10"``, ``" -2.5 "`` or ``"1e3"``.  Booleans are not numbers.  Integer
    numerals past the interpreter's int-conversion digit limit are read as
    floats, overflow to infinity and so are not numbers either.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, str):
        if _INT_PATTERN.fullmatch(value):
            try:
                return int(value)
            except ValueError:
                # Past the interpreter's int-conversion digit limit.
                pass
        if _NUMBER_PATTERN.fullmatch(value):
            number = float(value)
            return number if math.isfinite(number) else None
    return None


@dataclass(frozen=True)
class SetValue(SessionUpdate):
    """Set the key to ``value``, discarding whatever was there."""

    value: Any

    def apply(self, current: Any) -> Any:
        return self.value

    @property
    def is_absolute(self) -> bool:
        return True


@dataclass(frozen=True)
class SetIfAbsentValue(SessionUpdate):
    """Set the key to ``value`` only if it currently holds ``None``.

    Falsy but present values such as ``0`` or ``""`` are kept.
    """

    value: Any

    def apply(self, current: Any) -> Any:
        if current is None:
            return self.value
        return current

    @property
    def is_absolute(self) -> bool:
        return False


@dataclass(frozen=True)
class UnsetValue(SessionUpdate):
    """Remove the key."""

    def apply(self, current: Any) -> None:
        return None

    @property
    def is_absolute(self) -> bool:
        return True


@dataclass(frozen=True)
class IncrementValue(SessionUpdate):
    """Add ``by`` to the value as an integer.

    A float ``by`` is truncated at construction.  Fractional current values
    are truncated toward zero before adding; absent or non-numeric current
    values are treated as a fresh counter and yield ``by``.

    Parameters
    ----------
    by:
        Amount to add.  May be negative.  Defaults to 1.
    """

    by: int = 1

    def __post_init__(self) -> None:
        object.__setattr__(self, "by", int(self.by))

    def apply(self, current: Any) -> int:
        number = to_number(current)
        if number is None:
            return self.by
        return int(number) + self.by

    @property
    def is_absolute(self) -> bool:
        return False


@dataclass(frozen=True)
class ToggleValue(SessionUpdate):
    """Negate the value, coercing it to ``bool`` first."""

    def apply(self, current: Any) -> bool:
        return not current

    @property
    def is_absolute(self) -> bool:
        return False


@dataclass(frozen=True)
class TouchValue(SessionUpdate):
    """Update a timestamp to now, or keep it if it is already later.

    Non-numeric values are replaced with the current timestamp.

    Parameters
    ----------
    clock:
        Source of the current Unix time.  Defaults to ``system_clock``.
    """

    clock: Clock = field(default=system_clock, compare=False)

    def apply(self, current: Any) -> int:
        now = self.clock()
        number = to_number(current)
        if number is None:
            return now
        return max(int(number), now)

    @property
    def is_absolute(self) -> bool:
        return False


@dataclass(frozen=True)
class CustomUpdate(SessionUpdate):
    """Apply an arbitrary caller-supplied pure function.

    Parameters
    ----------
    fn:
        Called with the current value, returns the new value.  Must not
        mutate its argument.
    absolute:
        Whether ``fn`` ignores its input, letting earlier queued updates
        for the key be discarded.
    """

    fn: Callable[[Any], Any]
    absolute: bool = False

    def apply(self, current: Any) -> Any:
        return self.fn(current)

    @property
    def is_absolute(self) -> bool:
        return self.absolute
