"""Abstract base class for queued session updates.

An update is a pure function from the current value of a session key to
its new value.  Returning ``None`` means the key should be removed.

Classes
-------
- SessionUpdate  — abstract base for all update operations
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class SessionUpdate(ABC):
    """An operation applied to a session value during a read or a commit.

    Implementations must be pure: the same input always yields the same
    output, and the input value must not be mutated.
    """

    @abstractmethod
    def apply(self, current: Any) -> Any:
        """Return the new value given the ``current`` value.

        Parameters
        ----------
        current:
            The value currently stored under the key, or ``None`` if the
            key is absent.

        Returns
        -------
        Any
            The new value.  ``None`` removes the key on commit.
        """

    @property
    @abstractmethod
    def is_absolute(self) -> bool:
        """True if the result ignores every previously queued update.

        Queuing an absolute update discards the key's earlier updates.
        """
