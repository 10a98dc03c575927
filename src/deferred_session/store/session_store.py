"""Lazy-loading, deferred-write session value store.

``SessionStore`` sits on top of a ``HostSession`` and keeps three pieces of
per-request state:

- a cached snapshot of the managed mapping, loaded on the first ``get``
  and never before,
- a queue of ``SessionUpdate`` objects per key,
- the set of keys read so far.

Reads fold the key's queue over the cached value so a handler sees its
own pending writes.  Nothing is written until ``commit()``, which re-reads
each queued key from the live host data, folds the queue over that value
and persists the results in one pass.

Classes
-------
- StorageTypeConflictError  — the storage-key slot holds a non-mapping
- SessionStore              — per-request session value store
"""
from __future__ import annotations

import copy
import logging
from typing import Any

from deferred_session.clock import Clock, system_clock
from deferred_session.host.base import HostSession
from deferred_session.updates.base import SessionUpdate
from deferred_session.updates.values import (
    IncrementValue,
    SetIfAbsentValue,
    SetValue,
    ToggleValue,
    TouchValue,
    UnsetValue,
)

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_KEY = "_deferred_session_data"


class StorageTypeConflictError(TypeError):
    """Raised when the host slot named by the storage key is not a mapping.

    This means the storage key collides with unrelated session data.  It is
    a configuration problem and is never retried.
    """

    def __init__(self, storage_key: str, found_type: type) -> None:
        self.storage_key = storage_key
        self.found_type = found_type
        super().__init__(
            f"Session storage key {storage_key!r} holds {found_type.__name__}, not a mapping."
        )


class SessionStore:
    """Read and queue updates to named session values for one request.

    Construct one store per request cycle and pass it to the handlers that
    need session data.  The store is not thread-safe.

    Parameters
    ----------
    host:
        The host session mechanism for the current request.
    storage_key:
        Slot in the host's raw data holding the managed mapping.
    clock:
        Source of the current Unix time for ``touch``.
    """

    def __init__(
        self,
        host: HostSession,
        storage_key: str = DEFAULT_STORAGE_KEY,
        clock: Clock = system_clock,
    ) -> None:
        self._host = host
        self._storage_key = storage_key
        self._clock = clock
        self._cache: dict[str, Any] | None = None
        self._updates: dict[str, list[SessionUpdate]] = {}
        self._was_read: set[str] = set()

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def host(self) -> HostSession:
        return self._host

    @property
    def clock(self) -> Clock:
        return self._clock

    @property
    def storage_key(self) -> str:
        """The host slot holding the managed mapping."""
        return self._storage_key

    @property
    def loaded(self) -> bool:
        """True once the cached snapshot has been loaded this cycle."""
        return self._cache is not None

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def get(self, key: str) -> Any:
        """Return the value for ``key`` with its queued updates applied.

        The first call in a cycle loads the snapshot from the host.  If the
        client has no session yet the host is not touched at all.

        Returns
        -------
        Any
            The value, or ``None`` if absent.

        Raises
        ------
        StorageTypeConflictError
            If the storage-key slot in the host is not a mapping.
        """
        cache = self._load()
        self._was_read.add(key)
        value = self._apply_updates(key, copy.deepcopy(cache.get(key)))
        return copy.deepcopy(value)

    def keys(self) -> list[str]:
        """Return the keys that ``get`` would currently resolve to a value.

        Loads the snapshot like ``get`` but does not mark anything read.
        """
        cache = self._load()
        names = list(cache)
        names.extend(key for key in self._updates if key not in cache)
        return [
            key
            for key in names
            if self._apply_updates(key, copy.deepcopy(cache.get(key))) is not None
        ]

    def read(self, key: str | None = None) -> bool:
        """Return whether any key, or ``key`` specifically, was read this cycle."""
        if key is None:
            return bool(self._was_read)
        return key in self._was_read

    # ------------------------------------------------------------------
    # Queuing updates
    # ------------------------------------------------------------------

    def set(self, key: str, value: Any) -> None:
        """Queue setting ``key`` to ``value``."""
        self.update(key, SetValue(value))

    def set_if_absent(self, key: str, value: Any) -> None:
        """Queue setting ``key`` to ``value`` if it holds ``None`` at apply time."""
        self.update(key, SetIfAbsentValue(value))

    def unset(self, key: str) -> None:
        """Queue removing ``key``."""
        self.update(key, UnsetValue())

    def increment(self, key: str, by: int | float = 1) -> None:
        """Queue an integer increment of ``key`` by ``by``."""
        self.update(key, IncrementValue(by))

    def toggle(self, key: str) -> None:
        """Queue a boolean negation of ``key``."""
        self.update(key, ToggleValue())

    def touch(self, key: str) -> None:
        """Queue bumping ``key`` to the current timestamp, never backwards."""
        self.update(key, TouchValue(clock=self._clock))

    def update(self, key: str, update: SessionUpdate) -> None:
        """Queue ``update`` for ``key``.

        An absolute update replaces everything queued so far for the key;
        any other update is appended.
        """
        if update.is_absolute:
            self._updates[key] = [update]
            return
        self._updates.setdefault(key, []).append(update)

    def written(self, key: str | None = None) -> bool:
        """Return whether any key, or ``key`` specifically, has queued updates."""
        if key is None:
            return bool(self._updates)
        return key in self._updates

    def queued(self, key: str) -> tuple[SessionUpdate, ...]:
        """Return the updates currently queued for ``key``, oldest first."""
        return tuple(self._updates.get(key, ()))

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def commit(self) -> None:
        """Apply queued updates to the live session data and persist it.

        Does nothing, without touching the host, if nothing is queued.
        Every key is resolved before anything is written.  If folding or
        persisting fails the host is closed without saving, the stored
        session is left unchanged and the queue is kept, so the commit can
        be retried.  After a successful commit all in-memory state is
        cleared, so calling ``commit()`` again is a no-op.

        Raises
        ------
        StorageTypeConflictError
            If the storage-key slot in the host is not a mapping.
        PayloadFormatError
            From ``StoredHostSession`` when the session data cannot be
            encoded.
        """
        if not self.written():
            return
        self._host.start()
        try:
            slot = self._managed_slot()
            to_set: dict[str, Any] = {}
            to_unset: list[str] = []
            for key in self._updates:
                value = self._apply_updates(key, copy.deepcopy(slot.get(key)))
                if value is None:
                    to_unset.append(key)
                else:
                    to_set[key] = value
            slot.update(to_set)
            for key in to_unset:
                slot.pop(key, None)
            self._host.write_close()
        except Exception:
            self._host.abort()
            raise

        logger.debug(
            "SessionStore: committed %d set(s) and %d unset(s) under %r",
            len(to_set),
            len(to_unset),
            self._storage_key,
        )
        self._reset()

    def destroy(self) -> None:
        """Discard all state, expire the session cookie and erase server data.

        Only in-memory state is cleared when the client has no session.
        """
        self._reset()
        if not self._host.session_exists():
            return
        self._host.start()
        params = self._host.get_cookie_params()
        self._host.expire_cookie(self._host.session_name, params)
        self._host.destroy()
        logger.debug("SessionStore: destroyed session")

    def rotate(self, keep_old: bool = False) -> None:
        """Move the session to a new id, keeping its data.

        Pending updates are committed first.  The old id's data is deleted
        unless ``keep_old`` is True, which helps concurrent requests still
        holding the old id.  Does nothing if the client has no session.
        """
        if not self._host.session_exists():
            return
        self.commit()
        self._host.start()
        self._host.regenerate_id(delete_old=not keep_old)
        self._host.abort()
        logger.debug("SessionStore: rotated session id (keep_old=%s)", keep_old)

    def set_storage_key(self, key: str) -> None:
        """Switch to another storage slot, discarding all uncommitted state."""
        if key == self._storage_key:
            return
        logger.debug("SessionStore: storage key %r -> %r", self._storage_key, key)
        self._storage_key = key
        self._reset()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _load(self) -> dict[str, Any]:
        if self._cache is not None:
            return self._cache
        if not self._host.session_exists():
            self._cache = {}
            return self._cache
        self._host.start()
        try:
            self._cache = copy.deepcopy(self._managed_slot())
        finally:
            # Read-only peek: never persist or extend the session here.
            self._host.abort()
        logger.debug("SessionStore: loaded %d value(s) from %r", len(self._cache), self._storage_key)
        return self._cache

    def _managed_slot(self) -> dict[str, Any]:
        """Return the host's managed mapping, creating it if missing."""
        data = self._host.data
        slot = data.setdefault(self._storage_key, {})
        if not isinstance(slot, dict):
            logger.warning(
                "SessionStore: storage key %r holds %s, not a mapping",
                self._storage_key,
                type(slot).__name__,
            )
            raise StorageTypeConflictError(self._storage_key, type(slot))
        return slot

    def _apply_updates(self, key: str, value: Any) -> Any:
        for update in self._updates.get(key, ()):
            value = update.apply(value)
        return value

    def _reset(self) -> None:
        self._cache = None
        self._updates = {}
        self._was_read = set()

    def __repr__(self) -> str:
        return (
            f"SessionStore(storage_key={self._storage_key!r}, loaded={self.loaded}, "
            f"queued_keys={len(self._updates)})"
        )
