"""Filesystem payload storage.

Each session is one ``sess_<id>`` file under a configurable directory,
defaulting to ``~/.deferred-session/``.  The file's modification time is the
session's last-write time, so idle sessions can be found with a directory
scan and no index.

Classes
-------
- FilesystemBackend  — file-per-session storage
"""
from __future__ import annotations

import logging
import os
from pathlib import Path

from deferred_session.storage.base import StorageBackend

logger = logging.getLogger(__name__)

_DEFAULT_STORAGE_DIR: Path = Path.home() / ".deferred-session"
_FILE_PREFIX = "sess_"


class FilesystemBackend(StorageBackend):
    """Stores each payload as ``<storage_dir>/sess_<session_id>``.

    Writes go to a hidden temporary file that is renamed into place, so a
    concurrent reader sees either the old payload or the new one.

    Parameters
    ----------
    storage_dir:
        Directory for session files.  Created on first save.
    """

    def __init__(self, storage_dir: str | Path | None = None) -> None:
        self._storage_dir: Path = (
            Path(storage_dir) if storage_dir is not None else _DEFAULT_STORAGE_DIR
        )

    @property
    def storage_dir(self) -> Path:
        return self._storage_dir

    def _path_for(self, session_id: str) -> Path:
        # Session ids arrive from cookies; never let one leave the directory.
        return self._storage_dir / f"{_FILE_PREFIX}{os.path.basename(session_id)}"

    def _missing(self, session_id: str) -> KeyError:
        return KeyError(f"No stored session {session_id!r} in {self._storage_dir}.")

    # ------------------------------------------------------------------
    # StorageBackend interface
    # ------------------------------------------------------------------

    def save(self, session_id: str, payload: str, saved_at: int) -> None:
        self._storage_dir.mkdir(parents=True, exist_ok=True)
        path = self._path_for(session_id)
        staging = path.with_name(f".{path.name}.tmp")
        staging.write_text(payload, encoding="utf-8")
        os.utime(staging, (saved_at, saved_at))
        os.replace(staging, path)

    def load(self, session_id: str) -> str:
        try:
            return self._path_for(session_id).read_text(encoding="utf-8")
        except FileNotFoundError:
            raise self._missing(session_id) from None

    def saved_at(self, session_id: str) -> int:
        try:
            return int(self._path_for(session_id).stat().st_mtime)
        except FileNotFoundError:
            raise self._missing(session_id) from None

    def list(self) -> list[str]:
        """Return session ids from file names; empty if the directory is missing."""
        if not self._storage_dir.is_dir():
            return []
        return [
            path.name[len(_FILE_PREFIX):]
            for path in self._storage_dir.glob(f"{_FILE_PREFIX}*")
            if path.is_file()
        ]

    def delete(self, session_id: str) -> None:
        try:
            self._path_for(session_id).unlink()
        except FileNotFoundError:
            raise self._missing(session_id) from None

    def exists(self, session_id: str) -> bool:
        return self._path_for(session_id).is_file()

    def purge(self, idle_before: int) -> list[str]:
        """Delete idle session files in a single directory scan.

        Files removed by another process during the scan are skipped.
        """
        if not self._storage_dir.is_dir():
            return []
        purged: list[str] = []
        for path in self._storage_dir.glob(f"{_FILE_PREFIX}*"):
            try:
                if path.stat().st_mtime >= idle_before:
                    continue
                path.unlink()
            except FileNotFoundError:
                continue
            purged.append(path.name[len(_FILE_PREFIX):])
        logger.debug("FilesystemBackend: purged %d idle session(s)", len(purged))
        return purged

    def __repr__(self) -> str:
        return f"FilesystemBackend(storage_dir={str(self._storage_dir)!r})"
