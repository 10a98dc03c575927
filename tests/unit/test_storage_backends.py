"""Unit tests for the session payload storage backends.

The StorageBackend contract, last-write stamps and idle purging are
exercised against every backend; the classes at the end cover
backend-specific behaviour.  File-based backends use tmp_path for isolation.
"""
from __future__ import annotations

import os
from pathlib import Path

import pytest

from conftest import FIXED_NOW
from deferred_session.storage.base import StorageBackend
from deferred_session.storage.filesystem import FilesystemBackend
from deferred_session.storage.memory import InMemoryBackend
from deferred_session.storage.sqlite import SQLiteBackend


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(params=["memory", "filesystem", "sqlite"])
def any_backend(request: pytest.FixtureRequest, tmp_path: Path) -> StorageBackend:
    if request.param == "memory":
        return InMemoryBackend()
    if request.param == "filesystem":
        return FilesystemBackend(storage_dir=tmp_path / "sessions")
    return SQLiteBackend(db_path=tmp_path / "sessions.db")


# ---------------------------------------------------------------------------
# Contract
# ---------------------------------------------------------------------------


class TestStorageContract:
    def test_save_and_load(self, any_backend: StorageBackend) -> None:
        any_backend.save("s1", '{"k": "v"}', saved_at=FIXED_NOW)
        assert any_backend.load("s1") == '{"k": "v"}'

    def test_save_replaces_payload_and_stamp(self, any_backend: StorageBackend) -> None:
        any_backend.save("s1", "original", saved_at=FIXED_NOW)
        any_backend.save("s1", "updated", saved_at=FIXED_NOW + 60)
        assert any_backend.load("s1") == "updated"
        assert any_backend.saved_at("s1") == FIXED_NOW + 60

    def test_saved_at(self, any_backend: StorageBackend) -> None:
        any_backend.save("s1", "payload", saved_at=FIXED_NOW)
        assert any_backend.saved_at("s1") == FIXED_NOW

    @pytest.mark.parametrize("operation", ["load", "saved_at", "delete"])
    def test_missing_session_raises_key_error(
        self, any_backend: StorageBackend, operation: str
    ) -> None:
        with pytest.raises(KeyError, match="ghost"):
            getattr(any_backend, operation)("ghost")

    def test_exists(self, any_backend: StorageBackend) -> None:
        assert any_backend.exists("s1") is False
        any_backend.save("s1", "payload", saved_at=FIXED_NOW)
        assert any_backend.exists("s1") is True

    def test_list_and_delete(self, any_backend: StorageBackend) -> None:
        assert any_backend.list() == []
        any_backend.save("keep", "k", saved_at=FIXED_NOW)
        any_backend.save("remove", "r", saved_at=FIXED_NOW)
        any_backend.delete("remove")
        assert any_backend.exists("remove") is False
        assert any_backend.list() == ["keep"]

    def test_unicode_payload(self, any_backend: StorageBackend) -> None:
        any_backend.save("s1", '{"name": "Zoë ✓"}', saved_at=FIXED_NOW)
        assert any_backend.load("s1") == '{"name": "Zoë ✓"}'


# ---------------------------------------------------------------------------
# Idle purging
# ---------------------------------------------------------------------------


class TestPurge:
    def test_purges_only_sessions_saved_before_cutoff(self, any_backend: StorageBackend) -> None:
        any_backend.save("stale", "a", saved_at=FIXED_NOW - 3600)
        any_backend.save("edge", "b", saved_at=FIXED_NOW - 600)
        any_backend.save("fresh", "c", saved_at=FIXED_NOW)

        purged = any_backend.purge(idle_before=FIXED_NOW - 600)

        assert purged == ["stale"]
        assert sorted(any_backend.list()) == ["edge", "fresh"]

    def test_purge_on_empty_store(self, any_backend: StorageBackend) -> None:
        assert any_backend.purge(idle_before=FIXED_NOW) == []

    def test_resaving_keeps_session_alive(self, any_backend: StorageBackend) -> None:
        any_backend.save("s1", "a", saved_at=FIXED_NOW - 3600)
        any_backend.save("s1", "a", saved_at=FIXED_NOW)
        assert any_backend.purge(idle_before=FIXED_NOW - 600) == []
        assert any_backend.exists("s1")


# ---------------------------------------------------------------------------
# InMemoryBackend
# ---------------------------------------------------------------------------


class TestInMemoryBackend:
    def test_len_and_clear(self) -> None:
        backend = InMemoryBackend()
        backend.save("a", "1", saved_at=FIXED_NOW)
        backend.save("b", "2", saved_at=FIXED_NOW)
        assert len(backend) == 2
        backend.clear()
        assert len(backend) == 0

    def test_list_keeps_first_save_order(self) -> None:
        backend = InMemoryBackend()
        backend.save("b", "1", saved_at=FIXED_NOW)
        backend.save("a", "2", saved_at=FIXED_NOW)
        backend.save("b", "3", saved_at=FIXED_NOW + 1)
        assert backend.list() == ["b", "a"]

    def test_repr_contains_count(self) -> None:
        backend = InMemoryBackend()
        backend.save("x", "y", saved_at=FIXED_NOW)
        assert "sessions=1" in repr(backend)


# ---------------------------------------------------------------------------
# FilesystemBackend
# ---------------------------------------------------------------------------


class TestFilesystemBackend:
    def test_file_layout_and_mtime(self, tmp_path: Path) -> None:
        storage_dir = tmp_path / "nested" / "dir"
        FilesystemBackend(storage_dir=storage_dir).save("s1", "payload", saved_at=FIXED_NOW)
        path = storage_dir / "sess_s1"
        assert path.read_text(encoding="utf-8") == "payload"
        assert int(path.stat().st_mtime) == FIXED_NOW

    def test_no_staging_files_left_behind(self, tmp_path: Path) -> None:
        backend = FilesystemBackend(storage_dir=tmp_path)
        backend.save("s1", "one", saved_at=FIXED_NOW)
        backend.save("s1", "two", saved_at=FIXED_NOW)
        assert sorted(p.name for p in tmp_path.iterdir()) == ["sess_s1"]

    def test_unrelated_files_ignored(self, tmp_path: Path) -> None:
        (tmp_path / "notes.txt").write_text("x", encoding="utf-8")
        backend = FilesystemBackend(storage_dir=tmp_path)
        backend.save("s1", "payload", saved_at=FIXED_NOW)
        assert backend.list() == ["s1"]
        backend.purge(idle_before=FIXED_NOW + 10)
        assert (tmp_path / "notes.txt").exists()

    def test_externally_touched_file_counts_as_saved(self, tmp_path: Path) -> None:
        backend = FilesystemBackend(storage_dir=tmp_path)
        backend.save("s1", "payload", saved_at=FIXED_NOW)
        os.utime(tmp_path / "sess_s1", (FIXED_NOW + 500, FIXED_NOW + 500))
        assert backend.saved_at("s1") == FIXED_NOW + 500

    def test_list_and_purge_when_directory_missing(self, tmp_path: Path) -> None:
        backend = FilesystemBackend(storage_dir=tmp_path / "absent")
        assert backend.list() == []
        assert backend.purge(idle_before=FIXED_NOW) == []

    def test_session_id_cannot_escape_directory(self, tmp_path: Path) -> None:
        storage_dir = tmp_path / "sessions"
        backend = FilesystemBackend(storage_dir=storage_dir)
        backend.save("../../escape", "payload", saved_at=FIXED_NOW)
        assert (storage_dir / "sess_escape").exists()
        assert not (tmp_path / "escape").exists()

    def test_default_directory(self) -> None:
        assert ".deferred-session" in str(FilesystemBackend().storage_dir)


# ---------------------------------------------------------------------------
# SQLiteBackend
# ---------------------------------------------------------------------------


class TestSQLiteBackend:
    def test_database_file_created(self, tmp_path: Path) -> None:
        db_path = tmp_path / "nested" / "sessions.db"
        SQLiteBackend(db_path=db_path).save("s1", "payload", saved_at=FIXED_NOW)
        assert db_path.exists()

    def test_data_survives_new_instance(self, tmp_path: Path) -> None:
        db_path = tmp_path / "sessions.db"
        SQLiteBackend(db_path=db_path).save("s1", "payload", saved_at=FIXED_NOW)
        reopened = SQLiteBackend(db_path=db_path)
        assert reopened.load("s1") == "payload"
        assert reopened.saved_at("s1") == FIXED_NOW

    def test_list_most_recent_first(self, tmp_path: Path) -> None:
        backend = SQLiteBackend(db_path=tmp_path / "sessions.db")
        backend.save("old", "a", saved_at=FIXED_NOW - 10)
        backend.save("new", "b", saved_at=FIXED_NOW)
        assert backend.list() == ["new", "old"]

    def test_repr_contains_path(self, tmp_path: Path) -> None:
        assert "sessions.db" in repr(SQLiteBackend(db_path=tmp_path / "sessions.db"))
