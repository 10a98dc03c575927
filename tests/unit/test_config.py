"""Unit tests for deferred_session.config.SessionConfig."""
from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from conftest import FIXED_NOW, FixedClock, seed_session
from deferred_session.config import SessionConfig
from deferred_session.host.stored import StoredHostSession
from deferred_session.storage.filesystem import FilesystemBackend
from deferred_session.storage.memory import InMemoryBackend
from deferred_session.storage.sqlite import SQLiteBackend
from deferred_session.store.session_store import DEFAULT_STORAGE_KEY


class TestDefaults:
    def test_defaults(self) -> None:
        config = SessionConfig()
        assert config.storage_key == DEFAULT_STORAGE_KEY
        assert config.session_name == "DSESSID"
        assert config.backend == "filesystem"
        assert config.format == "json"
        assert config.cookie.path == "/"

    def test_rejects_unknown_backend(self) -> None:
        with pytest.raises(ValidationError):
            SessionConfig(backend="mongo")  # type: ignore[arg-type]

    def test_rejects_empty_storage_key(self) -> None:
        with pytest.raises(ValidationError):
            SessionConfig(storage_key="")

    def test_rejects_negative_cookie_lifetime(self) -> None:
        with pytest.raises(ValidationError):
            SessionConfig.model_validate({"cookie": {"lifetime": -1}})


class TestFromYaml:
    def test_loads_file(self, tmp_path: Path) -> None:
        path = tmp_path / "session.yaml"
        path.write_text(
            "storage_key: app_data\n"
            "backend: sqlite\n"
            f"db_path: {tmp_path / 'app.db'}\n"
            "format: yaml\n"
            "cookie:\n"
            "  path: /app\n"
            "  secure: true\n",
            encoding="utf-8",
        )
        config = SessionConfig.from_yaml(path)
        assert config.storage_key == "app_data"
        assert config.backend == "sqlite"
        assert config.db_path == tmp_path / "app.db"
        assert config.format == "yaml"
        assert config.cookie.path == "/app"
        assert config.cookie.secure is True

    def test_empty_file_gives_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert SessionConfig.from_yaml(path) == SessionConfig()


class TestBuilders:
    def test_build_memory_backend(self) -> None:
        assert isinstance(SessionConfig(backend="memory").build_backend(), InMemoryBackend)

    def test_build_filesystem_backend(self, tmp_path: Path) -> None:
        backend = SessionConfig(backend="filesystem", storage_dir=tmp_path).build_backend()
        assert isinstance(backend, FilesystemBackend)
        assert backend.storage_dir == tmp_path

    def test_build_sqlite_backend(self, tmp_path: Path) -> None:
        backend = SessionConfig(backend="sqlite", db_path=tmp_path / "s.db").build_backend()
        assert isinstance(backend, SQLiteBackend)

    def test_build_host_uses_settings(self) -> None:
        config = SessionConfig(backend="memory", session_name="APP")
        host = config.build_host(cookies={"APP": "abc"})
        assert isinstance(host, StoredHostSession)
        assert host.session_name == "APP"
        assert host.session_id == "abc"
        assert host.get_cookie_params() == config.cookie

    def test_build_store_round_trip(self) -> None:
        config = SessionConfig(backend="memory", storage_key="ns", format="yaml")
        backend = InMemoryBackend()

        writer = config.build_store(config.build_host(backend=backend))
        writer.set("greeting", "hello")
        writer.commit()
        session_id = writer.host.session_id

        reader = config.build_store(config.build_host(cookies={"DSESSID": session_id}, backend=backend))
        assert reader.storage_key == "ns"
        assert reader.get("greeting") == "hello"


class TestIdleLimit:
    def test_disabled_by_default(self) -> None:
        assert SessionConfig().max_idle is None

    def test_rejects_non_positive_limit(self) -> None:
        with pytest.raises(ValidationError):
            SessionConfig(max_idle=0)

    def test_host_discards_idle_session(self) -> None:
        config = SessionConfig(backend="memory", max_idle=60)
        backend = InMemoryBackend()
        seed_session(backend, "old", {"k": "v"}, saved_at=FIXED_NOW - 61)

        host = config.build_host(cookies={"DSESSID": "old"}, backend=backend, clock=FixedClock())
        store = config.build_store(host)
        assert store.get("k") is None
        assert not backend.exists("old")
