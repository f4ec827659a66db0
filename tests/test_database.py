"""
Tests for the installed package store.
"""

import json
from pathlib import Path

import pytest

from webpm.database import Database
from webpm.errors import NotInstalled, PackageLocked
from webpm.package import PackageRecord


def _record(name: str, version: str = "1.0.0") -> PackageRecord:
    return PackageRecord(
        name=name,
        directory=Path("/opt/webpm-apps") / name,
        install_date="2026-10-19T12:00:00+00:00",
        version=version,
        repository=f"https://example.test/{name}.git",
    )


@pytest.fixture
def db(tmp_path: Path) -> Database:
    return Database(tmp_path / "installed", tmp_path / "locks")


class TestRecords:
    """get / put / delete."""

    def test_put_and_get(self, db: Database):
        """A stored record reads back unchanged."""
        db.put(_record("my-app"))
        assert db.is_installed("my-app")
        assert db.get("my-app") == _record("my-app")

    def test_record_file_layout(self, db: Database):
        """Records are <name>.json with the documented keys."""
        db.put(_record("my-app"))
        data = json.loads((db.db_dir / "my-app.json").read_text())
        assert set(data) == {"name", "install_date", "directory", "repository", "version"}
        assert data["directory"] == "/opt/webpm-apps/my-app"

    def test_put_replaces(self, db: Database):
        """A second put overwrites instead of merging."""
        db.put(_record("my-app", "1.0.0"))
        db.put(_record("my-app", "1.1.0"))
        assert db.get("my-app").version == "1.1.0"

    def test_put_leaves_no_temp_files(self, db: Database):
        """The temp file is renamed into place."""
        db.put(_record("my-app"))
        assert [p.name for p in db.db_dir.iterdir()] == ["my-app.json"]

    def test_failed_put_keeps_old_record(self, db: Database, monkeypatch):
        """A crash during the write never exposes a partial record."""
        db.put(_record("my-app", "1.0.0"))

        def boom(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr("webpm.database.os.replace", boom)
        with pytest.raises(OSError):
            db.put(_record("my-app", "2.0.0"))

        assert db.get("my-app").version == "1.0.0"
        assert [p.name for p in db.db_dir.iterdir()] == ["my-app.json"]

    def test_get_missing(self, db: Database):
        """Unknown names raise NotInstalled."""
        with pytest.raises(NotInstalled):
            db.get("ghost-app")
        assert not db.is_installed("ghost-app")

    def test_delete_is_idempotent(self, db: Database):
        """Deleting twice is fine."""
        db.put(_record("my-app"))
        db.delete("my-app")
        db.delete("my-app")
        assert not db.is_installed("my-app")


class TestList:
    """Listing records."""

    def test_missing_directory(self, tmp_path: Path):
        """A store that was never created lists nothing."""
        db = Database(tmp_path / "nope", tmp_path / "locks")
        assert list(db.list()) == []

    def test_lists_all(self, db: Database):
        """Every record is listed."""
        db.put(_record("b-app"))
        db.put(_record("a-app"))
        assert sorted(r.name for r in db.list()) == ["a-app", "b-app"]

    def test_skips_corrupt(self, db: Database):
        """Unreadable records are skipped, not fatal."""
        db.put(_record("good"))
        (db.db_dir / "bad.json").write_text("{not json")
        assert [r.name for r in db.list()] == ["good"]


class TestLock:
    """Per-name advisory locks."""

    def test_lock_can_be_retaken(self, db: Database):
        """A released lock can be taken again."""
        with db.lock("my-app"):
            pass
        with db.lock("my-app"):
            pass

    def test_second_holder_is_refused(self, db: Database):
        """A second open of the same lock file cannot take it."""
        with db.lock("my-app"):
            with pytest.raises(PackageLocked):
                with db.lock("my-app"):
                    pass

    def test_other_names_are_independent(self, db: Database):
        """Locks are scoped per package name."""
        with db.lock("my-app"):
            with db.lock("other"):
                pass

    def test_lock_file_outlives_the_lock(self, db: Database, tmp_path: Path):
        """The lock file stays after release so every process locks the same inode."""
        with db.lock("my-app"):
            pass
        assert (tmp_path / "locks" / "my-app.lock").is_file()
