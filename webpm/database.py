"""Installed package metadata store."""

import contextlib
import fcntl
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Iterator

from webpm.errors import NotInstalled, PackageLocked, WebpmError
from webpm.package import PackageRecord

logger = logging.getLogger(__name__)


class Database:
    """
    Tracks installed packages, one JSON record per package.

    A record's presence is the only thing that makes a package installed.
    """

    def __init__(self, db_dir: Path, lock_dir: Path):
        """Initialize database with record and lock directories."""
        self.db_dir = Path(db_dir)
        self.lock_dir = Path(lock_dir)

    def _record_file(self, package_name: str) -> Path:
        return self.db_dir / f"{package_name}.json"

    def is_installed(self, package_name: str) -> bool:
        """Check if a package is installed."""
        return self._record_file(package_name).is_file()

    def get(self, package_name: str) -> PackageRecord:
        """Get the record of an installed package."""
        record_file = self._record_file(package_name)
        try:
            with open(record_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            raise NotInstalled(package_name)
        except ValueError as e:
            raise WebpmError(f"Corrupt package record {record_file}: {e}")
        return PackageRecord.from_dict(data)

    def put(self, record: PackageRecord):
        """Write a record, atomically replacing any previous one."""
        self.db_dir.mkdir(parents=True, exist_ok=True)
        target = self._record_file(record.name)
        content = json.dumps(record.to_dict(), indent=4) + "\n"

        fd, tmp_path = tempfile.mkstemp(dir=self.db_dir, prefix=f".{record.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, target)
        except BaseException:
            with contextlib.suppress(FileNotFoundError):
                os.unlink(tmp_path)
            raise
        logger.debug("Saved record %s", target)

    def delete(self, package_name: str):
        """Remove a package record. Missing records are ignored."""
        with contextlib.suppress(FileNotFoundError):
            self._record_file(package_name).unlink()
            logger.debug("Deleted record for %s", package_name)

    def list(self) -> Iterator[PackageRecord]:
        """Iterate over all installed package records."""
        if not self.db_dir.is_dir():
            return
        for record_file in sorted(self.db_dir.glob("*.json")):
            try:
                yield self.get(record_file.stem)
            except WebpmError as e:
                logger.warning("Skipping unreadable record %s: %s", record_file, e)

    @contextlib.contextmanager
    def lock(self, package_name: str):
        """
        Hold an exclusive advisory lock on a package name.
        The lock dies with the process, so a crash never leaves it held.
        """
        self.lock_dir.mkdir(parents=True, exist_ok=True)
        lock_path = self.lock_dir / f"{package_name}.lock"
        with open(lock_path, "a+", encoding="utf-8") as lf:
            try:
                fcntl.flock(lf.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
            except BlockingIOError:
                raise PackageLocked(package_name)
            try:
                yield
            finally:
                fcntl.flock(lf.fileno(), fcntl.LOCK_UN)
