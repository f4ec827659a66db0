"""Package records, index entries and app manifest handling."""

import json
import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional

from webpm.errors import InvalidManifest, InvalidPackageName

logger = logging.getLogger(__name__)

UNKNOWN_VERSION = "unknown"
APP_MANIFEST = "package.json"

_NAME_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._+-]*$")


def validate_name(name: str) -> str:
    """Return ``name`` if it is safe as a file and directory name."""
    if not name or not _NAME_RE.match(name):
        raise InvalidPackageName(f"Invalid package name: {name!r}")
    return name


def timestamp() -> str:
    """Current time as ISO-8601 with seconds and UTC offset."""
    return datetime.now().astimezone().isoformat(timespec="seconds")


def read_app_manifest(app_dir: Path) -> Dict:
    """
    Read the app's own package.json.
    Returns an empty dict if it is missing or unreadable.
    """
    manifest_path = Path(app_dir) / APP_MANIFEST
    if not manifest_path.is_file():
        return {}
    try:
        with open(manifest_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.debug("Cannot read %s: %s", manifest_path, e)
        return {}
    return data if isinstance(data, dict) else {}


def app_version(app_dir: Path) -> str:
    """Version string from the app manifest, or ``unknown``."""
    version = read_app_manifest(app_dir).get("version")
    if not isinstance(version, str) or not version:
        return UNKNOWN_VERSION
    return version


class PackageRecord:
    """Durable record of one installed package."""

    def __init__(
        self,
        name: str,
        directory: Path,
        install_date: str,
        version: str = UNKNOWN_VERSION,
        repository: str = "",
    ):
        """Initialize record."""
        self.name = name
        self.directory = Path(directory)
        self.install_date = install_date
        self.version = version or UNKNOWN_VERSION
        self.repository = repository or ""

    @classmethod
    def from_dict(cls, data: Dict) -> "PackageRecord":
        """Load record from a stored dictionary."""
        if not isinstance(data, dict):
            raise InvalidManifest("Package record must be a JSON object")
        for field in ("name", "directory", "install_date"):
            if not data.get(field):
                raise InvalidManifest(f"Package record is missing '{field}'")
        return cls(
            name=data["name"],
            directory=Path(data["directory"]),
            install_date=data["install_date"],
            version=data.get("version") or UNKNOWN_VERSION,
            repository=data.get("repository") or "",
        )

    def to_dict(self) -> Dict:
        """Convert record to dictionary."""
        return {
            "name": self.name,
            "install_date": self.install_date,
            "directory": str(self.directory),
            "repository": self.repository,
            "version": self.version,
        }

    def refreshed(self, version: str) -> "PackageRecord":
        """Copy of this record with a new version and timestamp."""
        return PackageRecord(
            name=self.name,
            directory=self.directory,
            install_date=timestamp(),
            version=version,
            repository=self.repository,
        )

    def __eq__(self, other):
        if not isinstance(other, PackageRecord):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self):
        return f"PackageRecord({self.name!r}, version={self.version!r})"


class IndexEntry:
    """A package as described by the remote index."""

    def __init__(self, manifest: Dict):
        """Initialize entry from an index or manifest dictionary."""
        if not isinstance(manifest, dict):
            raise InvalidManifest("Package manifest must be a JSON object")
        self.name = manifest.get("name")
        self.description = manifest.get("description") or ""
        self.repository: Optional[str] = manifest.get("repository")
        self.version = manifest.get("version") or UNKNOWN_VERSION

        if not isinstance(self.name, str) or not self.name:
            raise InvalidManifest("Package manifest must include a string 'name' field")

    @classmethod
    def from_file(cls, path: Path) -> "IndexEntry":
        """Load entry from a JSON manifest file."""
        try:
            with open(path, "r", encoding="utf-8") as f:
                manifest = json.load(f)
        except ValueError as e:
            raise InvalidManifest(f"Invalid package manifest {path}: {e}")
        return cls(manifest)

    def require_repository(self) -> str:
        """Repository URL, raising if the manifest has none."""
        if not isinstance(self.repository, str) or not self.repository:
            raise InvalidManifest(f"Invalid package manifest for '{self.name}': no repository")
        return self.repository

    def to_dict(self) -> Dict:
        """Convert entry to dictionary."""
        return {
            "name": self.name,
            "description": self.description,
            "repository": self.repository,
            "version": self.version,
        }
