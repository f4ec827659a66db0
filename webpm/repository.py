"""Package index lookups."""

import json
import logging
import time
from pathlib import Path
from typing import Dict, List, Optional

from webpm import console
from webpm.errors import FetchFailed, InvalidManifest, UnresolvedPackage
from webpm.fetcher import SourceFetcher
from webpm.package import IndexEntry

logger = logging.getLogger(__name__)

INDEX_FILE = "packages.json"
MANIFEST_DIR = "packages"


class Repository:
    """Resolves package names through a remote, locally cached index."""

    def __init__(self, repo_url: str, cache_dir: Path, fetcher: SourceFetcher, cache_ttl: int = 3600):
        """Initialize repository with index location and cache directory."""
        self.repo_url = repo_url.rstrip("/")
        self.cache_dir = Path(cache_dir)
        self.fetcher = fetcher
        self.cache_ttl = cache_ttl
        self._index: Optional[Dict[str, IndexEntry]] = None

    @property
    def index_url(self) -> str:
        return f"{self.repo_url}/{INDEX_FILE}"

    @property
    def index_cache(self) -> Path:
        return self.cache_dir / INDEX_FILE

    def manifest_url(self, name: str) -> str:
        return f"{self.repo_url}/{MANIFEST_DIR}/{name}.json"

    def cache_is_stale(self) -> bool:
        """Check if the cached index is missing or older than the TTL."""
        try:
            age = time.time() - self.index_cache.stat().st_mtime
        except FileNotFoundError:
            return True
        return age > self.cache_ttl

    def refresh(self, force: bool = False) -> Dict[str, IndexEntry]:
        """
        Load the index, downloading it first if needed.

        A failed download falls back to an existing (stale) cache unless
        ``force`` is set; without any cache it is a hard error.
        """
        if self._index is not None and not force:
            return self._index

        if force or self.cache_is_stale():
            try:
                self.fetcher.download(self.index_url, self.index_cache)
            except FetchFailed as e:
                if force or not self.index_cache.is_file():
                    raise
                console.warn(f"Could not refresh package index, using cached copy ({e})")

        self._index = self._load_index(self.index_cache)
        return self._index

    @staticmethod
    def _load_index(path: Path) -> Dict[str, IndexEntry]:
        try:
            with open(path, "r", encoding="utf-8") as f:
                document = json.load(f)
        except ValueError as e:
            raise InvalidManifest(f"Invalid package index {path}: {e}")

        problems = validate_index(document)
        packages = document.get("packages") if isinstance(document, dict) else None
        if not isinstance(packages, list):
            raise InvalidManifest(f"Invalid package index {path}: {problems[0]}")
        for problem in problems:
            logger.info("Package index: %s", problem)

        index = {}
        for item in packages:
            try:
                entry = IndexEntry(item)
            except InvalidManifest:
                continue
            index.setdefault(entry.name, entry)
        return index

    def lookup(self, name: str) -> Optional[IndexEntry]:
        """
        Find a package by exact name.
        Checks the index first, then the per-package manifest.
        """
        entry = self.refresh().get(name)
        if entry is not None:
            return entry
        return self._fetch_manifest(name)

    def _fetch_manifest(self, name: str) -> Optional[IndexEntry]:
        manifest_path = self.cache_dir / f"{name}.json"
        try:
            self.fetcher.download(self.manifest_url(name), manifest_path)
        except FetchFailed as e:
            logger.info("No manifest for %s: %s", name, e)
            return None
        entry = IndexEntry.from_file(manifest_path)
        if entry.name != name:
            logger.warning("Manifest for %s names itself %s", name, entry.name)
        return entry

    def resolve(self, name: str) -> str:
        """Resolve a package name to its repository URL."""
        entry = self.lookup(name)
        if entry is None:
            raise UnresolvedPackage(name)
        return entry.require_repository()

    def search(self, query: str) -> List[IndexEntry]:
        """Search a freshly fetched index for names containing ``query``."""
        index = self.refresh(force=True)
        return [entry for name, entry in sorted(index.items()) if query in name]


def validate_index(document) -> List[str]:
    """Return a list of problems found in an index document."""
    if not isinstance(document, dict):
        return ["index must be a JSON object"]
    packages = document.get("packages")
    if not isinstance(packages, list):
        return ["index must contain a 'packages' array"]

    problems = []
    seen = set()
    for i, item in enumerate(packages):
        label = f"entry {i + 1}"
        if not isinstance(item, dict):
            problems.append(f"{label} is not an object")
            continue
        name = item.get("name")
        if not isinstance(name, str) or not name:
            problems.append(f"{label} is missing 'name'")
            continue
        label = f"{label} ({name})"
        if name in seen:
            problems.append(f"{label} is a duplicate")
        seen.add(name)
        repository = item.get("repository")
        if not isinstance(repository, str) or not repository:
            problems.append(f"{label} is missing 'repository'")
        for field in ("description", "version"):
            if field in item and item[field] is not None and not isinstance(item[field], str):
                problems.append(f"{label} field '{field}' must be a string")
    return problems
