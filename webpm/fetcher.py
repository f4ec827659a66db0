"""Source code fetching for packages."""

import enum
import logging
import os
import shutil
import subprocess
import tempfile
from functools import partial
from pathlib import Path
from typing import Callable, Iterable, Optional
from urllib.error import URLError
from urllib.parse import urlparse
from urllib.request import Request, urlopen

from webpm import __version__
from webpm.errors import CloneFailed, FetchFailed

logger = logging.getLogger(__name__)

URL_PREFIXES = ("http://", "https://", "git@")
LOCAL_PREFIXES = ("/", "./", "../", "~")
REPO_SUFFIX = ".git"


class Outcome(enum.Enum):
    """Result of one step in a fallback chain."""

    SUCCESS = "success"
    NEXT = "next"
    EXHAUSTED = "exhausted"


def run_fallbacks(strategies: Iterable[Callable[[], Outcome]]) -> Outcome:
    """Try strategies in order until one succeeds."""
    for strategy in strategies:
        if strategy() is Outcome.SUCCESS:
            return Outcome.SUCCESS
    return Outcome.EXHAUSTED


def is_url(ref: str) -> bool:
    """Check if a package reference is a repository URL."""
    return ref.startswith(URL_PREFIXES)


def is_local_path(ref: str) -> bool:
    """Check if a package reference is an explicit local directory path."""
    return ref.startswith(LOCAL_PREFIXES)


def derive_name(ref: str) -> str:
    """
    Package name implied by a URL or local path.
    ``https://host/user/foo.git`` and ``git@host:user/foo.git`` both give ``foo``.
    """
    if is_local_path(ref):
        return Path(ref).expanduser().resolve().name

    path = urlparse(ref).path if "://" in ref else ref.split(":", 1)[-1]
    segment = path.rstrip("/").rsplit("/", 1)[-1]
    if segment.endswith(REPO_SUFFIX):
        segment = segment[: -len(REPO_SUFFIX)]
    return segment


class SourceFetcher:
    """Fetches and refreshes package source trees."""

    def __init__(self, runner: Callable = subprocess.run, http_timeout: int = 300):
        """Initialize fetcher with a process runner."""
        self.runner = runner
        self.http_timeout = http_timeout

    def fetch(self, source: str, target_dir: Path):
        """Fetch source into a fresh target directory."""
        target_dir = Path(target_dir)
        if target_dir.exists():
            raise CloneFailed(f"Destination already exists: {target_dir}")
        target_dir.parent.mkdir(parents=True, exist_ok=True)

        if is_local_path(source):
            self._fetch_local(source, target_dir)
        else:
            self._fetch_git(source, target_dir)

    def _fetch_git(self, url: str, target_dir: Path):
        """Clone a git repository."""
        try:
            self.runner(
                ["git", "clone", url, str(target_dir)],
                check=True,
                capture_output=True,
                text=True,
                errors="replace",
            )
        except subprocess.CalledProcessError as e:
            detail = (e.stderr or "").strip()
            raise CloneFailed(f"Clone failed: {url}" + (f": {detail}" if detail else ""))
        except OSError as e:
            raise CloneFailed(f"Clone failed: {url}: {e}")

    def _fetch_local(self, source: str, target_dir: Path):
        """Copy a local source directory."""
        path = Path(source).expanduser()
        if not path.is_dir():
            raise CloneFailed(f"Local source path does not exist: {path}")
        shutil.copytree(path, target_dir, symlinks=True, ignore=shutil.ignore_patterns("node_modules"))

    def pull(self, source_dir: Path, branches: Iterable[str]) -> Outcome:
        """
        Pull the latest changes, trying each branch in turn.
        Returns Outcome.EXHAUSTED if no branch could be pulled.
        """
        strategies = [partial(self._pull_branch, Path(source_dir), branch) for branch in branches]
        return run_fallbacks(strategies)

    def _pull_branch(self, source_dir: Path, branch: str) -> Outcome:
        try:
            self.runner(
                ["git", "pull", "origin", branch],
                cwd=source_dir,
                check=True,
                capture_output=True,
                text=True,
                errors="replace",
            )
        except (subprocess.CalledProcessError, OSError) as e:
            logger.info("git pull origin %s failed in %s: %s", branch, source_dir, e)
            return Outcome.NEXT
        return Outcome.SUCCESS

    def download(self, url: str, target_path: Path):
        """Download a file, replacing the target only on success."""
        target_path = Path(target_path)
        target_path.parent.mkdir(parents=True, exist_ok=True)
        logger.debug("Downloading %s", url)

        req = Request(url)
        req.add_header("User-Agent", f"webpm/{__version__}")

        fd, tmp_path = tempfile.mkstemp(dir=target_path.parent, prefix=f".{target_path.name}.", suffix=".part")
        try:
            with os.fdopen(fd, "wb") as f:
                with urlopen(req, timeout=self.http_timeout) as response:
                    shutil.copyfileobj(response, f)
            os.replace(tmp_path, target_path)
        except (URLError, OSError, ValueError) as e:
            _discard(tmp_path)
            raise FetchFailed(f"Failed to download {url}: {e}")
        except BaseException:
            _discard(tmp_path)
            raise


def _discard(path: Optional[str]):
    try:
        os.unlink(path)
    except FileNotFoundError:
        pass
