"""Main package manager orchestrator."""

import logging
import shutil
import subprocess
from pathlib import Path
from typing import Callable, List, Optional

from webpm import console
from webpm.builder import Builder, BuildResult
from webpm.config import Config
from webpm.database import Database
from webpm.desktop import DesktopEntries
from webpm.errors import MissingDependency, WebpmError
from webpm.fetcher import Outcome, SourceFetcher, derive_name, is_local_path, is_url
from webpm.package import IndexEntry, PackageRecord, app_version, timestamp, validate_name
from webpm.prompt import AssumeNo, Prompt
from webpm.repository import Repository

logger = logging.getLogger(__name__)

LIST_ROW = "%-20s %-15s %-30s"


class PackageManager:
    """
    Installs, updates and removes web apps.

    Only ``Absent`` and ``Installed`` are ever visible in the database: a
    record is written as the last step of a successful install or update,
    so a failure part way through never leaves a package looking installed.
    """

    def __init__(self, config: Config, prompt: Optional[Prompt] = None, runner: Callable = subprocess.run):
        """Initialize package manager."""
        self.config = config
        self.prompt = prompt or AssumeNo()
        self.database = Database(config.installed_dir, config.lock_dir)
        self.fetcher = SourceFetcher(runner=runner, http_timeout=config.http_timeout)
        self.repository = Repository(config.repo_url, config.cache_dir, self.fetcher, config.cache_ttl)
        self.builder = Builder(config, runner=runner)
        self.desktop = DesktopEntries(config.desktop_dir, config.start_command)

    def check_dependencies(self):
        """Fail early if a required executable is not on PATH."""
        for tool in self.config.required_tools:
            if shutil.which(tool) is None:
                raise MissingDependency(tool)

    def install(self, ref: str) -> Optional[PackageRecord]:
        """
        Install an app from an index name, repository URL or local path.
        Returns None if the app was already installed and reinstall was declined.
        """
        self.check_dependencies()
        self.config.ensure_dirs()

        if is_url(ref):
            name, source = derive_name(ref), ref
        elif is_local_path(ref):
            name, source = derive_name(ref), str(Path(ref).expanduser().resolve())
        else:
            name, source = ref, None
        validate_name(name)

        console.msg(f"Installing {name}...")
        with self.database.lock(name):
            if self.database.is_installed(name):
                console.warn(f"{name} already installed")
                if not self.prompt.confirm("Reinstall?"):
                    console.info(f"Keeping the installed {name}")
                    return None
                self._remove(self.database.get(name))
            record = self._install(name, source)

        console.msg(f"{name} installed successfully!")
        console.info(f"Location: {record.directory}")
        return record

    def _install(self, name: str, source: Optional[str]) -> PackageRecord:
        app_dir = self.config.package_dir(name)
        if app_dir.exists():
            # No record, so this is left over from a failed install
            console.warn(f"Removing leftover directory {app_dir}")
            shutil.rmtree(app_dir)

        if source is None:
            console.info("Fetching package info...")
            source = self.repository.resolve(name)

        if is_local_path(source):
            console.info(f"Copying from {source}...")
            repository = ""
        else:
            console.info(f"Cloning from {source}...")
            repository = source
        self.fetcher.fetch(source, app_dir)

        self._build(app_dir)

        self.desktop.register(name, app_dir)
        record = PackageRecord(
            name=name,
            directory=app_dir,
            install_date=timestamp(),
            version=app_version(app_dir),
            repository=repository,
        )
        try:
            self.database.put(record)
        except BaseException:
            self.desktop.unregister(name)
            raise
        return record

    def _build(self, app_dir: Path) -> BuildResult:
        console.info("Installing dependencies and building application...")
        result = self.builder.build(app_dir)
        for warning in result.warnings:
            console.warn(warning)
        if not result.ok:
            console.output(result.log_tail())
            raise result.error
        return result

    def update(self, name: str) -> PackageRecord:
        """Pull, rebuild and re-record an installed app."""
        self.check_dependencies()
        validate_name(name)
        self.database.get(name)

        console.msg(f"Updating {name}...")
        with self.database.lock(name):
            record = self.database.get(name)
            app_dir = record.directory
            if not app_dir.is_dir():
                raise WebpmError(f"Install directory {app_dir} is missing, reinstall {name}")

            if record.repository:
                console.info("Pulling latest changes...")
                if self.fetcher.pull(app_dir, self.config.pull_branches) is Outcome.EXHAUSTED:
                    console.warn("Pull may have failed, rebuilding the current source")
            else:
                console.info("No source repository recorded, rebuilding the local copy")

            self._build(app_dir)
            self.desktop.register(name, app_dir)
            updated = record.refreshed(app_version(app_dir))
            self.database.put(updated)

        console.msg(f"{name} updated successfully!")
        return updated

    def remove(self, name: str):
        """Remove an installed app, its launcher and its record."""
        validate_name(name)
        self.database.get(name)

        console.msg(f"Removing {name}...")
        with self.database.lock(name):
            self._remove(self.database.get(name))
        console.msg(f"{name} removed successfully!")

    def _remove(self, record: PackageRecord):
        # Each step tolerates an earlier partial removal, the record goes last
        if record.directory.exists():
            shutil.rmtree(record.directory)
        self.desktop.unregister(record.name)
        self.database.delete(record.name)

    def list_installed(self) -> List[PackageRecord]:
        """List installed apps."""
        records = sorted(self.database.list(), key=lambda r: r.name)
        if not records:
            console.info("No apps installed")
            return records

        console.msg("Installed apps:")
        console.plain(LIST_ROW % ("NAME", "VERSION", "INSTALLED"))
        console.plain(LIST_ROW % ("----", "-------", "---------"))
        for record in records:
            console.plain(LIST_ROW % (record.name, record.version, record.install_date))
        return records

    def search(self, query: str) -> List[IndexEntry]:
        """Search the package index."""
        console.msg(f"Searching for '{query}'...")
        results = self.repository.search(query)
        console.plain()
        if not results:
            console.info("No packages found")
            return results

        for entry in results:
            console.plain(f"{entry.name} - {entry.description}")
        return results

    def show_info(self, name: str):
        """Show an installed app's record, or its index entry."""
        validate_name(name)
        if self.database.is_installed(name):
            record = self.database.get(name)
            console.plain(f"Name: {record.name}")
            console.plain(f"Version: {record.version}")
            console.plain(f"Installed: {record.install_date}")
            console.plain(f"Directory: {record.directory}")
            if record.repository:
                console.plain(f"Repository: {record.repository}")
            return record

        try:
            entry = self.repository.lookup(name)
        except WebpmError as e:
            logger.info("Index lookup for %s failed: %s", name, e)
            entry = None
        if entry is None:
            console.warn(f"Package '{name}' not found")
            return None

        console.plain(f"Name: {entry.name}")
        console.plain(f"Version: {entry.version}")
        console.plain(f"Description: {entry.description}")
        console.plain(f"Repository: {entry.repository}")
        return entry

    def self_update(self, target: Path):
        """Replace the webpm executable with the latest published one."""
        target = Path(target)
        console.msg("Updating webpm...")
        self.fetcher.download(self.config.self_update_url, target)
        target.chmod(0o755)
        console.msg("webpm updated successfully!")
