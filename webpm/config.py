"""Configuration management for webpm."""

import configparser
import dataclasses
import logging
import os
import shlex
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Mapping, Optional, Tuple

from webpm.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_REPO_URL = "https://raw.githubusercontent.com/webpm-apps/index/main"
DEFAULT_SELF_UPDATE_URL = "https://raw.githubusercontent.com/webpm-apps/webpm/main/webpm.pyz"

SYSTEM_CONFIG = Path("/etc/webpm.conf")
USER_CONFIG = Path("~/.config/webpm.conf")
CONFIG_SECTION = "webpm"

# Environment variable -> Config field
ENV_OVERRIDES = {
    "WEBPM_DIR": "install_root",
    "WEBPM_LIB": "state_root",
    "WEBPM_DESKTOP_DIR": "desktop_dir",
    "WEBPM_REPO_URL": "repo_url",
}


@dataclass(frozen=True)
class Config:
    """webpm configuration, built once per process."""

    install_root: Path
    state_root: Path
    desktop_dir: Path
    repo_url: str = DEFAULT_REPO_URL
    self_update_url: str = DEFAULT_SELF_UPDATE_URL
    cache_ttl: int = 3600
    strict_build: bool = True
    install_command: Tuple[str, ...] = ("npm", "install", "--prefer-offline", "--no-audit")
    build_command: Tuple[str, ...] = ("npm", "run", "build")
    start_command: str = "npm start"
    build_output: str = "build"
    assets_dir: str = "static"
    pull_branches: Tuple[str, ...] = ("main", "master")
    required_tools: Tuple[str, ...] = ("node", "npm", "git")
    http_timeout: int = 300

    @property
    def cache_dir(self) -> Path:
        return self.state_root / "cache"

    @property
    def installed_dir(self) -> Path:
        return self.state_root / "installed"

    @property
    def lock_dir(self) -> Path:
        return self.state_root / "locks"

    def ensure_dirs(self):
        """Create the directories webpm writes into."""
        for directory in (self.install_root, self.cache_dir, self.installed_dir, self.lock_dir):
            directory.mkdir(parents=True, exist_ok=True)

    def package_dir(self, name: str) -> Path:
        """Install directory for a package."""
        return self.install_root / name

    @classmethod
    def defaults(cls, privileged: Optional[bool] = None, home: Optional[Path] = None) -> "Config":
        """Default roots for a system-wide (root) or per-user install."""
        if privileged is None:
            privileged = hasattr(os, "geteuid") and os.geteuid() == 0
        home = Path(home) if home is not None else Path.home()

        if privileged:
            return cls(
                install_root=Path("/opt/webpm-apps"),
                state_root=Path("/var/lib/webpm"),
                desktop_dir=Path("/usr/share/applications"),
            )
        return cls(
            install_root=home / ".local" / "share" / "webpm" / "apps",
            state_root=home / ".local" / "share" / "webpm",
            desktop_dir=home / ".local" / "share" / "applications",
        )

    @classmethod
    def load(
        cls,
        config_files: Optional[Iterable[Path]] = None,
        environ: Optional[Mapping[str, str]] = None,
        privileged: Optional[bool] = None,
        home: Optional[Path] = None,
    ) -> "Config":
        """
        Build the effective configuration.
        Defaults, then environment, then config files in order (later wins).
        """
        environ = os.environ if environ is None else environ
        config = cls.defaults(privileged=privileged, home=home)

        env_values = {
            field: environ[var] for var, field in ENV_OVERRIDES.items() if environ.get(var)
        }
        config = config.with_overrides(env_values)

        if config_files is None:
            config_files = [SYSTEM_CONFIG, USER_CONFIG]
        for path in config_files:
            path = Path(path).expanduser()
            if path.is_file():
                config = config.with_overrides(read_config_file(path))
        return config

    def with_overrides(self, values: Mapping[str, str]) -> "Config":
        """Copy of this config with string values converted and applied."""
        fields = {f.name: f for f in dataclasses.fields(self)}
        changes = {}
        for key, raw in values.items():
            if key not in fields:
                logger.warning("Ignoring unknown config key '%s'", key)
                continue
            changes[key] = _convert(key, raw, getattr(self, key))
        return dataclasses.replace(self, **changes)


def read_config_file(path: Path) -> dict:
    """Read the [webpm] section of an INI config file."""
    parser = configparser.ConfigParser(interpolation=None)
    try:
        with open(path, "r", encoding="utf-8") as f:
            parser.read_file(f)
    except (OSError, configparser.Error) as e:
        raise ConfigError(f"Cannot read config file {path}: {e}")

    if not parser.has_section(CONFIG_SECTION):
        logger.warning("Config file %s has no [%s] section", path, CONFIG_SECTION)
        return {}
    logger.debug("Loaded config file %s", path)
    return dict(parser.items(CONFIG_SECTION))


def _convert(key: str, raw, current):
    """Convert a config string to the type of the current value."""
    if not isinstance(raw, str):
        return raw
    if isinstance(current, bool):
        lowered = raw.strip().lower()
        if lowered in ("1", "yes", "true", "on"):
            return True
        if lowered in ("0", "no", "false", "off"):
            return False
        raise ConfigError(f"Invalid boolean for '{key}': {raw!r}")
    if isinstance(current, int):
        try:
            return int(raw)
        except ValueError:
            raise ConfigError(f"Invalid integer for '{key}': {raw!r}")
    if isinstance(current, Path):
        return Path(raw).expanduser()
    if isinstance(current, tuple):
        try:
            parts = tuple(shlex.split(raw))
        except ValueError as e:
            raise ConfigError(f"Invalid value for '{key}': {e}")
        if not parts:
            raise ConfigError(f"'{key}' must not be empty")
        return parts
    return raw.strip()
