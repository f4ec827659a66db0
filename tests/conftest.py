"""
Shared fixtures: a throwaway webpm layout, a file:// package index and a
fake process runner standing in for git and npm.
"""

import json
import subprocess
from pathlib import Path

import pytest

from webpm.config import Config
from webpm.fetcher import derive_name
from webpm.manager import PackageManager
from webpm.prompt import AssumeNo


def write_index(repo_dir: Path, entries, manifests=None):
    """Write packages.json (and optional per-package manifests) under repo_dir."""
    repo_dir.mkdir(parents=True, exist_ok=True)
    (repo_dir / "packages.json").write_text(json.dumps({"packages": entries}))
    for name, manifest in (manifests or {}).items():
        (repo_dir / "packages").mkdir(exist_ok=True)
        (repo_dir / "packages" / f"{name}.json").write_text(json.dumps(manifest))


class FakeRunner:
    """Imitates ``subprocess.run`` for the git and npm commands webpm issues."""

    def __init__(self):
        self.calls = []
        self.version = "1.0.0"
        self.failing_clones = set()
        self.failing_branches = set()
        self.install_rc = 0
        self.build_rc = 0
        self.build_output = True
        self.assets = True

    def commands(self):
        return [call[0] for call in self.calls]

    def __call__(self, cmd, cwd=None, check=False, **kwargs):
        cmd = list(cmd)
        self.calls.append((cmd, cwd))
        rc, stdout, stderr = self._dispatch(cmd, Path(cwd) if cwd else None)
        if check and rc != 0:
            raise subprocess.CalledProcessError(rc, cmd, output=stdout, stderr=stderr)
        return subprocess.CompletedProcess(cmd, rc, stdout=stdout, stderr=stderr)

    def _dispatch(self, cmd, cwd):
        if cmd[:2] == ["git", "clone"]:
            url, dest = cmd[2], Path(cmd[3])
            if url in self.failing_clones:
                return 128, "", f"fatal: repository '{url}' not found"
            dest.mkdir(parents=True)
            self._write_manifest(dest, derive_name(url))
            return 0, "", ""
        if cmd[:2] == ["git", "pull"]:
            if cmd[3] in self.failing_branches:
                return 1, "", f"fatal: couldn't find remote ref {cmd[3]}"
            self._write_manifest(cwd, cwd.name)
            return 0, "", ""
        if cmd[:2] == ["npm", "install"]:
            return self.install_rc, "added 42 packages\n", None
        if cmd[:3] == ["npm", "run", "build"]:
            if self.build_rc == 0 and self.build_output:
                build = cwd / "build"
                (build / "static").mkdir(parents=True, exist_ok=True)
                (build / "index.html").write_text("<html></html>")
                if self.assets:
                    (build / "static" / "main.js").write_text("console.log(1)")
            return self.build_rc, "Compiled successfully.\n", None
        raise AssertionError(f"unexpected command: {cmd}")

    def _write_manifest(self, directory: Path, name: str):
        (directory / "package.json").write_text(
            json.dumps({"name": name, "version": self.version, "description": f"The {name} app"})
        )


@pytest.fixture
def repo_dir(tmp_path: Path) -> Path:
    return tmp_path / "repo"


@pytest.fixture
def config(tmp_path: Path, repo_dir: Path) -> Config:
    return Config(
        install_root=tmp_path / "apps",
        state_root=tmp_path / "state",
        desktop_dir=tmp_path / "applications",
        repo_url=repo_dir.as_uri(),
        required_tools=(),
    )


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def index(repo_dir: Path):
    entries = [
        {"name": "my-app", "description": "A demo app", "repository": "https://example.test/my-app.git", "version": "2.0.0"},
        {"name": "todo-react", "description": "Todo list", "repository": "https://example.test/todo-react.git"},
        {"name": "broken", "description": "No repository"},
    ]
    write_index(repo_dir, entries)
    return entries


@pytest.fixture
def manager(config: Config, runner: FakeRunner) -> PackageManager:
    return PackageManager(config, prompt=AssumeNo(), runner=runner)
