"""Dependency install and build steps for fetched web apps."""

import enum
import logging
import subprocess
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from webpm.config import Config
from webpm.errors import (
    BuildFailed,
    BuildVerificationFailed,
    DependencyInstallFailed,
    WebpmError,
)

logger = logging.getLogger(__name__)

ENTRY_HTML = "index.html"


class BuildStatus(enum.Enum):
    SUCCESS = "success"
    SOFT_FAILURE = "soft-failure"
    HARD_FAILURE = "hard-failure"


class BuildResult:
    """Outcome of a build: status, captured output and warnings."""

    def __init__(self):
        self.status = BuildStatus.SUCCESS
        self.logs: List[str] = []
        self.warnings: List[str] = []
        self.error: Optional[WebpmError] = None

    @property
    def ok(self) -> bool:
        return self.status is not BuildStatus.HARD_FAILURE

    def warn(self, message: str):
        self.warnings.append(message)
        if self.status is BuildStatus.SUCCESS:
            self.status = BuildStatus.SOFT_FAILURE

    def fail(self, error: WebpmError) -> "BuildResult":
        self.status = BuildStatus.HARD_FAILURE
        self.error = error
        return self

    def log_tail(self, lines: int = 20) -> str:
        """Last lines of captured output."""
        text = "\n".join(self.logs).rstrip()
        return "\n".join(text.splitlines()[-lines:])


class Builder:
    """
    Runs the dependency install and build commands in a source tree.

    In strict mode a failed build command and missing build output are hard
    failures; in lenient mode the build command only produces a warning and
    the output is not checked.
    """

    def __init__(self, config: Config, runner: Callable = subprocess.run):
        """Initialize builder with configuration and a process runner."""
        self.config = config
        self.runner = runner

    def build(self, source_dir: Path) -> BuildResult:
        """Install dependencies and build the app in ``source_dir``."""
        source_dir = Path(source_dir)
        result = BuildResult()

        if not self._run(self.config.install_command, source_dir, result):
            return result.fail(DependencyInstallFailed(f"{_show(self.config.install_command)} failed"))

        if not self._run(self.config.build_command, source_dir, result):
            if self.config.strict_build:
                return result.fail(BuildFailed(f"{_show(self.config.build_command)} failed"))
            result.warn("Build may have failed")
            return result

        if self.config.strict_build:
            self.verify(source_dir, result)
        return result

    def verify(self, source_dir: Path, result: BuildResult) -> BuildResult:
        """Check that the build produced an entry page and static assets."""
        output_dir = source_dir / self.config.build_output
        if not output_dir.is_dir():
            return result.fail(BuildVerificationFailed(f"Build output directory '{self.config.build_output}' not found"))
        if not (output_dir / ENTRY_HTML).is_file():
            return result.fail(BuildVerificationFailed(f"{ENTRY_HTML} not found in '{self.config.build_output}'"))

        assets_dir = output_dir / self.config.assets_dir
        if not assets_dir.is_dir() or not any(assets_dir.iterdir()):
            result.warn(f"No static assets found in '{self.config.build_output}/{self.config.assets_dir}'")
        return result

    def _run(self, command: Sequence[str], cwd: Path, result: BuildResult) -> bool:
        """Run one step, capturing its output. Returns True on success."""
        result.logs.append(f"$ {_show(command)}")
        logger.info("Running %s in %s", _show(command), cwd)
        try:
            completed = self.runner(
                list(command),
                cwd=cwd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                errors="replace",
            )
        except OSError as e:
            result.logs.append(str(e))
            return False

        output = completed.stdout or ""
        if output:
            result.logs.append(output.rstrip())
            logger.debug("%s output:\n%s", command[0], output)
        if completed.returncode != 0:
            result.logs.append(f"exit status {completed.returncode}")
            return False
        return True


def _show(command: Sequence[str]) -> str:
    return " ".join(command)
