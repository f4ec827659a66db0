"""
Tests for the build driver.
"""

import dataclasses
import subprocess
from pathlib import Path

import pytest

from webpm.builder import Builder, BuildStatus
from webpm.errors import BuildFailed, BuildVerificationFailed, DependencyInstallFailed


@pytest.fixture
def app_dir(tmp_path: Path) -> Path:
    app = tmp_path / "app"
    app.mkdir()
    return app


class TestStrictBuild:
    """Default (strict) build policy."""

    def test_success(self, config, runner, app_dir: Path):
        """Install, build and verify all pass."""
        result = Builder(config, runner=runner).build(app_dir)
        assert result.status is BuildStatus.SUCCESS
        assert result.ok
        assert runner.commands() == [
            ["npm", "install", "--prefer-offline", "--no-audit"],
            ["npm", "run", "build"],
        ]
        assert "Compiled successfully." in "\n".join(result.logs)

    def test_dependency_install_failure(self, config, runner, app_dir: Path):
        """A failed dependency install stops before the build."""
        runner.install_rc = 1
        result = Builder(config, runner=runner).build(app_dir)
        assert result.status is BuildStatus.HARD_FAILURE
        assert isinstance(result.error, DependencyInstallFailed)
        assert len(runner.calls) == 1

    def test_build_failure(self, config, runner, app_dir: Path):
        runner.build_rc = 2
        result = Builder(config, runner=runner).build(app_dir)
        assert result.status is BuildStatus.HARD_FAILURE
        assert isinstance(result.error, BuildFailed)
        assert "exit status 2" in result.log_tail()

    def test_missing_output(self, config, runner, app_dir: Path):
        """A build that produces nothing fails verification."""
        runner.build_output = False
        result = Builder(config, runner=runner).build(app_dir)
        assert isinstance(result.error, BuildVerificationFailed)

    def test_missing_entry_html(self, config, runner, app_dir: Path):
        runner.build_output = False
        (app_dir / "build").mkdir()
        result = Builder(config, runner=runner).build(app_dir)
        assert isinstance(result.error, BuildVerificationFailed)
        assert "index.html" in str(result.error)

    def test_empty_assets_is_a_warning(self, config, runner, app_dir: Path):
        runner.assets = False
        result = Builder(config, runner=runner).build(app_dir)
        assert result.status is BuildStatus.SOFT_FAILURE
        assert result.ok
        assert result.warnings == ["No static assets found in 'build/static'"]

    def test_missing_executable(self, config, app_dir: Path):
        """A build tool that cannot be started counts as a failed step."""
        def runner(cmd, **kwargs):
            raise FileNotFoundError(cmd[0])

        result = Builder(config, runner=runner).build(app_dir)
        assert isinstance(result.error, DependencyInstallFailed)


class TestLenientBuild:
    """strict_build = false."""

    def test_build_failure_is_a_warning(self, config, runner, app_dir: Path):
        runner.build_rc = 1
        lenient = dataclasses.replace(config, strict_build=False)
        result = Builder(lenient, runner=runner).build(app_dir)
        assert result.status is BuildStatus.SOFT_FAILURE
        assert result.warnings == ["Build may have failed"]

    def test_no_verification(self, config, runner, app_dir: Path):
        runner.build_output = False
        lenient = dataclasses.replace(config, strict_build=False)
        result = Builder(lenient, runner=runner).build(app_dir)
        assert result.status is BuildStatus.SUCCESS

    def test_dependency_failure_is_still_hard(self, config, runner, app_dir: Path):
        runner.install_rc = 1
        lenient = dataclasses.replace(config, strict_build=False)
        result = Builder(lenient, runner=runner).build(app_dir)
        assert isinstance(result.error, DependencyInstallFailed)


class TestCustomCommands:
    """Configured commands and output locations."""

    def test_custom_output_dir(self, config, runner, app_dir: Path):
        """Verification follows build_output."""
        vite = dataclasses.replace(config, build_output="dist")
        result = Builder(vite, runner=runner).build(app_dir)
        assert isinstance(result.error, BuildVerificationFailed)
        assert "'dist'" in str(result.error)


class TestProcessOutput:
    """Output captured from real child processes."""

    def test_undecodable_output(self, config, app_dir: Path):
        """Bytes that are not UTF-8 never break a successful build."""
        noisy = dataclasses.replace(
            config,
            install_command=("sh", "-c", "printf '\\377\\376 bad\\n'"),
            build_command=("sh", "-c", (
                "mkdir -p build/static && echo x > build/static/main.js"
                " && echo '<html>' > build/index.html && printf '\\377 done\\n'"
            )),
        )
        result = Builder(noisy, runner=subprocess.run).build(app_dir)
        assert result.status is BuildStatus.SUCCESS
        assert "�� bad" in "\n".join(result.logs)
