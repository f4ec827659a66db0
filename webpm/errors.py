"""Errors that abort a webpm command.

Every exception defined here is a hard error: the CLI prints it and exits
non-zero. Soft conditions are reported as warnings and never raised.
"""


class WebpmError(Exception):
    """Base class for all hard webpm errors."""


class ConfigError(WebpmError):
    """A configuration file or value could not be used."""


class MissingDependency(WebpmError):
    """A required external executable is not on PATH."""

    def __init__(self, tool: str):
        super().__init__(f"Dependency '{tool}' missing")
        self.tool = tool


class InvalidPackageName(WebpmError):
    """A package name is not safe to use as a file or directory name."""


class UnresolvedPackage(WebpmError):
    """A package name is unknown to the index."""

    def __init__(self, name: str):
        super().__init__(f"Package '{name}' not found")
        self.name = name


class InvalidManifest(WebpmError):
    """Package metadata failed to parse or lacks a required field."""


class FetchFailed(WebpmError):
    """A document could not be downloaded."""


class CloneFailed(WebpmError):
    """Source code could not be fetched into the install directory."""


class DependencyInstallFailed(WebpmError):
    """The dependency installation step exited non-zero."""


class BuildFailed(WebpmError):
    """The build command exited non-zero."""


class BuildVerificationFailed(WebpmError):
    """The build finished but its output is missing."""


class NotInstalled(WebpmError):
    """An operation needs an installed package that has no record."""

    def __init__(self, name: str):
        super().__init__(f"{name} is not installed")
        self.name = name


class PackageLocked(WebpmError):
    """Another webpm process is working on the same package."""

    def __init__(self, name: str):
        super().__init__(f"{name} is locked by another webpm process")
        self.name = name
