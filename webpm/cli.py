#!/usr/bin/env python3
"""Command-line interface for webpm."""

import argparse
import shutil
import sys
from pathlib import Path

from webpm import __version__, console
from webpm.config import SYSTEM_CONFIG, USER_CONFIG, Config
from webpm.errors import ConfigError, WebpmError
from webpm.logging_config import level_from_verbosity, setup_logging
from webpm.manager import PackageManager
from webpm.prompt import default_prompt


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="webpm",
        description="webpm - install, update and remove web apps built from source",
    )
    parser.add_argument("--version", action="version", version=f"webpm {__version__}")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="More log output (repeatable)")
    parser.add_argument("-y", "--yes", action="store_true", help="Answer yes to prompts")
    parser.add_argument("--config", type=Path, help="Extra config file, read after the default ones")
    subparsers = parser.add_subparsers(dest="command", metavar="<command>")

    install_parser = subparsers.add_parser("install", help="Install an app from the index, a Git URL or a local path")
    install_parser.add_argument("package", help="Package name, repository URL or path")
    install_parser.set_defaults(action="install")

    remove_parser = subparsers.add_parser("remove", aliases=["uninstall"], help="Remove an installed app")
    remove_parser.add_argument("package", help="Package name")
    remove_parser.set_defaults(action="remove")

    update_parser = subparsers.add_parser("update", aliases=["upgrade"], help="Update an installed app")
    update_parser.add_argument("package", help="Package name")
    update_parser.set_defaults(action="update")

    list_parser = subparsers.add_parser("list", aliases=["ls"], help="List installed apps")
    list_parser.set_defaults(action="list")

    search_parser = subparsers.add_parser("search", help="Search the package index")
    search_parser.add_argument("query", help="Substring of the package name")
    search_parser.set_defaults(action="search")

    info_parser = subparsers.add_parser("info", help="Show info for an installed or indexed app")
    info_parser.add_argument("package", help="Package name")
    info_parser.set_defaults(action="info")

    self_update_parser = subparsers.add_parser("self-update", help="Update webpm itself")
    self_update_parser.add_argument("--target", type=Path, help="Executable to replace (default: the running one)")
    self_update_parser.set_defaults(action="self-update")

    help_parser = subparsers.add_parser("help", help="Show this message")
    help_parser.set_defaults(action="help")

    return parser


def default_executable() -> Path:
    """Path of the running webpm executable."""
    found = shutil.which("webpm")
    if found:
        return Path(found)
    running = Path(sys.argv[0]).resolve()
    package_dir = Path(__file__).resolve().parent
    if running == package_dir or package_dir in running.parents:
        raise WebpmError("Cannot locate the webpm executable, pass --target")
    return running


def main(argv=None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    action = getattr(args, "action", None)
    if action in (None, "help"):
        parser.print_help()
        return 0

    setup_logging(level_from_verbosity(args.verbose))

    try:
        config_files = [SYSTEM_CONFIG, USER_CONFIG]
        if args.config:
            if not args.config.is_file():
                raise ConfigError(f"Config file not found: {args.config}")
            config_files.append(args.config)
        config = Config.load(config_files=config_files)
        manager = PackageManager(config, prompt=default_prompt(args.yes))

        if action == "install":
            manager.install(args.package)
        elif action == "remove":
            manager.remove(args.package)
        elif action == "update":
            manager.update(args.package)
        elif action == "list":
            manager.list_installed()
        elif action == "search":
            manager.search(args.query)
        elif action == "info":
            manager.show_info(args.package)
        elif action == "self-update":
            manager.self_update(args.target or default_executable())
    except (WebpmError, OSError) as e:
        console.error(str(e))
        return 1
    except KeyboardInterrupt:
        console.error("Interrupted")
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
