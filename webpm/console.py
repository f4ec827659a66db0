"""Terminal output for webpm commands."""

import os
import sys

RED = "\033[0;31m"
GREEN = "\033[0;32m"
YELLOW = "\033[1;33m"
BLUE = "\033[0;34m"
NC = "\033[0m"


def _colour(stream, code: str) -> str:
    if os.environ.get("NO_COLOR") or not hasattr(stream, "isatty") or not stream.isatty():
        return ""
    return code


def _emit(stream, colour: str, prefix: str, text: str):
    print(f"{_colour(stream, colour)}{prefix}{_colour(stream, NC)} {text}", file=stream)


def msg(text: str):
    """Print a top-level progress message."""
    _emit(sys.stdout, GREEN, "==>", text)


def info(text: str):
    """Print a secondary progress message."""
    _emit(sys.stdout, BLUE, "::", text)


def warn(text: str):
    """Print a soft warning. Execution continues."""
    _emit(sys.stdout, YELLOW, "Warning:", text)


def error(text: str):
    """Print a hard error to stderr."""
    _emit(sys.stderr, RED, "Error:", text)


def plain(text: str = ""):
    """Print text as-is."""
    print(text)


def output(text: str):
    """Print captured tool output to stderr."""
    if text:
        print(text, file=sys.stderr)
