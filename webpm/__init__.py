"""webpm - local package manager for web application projects."""

__version__ = "0.3.0"
