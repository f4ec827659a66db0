"""Desktop launcher entries for installed apps."""

import logging
import os
from pathlib import Path

from webpm.package import read_app_manifest

logger = logging.getLogger(__name__)

DEFAULT_DESCRIPTION = "React Application"

ENTRY_TEMPLATE = """[Desktop Entry]
Version=1.0
Type=Application
Name={display_name}
Comment={description}
Exec=bash -c 'cd "{directory}" && {start_command}'
Icon=applications-internet
Terminal=false
Categories=Development;WebDevelopment;
"""


class DesktopEntries:
    """Writes and removes ``.desktop`` launchers."""

    def __init__(self, desktop_dir: Path, start_command: str = "npm start"):
        self.desktop_dir = Path(desktop_dir)
        self.start_command = start_command

    def path_for(self, name: str) -> Path:
        return self.desktop_dir / f"{name}.desktop"

    def register(self, name: str, install_dir: Path) -> Path:
        """Create or replace the launcher for an installed app."""
        manifest = read_app_manifest(install_dir)
        display_name = _single_line(manifest.get("displayName") or manifest.get("name")) or name
        description = _single_line(manifest.get("description")) or DEFAULT_DESCRIPTION

        self.desktop_dir.mkdir(parents=True, exist_ok=True)
        entry = self.path_for(name)
        entry.write_text(
            ENTRY_TEMPLATE.format(
                display_name=display_name,
                description=description,
                directory=Path(install_dir),
                start_command=self.start_command,
            ),
            encoding="utf-8",
        )
        os.chmod(entry, 0o755)
        logger.debug("Wrote launcher %s", entry)
        return entry

    def unregister(self, name: str):
        """Remove the launcher for an app, if there is one."""
        try:
            self.path_for(name).unlink()
        except FileNotFoundError:
            pass


def _single_line(value) -> str:
    # Keys in a desktop entry cannot span lines.
    if not isinstance(value, str):
        return ""
    return " ".join(value.split())
