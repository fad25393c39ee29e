"""Version management for Spicetify Setup."""

import re
import sys
from importlib import metadata
from pathlib import Path

# Build-time version constant (injected by release builds)
__BUILD_VERSION__ = None

DISTRIBUTION_NAME = "spicetify-setup"


def get_version() -> str:
    """
    Get the current version.

    Tries the build-time constant, then installed package metadata, then
    falls back to parsing pyproject.toml for source checkouts.

    Returns:
        str: Version string, or "unknown"
    """
    if __BUILD_VERSION__:
        return __BUILD_VERSION__

    try:
        return metadata.version(DISTRIBUTION_NAME)
    except metadata.PackageNotFoundError:
        pass

    if getattr(sys, 'frozen', False):
        # Running in PyInstaller bundle
        pyproject_path = Path(sys._MEIPASS) / 'pyproject.toml'
    else:
        pyproject_path = Path(__file__).parent.parent.parent / "pyproject.toml"

    if not pyproject_path.exists():
        return "unknown"

    try:
        content = pyproject_path.read_text(encoding='utf-8')
    except OSError:
        return "unknown"

    match = re.search(r'^version\s*=\s*["\']([^"\']+)["\']', content, re.MULTILINE)
    if match and re.match(r'^\d+\.\d+\.\d+(a\d+|b\d+|rc\d+)?$', match.group(1)):
        return match.group(1)
    return "unknown"
