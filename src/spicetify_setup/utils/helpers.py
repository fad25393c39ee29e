"""Helper utility functions for Spicetify Setup."""

import os
import platform
import stat
from pathlib import Path


def detect_platform():
    """Detect the current platform.

    Returns:
        str: Platform name (macos, linux, windows).
    """
    system = platform.system().lower()

    if system == "darwin":
        return "macos"
    elif system == "linux":
        return "linux"
    elif system == "windows":
        return "windows"
    else:
        return "unknown"


def is_arm64():
    return platform.machine().lower() in ("arm64", "aarch64")


def spicetify_executable_name():
    return "spicetify.exe" if detect_platform() == "windows" else "spicetify"


def default_spicetify_install_dir() -> Path:
    """Directory the Spicetify binary is extracted into."""
    if detect_platform() == "windows":
        local_appdata = os.environ.get("LOCALAPPDATA") or str(Path.home() / "AppData" / "Local")
        return Path(local_appdata) / "spicetify"
    return Path.home() / ".spicetify"


def default_spicetify_userdata_dir() -> Path:
    """Spicetify's user-data directory, used when `spicetify path userdata` fails."""
    if detect_platform() == "windows":
        appdata = os.environ.get("APPDATA") or str(Path.home() / "AppData" / "Roaming")
        return Path(appdata) / "spicetify"
    xdg_config = os.environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(xdg_config) / "spicetify"


def make_executable(path: Path) -> None:
    """Add execute bits to a file (no-op on Windows)."""
    if os.name == "nt":
        return
    mode = path.stat().st_mode
    os.chmod(path, mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)


def add_to_user_path(directory: Path) -> bool:
    """Add a directory to the user PATH.

    Updates the current process environment on every platform and, on
    Windows, the persistent HKCU\\Environment value.

    Returns:
        bool: True if the persistent PATH was changed.
    """
    directory_str = str(directory)
    current = os.environ.get("PATH", "")
    if directory_str not in current.split(os.pathsep):
        os.environ["PATH"] = os.pathsep.join([current, directory_str]) if current else directory_str

    if detect_platform() != "windows":
        return False

    import winreg

    with winreg.OpenKey(winreg.HKEY_CURRENT_USER, "Environment", 0,
                        winreg.KEY_READ | winreg.KEY_WRITE) as key:
        try:
            user_path, value_type = winreg.QueryValueEx(key, "Path")
        except FileNotFoundError:
            user_path, value_type = "", winreg.REG_EXPAND_SZ

        entries = [entry for entry in user_path.split(";") if entry]
        if any(entry.rstrip("\\").lower() == directory_str.rstrip("\\").lower() for entry in entries):
            return False
        entries.append(directory_str)
        winreg.SetValueEx(key, "Path", 0, value_type, ";".join(entries))
    return True
