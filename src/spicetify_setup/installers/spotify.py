"""Detection and silent installation of the Spotify desktop client."""

import os
import shutil
import subprocess
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

import httpx

from .. import config
from ..errors import InstallerError, ReleaseFetchError, UnsupportedPlatformError
from ..github.releases import download_file
from ..ui import StepTracker
from ..utils.helpers import detect_platform


UNINSTALL_KEY = r"Software\Microsoft\Windows\CurrentVersion\Uninstall\Spotify"
STORE_PACKAGE_NAME = "SpotifyAB.SpotifyMusic"
SILENT_FLAG = "/silent"

_POSIX_LOCATIONS = (
    Path("/Applications/Spotify.app"),
    Path("/usr/share/spotify"),
    Path("/opt/spotify"),
    Path("/var/lib/flatpak/app/com.spotify.Client"),
    Path.home() / ".local/share/flatpak/app/com.spotify.Client",
    Path("/snap/spotify"),
)


@dataclass
class SpotifyInstall:
    """Where (and whether) Spotify is installed."""

    found: bool
    location: Optional[Path] = None
    store_edition: bool = False
    source: str = ""


def _registry_location() -> Optional[Path]:
    """Install location from the Windows uninstall registry entries."""
    import winreg

    for hive in (winreg.HKEY_CURRENT_USER, winreg.HKEY_LOCAL_MACHINE):
        try:
            with winreg.OpenKey(hive, UNINSTALL_KEY) as key:
                for value_name in ("InstallLocation", "DisplayIcon"):
                    try:
                        value, _ = winreg.QueryValueEx(key, value_name)
                    except FileNotFoundError:
                        continue
                    if value:
                        path = Path(str(value).split(",")[0].strip('"'))
                        return path.parent if path.suffix.lower() == ".exe" else path
        except OSError:
            continue
    return None


def _store_package_installed(runner: Callable = subprocess.run) -> bool:
    """Ask PowerShell whether the Microsoft Store edition is installed."""
    command = [
        "powershell", "-NoProfile", "-NonInteractive", "-Command",
        f"Get-AppxPackage -Name {STORE_PACKAGE_NAME} | Select-Object -ExpandProperty Name",
    ]
    try:
        result = runner(command, capture_output=True, text=True, timeout=30)
    except (OSError, subprocess.TimeoutExpired):
        return False
    return result.returncode == 0 and STORE_PACKAGE_NAME in (result.stdout or "")


def detect_spotify(runner: Callable = subprocess.run) -> SpotifyInstall:
    """Find the Spotify client on this machine."""
    if detect_platform() == "windows":
        location = _registry_location()
        if location:
            return SpotifyInstall(True, location, source="registry")

        appdata = os.environ.get("APPDATA")
        if appdata:
            exe = Path(appdata) / "Spotify" / "Spotify.exe"
            if exe.is_file():
                return SpotifyInstall(True, exe.parent, source="appdata")

        if _store_package_installed(runner):
            return SpotifyInstall(True, None, store_edition=True, source="appx")
        return SpotifyInstall(False)

    found = shutil.which("spotify")
    if found:
        return SpotifyInstall(True, Path(found).parent, source="path")
    for location in _POSIX_LOCATIONS:
        if location.exists():
            return SpotifyInstall(True, location, source="filesystem")
    return SpotifyInstall(False)


def close_spotify(runner: Callable = subprocess.run) -> None:
    """Stop running Spotify processes so files can be patched."""
    if detect_platform() == "windows":
        command = ["taskkill", "/F", "/IM", "Spotify.exe"]
    else:
        command = ["pkill", "-x", "spotify"]
    try:
        runner(command, capture_output=True, text=True, timeout=30)
    except (OSError, subprocess.TimeoutExpired):
        pass


def install_spotify(*, client: Optional[httpx.Client] = None, tracker: Optional[StepTracker] = None,
                    runner: Callable = subprocess.run, force: bool = False) -> SpotifyInstall:
    """Download the official installer and run it silently.

    Raises:
        UnsupportedPlatformError: When not running on Windows
        InstallerError: When the installer cannot be run or fails
        ReleaseFetchError: When the installer download fails
    """
    def step(action, key, detail=""):
        if tracker:
            getattr(tracker, action)(key, detail)

    step("start", "detect")
    existing = detect_spotify(runner)
    if existing.found and not force:
        detail = "Microsoft Store edition" if existing.store_edition else str(existing.location or "installed")
        step("complete", "detect", detail)
        step("skip", "download", "already installed")
        step("skip", "install", "already installed")
        return existing
    step("complete", "detect", "not installed" if not existing.found else "reinstall requested")

    if detect_platform() != "windows":
        step("error", "download", "unsupported platform")
        raise UnsupportedPlatformError(
            "Automatic Spotify installation is only available on Windows. "
            "Install Spotify from https://www.spotify.com/download or your package manager."
        )

    url = config.get_spotify_installer_url()
    with tempfile.TemporaryDirectory() as temp_dir:
        step("start", "download", url)
        try:
            installer = download_file(url, Path(temp_dir) / "SpotifySetup.exe", client=client,
                                      show_progress=tracker is None)
        except ReleaseFetchError as e:
            step("error", "download", str(e))
            raise
        step("complete", "download", installer.name)

        step("start", "install", "silent install")
        try:
            result = runner([str(installer), SILENT_FLAG], capture_output=True, text=True)
        except OSError as e:
            step("error", "install", str(e))
            raise InstallerError(f"Could not start the Spotify installer: {e}") from e
        if result.returncode != 0:
            step("error", "install", f"exit code {result.returncode}")
            raise InstallerError(f"Spotify installer exited with code {result.returncode}")

    # The installer launches Spotify when it finishes
    close_spotify(runner)

    installed = detect_spotify(runner)
    if not installed.found:
        step("error", "install", "not detected after install")
        raise InstallerError("Spotify installer finished but Spotify was not detected")
    step("complete", "install", str(installed.location or "installed"))
    return installed
