"""Installation of the Spicetify CLI and the Marketplace custom app."""

import shutil
import tarfile
import tempfile
import zipfile
from pathlib import Path
from typing import Optional

import httpx

from ..core.config_store import CUSTOM_APPS_KEY, SpicetifyConfigStore
from ..core.invoker import SpicetifyInvoker
from ..core.paths import SpicetifyPaths
from ..errors import InstallerError, ReleaseFetchError, UnsupportedPlatformError
from ..github.releases import ReleaseInfo, download_asset, fetch_latest_release
from ..ui import StepTracker
from ..utils.helpers import (
    add_to_user_path,
    default_spicetify_install_dir,
    detect_platform,
    is_arm64,
    make_executable,
    spicetify_executable_name,
)


SPICETIFY_REPO = ("spicetify", "cli")
MARKETPLACE_REPO = ("spicetify", "marketplace")
MARKETPLACE_ASSET = "marketplace.zip"
MARKETPLACE_APP_NAME = "marketplace"


def platform_asset_suffix() -> str:
    """Release asset suffix for this OS and CPU."""
    system = detect_platform()
    arm = is_arm64()
    if system == "windows":
        return "windows-arm64.zip" if arm else "windows-x64.zip"
    if system == "linux":
        return "linux-arm64.tar.gz" if arm else "linux-amd64.tar.gz"
    if system == "macos":
        return "darwin-arm64.tar.gz" if arm else "darwin-amd64.tar.gz"
    raise UnsupportedPlatformError(f"No Spicetify build for platform '{system}'")


def extract_archive(archive: Path, destination: Path) -> Path:
    """Extract a .zip or .tar.gz archive into `destination`."""
    destination.mkdir(parents=True, exist_ok=True)
    try:
        if archive.name.endswith(".zip"):
            with zipfile.ZipFile(archive, "r") as zip_ref:
                zip_ref.extractall(destination)
        elif archive.name.endswith((".tar.gz", ".tgz")):
            with tarfile.open(archive, "r:gz") as tar_ref:
                if hasattr(tarfile, "data_filter"):
                    tar_ref.extractall(destination, filter="data")
                else:
                    tar_ref.extractall(destination)
        else:
            raise InstallerError(f"Unsupported archive format: {archive.name}")
    except (zipfile.BadZipFile, tarfile.TarError) as e:
        raise InstallerError(f"Could not extract {archive.name}: {e}") from e
    return destination


def _single_root(directory: Path) -> Path:
    """Descend into a GitHub-style archive's single top-level folder."""
    items = list(directory.iterdir())
    if len(items) == 1 and items[0].is_dir():
        return items[0]
    return directory


def _copy_tree_contents(source: Path, destination: Path) -> None:
    destination.mkdir(parents=True, exist_ok=True)
    for item in source.iterdir():
        dest_path = destination / item.name
        if item.is_dir():
            shutil.copytree(item, dest_path, dirs_exist_ok=True)
        else:
            shutil.copy2(item, dest_path)


def spicetify_version(invoker: SpicetifyInvoker) -> Optional[str]:
    """Installed Spicetify version, or None when it is not installed."""
    if not invoker.is_available():
        return None
    output = invoker.invoke_capture(["-v"]).strip()
    return output.splitlines()[-1].strip() if output else None


def install_spicetify(*, client: Optional[httpx.Client] = None, token: Optional[str] = None,
                      tracker: Optional[StepTracker] = None, install_dir: Optional[Path] = None,
                      debug: bool = False) -> Path:
    """Download the latest Spicetify CLI and put it on the user PATH.

    Returns:
        Path: The installed executable

    Raises:
        ReleaseFetchError: If the release cannot be fetched or downloaded
        InstallerError: If the archive does not contain the executable
    """
    def step(action, key, detail=""):
        if tracker:
            getattr(tracker, action)(key, detail)

    install_dir = install_dir or default_spicetify_install_dir()
    suffix = platform_asset_suffix()

    step("start", "fetch", "contacting GitHub API")
    try:
        release = fetch_latest_release(*SPICETIFY_REPO, token=token, client=client, debug=debug)
    except ReleaseFetchError as e:
        step("error", "fetch", str(e))
        raise
    asset = release.find_asset(suffix)
    if asset is None:
        step("error", "fetch", f"no asset ending in {suffix}")
        raise ReleaseFetchError(f"Release {release.tag_name} has no asset for {suffix}")
    step("complete", "fetch", f"release {release.tag_name}")

    with tempfile.TemporaryDirectory() as temp_dir:
        step("start", "download", asset.name)
        try:
            archive = download_asset(asset, Path(temp_dir), client=client, show_progress=tracker is None, debug=debug)
        except ReleaseFetchError as e:
            step("error", "download", str(e))
            raise
        step("complete", "download", f"{asset.size:,} bytes" if asset.size else asset.name)

        step("start", "extract", str(install_dir))
        try:
            extract_archive(archive, install_dir)
        except InstallerError as e:
            step("error", "extract", str(e))
            raise

    executable = install_dir / spicetify_executable_name()
    if not executable.is_file():
        step("error", "extract", "executable missing from archive")
        raise InstallerError(f"{executable.name} not found in {asset.name}")
    make_executable(executable)
    step("complete", "extract", str(install_dir))

    step("start", "path")
    changed = add_to_user_path(install_dir)
    step("complete", "path", "added to user PATH" if changed else "already on PATH")

    # First run writes Spicetify's config file
    step("start", "init-config")
    result = SpicetifyInvoker(executable=str(executable)).invoke(["config"])
    if result.ok:
        step("complete", "init-config", "config generated")
    else:
        step("error", "init-config", f"exit code {result.returncode}")

    return executable


def install_marketplace(store: SpicetifyConfigStore, paths: SpicetifyPaths, *,
                        client: Optional[httpx.Client] = None, token: Optional[str] = None,
                        tracker: Optional[StepTracker] = None, debug: bool = False) -> ReleaseInfo:
    """Install the Marketplace custom app and register it in `custom_apps`.

    Raises:
        ReleaseFetchError: If the release cannot be fetched or downloaded
        InstallerError: If the archive cannot be extracted
    """
    def step(action, key, detail=""):
        if tracker:
            getattr(tracker, action)(key, detail)

    step("start", "fetch", "contacting GitHub API")
    try:
        release = fetch_latest_release(*MARKETPLACE_REPO, token=token, client=client, debug=debug)
    except ReleaseFetchError as e:
        step("error", "fetch", str(e))
        raise
    asset = release.find_asset(MARKETPLACE_ASSET)
    if asset is None:
        step("error", "fetch", f"no {MARKETPLACE_ASSET} asset")
        raise ReleaseFetchError(f"Release {release.tag_name} has no {MARKETPLACE_ASSET}")
    step("complete", "fetch", f"release {release.tag_name}")

    target = paths.custom_apps_dir() / MARKETPLACE_APP_NAME
    with tempfile.TemporaryDirectory() as temp_dir:
        temp_path = Path(temp_dir)
        step("start", "download", asset.name)
        try:
            archive = download_asset(asset, temp_path, client=client, show_progress=tracker is None, debug=debug)
        except ReleaseFetchError as e:
            step("error", "download", str(e))
            raise
        step("complete", "download", asset.name)

        step("start", "extract", str(target))
        try:
            extracted = extract_archive(archive, temp_path / "extracted")
        except InstallerError as e:
            step("error", "extract", str(e))
            raise
        if target.exists():
            shutil.rmtree(target)
        _copy_tree_contents(_single_root(extracted), target)
        step("complete", "extract", str(target))

    step("start", "register")
    if MARKETPLACE_APP_NAME in store.get_list(CUSTOM_APPS_KEY):
        step("complete", "register", "already in custom_apps")
    elif store.add_token(CUSTOM_APPS_KEY, MARKETPLACE_APP_NAME):
        step("complete", "register", "added to custom_apps")
    else:
        step("error", "register", "spicetify config failed")
        raise InstallerError("Could not add marketplace to custom_apps")

    store.set_flag("inject_css", True)
    store.set_flag("replace_colors", True)
    return release
