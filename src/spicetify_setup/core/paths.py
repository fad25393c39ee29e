"""Spicetify directory discovery via `spicetify path`, with fixed fallbacks."""

from pathlib import Path
from typing import Optional

from ..errors import SpicetifyNotFoundError
from ..utils.helpers import default_spicetify_install_dir, default_spicetify_userdata_dir
from .invoker import SpicetifyInvoker


class SpicetifyPaths:
    """Resolves the directories Spicetify owns."""

    def __init__(self, invoker: SpicetifyInvoker):
        self.invoker = invoker

    def _query(self, args) -> Optional[Path]:
        try:
            output = self.invoker.invoke_capture(args)
        except SpicetifyNotFoundError:
            return None
        lines = [line.strip() for line in output.splitlines() if line.strip()]
        if not lines:
            return None
        candidate = Path(lines[-1])
        return candidate if candidate.is_absolute() else None

    def userdata(self) -> Path:
        return self._query(["path", "userdata"]) or default_spicetify_userdata_dir()

    def install_dir(self) -> Path:
        try:
            return Path(self.invoker.executable).parent
        except SpicetifyNotFoundError:
            return default_spicetify_install_dir()

    def extensions_dir(self) -> Path:
        return self.userdata() / "Extensions"

    def custom_apps_dir(self) -> Path:
        return self.userdata() / "CustomApps"

    def themes_dir(self) -> Path:
        return self.userdata() / "Themes"

    def backup_dir(self) -> Path:
        return self.userdata() / "Backup"

    def all_paths_text(self) -> str:
        """Raw output of `spicetify path all` ("" when unavailable)."""
        try:
            return self.invoker.invoke_capture(["path", "all"])
        except SpicetifyNotFoundError:
            return ""
