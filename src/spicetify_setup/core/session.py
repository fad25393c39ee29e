"""Per-run session state."""

from dataclasses import dataclass

from .config_store import CUSTOM_APPS_KEY, EXTENSIONS_KEY, SpicetifyConfigStore
from .paths import SpicetifyPaths


# Present in the backup directory once `spicetify backup` has run
BACKUP_MARKER_FILES = ("xpui.spa",)


@dataclass
class Session:
    """State scoped to one program run; never persisted.

    `changes_applied` only ever goes from False to True.
    """

    changes_applied: bool = False

    def mark_applied(self) -> None:
        self.changes_applied = True


def backup_marker_present(paths: SpicetifyPaths) -> bool:
    backup_dir = paths.backup_dir()
    return any((backup_dir / name).is_file() for name in BACKUP_MARKER_FILES)


def detect_applied(session: Session, store: SpicetifyConfigStore, paths: SpicetifyPaths) -> bool:
    """Best-effort guess at whether customisations are already applied.

    Only consulted while the session flag is still False. A backup on disk,
    or CSS injection together with at least one configured extension or
    custom app, is taken as applied.
    """
    if session.changes_applied:
        return True

    if backup_marker_present(paths):
        session.mark_applied()
        return True

    if store.get_flag("inject_css") and (store.get_list(EXTENSIONS_KEY) or store.get_list(CUSTOM_APPS_KEY)):
        session.mark_applied()
        return True

    return False
