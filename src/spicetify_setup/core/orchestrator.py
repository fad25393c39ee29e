"""Backup / apply / restore sequencing around the Spicetify CLI.

Spicetify fetches theme and extension manifests from GitHub while applying,
and a rate-limit warning there can produce a failing exit code even though
Spotify's files were patched. A failed apply is therefore re-checked against
the config before it is reported as a failure.
"""

from enum import Enum

from ..utils.console import _rich_info, _rich_success, _rich_warning
from .config_store import SpicetifyConfigStore
from .invoker import InvocationResult, SpicetifyInvoker
from .paths import SpicetifyPaths
from .session import Session


# Both enabled after a successful apply
APPLIED_FLAGS = ("inject_css", "replace_colors")


class OrchestratorState(Enum):
    IDLE = "idle"
    BACKUP_IN_PROGRESS = "backup_in_progress"
    BACKUP_DONE = "backup_done"
    BACKUP_FAILED = "backup_failed"
    APPLY_IN_PROGRESS = "apply_in_progress"
    APPLIED = "applied"
    APPLY_PARTIAL = "apply_partial"
    APPLY_FAILED = "apply_failed"


class BackupOutcome(Enum):
    """Every outcome lets apply go ahead; FAILED_CONTINUE has already warned."""

    DONE = "done"
    ALREADY_PRESENT = "already_present"
    FAILED_CONTINUE = "failed_continue"

    @property
    def ok(self) -> bool:
        return True


class ApplyOutcome(Enum):
    APPLIED = "applied"
    PARTIAL = "partial"
    FAILED = "failed"

    @property
    def ok(self) -> bool:
        return self is not ApplyOutcome.FAILED


class ApplyOrchestrator:
    """Runs Spicetify's backup, apply and restore and tracks the session flag."""

    def __init__(self, invoker: SpicetifyInvoker, store: SpicetifyConfigStore,
                 session: Session, paths: SpicetifyPaths = None):
        self.invoker = invoker
        self.store = store
        self.session = session
        self.paths = paths or SpicetifyPaths(invoker)
        self.state = OrchestratorState.IDLE
        self.last_result: InvocationResult = None

    def backup(self) -> BackupOutcome:
        """Back up Spotify's original files.

        Never fatal: an existing backup counts as success and any other
        failure is reported as a warning so apply can still be attempted.
        """
        self.state = OrchestratorState.BACKUP_IN_PROGRESS
        result = self.invoker.invoke(["backup"])
        self.last_result = result

        if result.ok:
            self.state = OrchestratorState.BACKUP_DONE
            return BackupOutcome.DONE

        if "backup" in self.paths.all_paths_text().lower():
            self.state = OrchestratorState.BACKUP_DONE
            _rich_info("Existing Spicetify backup found, reusing it")
            return BackupOutcome.ALREADY_PRESENT

        self.state = OrchestratorState.BACKUP_FAILED
        _rich_warning(f"Backup reported an error (exit code {result.returncode}); continuing with apply")
        return BackupOutcome.FAILED_CONTINUE

    def apply(self) -> ApplyOutcome:
        """Apply the current configuration and restart Spotify on success."""
        self.state = OrchestratorState.APPLY_IN_PROGRESS
        result = self.invoker.invoke(["apply", "--no-restart"])
        self.last_result = result

        if result.ok:
            if result.tolerated:
                _rich_warning("Spicetify reported a GitHub rate-limit warning, but apply succeeded")
            self._restart()
            self.state = OrchestratorState.APPLIED
            self.session.mark_applied()
            return ApplyOutcome.APPLIED

        if all(self.store.get_flag(flag) for flag in APPLIED_FLAGS):
            _rich_warning("Apply reported an error, but the configuration shows the changes in place")
            self._restart()
            self.state = OrchestratorState.APPLY_PARTIAL
            self.session.mark_applied()
            return ApplyOutcome.PARTIAL

        self.state = OrchestratorState.APPLY_FAILED
        return ApplyOutcome.FAILED

    def backup_and_apply(self) -> ApplyOutcome:
        """Back up, then apply regardless of the backup outcome."""
        self.backup()
        outcome = self.apply()
        if outcome.ok:
            _rich_success("Spotify is customised and restarting", symbol="success")
        return outcome

    def restore(self) -> InvocationResult:
        """Restore Spotify's original files from the backup."""
        result = self.invoker.invoke(["restore"])
        self.last_result = result
        if result.ok:
            self.state = OrchestratorState.IDLE
        return result

    def enable_devtools(self) -> InvocationResult:
        return self.invoker.invoke(["enable-devtools"])

    def block_updates(self, block: bool = True) -> InvocationResult:
        return self.invoker.invoke(["spotify-updates", "block" if block else "unblock"])

    def refresh_extensions(self) -> InvocationResult:
        return self.invoker.invoke(["refresh", "-e"])

    def _restart(self) -> None:
        # Result ignored: Spotify may already be closing or not running
        self.invoker.invoke(["restart"])
