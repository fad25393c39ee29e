"""Core Spicetify plumbing: process invocation, config access and apply sequencing."""

from .config_store import SpicetifyConfigStore
from .invoker import InvocationResult, SpicetifyInvoker
from .launch_flags import LaunchFlagEditor
from .orchestrator import ApplyOrchestrator, ApplyOutcome, BackupOutcome
from .paths import SpicetifyPaths
from .session import Session, detect_applied

__all__ = [
    "ApplyOrchestrator",
    "ApplyOutcome",
    "BackupOutcome",
    "InvocationResult",
    "LaunchFlagEditor",
    "Session",
    "SpicetifyConfigStore",
    "SpicetifyInvoker",
    "SpicetifyPaths",
    "detect_applied",
]
