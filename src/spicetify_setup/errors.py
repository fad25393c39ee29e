"""Exception types shared across Spicetify Setup."""

from enum import Enum
from typing import Optional


class FailureKind(Enum):
    """Classification of a failed external call, decided once where the call is made."""

    UNAUTHORIZED = "unauthorized"
    RATE_LIMITED = "rate_limited"
    TIMEOUT = "timeout"
    UNKNOWN = "unknown"


class SetupError(Exception):
    """Base class for errors reported to the user and recovered from at the menu."""


class SpicetifyNotFoundError(SetupError):
    """The Spicetify executable is not on PATH or in its default install directory."""

    def __init__(self, message: str = "Spicetify CLI not found. Install it first (menu option 2)."):
        super().__init__(message)


class ReleaseFetchError(SetupError):
    """A GitHub API request or asset download failed."""

    def __init__(self, message: str, kind: FailureKind = FailureKind.UNKNOWN, status_code: Optional[int] = None):
        super().__init__(message)
        self.kind = kind
        self.status_code = status_code


class InstallerError(SetupError):
    """A vendor installer or archive extraction failed."""


class UnsupportedPlatformError(SetupError):
    """The requested operation is not available on this operating system."""
