"""Process wrapper for the Spicetify CLI.

Every call goes through `SpicetifyInvoker`, which adds the fixed flags,
captures combined stdout/stderr and classifies failures once, so callers
never re-match error text themselves.
"""

import shutil
import subprocess
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from ..errors import FailureKind, SpicetifyNotFoundError
from ..utils.helpers import default_spicetify_install_dir, spicetify_executable_name


BYPASS_ADMIN_FLAG = "--bypass-admin"
QUIET_FLAG = "-q"
QUIET_COMMANDS = ("backup", "apply")

DEFAULT_TIMEOUT = 300

RATE_LIMIT_MARKERS = ("rate limit", "rate-limit", "ratelimit", "403")
SUCCESS_MARKERS = ("success", "spiced up")
UNAUTHORIZED_MARKERS = ("401", "bad credentials", "unauthorized")
TIMEOUT_MARKERS = ("timed out", "timeout", "deadline exceeded")


@dataclass(frozen=True)
class InvocationResult:
    """Outcome of one Spicetify call.

    `ok` with `tolerated` set means a non-zero exit was overridden because
    the output showed success alongside a rate-limit warning.
    """

    args: tuple
    returncode: int
    output: str = ""
    failure: Optional[FailureKind] = None
    tolerated: bool = False

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def classify_output(returncode: int, output: str) -> tuple[int, Optional[FailureKind], bool]:
    """Classify a finished call.

    Returns:
        Tuple of (effective returncode, failure kind or None, tolerated)
    """
    if returncode == 0:
        return 0, None, False

    text = output.lower()
    if any(marker in text for marker in RATE_LIMIT_MARKERS):
        if any(marker in text for marker in SUCCESS_MARKERS):
            return 0, FailureKind.RATE_LIMITED, True
        return returncode, FailureKind.RATE_LIMITED, False
    if any(marker in text for marker in UNAUTHORIZED_MARKERS):
        return returncode, FailureKind.UNAUTHORIZED, False
    if any(marker in text for marker in TIMEOUT_MARKERS):
        return returncode, FailureKind.TIMEOUT, False
    return returncode, FailureKind.UNKNOWN, False


def find_spicetify() -> Optional[str]:
    """Locate the Spicetify executable on PATH or in the default install dir."""
    found = shutil.which("spicetify")
    if found:
        return found
    candidate = default_spicetify_install_dir() / spicetify_executable_name()
    if candidate.is_file():
        return str(candidate)
    return None


class SpicetifyInvoker:
    """Runs the Spicetify CLI and reports structured results."""

    def __init__(self, executable: Optional[str] = None, runner: Optional[Callable] = None,
                 timeout: float = DEFAULT_TIMEOUT):
        """Initialize the invoker.

        Args:
            executable: Path to the Spicetify binary (discovered lazily if None)
            runner: Callable with the `subprocess.run` signature
            timeout: Seconds before a call is abandoned
        """
        self._executable = executable
        self._runner = runner or subprocess.run
        self.timeout = timeout

    @property
    def executable(self) -> str:
        if self._executable is None:
            self._executable = find_spicetify()
        if self._executable is None:
            raise SpicetifyNotFoundError()
        return self._executable

    def is_available(self) -> bool:
        try:
            self.executable
        except SpicetifyNotFoundError:
            return False
        return True

    def reset(self) -> None:
        """Forget the cached executable so the next call searches again."""
        self._executable = None

    def build_command(self, args: Sequence[str], quiet: bool = False) -> list[str]:
        command = [self.executable, BYPASS_ADMIN_FLAG]
        if quiet:
            command.append(QUIET_FLAG)
        command.extend(args)
        return command

    def _run(self, command: list[str]) -> tuple[int, str]:
        try:
            completed = self._runner(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            self.reset()
            raise SpicetifyNotFoundError(f"Spicetify CLI could not be started: {e}") from e
        return completed.returncode, completed.stdout or ""

    def invoke(self, args: Sequence[str]) -> InvocationResult:
        """Run a Spicetify command and classify the outcome.

        `backup` and `apply` run in quiet mode so they never wait for input.

        Raises:
            SpicetifyNotFoundError: If the executable cannot be launched
        """
        args = tuple(args)
        quiet = bool(args) and args[0] in QUIET_COMMANDS
        command = self.build_command(args, quiet=quiet)
        try:
            returncode, output = self._run(command)
        except subprocess.TimeoutExpired as e:
            partial = e.output if isinstance(e.output, str) else ""
            return InvocationResult(args, -1, partial, FailureKind.TIMEOUT)

        returncode, failure, tolerated = classify_output(returncode, output)
        return InvocationResult(args, returncode, output, failure, tolerated)

    def invoke_capture(self, args: Sequence[str]) -> str:
        """Run a Spicetify command and return its combined output text."""
        try:
            _, output = self._run(self.build_command(args))
        except subprocess.TimeoutExpired:
            return ""
        return output
