"""Interactive numbered menu.

Every action runs inside an error boundary: failures print a message and
control returns to the menu. Lists are read fresh from Spicetify whenever a
submenu is shown.
"""

import sys
from dataclasses import dataclass
from typing import Callable, List, Optional

import httpx
from rich.prompt import Confirm, Prompt
from rich.table import Table

from . import config
from .core.config_store import (
    COLOR_SCHEME_KEY,
    CURRENT_THEME_KEY,
    CUSTOM_APPS_KEY,
    EXTENSIONS_KEY,
    FLAG_SETTINGS,
    TRUE_VALUES,
    SpicetifyConfigStore,
)
from .core.invoker import InvocationResult, SpicetifyInvoker
from .core.launch_flags import KNOWN_LAUNCH_FLAGS, LaunchFlagEditor
from .core.orchestrator import ApplyOrchestrator
from .core.paths import SpicetifyPaths
from .core.session import Session, detect_applied
from .core.token_manager import GitHubTokenManager, mask_token
from .errors import ReleaseFetchError, SetupError
from .github.releases import make_client, validate_token
from .installers.spicetify import install_marketplace, install_spicetify, spicetify_version
from .installers.spotify import detect_spotify, install_spotify
from .ui import StepTracker, arrow_confirm, show_banner
from .utils.console import (
    _create_list_table,
    _get_console,
    _rich_error,
    _rich_info,
    _rich_success,
    _rich_warning,
)


def _prompt(message: str, default: str = "") -> str:
    return Prompt.ask(message, default=default, show_default=bool(default), console=_get_console())


def _confirm(message: str) -> bool:
    if sys.stdin.isatty():
        return arrow_confirm(message)
    return Confirm.ask(message, console=_get_console())


@dataclass
class MenuEntry:
    key: str
    label: str
    handler: Callable[[], None]
    needs_spicetify: bool = False


class SetupMenu:
    """The numbered text menu and its actions."""

    def __init__(self, invoker: Optional[SpicetifyInvoker] = None, session: Optional[Session] = None, *,
                 ask: Callable[..., str] = None, confirm: Callable[[str], bool] = None,
                 github_token: Optional[str] = None, skip_tls: bool = False, debug: bool = False,
                 client_factory: Callable[[], httpx.Client] = None):
        self.invoker = invoker or SpicetifyInvoker()
        self.session = session or Session()
        self.store = SpicetifyConfigStore(self.invoker)
        self.paths = SpicetifyPaths(self.invoker)
        self.orchestrator = ApplyOrchestrator(self.invoker, self.store, self.session, self.paths)
        self.launch_flags = LaunchFlagEditor(self.store)
        self.tokens = GitHubTokenManager(github_token)
        self.ask = ask or _prompt
        self.confirm = confirm or _confirm
        self.debug = debug
        self._client_factory = client_factory or (
            lambda: make_client(skip_tls=skip_tls, timeout=config.get_request_timeout())
        )
        self.entries = self._build_entries()

    def _build_entries(self) -> List[MenuEntry]:
        return [
            MenuEntry("1", "Install Spotify", self.install_spotify),
            MenuEntry("2", "Install Spicetify CLI", self.install_spicetify),
            MenuEntry("3", "Install Marketplace", self.install_marketplace, True),
            MenuEntry("4", "Manage extensions", self.manage_extensions, True),
            MenuEntry("5", "Manage custom apps", self.manage_custom_apps, True),
            MenuEntry("6", "Theme and colour scheme", self.set_theme, True),
            MenuEntry("7", "Toggle config flags", self.toggle_flags, True),
            MenuEntry("8", "Spotify launch flags", self.manage_launch_flags, True),
            MenuEntry("9", "Backup and apply", self.backup_and_apply, True),
            MenuEntry("10", "Restore Spotify", self.restore, True),
            MenuEntry("11", "Enable developer tools", self.enable_devtools, True),
            MenuEntry("12", "Block or unblock Spotify updates", self.spotify_updates, True),
            MenuEntry("13", "Refresh extensions", self.refresh_extensions, True),
            MenuEntry("14", "GitHub token", self.github_token),
            MenuEntry("15", "Status", self.status),
        ]

    # Loop and dispatch

    def run(self) -> None:
        show_banner()
        while True:
            self.render()
            try:
                choice = self.ask("Choose an option").strip()
            except (KeyboardInterrupt, EOFError):
                _get_console().print()
                break
            if not self.dispatch(choice):
                break
        _rich_info("Bye")

    def render(self) -> None:
        table = Table(show_header=False, box=None, padding=(0, 2))
        table.add_column(style="bright_cyan", justify="right")
        table.add_column(style="white")
        for entry in self.entries:
            table.add_row(entry.key, entry.label)
        table.add_row("0", "Exit")
        _get_console().print(table)
        applied = "[green]yes[/green]" if self.session.changes_applied else "[bright_black]no[/bright_black]"
        _get_console().print(f"[dim]Changes applied this session:[/dim] {applied}")

    def dispatch(self, choice: str) -> bool:
        """Run the action for `choice`; returns False when the menu should exit."""
        if choice in ("0", "q", "quit", "exit"):
            return False
        if not choice:
            return True
        entry = next((e for e in self.entries if e.key == choice), None)
        if entry is None:
            _rich_warning(f"Unknown option: {choice}")
            return True
        self.run_action(entry)
        return True

    def run_action(self, entry: MenuEntry) -> None:
        if entry.needs_spicetify and not self.require_spicetify():
            return
        try:
            entry.handler()
        except (SetupError, httpx.HTTPError, OSError) as e:
            _rich_error(f"{entry.label} failed: {e}", symbol="error")
        except KeyboardInterrupt:
            _rich_warning("Cancelled")

    def require_spicetify(self) -> bool:
        if self.invoker.is_available():
            return True
        _rich_warning("Spicetify CLI is not installed. Install it first (option 2).", symbol="warning")
        return False

    # Installers

    def _token(self) -> Optional[str]:
        return self.tokens.get_token()

    def _run_tracked(self, title: str, steps, action):
        tracker = StepTracker(title, steps)
        try:
            with tracker.live():
                return action(tracker)
        finally:
            _get_console().print(tracker.render())

    def install_spotify(self) -> None:
        with self._client_factory() as client:
            result = self._run_tracked(
                "Install Spotify",
                [("detect", "Detect Spotify"), ("download", "Download installer"), ("install", "Silent install")],
                lambda tracker: install_spotify(client=client, tracker=tracker),
            )
        if result.store_edition:
            _rich_warning("The Microsoft Store edition of Spotify is installed; Spicetify cannot patch it. "
                          "Uninstall it and choose this option again to install the desktop edition.")
        else:
            _rich_success("Spotify is installed", symbol="success")

    def install_spicetify(self) -> None:
        with self._client_factory() as client:
            executable = self._run_tracked(
                "Install Spicetify CLI",
                [("fetch", "Fetch latest release"), ("download", "Download archive"),
                 ("extract", "Extract archive"), ("path", "Add to PATH"), ("init-config", "Generate config")],
                lambda tracker: install_spicetify(client=client, token=self._token(), tracker=tracker,
                                                  debug=self.debug),
            )
        self.invoker.reset()
        _rich_success(f"Spicetify installed at {executable}", symbol="success")

    def install_marketplace(self) -> None:
        with self._client_factory() as client:
            release = self._run_tracked(
                "Install Marketplace",
                [("fetch", "Fetch latest release"), ("download", "Download archive"),
                 ("extract", "Extract into CustomApps"), ("register", "Register custom app")],
                lambda tracker: install_marketplace(self.store, self.paths, client=client, token=self._token(),
                                                    tracker=tracker, debug=self.debug),
            )
        _rich_success(f"Marketplace {release.tag_name} installed", symbol="success")
        self._offer_apply()

    # Configuration lists

    def manage_extensions(self) -> None:
        self._manage_list(EXTENSIONS_KEY, "Extensions", "extension file (e.g. fullAppDisplay.js)")

    def manage_custom_apps(self) -> None:
        self._manage_list(CUSTOM_APPS_KEY, "Custom apps", "custom app folder name (e.g. lyrics-plus)")

    def add_list_entry(self, key: str, token: str, current: List[str]) -> bool:
        """Add `token` unless the list already shows it; no write in that case."""
        if token in current:
            _rich_warning(f"'{token}' is already in {key}")
            return False
        if self.store.add_token(key, token):
            _rich_success(f"Added '{token}' to {key}")
            return True
        _rich_error(f"Spicetify rejected adding '{token}' to {key}")
        return False

    def _resolve_entry(self, answer: str, current: List[str]) -> Optional[str]:
        # An exact entry name beats a list position
        if answer in current:
            return answer
        if answer.isdigit():
            index = int(answer) - 1
            return current[index] if 0 <= index < len(current) else None
        return None

    def _manage_list(self, key: str, title: str, hint: str) -> None:
        changed = False
        while True:
            current = self.store.get_list(key)
            _get_console().print(_create_list_table(current, title))
            action = self.ask("[a]dd, [r]emove, [c]lear all, [b]ack", "b").strip().lower()

            if action in ("b", "back", ""):
                break
            if action == "a":
                token = self.ask(f"Name of the {hint}").strip()
                if token and self.add_list_entry(key, token, current):
                    changed = True
            elif action == "r":
                if not current:
                    _rich_info(f"{title} list is empty")
                    continue
                token = self._resolve_entry(self.ask("Number or name to remove").strip(), current)
                if token is None:
                    _rich_warning("No such entry")
                elif self.store.remove_token(key, token):
                    _rich_success(f"Removed '{token}' from {key}")
                    changed = True
                else:
                    _rich_error(f"Spicetify rejected removing '{token}'")
            elif action == "c":
                if not current:
                    _rich_info(f"{title} list is already empty")
                elif self.confirm(f"Remove all {len(current)} entries from {key}?"):
                    removed = self.store.clear_all(key, current)
                    _rich_success(f"Removed {removed} of {len(current)} entries")
                    changed = True
            else:
                _rich_warning(f"Unknown action: {action}")

        if changed:
            self._offer_apply()

    def set_theme(self) -> None:
        theme = self.store.read(CURRENT_THEME_KEY)
        scheme = self.store.read(COLOR_SCHEME_KEY)
        _rich_info(f"Current theme: {theme or '(none)'}  colour scheme: {scheme or '(none)'}")
        themes_dir = self.paths.themes_dir()
        if themes_dir.is_dir():
            available = sorted(p.name for p in themes_dir.iterdir() if p.is_dir())
            if available:
                _rich_info(f"Installed themes: {', '.join(available)}")

        new_theme = self.ask("Theme name (blank to keep)").strip()
        new_scheme = self.ask("Colour scheme (blank to keep)").strip()
        changed = False
        if new_theme and new_theme != theme:
            changed = self.store.set_value(CURRENT_THEME_KEY, new_theme) or changed
        if new_scheme and new_scheme != scheme:
            changed = self.store.set_value(COLOR_SCHEME_KEY, new_scheme) or changed
        if changed:
            _rich_success("Theme settings updated")
            self._offer_apply()

    def toggle_flags(self) -> None:
        keys = list(FLAG_SETTINGS)
        changed = False
        while True:
            settings = self.store.read_all()
            table = Table(title="Config flags", header_style="bold cyan")
            table.add_column("#", justify="right", style="bright_black")
            table.add_column("Setting", style="bold white")
            table.add_column("Description", style="white")
            table.add_column("State")
            for index, key in enumerate(keys, start=1):
                enabled = settings.get(key, "").lower() in TRUE_VALUES
                table.add_row(str(index), key, FLAG_SETTINGS[key],
                              "[green]on[/green]" if enabled else "[bright_black]off[/bright_black]")
            _get_console().print(table)

            answer = self.ask("Number to toggle (blank to go back)").strip()
            if not answer:
                break
            if not answer.isdigit() or not 1 <= int(answer) <= len(keys):
                _rich_warning("No such setting")
                continue
            key = keys[int(answer) - 1]
            enabled = settings.get(key, "").lower() in TRUE_VALUES
            if self.store.set_flag(key, not enabled):
                _rich_success(f"{key} is now {'off' if enabled else 'on'}")
                changed = True
            else:
                _rich_error(f"Spicetify rejected changing {key}")
        if changed:
            self._offer_apply()

    def manage_launch_flags(self) -> None:
        changed = False
        while True:
            current = self.launch_flags.current()
            _get_console().print(_create_list_table(current, "Spotify launch flags"))
            action = self.ask("[a]dd, [r]emove, [c]lear all, [l]ist known flags, [b]ack", "b").strip().lower()

            if action in ("b", "back", ""):
                break
            if action == "l":
                table = Table(title="Known launch flags", header_style="bold cyan")
                table.add_column("Flag", style="bold white")
                table.add_column("Effect", style="white")
                for flag, description in KNOWN_LAUNCH_FLAGS.items():
                    table.add_row(flag, description)
                _get_console().print(table)
            elif action == "a":
                flag = self.ask("Flag to add (e.g. --minimized)").strip()
                if not flag:
                    continue
                if flag in current:
                    _rich_warning(f"'{flag}' is already set")
                elif self.launch_flags.add(flag):
                    _rich_success(f"Added {flag}")
                    changed = True
                else:
                    _rich_error(f"Spicetify rejected adding {flag}")
            elif action == "r":
                flag = self._resolve_entry(self.ask("Number or flag to remove").strip(), current)
                if flag is None:
                    _rich_warning("No such flag")
                elif self.launch_flags.remove(flag):
                    _rich_success(f"Removed {flag}")
                    changed = True
            elif action == "c":
                if current and self.confirm("Remove all launch flags?") and self.launch_flags.clear():
                    _rich_success("Launch flags cleared")
                    changed = True
            else:
                _rich_warning(f"Unknown action: {action}")
        if changed:
            self._offer_apply()

    # Apply / restore and other Spicetify commands

    def _offer_apply(self) -> None:
        if self.confirm("Apply changes to Spotify now?"):
            self.backup_and_apply()
        else:
            _rich_info("Changes saved; use 'Backup and apply' to make them visible in Spotify")

    def backup_and_apply(self) -> None:
        outcome = self.orchestrator.backup_and_apply()
        if not outcome.ok:
            self.report_failure("Apply", self.orchestrator.last_result)

    def restore(self) -> None:
        if not self.confirm("Restore Spotify to its original state?"):
            return
        result = self.orchestrator.restore()
        if result.ok:
            _rich_success("Spotify restored", symbol="success")
        else:
            self.report_failure("Restore", result)

    def enable_devtools(self) -> None:
        self._report(self.orchestrator.enable_devtools(), "Developer tools enabled", "Enable developer tools")

    def spotify_updates(self) -> None:
        choice = self.ask("[b]lock or [u]nblock Spotify updates", "b").strip().lower()
        block = not choice.startswith("u")
        self._report(self.orchestrator.block_updates(block),
                     f"Spotify updates {'blocked' if block else 'unblocked'}", "Spotify updates")

    def refresh_extensions(self) -> None:
        self._report(self.orchestrator.refresh_extensions(), "Extensions refreshed", "Refresh extensions")

    def _report(self, result: InvocationResult, success: str, action: str) -> None:
        if result.ok:
            _rich_success(success, symbol="success")
        else:
            self.report_failure(action, result)

    def report_failure(self, action: str, result: Optional[InvocationResult]) -> None:
        if result is None:
            _rich_error(f"{action} failed")
            return
        reason = result.failure.value if result.failure else "error"
        _rich_error(f"{action} failed (exit code {result.returncode}, {reason})", symbol="error")
        tail = "\n".join(result.output.strip().splitlines()[-8:])
        if tail:
            _get_console().print(tail, style="bright_black", markup=False)

    # Token and status

    def github_token(self) -> None:
        token = self.tokens.get_token()
        _rich_info(f"GitHub token: {mask_token(token)} (source: {self.tokens.get_token_source()})")
        action = self.ask("[s]et, [c]lear saved token, [v]alidate, [b]ack", "b").strip().lower()

        if action == "s":
            new_token = self.ask("Paste a GitHub personal access token").strip()
            if new_token:
                self.save_github_token(new_token)
        elif action == "c":
            self.tokens.clear_token()
            _rich_success("Saved token cleared")
        elif action == "v":
            self.validate_github_token()

    def save_github_token(self, token: str) -> bool:
        """Validate `token` against GitHub and save it unless it is rejected.

        A token that cannot be checked (network trouble, rate limit) is saved anyway.
        """
        try:
            with self._client_factory() as client:
                valid = validate_token(token, client)
        except ReleaseFetchError as e:
            _rich_warning(f"Could not validate the token ({e}); saving it anyway")
            valid = True
        if not valid:
            _rich_error("GitHub rejected this token; it was not saved")
            return False
        self.tokens.save_token(token)
        _rich_success("Token saved", symbol="success")
        return True

    def validate_github_token(self) -> bool:
        token = self.tokens.get_token()
        if not token:
            _rich_warning("No token configured")
            return False
        with self._client_factory() as client:
            valid = validate_token(token, client)
        if valid:
            _rich_success("Token is valid")
        else:
            _rich_error("Token is invalid")
        return valid

    def status(self) -> None:
        spotify = detect_spotify()
        version = spicetify_version(self.invoker)

        table = Table(title="Status", show_header=False, header_style="bold cyan")
        table.add_column(style="bold white")
        table.add_column(style="white")

        if spotify.found:
            edition = "Microsoft Store edition" if spotify.store_edition else str(spotify.location or "installed")
            table.add_row("Spotify", f"[green]{edition}[/green]")
        else:
            table.add_row("Spotify", "[red]not installed[/red]")
        table.add_row("Spicetify", f"[green]{version}[/green]" if version else "[red]not installed[/red]")

        if version:
            table.add_row("User data", str(self.paths.userdata()))
            table.add_row("Theme", self.store.read(CURRENT_THEME_KEY) or "(none)")
            table.add_row("Extensions", ", ".join(self.store.get_list(EXTENSIONS_KEY)) or "(none)")
            table.add_row("Custom apps", ", ".join(self.store.get_list(CUSTOM_APPS_KEY)) or "(none)")
            table.add_row("Launch flags", " ".join(self.launch_flags.current()) or "(none)")
            applied = detect_applied(self.session, self.store, self.paths)
            table.add_row("Applied", "[green]yes[/green]" if applied else "[yellow]not detected[/yellow]")

        table.add_row("GitHub token", f"{mask_token(self.tokens.get_token())} ({self.tokens.get_token_source()})")
        _get_console().print(table)
