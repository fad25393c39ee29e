"""
Spicetify Setup CLI

Usage:
    spicetify-setup                       # interactive menu
    spicetify-setup install spicetify
    spicetify-setup config extension add fullAppDisplay.js
    spicetify-setup apply
"""

import sys
from typing import Optional

import colorama
import typer
from rich.align import Align
from typer.core import TyperGroup

from . import config
from .core.config_store import (
    COLOR_SCHEME_KEY,
    CURRENT_THEME_KEY,
    CUSTOM_APPS_KEY,
    EXTENSIONS_KEY,
    FLAG_SETTINGS,
)
from .core.invoker import SpicetifyInvoker
from .core.orchestrator import BackupOutcome
from .core.token_manager import mask_token
from .errors import SetupError
from .menu import SetupMenu
from .ui import show_banner
from .utils.console import _create_list_table, _get_console, _rich_error, _rich_panel, _rich_success, _rich_warning
from .version import get_version


MIN_PYTHON = (3, 11)


class BannerGroup(TyperGroup):
    """Custom group that shows banner before help."""

    def format_help(self, ctx, formatter):
        show_banner()
        super().format_help(ctx, formatter)


app = typer.Typer(
    name="spicetify-setup",
    help="Install Spotify and Spicetify and manage Spicetify's configuration",
    add_completion=False,
    invoke_without_command=True,
    cls=BannerGroup,
)
install_app = typer.Typer(help="Install Spotify, the Spicetify CLI or Marketplace", add_completion=False)
config_app = typer.Typer(help="Change Spicetify configuration", add_completion=False)
extension_app = typer.Typer(help="Manage the extensions list", add_completion=False)
custom_app_app = typer.Typer(help="Manage the custom apps list", add_completion=False)
launch_flag_app = typer.Typer(help="Manage Spotify launch flags", add_completion=False)
token_app = typer.Typer(help="Manage the saved GitHub token", add_completion=False)

app.add_typer(install_app, name="install")
app.add_typer(config_app, name="config")
app.add_typer(token_app, name="token")
config_app.add_typer(extension_app, name="extension")
config_app.add_typer(custom_app_app, name="app")
config_app.add_typer(launch_flag_app, name="launch-flag")


def _make_menu(github_token: Optional[str] = None, skip_tls: bool = False, debug: bool = False,
               interactive: bool = True) -> SetupMenu:
    """Build the menu object that backs both the menu and the one-shot commands.

    One-shot commands never ask whether to apply; they print a hint instead.
    """
    kwargs = {} if interactive else {"confirm": lambda message: False}
    return SetupMenu(SpicetifyInvoker(), github_token=github_token, skip_tls=skip_tls, debug=debug, **kwargs)


def _require_spicetify(menu: SetupMenu) -> None:
    if not menu.require_spicetify():
        raise typer.Exit(1)


def _run(action, debug: bool = False) -> None:
    """Run an action, turning reported failures into exit code 1."""
    try:
        action()
    except SetupError as e:
        _rich_error(str(e), symbol="error")
        if debug:
            _env_pairs = [
                ("Python", sys.version.split()[0]),
                ("Platform", sys.platform),
                ("Version", get_version()),
            ]
            _label_width = max(len(k) for k, _ in _env_pairs)
            env_lines = [f"{k.ljust(_label_width)} → [bright_black]{v}[/bright_black]" for k, v in _env_pairs]
            _rich_panel("\n".join(env_lines), title="Debug Environment", style="magenta")
        raise typer.Exit(1)


def _check_result(ok: bool, message: str) -> None:
    if ok:
        _rich_success(message)
    else:
        _rich_error("Spicetify rejected the change")
        raise typer.Exit(1)


@app.callback()
def callback(
    ctx: typer.Context,
    version: bool = typer.Option(False, "--version", help="Show the version and exit"),
):
    """Start the interactive menu when no subcommand is given."""
    if version:
        _get_console().print(f"spicetify-setup {get_version()}")
        raise typer.Exit(0)
    if ctx.invoked_subcommand is None:
        _make_menu().run()


@app.command()
def menu(
    github_token: str = typer.Option(None, "--github-token", help="GitHub token for API requests (or set GH_TOKEN or GITHUB_TOKEN)"),
    skip_tls: bool = typer.Option(False, "--skip-tls", help="Skip SSL/TLS verification (not recommended)"),
    debug: bool = typer.Option(False, "--debug", help="Show verbose diagnostic output for network failures"),
):
    """Open the interactive numbered menu."""
    _make_menu(github_token, skip_tls, debug).run()


# Installers

@install_app.command("spotify")
def install_spotify_command(
    skip_tls: bool = typer.Option(False, "--skip-tls", help="Skip SSL/TLS verification (not recommended)"),
    debug: bool = typer.Option(False, "--debug", help="Show verbose diagnostic output"),
):
    """Download and silently install Spotify if it is missing."""
    m = _make_menu(skip_tls=skip_tls, debug=debug)
    _run(m.install_spotify, debug)


@install_app.command("spicetify")
def install_spicetify_command(
    github_token: str = typer.Option(None, "--github-token", help="GitHub token for API requests (or set GH_TOKEN or GITHUB_TOKEN)"),
    skip_tls: bool = typer.Option(False, "--skip-tls", help="Skip SSL/TLS verification (not recommended)"),
    debug: bool = typer.Option(False, "--debug", help="Show verbose diagnostic output"),
):
    """Download the latest Spicetify CLI and add it to PATH."""
    m = _make_menu(github_token, skip_tls, debug)
    _run(m.install_spicetify, debug)


@install_app.command("marketplace")
def install_marketplace_command(
    github_token: str = typer.Option(None, "--github-token", help="GitHub token for API requests (or set GH_TOKEN or GITHUB_TOKEN)"),
    skip_tls: bool = typer.Option(False, "--skip-tls", help="Skip SSL/TLS verification (not recommended)"),
    debug: bool = typer.Option(False, "--debug", help="Show verbose diagnostic output"),
):
    """Install the Marketplace custom app (run 'apply' afterwards)."""
    m = _make_menu(github_token, skip_tls, debug, interactive=False)
    _require_spicetify(m)
    _run(m.install_marketplace, debug)


# List keys: extensions and custom apps

def _list_entries(key: str, title: str) -> None:
    m = _make_menu(interactive=False)
    _require_spicetify(m)
    _get_console().print(_create_list_table(m.store.get_list(key), title))


def _add_entry(key: str, name: str) -> None:
    m = _make_menu(interactive=False)
    _require_spicetify(m)
    if name in m.store.get_list(key):
        _rich_warning(f"'{name}' is already in {key}")
        return
    _check_result(m.store.add_token(key, name), f"Added '{name}' to {key}; run 'spicetify-setup apply' to use it")


def _remove_entry(key: str, name: str) -> None:
    m = _make_menu(interactive=False)
    _require_spicetify(m)
    _check_result(m.store.remove_token(key, name), f"Removed '{name}' from {key}")


def _clear_entries(key: str, yes: bool) -> None:
    m = _make_menu(interactive=False)
    _require_spicetify(m)
    entries = m.store.get_list(key)
    if not entries:
        _rich_warning(f"{key} is already empty")
        return
    if not yes and not typer.confirm(f"Remove all {len(entries)} entries from {key}?"):
        raise typer.Exit(0)
    removed = m.store.clear_all(key, entries)
    _check_result(removed == len(entries), f"Removed {removed} entries from {key}")


@extension_app.command("list")
def extension_list():
    """Show configured extensions."""
    _list_entries(EXTENSIONS_KEY, "Extensions")


@extension_app.command("add")
def extension_add(name: str = typer.Argument(..., help="Extension file name, e.g. fullAppDisplay.js")):
    """Add an extension."""
    _add_entry(EXTENSIONS_KEY, name)


@extension_app.command("remove")
def extension_remove(name: str = typer.Argument(..., help="Extension file name")):
    """Remove an extension."""
    _remove_entry(EXTENSIONS_KEY, name)


@extension_app.command("clear")
def extension_clear(yes: bool = typer.Option(False, "-y", "--yes", help="Do not ask for confirmation")):
    """Remove all extensions."""
    _clear_entries(EXTENSIONS_KEY, yes)


@custom_app_app.command("list")
def custom_app_list():
    """Show configured custom apps."""
    _list_entries(CUSTOM_APPS_KEY, "Custom apps")


@custom_app_app.command("add")
def custom_app_add(name: str = typer.Argument(..., help="Custom app folder name, e.g. lyrics-plus")):
    """Add a custom app."""
    _add_entry(CUSTOM_APPS_KEY, name)


@custom_app_app.command("remove")
def custom_app_remove(name: str = typer.Argument(..., help="Custom app folder name")):
    """Remove a custom app."""
    _remove_entry(CUSTOM_APPS_KEY, name)


@custom_app_app.command("clear")
def custom_app_clear(yes: bool = typer.Option(False, "-y", "--yes", help="Do not ask for confirmation")):
    """Remove all custom apps."""
    _clear_entries(CUSTOM_APPS_KEY, yes)


# Launch flags

@launch_flag_app.command("list")
def launch_flag_list():
    """Show Spotify launch flags."""
    m = _make_menu(interactive=False)
    _require_spicetify(m)
    _get_console().print(_create_list_table(m.launch_flags.current(), "Spotify launch flags"))


@launch_flag_app.command("add", context_settings={"ignore_unknown_options": True})
def launch_flag_add(flag: str = typer.Argument(..., help="Flag such as --minimized")):
    """Add a launch flag."""
    m = _make_menu(interactive=False)
    _require_spicetify(m)
    if flag in m.launch_flags.current():
        _rich_warning(f"'{flag}' is already set")
        return
    _check_result(m.launch_flags.add(flag), f"Added {flag}")


@launch_flag_app.command("remove", context_settings={"ignore_unknown_options": True})
def launch_flag_remove(flag: str = typer.Argument(..., help="Flag to remove")):
    """Remove a launch flag."""
    m = _make_menu(interactive=False)
    _require_spicetify(m)
    if flag not in m.launch_flags.current():
        _rich_warning(f"'{flag}' is not set")
        return
    _check_result(m.launch_flags.remove(flag), f"Removed {flag}")


@launch_flag_app.command("clear")
def launch_flag_clear():
    """Remove all launch flags."""
    m = _make_menu(interactive=False)
    _require_spicetify(m)
    _check_result(m.launch_flags.clear(), "Launch flags cleared")


# Scalar settings

@config_app.command("flag")
def config_flag(
    key: str = typer.Argument(..., help=f"One of: {', '.join(FLAG_SETTINGS)}"),
    state: str = typer.Argument(..., help="on or off"),
):
    """Turn a boolean Spicetify setting on or off."""
    if key not in FLAG_SETTINGS:
        _rich_error(f"Unknown setting '{key}'. Choose from: {', '.join(FLAG_SETTINGS)}")
        raise typer.Exit(1)
    if state.lower() not in ("on", "off", "1", "0"):
        _rich_error("State must be 'on' or 'off'")
        raise typer.Exit(1)
    m = _make_menu(interactive=False)
    _require_spicetify(m)
    enabled = state.lower() in ("on", "1")
    _check_result(m.store.set_flag(key, enabled), f"{key} is now {'on' if enabled else 'off'}")


@config_app.command("theme")
def config_theme(
    name: str = typer.Argument(..., help="Theme folder name"),
    scheme: str = typer.Option(None, "--scheme", help="Colour scheme within the theme"),
):
    """Select the Spicetify theme and colour scheme."""
    m = _make_menu(interactive=False)
    _require_spicetify(m)
    ok = m.store.set_value(CURRENT_THEME_KEY, name)
    if ok and scheme:
        ok = m.store.set_value(COLOR_SCHEME_KEY, scheme)
    _check_result(ok, f"Theme set to {name}" + (f" ({scheme})" if scheme else ""))


# Apply / backup / restore

@app.command()
def apply():
    """Back up Spotify and apply the current Spicetify configuration."""
    m = _make_menu(interactive=False)
    _require_spicetify(m)
    outcome = m.orchestrator.backup_and_apply()
    if not outcome.ok:
        m.report_failure("Apply", m.orchestrator.last_result)
        raise typer.Exit(1)


@app.command()
def backup():
    """Back up Spotify's original files."""
    m = _make_menu(interactive=False)
    _require_spicetify(m)
    outcome = m.orchestrator.backup()
    if outcome is BackupOutcome.FAILED_CONTINUE:
        _rich_warning("Continuing without a confirmed backup; 'apply' will still run")
    else:
        _rich_success("Backup ready", symbol="success")


@app.command()
def restore(yes: bool = typer.Option(False, "-y", "--yes", help="Do not ask for confirmation")):
    """Restore Spotify to its original state."""
    m = _make_menu(interactive=False)
    _require_spicetify(m)
    if not yes and not typer.confirm("Restore Spotify to its original state?"):
        raise typer.Exit(0)
    result = m.orchestrator.restore()
    if not result.ok:
        m.report_failure("Restore", result)
        raise typer.Exit(1)
    _rich_success("Spotify restored", symbol="success")


@app.command()
def status():
    """Show Spotify, Spicetify and configuration status."""
    m = _make_menu(interactive=False)
    _run(m.status)


# Token

@token_app.command("set")
def token_set(token: str = typer.Option(..., prompt="GitHub token", hide_input=True, help="GitHub personal access token")):
    """Validate and save a GitHub token."""
    m = _make_menu(interactive=False)
    if not m.save_github_token(token.strip()):
        raise typer.Exit(1)


@token_app.command("clear")
def token_clear():
    """Forget the saved GitHub token."""
    m = _make_menu(interactive=False)
    m.tokens.clear_token()
    _rich_success("Saved token cleared")


@token_app.command("show")
def token_show():
    """Show the active token (masked) and where it comes from."""
    m = _make_menu(interactive=False)
    _get_console().print(f"{mask_token(m.tokens.get_token())} [dim]({m.tokens.get_token_source()})[/dim]")


@token_app.command("validate")
def token_validate():
    """Check the active token against GitHub."""
    m = _make_menu(interactive=False)
    try:
        valid = m.validate_github_token()
    except SetupError as e:
        _rich_error(str(e))
        raise typer.Exit(1)
    if not valid:
        raise typer.Exit(1)


def check_python_version() -> None:
    if sys.version_info < MIN_PYTHON:
        required = ".".join(str(part) for part in MIN_PYTHON)
        _get_console().print(Align.center(
            f"[red]Python {required} or newer is required (running {sys.version.split()[0]})[/red]"
        ))
        raise SystemExit(1)


def main():
    colorama.just_fix_windows_console()
    check_python_version()
    config.ensure_config_exists()
    app()


if __name__ == "__main__":
    main()
