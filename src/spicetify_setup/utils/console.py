"""Console utility functions for formatting and output."""

from typing import Any, Optional

import click
from colorama import Fore, Style, init
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

init(autoreset=True)


# Status symbols for consistent iconography
STATUS_SYMBOLS = {
    'success': '✓',
    'info': '•',
    'warning': '⚠',
    'error': '✗',
    'running': '→',
    'gear': '⚙',
    'list': '•',
}

_COLORAMA_COLORS = {
    'red': Fore.RED,
    'green': Fore.GREEN,
    'yellow': Fore.YELLOW,
    'blue': Fore.BLUE,
    'cyan': Fore.CYAN,
    'white': Fore.WHITE,
    'magenta': Fore.MAGENTA,
    'muted': Fore.WHITE,
}

_console: Optional[Console] = None


def _get_console() -> Console:
    """Get the shared Rich console."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def _rich_echo(message: str, color: str = "white", style: str = None, bold: bool = False, symbol: str = None):
    """Echo message with Rich formatting, falling back to colorama."""
    if style is not None:
        color = style

    if symbol and symbol in STATUS_SYMBOLS:
        message = f"{STATUS_SYMBOLS[symbol]} {message}"

    style_str = f"bold {color}" if bold else color
    try:
        _get_console().print(message, style=style_str)
        return
    except Exception:
        # Unrenderable markup or a console that rejects the style
        pass

    color_code = _COLORAMA_COLORS.get(color, Fore.WHITE)
    style_code = Style.BRIGHT if bold else ""
    click.echo(f"{color_code}{style_code}{message}{Style.RESET_ALL}")


def _rich_success(message: str, symbol: str = None):
    """Display success message with green color and bold styling."""
    _rich_echo(message, color="green", symbol=symbol, bold=True)


def _rich_error(message: str, symbol: str = None):
    """Display error message with red color."""
    _rich_echo(message, color="red", symbol=symbol)


def _rich_warning(message: str, symbol: str = None):
    """Display warning message with yellow color."""
    _rich_echo(message, color="yellow", symbol=symbol)


def _rich_info(message: str, symbol: str = None):
    """Display info message with cyan color."""
    _rich_echo(message, color="cyan", symbol=symbol)


def _rich_panel(content: str, title: str = None, style: str = "cyan"):
    """Display content in a Rich panel."""
    _get_console().print(Panel(content, title=title, border_style=style))


def _create_list_table(entries: list, title: str, empty_text: str = "(none)") -> Any:
    """Create a numbered Rich table for a configuration list."""
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("#", style="bright_black", justify="right", width=3)
    table.add_column("Entry", style="bold white")

    if not entries:
        table.add_row("", f"[dim]{empty_text}[/dim]")
    for index, entry in enumerate(entries, start=1):
        table.add_row(str(index), str(entry))
    return table
