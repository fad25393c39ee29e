"""Terminal UI building blocks: banner, install step tracker and a yes/no picker."""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

import readchar
from rich.align import Align
from rich.live import Live
from rich.text import Text
from rich.tree import Tree

from .utils.console import _get_console


BANNER = """
╔═╗╔═╗╦╔═╗╔═╗╔╦╗╦╔═╗╦ ╦  ╔═╗╔═╗╔╦╗╦ ╦╔═╗
╚═╗╠═╝║║  ║╣  ║ ║╠╣ ╚╦╝  ╚═╗║╣  ║ ║ ║╠═╝
╚═╝╩  ╩╚═╝╚═╝ ╩ ╩╚   ╩   ╚═╝╚═╝ ╩ ╚═╝╩
"""

TAGLINE = "Spotify + Spicetify installer and configurator"

# status -> (marker, label style)
STEP_STYLES = {
    "pending": ("[bright_black]·[/bright_black]", "bright_black"),
    "running": ("[cyan]>[/cyan]", "bold white"),
    "done": ("[green]✓[/green]", "white"),
    "skipped": ("[yellow]-[/yellow]", "bright_black"),
    "error": ("[red]✗[/red]", "red"),
}


def show_banner():
    """Print the banner centred, one colour per line."""
    console = _get_console()
    styled = Text()
    for line, color in zip(BANNER.strip().split("\n"), ("bright_green", "green", "bright_cyan")):
        styled.append(line + "\n", style=color)
    console.print(Align.center(styled))
    console.print(Align.center(Text(TAGLINE, style="italic bright_yellow")))
    console.print()


@dataclass
class InstallStep:
    key: str
    label: str
    status: str = "pending"
    detail: str = ""


class StepTracker:
    """Status of each step of an install, rendered as a rich Tree.

    Installers call `start`, `complete`, `error` and `skip` by step key.
    Keys that were not declared up front are appended as they appear.
    """

    def __init__(self, title: str, steps: Iterable[Tuple[str, str]] = ()):
        self.title = title
        self.steps: List[InstallStep] = [InstallStep(key, label) for key, label in steps]
        self._on_change = None

    def start(self, key: str, detail: str = ""):
        self._set(key, "running", detail)

    def complete(self, key: str, detail: str = ""):
        self._set(key, "done", detail)

    def error(self, key: str, detail: str = ""):
        self._set(key, "error", detail)

    def skip(self, key: str, detail: str = ""):
        self._set(key, "skipped", detail)

    def status_of(self, key: str) -> Optional[str]:
        step = self._find(key)
        return step.status if step else None

    def _find(self, key: str) -> Optional[InstallStep]:
        return next((s for s in self.steps if s.key == key), None)

    def _set(self, key: str, status: str, detail: str):
        step = self._find(key)
        if step is None:
            step = InstallStep(key, key)
            self.steps.append(step)
        step.status = status
        if detail:
            step.detail = detail
        if self._on_change:
            self._on_change()

    def render(self) -> Tree:
        tree = Tree(f"[bold cyan]{self.title}[/bold cyan]", guide_style="grey50")
        for step in self.steps:
            marker, style = STEP_STYLES.get(step.status, (" ", "white"))
            line = f"{marker} [{style}]{step.label}[/{style}]"
            if step.detail.strip():
                line += f" [bright_black]({step.detail.strip()})[/bright_black]"
            tree.add(line)
        return tree

    def live(self) -> Live:
        """A transient Live display that redraws on every status change."""
        live = Live(self.render(), console=_get_console(), refresh_per_second=8, transient=True)
        self._on_change = lambda: live.update(self.render())
        return live


def _choice_line(question: str, answer: bool) -> Text:
    line = Text(f"{question}  ", style="bold")
    for value, label in ((True, " Yes "), (False, " No ")):
        line.append(label, style="black on bright_cyan" if value == answer else "white")
        line.append(" ")
    line.append("  ←/→ to choose, Enter to confirm, Esc for No", style="dim")
    return line


def arrow_confirm(question: str, default: bool = True) -> bool:
    """Yes/No toggle driven by the arrow keys; `y` and `n` answer directly.

    Esc and Ctrl+C answer No.
    """
    answer = default
    with Live(_choice_line(question, answer), console=_get_console(), transient=True, auto_refresh=False) as live:
        while True:
            key = readchar.readkey()
            if key in (readchar.key.LEFT, readchar.key.RIGHT, readchar.key.UP, readchar.key.DOWN):
                answer = not answer
            elif key == readchar.key.ENTER:
                break
            elif key in (readchar.key.ESC, readchar.key.CTRL_C) or key.lower() == "n":
                answer = False
                break
            elif key.lower() == "y":
                answer = True
                break
            live.update(_choice_line(question, answer), refresh=True)
    _get_console().print(f"{question} [bright_cyan]{'Yes' if answer else 'No'}[/bright_cyan]")
    return answer
