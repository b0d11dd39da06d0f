"""Rich Console factory and theme for flatstore output.

Consoles render into a StringIO buffer so renderers can return plain
strings. Outside a terminal (tests, pipes) Rich drops color codes.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

FLAT_THEME = Theme(
    {
        "flat.ok": "bold green",
        "flat.error": "bold red",
        "flat.warning": "bold yellow",
        "flat.op": "bold cyan",
        "flat.key": "dim",
        "flat.id": "bold blue",
        "flat.title": "bold",
        "flat.admin": "magenta",
        "flat.status.home": "green",
        "flat.status.away": "yellow",
        "flat.status.out": "cyan",
        "flat.status.dnd": "red",
        "flat.ended": "dim",
    }
)

_STATUS_STYLES: dict[str, str] = {
    "HOME": "flat.status.home",
    "AWAY": "flat.status.away",
    "OUT": "flat.status.out",
    "DND": "flat.status.dnd",
}


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer."""
    return Console(
        file=StringIO(),
        theme=FLAT_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_status(status: str) -> str:
    return _STATUS_STYLES.get(status, "")
