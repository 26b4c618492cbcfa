"""Rich Console factory and theme for orbctl output.

Creates Console instances that render to a StringIO buffer, preserving
the ``format_result() -> str`` contract.  In non-TTY environments
(tests, pipes) Rich automatically disables color codes.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

ORBCTL_THEME = Theme(
    {
        "orb.ok": "bold green",
        "orb.error": "bold red",
        "orb.warning": "bold yellow",
        "orb.op": "bold cyan",
        "orb.key": "dim",
        "orb.version": "bold blue",
        "orb.path": "dim",
        "orb.added": "green",
        "orb.removed": "red",
        "orb.modified": "yellow",
    }
)

_CHANGE_STYLES: dict[str, str] = {
    "added": "orb.added",
    "removed": "orb.removed",
    "modified": "orb.modified",
    "rename": "orb.modified",
    "move": "orb.modified",
    "remove": "orb.removed",
    "insert": "orb.added",
}


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer.

    Args:
        no_color: Disable ANSI escape codes (used in tests).
        width: Override terminal width (useful for consistent test output).
    """
    return Console(
        file=StringIO(),
        theme=ORBCTL_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_change(kind: str) -> str:
    """Return the Rich style name for a change kind or edit action."""
    return _CHANGE_STYLES.get(kind, "")
