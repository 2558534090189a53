"""Themed consoles and one-line status messages.

Informational output goes to stdout; warnings and errors go to stderr so
that piping `moxen info` stays clean. Message text is escaped, so names
containing square brackets print literally.
"""

import sys

from rich.console import Console
from rich.markup import escape

from moxen.core.theme import get_theme


def _make_console(*, stderr: bool = False) -> Console:
    stream = sys.stderr if stderr else sys.stdout
    # Force truecolor on a terminal so hex theme colors are not downsampled.
    color_system = "truecolor" if stream.isatty() else None
    return Console(theme=get_theme(), stderr=stderr, color_system=color_system)


console = _make_console()
err_console = _make_console(stderr=True)


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(escape(message), style="info")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(escape(message), style="success")


def print_warning(message: str) -> None:
    """Print a warning to stderr."""
    err_console.print(f"[warning]Warning:[/] {escape(message)}")


def print_error(message: str) -> None:
    """Print an error line to stderr."""
    err_console.print(f"[error]Error:[/] {escape(message)}")
