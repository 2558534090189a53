"""Shared Rich display functions for command results."""

from rich.markup import escape
from rich.table import Table

from moxen.core.resolver import ResolveReport
from moxen.utils.formatting import console


def create_resolve_table(report: ResolveReport) -> Table:
    """Create a table listing each requested dependency and its outcome.

    Names come from the command line and are escaped, so brackets in a
    name print literally.

    Args:
        report: Result of a resolve run.

    Returns:
        Rich Table with one row per dependency name.
    """
    table = Table(
        title="Dependencies",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Status", width=8, justify="center")
    table.add_column("Name", no_wrap=True)

    rows = (
        ("added", "+added", report.fetched),
        ("skipped", "=present", report.skipped),
        ("failed", "!failed", report.failed),
    )
    for style, status, names in rows:
        for name in names:
            table.add_row(f"[{style}]{status}[/{style}]", f"[{style}]{escape(name)}[/{style}]")

    return table


def print_recovery_codes(codes: list[str]) -> None:
    """Print recovery codes, one per line, with a reminder to store them."""
    console.print()
    console.print("[header]Recovery codes[/header]")
    for code in codes:
        console.print(f"  {code}", markup=False, highlight=False)
    console.print()
    console.print(
        "[warning]Store these codes somewhere safe. "
        "They are shown only once and are needed to recover your account.[/warning]"
    )
