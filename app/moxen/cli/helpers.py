"""Shared helpers for CLI commands.

Builds the per-invocation context from global options and loads the
bundle manifest, turning failures into a single error line and exit
code 1.
"""

import logging
from pathlib import Path

import typer
from rich.logging import RichHandler

from moxen.core.context import MoxenContext
from moxen.core.errors import MoxenError
from moxen.core.manifest import load_manifest, manifest_exists
from moxen.models.manifest import Manifest
from moxen.utils.formatting import err_console, print_error, print_info


def configure_logging(verbose: bool) -> None:
    """Route log records to stderr through Rich.

    Only warnings and errors are shown unless verbose output is requested.
    """
    root = logging.getLogger("moxen")
    root.handlers.clear()
    root.addHandler(RichHandler(console=err_console, show_path=False, show_time=verbose))
    root.setLevel(logging.DEBUG if verbose else logging.WARNING)
    root.propagate = False


def get_directory(ctx: typer.Context) -> Path | None:
    """Bundle root given with --directory, if any."""
    obj = ctx.find_root().obj
    if isinstance(obj, dict):
        return obj.get("directory")
    return None


def require_context(ctx: typer.Context) -> MoxenContext:
    """Build the invocation context or exit with a helpful error message.

    Raises:
        typer.Exit: If the configuration cannot be loaded.
    """
    try:
        return MoxenContext.create(get_directory(ctx))
    except MoxenError as e:
        print_error(f"could not load Moxen config file - {e}")
        raise typer.Exit(code=1) from e


def require_manifest(context: MoxenContext) -> Manifest:
    """Load the bundle manifest or exit with helpful error message.

    Raises:
        typer.Exit: If manifest cannot be loaded.
    """
    if not manifest_exists(context.src_dir):
        print_error(f"No Moxen.toml file found in project root: {context.src_dir}")
        print_info("Run 'moxen new <name>' to create a new bundle.")
        raise typer.Exit(code=1)

    try:
        return load_manifest(context.src_dir)
    except MoxenError as e:
        print_error(f"could not load Moxen.toml manifest - {e}")
        raise typer.Exit(code=1) from e


def fail(error: Exception) -> typer.Exit:
    """Report an error and return the Exit to raise."""
    print_error(str(error))
    return typer.Exit(code=1)
