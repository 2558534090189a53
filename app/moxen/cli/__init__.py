"""CLI package for moxen.

This package contains the Typer application and all subcommands.
"""

from moxen.cli.main import app

__all__ = ["app"]
