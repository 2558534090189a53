"""CLI commands for moxen.

This package contains all subcommand implementations.
"""

from moxen.cli.commands import add, clean, info, new, package, publish, recover, register

__all__ = ["add", "clean", "info", "new", "package", "publish", "recover", "register"]
