"""Clean command implementation.

Removes staged trees and archives from the package directory.
"""

import shutil

import typer

from moxen.cli.helpers import fail, require_context
from moxen.utils.formatting import print_info, print_success


def clean(ctx: typer.Context) -> None:
    """Remove all staged bundles and .mox archives.

    The config file and credentials are left untouched.
    """
    context = require_context(ctx)
    package_dir = context.package_dir

    if not package_dir.exists():
        print_info("Nothing to clean")
        return

    try:
        shutil.rmtree(package_dir)
    except OSError as e:
        raise fail(e) from e

    print_success(f"Removed {package_dir}")
