"""Package command implementation.

Builds the .mox archive for the current bundle.
"""

import typer

from moxen.cli.helpers import fail, require_context, require_manifest
from moxen.core.errors import MoxenError
from moxen.packaging.archive import package_content
from moxen.utils.formatting import print_success


def package(ctx: typer.Context) -> None:
    """Package the current bundle into a .mox archive.

    The archive is written to the moxen cache directory and its path is
    printed on success.
    """
    context = require_context(ctx)
    manifest = require_manifest(context)

    try:
        archive = package_content(manifest, context.src_dir, context.package_dir)
    except (MoxenError, OSError) as e:
        raise fail(e) from e

    print_success(f"Crafted {archive}!")
