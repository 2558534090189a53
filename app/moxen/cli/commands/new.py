"""New command implementation.

Bootstraps a new bundle directory with a manifest, a Lua entry point and
a .toc file.
"""

from pathlib import Path
from typing import Annotated

import typer

from moxen.cli.helpers import fail, get_directory
from moxen.core.bootstrap import bootstrap_bundle
from moxen.core.errors import MoxenError
from moxen.utils.formatting import print_info, print_success


def new(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Name of the new bundle.")],
) -> None:
    """Create a new Moxen bundle.

    The bundle is created as a new directory NAME inside the working
    directory (or the directory given with --directory).
    """
    parent = get_directory(ctx) or Path.cwd()

    try:
        bundle_dir = bootstrap_bundle(parent, name)
    except (MoxenError, OSError) as e:
        raise fail(e) from e

    print_success(f"Created new Mox package `{name}`")
    print_info(f"Bundle root: {bundle_dir}")
    print_info("Set wow_version in Moxen.toml before packaging.")
