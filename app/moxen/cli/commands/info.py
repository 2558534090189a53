"""Info command implementation.

Displays the manifest of the current bundle.
"""

import typer

from moxen.cli.helpers import require_context, require_manifest
from moxen.utils.formatting import console


def info(ctx: typer.Context) -> None:
    """Show the manifest of the current bundle."""
    context = require_context(ctx)
    manifest = require_manifest(context)
    console.print(manifest.render(), markup=False, highlight=False)
