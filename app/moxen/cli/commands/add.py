"""Add command implementation.

Downloads dependencies from the registry into libs/ and records them in
the manifest.
"""

import asyncio
from typing import Annotated

import typer

from moxen.cli.display import create_resolve_table
from moxen.cli.helpers import fail, require_context, require_manifest
from moxen.core.context import MoxenContext
from moxen.core.errors import MoxenError
from moxen.core.resolver import ResolveReport, download_dependencies
from moxen.models.manifest import Manifest
from moxen.registry.client import create_client
from moxen.utils.formatting import console, print_info, print_success, print_warning


async def _resolve(context: MoxenContext, manifest: Manifest, names: list[str]) -> ResolveReport:
    async with create_client(context.config) as client:
        return await download_dependencies(context, manifest, names, client=client)


def add(
    ctx: typer.Context,
    names: Annotated[list[str], typer.Argument(help="Registry names of the dependencies.")],
) -> None:
    """Add dependencies to the current bundle.

    Each dependency is downloaded concurrently, verified against its
    checksum and unpacked into libs/<name>. Dependencies that fail are
    reported and left out of the manifest; the others are still added.
    """
    context = require_context(ctx)
    manifest = require_manifest(context)

    try:
        report = asyncio.run(_resolve(context, manifest, names))
    except MoxenError as e:
        raise fail(e) from e

    console.print(create_resolve_table(report))

    if report.failed:
        print_warning(f"Could not add: {', '.join(report.failed)}")
    if report.fetched:
        print_success(f"Added {len(report.fetched)} dependencies")
    else:
        print_info("No new dependencies were downloaded")
