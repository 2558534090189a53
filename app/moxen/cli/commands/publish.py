"""Publish command implementation.

Packages the current bundle and uploads it to the registry.
"""

import asyncio
from pathlib import Path

import typer

from moxen.cli.helpers import fail, require_context, require_manifest
from moxen.core.context import MoxenContext
from moxen.core.errors import MoxenError
from moxen.models.manifest import Manifest, NormalizedManifest
from moxen.packaging.archive import package_content
from moxen.registry.client import create_client
from moxen.registry.publish import publish_package
from moxen.utils.formatting import print_info, print_success


async def _publish(context: MoxenContext, manifest: Manifest, archive: Path) -> NormalizedManifest:
    async with create_client(context.config) as client:
        return await publish_package(client, manifest, archive, context.config.credentials)


def publish(ctx: typer.Context) -> None:
    """Package the current bundle and publish it to the registry.

    Requires credentials from 'moxen register' (or 'moxen recover').
    """
    context = require_context(ctx)
    manifest = require_manifest(context)

    try:
        archive = package_content(manifest, context.src_dir, context.package_dir)
        print_info(f"Crafted {archive}")
        normalized = asyncio.run(_publish(context, manifest, archive))
    except (MoxenError, OSError) as e:
        raise fail(e) from e

    print_success(f"Published {normalized.name} ({normalized.cksum})")
