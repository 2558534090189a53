"""Bootstrapping new bundles.

Creates a bundle directory holding a starter manifest, a Lua entry point
and a .toc file that loads it.
"""

import logging
from pathlib import Path

from moxen.core.errors import ProjectAlreadyExistsError
from moxen.core.manifest import save_manifest
from moxen.models.manifest import Manifest, MoxMetadata

logger = logging.getLogger(__name__)

DEFAULT_VERSION = "0.1.0"
PLACEHOLDER_WOW_VERSION = "<Insert current WoW version here (11.0.2)!>"
ENTRY_POINT = "start.lua"


def fresh_manifest(name: str) -> Manifest:
    """Create the starter manifest for a new bundle."""
    return Manifest(
        mox=MoxMetadata(
            name=name,
            version=DEFAULT_VERSION,
            wow_version=PLACEHOLDER_WOW_VERSION,
            description="New World of Warcraft addon",
            authors=[],
        ),
    )


def toc_filename(manifest: Manifest) -> str:
    """File name of the bundle's .toc file (name with spaces removed)."""
    return f"{manifest.mox.name.replace(' ', '')}.toc"


def render_toc(manifest: Manifest) -> str:
    """Contents of a starter .toc file."""
    mox = manifest.mox
    lines = [
        "## Interface: <Current World of Warcraft Version Here (e.g. 110002)>",
        f"## Version: {mox.version or DEFAULT_VERSION}",
        f"## Title: {mox.name}",
        "## Notes: Created with Moxen",
        f"## Author: {','.join(mox.authors)}",
        "",
        ENTRY_POINT,
    ]
    return "\n".join(lines) + "\n"


def bootstrap_bundle(parent: Path, name: str) -> Path:
    """Create a new bundle directory under parent.

    Args:
        parent: Directory to create the bundle in.
        name: Bundle name, also used as the directory name.

    Returns:
        Path of the new bundle root.

    Raises:
        ProjectAlreadyExistsError: If the directory already exists.
        ManifestError: If the manifest cannot be written.
        OSError: If the starter files cannot be written.
    """
    bundle_dir = parent / name
    if bundle_dir.exists():
        raise ProjectAlreadyExistsError(f"A project with the name `{name}` already exists!")

    bundle_dir.mkdir(parents=True)
    manifest = fresh_manifest(name)
    save_manifest(manifest, bundle_dir)

    (bundle_dir / ENTRY_POINT).write_text("print('Hello, World!')\n", encoding="utf-8")
    (bundle_dir / toc_filename(manifest)).write_text(render_toc(manifest), encoding="utf-8")

    logger.info("Bootstrapped bundle %s at %s", name, bundle_dir)
    return bundle_dir
