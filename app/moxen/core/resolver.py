"""Concurrent dependency resolution.

Each requested dependency is handled by its own asyncio task: fetch from
the registry, verify the checksum, unpack into ``libs/<name>``. A task
that succeeds reports a DownloadResult on a bounded queue; a task that
fails logs the error and reports nothing, so its dependency is simply
left out. The queue is closed once every task has finished, whatever
the individual outcomes, and only the orchestrating coroutine touches
the manifest.
"""

import asyncio
import logging
import shutil
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

import httpx
from pydantic import ValidationError

from moxen.core.context import MoxenContext
from moxen.core.errors import MoxenError, RegistryApiError
from moxen.core.manifest import save_manifest
from moxen.core.paths import get_libs_dir
from moxen.models.manifest import Manifest, NormalizedManifest
from moxen.packaging.archive import unpack_archive
from moxen.packaging.checksum import validate_checksum
from moxen.registry.client import fetch_mox

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DownloadResult:
    """A dependency that was fetched, verified and unpacked."""

    name: str
    path: Path


@dataclass(slots=True)
class ResolveReport:
    """Outcome of a resolve run.

    Attributes:
        skipped: Names whose directory already existed (not re-fetched).
        fetched: Names downloaded in this run, in completion order.
        failed: Names that could not be resolved.
        manifest_path: Where the updated manifest was written.
    """

    skipped: list[str] = field(default_factory=list)
    fetched: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    manifest_path: Path | None = None


def dependency_dir(src_dir: Path, name: str) -> Path:
    """Directory a dependency is unpacked into."""
    return get_libs_dir(src_dir) / name


def is_valid_dependency_name(name: str) -> bool:
    """A dependency name must map to exactly one directory under libs/."""
    return bool(name) and name not in (".", "..") and "/" not in name and "\\" not in name


async def download_dependency(
    client: httpx.AsyncClient,
    src_dir: Path,
    name: str,
) -> DownloadResult:
    """Fetch, verify and unpack one dependency.

    Args:
        client: Registry client.
        src_dir: Bundle root.
        name: Registry package name.

    Returns:
        DownloadResult naming the unpacked directory.

    Raises:
        RegistryError: If the registry lookup fails or its manifest is invalid.
        ChecksumError: If the package bytes do not match the manifest digest.
        IntegrityError: If the archive cannot be read.
        OSError: If unpacking fails on the filesystem.
    """
    target = dependency_dir(src_dir, name)

    manifest_text, package = await fetch_mox(client, name)
    try:
        normalized = NormalizedManifest.from_toml(manifest_text)
    except (tomllib.TOMLDecodeError, ValidationError) as e:
        raise RegistryApiError(f"invalid manifest for {name}: {e}") from e

    validate_checksum(package, normalized.cksum)

    target.mkdir(parents=True, exist_ok=True)
    try:
        await asyncio.to_thread(unpack_archive, package, target)
    except (MoxenError, OSError):
        # An existing directory counts as resolved, so never leave a broken one
        shutil.rmtree(target, ignore_errors=True)
        raise

    logger.info("Adding %s to %s", name, target)
    return DownloadResult(name=name, path=target)


async def download_dependencies(
    context: MoxenContext,
    manifest: Manifest,
    names: list[str],
    *,
    client: httpx.AsyncClient,
) -> ResolveReport:
    """Resolve dependencies concurrently and record them in the manifest.

    Names whose directory already exists are treated as resolved without
    re-verification. Every other name gets one task. Failures are logged
    and omitted; they never abort the run or cancel sibling tasks. The
    manifest is saved once, after all tasks have reported.

    Args:
        context: Invocation context (bundle root).
        manifest: Loaded manifest of the bundle; updated in place.
        names: Requested dependency names.
        client: Registry client shared by all tasks.

    Returns:
        ResolveReport describing what happened to each name.

    Raises:
        ManifestError: If the updated manifest cannot be saved.
    """
    report = ResolveReport()
    pending: list[str] = []

    for name in dict.fromkeys(names):
        if not is_valid_dependency_name(name):
            logger.error("Invalid dependency name: %r", name)
            report.failed.append(name)
        elif (context.libs_dir / name).exists():
            logger.info("%s is already present, skipping", name)
            report.skipped.append(name)
        else:
            pending.append(name)

    for name in report.skipped:
        manifest.add_dependency(name)

    channel: asyncio.Queue[DownloadResult | None] = asyncio.Queue(maxsize=max(len(pending), 1))

    async def unit(name: str) -> None:
        try:
            result = await download_dependency(client, context.src_dir, name)
        except (MoxenError, OSError) as e:
            logger.error("Failed to add %s: %s", name, e)
            return
        await channel.put(result)

    tasks = [asyncio.create_task(unit(name), name=f"moxen-dep-{name}") for name in pending]

    async def close_when_done() -> None:
        try:
            outcomes = await asyncio.gather(*tasks, return_exceptions=True)
            for name, outcome in zip(pending, outcomes, strict=True):
                if isinstance(outcome, BaseException):
                    logger.error("Failed to add %s: %r", name, outcome)
        finally:
            await channel.put(None)

    closer = asyncio.create_task(close_when_done())

    while (result := await channel.get()) is not None:
        manifest.add_dependency(result.name)
        report.fetched.append(result.name)

    await closer

    report.failed.extend(name for name in pending if name not in report.fetched)
    report.manifest_path = save_manifest(manifest, context.src_dir)
    return report
