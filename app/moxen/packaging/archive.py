"""Bundle archive construction.

Turns a bundle source tree into a single gzip-compressed tar (.mox).
The pipeline is strictly linear: validate the .toc marker files,
enumerate the files to ship, copy them into a staging directory, then
compress the staging directory. Any failure aborts the whole operation;
a partially written staging directory is left for the caller to inspect.

Archives are reproducible: files are visited in sorted order and every
tar member and the gzip header carry fixed metadata, so the same tree
always produces the same bytes (and therefore the same checksum).
"""

import gzip
import io
import logging
import shutil
import tarfile
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from moxen.core.errors import (
    IgnorePatternError,
    IntegrityError,
    InvalidFileExtensionError,
    MissingMarkerFileError,
)
from moxen.models.manifest import Manifest

logger = logging.getLogger(__name__)

# Suffix of the marker file every addon root must contain
MARKER_SUFFIX = ".toc"

# Extension of compressed bundle archives
ARCHIVE_SUFFIX = ".mox"

# Executables, libraries and compiled-language sources never ship in a bundle
FORBIDDEN_EXTENSIONS: frozenset[str] = frozenset(
    {"exe", "dll", "so", "dylib", "c", "cpp", "h", "rs", "js", "cs", "py", "pyc"}
)


@dataclass(frozen=True, slots=True)
class ArchivePlan:
    """Everything needed to build one archive.

    Attributes:
        source_dir: Bundle root being packaged.
        excluded: Absolute paths matched by the manifest's ignore globs.
        staging_dir: Directory the filtered tree is copied into.
        archive_path: Destination of the compressed archive.
        members: Collection member directories, or None for a single addon.
    """

    source_dir: Path
    excluded: frozenset[Path]
    staging_dir: Path
    archive_path: Path
    members: tuple[str, ...] | None = None


def _has_marker(directory: Path) -> bool:
    """Check for a .toc file directly inside directory."""
    if not directory.is_dir():
        return False
    return any(
        entry.is_file() and entry.suffix == MARKER_SUFFIX for entry in directory.iterdir()
    )


def _missing_marker(path: Path, members: Iterable[str] | None) -> Path | None:
    """Return the first directory lacking a marker file, if any."""
    if members is None:
        return None if _has_marker(path) else path
    for member in members:
        member_path = path / member
        if not _has_marker(member_path):
            return member_path
    return None


def validate_structure(path: Path, members: Iterable[str] | None = None) -> bool:
    """Check that a bundle carries its .toc marker files.

    A single addon needs a .toc file in its root. For a collection, each
    member subdirectory must hold its own .toc file.

    Args:
        path: Bundle root.
        members: Collection member directory names, or None for an addon.

    Returns:
        True if every required marker file is present.
    """
    return _missing_marker(path, members) is None


def require_structure(path: Path, members: Iterable[str] | None = None) -> None:
    """Like validate_structure(), but raise on failure.

    Raises:
        MissingMarkerFileError: Naming the directory without a .toc file.
    """
    missing = _missing_marker(path, members)
    if missing is not None:
        raise MissingMarkerFileError(str(missing))


def expand_ignore_globs(root: Path, patterns: Iterable[str] | None) -> frozenset[Path]:
    """Expand manifest ignore globs against the bundle root.

    Patterns are relative to the root and matched case-sensitively;
    ``*`` matches within one path component and ``**`` spans directories.

    Args:
        root: Bundle root.
        patterns: Glob patterns from the manifest.

    Returns:
        Absolute paths of every matching file and directory.

    Raises:
        IgnorePatternError: If a pattern is empty, absolute, or leaves the root.
    """
    if not patterns:
        return frozenset()

    matches: set[Path] = set()
    for pattern in patterns:
        cleaned = pattern.strip()
        if not cleaned:
            raise IgnorePatternError("empty ignore pattern")
        pure = PurePosixPath(cleaned)
        if pure.is_absolute() or cleaned.startswith("~"):
            raise IgnorePatternError(f"ignore pattern must be relative to the bundle: {pattern}")
        if ".." in pure.parts:
            raise IgnorePatternError(f"ignore pattern must not leave the bundle: {pattern}")
        try:
            found = list(root.glob(cleaned, case_sensitive=True))
        except (ValueError, NotImplementedError) as e:
            raise IgnorePatternError(f"invalid ignore pattern {pattern!r}: {e}") from e
        logger.debug("Ignore pattern %r matched %d paths", pattern, len(found))
        matches.update(p.absolute() for p in found)
    return frozenset(matches)


def _check_extension(path: Path) -> None:
    """Reject files that must not be distributed.

    Raises:
        InvalidFileExtensionError: For forbidden or undecodable file names.
    """
    try:
        path.name.encode("utf-8")
    except UnicodeEncodeError as e:
        raise InvalidFileExtensionError(repr(path.suffix), str(path)) from e

    extension = path.suffix[1:]
    if extension.lower() in FORBIDDEN_EXTENSIONS:
        raise InvalidFileExtensionError(extension, str(path))


def enumerate_files(root: Path, excluded: frozenset[Path] = frozenset()) -> list[Path]:
    """Collect the files to package, depth first in sorted name order.

    Excluded paths (and everything below excluded directories) are skipped
    before the extension check runs.

    Args:
        root: Bundle root.
        excluded: Absolute paths to leave out.

    Returns:
        Absolute file paths in packaging order.

    Raises:
        InvalidFileExtensionError: If any remaining file has a forbidden extension.
    """
    files: list[Path] = []
    _walk(root.absolute(), excluded, files)
    return files


def _walk(directory: Path, excluded: frozenset[Path], collector: list[Path]) -> None:
    for entry in sorted(directory.iterdir()):
        if entry in excluded:
            logger.debug("Ignoring %s", entry)
            continue
        if entry.is_dir():
            if entry.is_symlink():
                logger.warning("Skipping symlinked directory: %s", entry)
                continue
            _walk(entry, excluded, collector)
        else:
            _check_extension(entry)
            collector.append(entry)


def _normalize_member(info: tarfile.TarInfo) -> tarfile.TarInfo:
    """Strip host-specific metadata from a tar member."""
    info.uid = 0
    info.gid = 0
    info.uname = ""
    info.gname = ""
    info.mtime = 0
    info.mode = 0o755 if info.isdir() else 0o644
    return info


def stage_and_compress(
    root: Path,
    files: list[Path],
    staging_dir: Path,
    archive_path: Path,
) -> Path:
    """Copy files into a staging tree and compress it into one archive.

    Files are copied, and added to the archive, in the given order.

    Args:
        root: Bundle root the files are relative to.
        files: Files to ship, as returned by enumerate_files().
        staging_dir: Directory to copy the tree into.
        archive_path: Destination of the gzip-compressed tar.

    Returns:
        Absolute path of the archive.

    Raises:
        OSError: If copying or writing fails.
    """
    root = root.absolute()
    relative: list[PurePosixPath] = []

    for file in files:
        rel = file.relative_to(root)
        destination = staging_dir / rel
        destination.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(file, destination)
        relative.append(PurePosixPath(rel.as_posix()))

    archive_path.parent.mkdir(parents=True, exist_ok=True)
    seen_dirs: set[PurePosixPath] = set()

    with (
        open(archive_path, "wb") as raw,
        gzip.GzipFile(filename="", mode="wb", fileobj=raw, mtime=0) as gz,
        tarfile.open(fileobj=gz, mode="w", format=tarfile.PAX_FORMAT) as tar,
    ):
        for rel in relative:
            # Parent directories get their own entries, in first-seen order
            for parent in reversed(rel.parents[:-1]):
                if parent not in seen_dirs:
                    seen_dirs.add(parent)
                    tar.add(
                        staging_dir / parent,
                        arcname=str(parent),
                        recursive=False,
                        filter=_normalize_member,
                    )
            tar.add(staging_dir / rel, arcname=str(rel), recursive=False, filter=_normalize_member)

    return archive_path.absolute()


def plan_archive(manifest: Manifest, src_dir: Path, package_dir: Path) -> ArchivePlan:
    """Work out the inputs and outputs of packaging a bundle.

    Raises:
        IgnorePatternError: If an ignore glob is malformed.
    """
    name = manifest.artifact_name
    members = tuple(manifest.collection.members) if manifest.collection is not None else None
    return ArchivePlan(
        source_dir=src_dir.absolute(),
        excluded=expand_ignore_globs(src_dir.absolute(), manifest.mox.ignore),
        staging_dir=package_dir / name,
        archive_path=package_dir / f"{name}{ARCHIVE_SUFFIX}",
        members=members,
    )


def package_content(manifest: Manifest, src_dir: Path, package_dir: Path) -> Path:
    """Package a bundle into a .mox archive.

    Structure and file checks run before anything is written, so a bundle
    that fails them leaves no staged files behind.

    Args:
        manifest: The bundle manifest (naming, collection, ignore list).
        src_dir: Bundle root.
        package_dir: Output directory for the staged tree and archive.

    Returns:
        Absolute path of the written archive.

    Raises:
        MissingMarkerFileError: If a .toc marker file is missing.
        IgnorePatternError: If an ignore glob is malformed.
        InvalidFileExtensionError: If a forbidden file would be shipped.
        OSError: On filesystem failures while staging or compressing.
    """
    plan = plan_archive(manifest, src_dir, package_dir)
    logger.info("Packaging %s as %s", plan.source_dir, plan.archive_path.name)

    require_structure(plan.source_dir, plan.members)
    files = enumerate_files(plan.source_dir, plan.excluded)

    # Leftovers from an earlier run would leak into the new archive
    if plan.staging_dir.exists():
        shutil.rmtree(plan.staging_dir)
    plan.archive_path.unlink(missing_ok=True)

    archive = stage_and_compress(plan.source_dir, files, plan.staging_dir, plan.archive_path)
    logger.info("Packaged %d files into %s", len(files), archive)
    return archive


def unpack_archive(data: bytes, destination: Path) -> None:
    """Extract archive bytes into destination.

    Extraction uses tarfile's ``data`` filter, so members cannot be
    written outside destination.

    Raises:
        IntegrityError: If the bytes are not a valid gzip-compressed tar.
        OSError: If extraction fails on the filesystem.
    """
    destination.mkdir(parents=True, exist_ok=True)
    try:
        with tarfile.open(fileobj=io.BytesIO(data), mode="r:gz") as tar:
            tar.extractall(destination, filter="data")
    except (tarfile.TarError, EOFError, gzip.BadGzipFile) as e:
        raise IntegrityError(f"invalid package archive: {e}") from e
