"""Bundle packaging: archive construction and content digests."""

from moxen.packaging.archive import (
    ARCHIVE_SUFFIX,
    FORBIDDEN_EXTENSIONS,
    ArchivePlan,
    enumerate_files,
    expand_ignore_globs,
    package_content,
    plan_archive,
    require_structure,
    stage_and_compress,
    unpack_archive,
    validate_structure,
)
from moxen.packaging.checksum import checksum, checksum_file, validate_checksum

__all__ = [
    "ARCHIVE_SUFFIX",
    "FORBIDDEN_EXTENSIONS",
    "ArchivePlan",
    "checksum",
    "checksum_file",
    "enumerate_files",
    "expand_ignore_globs",
    "package_content",
    "plan_archive",
    "require_structure",
    "stage_and_compress",
    "unpack_archive",
    "validate_checksum",
    "validate_structure",
]
