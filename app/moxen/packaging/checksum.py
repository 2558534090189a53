"""Content digests for package archives.

Packages are identified by the SHA-1 of their archive bytes. The digest
is always computed locally: on publish it goes into the normalized
manifest, on fetch the downloaded bytes must match it before unpacking.
"""

import hashlib
from pathlib import Path

from moxen.core.errors import ChecksumError


def checksum(data: bytes) -> str:
    """Return the hex-encoded SHA-1 digest of data."""
    return hashlib.sha1(data, usedforsecurity=False).hexdigest()


def checksum_file(path: Path) -> tuple[str, bytes]:
    """Read a file and return its digest together with its bytes.

    Raises:
        OSError: If the file cannot be read.
    """
    data = path.read_bytes()
    return checksum(data), data


def validate_checksum(data: bytes, expected: str) -> None:
    """Check that data hashes to the expected digest.

    Raises:
        ChecksumError: If the digests differ. Both digests are reported.
    """
    actual = checksum(data)
    if actual != expected.strip().lower():
        raise ChecksumError(actual, expected)
