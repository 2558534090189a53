"""Data models for moxen.

This module exports the core data structures used throughout the application.
"""

from moxen.models.manifest import (
    DEFAULT_CATEGORY,
    Manifest,
    MoxMetadata,
    NormalizedManifest,
    PackageCollection,
    normalize_name,
)

__all__ = [
    "DEFAULT_CATEGORY",
    "Manifest",
    "MoxMetadata",
    "NormalizedManifest",
    "PackageCollection",
    "normalize_name",
]
