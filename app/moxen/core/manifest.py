"""Reading and writing a bundle's Moxen.toml."""

import os
import tomllib
from pathlib import Path
from tempfile import NamedTemporaryFile

import tomli_w
from pydantic import ValidationError

from moxen.core.errors import MoxenError
from moxen.core.paths import get_manifest_path
from moxen.models.manifest import Manifest


class ManifestError(MoxenError):
    """Base exception for manifest-related errors."""


class ManifestNotFoundError(ManifestError):
    """The bundle root has no Moxen.toml."""


class ManifestParseError(ManifestError):
    """Moxen.toml is not valid TOML."""


class ManifestValidationError(ManifestError):
    """Moxen.toml parses but does not describe a manifest."""


def manifest_exists(bundle_dir: Path) -> bool:
    return get_manifest_path(bundle_dir).is_file()


def load_manifest(bundle_dir: Path) -> Manifest:
    """Load and validate the manifest of a bundle.

    Raises:
        ManifestNotFoundError: If there is no Moxen.toml in bundle_dir.
        ManifestParseError: If the file is not valid TOML.
        ManifestValidationError: If the content does not match the schema.
        ManifestError: If the file cannot be read.
    """
    path = get_manifest_path(bundle_dir)
    try:
        raw = path.read_bytes()
    except FileNotFoundError:
        msg = f"No Moxen.toml file found in project root: {bundle_dir}"
        raise ManifestNotFoundError(msg) from None
    except OSError as e:
        raise ManifestError(f"Failed to read manifest: {e}") from e

    try:
        data = tomllib.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, tomllib.TOMLDecodeError) as e:
        raise ManifestParseError(f"Invalid TOML syntax: {e}") from e

    try:
        return Manifest.model_validate(data)
    except ValidationError as e:
        raise ManifestValidationError(f"Invalid manifest content: {e}") from e


def save_manifest(manifest: Manifest, bundle_dir: Path) -> Path:
    """Write Moxen.toml, replacing any existing file atomically.

    Returns:
        Path of the written manifest.

    Raises:
        ManifestError: If the file cannot be written.
    """
    path = get_manifest_path(bundle_dir)
    tmp_name: str | None = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with NamedTemporaryFile("wb", dir=path.parent, suffix=".tmp", delete=False) as f:
            tmp_name = f.name
            tomli_w.dump(manifest.to_dict(), f)
        os.replace(tmp_name, path)
    except OSError as e:
        if tmp_name is not None:
            Path(tmp_name).unlink(missing_ok=True)
        raise ManifestError(f"Failed to write manifest: {e}") from e
    return path
