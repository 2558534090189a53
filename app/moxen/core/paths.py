"""Filesystem locations used by moxen.

User-level state follows the XDG base directory layout:

- ``$XDG_CONFIG_HOME/moxen/config.toml`` (default ``~/.config``)
- ``$XDG_CACHE_HOME/moxen/package/`` for staged trees and archives
  (default ``~/.cache``)

Bundle-level paths are always relative to a bundle root.
"""

import os
from pathlib import Path

APP_NAME = "moxen"
MANIFEST_FILENAME = "Moxen.toml"
LIBS_DIRNAME = "libs"


def _xdg_base(env_var: str, fallback: str) -> Path:
    # An empty variable is treated as unset.
    return Path(os.environ.get(env_var) or Path.home() / fallback) / APP_NAME


def get_config_dir() -> Path:
    return _xdg_base("XDG_CONFIG_HOME", ".config")


def get_cache_dir() -> Path:
    return _xdg_base("XDG_CACHE_HOME", ".cache")


def get_config_path() -> Path:
    """Path of the user config holding registry settings and credentials."""
    return get_config_dir() / "config.toml"


def get_package_dir() -> Path:
    """Output directory for `moxen package`, cleared by `moxen clean`."""
    return get_cache_dir() / "package"


def get_manifest_path(bundle_dir: Path) -> Path:
    return bundle_dir / MANIFEST_FILENAME


def get_libs_dir(bundle_dir: Path) -> Path:
    """Directory under a bundle root where dependencies are unpacked."""
    return bundle_dir / LIBS_DIRNAME
