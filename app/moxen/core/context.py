"""Per-invocation context.

A MoxenContext is built once per command and passed to every operation
that needs to know where the bundle lives, where packages are written, or
what the loaded configuration says. Nothing in moxen changes the process
working directory.
"""

from dataclasses import dataclass, field
from pathlib import Path

from moxen.core.config import MoxenConfig, load_or_create_config, save_config
from moxen.core.paths import get_config_path, get_libs_dir, get_package_dir


@dataclass(slots=True)
class MoxenContext:
    """Paths and configuration for one moxen invocation.

    Attributes:
        src_dir: Absolute bundle root.
        package_dir: Directory receiving staged trees and .mox archives.
        config_path: Location of the config file.
        config: Loaded configuration.
    """

    src_dir: Path
    package_dir: Path = field(default_factory=get_package_dir)
    config_path: Path = field(default_factory=get_config_path)
    config: MoxenConfig = field(default_factory=MoxenConfig)

    @classmethod
    def create(
        cls,
        src_dir: Path | None = None,
        *,
        package_dir: Path | None = None,
        config_path: Path | None = None,
    ) -> "MoxenContext":
        """Resolve paths and load (or create) the config file.

        Args:
            src_dir: Bundle root. Defaults to the current directory.
            package_dir: Package output directory override.
            config_path: Config file override.

        Raises:
            ConfigError: If the config file is invalid or cannot be created.
        """
        cfg_path = config_path or get_config_path()
        return cls(
            src_dir=(src_dir or Path.cwd()).resolve(),
            package_dir=(package_dir or get_package_dir()).resolve(),
            config_path=cfg_path,
            config=load_or_create_config(cfg_path),
        )

    @property
    def libs_dir(self) -> Path:
        """Directory holding resolved dependencies."""
        return get_libs_dir(self.src_dir)

    def save_config(self) -> Path:
        """Persist the current configuration."""
        return save_config(self.config, self.config_path)
