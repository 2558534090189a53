"""Moxen configuration and stored credentials.

Configuration is stored in ~/.config/moxen/config.toml and holds the
registry location plus the credentials created by ``moxen register``.
"""

import logging
import os
import tomllib
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Annotated

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from moxen.core.errors import ConfigError, ConfigNotFoundError, ConfigParseError
from moxen.core.paths import get_config_path

logger = logging.getLogger(__name__)

DEFAULT_REGISTRY_URL = "https://localhost:9443"
DEFAULT_REQUEST_TIMEOUT = 30.0

# Environment variable overriding the configured registry URL
REGISTRY_URL_ENV = "MOXEN_REGISTRY_URL"


class Credentials(BaseModel):
    """Registry identity of this installation.

    Attributes:
        username: Registered username (empty until registration completes).
        private_key: Base64 PKCS#8 encoding of the Ed25519 private key.
        api_key: API key issued by the registry, if registered.
    """

    model_config = ConfigDict(extra="forbid")

    username: Annotated[str, Field(description="Registered username")] = ""
    private_key: Annotated[str, Field(description="Encoded Ed25519 private key")]
    api_key: Annotated[str | None, Field(description="Registry API key")] = None


class MoxenConfig(BaseModel):
    """Configuration for the moxen client.

    Attributes:
        registry_url: Base URL of the registry service.
        request_timeout: Timeout for registry requests, in seconds.
        verify_tls: Verify the registry TLS certificate.
        credentials: Stored credentials, if any.
    """

    model_config = ConfigDict(extra="forbid")

    registry_url: Annotated[
        str,
        Field(description="Registry base URL"),
    ] = DEFAULT_REGISTRY_URL
    request_timeout: Annotated[
        float,
        Field(gt=0, le=600, description="Request timeout in seconds"),
    ] = DEFAULT_REQUEST_TIMEOUT
    verify_tls: Annotated[
        bool,
        Field(description="Verify the registry TLS certificate"),
    ] = True
    credentials: Annotated[
        Credentials | None,
        Field(description="Registry credentials"),
    ] = None

    @property
    def effective_registry_url(self) -> str:
        """Registry URL after applying the environment override."""
        return (os.environ.get(REGISTRY_URL_ENV) or self.registry_url).rstrip("/")


def load_config(path: Path | None = None) -> MoxenConfig:
    """Load configuration from a TOML file.

    Args:
        path: Path to the config file. If None, uses the default config path.

    Returns:
        Validated MoxenConfig object.

    Raises:
        ConfigNotFoundError: If the config file doesn't exist.
        ConfigParseError: If the TOML syntax is invalid.
        ConfigError: If the content doesn't match the schema.
    """
    config_path = path or get_config_path()

    if not config_path.exists():
        raise ConfigNotFoundError(f"Moxen config not found: {config_path}")

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(f"Invalid TOML syntax: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read moxen config: {e}") from e

    try:
        return MoxenConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid moxen config content: {e}") from e


def load_or_create_config(path: Path | None = None) -> MoxenConfig:
    """Load the config file, writing a default one first if it is missing.

    Raises:
        ConfigError: If the file exists but is invalid, or cannot be written.
    """
    config_path = path or get_config_path()
    try:
        return load_config(config_path)
    except ConfigNotFoundError:
        logger.debug("No config at %s, writing defaults", config_path)
        config = MoxenConfig()
        save_config(config, config_path)
        return config


def save_config(config: MoxenConfig, path: Path | None = None) -> Path:
    """Save configuration to a TOML file.

    The file is written atomically by first writing to a temporary file
    and then using os.replace() for atomic rename. Permissions are
    restricted to the owner since the file holds a private key.

    Args:
        config: The MoxenConfig object to save.
        path: Path to save the config. If None, uses the default config path.

    Returns:
        Path where the config was saved.

    Raises:
        ConfigError: If the file cannot be written.
    """
    config_path = path or get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    data = _config_to_dict(config)

    tmp_path: Path | None = None
    try:
        with NamedTemporaryFile(
            mode="wb",
            dir=config_path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            tomli_w.dump(data, f)
        os.chmod(tmp_path, 0o600)
        os.replace(str(tmp_path), str(config_path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise ConfigError(f"Failed to write moxen config: {e}") from e

    return config_path


def _config_to_dict(config: MoxenConfig) -> dict[str, object]:
    """Convert MoxenConfig to a dictionary for TOML serialization.

    Only includes non-default values to keep the file clean.
    """
    result: dict[str, object] = {}

    if config.registry_url != DEFAULT_REGISTRY_URL:
        result["registry_url"] = config.registry_url

    if config.request_timeout != DEFAULT_REQUEST_TIMEOUT:
        result["request_timeout"] = config.request_timeout

    if not config.verify_tls:
        result["verify_tls"] = False

    if config.credentials is not None:
        result["credentials"] = config.credentials.model_dump(exclude_none=True)

    return result
