"""Publishing packaged bundles to the registry."""

import base64
import logging
from pathlib import Path

import httpx

from moxen.core.config import Credentials
from moxen.core.errors import MissingCredentialsError
from moxen.models.manifest import Manifest, NormalizedManifest
from moxen.packaging.checksum import checksum_file
from moxen.registry.client import publish_mox_package

logger = logging.getLogger(__name__)


def create_request_body(manifest: NormalizedManifest, package: bytes) -> dict[str, str]:
    """Build the JSON body of a publish request.

    Both the TOML-serialized normalized manifest and the archive bytes are
    base64 encoded.
    """
    return {
        "manifest": base64.b64encode(manifest.to_toml().encode("utf-8")).decode("ascii"),
        "package": base64.b64encode(package).decode("ascii"),
    }


async def publish_package(
    client: httpx.AsyncClient,
    manifest: Manifest,
    archive_path: Path,
    credentials: Credentials | None,
) -> NormalizedManifest:
    """Publish a packaged bundle.

    The checksum is computed here from the archive on disk; the registry
    re-validates it on receipt.

    Args:
        client: Registry client.
        manifest: Manifest of the bundle being published.
        archive_path: The .mox archive produced by package_content().
        credentials: Stored credentials.

    Returns:
        The normalized manifest that was sent.

    Raises:
        MissingCredentialsError: If there are no credentials or no API key.
        OSError: If the archive cannot be read.
        RegistryError: If the registry rejects the upload.
    """
    if credentials is None:
        raise MissingCredentialsError(
            "No saved credentials present. You must signup to the Moxen Registry!"
        )
    if not credentials.api_key:
        raise MissingCredentialsError(
            "No API Key present. You may need to re-register for another API Key"
        )

    cksum, package = checksum_file(archive_path)
    normalized = manifest.normalize(cksum)
    logger.info("Publishing %s (%s) as %s", normalized.name, cksum, credentials.username)

    body = create_request_body(normalized, package)
    await publish_mox_package(client, body, credentials.api_key, credentials.username)
    return normalized
