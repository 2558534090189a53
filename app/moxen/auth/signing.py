"""Ed25519 keypairs and username validation for registry accounts.

A moxen installation owns exactly one keypair. Registration proves
ownership of it by signing a challenge issued by the registry; the
private key never leaves the local config file.
"""

import base64
import binascii
import logging
import re

from better_profanity import profanity
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)

from moxen.core.config import Credentials, MoxenConfig
from moxen.core.errors import ConfigError, CredentialsExistError, InvalidUsernameError

logger = logging.getLogger(__name__)

MIN_USERNAME_LENGTH = 3

_USERNAME_PATTERN = re.compile(r"[A-Za-z0-9_]+")


class MoxenKeyPair:
    """Signing handle around an Ed25519 private key."""

    def __init__(self, private_key: Ed25519PrivateKey) -> None:
        self._private_key = private_key

    @classmethod
    def generate(cls) -> "MoxenKeyPair":
        """Create a fresh keypair from the OS random source."""
        return cls(Ed25519PrivateKey.generate())

    @classmethod
    def from_private_key(cls, encoded: str) -> "MoxenKeyPair":
        """Load a keypair from its stored base64 PKCS#8 form.

        Raises:
            ConfigError: If the stored key cannot be decoded.
        """
        try:
            document = base64.b64decode(encoded, validate=True)
            key = serialization.load_der_private_key(document, password=None)
        except (binascii.Error, ValueError, TypeError) as e:
            raise ConfigError(f"invalid stored private key: {e}") from e
        if not isinstance(key, Ed25519PrivateKey):
            raise ConfigError("invalid stored private key: not an Ed25519 key")
        return cls(key)

    def private_key_as_string(self) -> str:
        """Base64 PKCS#8 encoding of the private key, for the config file."""
        document = self._private_key.private_bytes(
            encoding=serialization.Encoding.DER,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )
        return base64.b64encode(document).decode("ascii")

    @property
    def public_key(self) -> Ed25519PublicKey:
        return self._private_key.public_key()

    def public_key_as_string(self) -> str:
        """Base64 of the 32 raw public key bytes."""
        raw = self.public_key.public_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PublicFormat.Raw,
        )
        return base64.b64encode(raw).decode("ascii")

    def sign_message(self, message: str | bytes) -> str:
        """Sign message and return the base64 signature.

        Ed25519 signatures are deterministic: the same key and message
        always give the same signature.
        """
        data = message.encode("utf-8") if isinstance(message, str) else message
        return base64.b64encode(self._private_key.sign(data)).decode("ascii")


def validate_username(name: str) -> None:
    """Check that a username is acceptable to the registry.

    The checks run in order (length, allowed characters, profanity) and
    the first failure is reported.

    Raises:
        InvalidUsernameError: With the reason of the first failing check.
    """
    if len(name) < MIN_USERNAME_LENGTH:
        raise InvalidUsernameError(
            f"username must be at least {MIN_USERNAME_LENGTH} characters long"
        )

    if not _USERNAME_PATTERN.fullmatch(name):
        raise InvalidUsernameError(
            "invalid characters in username. allowed characters are letters, numbers, and _"
        )

    if profanity.contains_profanity(name):
        raise InvalidUsernameError("inappropriate username, watch your profanity!")


def generate_keyfile_pair(config: MoxenConfig) -> MoxenKeyPair:
    """Generate the installation keypair and store it in config.

    The config object is updated in memory only; the caller saves it once
    the registry flow that needs the key has finished.

    Raises:
        CredentialsExistError: If credentials are already stored.
    """
    if config.credentials is not None:
        raise CredentialsExistError(
            "credentials already present, you are already registered as someone!"
        )

    keypair = MoxenKeyPair.generate()
    config.credentials = Credentials(private_key=keypair.private_key_as_string())
    logger.debug("Generated new Ed25519 keypair")
    return keypair
