"""Registry account flows.

Registration and recovery both follow the same handshake: generate the
installation keypair, request a challenge for the username and public
key, sign it, and send the signature back. Credentials are only written
into the config once the registry has accepted the signature; on any
failure the config is left as it was.
"""

import logging

import httpx

from moxen.auth.signing import MoxenKeyPair, generate_keyfile_pair, validate_username
from moxen.core.config import Credentials, MoxenConfig
from moxen.registry.client import generate_challenge, recover, signup

logger = logging.getLogger(__name__)


async def _signed_challenge(
    client: httpx.AsyncClient, keypair: MoxenKeyPair, name: str
) -> tuple[str, str]:
    challenge = await generate_challenge(client, name, keypair.public_key_as_string())
    return challenge, keypair.sign_message(challenge)


async def register_account(
    client: httpx.AsyncClient,
    config: MoxenConfig,
    name: str,
) -> list[str]:
    """Register a new registry account.

    Args:
        client: Registry client.
        config: Loaded configuration; receives the new credentials.
        name: Requested username.

    Returns:
        Recovery codes issued by the registry. They are not stored.

    Raises:
        InvalidUsernameError: If the username is rejected locally.
        CredentialsExistError: If credentials are already stored.
        RegistryError: If the registry refuses the registration.
    """
    validate_username(name)
    keypair = generate_keyfile_pair(config)

    try:
        challenge, signed = await _signed_challenge(client, keypair, name)
        api_key, recovery_codes = await signup(client, challenge, signed)
    except BaseException:
        config.credentials = None
        raise

    config.credentials = Credentials(
        username=name,
        private_key=keypair.private_key_as_string(),
        api_key=api_key,
    )
    logger.info("Registered %s", name)
    return recovery_codes


async def recover_account(
    client: httpx.AsyncClient,
    config: MoxenConfig,
    name: str,
    code: str,
) -> str:
    """Recover an account with a one-time recovery code.

    A fresh keypair is generated for this installation and proven to the
    registry together with the code.

    Args:
        client: Registry client.
        config: Loaded configuration; receives the recovered credentials.
        name: Registered username.
        code: One of the recovery codes issued at registration.

    Returns:
        The new API key.

    Raises:
        CredentialsExistError: If credentials are already stored.
        AuthenticationError: If the registry rejects the code or signature.
        RegistryError: For any other registry failure.
    """
    keypair = generate_keyfile_pair(config)

    try:
        challenge, signed = await _signed_challenge(client, keypair, name)
        api_key = await recover(client, challenge, signed, code)
    except BaseException:
        config.credentials = None
        raise

    config.credentials = Credentials(
        username=name,
        private_key=keypair.private_key_as_string(),
        api_key=api_key,
    )
    logger.info("Recovered account %s", name)
    return api_key
