"""Registry API client.

Stateless request/response functions implementing the registry wire
contract. Every function takes an ``httpx.AsyncClient`` whose
``base_url`` points at the registry and maps the response status to
exactly one outcome: a return value or one MoxenError subclass. Each
request is attempted once.
"""

import logging
from typing import TypeVar
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ValidationError

from moxen.core.config import MoxenConfig
from moxen.core.errors import (
    AuthenticationError,
    InvalidApiKeyError,
    ProjectConflictError,
    ProjectNotFoundError,
    RegistryApiError,
    RegistryConnectionError,
)
from moxen.registry.models import (
    DownloadPackageResponse,
    UserRecoveryResponse,
    UserRegisterResponse,
)

logger = logging.getLogger(__name__)

FETCH_PATH = "/api/v1/mox/{name}"
PUBLISH_PATH = "/api/v1/mox/new"
CHALLENGE_PATH = "/api/v1/auth/challenge"
REGISTER_PATH = "/api/v1/auth/register"
RECOVERY_PATH = "/api/v1/auth/recovery"

ResponseT = TypeVar("ResponseT", bound=BaseModel)


def create_client(config: MoxenConfig) -> httpx.AsyncClient:
    """Create an HTTP client for the configured registry.

    The caller owns the client and should use it as an async context
    manager so connections are closed.
    """
    return httpx.AsyncClient(
        base_url=config.effective_registry_url,
        timeout=config.request_timeout,
        verify=config.verify_tls,
    )


async def _send(
    client: httpx.AsyncClient,
    method: str,
    path: str,
    *,
    json: object | None = None,
    headers: dict[str, str] | None = None,
) -> httpx.Response:
    """Send one request, turning transport failures into registry errors."""
    logger.debug("%s %s", method, path)
    try:
        response = await client.request(method, path, json=json, headers=headers)
    except httpx.HTTPError as e:
        raise RegistryConnectionError(f"could not reach the moxen registry: {e}") from e
    logger.debug("%s %s -> %d", method, path, response.status_code)
    return response


def _parse(response: httpx.Response, model: type[ResponseT]) -> ResponseT:
    """Decode a JSON body into a response model.

    Raises:
        RegistryApiError: If the body is not the expected JSON.
    """
    try:
        return model.model_validate_json(response.content)
    except ValidationError as e:
        raise RegistryApiError(
            f"unexpected response body: {e.error_count()} validation error(s)",
            response.status_code,
        ) from e


def _error_message(response: httpx.Response) -> str:
    """Best available error text: the JSON ``error`` field, the body, or the reason."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and isinstance(body.get("error"), str) and body["error"]:
        return body["error"]
    text = response.text.strip()
    return text or response.reason_phrase or f"HTTP {response.status_code}"


async def fetch_mox(client: httpx.AsyncClient, name: str) -> tuple[str, bytes]:
    """Download a package and its normalized manifest.

    Args:
        client: Registry client.
        name: Registry package name.

    Returns:
        Tuple of (manifest TOML text, archive bytes). Neither is verified here.

    Raises:
        ProjectNotFoundError: If the registry has no such package.
        RegistryApiError: For any other failure.
        RegistryConnectionError: If the registry cannot be reached.
    """
    response = await _send(client, "GET", FETCH_PATH.format(name=quote(name, safe="")))

    if response.status_code == httpx.codes.OK:
        data = _parse(response, DownloadPackageResponse)
        if not data.manifest or not data.package:
            raise RegistryApiError(
                f"response for {name} is missing the manifest or package",
                response.status_code,
            )
        return data.manifest, data.package

    if response.status_code == httpx.codes.NOT_FOUND:
        raise ProjectNotFoundError(_error_message(response))

    raise RegistryApiError(_error_message(response), response.status_code)


async def publish_mox_package(
    client: httpx.AsyncClient,
    body: dict[str, str],
    api_key: str,
    username: str,
) -> None:
    """Upload a package.

    Args:
        client: Registry client.
        body: Request body from create_request_body().
        api_key: API key issued at registration.
        username: Registered username.

    Raises:
        ProjectConflictError: If the registry already has this package.
        InvalidApiKeyError: If the API key is rejected.
        RegistryApiError: For any other failure.
        RegistryConnectionError: If the registry cannot be reached.
    """
    response = await _send(
        client,
        "POST",
        PUBLISH_PATH,
        json=body,
        headers={"x-api-key": api_key, "x-authorize-user": username},
    )

    if response.status_code == httpx.codes.CREATED:
        return
    if response.status_code == httpx.codes.CONFLICT:
        raise ProjectConflictError("project already exists")
    if response.status_code == httpx.codes.UNAUTHORIZED:
        raise InvalidApiKeyError("invalid api key")
    raise RegistryApiError(_error_message(response), response.status_code)


async def generate_challenge(client: httpx.AsyncClient, name: str, pub_key: str) -> str:
    """Ask the registry for a challenge to sign.

    Returns:
        The challenge text, exactly as sent by the registry.

    Raises:
        RegistryApiError: If the registry refuses.
        RegistryConnectionError: If the registry cannot be reached.
    """
    response = await _send(client, "POST", CHALLENGE_PATH, json={"name": name, "key": pub_key})
    if response.status_code == httpx.codes.OK:
        return response.text
    raise RegistryApiError(response.text or _error_message(response), response.status_code)


async def signup(client: httpx.AsyncClient, original: str, challenge: str) -> tuple[str, list[str]]:
    """Complete registration with a signed challenge.

    Args:
        client: Registry client.
        original: Challenge text as received.
        challenge: Base64 signature over the challenge.

    Returns:
        Tuple of (API key, recovery codes).

    Raises:
        RegistryApiError: If the registry refuses, with its message.
        RegistryConnectionError: If the registry cannot be reached.
    """
    response = await _send(
        client, "POST", REGISTER_PATH, json={"original": original, "challenge": challenge}
    )
    if response.status_code == httpx.codes.CREATED:
        data = _parse(response, UserRegisterResponse)
        return data.api_key, data.recovery_codes
    raise RegistryApiError(_error_message(response), response.status_code)


async def recover(client: httpx.AsyncClient, challenge: str, signed: str, code: str) -> str:
    """Exchange a recovery code and a signed challenge for a new API key.

    Raises:
        AuthenticationError: If the registry rejects the recovery attempt.
        RegistryApiError: For any other failure.
        RegistryConnectionError: If the registry cannot be reached.
    """
    response = await _send(
        client,
        "POST",
        RECOVERY_PATH,
        json={"challenge": challenge, "signed": signed, "code": code},
    )
    if response.status_code == httpx.codes.OK:
        return _parse(response, UserRecoveryResponse).api_key
    if response.status_code == httpx.codes.UNAUTHORIZED:
        raise AuthenticationError(_error_message(response))
    raise RegistryApiError(_error_message(response), response.status_code)
