"""Unit tests for the registry API client.

Every registry response is served by httpx.MockTransport, so these tests
check the wire contract: paths, bodies, headers and status mapping.
"""

import base64
import json
from collections.abc import Callable

import httpx
import pytest
from moxen.core.config import MoxenConfig
from moxen.core.errors import (
    AuthenticationError,
    InvalidApiKeyError,
    ProjectConflictError,
    ProjectNotFoundError,
    RegistryApiError,
    RegistryConnectionError,
    RegistryError,
)
from moxen.registry.client import (
    create_client,
    fetch_mox,
    generate_challenge,
    publish_mox_package,
    recover,
    signup,
)

MakeClient = Callable[[Callable[[httpx.Request], httpx.Response]], httpx.AsyncClient]

MANIFEST_TOML = 'name = "libstub"\nwow_version = "11.0.2"\ncksum = "ff"\n'


class TestCreateClient:
    """Tests for create_client function."""

    def test_uses_config(self) -> None:
        """The client is configured from MoxenConfig."""
        config = MoxenConfig(registry_url="https://registry.example.org/", request_timeout=5)

        client = create_client(config)

        assert str(client.base_url).rstrip("/") == "https://registry.example.org"
        assert client.timeout.read == 5


class TestFetchMox:
    """Tests for fetch_mox function."""

    @pytest.mark.asyncio
    async def test_success_base64_package(self, make_client: MakeClient) -> None:
        """A 200 response yields the manifest text and decoded package bytes."""

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "GET"
            assert request.url.path == "/api/v1/mox/libstub"
            return httpx.Response(
                200,
                json={
                    "manifest": MANIFEST_TOML,
                    "package": base64.b64encode(b"archive").decode(),
                },
            )

        async with make_client(handler) as client:
            manifest, package = await fetch_mox(client, "libstub")

        assert manifest == MANIFEST_TOML
        assert package == b"archive"

    @pytest.mark.asyncio
    async def test_success_byte_array_package(self, make_client: MakeClient) -> None:
        """Package bytes sent as a JSON array are accepted."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"manifest": MANIFEST_TOML, "package": [1, 2, 3]})

        async with make_client(handler) as client:
            _, package = await fetch_mox(client, "libstub")

        assert package == b"\x01\x02\x03"

    @pytest.mark.asyncio
    async def test_missing_package(self, make_client: MakeClient) -> None:
        """A 200 response without a package is an API error."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"manifest": MANIFEST_TOML})

        async with make_client(handler) as client:
            with pytest.raises(RegistryApiError, match="missing"):
                await fetch_mox(client, "libstub")

    @pytest.mark.asyncio
    async def test_not_found(self, make_client: MakeClient) -> None:
        """404 maps to ProjectNotFoundError with the server message."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, json={"error": "no such mox"})

        async with make_client(handler) as client:
            with pytest.raises(ProjectNotFoundError, match="no such mox"):
                await fetch_mox(client, "ghost")

    @pytest.mark.asyncio
    async def test_other_status(self, make_client: MakeClient) -> None:
        """Other statuses map to RegistryApiError carrying the status code."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, text="boom")

        async with make_client(handler) as client:
            with pytest.raises(RegistryApiError, match="boom") as exc_info:
                await fetch_mox(client, "libstub")

        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_invalid_json(self, make_client: MakeClient) -> None:
        """A 200 response that is not JSON is an API error."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>")

        async with make_client(handler) as client:
            with pytest.raises(RegistryApiError, match="unexpected response body"):
                await fetch_mox(client, "libstub")

    @pytest.mark.asyncio
    async def test_connection_error(self, make_client: MakeClient) -> None:
        """Transport failures map to RegistryConnectionError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with make_client(handler) as client:
            with pytest.raises(RegistryConnectionError, match="could not reach"):
                await fetch_mox(client, "libstub")


class TestPublishMoxPackage:
    """Tests for publish_mox_package function."""

    @pytest.mark.asyncio
    async def test_created(self, make_client: MakeClient) -> None:
        """201 is success; credentials travel in headers."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(201)

        body = {"manifest": "bQ==", "package": "cA=="}
        async with make_client(handler) as client:
            await publish_mox_package(client, body, "secret", "thrall")

        request = seen[0]
        assert request.method == "POST"
        assert request.url.path == "/api/v1/mox/new"
        assert request.headers["x-api-key"] == "secret"
        assert request.headers["x-authorize-user"] == "thrall"
        assert json.loads(request.content) == body

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("status", "error"),
        [
            (409, ProjectConflictError),
            (401, InvalidApiKeyError),
            (400, RegistryApiError),
            (500, RegistryApiError),
        ],
    )
    async def test_error_statuses(
        self, make_client: MakeClient, status: int, error: type[RegistryError]
    ) -> None:
        """Each failure status maps to exactly one error."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(status, text="nope")

        async with make_client(handler) as client:
            with pytest.raises(error):
                await publish_mox_package(client, {}, "secret", "thrall")


class TestAuthFlow:
    """Tests for challenge, signup and recovery requests."""

    @pytest.mark.asyncio
    async def test_generate_challenge(self, make_client: MakeClient) -> None:
        """The challenge text is returned exactly as sent."""

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/v1/auth/challenge"
            assert json.loads(request.content) == {"name": "thrall", "key": "cHVi"}
            return httpx.Response(200, text="challenge-42")

        async with make_client(handler) as client:
            assert await generate_challenge(client, "thrall", "cHVi") == "challenge-42"

    @pytest.mark.asyncio
    async def test_generate_challenge_refused(self, make_client: MakeClient) -> None:
        """A refused challenge carries the server message."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(409, text="username taken")

        async with make_client(handler) as client:
            with pytest.raises(RegistryApiError, match="username taken"):
                await generate_challenge(client, "thrall", "cHVi")

    @pytest.mark.asyncio
    async def test_signup(self, make_client: MakeClient) -> None:
        """201 yields the API key and recovery codes."""

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/v1/auth/register"
            assert json.loads(request.content) == {"original": "c", "challenge": "sig"}
            return httpx.Response(201, json={"api_key": "key", "recovery_codes": ["r1", "r2"]})

        async with make_client(handler) as client:
            api_key, codes = await signup(client, "c", "sig")

        assert api_key == "key"
        assert codes == ["r1", "r2"]

    @pytest.mark.asyncio
    async def test_signup_error_message(self, make_client: MakeClient) -> None:
        """A failed signup reports the JSON error field."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, json={"error": "bad signature"})

        async with make_client(handler) as client:
            with pytest.raises(RegistryApiError, match="bad signature"):
                await signup(client, "c", "sig")

    @pytest.mark.asyncio
    async def test_recover(self, make_client: MakeClient) -> None:
        """200 yields the new API key."""

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/v1/auth/recovery"
            assert json.loads(request.content) == {
                "challenge": "c",
                "signed": "sig",
                "code": "r1",
            }
            return httpx.Response(200, json={"api_key": "new-key"})

        async with make_client(handler) as client:
            assert await recover(client, "c", "sig", "r1") == "new-key"

    @pytest.mark.asyncio
    async def test_recover_unauthorized(self, make_client: MakeClient) -> None:
        """401 maps to AuthenticationError."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={"error": "invalid recovery code"})

        async with make_client(handler) as client:
            with pytest.raises(AuthenticationError, match="invalid recovery code"):
                await recover(client, "c", "sig", "r1")
