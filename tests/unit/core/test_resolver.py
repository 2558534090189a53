"""Unit tests for concurrent dependency resolution."""

import asyncio
import base64
from collections.abc import Callable
from pathlib import Path
from unittest.mock import patch

import httpx
import pytest
from moxen.core.context import MoxenContext
from moxen.core.errors import ChecksumError, ProjectNotFoundError
from moxen.core.manifest import load_manifest
from moxen.core.resolver import (
    DownloadResult,
    dependency_dir,
    download_dependencies,
    download_dependency,
    is_valid_dependency_name,
)
from moxen.models.manifest import Manifest, MoxMetadata
from moxen.packaging.archive import package_content
from moxen.packaging.checksum import checksum

MakeClient = Callable[[Callable[[httpx.Request], httpx.Response]], httpx.AsyncClient]


def _dependency_archive(tmp_path: Path, name: str) -> bytes:
    """Package a tiny addon and return the archive bytes."""
    root = tmp_path / "sources" / name
    root.mkdir(parents=True)
    (root / f"{name}.toc").write_text(f"## Title: {name}\n")
    (root / "core.lua").write_text(f"-- {name}\n")
    manifest = Manifest(mox=MoxMetadata(name=name, version="1.0.0", wow_version="11.0.2"))
    return package_content(manifest, root, tmp_path / "built").read_bytes()


def _registry(
    packages: dict[str, bytes], corrupt: set[str] | None = None
) -> Callable[[httpx.Request], httpx.Response]:
    """Handler serving packages by name; corrupt names get a wrong checksum."""

    def handler(request: httpx.Request) -> httpx.Response:
        name = request.url.path.rsplit("/", 1)[-1]
        if name not in packages:
            return httpx.Response(404, json={"error": f"{name} not found"})
        data = packages[name]
        digest = checksum(b"other" if corrupt and name in corrupt else data)
        manifest = f'name = "{name}"\nwow_version = "11.0.2"\ncksum = "{digest}"\n'
        return httpx.Response(
            200, json={"manifest": manifest, "package": base64.b64encode(data).decode()}
        )

    return handler


class TestDependencyNames:
    """Tests for dependency naming helpers."""

    def test_dependency_dir(self, tmp_path: Path) -> None:
        """Dependencies unpack into libs/<name>."""
        assert dependency_dir(tmp_path, "libstub") == tmp_path / "libs" / "libstub"

    @pytest.mark.parametrize("name", ["", ".", "..", "a/b", "a\\b"])
    def test_invalid_names(self, name: str) -> None:
        """Names that do not map to one libs/ entry are invalid."""
        assert is_valid_dependency_name(name) is False

    def test_valid_name(self) -> None:
        """Ordinary registry names are valid."""
        assert is_valid_dependency_name("lib-stub_2") is True


class TestDownloadDependency:
    """Tests for download_dependency function."""

    @pytest.mark.asyncio
    async def test_unpacks_verified_package(
        self, tmp_path: Path, bundle_dir: Path, make_client: MakeClient
    ) -> None:
        """A verified package is unpacked into libs/<name>."""
        packages = {"libstub": _dependency_archive(tmp_path, "libstub")}

        async with make_client(_registry(packages)) as client:
            result = await download_dependency(client, bundle_dir, "libstub")

        assert result == DownloadResult("libstub", bundle_dir / "libs" / "libstub")
        assert (result.path / "core.lua").read_text() == "-- libstub\n"

    @pytest.mark.asyncio
    async def test_checksum_mismatch_leaves_nothing(
        self, tmp_path: Path, bundle_dir: Path, make_client: MakeClient
    ) -> None:
        """Bytes that fail verification are never unpacked."""
        packages = {"libstub": _dependency_archive(tmp_path, "libstub")}

        async with make_client(_registry(packages, corrupt={"libstub"})) as client:
            with pytest.raises(ChecksumError):
                await download_dependency(client, bundle_dir, "libstub")

        assert not dependency_dir(bundle_dir, "libstub").exists()

    @pytest.mark.asyncio
    async def test_unknown_package(self, bundle_dir: Path, make_client: MakeClient) -> None:
        """Unknown names raise ProjectNotFoundError."""
        async with make_client(_registry({})) as client:
            with pytest.raises(ProjectNotFoundError):
                await download_dependency(client, bundle_dir, "ghost")


class TestDownloadDependencies:
    """Tests for download_dependencies function."""

    @pytest.mark.asyncio
    async def test_partial_failure(
        self, context: MoxenContext, sample_manifest: Manifest
    ) -> None:
        """Existing names are skipped, failures are left out, the rest are added."""
        for name in ("present-a", "present-b"):
            dependency_dir(context.src_dir, name).mkdir(parents=True)

        spawned: list[str] = []

        async def fake_download(client: object, src_dir: Path, name: str) -> DownloadResult:
            spawned.append(name)
            await asyncio.sleep(0)
            if name == "broken":
                raise ProjectNotFoundError(name)
            return DownloadResult(name, dependency_dir(src_dir, name))

        names = ["present-a", "new-a", "broken", "present-b", "new-b"]
        with patch("moxen.core.resolver.download_dependency", new=fake_download):
            report = await download_dependencies(
                context, sample_manifest, names, client=object()  # type: ignore[arg-type]
            )

        assert sorted(spawned) == ["broken", "new-a", "new-b"]
        assert report.skipped == ["present-a", "present-b"]
        assert sorted(report.fetched) == ["new-a", "new-b"]
        assert report.failed == ["broken"]
        assert sorted(sample_manifest.dependencies) == [
            "new-a",
            "new-b",
            "present-a",
            "present-b",
        ]
        saved = load_manifest(context.src_dir)
        assert saved.dependencies == sample_manifest.dependencies
        assert report.manifest_path == context.src_dir / "Moxen.toml"

    @pytest.mark.asyncio
    async def test_all_failures_still_complete(
        self, context: MoxenContext, sample_manifest: Manifest
    ) -> None:
        """When every unit fails the run still finishes and adds nothing."""

        async def fake_download(client: object, src_dir: Path, name: str) -> DownloadResult:
            raise ProjectNotFoundError(name)

        with patch("moxen.core.resolver.download_dependency", new=fake_download):
            report = await asyncio.wait_for(
                download_dependencies(
                    context, sample_manifest, ["a", "b"], client=object()  # type: ignore[arg-type]
                ),
                timeout=5,
            )

        assert report.fetched == []
        assert sorted(report.failed) == ["a", "b"]
        assert sample_manifest.dependencies == []

    @pytest.mark.asyncio
    async def test_unexpected_exception_does_not_hang(
        self, context: MoxenContext, sample_manifest: Manifest
    ) -> None:
        """A unit crashing with an unexpected error is reported as failed."""

        async def fake_download(client: object, src_dir: Path, name: str) -> DownloadResult:
            if name == "crash":
                raise RuntimeError("unexpected")
            return DownloadResult(name, dependency_dir(src_dir, name))

        with patch("moxen.core.resolver.download_dependency", new=fake_download):
            report = await asyncio.wait_for(
                download_dependencies(
                    context,
                    sample_manifest,
                    ["ok", "crash"],
                    client=object(),  # type: ignore[arg-type]
                ),
                timeout=5,
            )

        assert report.fetched == ["ok"]
        assert report.failed == ["crash"]

    @pytest.mark.asyncio
    async def test_duplicates_and_invalid_names(
        self, context: MoxenContext, sample_manifest: Manifest
    ) -> None:
        """Repeated names are fetched once; invalid names never spawn a unit."""
        spawned: list[str] = []

        async def fake_download(client: object, src_dir: Path, name: str) -> DownloadResult:
            spawned.append(name)
            return DownloadResult(name, dependency_dir(src_dir, name))

        with patch("moxen.core.resolver.download_dependency", new=fake_download):
            report = await download_dependencies(
                context,
                sample_manifest,
                ["a", "a", "../x"],
                client=object(),  # type: ignore[arg-type]
            )

        assert spawned == ["a"]
        assert report.failed == ["../x"]
        assert sample_manifest.dependencies == ["a"]

    @pytest.mark.asyncio
    async def test_end_to_end(
        self,
        tmp_path: Path,
        context: MoxenContext,
        sample_manifest: Manifest,
        make_client: MakeClient,
    ) -> None:
        """Real fetch, verify and unpack against a mocked registry."""
        packages = {
            "libstub": _dependency_archive(tmp_path, "libstub"),
            "ace3": _dependency_archive(tmp_path, "ace3"),
            "tampered": _dependency_archive(tmp_path, "tampered"),
        }
        handler = _registry(packages, corrupt={"tampered"})

        async with make_client(handler) as client:
            report = await download_dependencies(
                context, sample_manifest, ["libstub", "ace3", "tampered", "ghost"], client=client
            )

        assert sorted(report.fetched) == ["ace3", "libstub"]
        assert sorted(report.failed) == ["ghost", "tampered"]
        assert (context.libs_dir / "ace3" / "core.lua").exists()
        assert not (context.libs_dir / "tampered").exists()
        assert sorted(load_manifest(context.src_dir).dependencies) == ["ace3", "libstub"]
