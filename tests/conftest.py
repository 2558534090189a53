"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

from collections.abc import Callable, Iterator
from pathlib import Path

import httpx
import pytest
from moxen.core.config import MoxenConfig
from moxen.core.context import MoxenContext
from moxen.core.manifest import save_manifest
from moxen.models.manifest import Manifest, MoxMetadata


@pytest.fixture(autouse=True)
def isolated_xdg(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    """Point XDG directories into tmp_path so no test touches the real home."""
    xdg_root = tmp_path / "xdg"
    monkeypatch.setenv("XDG_CONFIG_HOME", str(xdg_root / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(xdg_root / "cache"))
    monkeypatch.delenv("MOXEN_REGISTRY_URL", raising=False)
    yield xdg_root


@pytest.fixture
def sample_manifest() -> Manifest:
    """A small single-addon manifest."""
    return Manifest(
        mox=MoxMetadata(
            name="My Cool Addon",
            version="1.2.0",
            wow_version="11.0.2",
            description="Does cool things",
            authors=["Thrall"],
        )
    )


@pytest.fixture
def bundle_dir(tmp_path: Path, sample_manifest: Manifest) -> Path:
    """A packageable bundle root with a manifest, a .toc file and some Lua."""
    root = tmp_path / "bundle"
    root.mkdir()
    save_manifest(sample_manifest, root)
    (root / "MyCoolAddon.toc").write_text("## Title: My Cool Addon\nstart.lua\n")
    (root / "start.lua").write_text("print('Hello, World!')\n")
    (root / "media").mkdir()
    (root / "media" / "icon.tga").write_bytes(b"\x00\x01\x02")
    return root


@pytest.fixture
def context(tmp_path: Path, bundle_dir: Path) -> MoxenContext:
    """Invocation context for bundle_dir with isolated package and config paths."""
    return MoxenContext(
        src_dir=bundle_dir,
        package_dir=tmp_path / "package",
        config_path=tmp_path / "config.toml",
        config=MoxenConfig(),
    )


@pytest.fixture
def make_client() -> Callable[[Callable[[httpx.Request], httpx.Response]], httpx.AsyncClient]:
    """Build an AsyncClient whose requests are answered by a handler function."""

    def _make(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url="https://registry.test",
            transport=httpx.MockTransport(handler),
        )

    return _make
