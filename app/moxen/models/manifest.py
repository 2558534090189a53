"""Manifest models for moxen bundles.

This module defines the Pydantic models representing the Moxen.toml
structure that describes a bundle, and the normalized, content-addressed
projection of it that is exchanged with the registry.
"""

import tomllib
from typing import Annotated, Any, Self

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, field_validator

# Category used when a manifest declares none
DEFAULT_CATEGORY = "miscellaneous"


def _unique(items: list[str]) -> list[str]:
    """Drop repeated entries, keeping the first occurrence of each."""
    seen: set[str] = set()
    result: list[str] = []
    for item in items:
        if item not in seen:
            seen.add(item)
            result.append(item)
    return result


def normalize_name(name: str) -> str:
    """Project a display name onto its registry form.

    Whitespace runs become a single hyphen and the result is lower-cased,
    so "My Cool Addon" becomes "my-cool-addon".
    """
    return "-".join(name.split()).lower()


class MoxMetadata(BaseModel):
    """The [mox] section of a bundle manifest.

    Attributes:
        name: Display name of the bundle.
        version: Bundle version (e.g., "0.1.0").
        wow_version: World of Warcraft client version the bundle targets.
        description: Short human-readable description.
        authors: Author names.
        homepage: Optional project homepage URL.
        repository: Optional source repository URL.
        categories: Optional registry categories.
        dependencies: Names of registry packages this bundle depends on.
        ignore: Glob patterns, relative to the bundle root, left out of packages.
    """

    model_config = ConfigDict(extra="forbid")

    name: Annotated[str, Field(description="Bundle name")]
    version: Annotated[str | None, Field(description="Bundle version")] = None
    wow_version: Annotated[str, Field(description="Target World of Warcraft version")]
    description: Annotated[str, Field(description="Bundle description")] = ""
    authors: Annotated[list[str], Field(default_factory=list, description="Authors")]
    homepage: Annotated[str | None, Field(description="Homepage URL")] = None
    repository: Annotated[str | None, Field(description="Source repository URL")] = None
    categories: Annotated[list[str] | None, Field(description="Registry categories")] = None
    dependencies: Annotated[
        list[str] | None,
        Field(description="Registry package dependencies"),
    ] = None
    ignore: Annotated[list[str] | None, Field(description="Ignore globs")] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Reject empty or whitespace-only names."""
        if not v.strip():
            msg = "Bundle name cannot be empty"
            raise ValueError(msg)
        return v

    @field_validator("dependencies", "categories")
    @classmethod
    def validate_unique(cls, v: list[str] | None) -> list[str] | None:
        """Collapse duplicate entries while keeping declaration order."""
        if v is None:
            return None
        return _unique(v)


class PackageCollection(BaseModel):
    """The optional [collection] section of a bundle manifest.

    A collection ships several addons at once; each member is a
    subdirectory of the bundle root holding its own .toc file.
    """

    model_config = ConfigDict(extra="forbid")

    members: Annotated[list[str], Field(default_factory=list, description="Member addons")]


class NormalizedManifest(BaseModel):
    """Content-addressed projection of a manifest sent to the registry.

    The name carries no version suffix: the checksum of the archive bytes
    is the true identity of a published package.

    Attributes:
        name: Normalized bundle name.
        version: Bundle version, if any.
        wow_version: Target World of Warcraft version.
        categories: Registry categories, never empty.
        cksum: Hex-encoded SHA-1 of the archive bytes.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    name: str
    version: str | None = None
    wow_version: str
    categories: list[str] = Field(default_factory=lambda: [DEFAULT_CATEGORY])
    cksum: str

    @field_validator("categories")
    @classmethod
    def default_categories(cls, v: list[str]) -> list[str]:
        """The registry index must never see an empty category list."""
        return _unique(v) or [DEFAULT_CATEGORY]

    def to_toml(self) -> str:
        """Serialize to TOML, leaving out unset optional fields."""
        return tomli_w.dumps(self.model_dump(exclude_none=True))

    @classmethod
    def from_toml(cls, text: str) -> Self:
        """Parse and validate a TOML document produced by to_toml().

        Raises:
            tomllib.TOMLDecodeError: If the text is not valid TOML.
            pydantic.ValidationError: If required fields are missing.
        """
        return cls.model_validate(tomllib.loads(text))


class Manifest(BaseModel):
    """Complete bundle manifest (Moxen.toml).

    Attributes:
        mox: Bundle metadata.
        collection: Optional collection definition.
    """

    model_config = ConfigDict(extra="forbid")

    mox: Annotated[MoxMetadata, Field(description="Bundle metadata")]
    collection: Annotated[
        PackageCollection | None,
        Field(description="Collection members"),
    ] = None

    @property
    def dependencies(self) -> list[str]:
        """Declared dependency names (empty list if none)."""
        return list(self.mox.dependencies or [])

    @property
    def normalized_name(self) -> str:
        """Registry form of the bundle name."""
        return normalize_name(self.mox.name)

    @property
    def artifact_name(self) -> str:
        """File stem used for the staged tree and the .mox archive.

        Falls back to the WoW version when the bundle has no version.
        """
        suffix = self.mox.version if self.mox.version else self.mox.wow_version
        return f"{self.normalized_name}-{suffix}"

    def normalize(self, cksum: str) -> NormalizedManifest:
        """Build the content-addressed projection for an archive digest.

        Args:
            cksum: Hex digest of the packaged archive.

        Returns:
            NormalizedManifest for this bundle and digest.
        """
        return NormalizedManifest(
            name=self.normalized_name,
            version=self.mox.version,
            wow_version=self.mox.wow_version,
            categories=list(self.mox.categories or []),
            cksum=cksum,
        )

    def add_dependency(self, name: str) -> bool:
        """Record a dependency, ignoring names that are already present.

        Returns:
            True if the name was added, False if it was already listed.
        """
        deps = self.mox.dependencies
        if deps is None:
            self.mox.dependencies = [name]
            return True
        if name in deps:
            return False
        deps.append(name)
        return True

    def render(self) -> str:
        """Human-readable summary of the manifest.

        Fields are shown in a fixed order; unset optional fields are left
        out rather than shown empty.
        """
        mox = self.mox
        lines = ["--- Mox Manifest ---", f"Name: {mox.name}"]
        if mox.version:
            lines.append(f"Addon Version: {mox.version}")
        lines.append(f"World of Warcraft Version: {mox.wow_version}")
        if mox.description:
            lines.append(f'Addon Description: "{mox.description}"')
        if mox.authors:
            lines.append("Authors:")
            lines.extend(f"- {author}" for author in mox.authors)
        if mox.homepage:
            lines.append(f"Home: {mox.homepage}")
        if mox.repository:
            lines.append(f"Source Code: {mox.repository}")
        if mox.categories:
            lines.append(f"Categories: {', '.join(mox.categories)}")
        if mox.dependencies:
            lines.append("Dependencies:")
            lines.extend(f"- {dep}" for dep in mox.dependencies)
        if self.collection is not None and self.collection.members:
            lines.append("")
            lines.append("Collection:")
            lines.extend(f"- {member}" for member in self.collection.members)
        lines.append("------")
        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        """Dictionary suitable for TOML serialization (no None values)."""
        return self.model_dump(exclude_none=True)
