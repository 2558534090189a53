"""Response bodies returned by the registry API."""

import base64
import binascii
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class DownloadPackageResponse(BaseModel):
    """Body of GET /api/v1/mox/{name}.

    The package bytes arrive either as a JSON array of byte values or as a
    base64 string; both decode to the raw archive.
    """

    model_config = ConfigDict(extra="ignore")

    manifest: Annotated[str, Field(description="Normalized manifest as TOML")] = ""
    package: Annotated[bytes, Field(description="Archive bytes")] = b""
    error: Annotated[str | None, Field(description="Server error message")] = None

    @field_validator("package", mode="before")
    @classmethod
    def decode_package(cls, v: Any) -> bytes:
        """Accept byte arrays and base64 strings."""
        if v is None:
            return b""
        if isinstance(v, list):
            try:
                return bytes(v)
            except (TypeError, ValueError) as e:
                msg = f"package is not a byte array: {e}"
                raise ValueError(msg) from e
        if isinstance(v, str):
            try:
                return base64.b64decode(v, validate=True)
            except binascii.Error as e:
                msg = f"package is not valid base64: {e}"
                raise ValueError(msg) from e
        if isinstance(v, bytes):
            return v
        msg = f"unsupported package encoding: {type(v).__name__}"
        raise ValueError(msg)


class UserRegisterResponse(BaseModel):
    """Body of POST /api/v1/auth/register."""

    model_config = ConfigDict(extra="ignore")

    api_key: str = ""
    recovery_codes: list[str] = Field(default_factory=list)
    error: str | None = None


class UserRecoveryResponse(BaseModel):
    """Body of POST /api/v1/auth/recovery."""

    model_config = ConfigDict(extra="ignore")

    api_key: str = ""
    error: str | None = None
