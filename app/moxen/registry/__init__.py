"""Registry API client and publishing."""

from moxen.registry.client import (
    create_client,
    fetch_mox,
    generate_challenge,
    publish_mox_package,
    recover,
    signup,
)
from moxen.registry.publish import create_request_body, publish_package

__all__ = [
    "create_client",
    "create_request_body",
    "fetch_mox",
    "generate_challenge",
    "publish_mox_package",
    "publish_package",
    "recover",
    "signup",
]
