"""Register command implementation.

Creates a registry account bound to this installation's keypair.
"""

import asyncio
from typing import Annotated

import typer

from moxen.auth.account import register_account
from moxen.cli.display import print_recovery_codes
from moxen.cli.helpers import fail, require_context
from moxen.core.context import MoxenContext
from moxen.core.errors import MoxenError
from moxen.registry.client import create_client
from moxen.utils.formatting import print_info, print_success


async def _register(context: MoxenContext, name: str) -> list[str]:
    async with create_client(context.config) as client:
        return await register_account(client, context.config, name)


def register(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Username to register.")],
) -> None:
    """Register a new account with the Moxen registry.

    Usernames are at least three characters of letters, digits and
    underscores. The API key is stored in the config file; the recovery
    codes are printed once and never stored.
    """
    context = require_context(ctx)

    try:
        codes = asyncio.run(_register(context, name))
        config_path = context.save_config()
    except MoxenError as e:
        raise fail(e) from e

    credentials = context.config.credentials
    print_success(f"Registered as {name}")
    if credentials is not None and credentials.api_key:
        print_info(f"API key: {credentials.api_key}")
    print_info(f"Credentials saved to {config_path}")
    print_recovery_codes(codes)
