"""Recover command implementation.

Restores access to a registry account using a recovery code.
"""

import asyncio
from typing import Annotated

import typer

from moxen.auth.account import recover_account
from moxen.cli.helpers import fail, require_context
from moxen.core.context import MoxenContext
from moxen.core.errors import MoxenError
from moxen.registry.client import create_client
from moxen.utils.formatting import print_info, print_success


async def _recover(context: MoxenContext, name: str, code: str) -> str:
    async with create_client(context.config) as client:
        return await recover_account(client, context.config, name, code)


def recover(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Registered username.")],
    code: Annotated[str, typer.Argument(help="One of your recovery codes.")],
) -> None:
    """Recover a registry account with a recovery code.

    A new keypair is generated for this installation. Existing
    credentials must be removed from the config file first.
    """
    context = require_context(ctx)

    try:
        asyncio.run(_recover(context, name, code))
        config_path = context.save_config()
    except MoxenError as e:
        raise fail(e) from e

    print_success(f"Recovered account {name}")
    print_info(f"New API key saved to {config_path}")
