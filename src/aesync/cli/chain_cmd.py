"""
Chain query commands: tip, balance.
"""

from __future__ import annotations

import asyncio
from typing import Annotated

import typer
from loguru import logger

from aesync.chain.client import create_client
from aesync.cli import app
from aesync.cli_common import setup_cli
from aesync.errors import AeSyncError


@app.command()
def tip(
    node_url: Annotated[str | None, typer.Option("--node-url", help="Node API URL")] = None,
    log_level: Annotated[str | None, typer.Option("--log-level", "-l")] = None,
) -> None:
    """Show the current chain tip height."""
    settings = setup_cli(log_level, node_url)

    async def _run() -> int:
        client = create_client(settings)
        try:
            await client.connect()
            return await client.get_tip_height()
        finally:
            await client.close()

    try:
        height = asyncio.run(_run())
    except AeSyncError as e:
        logger.error(f"Failed to fetch tip: {e}")
        raise typer.Exit(1) from e

    typer.echo(f"Tip height: {height}")


@app.command()
def balance(
    address: Annotated[str, typer.Argument(help="Account address (ak_...)")],
    node_url: Annotated[str | None, typer.Option("--node-url", help="Node API URL")] = None,
    log_level: Annotated[str | None, typer.Option("--log-level", "-l")] = None,
) -> None:
    """Show the balance of an address in aettos."""
    settings = setup_cli(log_level, node_url)

    async def _run() -> int:
        client = create_client(settings)
        try:
            await client.connect()
            return await client.get_balance(address)
        finally:
            await client.close()

    try:
        amount = asyncio.run(_run())
    except AeSyncError as e:
        logger.error(f"Failed to fetch balance: {e}")
        raise typer.Exit(1) from e

    typer.echo(f"Balance of {address}: {amount} aettos")
