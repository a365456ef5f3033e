"""
Watch-only account commands: sync, history.
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
from aesync.models import AETERNITY, Account
from aesync.settings import AeSyncSettings
from aesync.wallet.accounts import build_account
from aesync.wallet.operations import display_operations
from aesync.wallet.sync import create_synchronizer


def _sync_watch_only(settings: AeSyncSettings, address: str) -> Account:
    async def _run() -> Account:
        client = create_client(settings)
        try:
            account = build_account(AETERNITY, address, path="", index=0)
            return await create_synchronizer(settings, client).resync(account)
        finally:
            await client.close()

    try:
        return asyncio.run(_run())
    except AeSyncError as e:
        logger.error(f"Sync of {address} failed: {e}")
        raise typer.Exit(1) from e


@app.command()
def sync(
    address: Annotated[str, typer.Argument(help="Account address (ak_...)")],
    node_url: Annotated[str | None, typer.Option("--node-url", help="Node API URL")] = None,
    log_level: Annotated[str | None, typer.Option("--log-level", "-l")] = None,
) -> None:
    """Synchronize a watch-only account and print a summary."""
    settings = setup_cli(log_level, node_url)
    account = _sync_watch_only(settings, address)

    typer.echo(f"Account:    {account.id}")
    typer.echo(f"Height:     {account.block_height}")
    typer.echo(f"Balance:    {account.balance} aettos")
    typer.echo(f"Operations: {len(account.operations)}")


@app.command()
def history(
    address: Annotated[str, typer.Argument(help="Account address (ak_...)")],
    limit: Annotated[
        int | None, typer.Option("--limit", "-n", help="Max operations to show")
    ] = None,
    node_url: Annotated[str | None, typer.Option("--node-url", help="Node API URL")] = None,
    log_level: Annotated[str | None, typer.Option("--log-level", "-l")] = None,
) -> None:
    """Show the operation history of an address, newest first."""
    settings = setup_cli(log_level, node_url)
    account = _sync_watch_only(settings, address)

    operations = display_operations(account)
    if limit is not None:
        operations = operations[:limit]
    if not operations:
        typer.echo("No operations found.")
        return

    for op in operations:
        height = op.block_height if op.block_height is not None else "pending"
        typer.echo(
            f"{op.date.isoformat()}  {op.type.value:<3}  {op.value:>24}  {height:>10}  {op.hash}"
        )
