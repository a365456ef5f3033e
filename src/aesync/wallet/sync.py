"""
Account synchronization.

A sync cycle re-derives the whole operation history from a fresh fetch and
emits a patch, a function applied by the caller to its latest copy of the
account. Applying a patch rather than replacing the account keeps pending
operations added while the sync was running.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from datetime import UTC, datetime

from loguru import logger

from aesync.chain.client import ChainClient
from aesync.chain.history import HistoryFetcher
from aesync.constants import SAFE_REORG_THRESHOLD
from aesync.models import Account, Operation, RawTransaction
from aesync.settings import AeSyncSettings
from aesync.tasks import CancellationToken
from aesync.wallet.operations import map_to_operations

AccountPatch = Callable[[Account], Account]


def final_operations(
    operations: list[Operation], current_height: int, threshold: int = SAFE_REORG_THRESHOLD
) -> list[Operation]:
    """Confirmed operations buried deeper than ``threshold`` blocks below the tip."""
    return [
        op
        for op in operations
        if op.block_height is not None and current_height - op.block_height > threshold
    ]


class Synchronizer:
    """Brings a previously synchronized account up to date with the chain."""

    def __init__(
        self,
        client: ChainClient,
        fetcher: HistoryFetcher | None = None,
        reorg_threshold: int = SAFE_REORG_THRESHOLD,
    ):
        self.client = client
        self.fetcher = fetcher or HistoryFetcher(client)
        self.reorg_threshold = reorg_threshold

    async def synchronize(
        self, account: Account, token: CancellationToken | None = None
    ) -> AsyncIterator[AccountPatch]:
        """
        Run one sync cycle for ``account``.

        Yields a single patch unless cancelled, in which case nothing is
        yielded and no further requests are made.
        """
        token = token or CancellationToken()

        await self.client.connect()
        if token.cancelled:
            return
        current_height = await self.client.get_tip_height()
        if token.cancelled:
            return

        trusted = account.operations
        if current_height != account.block_height:
            trusted = final_operations(account.operations, current_height, self.reorg_threshold)
            logger.debug(
                f"Tip moved {account.block_height} -> {current_height}: "
                f"{len(account.operations) - len(trusted)} recent operations will be re-derived"
            )

        txs = await self.fetcher.get_transactions(account.fresh_address)
        if token.cancelled:
            return
        balance = await self.client.get_balance(account.fresh_address)
        if token.cancelled:
            return

        yield self._make_patch(txs, balance, current_height, {op.id for op in trusted})

    def _make_patch(
        self,
        txs: list[RawTransaction],
        balance: int,
        current_height: int,
        trusted_ids: set[str],
    ) -> AccountPatch:
        def patch(account: Account) -> Account:
            operations = map_to_operations(account, txs)
            fresh_ids = {op.id for op in operations}

            missing = trusted_ids - fresh_ids
            if missing:
                logger.warning(
                    f"{len(missing)} final operations of {account.id} are no longer on chain"
                )

            pending = [op for op in account.pending_operations if op.id not in fresh_ids]
            retired = len(account.pending_operations) - len(pending)
            logger.info(
                f"Synced {account.id} at height {current_height}: "
                f"{len(operations)} operations, balance {balance}"
                + (f", {retired} pending confirmed" if retired else "")
            )
            return account.model_copy(
                update={
                    "operations": operations,
                    "pending_operations": pending,
                    "balance": balance,
                    "block_height": current_height,
                    "last_sync_date": datetime.now(UTC),
                }
            )

        return patch

    async def resync(self, account: Account, token: CancellationToken | None = None) -> Account:
        """Run one sync cycle and return the patched account."""
        async for patch in self.synchronize(account, token):
            account = patch(account)
        return account


def create_synchronizer(settings: AeSyncSettings, client: ChainClient) -> Synchronizer:
    """Build a synchronizer tuned by the ``[sync]`` settings."""
    return Synchronizer(
        client,
        HistoryFetcher(client, settings.sync.fetch_concurrency),
        reorg_threshold=settings.sync.reorg_threshold,
    )
