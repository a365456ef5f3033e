"""
Full-chain transaction history retrieval.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from functools import partial
from typing import Any, TypeVar

from loguru import logger

from aesync.chain.client import ChainClient
from aesync.constants import FETCH_CONCURRENCY
from aesync.models import RawTransaction

T = TypeVar("T")


async def run_batched(
    factories: Sequence[Callable[[], Awaitable[T]]],
    limit: int,
    return_exceptions: bool = False,
) -> list[Any]:
    """
    Run coroutine factories ``limit`` at a time, batch after batch.

    Each batch is fully awaited before the next one starts. Results come back
    in factory order. Without ``return_exceptions`` the first failure aborts
    the whole run; with it, failures are returned in place of results.
    """
    if limit < 1:
        raise ValueError(f"Batch limit must be at least 1, got {limit}")

    results: list[Any] = []
    for start in range(0, len(factories), limit):
        batch = factories[start : start + limit]
        outcomes = await asyncio.gather(
            *(factory() for factory in batch), return_exceptions=return_exceptions
        )
        results.extend(outcomes)
    return results


class HistoryFetcher:
    """Fetches every spend transaction from genesis to the current tip."""

    def __init__(self, client: ChainClient, concurrency: int = FETCH_CONCURRENCY):
        self.client = client
        self.concurrency = concurrency

    async def get_all_transactions(self) -> list[RawTransaction]:
        """All spend transactions, in ascending height order."""
        tip = await self.client.get_tip_height()
        factories = [
            partial(self.client.get_block_transactions, height, height == tip)
            for height in range(tip + 1)
        ]
        logger.debug(
            f"Fetching {len(factories)} heights in batches of {self.concurrency} (tip {tip})"
        )
        per_height = await run_batched(factories, self.concurrency)
        return [tx for txs in per_height for tx in txs]

    async def get_transactions(self, address: str) -> list[RawTransaction]:
        """Spend transactions sent from or to ``address``, oldest first."""
        return [
            tx
            for tx in await self.get_all_transactions()
            if address in (tx.sender_id, tx.recipient_id)
        ]
