"""
Per-height block transaction cache shared by every consumer of a chain client.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

from loguru import logger

from aesync.models import RawTransaction

BlockLoader = Callable[[int], Awaitable[list[RawTransaction]]]


class BlockTransactionCache:
    """
    Map from block height to the spend transactions resolved for it.

    Entries are never evicted. Concurrent requests for the same height share
    a single in-flight load instead of each hitting the node.
    """

    def __init__(self) -> None:
        self._entries: dict[int, list[RawTransaction]] = {}
        self._in_flight: dict[tuple[int, bool], asyncio.Task[list[RawTransaction]]] = {}

    def __contains__(self, height: int) -> bool:
        return height in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    async def get_or_load(
        self,
        height: int,
        loader: BlockLoader,
        *,
        use_cache: bool = True,
        store: bool = True,
    ) -> list[RawTransaction]:
        """
        Return the transactions at ``height``, loading them if needed.

        Args:
            height: Block height
            loader: Coroutine function resolving the block from the node
            use_cache: Serve a stored entry when one exists
            store: Keep the loaded result for later calls
        """
        if use_cache:
            cached = self._entries.get(height)
            if cached is not None:
                logger.trace(f"Block cache hit at height {height}")
                return cached

        # Loads that will be stored are never shared with unstored tip loads
        key = (height, store)
        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.create_task(self._load(height, loader, store))
            self._in_flight[key] = task
            task.add_done_callback(lambda t: self._forget(key, t))
        else:
            logger.trace(f"Joining in-flight load for height {height}")

        return await asyncio.shield(task)

    async def _load(self, height: int, loader: BlockLoader, store: bool) -> list[RawTransaction]:
        transactions = await loader(height)
        if store:
            self._entries[height] = transactions
        return transactions

    def _forget(
        self, key: tuple[int, bool], task: asyncio.Task[list[RawTransaction]]
    ) -> None:
        if self._in_flight.get(key) is task:
            del self._in_flight[key]
