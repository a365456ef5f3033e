"""
Chain client facade over a node backend.

The client owns the session's block transaction cache and is passed
explicitly to the history fetcher, discoverer and synchronizer.
"""

from __future__ import annotations

import asyncio
from typing import Any

from loguru import logger

from aesync.backends.base import ChainNodeAPI
from aesync.chain.cache import BlockTransactionCache
from aesync.constants import SPEND_TX_TYPE
from aesync.errors import NetworkFailure
from aesync.models import RawTransaction, SpendDraft
from aesync.settings import AeSyncSettings


class ChainClient:
    """
    Cached, session-scoped access to a chain node.

    The block at the current tip is never cached because micro blocks can
    still be appended to its generation.
    """

    def __init__(self, node: ChainNodeAPI, cache: BlockTransactionCache | None = None):
        self.node = node
        self.cache = cache if cache is not None else BlockTransactionCache()
        self.node_info: dict[str, Any] | None = None
        self._tip_height: int | None = None
        self._connect_lock = asyncio.Lock()

    @property
    def connected(self) -> bool:
        return self.node_info is not None

    async def connect(self) -> ChainClient:
        """Perform the node handshake once; later calls return immediately."""
        if self.node_info is not None:
            return self
        async with self._connect_lock:
            if self.node_info is None:
                self.node_info = await self.node.get_status()
                logger.info(
                    f"Connected to node {self.node_info.get('node_version', 'unknown')} "
                    f"on network {self.node_info.get('network_id', 'unknown')}"
                )
        return self

    async def get_tip_height(self) -> int:
        self._tip_height = await self.node.get_current_height()
        return self._tip_height

    async def get_top_block(self) -> dict[str, Any]:
        block = await self.node.get_top_block()
        self._tip_height = int(block["height"])
        return block

    async def get_block_transactions(
        self, height: int, bypass_cache: bool = False
    ) -> list[RawTransaction]:
        """
        Get the spend transactions of the generation at ``height``.

        Args:
            height: Key block height
            bypass_cache: Re-fetch even when an entry is cached

        Returns:
            Spend transactions in micro block order
        """
        tip = self._tip_height
        if tip is None:
            tip = await self.get_tip_height()
        at_tip = height >= tip

        return await self.cache.get_or_load(
            height,
            self._load_block,
            use_cache=not (bypass_cache or at_tip),
            store=not at_tip,
        )

    async def _load_block(self, height: int) -> list[RawTransaction]:
        micro_blocks = await self.node.get_generation_micro_blocks(height)
        per_micro_block = await asyncio.gather(
            *(self._load_micro_block(h) for h in micro_blocks)
        )
        transactions = [tx for txs in per_micro_block for tx in txs]
        logger.trace(
            f"Resolved height {height}: {len(micro_blocks)} micro blocks, "
            f"{len(transactions)} spend transactions"
        )
        return transactions

    async def _load_micro_block(self, micro_block_hash: str) -> list[RawTransaction]:
        entries, time = await asyncio.gather(
            self.node.get_micro_block_transactions(micro_block_hash),
            self.node.get_micro_block_time(micro_block_hash),
        )
        try:
            return [
                RawTransaction.from_node(entry, time)
                for entry in entries
                if entry.get("tx", {}).get("type") == SPEND_TX_TYPE
            ]
        except (KeyError, ValueError) as e:
            raise NetworkFailure(f"Malformed transaction in micro block {micro_block_hash}") from e

    async def get_balance(self, address: str) -> int:
        """Balance of ``address``; a failed lookup reads as zero."""
        try:
            return await self.node.get_account_balance(address)
        except NetworkFailure as e:
            logger.warning(f"Balance lookup for {address} failed, assuming 0: {e}")
            return 0

    async def build_spend_transaction(self, draft: SpendDraft) -> str:
        return await self.node.build_spend_transaction(draft.to_node_params())

    async def broadcast(self, signed_tx: str) -> str:
        return await self.node.post_transaction(signed_tx)

    async def close(self) -> None:
        await self.node.close()


def create_client(settings: AeSyncSettings) -> ChainClient:
    """Build a chain client for the node configured in ``settings``."""
    from aesync.backends.aeternity import AeternityNodeBackend

    backend = AeternityNodeBackend(
        url=settings.node.url,
        internal_url=settings.node.internal_url,
        timeout=settings.node.timeout,
    )
    return ChainClient(backend)
