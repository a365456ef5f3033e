"""
Chain access: cached node client and history fetching.
"""

from aesync.chain.cache import BlockTransactionCache
from aesync.chain.client import ChainClient, create_client
from aesync.chain.history import HistoryFetcher, run_batched

__all__ = [
    "BlockTransactionCache",
    "ChainClient",
    "HistoryFetcher",
    "create_client",
    "run_batched",
]
