"""
aesync - account discovery and history synchronization for Aeternity wallets.
"""

from aesync.chain import ChainClient, HistoryFetcher
from aesync.version import __version__
from aesync.wallet import AccountDiscoverer, Synchronizer, TransactionController

__all__ = [
    "AccountDiscoverer",
    "ChainClient",
    "HistoryFetcher",
    "Synchronizer",
    "TransactionController",
    "__version__",
]
