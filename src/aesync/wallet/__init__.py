"""
Wallet-level services: discovery, synchronization and spending.
"""

from aesync.wallet.discovery import AccountDiscoverer, create_discoverer
from aesync.wallet.operations import map_to_operations, merge_operations
from aesync.wallet.sync import AccountPatch, Synchronizer, create_synchronizer
from aesync.wallet.transaction import TransactionController, add_pending_operation

__all__ = [
    "AccountDiscoverer",
    "AccountPatch",
    "Synchronizer",
    "TransactionController",
    "add_pending_operation",
    "create_discoverer",
    "create_synchronizer",
    "map_to_operations",
    "merge_operations",
]
