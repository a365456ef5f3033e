"""
Chain node backend implementations.
"""

from aesync.backends.aeternity import AeternityNodeBackend
from aesync.backends.base import ChainNodeAPI

__all__ = ["ChainNodeAPI", "AeternityNodeBackend"]
