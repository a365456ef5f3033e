"""
Abstract chain node interface.

Everything the sync engine needs from a remote node goes through this
contract, so tests can substitute an in-memory node.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class ChainNodeAPI(ABC):
    """
    Remote chain node.

    Implementations raise ``NetworkFailure`` for any failed request,
    including lookups of unknown accounts.
    """

    @abstractmethod
    async def get_status(self) -> dict[str, Any]:
        """Node status, used as the connection handshake."""

    @abstractmethod
    async def get_current_height(self) -> int:
        """Height of the current key block (the chain tip)."""

    @abstractmethod
    async def get_top_block(self) -> dict[str, Any]:
        """Header of the current key block; always carries ``height``."""

    @abstractmethod
    async def get_generation_micro_blocks(self, height: int) -> list[str]:
        """Hashes of the micro blocks in the generation at ``height``."""

    @abstractmethod
    async def get_micro_block_transactions(self, micro_block_hash: str) -> list[dict[str, Any]]:
        """Transaction envelopes (``hash``, ``block_height``, ``block_hash``, ``tx``)."""

    @abstractmethod
    async def get_micro_block_time(self, micro_block_hash: str) -> int:
        """Micro block timestamp in milliseconds."""

    @abstractmethod
    async def get_account_balance(self, address: str) -> int:
        """Balance of ``address``; unknown accounts raise ``NetworkFailure``."""

    @abstractmethod
    async def build_spend_transaction(self, params: dict[str, Any]) -> str:
        """Encode an unsigned spend transaction from draft parameters."""

    @abstractmethod
    async def post_transaction(self, signed_tx: str) -> str:
        """Broadcast a signed transaction and return its hash."""

    async def close(self) -> None:
        """Release network resources."""
        pass
