"""
Aeternity node REST API backend.
"""

from __future__ import annotations

from typing import Any

import httpx
from loguru import logger

from aesync.backends.base import ChainNodeAPI
from aesync.errors import NetworkFailure


class AeternityNodeBackend(ChainNodeAPI):
    """
    Chain node backend talking to an Aeternity node over its v3 HTTP API.

    Unsigned spends are built through the node's internal (debug) API, which
    may live on a separate URL.
    """

    def __init__(
        self,
        url: str,
        internal_url: str | None = None,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.url = url.rstrip("/")
        self.internal_url = (internal_url or url).rstrip("/")
        self.client = client or httpx.AsyncClient(timeout=timeout)

    async def _request(
        self,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
        internal: bool = False,
    ) -> Any:
        """
        Perform a request against the node and return the decoded JSON body.

        Raises:
            NetworkFailure: On connection errors, non-2xx responses or bad JSON
        """
        base = self.internal_url if internal else self.url
        try:
            response = await self.client.request(method, f"{base}/v3{path}", json=json)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            logger.debug(f"Node returned {e.response.status_code} for {method} {path}")
            raise NetworkFailure(f"{method} {path} failed: {e}") from e
        except httpx.HTTPError as e:
            logger.error(f"Node request failed: {method} {path} - {e}")
            raise NetworkFailure(f"{method} {path} failed: {e}") from e
        except ValueError as e:
            raise NetworkFailure(f"{method} {path} returned invalid JSON: {e}") from e

    @staticmethod
    def _field(data: Any, key: str, path: str) -> Any:
        if not isinstance(data, dict) or key not in data:
            raise NetworkFailure(f"Malformed node response for {path}: missing '{key}'")
        return data[key]

    async def get_status(self) -> dict[str, Any]:
        path = "/status"
        return await self._request("GET", path)

    async def get_current_height(self) -> int:
        path = "/key-blocks/current/height"
        height = int(self._field(await self._request("GET", path), "height", path))
        logger.debug(f"Current key block height: {height}")
        return height

    async def get_top_block(self) -> dict[str, Any]:
        path = "/key-blocks/current"
        data = await self._request("GET", path)
        self._field(data, "height", path)
        return data

    async def get_generation_micro_blocks(self, height: int) -> list[str]:
        path = f"/generations/height/{height}"
        return list(self._field(await self._request("GET", path), "micro_blocks", path))

    async def get_micro_block_transactions(self, micro_block_hash: str) -> list[dict[str, Any]]:
        path = f"/micro-blocks/hash/{micro_block_hash}/transactions"
        return list(self._field(await self._request("GET", path), "transactions", path))

    async def get_micro_block_time(self, micro_block_hash: str) -> int:
        path = f"/micro-blocks/hash/{micro_block_hash}/header"
        return int(self._field(await self._request("GET", path), "time", path))

    async def get_account_balance(self, address: str) -> int:
        path = f"/accounts/{address}"
        return int(self._field(await self._request("GET", path), "balance", path))

    async def build_spend_transaction(self, params: dict[str, Any]) -> str:
        path = "/debug/transactions/spend"
        data = await self._request("POST", path, json=params, internal=True)
        return str(self._field(data, "tx", path))

    async def post_transaction(self, signed_tx: str) -> str:
        path = "/transactions"
        data = await self._request("POST", path, json={"tx": signed_tx})
        tx_hash = str(self._field(data, "tx_hash", path))
        logger.info(f"Broadcast transaction: {tx_hash}")
        return tx_hash

    async def close(self) -> None:
        await self.client.aclose()
