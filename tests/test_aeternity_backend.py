"""
Tests for the Aeternity node HTTP backend.
"""

from __future__ import annotations

import json
from collections.abc import Callable

import httpx
import pytest

from aesync.backends.aeternity import AeternityNodeBackend
from aesync.errors import NetworkFailure

Handler = Callable[[httpx.Request], httpx.Response]


def make_backend(handler: Handler, internal_url: str | None = None) -> AeternityNodeBackend:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return AeternityNodeBackend("https://node.test/", internal_url=internal_url, client=client)


def route(responses: dict[str, object], seen: list[str] | None = None) -> Handler:
    def handler(request: httpx.Request) -> httpx.Response:
        key = f"{request.method} {request.url}"
        if seen is not None:
            seen.append(key)
        if key not in responses:
            return httpx.Response(404, json={"reason": "Not found"})
        return httpx.Response(200, json=responses[key])

    return handler


class TestQueries:
    @pytest.mark.asyncio
    async def test_current_height(self) -> None:
        seen: list[str] = []
        backend = make_backend(
            route({"GET https://node.test/v3/key-blocks/current/height": {"height": 812}}, seen)
        )

        assert await backend.get_current_height() == 812
        assert seen == ["GET https://node.test/v3/key-blocks/current/height"]

    @pytest.mark.asyncio
    async def test_generation_and_micro_blocks(self) -> None:
        backend = make_backend(
            route(
                {
                    "GET https://node.test/v3/generations/height/5": {
                        "key_block": {"height": 5},
                        "micro_blocks": ["mh_a", "mh_b"],
                    },
                    "GET https://node.test/v3/micro-blocks/hash/mh_a/transactions": {
                        "transactions": [{"hash": "th_1"}]
                    },
                    "GET https://node.test/v3/micro-blocks/hash/mh_a/header": {
                        "hash": "mh_a",
                        "time": 1_600_000_000_000,
                    },
                }
            )
        )

        assert await backend.get_generation_micro_blocks(5) == ["mh_a", "mh_b"]
        assert await backend.get_micro_block_transactions("mh_a") == [{"hash": "th_1"}]
        assert await backend.get_micro_block_time("mh_a") == 1_600_000_000_000

    @pytest.mark.asyncio
    async def test_balance_and_top_block(self) -> None:
        backend = make_backend(
            route(
                {
                    "GET https://node.test/v3/accounts/ak_alice": {"id": "ak_alice", "balance": 7},
                    "GET https://node.test/v3/key-blocks/current": {"height": 9, "hash": "kh_9"},
                }
            )
        )

        assert await backend.get_account_balance("ak_alice") == 7
        assert (await backend.get_top_block())["hash"] == "kh_9"

    @pytest.mark.asyncio
    async def test_not_found_is_network_failure(self) -> None:
        backend = make_backend(route({}))

        with pytest.raises(NetworkFailure):
            await backend.get_account_balance("ak_unknown")

    @pytest.mark.asyncio
    async def test_missing_field_is_network_failure(self) -> None:
        backend = make_backend(
            route({"GET https://node.test/v3/key-blocks/current/height": {"unexpected": 1}})
        )

        with pytest.raises(NetworkFailure, match="height"):
            await backend.get_current_height()

    @pytest.mark.asyncio
    async def test_invalid_json_is_network_failure(self) -> None:
        backend = make_backend(lambda request: httpx.Response(200, content=b"<html>"))

        with pytest.raises(NetworkFailure):
            await backend.get_status()

    @pytest.mark.asyncio
    async def test_connection_error_is_network_failure(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        backend = make_backend(handler)

        with pytest.raises(NetworkFailure):
            await backend.get_current_height()


class TestTransactions:
    @pytest.mark.asyncio
    async def test_build_uses_internal_api(self) -> None:
        bodies: list[dict[str, object]] = []

        def handler(request: httpx.Request) -> httpx.Response:
            assert str(request.url) == "https://internal.test/v3/debug/transactions/spend"
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json={"tx": "tx_unsigned"})

        backend = make_backend(handler, internal_url="https://internal.test")
        params = {"sender_id": "ak_alice", "recipient_id": "ak_bob", "amount": 1, "fee": 1}

        assert await backend.build_spend_transaction(params) == "tx_unsigned"
        assert bodies == [params]

    @pytest.mark.asyncio
    async def test_build_defaults_to_public_url(self) -> None:
        seen: list[str] = []
        backend = make_backend(
            route({"POST https://node.test/v3/debug/transactions/spend": {"tx": "tx_u"}}, seen)
        )

        assert await backend.build_spend_transaction({}) == "tx_u"
        assert seen == ["POST https://node.test/v3/debug/transactions/spend"]

    @pytest.mark.asyncio
    async def test_post_transaction(self) -> None:
        bodies: list[dict[str, object]] = []

        def handler(request: httpx.Request) -> httpx.Response:
            assert str(request.url) == "https://node.test/v3/transactions"
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json={"tx_hash": "th_sent"})

        backend = make_backend(handler)

        assert await backend.post_transaction("tx_signed") == "th_sent"
        assert bodies == [{"tx": "tx_signed"}]

    @pytest.mark.asyncio
    async def test_rejected_transaction_is_network_failure(self) -> None:
        backend = make_backend(
            lambda request: httpx.Response(400, json={"reason": "Invalid tx"})
        )

        with pytest.raises(NetworkFailure):
            await backend.post_transaction("tx_bad")

    @pytest.mark.asyncio
    async def test_close(self) -> None:
        backend = make_backend(route({}))

        await backend.close()

        assert backend.client.is_closed
