"""
Tests for account synchronization.
"""

from __future__ import annotations

from datetime import UTC, datetime

import pytest
from _aesync_test_helpers import ALICE, BOB, CAROL, FakeNode

from aesync.chain.client import ChainClient
from aesync.errors import NetworkFailure
from aesync.models import Account, Operation, OperationType
from aesync.tasks import CancellationToken
from aesync.wallet.operations import operation_id
from aesync.settings import AeSyncSettings
from aesync.wallet.sync import Synchronizer, create_synchronizer, final_operations
from aesync.wallet.transaction import add_pending_operation


def pending_op(account: Account, tx_hash: str, sequence: int = 0) -> Operation:
    return Operation(
        id=operation_id(account.id, tx_hash, OperationType.OUT),
        hash=tx_hash,
        type=OperationType.OUT,
        account_id=account.id,
        value=120,
        fee=20,
        senders=[account.fresh_address],
        recipients=[BOB],
        date=datetime.now(UTC),
        transaction_sequence_number=sequence,
    )


class TestResync:
    @pytest.mark.asyncio
    async def test_matches_fresh_full_fetch(self, alice_account: Account) -> None:
        node = FakeNode(tip=160)
        node.add_spend(100, "th_100", BOB, ALICE, 5000)
        node.add_spend(150, "th_150", ALICE, CAROL, 1000, fee=20)
        node.balances[ALICE] = 3980
        synchronizer = Synchronizer(ChainClient(node))

        at_160 = await synchronizer.resync(alice_account)
        node.tip = 161
        node.add_spend(161, "th_161", CAROL, ALICE, 7)
        node.balances[ALICE] = 3987
        at_161 = await synchronizer.resync(at_160)

        fresh = await Synchronizer(ChainClient(node)).resync(alice_account)
        assert at_161.block_height == 161
        assert at_161.balance == 3987
        assert [op.id for op in at_161.operations] == [op.id for op in fresh.operations]
        assert [op.hash for op in at_161.operations] == ["th_161", "th_150", "th_100"]
        assert len({op.id for op in at_161.operations}) == len(at_161.operations)

    @pytest.mark.asyncio
    async def test_operation_at_reorg_boundary_is_recomputed_identically(
        self, alice_account: Account
    ) -> None:
        node = FakeNode(tip=100)
        node.add_spend(20, "th_20", BOB, ALICE, 5000)
        synchronizer = Synchronizer(ChainClient(node))

        before = await synchronizer.resync(alice_account)
        node.tip = 101
        after = await synchronizer.resync(before)

        assert after.operations == before.operations

    @pytest.mark.asyncio
    async def test_updates_height_balance_and_sync_date(
        self, client: ChainClient, node: FakeNode, alice_account: Account
    ) -> None:
        node.balances[ALICE] = 42
        previous_sync = alice_account.last_sync_date

        account = await Synchronizer(client).resync(alice_account)

        assert account.block_height == node.tip
        assert account.balance == 42
        assert account.last_sync_date >= previous_sync

    @pytest.mark.asyncio
    async def test_unknown_account_has_zero_balance(
        self, client: ChainClient, alice_account: Account
    ) -> None:
        account = await Synchronizer(client).resync(alice_account)

        assert account.balance == 0
        assert account.operations == []

    @pytest.mark.asyncio
    async def test_operations_vanished_from_chain_are_dropped(
        self, client: ChainClient, node: FakeNode, alice_account: Account
    ) -> None:
        ghost = pending_op(alice_account, "th_ghost").model_copy(
            update={"block_height": 1, "block_hash": "mh_1", "transaction_sequence_number": None}
        )
        stale = alice_account.model_copy(update={"operations": [ghost], "block_height": 5})

        account = await Synchronizer(client, reorg_threshold=2).resync(stale)

        assert account.operations == []

    @pytest.mark.asyncio
    async def test_network_failure_propagates(
        self, client: ChainClient, node: FakeNode, alice_account: Account
    ) -> None:
        node.fail_heights.add(3)

        with pytest.raises(NetworkFailure):
            await Synchronizer(client).resync(alice_account)

    @pytest.mark.asyncio
    async def test_same_block_spends_listed_in_reverse_chain_order(
        self, client: ChainClient, node: FakeNode, alice_account: Account
    ) -> None:
        node.add_spend(5, "th_b", ALICE, BOB, 100)
        node.add_spend(5, "th_a", ALICE, CAROL, 100)

        account = await Synchronizer(client).resync(alice_account)

        assert [op.hash for op in account.operations] == ["th_a", "th_b"]


class TestPendingOperations:
    @pytest.mark.asyncio
    async def test_confirmed_pending_operation_is_retired(
        self, client: ChainClient, node: FakeNode, alice_account: Account
    ) -> None:
        node.add_spend(9, "th_sent", ALICE, BOB, 100)
        account = add_pending_operation(alice_account, pending_op(alice_account, "th_sent"))

        synced = await Synchronizer(client).resync(account)

        assert synced.pending_operations == []
        assert synced.operations[0].id == pending_op(alice_account, "th_sent").id
        assert synced.operations[0].block_height == 9

    @pytest.mark.asyncio
    async def test_unconfirmed_pending_operation_is_kept(
        self, client: ChainClient, alice_account: Account
    ) -> None:
        account = add_pending_operation(alice_account, pending_op(alice_account, "th_waiting"))

        synced = await Synchronizer(client).resync(account)

        assert [op.hash for op in synced.pending_operations] == ["th_waiting"]

    @pytest.mark.asyncio
    async def test_patch_applies_to_latest_account_state(
        self, client: ChainClient, alice_account: Account
    ) -> None:
        patches = [p async for p in Synchronizer(client).synchronize(alice_account)]
        # A spend is broadcast while the sync was in flight
        latest = add_pending_operation(alice_account, pending_op(alice_account, "th_new"))

        synced = patches[0](latest)

        assert len(patches) == 1
        assert [op.hash for op in synced.pending_operations] == ["th_new"]


class TestSyncCancellation:
    @pytest.mark.asyncio
    async def test_cancelled_before_start(
        self, client: ChainClient, node: FakeNode, alice_account: Account
    ) -> None:
        token = CancellationToken()
        token.cancel()

        patches = [p async for p in Synchronizer(client).synchronize(alice_account, token)]

        assert patches == []
        assert node.calls["get_current_height"] == 0

    @pytest.mark.asyncio
    async def test_cancelled_mid_flight_discards_results(self, alice_account: Account) -> None:
        token = CancellationToken()

        class CancellingNode(FakeNode):
            async def get_current_height(self) -> int:
                height = await super().get_current_height()
                token.cancel()
                return height

        node = CancellingNode(tip=10)
        synchronizer = Synchronizer(ChainClient(node))

        patches = [p async for p in synchronizer.synchronize(alice_account, token)]
        unchanged = await synchronizer.resync(alice_account, token)

        assert patches == []
        assert unchanged is alice_account
        assert node.calls["get_generation_micro_blocks"] == 0
        assert node.calls["get_account_balance"] == 0


def test_final_operations_threshold(alice_account: Account) -> None:
    ops = [
        pending_op(alice_account, f"th_{height}").model_copy(update={"block_height": height})
        for height in (10, 20, 21)
    ]
    ops.append(pending_op(alice_account, "th_pending"))

    final = final_operations(ops, current_height=100, threshold=80)

    assert [op.hash for op in final] == ["th_10"]


def test_create_synchronizer_uses_sync_settings(client: ChainClient) -> None:
    settings = AeSyncSettings(sync={"reorg_threshold": 12, "fetch_concurrency": 4})

    synchronizer = create_synchronizer(settings, client)

    assert synchronizer.client is client
    assert synchronizer.reorg_threshold == 12
    assert synchronizer.fetcher.concurrency == 4
