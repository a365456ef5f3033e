"""
Derivation of account-relative operations from chain transactions.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime, timedelta

from aesync.models import Account, Operation, OperationType, RawTransaction

# An IN leg of a self-send is dated one millisecond after its OUT leg.
SELF_SEND_IN_OFFSET = timedelta(milliseconds=1)

_DIRECTION_RANK = {OperationType.OUT: 0, OperationType.IN: 1}


def operation_id(account_id: str, tx_hash: str, op_type: OperationType) -> str:
    return f"{account_id}-{tx_hash}-{op_type.value}"


def chronological_key(op: Operation) -> tuple[datetime, int]:
    """
    Chronological ordering key for operations.

    Ties on date put IN after OUT, so the two legs of a self-send keep a
    stable order even if their dates ever coincide. Other ties are left to
    the caller, which sorts stably to keep chain order.
    """
    return op.date, _DIRECTION_RANK[op.type]


def operation_sort_key(op: Operation) -> tuple[datetime, int, str]:
    """Total ordering key: chronological, then by id."""
    return (*chronological_key(op), op.id)


def tx_to_operations(account: Account, tx: RawTransaction) -> list[Operation]:
    """
    Map one transaction to the operations it causes on ``account``.

    A self-send produces two operations: OUT, then IN.
    """
    address = account.fresh_address
    date = datetime.fromtimestamp(tx.time / 1000, tz=UTC)
    common = {
        "hash": tx.hash,
        "account_id": account.id,
        "fee": tx.fee,
        "block_height": tx.block_height,
        "block_hash": tx.block_hash,
        "senders": [tx.sender_id],
        "recipients": [tx.recipient_id],
    }

    ops: list[Operation] = []
    if tx.sender_id == address:
        ops.append(
            Operation(
                id=operation_id(account.id, tx.hash, OperationType.OUT),
                type=OperationType.OUT,
                value=tx.amount + tx.fee,
                date=date,
                **common,
            )
        )
    if tx.recipient_id == address:
        ops.append(
            Operation(
                id=operation_id(account.id, tx.hash, OperationType.IN),
                type=OperationType.IN,
                value=tx.amount,
                date=date + SELF_SEND_IN_OFFSET,
                **common,
            )
        )
    return ops


def map_to_operations(account: Account, transactions: Iterable[RawTransaction]) -> list[Operation]:
    """
    Derive the operation history of ``account``, newest first.

    ``transactions`` are expected oldest first, as the history fetcher
    returns them. Operations with the same date keep reversed chain order.
    """
    ops = [op for tx in reversed(list(transactions)) for op in tx_to_operations(account, tx)]
    ops.sort(key=chronological_key, reverse=True)
    return ops


def merge_operations(existing: Iterable[Operation], fresh: Iterable[Operation]) -> list[Operation]:
    """
    Union of two operation lists, newest first, one entry per id.

    On id collisions the operation from ``fresh`` wins since it may carry
    newer confirmation data.
    """
    by_id: dict[str, Operation] = {op.id: op for op in existing}
    by_id.update((op.id, op) for op in fresh)
    return sorted(by_id.values(), key=operation_sort_key, reverse=True)


def display_operations(account: Account) -> list[Operation]:
    """Pending and confirmed operations together; confirmed ones shadow pending ones."""
    return merge_operations(account.pending_operations, account.operations)
