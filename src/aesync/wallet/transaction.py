"""
Outgoing spend lifecycle: draft, edit, validate, sign, broadcast.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from datetime import UTC, datetime

import base58
from loguru import logger

from aesync.chain.client import ChainClient
from aesync.constants import DEFAULT_SEQUENCE_NUMBER
from aesync.device import TransactionSigner, device_call
from aesync.errors import InsufficientBalance, OperationNotImplemented
from aesync.models import (
    Account,
    BroadcastedEvent,
    LifecycleEvent,
    Operation,
    OperationType,
    SignedEvent,
    SpendDraft,
    TransactionState,
)
from aesync.tasks import CancellationToken
from aesync.wallet.operations import operation_id

ACCOUNT_PREFIX = "ak_"
PUBLIC_KEY_LENGTH = 32


def is_recipient_valid(recipient: str) -> bool:
    """Check that ``recipient`` is an ``ak_`` address wrapping a 32-byte public key."""
    if not recipient.startswith(ACCOUNT_PREFIX):
        return False
    try:
        return len(base58.b58decode_check(recipient[len(ACCOUNT_PREFIX) :])) == PUBLIC_KEY_LENGTH
    except ValueError:
        return False


class TransactionController:
    """
    Builds and sends spends for an account.

    Drafts are immutable values; every edit returns a new draft.
    """

    def __init__(self, client: ChainClient, signer: TransactionSigner):
        self.client = client
        self.signer = signer

    def create(self, account: Account) -> SpendDraft:
        return SpendDraft(sender_id=account.fresh_address)

    def edit_amount(self, account: Account, tx: SpendDraft, amount: int) -> SpendDraft:
        return tx.model_copy(update={"amount": int(amount), "state": TransactionState.EDITED})

    def edit_recipient(self, account: Account, tx: SpendDraft, recipient: str) -> SpendDraft:
        return tx.model_copy(update={"recipient_id": recipient, "state": TransactionState.EDITED})

    def get_transaction_amount(self, account: Account, tx: SpendDraft) -> int:
        return tx.amount

    def get_transaction_recipient(self, account: Account, tx: SpendDraft) -> str:
        return tx.recipient_id

    def get_recipient_warning(self, account: Account, recipient: str) -> str | None:
        return None

    def is_recipient_valid(self, recipient: str) -> bool:
        return is_recipient_valid(recipient)

    def get_total_spent(self, account: Account, tx: SpendDraft) -> int:
        return tx.amount + tx.fee

    def get_max_amount(self, account: Account, tx: SpendDraft) -> int:
        return account.balance - tx.fee

    def validate(self, account: Account, tx: SpendDraft) -> SpendDraft:
        """
        Check the account can pay for ``tx``, fee included.

        Raises:
            ValueError: If the amount or fee is negative
            InsufficientBalance: If amount + fee exceeds the balance
        """
        if tx.amount < 0 or tx.fee < 0:
            raise ValueError(f"Amount and fee must not be negative: {tx.amount}, {tx.fee}")
        total = self.get_total_spent(account, tx)
        if total > account.balance:
            raise InsufficientBalance(required=total, available=account.balance)
        return tx.model_copy(update={"state": TransactionState.VALIDATED})

    async def pull_more_operations(self, account: Account) -> Account:
        raise OperationNotImplemented("Incremental operation pagination is not supported")

    async def sign_and_broadcast(
        self,
        account: Account,
        tx: SpendDraft,
        device_path: str,
        token: CancellationToken | None = None,
    ) -> AsyncIterator[LifecycleEvent]:
        """
        Sign ``tx`` on the device and broadcast it.

        Yields ``SignedEvent`` once the device has signed, then a
        ``BroadcastedEvent`` carrying the pending operation.
        """
        token = token or CancellationToken()

        await self.client.connect()
        if token.cancelled:
            return
        unsigned_tx = await self.client.build_spend_transaction(tx)
        if token.cancelled:
            return
        signed_tx = await device_call(
            "sign transaction",
            self.signer.sign_transaction(device_path, account.fresh_address_path, unsigned_tx),
        )
        if token.cancelled:
            return

        yield SignedEvent()
        if token.cancelled:
            return
        tx_hash = await self.client.broadcast(signed_tx)
        if token.cancelled:
            logger.debug(f"Broadcast of {tx_hash} completed after cancellation")
            return

        yield BroadcastedEvent(operation=self._pending_operation(account, tx, tx_hash))

    @staticmethod
    def _pending_operation(account: Account, tx: SpendDraft, tx_hash: str) -> Operation:
        return Operation(
            id=operation_id(account.id, tx_hash, OperationType.OUT),
            hash=tx_hash,
            type=OperationType.OUT,
            account_id=account.id,
            value=tx.amount + tx.fee,
            fee=tx.fee,
            block_height=None,
            block_hash=None,
            senders=[account.fresh_address],
            recipients=[tx.recipient_id],
            date=datetime.now(UTC),
            transaction_sequence_number=DEFAULT_SEQUENCE_NUMBER,
        )


def add_pending_operation(account: Account, operation: Operation) -> Account:
    """
    Add a pending operation, replacing any other pending operation with the
    same transaction sequence number.
    """
    others = [
        op
        for op in account.pending_operations
        if op.transaction_sequence_number != operation.transaction_sequence_number
    ]
    return account.model_copy(update={"pending_operations": [operation, *others]})
