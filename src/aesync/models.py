"""
Domain models for accounts, chain transactions and operations.

Amounts are plain ``int`` values in the chain base unit (aettos), which keeps
arithmetic exact at any magnitude.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field

from aesync.constants import MAX_TTL, MIN_FEE


class OperationType(str, Enum):
    IN = "IN"
    OUT = "OUT"


class TransactionState(str, Enum):
    DRAFT = "draft"
    EDITED = "edited"
    VALIDATED = "validated"


class Unit(BaseModel):
    name: str
    code: str
    magnitude: int = Field(..., ge=0)

    model_config = {"frozen": True}


class Currency(BaseModel):
    id: str = Field(..., min_length=1)
    name: str
    ticker: str
    units: list[Unit] = Field(..., min_length=1)

    model_config = {"frozen": True}


AETERNITY = Currency(
    id="aeternity",
    name="Aeternity",
    ticker="AE",
    units=[Unit(name="AE", code="AE", magnitude=18)],
)


class DerivedAddress(BaseModel):
    """Address returned by the device for a derivation path."""

    address: str
    path: str


class RawTransaction(BaseModel):
    """A spend transaction as found on chain, flattened from its block envelope."""

    hash: str
    type: str
    nonce: int = 0
    amount: int = Field(..., ge=0)
    fee: int = Field(..., ge=0)
    time: int  # milliseconds since epoch, from the containing micro block header
    sender_id: str
    recipient_id: str
    block_height: int
    block_hash: str
    payload: str = ""
    ttl: int | None = None

    @classmethod
    def from_node(cls, entry: dict[str, Any], time: int) -> RawTransaction:
        """Build from a node ``{block_height, block_hash, hash, tx: {...}}`` entry."""
        tx = entry.get("tx", {})
        return cls(
            hash=entry["hash"],
            type=tx.get("type", ""),
            nonce=tx.get("nonce", 0),
            amount=tx.get("amount", 0),
            fee=tx.get("fee", 0),
            time=time,
            sender_id=tx.get("sender_id", ""),
            recipient_id=tx.get("recipient_id", ""),
            block_height=entry["block_height"],
            block_hash=entry["block_hash"],
            payload=tx.get("payload", ""),
            ttl=tx.get("ttl"),
        )


class Operation(BaseModel):
    """Account-relative record of value moving in or out."""

    id: str
    hash: str
    type: OperationType
    account_id: str
    value: int
    fee: int
    block_height: int | None = None
    block_hash: str | None = None
    senders: list[str] = Field(default_factory=list)
    recipients: list[str] = Field(default_factory=list)
    date: datetime
    transaction_sequence_number: int | None = None

    @property
    def is_pending(self) -> bool:
        return self.block_height is None

    model_config = {"frozen": False}


class Account(BaseModel):
    id: str
    name: str
    xpub: str = ""
    fresh_address: str
    fresh_address_path: str
    index: int = Field(..., ge=0)
    currency: Currency
    unit: Unit
    balance: int = 0
    block_height: int = 0
    operations: list[Operation] = Field(default_factory=list)  # newest first
    pending_operations: list[Operation] = Field(default_factory=list)
    last_sync_date: datetime = Field(default_factory=lambda: datetime.now(UTC))

    model_config = {"frozen": False}


class SpendDraft(BaseModel):
    """An outgoing spend being edited before signing."""

    sender_id: str
    recipient_id: str = ""
    amount: int = Field(default=0, ge=0)
    fee: int = Field(default=MIN_FEE, ge=0)
    payload: str = ""
    ttl: int = MAX_TTL
    state: TransactionState = TransactionState.DRAFT

    def to_node_params(self) -> dict[str, Any]:
        return {
            "sender_id": self.sender_id,
            "recipient_id": self.recipient_id,
            "amount": self.amount,
            "fee": self.fee,
            "payload": self.payload,
            "ttl": self.ttl,
        }


class SignedEvent(BaseModel):
    type: Literal["signed"] = "signed"


class BroadcastedEvent(BaseModel):
    type: Literal["broadcasted"] = "broadcasted"
    operation: Operation


LifecycleEvent = SignedEvent | BroadcastedEvent
