"""
Account construction helpers.
"""

from __future__ import annotations

from datetime import UTC, datetime

from aesync.models import Account, Currency


def account_id(currency: Currency, address: str) -> str:
    return f"{currency.id}:{address}"


def account_placeholder_name(currency: Currency, index: int) -> str:
    return f"{currency.name} {index + 1}"


def new_account_placeholder_name(currency: Currency, index: int) -> str:
    return f"New {currency.name} account"


def build_account(
    currency: Currency,
    address: str,
    path: str,
    index: int,
    balance: int = 0,
    block_height: int = 0,
    is_new: bool = False,
) -> Account:
    """Create an account with no operations, named after its derivation index."""
    name = (
        new_account_placeholder_name(currency, index)
        if is_new
        else account_placeholder_name(currency, index)
    )
    return Account(
        id=account_id(currency, address),
        name=name,
        fresh_address=address,
        fresh_address_path=path,
        index=index,
        currency=currency,
        unit=currency.units[0],
        balance=balance,
        block_height=block_height,
        last_sync_date=datetime.now(UTC),
    )
