"""
Contracts for the hardware device and derivation collaborators.

The transport layer lives outside aesync; anything matching these
protocols can be plugged into discovery and signing.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Protocol, TypeVar

from aesync.errors import AeSyncError, DeviceCommunicationFailure
from aesync.models import Currency, DerivedAddress

T = TypeVar("T")

DerivationScheme = Callable[[Currency, int], str]


class AddressProvider(Protocol):
    """Derives the address at ``path`` on the device at ``device_path``."""

    async def get_address(self, device_path: str, path: str) -> DerivedAddress: ...


class TransactionSigner(Protocol):
    """Signs an encoded unsigned transaction and returns the encoded signed one."""

    async def sign_transaction(self, device_path: str, path: str, unsigned_tx: str) -> str: ...


def aeternity_derivation(currency: Currency, index: int) -> str:
    """The Aeternity device app addresses accounts by their bare index."""
    return str(index)


def get_derivations(currency: Currency) -> list[DerivationScheme]:
    """Derivation schemes for ``currency``, preferred first."""
    return [aeternity_derivation]


async def device_call(action: str, awaitable: Awaitable[T]) -> T:
    """Await a device request, reporting transport errors as ``DeviceCommunicationFailure``."""
    try:
        return await awaitable
    except AeSyncError:
        raise
    except Exception as e:
        raise DeviceCommunicationFailure(f"Device failed to {action}: {e}") from e
