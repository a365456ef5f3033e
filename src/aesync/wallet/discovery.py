"""
Account discovery on a hardware device.

Walks derivation indices from 0, emitting every funded account, and stops
at the first account with neither balance nor history (gap limit of one).
That first empty account is emitted too, as the "new account" slot.
"""

from __future__ import annotations

from collections.abc import AsyncIterator

from loguru import logger

from aesync.chain.client import ChainClient
from aesync.chain.history import HistoryFetcher
from aesync.constants import MAX_ACCOUNT_INDEX
from aesync.device import AddressProvider, DerivationScheme, device_call, get_derivations
from aesync.models import Account, Currency, DerivedAddress
from aesync.settings import AeSyncSettings
from aesync.tasks import CancellationToken
from aesync.wallet.accounts import build_account
from aesync.wallet.operations import map_to_operations


class AccountDiscoverer:
    """Scans a device for accounts with on-chain activity."""

    def __init__(
        self,
        client: ChainClient,
        address_provider: AddressProvider,
        fetcher: HistoryFetcher | None = None,
        derivation: DerivationScheme | None = None,
        max_index: int = MAX_ACCOUNT_INDEX,
    ):
        self.client = client
        self.address_provider = address_provider
        self.fetcher = fetcher or HistoryFetcher(client)
        self.derivation = derivation
        self.max_index = max_index

    async def discover(
        self,
        currency: Currency,
        device_path: str,
        token: CancellationToken | None = None,
    ) -> AsyncIterator[Account]:
        """
        Yield discovered accounts as soon as each one is known.

        Args:
            currency: Currency to scan
            device_path: Transport path of the device
            token: Cancellation flag checked after every network call

        Yields:
            Funded accounts in index order, then at most one empty account
        """
        token = token or CancellationToken()
        derivation = self.derivation or get_derivations(currency)[0]

        for index in range(self.max_index):
            if token.cancelled:
                break
            path = derivation(currency, index)
            derived = await device_call(
                "derive address", self.address_provider.get_address(device_path, path)
            )
            if token.cancelled:
                break

            account, complete = await self._step_address(currency, index, derived, token)
            if account is None or token.cancelled:
                break
            logger.info(
                f"scanning {currency.id} at {path}: {derived.address} has "
                f"{len(account.operations)} operations"
                + (", ALL SCANNED" if complete else "")
            )
            yield account
            if complete:
                break

        if token.cancelled:
            logger.debug(f"Discovery of {currency.id} accounts cancelled")

    async def _step_address(
        self,
        currency: Currency,
        index: int,
        derived: DerivedAddress,
        token: CancellationToken,
    ) -> tuple[Account | None, bool]:
        """Synchronize one candidate address; returns (account, scan_complete)."""
        await self.client.connect()
        if token.cancelled:
            return None, True
        balance = await self.client.get_balance(derived.address)
        if token.cancelled:
            return None, True
        top_block = await self.client.get_top_block()
        if token.cancelled:
            return None, True
        txs = await self.fetcher.get_transactions(derived.address)
        if token.cancelled:
            return None, True

        is_new = balance == 0 and not txs
        account = build_account(
            currency,
            derived.address,
            derived.path,
            index,
            balance=balance,
            block_height=int(top_block["height"]),
            is_new=is_new,
        )
        if is_new:
            return account, True

        account.operations = map_to_operations(account, txs)
        return account, False


def create_discoverer(
    settings: AeSyncSettings, client: ChainClient, address_provider: AddressProvider
) -> AccountDiscoverer:
    """Build a discoverer tuned by the ``[sync]`` settings."""
    return AccountDiscoverer(
        client,
        address_provider,
        fetcher=HistoryFetcher(client, settings.sync.fetch_concurrency),
        max_index=settings.sync.max_account_index,
    )
