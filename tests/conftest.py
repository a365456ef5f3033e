"""
Pytest configuration and fixtures for aesync tests.
"""

from __future__ import annotations

from collections.abc import Generator

import pytest
from _aesync_test_helpers import ALICE, FakeNode

from aesync.chain.client import ChainClient
from aesync.chain.history import HistoryFetcher
from aesync.models import AETERNITY, Account
from aesync.settings import reset_settings
from aesync.wallet.accounts import build_account


@pytest.fixture(autouse=True)
def isolated_settings(
    tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch
) -> Generator[None, None, None]:
    """Point settings at an empty data dir so a user config.toml never leaks in."""
    monkeypatch.setenv("AESYNC_DATA_DIR", str(tmp_path_factory.mktemp("aesync")))
    monkeypatch.delenv("AESYNC_CONFIG_FILE", raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def node() -> FakeNode:
    return FakeNode(tip=10)


@pytest.fixture
def client(node: FakeNode) -> ChainClient:
    return ChainClient(node)


@pytest.fixture
def fetcher(client: ChainClient) -> HistoryFetcher:
    return HistoryFetcher(client)


@pytest.fixture
def alice_account() -> Account:
    return build_account(AETERNITY, ALICE, path="0", index=0)
