# Pytest looks here for fixtures
import os
from typing import Callable, Generator, List

import pytest

from walletstore.credential_store import CredentialStore
from walletstore.local_storage import LocalStorage
from walletstore.simple_config import SimpleConfig
from walletstore.storage import WalletStorage

from .util import TEST_ITERATIONS


@pytest.fixture
def local_storage() -> LocalStorage:
    return LocalStorage()


@pytest.fixture
def config() -> SimpleConfig:
    return SimpleConfig({ "hash_iterations": TEST_ITERATIONS })


@pytest.fixture
def wallet_storages() -> Generator[List[WalletStorage], None, None]:
    storages: List[WalletStorage] = []
    yield storages
    for storage in storages:
        storage.close()


@pytest.fixture
def storage_factory(wallet_storages: List[WalletStorage]) -> Callable[[str], WalletStorage]:
    # Shared memory databases are process wide, so every test gets its own namespace.
    unique_prefix = os.urandom(8).hex()

    def _create_storage(wallet_id: str) -> WalletStorage:
        storage = WalletStorage.in_memory(f"{unique_prefix}_{wallet_id}")
        wallet_storages.append(storage)
        return storage
    return _create_storage


@pytest.fixture
def store(local_storage: LocalStorage, config: SimpleConfig,
        storage_factory: Callable[[str], WalletStorage]) -> CredentialStore:
    return CredentialStore(local_storage, config, storage_factory)


@pytest.fixture
def wallet_storage() -> Generator[WalletStorage, None, None]:
    storage = WalletStorage.in_memory()
    yield storage
    storage.close()
