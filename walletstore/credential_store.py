# walletstore - local wallet credential storage
# Copyright (C) 2019-2020 The ElectrumSV Developers
#
# Permission is hereby granted, free of charge, to any person
# obtaining a copy of this software and associated documentation files
# (the "Software"), to deal in the Software without restriction,
# including without limitation the rights to use, copy, modify, merge,
# publish, distribute, sublicense, and/or sell copies of the Software,
# and to permit persons to whom the Software is furnished to do so,
# subject to the following conditions:
#
# The above copyright notice and this permission notice shall be
# included in all copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND,
# EXPRESS OR IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF
# MERCHANTABILITY, FITNESS FOR A PARTICULAR PURPOSE AND
# NONINFRINGEMENT. IN NO EVENT SHALL THE AUTHORS OR COPYRIGHT HOLDERS
# BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER LIABILITY, WHETHER IN AN
# ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM, OUT OF OR IN
# CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.

'''
The wallet credential store.

This owns the flat settings of the installation and the session handle to the structured
storage of the loaded wallet. It initialises wallets, migrates installations from the
legacy flat layout into the versioned access data layout, and verifies PINs against
whichever layout is on disk.
'''

from typing import Any, Callable, Dict, List, Optional, Tuple, cast

from .access_data import (generate_access_data_from_seed, generate_access_data_from_xpub,
    get_wallet_id_from_xpub)
from .constants import (AccessDataKind, CLOSED_KEY, FAILED_TOKENS_KEY, HASH_ITERATIONS,
    IS_BACKUP_DONE_KEY, IS_HARDWARE_KEY, LEDGER_APP_VERSION_KEY, LEGACY_ACCESS_DATA_KEY,
    LEGACY_BACKUP_KEY, LEGACY_TOKENS_KEY, LEGACY_WALLET_PREFIX, LOCKED_KEY, NETWORK_KEY,
    Pbkdf2Hasher, SERVER_KEY, SETTINGS_KEYS, STARTED_KEY, STORE_VERSION_KEY,
    TOKEN_SIGNATURES_KEY, WALLET_ID_KEY, WALLET_VERSION_KEY, WalletFlag, WalletType,
    WS_SERVER_KEY)
from .crypto import check_password, decrypt_data, encrypt_data, pw_decode
from .exceptions import (InvalidPassword, StorageMigrationError, UnknownNetworkError,
    WalletNotLoadedError)
from .i18n import _
from .local_storage import LocalStorage
from .logs import logs
from .networks import network_from_name, NetworkType
from .simple_config import SimpleConfig
from .storage import WalletStorage
from .types import (AccessData, AvailableAccessData, EncryptedData, LegacyAccessData,
    MigrationResult, TokenMigrationFailure, TokenSignatures)
from .version import PACKAGE_VERSION, STORAGE_VERSION


logger = logs.get_logger("credential-store")

StorageFactory = Callable[[str], WalletStorage]

LEGACY_REQUIRED_FIELDS = ("xpubkey", "words", "mainKey", "hash", "salt")


def legacy_main_key_record(legacy_data: LegacyAccessData) -> EncryptedData:
    '''
    The legacy layout keeps one PIN record beside a bare main key ciphertext. This gives it
    the shape of an encrypted secret.
    '''
    return {
        "data": legacy_data["mainKey"],
        "hash": legacy_data["hash"],
        "salt": legacy_data["salt"],
        "iterations": legacy_data.get("hashIterations") or HASH_ITERATIONS,
        "pbkdf2Hasher": legacy_data.get("pbkdf2Hasher") or Pbkdf2Hasher.SHA1.value,
    }


def legacy_words_record(legacy_data: LegacyAccessData) -> EncryptedData:
    return {
        "data": legacy_data["words"],
        "hash": legacy_data.get("hashPasswd", ""),
        "salt": legacy_data.get("saltPasswd", ""),
        "iterations": legacy_data.get("hashIterations") or HASH_ITERATIONS,
        "pbkdf2Hasher": legacy_data.get("pbkdf2Hasher") or Pbkdf2Hasher.SHA1.value,
    }


class CredentialStore:
    """
    There is a single owner of a credential store in a process, and callers are expected to
    serialise initialisation, migration and PIN checks. Flat settings are read and written
    synchronously, anything touching the wallet storage is awaited.
    """

    def __init__(self, local_storage: Optional[LocalStorage]=None,
            config: Optional[SimpleConfig]=None,
            storage_factory: Optional[StorageFactory]=None) -> None:
        self._config = config if config is not None else SimpleConfig()

        if local_storage is None:
            local_storage_path = self._config.get_local_storage_path()
            if local_storage_path is not None:
                local_storage = LocalStorage.from_path(local_storage_path)
            else:
                local_storage = LocalStorage()
        self._local_storage = local_storage

        self._storage_factory: StorageFactory = storage_factory \
            if storage_factory is not None else self._create_wallet_storage
        self._storage: Optional[WalletStorage] = None
        # Shared memory databases only live as long as a handle to them is open.
        self._memory_storages: Dict[str, WalletStorage] = {}
        self._network = self._resolve_session_network()

    @property
    def local_storage(self) -> LocalStorage:
        return self._local_storage

    def _resolve_session_network(self) -> NetworkType:
        network_name = self._local_storage.get_item(NETWORK_KEY)
        if network_name is not None:
            try:
                return network_from_name(network_name)
            except UnknownNetworkError:
                logger.warning("ignoring unknown stored network '%s'", network_name)
        return network_from_name(self._config.get_network_name())

    def _create_wallet_storage(self, wallet_id: str) -> WalletStorage:
        wallet_directory = self._config.get_wallet_directory_path()
        if wallet_directory is None:
            storage = self._memory_storages.get(wallet_id)
            if storage is None or storage.is_closed():
                storage = WalletStorage.in_memory(wallet_id)
                self._memory_storages[wallet_id] = storage
            return storage
        return WalletStorage.for_wallet(wallet_directory, wallet_id)

    def _release_storage(self, storage: WalletStorage) -> None:
        if not any(storage is value for value in self._memory_storages.values()):
            storage.close()

    def _drop_storage(self) -> None:
        if self._storage is not None:
            self._release_storage(self._storage)
            self._storage = None

    def close_wallet_storages(self) -> None:
        """
        Close the session storage and every in-memory wallet storage this store holds.

        The data of in-memory wallets is discarded. Dropping the session storage in any
        other way leaves it in place for when the wallet is selected again.
        """
        self._drop_storage()
        for storage in self._memory_storages.values():
            storage.close()
        self._memory_storages.clear()

    # Wallet identity.

    def get_wallet_id(self) -> Optional[str]:
        return self._local_storage.get_item(WALLET_ID_KEY)

    def set_wallet_id(self, wallet_id: str) -> None:
        self._local_storage.set_item(WALLET_ID_KEY, wallet_id)

    def is_loaded_sync(self) -> bool:
        """
        Whether a wallet is loaded, answered without opening the wallet storage.

        The legacy access data is also checked so that a wallet that has not been migrated
        yet can be started and migrated.
        """
        return bool(self.get_wallet_id()) or \
            bool(self._local_storage.get_item(LEGACY_ACCESS_DATA_KEY))

    async def is_loaded(self) -> bool:
        return await self.get_available_access_data() is not None

    def clean_wallet(self) -> None:
        self._local_storage.remove_items([ WALLET_ID_KEY, IS_HARDWARE_KEY, CLOSED_KEY ])
        self._drop_storage()

    def reset_storage(self) -> None:
        self.clean_wallet()
        self._local_storage.remove_items(SETTINGS_KEYS)
        self._network = self._resolve_session_network()

    # Initialisation.

    async def _activate_storage(self, access_data: AccessData, is_hardware: bool) \
            -> WalletStorage:
        # The wallet id is only written once its access data is in place, a failure before
        # then leaves the flat settings as they were.
        wallet_id = get_wallet_id_from_xpub(access_data["xpubkey"])
        self._drop_storage()
        storage = self._storage_factory(wallet_id)
        try:
            await storage.save_access_data(access_data)
        except Exception:
            self._release_storage(storage)
            raise
        self._storage = storage
        self.set_wallet_id(wallet_id)
        self.set_hardware_wallet(is_hardware)
        return storage

    async def init_storage(self, seed: str, password: str, pin: str, passphrase: str='') \
            -> WalletStorage:
        access_data = generate_access_data_from_seed(seed, pin, password, self._network,
            passphrase, iterations=self._config.get_hash_iterations())
        storage = await self._activate_storage(access_data, False)
        self.update_storage_version()
        logger.info("initialised %s wallet storage", self._network.NAME)
        return storage

    async def init_hw_storage(self, xpub: str) -> WalletStorage:
        access_data = generate_access_data_from_xpub(xpub, self._network, hardware=True)
        storage = await self._activate_storage(access_data, True)
        self.update_storage_version()
        logger.info("initialised %s hardware wallet storage", self._network.NAME)
        return storage

    def get_storage(self) -> Optional[WalletStorage]:
        """
        Get the wallet storage of the loaded wallet, opening it on first use in the session.
        """
        if self._storage is None:
            wallet_id = self.get_wallet_id()
            if not wallet_id:
                return None
            self._storage = self._storage_factory(wallet_id)
        return self._storage

    # Access data.

    def _get_legacy_access_data(self) -> Optional[LegacyAccessData]:
        legacy_data = self._local_storage.get_item(LEGACY_ACCESS_DATA_KEY)
        if not legacy_data:
            return None
        if not isinstance(legacy_data, dict):
            raise StorageMigrationError("legacy access data is not a mapping")
        for field_name in LEGACY_REQUIRED_FIELDS:
            if not legacy_data.get(field_name):
                raise StorageMigrationError(f"legacy access data has no '{field_name}'")
        return cast(LegacyAccessData, legacy_data)

    async def _get_access_data(self) -> Optional[AccessData]:
        storage = self.get_storage()
        if storage is None:
            return None
        return await storage.get_access_data()

    async def get_available_access_data(self) -> Optional[AvailableAccessData]:
        """
        Load the access data from the legacy layout if it is still present, otherwise from the
        wallet storage. `None` if there is neither.
        """
        legacy_data = self._get_legacy_access_data()
        if legacy_data is not None:
            return AvailableAccessData(AccessDataKind.LEGACY, legacy_data)
        access_data = await self._get_access_data()
        if access_data is None:
            return None
        return AvailableAccessData(AccessDataKind.CURRENT, access_data)

    async def check_pin(self, pin: str) -> bool:
        available = await self.get_available_access_data()
        if available is None:
            raise WalletNotLoadedError(_("Cannot check the PIN of an uninitialized wallet"))

        if available.kind == AccessDataKind.LEGACY:
            record = legacy_main_key_record(cast(LegacyAccessData, available.data))
        else:
            access_data = cast(AccessData, available.data)
            main_key = access_data.get("mainKey")
            if main_key is None:
                # Hardware wallets have no locally held key to protect with a PIN.
                return False
            record = main_key
        return check_password(record, pin)

    def get_old_wallet_words(self, password: str) -> Optional[str]:
        legacy_data = self._get_legacy_access_data()
        if legacy_data is None:
            return None
        return pw_decode(legacy_data["words"], password)

    async def get_wallet_words(self, password: str) -> Optional[str]:
        storage = self.get_storage()
        if storage is None:
            raise WalletNotLoadedError(_("Cannot get words from uninitialized wallet"))

        access_data = await storage.get_access_data()
        if access_data is None:
            raise WalletNotLoadedError(_("Cannot get words from uninitialized wallet"))
        words = access_data.get("words")
        if words is None:
            return None
        return decrypt_data(words, password)

    # Storage version.

    def get_storage_version(self) -> Optional[int]:
        version = self._local_storage.get_item(STORE_VERSION_KEY)
        if version is None:
            return None
        return int(version)

    def update_storage_version(self) -> None:
        version = self.get_storage_version()
        if version is not None and version > STORAGE_VERSION:
            logger.warning("storage version %d is newer than ours %d, leaving it", version,
                STORAGE_VERSION)
            return
        self._local_storage.set_item(STORE_VERSION_KEY, STORAGE_VERSION)

    # Migration.

    def migrate_access_data(self, pin: str) -> AccessData:
        """
        Convert the legacy access data to the current layout.

        The PIN is verified and the PIN encrypted auxiliary keys are decoded before anything
        is returned, so a wrong PIN raises `InvalidPassword` and the caller writes nothing.
        """
        legacy_data = self._get_legacy_access_data()
        if legacy_data is None:
            raise StorageMigrationError("no legacy access data to migrate")

        main_key = legacy_main_key_record(legacy_data)
        if not check_password(main_key, pin):
            raise InvalidPassword()

        access_data: AccessData = {
            "walletType": WalletType.P2PKH.value,
            "walletFlags": int(WalletFlag.NONE),
            "xpubkey": legacy_data["xpubkey"],
            "mainKey": main_key,
            "words": legacy_words_record(legacy_data),
        }

        iterations = self._config.get_hash_iterations()
        acct_path_key = legacy_data.get("acctPathMainKey")
        if acct_path_key:
            access_data["acctPathKey"] = encrypt_data(pw_decode(acct_path_key, pin), pin,
                iterations=iterations)
        auth_key = legacy_data.get("authKey")
        if auth_key:
            access_data["authKey"] = encrypt_data(pw_decode(auth_key, pin), pin,
                iterations=iterations)
        return access_data

    async def handle_migration_old_registered_tokens(self, storage: WalletStorage) \
            -> Tuple[int, List[TokenMigrationFailure]]:
        """
        Register the tokens from the legacy token list with the wallet storage.

        A token that cannot be registered does not stop the others. It is logged, reported
        in the result and kept aside under its own settings key so that it survives the
        removal of the legacy keys.
        """
        old_tokens = self._local_storage.get_item(LEGACY_TOKENS_KEY)
        if not old_tokens:
            return 0, []

        failures: List[TokenMigrationFailure] = []
        if not isinstance(old_tokens, list):
            failures.append(TokenMigrationFailure(old_tokens, "legacy token list is not a list"))
            old_tokens = []

        migrated_count = 0
        for token in old_tokens:
            try:
                await storage.register_token(token)
            except ValueError as e:
                logger.error("failed to migrate legacy token %r: %s", token, e)
                failures.append(TokenMigrationFailure(token, str(e)))
            else:
                migrated_count += 1

        if failures:
            self._local_storage.set_item(FAILED_TOKENS_KEY,
                [ failure.token for failure in failures ])
        logger.info("migrated %d legacy tokens, %d failed", migrated_count, len(failures))
        return migrated_count, failures

    def _remove_legacy_keys(self) -> None:
        legacy_keys = [ key for key in self._local_storage.keys()
            if key.startswith(LEGACY_WALLET_PREFIX) and key != WALLET_ID_KEY ]
        self._local_storage.remove_items(legacy_keys)

    async def handle_data_migration(self, pin: str) -> MigrationResult:
        """
        Migrate an installation that predates the versioned storage layout.

        This is called on every unlock. Once the storage version is present it only stamps
        the current version.
        """
        if self.get_storage_version() is not None:
            self.update_storage_version()
            return MigrationResult(False, self.get_wallet_id(), 0, [])

        if self._get_legacy_access_data() is None:
            logger.debug("no legacy access data present")
            self.update_storage_version()
            return MigrationResult(False, self.get_wallet_id(), 0, [])

        logger.info("migrating legacy access data")
        access_data = self.migrate_access_data(pin)
        storage = await self._activate_storage(access_data, False)

        migrated_count, failures = await self.handle_migration_old_registered_tokens(storage)
        if self._local_storage.get_item(LEGACY_BACKUP_KEY):
            self.mark_backup_done()

        # The access data is in the wallet storage, the legacy data can go.
        self._remove_legacy_keys()
        self.update_storage_version()
        return MigrationResult(True, self.get_wallet_id(), migrated_count, failures)

    # Settings.

    def lock(self) -> None:
        self._local_storage.set_item(LOCKED_KEY, True)

    def unlock(self) -> None:
        self._local_storage.set_item(LOCKED_KEY, False)

    def is_locked(self) -> bool:
        value = self._local_storage.get_item(LOCKED_KEY)
        return True if value is None else bool(value)

    def close(self) -> None:
        self._local_storage.set_item(CLOSED_KEY, True)

    def open(self) -> None:
        self._local_storage.set_item(CLOSED_KEY, False)

    def was_closed(self) -> bool:
        return bool(self._local_storage.get_item(CLOSED_KEY))

    def was_started(self) -> bool:
        return bool(self._local_storage.get_item(STARTED_KEY))

    def mark_wallet_as_started(self) -> None:
        self._local_storage.set_item(STARTED_KEY, True)

    def get_wallet_version(self) -> Optional[str]:
        return self._local_storage.get_item(WALLET_VERSION_KEY)

    def set_wallet_version(self, version: str=PACKAGE_VERSION) -> None:
        self._local_storage.set_item(WALLET_VERSION_KEY, version)

    def set_network(self, network_name: str) -> None:
        """
        Persist the network and make it the one that this session derives keys for.

        Raises `UnknownNetworkError` for names that do not resolve to a network.
        """
        network = network_from_name(network_name)
        self._local_storage.set_item(NETWORK_KEY, network_name)
        self._network = network
        logger.info("network set to '%s'", network_name)

    def get_network(self) -> str:
        network_name = self._local_storage.get_item(NETWORK_KEY)
        if network_name is None:
            return self._network.NAME
        return cast(str, network_name)

    def get_network_definition(self) -> NetworkType:
        return self._network

    def set_hardware_wallet(self, value: bool) -> None:
        self._local_storage.set_item(IS_HARDWARE_KEY, value)

    def is_hardware_wallet(self) -> bool:
        return bool(self._local_storage.get_item(IS_HARDWARE_KEY))

    def get_token_signatures(self) -> TokenSignatures:
        return self._local_storage.get_item(TOKEN_SIGNATURES_KEY) or {}

    def set_token_signatures(self, data: TokenSignatures) -> None:
        self._local_storage.set_item(TOKEN_SIGNATURES_KEY, data)

    def reset_token_signatures(self) -> None:
        self._local_storage.remove_item(TOKEN_SIGNATURES_KEY)

    def mark_backup_done(self) -> None:
        self._local_storage.set_item(IS_BACKUP_DONE_KEY, True)

    def mark_backup_as_not_done(self) -> None:
        self._local_storage.remove_item(IS_BACKUP_DONE_KEY)

    def is_backup_done(self) -> bool:
        return bool(self._local_storage.get_item(IS_BACKUP_DONE_KEY))

    def set_servers(self, server_url: str, ws_server_url: Optional[str]=None) -> None:
        """
        Persist the fullnode api url and, if given, the wallet service websocket url.
        """
        self._local_storage.set_item(SERVER_KEY, server_url)
        if ws_server_url:
            self._local_storage.set_item(WS_SERVER_KEY, ws_server_url)

    def get_server(self) -> Optional[str]:
        return self._local_storage.get_item(SERVER_KEY)

    def get_ws_server(self) -> Optional[str]:
        return self._local_storage.get_item(WS_SERVER_KEY)

    def save_ledger_app_version(self, version: str) -> None:
        self._local_storage.set_item(LEDGER_APP_VERSION_KEY, version)

    def get_ledger_app_version(self) -> Optional[str]:
        return self._local_storage.get_item(LEDGER_APP_VERSION_KEY)

    def get_failed_token_migrations(self) -> List[Any]:
        return self._local_storage.get_item(FAILED_TOKENS_KEY) or []
