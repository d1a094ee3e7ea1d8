from enum import Enum, IntEnum, IntFlag


## Flat storage keys.

WALLET_VERSION_KEY = 'localstorage:version'
# The storage version indicates which migration strategy applies to an installation.
STORE_VERSION_KEY = 'localstorage:storeversion'
LEDGER_APP_VERSION_KEY = 'localstorage:ledger:version'
# Marks the wallet as being manually locked.
LOCKED_KEY = 'localstorage:lock'
# Marks the wallet as being correctly closed.
CLOSED_KEY = 'localstorage:closed'
# Marks that the user has seen the welcome page and clicked on get started.
STARTED_KEY = 'localstorage:started'
NETWORK_KEY = 'localstorage:network'
IS_HARDWARE_KEY = 'localstorage:ishardware'
TOKEN_SIGNATURES_KEY = 'localstorage:token:signatures'
IS_BACKUP_DONE_KEY = 'localstorage:backup'
SERVER_KEY = 'localstorage:server'
WS_SERVER_KEY = 'localstorage:wsserver'
# Legacy tokens that could not be imported into the wallet storage during migration.
FAILED_TOKENS_KEY = 'localstorage:migration:failedtokens'

SETTINGS_KEYS = (
    WALLET_VERSION_KEY,
    STORE_VERSION_KEY,
    LEDGER_APP_VERSION_KEY,
    LOCKED_KEY,
    CLOSED_KEY,
    STARTED_KEY,
    NETWORK_KEY,
    IS_HARDWARE_KEY,
    TOKEN_SIGNATURES_KEY,
    IS_BACKUP_DONE_KEY,
    SERVER_KEY,
    WS_SERVER_KEY,
    FAILED_TOKENS_KEY,
)

# Keys in the legacy flat wallet namespace. Everything under the prefix other than the
# wallet id is removed once the legacy data has been migrated.
LEGACY_WALLET_PREFIX = 'wallet:'
WALLET_ID_KEY = 'wallet:id'
LEGACY_ACCESS_DATA_KEY = 'wallet:accessData'
LEGACY_TOKENS_KEY = 'wallet:tokens'
LEGACY_BACKUP_KEY = 'wallet:backup'


## Key derivation.

HASH_ITERATIONS = 1000
SALT_SIZE = 16

HATHOR_BIP44_CODE = 280
# The BIP32 path of the change level key, relative to the account key.
CHANGE_SUBPATH = (0,)


class Pbkdf2Hasher(str, Enum):
    SHA1 = 'sha1'
    SHA256 = 'sha256'


class WalletType(str, Enum):
    P2PKH = 'p2pkh'
    MULTISIG = 'multisig'


class WalletFlag(IntFlag):
    NONE = 0
    READONLY = 1 << 0
    HARDWARE = 1 << 1


class AccessDataKind(IntEnum):
    LEGACY = 1
    CURRENT = 2


## Wallet database.

MIGRATION_FIRST = 1
MIGRATION_CURRENT = 2
