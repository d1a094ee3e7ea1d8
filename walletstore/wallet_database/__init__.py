from .migration import create_database, update_database
from .types import TokenRow, WalletDataRow
