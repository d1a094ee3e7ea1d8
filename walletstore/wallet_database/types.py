from typing import Any, NamedTuple


class WalletDataRow(NamedTuple):
    key: str
    value: Any


class TokenRow(NamedTuple):
    token_id: str
    name: str
    symbol: str
